# attendance/nodes/resolve_node.py
from typing import Optional

from attendance.form import DateEntry
from attendance.state import CorrectionState

MISSING_TIMES = "Clock-in and clock-out times are required"


def to_timestamp(work_date: str, hhmm: str) -> str:
    """"YYYY-MM-DD HH:MM:00" 形式（ローカル時刻、タイムゾーン変換なし）"""
    return f"{work_date} {hhmm.strip()}:00"


def resolve_node(
    state: CorrectionState,
    broadcast: Optional[DateEntry] = None,
) -> dict:
    """日付ごとの入力を確定し、空欄は一括入力値で補うノード"""
    broadcast = broadcast or DateEntry()

    clock_in = state["clock_in"] or broadcast.clock_in
    clock_out = state["clock_out"] or broadcast.clock_out
    comment = state["comment"] or broadcast.comment or ""

    if not clock_in or not clock_out:
        return {"action_taken": "error", "error_message": MISSING_TIMES}

    return {
        "clock_in": clock_in,
        "clock_out": clock_out,
        "comment": comment,
        "clock_in_at": to_timestamp(state["work_date"], clock_in),
        "clock_out_at": to_timestamp(state["work_date"], clock_out),
    }
