# attendance/nodes/lookup_node.py
from attendance.state import CorrectionState
from services.api_interface import ApiError, AttendanceApiInterface
from services.logger import get_logger

logger = get_logger("LookupNode")


async def lookup_node(
    state: CorrectionState,
    api: AttendanceApiInterface = None,
) -> dict:
    """既存の勤怠レコードを検索するノード

    取得失敗は「レコードなし」と同じ扱いで作成経路に進む（警告として残す）。
    """
    try:
        record = await api.get_attendance(state["employee_id"], state["work_date"])
    except ApiError as e:
        logger.warning("%s の勤怠取得に失敗、新規作成として扱います: %s", state["work_date"], e.message)
        return {
            "attendance_id": None,
            "warnings": state["warnings"] + [f"Lookup failed: {e.message}"],
        }

    return {"attendance_id": record.id if record and record.id else None}
