from typing import TypedDict, Optional


class CorrectionState(TypedDict):
    employee_id: str                    # 申請者
    work_date: str                      # YYYY-MM-DD
    clock_in: str                       # 入力された出勤時刻 HH:MM
    clock_out: str                      # 入力された退勤時刻 HH:MM
    comment: str                        # 補正理由
    clock_in_at: Optional[str]          # "YYYY-MM-DD HH:MM:00"
    clock_out_at: Optional[str]
    attendance_id: Optional[str]        # 既存 or 作成後のレコードID
    action_taken: Optional[str]         # "created" / "updated" / "error"
    error_message: Optional[str]        # エラー詳細
    warnings: list[str]                 # 成否に影響しない失敗


def initial_state(
    employee_id: str,
    work_date: str,
    clock_in: str = "",
    clock_out: str = "",
    comment: str = "",
) -> CorrectionState:
    return {
        "employee_id": employee_id,
        "work_date": work_date,
        "clock_in": clock_in,
        "clock_out": clock_out,
        "comment": comment,
        "clock_in_at": None,
        "clock_out_at": None,
        "attendance_id": None,
        "action_taken": None,
        "error_message": None,
        "warnings": [],
    }
