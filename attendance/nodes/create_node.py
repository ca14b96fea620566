# attendance/nodes/create_node.py
from attendance.state import CorrectionState
from services.api_interface import ApiError, AttendanceApiInterface


async def create_node(
    state: CorrectionState,
    api: AttendanceApiInterface = None,
) -> dict:
    """出勤→退勤の順に打刻してレコードを作成し、IDを取り直すノード"""
    employee_id = state["employee_id"]
    work_date = state["work_date"]

    try:
        await api.clock_in(employee_id, work_date, state["clock_in_at"])
        await api.clock_out(employee_id, work_date, state["clock_out_at"])
        record = await api.get_attendance(employee_id, work_date)
    except ApiError as e:
        return {"action_taken": "error", "error_message": e.message}

    return {
        "attendance_id": record.id if record else None,
        "action_taken": "created",
        "error_message": None,
    }
