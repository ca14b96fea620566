# attendance/nodes/update_node.py
from attendance.state import CorrectionState
from services.api_interface import ApiError, AttendanceApiInterface


async def update_node(
    state: CorrectionState,
    api: AttendanceApiInterface = None,
) -> dict:
    """既存レコードの出退勤を上書きするノード"""
    try:
        await api.update_attendance(
            state["attendance_id"],
            clock_in=state["clock_in_at"],
            clock_out=state["clock_out_at"],
            status="present",
        )
    except ApiError as e:
        return {"action_taken": "error", "error_message": e.message}

    return {"action_taken": "updated", "error_message": None}
