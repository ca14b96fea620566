# attendance/nodes/regularize_node.py
from attendance.state import CorrectionState
from services.api_interface import ApiError, AttendanceApiInterface
from services.logger import get_logger

logger = get_logger("RegularizeNode")


async def regularize_node(
    state: CorrectionState,
    api: AttendanceApiInterface = None,
) -> dict:
    """補正理由を申請するノード（失敗しても日付の成否は変えない）"""
    try:
        await api.regularize(
            state["attendance_id"],
            requested_by=state["employee_id"],
            comment=state["comment"],
        )
    except ApiError as e:
        logger.warning("%s のレギュラライズ申請に失敗: %s", state["work_date"], e.message)
        return {"warnings": state["warnings"] + [f"Regularization failed: {e.message}"]}

    return {"warnings": state["warnings"]}
