import pytest
from unittest.mock import AsyncMock
from services.api_interface import ApiError, AttendanceRecord
from attendance.nodes.lookup_node import lookup_node


def _make_state(**overrides):
    base = {
        "employee_id": "E001",
        "work_date": "2024-06-04",
        "clock_in": "09:00",
        "clock_out": "18:00",
        "comment": "",
        "clock_in_at": "2024-06-04 09:00:00",
        "clock_out_at": "2024-06-04 18:00:00",
        "attendance_id": None,
        "action_taken": None,
        "error_message": None,
        "warnings": [],
    }
    base.update(overrides)
    return base


@pytest.mark.asyncio
async def test_lookup_existing_record():
    """既存レコードのIDを取得すること"""
    mock_api = AsyncMock()
    mock_api.get_attendance.return_value = AttendanceRecord(
        id="22",
        employee_id="E001",
        work_date="2024-06-04",
        clock_in="2024-06-04 09:10:00",
        clock_out=None,
    )

    result = await lookup_node(_make_state(), api=mock_api)

    mock_api.get_attendance.assert_awaited_once_with("E001", "2024-06-04")
    assert result["attendance_id"] == "22"


@pytest.mark.asyncio
async def test_lookup_no_record():
    """レコードがなければIDなし"""
    mock_api = AsyncMock()
    mock_api.get_attendance.return_value = None

    result = await lookup_node(_make_state(), api=mock_api)

    assert result["attendance_id"] is None
    assert "warnings" not in result


@pytest.mark.asyncio
async def test_lookup_record_without_id():
    """IDを持たないレコードは未登録と同じ扱い"""
    mock_api = AsyncMock()
    mock_api.get_attendance.return_value = AttendanceRecord(
        id=None, employee_id=None, work_date=None, clock_in=None, clock_out=None
    )

    result = await lookup_node(_make_state(), api=mock_api)

    assert result["attendance_id"] is None


@pytest.mark.asyncio
async def test_lookup_failure_treated_as_absent():
    """取得失敗はレコードなしとして扱い、警告を残すこと"""
    mock_api = AsyncMock()
    mock_api.get_attendance.side_effect = ApiError("Gateway timeout", 504)

    result = await lookup_node(_make_state(), api=mock_api)

    assert result["attendance_id"] is None
    assert result["warnings"] == ["Lookup failed: Gateway timeout"]
