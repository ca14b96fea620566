# tests/test_graph.py
import pytest
from unittest.mock import AsyncMock
from attendance.form import DateEntry
from attendance.graph import (
    route_after_resolve,
    route_after_lookup,
    route_after_write,
    build_submission_graph,
)
from attendance.state import initial_state
from services.api_interface import ApiError, AttendanceRecord


def _make_state(**overrides):
    base = initial_state("E001", "2024-06-03", "09:00", "18:00", "")
    base.update(overrides)
    return base


def _record(record_id):
    return AttendanceRecord(
        id=record_id,
        employee_id="E001",
        work_date="2024-06-03",
        clock_in="2024-06-03 09:00:00",
        clock_out="2024-06-03 18:00:00",
    )


def test_route_resolve_error():
    """時刻不足の場合endへ"""
    state = _make_state(action_taken="error")
    assert route_after_resolve(state) == "end"


def test_route_resolve_ok():
    state = _make_state()
    assert route_after_resolve(state) == "lookup"


def test_route_lookup_found():
    """既存レコードがあればupdateへ"""
    state = _make_state(attendance_id="22")
    assert route_after_lookup(state) == "update"


def test_route_lookup_not_found():
    """レコードがなければcreateへ"""
    state = _make_state(attendance_id=None)
    assert route_after_lookup(state) == "create"


def test_route_write_with_comment():
    """コメントとIDがあればregularizeへ"""
    state = _make_state(action_taken="created", attendance_id="101", comment="forgot")
    assert route_after_write(state) == "regularize"


def test_route_write_blank_comment():
    """空白だけのコメントは申請しない"""
    state = _make_state(action_taken="updated", attendance_id="22", comment="   ")
    assert route_after_write(state) == "end"


def test_route_write_without_id():
    state = _make_state(action_taken="created", attendance_id=None, comment="forgot")
    assert route_after_write(state) == "end"


def test_route_write_error():
    state = _make_state(action_taken="error", attendance_id="22", comment="forgot")
    assert route_after_write(state) == "end"


def test_build_graph():
    """グラフが正常にビルドできること"""
    graph = build_submission_graph()
    assert graph is not None


@pytest.mark.asyncio
async def test_graph_create_path_with_comment():
    """新規作成経路: 検索→出勤→退勤→再取得→理由申請"""
    mock_api = AsyncMock()
    mock_api.get_attendance.side_effect = [None, _record("101")]
    graph = build_submission_graph(api=mock_api, broadcast=DateEntry(comment="forgot"))

    result = await graph.ainvoke(_make_state())

    assert result["action_taken"] == "created"
    assert result["attendance_id"] == "101"
    assert mock_api.get_attendance.await_count == 2
    mock_api.clock_in.assert_awaited_once()
    mock_api.clock_out.assert_awaited_once()
    mock_api.regularize.assert_awaited_once_with(
        "101", requested_by="E001", comment="forgot"
    )
    mock_api.update_attendance.assert_not_awaited()


@pytest.mark.asyncio
async def test_graph_update_path_without_comment():
    """更新経路: コメントなしなら更新のみ"""
    mock_api = AsyncMock()
    mock_api.get_attendance.return_value = _record("22")
    graph = build_submission_graph(api=mock_api)

    result = await graph.ainvoke(_make_state())

    assert result["action_taken"] == "updated"
    mock_api.update_attendance.assert_awaited_once()
    mock_api.clock_in.assert_not_awaited()
    mock_api.regularize.assert_not_awaited()


@pytest.mark.asyncio
async def test_graph_missing_times_skips_api():
    """時刻が揃わない日付はAPIを呼ばずに失敗"""
    mock_api = AsyncMock()
    graph = build_submission_graph(api=mock_api, broadcast=DateEntry())

    result = await graph.ainvoke(_make_state(clock_out=""))

    assert result["action_taken"] == "error"
    mock_api.get_attendance.assert_not_awaited()


@pytest.mark.asyncio
async def test_graph_regularize_failure_keeps_success():
    """理由申請の失敗は警告として残り、結果は成功のまま"""
    mock_api = AsyncMock()
    mock_api.get_attendance.return_value = _record("22")
    mock_api.regularize.side_effect = ApiError("Regularization closed")
    graph = build_submission_graph(api=mock_api)

    result = await graph.ainvoke(_make_state(comment="late bus"))

    assert result["action_taken"] == "updated"
    assert result["warnings"] == ["Regularization failed: Regularization closed"]
