# tests/test_scheduler.py
from unittest.mock import AsyncMock, MagicMock, patch
from schedulers.scheduler import JOB_ID, RefreshScheduler
from services.config_loader import load_config


def _dashboard():
    dashboard = MagicMock()
    dashboard.refresh_all = AsyncMock()
    return dashboard


def test_scheduler_creation():
    """スケジューラが正しく生成されること"""
    scheduler = RefreshScheduler(_dashboard(), interval_minutes=5)
    assert scheduler.interval_minutes == 5
    job = scheduler._scheduler.get_job(JOB_ID)
    assert job is not None
    assert job.func == scheduler.run_once
    assert scheduler.next_run_time is None


def test_scheduler_from_config():
    config = load_config("nonexistent.yaml")
    config["dashboard"]["refresh_interval_minutes"] = 15
    scheduler = RefreshScheduler.from_config(_dashboard(), config)
    assert scheduler.interval_minutes == 15


def test_run_once_refreshes_dashboard():
    """1回分の再読込でダッシュボードの refresh_all を実行すること"""
    dashboard = _dashboard()
    scheduler = RefreshScheduler(dashboard, interval_minutes=5)

    assert scheduler.run_once() is True
    dashboard.refresh_all.assert_awaited_once()


def test_run_once_logs_failure():
    """再読込の例外はジョブの外へ出さないこと"""
    dashboard = _dashboard()
    dashboard.refresh_all.side_effect = RuntimeError("broken response")
    scheduler = RefreshScheduler(dashboard, interval_minutes=5)

    assert scheduler.run_once() is False


def test_scheduler_start_stop():
    """スケジューラの開始・停止"""
    scheduler = RefreshScheduler(_dashboard(), interval_minutes=5)

    with patch.object(scheduler._scheduler, "start") as mock_start:
        scheduler.start()
        mock_start.assert_called_once()

    with patch.object(scheduler._scheduler, "shutdown") as mock_shutdown:
        scheduler.stop()
        mock_shutdown.assert_called_once()
