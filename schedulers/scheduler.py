# schedulers/scheduler.py
import asyncio
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from services.logger import get_logger

logger = get_logger("Scheduler")

JOB_ID = "dashboard_refresh"


class RefreshScheduler:
    """APSchedulerによる勤怠ダッシュボードの定期再読込

    ジョブはスケジューラのワーカースレッドで動くため、
    1回ごとに新しいイベントループで dashboard.refresh_all() を実行する。
    """

    def __init__(self, dashboard, interval_minutes: int):
        self._dashboard = dashboard
        self._interval = interval_minutes
        self._scheduler = BackgroundScheduler()
        self._scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(minutes=self._interval),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    @classmethod
    def from_config(cls, dashboard, config: dict) -> "RefreshScheduler":
        return cls(dashboard, config["dashboard"]["refresh_interval_minutes"])

    @property
    def interval_minutes(self) -> int:
        return self._interval

    @property
    def next_run_time(self) -> Optional[datetime]:
        """次回実行予定（開始前はNone）"""
        job = self._scheduler.get_job(JOB_ID)
        return getattr(job, "next_run_time", None) if job else None

    def run_once(self) -> bool:
        """ダッシュボードを1回再読込する。失敗はログに残してFalseを返す"""
        try:
            asyncio.run(self._dashboard.refresh_all())
        except Exception as e:
            logger.error("再読込中にエラー: %s", e)
            return False
        logger.debug("ダッシュボードを再読込しました")
        return True

    def start(self):
        """スケジューラ開始"""
        self._scheduler.start()
        logger.info("%d分間隔の再読込を開始", self._interval)

    def stop(self):
        """スケジューラ停止"""
        self._scheduler.shutdown(wait=False)
