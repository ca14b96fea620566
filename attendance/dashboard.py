# attendance/dashboard.py
import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from functools import partial
from typing import Callable, Optional

from attendance.available_dates import available_dates, month_bounds
from services.api_interface import (
    ApiError,
    AttendanceApiInterface,
    AttendanceRecord,
    CorrectionRequest,
    EligibleDate,
    MonthlyStats,
)
from services.logger import get_logger

logger = get_logger("Dashboard")

NOT_CONFIGURED = "Attendance system not configured. Please contact administrator."


def _now() -> datetime:
    """テスト時にモック可能な現在時刻取得"""
    return datetime.now()


def _hours_between(clock_in: Optional[str], clock_out: Optional[str]) -> float:
    if not clock_in or not clock_out:
        return 0.0
    try:
        diff = datetime.fromisoformat(clock_out) - datetime.fromisoformat(clock_in)
    except ValueError:
        return 0.0
    return diff.total_seconds() / 3600


@dataclass
class DaySummary:
    date: str
    day: str            # Sun, Mon, ...
    present: bool
    hours: float


@dataclass
class WeeklyStats:
    days: list[DaySummary] = field(default_factory=list)
    total_hours: float = 0
    average_hours: float = 0


class AttendanceDashboard:
    """1人分の勤怠表示データ（今日・月履歴・月次/週次集計）

    変更のたびに subscribe() 済みのリスナーへ自身を通知する。
    """

    def __init__(
        self,
        api: AttendanceApiInterface,
        employee_id: str,
        notifier=None,
        selected_month: Optional[str] = None,
    ):
        self._api = api
        self._employee_id = employee_id
        self._notifier = notifier
        self._listeners: list[Callable] = []
        self.selected_month = selected_month or _now().strftime("%Y-%m")
        self.today_attendance: Optional[AttendanceRecord] = None
        self.history: list[AttendanceRecord] = []
        self.monthly_stats = MonthlyStats()
        self.weekly_stats = WeeklyStats()
        self.correction_history: list[CorrectionRequest] = []
        self.eligible_dates: list[EligibleDate] = []
        self.clocking = False

    @property
    def employee_id(self) -> str:
        return self._employee_id

    def subscribe(self, listener: Callable) -> Callable[[], None]:
        """変更通知を購読し、解除用の関数を返す"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    async def fetch_today(self, notify: bool = True) -> Optional[AttendanceRecord]:
        today_str = _now().date().isoformat()
        try:
            record = await self._api.get_attendance(self._employee_id, today_str)
        except ApiError as e:
            logger.error("今日の勤怠取得に失敗: %s", e.message)
            if notify and self._notifier:
                self._notifier.send_error("Failed to load attendance data")
            raise
        self.today_attendance = record
        self._publish()
        return record

    async def fetch_history(self, month: Optional[str] = None) -> list[AttendanceRecord]:
        start_date, end_date = month_bounds(month or self.selected_month)
        try:
            records = await self._api.list_attendance(
                self._employee_id, start_date, end_date
            )
        except ApiError as e:
            logger.error("勤怠履歴の取得に失敗: %s", e.message)
            self.history = []
            self._publish()
            raise
        self.history = records
        self._publish()
        return records

    async def fetch_monthly_stats(self, month: Optional[str] = None) -> MonthlyStats:
        try:
            self.monthly_stats = await self._api.get_monthly_stats(
                self._employee_id, month or self.selected_month
            )
        except ApiError as e:
            logger.error("月次集計の取得に失敗: %s", e.message)
            return self.monthly_stats
        self._publish()
        return self.monthly_stats

    async def fetch_weekly_stats(self) -> WeeklyStats:
        """今週（日曜始まり）の日別勤務時間"""
        today = _now().date()
        week_start = today - timedelta(days=(today.weekday() + 1) % 7)

        days = []
        for offset in range(7):
            day = week_start + timedelta(days=offset)
            try:
                record = await self._api.get_attendance(self._employee_id, day.isoformat())
            except ApiError:
                record = None
            days.append(
                DaySummary(
                    date=day.isoformat(),
                    day=day.strftime("%a"),
                    present=bool(record and record.clock_in),
                    hours=round(_hours_between(record.clock_in, record.clock_out), 1)
                    if record
                    else 0.0,
                )
            )

        total = sum(d.hours for d in days)
        self.weekly_stats = WeeklyStats(
            days=days,
            total_hours=round(total, 1),
            average_hours=round(total / 7, 1),
        )
        self._publish()
        return self.weekly_stats

    async def fetch_correction_history(self) -> list[CorrectionRequest]:
        """補正申請履歴（新しい順）。失敗時は空にしてログのみ"""
        try:
            corrections = await self._api.list_correction_requests(self._employee_id)
        except ApiError as e:
            logger.error("補正申請履歴の取得に失敗: %s", e.message)
            corrections = []
        self.correction_history = corrections
        self._publish()
        return corrections

    async def fetch_eligible_dates(self) -> list[EligibleDate]:
        """APIが返す補正対象日（未来日を除き新しい順）"""
        today_str = _now().date().isoformat()
        try:
            eligible = await self._api.list_eligible_dates(self._employee_id)
        except ApiError as e:
            logger.error("補正対象日の取得に失敗: %s", e.message)
            self.eligible_dates = []
            self._publish()
            raise
        self.eligible_dates = sorted(
            (d for d in eligible if d.date[:10] <= today_str),
            key=lambda d: d.date,
            reverse=True,
        )
        self._publish()
        return self.eligible_dates

    async def refresh_all(self) -> None:
        """全ビューを並行して再読込（APIエラーはログのみ）"""
        results = await asyncio.gather(
            self.fetch_today(),
            self.fetch_history(),
            self.fetch_monthly_stats(),
            self.fetch_weekly_stats(),
            self.fetch_correction_history(),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, ApiError):
                logger.warning("再読込に失敗: %s", result.message)
            elif isinstance(result, BaseException):
                raise result

    async def refresh_after_submit(self) -> None:
        """補正申請後の再読込（失敗はログのみ）"""
        refreshers = (
            partial(self.fetch_today, notify=False),
            self.fetch_history,
            self.fetch_monthly_stats,
            self.fetch_correction_history,
        )
        for fetch in refreshers:
            try:
                await fetch()
            except ApiError as e:
                logger.warning("補正後の再読込に失敗: %s", e.message)

    def available_dates(
        self, today: Optional[date] = None, history: Optional[list] = None
    ) -> list[date]:
        """今月の補正可能日

        履歴を省略した場合は読込済みの self.history を使う。
        選択月が今月とは限らないので、通常は fetch_available_dates() を使う。
        """
        return available_dates(
            today=today or _now().date(),
            today_record=self.today_attendance,
            history=self.history if history is None else history,
        )

    async def fetch_available_dates(self) -> list[date]:
        """今日の勤怠と今月の履歴を取得して補正可能日を返す"""
        today = _now().date()
        month = today.strftime("%Y-%m")
        await self.fetch_today()
        if month == self.selected_month:
            history = await self.fetch_history()
        else:
            start_date, end_date = month_bounds(month)
            history = await self._api.list_attendance(
                self._employee_id, start_date, end_date
            )
        return self.available_dates(today=today, history=history)

    async def clock_in_now(self) -> None:
        """現在時刻で出勤打刻"""
        now = _now()
        self.clocking = True
        try:
            await self._api.clock_in(
                self._employee_id,
                now.date().isoformat(),
                now.strftime("%Y-%m-%d %H:%M:%S"),
            )
        except ApiError as e:
            if "table" in e.message or "doesn't exist" in e.message:
                self._notify_error(NOT_CONFIGURED)
            else:
                self._notify_error(e.message or "Failed to clock in")
            raise
        finally:
            self.clocking = False
        if self._notifier:
            self._notifier.send("Clocked in successfully!")
        await self.fetch_today()

    async def clock_out_now(self) -> None:
        """現在時刻で退勤打刻"""
        now = _now()
        self.clocking = True
        try:
            await self._api.clock_out(
                self._employee_id,
                now.date().isoformat(),
                now.strftime("%Y-%m-%d %H:%M:%S"),
            )
        except ApiError as e:
            self._notify_error(e.message or "Failed to clock out")
            raise
        finally:
            self.clocking = False
        if self._notifier:
            self._notifier.send("Clocked out successfully!")
        await self.fetch_today()

    def _notify_error(self, message: str) -> None:
        logger.error(message)
        if self._notifier:
            self._notifier.send_error(message)
