# attendance/available_dates.py
import calendar
from datetime import date, timedelta
from typing import Iterable, Optional

from services.api_interface import AttendanceRecord


def _today() -> date:
    """テスト時にモック可能"""
    return date.today()


def month_bounds(month: str) -> tuple[str, str]:
    """YYYY-MM → (月初, 月末) のISO文字列"""
    year, mon = map(int, month.split("-"))
    last_day = calendar.monthrange(year, mon)[1]
    return date(year, mon, 1).isoformat(), date(year, mon, last_day).isoformat()


def available_dates(
    today: Optional[date] = None,
    today_record: Optional[AttendanceRecord] = None,
    history: Iterable[AttendanceRecord] = (),
) -> list[date]:
    """今月の補正可能な日付（月初〜今日、出退勤が揃っていない日）を返す"""
    if today is None:
        today = _today()

    by_date = {}
    for record in history:
        if record.work_date and record.work_date not in by_date:
            by_date[record.work_date] = record

    last_day = calendar.monthrange(today.year, today.month)[1]
    end = min(date(today.year, today.month, last_day), today)

    result = []
    day = date(today.year, today.month, 1)
    while day <= end:
        if day == today and today_record is not None:
            record = today_record
        else:
            record = by_date.get(day.isoformat())

        if record is None or not record.is_complete:
            result.append(day)
        day += timedelta(days=1)

    return result
