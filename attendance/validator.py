# attendance/validator.py
from datetime import date, datetime, time
from typing import Mapping, Optional, Sequence

DATES_REQUIRED = "At least one date is required"
CLOCK_IN_REQUIRED = "Clock-in time is required"
CLOCK_OUT_REQUIRED = "Clock-out time is required"
CLOCK_IN_FORMAT = "Clock-in time must be in HH:MM format"
CLOCK_OUT_FORMAT = "Clock-out time must be in HH:MM format"
CLOCK_OUT_ORDER = "Clock-out time must be after clock-in time"

# フォームのフィールド名 → エラーキーの接尾辞
ERROR_SUFFIXES = {
    "clock_in": "clockIn",
    "clock_out": "clockOut",
    "comment": "comment",
}


def date_key(value) -> str:
    """date / ISO文字列を YYYY-MM-DD に正規化"""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return date.fromisoformat(str(value)[:10]).isoformat()


def error_key(day, field: str) -> str:
    return f"{date_key(day)}_{ERROR_SUFFIXES[field]}"


def parse_time(value: str) -> Optional[time]:
    """HH:MM形式の文字列をtimeに変換（不正ならNone）"""
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        return None


def validate_form(dates: Sequence, date_entries: Mapping) -> dict[str, str]:
    """補正フォームを検証し、フィールドキー → メッセージの辞書を返す"""
    errors: dict[str, str] = {}

    if not dates:
        errors["dates"] = DATES_REQUIRED

    for day in dates:
        key = date_key(day)
        entry = date_entries.get(key)
        clock_in = (entry.clock_in if entry else "") or ""
        clock_out = (entry.clock_out if entry else "") or ""

        if not clock_in.strip():
            errors[f"{key}_clockIn"] = CLOCK_IN_REQUIRED
        if not clock_out.strip():
            errors[f"{key}_clockOut"] = CLOCK_OUT_REQUIRED

        if clock_in.strip() and clock_out.strip():
            in_time = parse_time(clock_in)
            out_time = parse_time(clock_out)
            if in_time is None:
                errors[f"{key}_clockIn"] = CLOCK_IN_FORMAT
            if out_time is None:
                errors[f"{key}_clockOut"] = CLOCK_OUT_FORMAT
            elif in_time is not None and out_time <= in_time:
                errors[f"{key}_clockOut"] = CLOCK_OUT_ORDER

    return errors
