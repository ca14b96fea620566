# attendance/form.py
from dataclasses import dataclass, replace
from datetime import date
from typing import Iterable

from attendance.validator import ERROR_SUFFIXES, date_key, validate_form

FIELDS = ("clock_in", "clock_out", "comment")


@dataclass
class DateEntry:
    clock_in: str = ""      # HH:MM
    clock_out: str = ""     # HH:MM
    comment: str = ""


def _check_field(field: str) -> None:
    if field not in FIELDS:
        raise ValueError(f"unknown correction field: {field}")


class CorrectionFormState:
    """勤怠補正フォームの編集中状態

    選択日付 (dates) と日付ごとの入力 (date_entries) のキーは常に一致する。
    broadcast は「全日付に適用」用の入力で、適用時にスナップショットとしてコピーされる。
    """

    def __init__(self):
        self.dates: list[date] = []
        self.date_entries: dict[str, DateEntry] = {}
        self.broadcast = DateEntry()
        self.errors: dict[str, str] = {}

    def set_dates(self, new_dates: Iterable) -> None:
        """選択日付を置き換え、date_entries を同期する"""
        selected: list[date] = []
        seen = set()
        for value in new_dates:
            key = date_key(value)
            if key in seen:
                continue
            seen.add(key)
            selected.append(date.fromisoformat(key))

        for key in list(self.date_entries):
            if key not in seen:
                del self.date_entries[key]
        for key in seen:
            self.date_entries.setdefault(key, DateEntry())

        self.dates = selected
        self.errors.pop("dates", None)

    def set_broadcast_field(self, field: str, value: str) -> None:
        _check_field(field)
        setattr(self.broadcast, field, value)
        self.errors.pop(ERROR_SUFFIXES[field], None)

    def set_entry_field(self, day, field: str, value: str) -> None:
        """1日分の入力を更新（未選択の日付は無視）"""
        _check_field(field)
        key = date_key(day)
        entry = self.date_entries.get(key)
        if entry is None:
            return
        setattr(entry, field, value)
        self.errors.pop(f"{key}_{ERROR_SUFFIXES[field]}", None)

    def apply_broadcast_to_all(self) -> None:
        """broadcast の現在値を全選択日付に上書きコピー"""
        for day in self.dates:
            self.date_entries[date_key(day)] = DateEntry(
                clock_in=self.broadcast.clock_in or "",
                clock_out=self.broadcast.clock_out or "",
                comment=self.broadcast.comment or "",
            )

    def entry_for(self, day) -> DateEntry:
        """日付の入力のコピー（未作成なら空）"""
        entry = self.date_entries.get(date_key(day))
        return replace(entry) if entry else DateEntry()

    def validate(self) -> bool:
        self.errors = validate_form(self.dates, self.date_entries)
        return not self.errors

    def reset(self) -> None:
        self.dates = []
        self.date_entries = {}
        self.broadcast = DateEntry()
        self.errors = {}

    @property
    def is_empty(self) -> bool:
        return not self.dates
