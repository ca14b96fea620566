import asyncio
from typing import Any, Optional

import requests

from services.api_interface import (
    ApiError,
    AttendanceApiInterface,
    AttendanceRecord,
    CorrectionRequest,
    EligibleDate,
    MonthlyStats,
)
from services.logger import get_logger

logger = get_logger("AttendanceApi")

# APIのバージョンによってフィールド名が揺れる
_CLOCK_IN_KEYS = ("clock_in", "clockin", "clockin_time")
_CLOCK_OUT_KEYS = ("clock_out", "clockout", "clockout_time")
_DATE_KEYS = ("date", "work_date")


def _first_value(raw: dict, keys: tuple) -> Optional[Any]:
    for key in keys:
        value = raw.get(key)
        if value:
            return value
    return None


def normalize_record(raw: Optional[dict]) -> Optional[AttendanceRecord]:
    """APIレスポンスの1レコードを AttendanceRecord に正規化する"""
    if not raw or not isinstance(raw, dict):
        return None

    record_id = raw.get("id")
    employee_id = raw.get("employee_id")
    return AttendanceRecord(
        id=str(record_id) if record_id is not None else None,
        employee_id=str(employee_id) if employee_id is not None else None,
        work_date=_first_value(raw, _DATE_KEYS),
        clock_in=_first_value(raw, _CLOCK_IN_KEYS),
        clock_out=_first_value(raw, _CLOCK_OUT_KEYS),
        status=raw.get("status"),
    )


def _unwrap_list(data: Any) -> list:
    """配列 / {"attendance": [...]} / {"data": [...]} のいずれにも対応"""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("attendance", "data"):
            if isinstance(data.get(key), list):
                return data[key]
        return [data] if data else []
    return []


def normalize_monthly_stats(data: Optional[dict]) -> MonthlyStats:
    data = data or {}
    return MonthlyStats(
        on_time_percentage=data.get("on_time_percentage") or 0,
        late_percentage=data.get("late_percentage") or 0,
        total_break_hours=data.get("total_break_hours") or 0,
        total_working_hours=data.get("total_working_hours") or 0,
        total_days=data.get("total_days") or 0,
        present_days=data.get("present_days") or data.get("days_present") or 0,
        absent_days=data.get("absent_days") or 0,
        late_arrivals=data.get("late_arrivals") or 0,
        early_departures=data.get("early_departures") or 0,
        overtime_hours=data.get("overtime_hours") or 0,
    )


def _str_or_none(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def normalize_correction_request(raw: Optional[dict]) -> Optional[CorrectionRequest]:
    """補正申請レスポンスの1件を CorrectionRequest に正規化する"""
    if not raw or not isinstance(raw, dict):
        return None
    return CorrectionRequest(
        id=_str_or_none(raw.get("id")),
        attendance_id=_str_or_none(raw.get("attendance_record_id")),
        correction_date=raw.get("correction_date"),
        requested_check_in=raw.get("requested_check_in"),
        requested_check_out=raw.get("requested_check_out"),
        status=raw.get("status"),
        reason=raw.get("reason"),
        applied_at=raw.get("applied_at"),
        approver_remarks=raw.get("remarks") or raw.get("rejection_reason") or "",
        approved_by=_str_or_none(raw.get("approved_by")),
        approved_at=raw.get("approved_at"),
    )


def normalize_eligible_date(raw: Optional[dict]) -> Optional[EligibleDate]:
    if not raw or not isinstance(raw, dict) or not raw.get("date"):
        return None
    return EligibleDate(
        date=raw["date"],
        has_attendance_record=bool(raw.get("has_attendance_record")),
        eligibility_reason=raw.get("eligibility_reason"),
        attendance_id=_str_or_none(raw.get("attendance_id")),
        check_in_time=raw.get("check_in_time"),
        check_out_time=raw.get("check_out_time"),
    )


def error_message(exc: Exception, default: str) -> str:
    """レスポンスボディの error → message → 例外文字列の順でメッセージを取り出す"""
    response = getattr(exc, "response", None)
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("error") or body.get("message")
            if message:
                return str(message)
    return str(exc) or default


class AttendanceApiClient(AttendanceApiInterface):
    """requests で外部勤怠REST APIを呼び出すクライアント"""

    def __init__(self, base_url: str, token: str = "", config: dict = None):
        api_config = (config or {}).get("api", {})
        self._base_url = base_url.rstrip("/")
        self._timeout = api_config.get("timeout_seconds", 30)
        self._source = api_config.get("source", "web")
        self._session = requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self._base_url}{path}"
        logger.debug("%s %s %s", method, url, kwargs.get("params") or kwargs.get("json"))
        try:
            response = self._session.request(
                method, url, timeout=self._timeout, **kwargs
            )
            response.raise_for_status()
        except requests.RequestException as e:
            status = getattr(e.response, "status_code", None)
            raise ApiError(error_message(e, f"{method} {path} failed"), status) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"Invalid JSON from {path}", response.status_code) from e

    async def _call(self, method: str, path: str, **kwargs) -> Any:
        """ブロッキングなHTTP呼び出しをイベントループ外で実行"""
        return await asyncio.to_thread(self._request, method, path, **kwargs)

    async def get_attendance(
        self, employee_id: str, work_date: str
    ) -> Optional[AttendanceRecord]:
        data = await self._call(
            "GET",
            "/attendance",
            params={"work_date": work_date, "employee_id": employee_id},
        )
        records = _unwrap_list(data)
        return normalize_record(records[0]) if records else None

    async def list_attendance(
        self, employee_id: str, start_date: str, end_date: str
    ) -> list[AttendanceRecord]:
        data = await self._call(
            "GET",
            "/attendance",
            params={
                "employee_id": employee_id,
                "start_date": start_date,
                "end_date": end_date,
            },
        )
        records = [normalize_record(raw) for raw in _unwrap_list(data)]
        return [r for r in records if r is not None]

    async def clock_in(self, employee_id: str, work_date: str, clock_in: str) -> None:
        await self._call(
            "POST",
            "/attendance/clockin",
            json={
                "employee_id": employee_id,
                "work_date": work_date,
                "clock_in": clock_in,
                "source": self._source,
            },
        )

    async def clock_out(self, employee_id: str, work_date: str, clock_out: str) -> None:
        await self._call(
            "POST",
            "/attendance/clockout",
            json={
                "employee_id": employee_id,
                "work_date": work_date,
                "clock_out": clock_out,
                "source": self._source,
            },
        )

    async def update_attendance(
        self, attendance_id: str, clock_in: str, clock_out: str, status: str
    ) -> None:
        await self._call(
            "PATCH",
            f"/attendance/{attendance_id}",
            json={"clock_in": clock_in, "clock_out": clock_out, "status": status},
        )

    async def regularize(
        self, attendance_id: str, requested_by: str, comment: str
    ) -> None:
        await self._call(
            "POST",
            f"/attendance/{attendance_id}/regularize",
            json={
                "requested_by": requested_by,
                "kind": "regularization",
                "comment": comment,
            },
        )

    async def get_monthly_stats(self, employee_id: str, month: str) -> MonthlyStats:
        data = await self._call(
            "GET",
            "/reports/attendance/monthly",
            params={"month": month, "employeeId": employee_id},
        )
        return normalize_monthly_stats(data if isinstance(data, dict) else None)

    async def list_correction_requests(
        self, employee_id: str
    ) -> list[CorrectionRequest]:
        data = await self._call("GET", f"/employees/{employee_id}/attendance/corrections")
        raw_requests = data.get("requests") if isinstance(data, dict) else None
        corrections = [normalize_correction_request(raw) for raw in raw_requests or []]
        return sorted(
            (r for r in corrections if r is not None),
            key=lambda r: r.applied_at or r.correction_date or "",
            reverse=True,
        )

    async def list_eligible_dates(self, employee_id: str) -> list[EligibleDate]:
        data = await self._call(
            "GET", f"/employees/{employee_id}/attendance/corrections/eligible-dates"
        )
        raw_dates = data.get("eligible_dates") if isinstance(data, dict) else None
        dates = [normalize_eligible_date(raw) for raw in raw_dates or []]
        return [d for d in dates if d is not None]

    async def close(self) -> None:
        self._session.close()
