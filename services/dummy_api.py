from datetime import datetime
from typing import Optional

from services.api_interface import (
    ApiError,
    AttendanceApiInterface,
    AttendanceRecord,
    CorrectionRequest,
    EligibleDate,
    MonthlyStats,
)
from services.logger import get_logger

logger = get_logger("DummyApi")


class DummyAttendanceApi(AttendanceApiInterface):
    """メモリ上で勤怠レコードを保持するダミーAPI（オフライン動作確認用）"""

    def __init__(self):
        self._records: dict[tuple[str, str], AttendanceRecord] = {}
        self._next_id = 1
        self.correction_requests: list[CorrectionRequest] = []

    def _find_by_id(self, attendance_id: str) -> AttendanceRecord:
        for record in self._records.values():
            if record.id == attendance_id:
                return record
        raise ApiError(f"Attendance {attendance_id} not found", 404)

    async def get_attendance(
        self, employee_id: str, work_date: str
    ) -> Optional[AttendanceRecord]:
        return self._records.get((employee_id, work_date))

    async def list_attendance(
        self, employee_id: str, start_date: str, end_date: str
    ) -> list[AttendanceRecord]:
        return sorted(
            (
                r
                for (emp, day), r in self._records.items()
                if emp == employee_id and start_date <= day <= end_date
            ),
            key=lambda r: r.work_date,
        )

    async def clock_in(self, employee_id: str, work_date: str, clock_in: str) -> None:
        record = self._records.get((employee_id, work_date))
        if record is None:
            record = AttendanceRecord(
                id=str(self._next_id),
                employee_id=employee_id,
                work_date=work_date,
                clock_in=None,
                clock_out=None,
                status="present",
            )
            self._next_id += 1
            self._records[(employee_id, work_date)] = record
        record.clock_in = clock_in
        logger.info("[DummyApi] 出勤打刻（シミュレーション）: %s", clock_in)

    async def clock_out(self, employee_id: str, work_date: str, clock_out: str) -> None:
        record = self._records.get((employee_id, work_date))
        if record is None:
            raise ApiError("No clock-in record for this date", 400)
        record.clock_out = clock_out
        logger.info("[DummyApi] 退勤打刻（シミュレーション）: %s", clock_out)

    async def update_attendance(
        self, attendance_id: str, clock_in: str, clock_out: str, status: str
    ) -> None:
        record = self._find_by_id(attendance_id)
        record.clock_in = clock_in
        record.clock_out = clock_out
        record.status = status

    async def regularize(
        self, attendance_id: str, requested_by: str, comment: str
    ) -> None:
        record = self._find_by_id(attendance_id)
        self.correction_requests.append(
            CorrectionRequest(
                id=str(len(self.correction_requests) + 1),
                attendance_id=attendance_id,
                correction_date=record.work_date,
                requested_check_in=record.clock_in,
                requested_check_out=record.clock_out,
                status="pending",
                reason=comment,
                applied_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            )
        )
        logger.info("[DummyApi] 補正申請（シミュレーション）: %s %s", record.work_date, requested_by)

    async def get_monthly_stats(self, employee_id: str, month: str) -> MonthlyStats:
        records = [
            r
            for (emp, day), r in self._records.items()
            if emp == employee_id and day.startswith(month)
        ]
        return MonthlyStats(
            total_days=len(records),
            present_days=sum(1 for r in records if r.clock_in),
        )

    async def list_correction_requests(
        self, employee_id: str
    ) -> list[CorrectionRequest]:
        return [
            r
            for r in reversed(self.correction_requests)
            if self._find_by_id(r.attendance_id).employee_id == employee_id
        ]

    async def list_eligible_dates(self, employee_id: str) -> list[EligibleDate]:
        """打刻が片方だけのレコードを補正対象として返す"""
        return [
            EligibleDate(
                date=r.work_date,
                has_attendance_record=True,
                eligibility_reason="Missing check-out" if r.clock_in else "Missing check-in",
                attendance_id=r.id,
                check_in_time=r.clock_in,
                check_out_time=r.clock_out,
            )
            for (emp, _), r in sorted(self._records.items())
            if emp == employee_id and not r.is_complete
        ]

    async def close(self) -> None:
        pass
