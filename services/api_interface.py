from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


class ApiError(Exception):
    """勤怠APIの呼び出し失敗"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class AttendanceRecord:
    id: Optional[str]
    employee_id: Optional[str]
    work_date: Optional[str]            # YYYY-MM-DD
    clock_in: Optional[str]             # "YYYY-MM-DD HH:MM:SS"
    clock_out: Optional[str]
    status: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """出勤・退勤の両方が記録済みか"""
        return bool(self.clock_in and self.clock_out)


@dataclass
class MonthlyStats:
    on_time_percentage: float = 0
    late_percentage: float = 0
    total_break_hours: float = 0
    total_working_hours: float = 0
    total_days: int = 0
    present_days: int = 0
    absent_days: int = 0
    late_arrivals: int = 0
    early_departures: int = 0
    overtime_hours: float = 0


@dataclass
class CorrectionRequest:
    """補正申請履歴の1件"""
    id: Optional[str]
    attendance_id: Optional[str]
    correction_date: Optional[str]      # YYYY-MM-DD
    requested_check_in: Optional[str]
    requested_check_out: Optional[str]
    status: Optional[str] = None        # pending / approved / rejected
    reason: Optional[str] = None
    applied_at: Optional[str] = None
    approver_remarks: str = ""
    approved_by: Optional[str] = None
    approved_at: Optional[str] = None


@dataclass
class EligibleDate:
    date: str
    has_attendance_record: bool = False
    eligibility_reason: Optional[str] = None
    attendance_id: Optional[str] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None


class AttendanceApiInterface(ABC):
    """外部勤怠APIの抽象インターフェース"""

    @abstractmethod
    async def get_attendance(
        self, employee_id: str, work_date: str
    ) -> Optional[AttendanceRecord]:
        """指定日の勤怠レコードを取得（無ければNone）"""
        ...

    @abstractmethod
    async def list_attendance(
        self, employee_id: str, start_date: str, end_date: str
    ) -> list[AttendanceRecord]:
        """期間内の勤怠履歴"""
        ...

    @abstractmethod
    async def clock_in(
        self, employee_id: str, work_date: str, clock_in: str
    ) -> None:
        """出勤打刻"""
        ...

    @abstractmethod
    async def clock_out(
        self, employee_id: str, work_date: str, clock_out: str
    ) -> None:
        """退勤打刻"""
        ...

    @abstractmethod
    async def update_attendance(
        self, attendance_id: str, clock_in: str, clock_out: str, status: str
    ) -> None:
        """既存レコードの更新"""
        ...

    @abstractmethod
    async def regularize(
        self, attendance_id: str, requested_by: str, comment: str
    ) -> None:
        """修正理由（レギュラライズ申請）の登録"""
        ...

    @abstractmethod
    async def get_monthly_stats(self, employee_id: str, month: str) -> MonthlyStats:
        """月次集計 (month: YYYY-MM)"""
        ...

    @abstractmethod
    async def list_correction_requests(
        self, employee_id: str
    ) -> list[CorrectionRequest]:
        """補正申請履歴（新しい順）"""
        ...

    @abstractmethod
    async def list_eligible_dates(self, employee_id: str) -> list[EligibleDate]:
        """補正申請が可能な日付"""
        ...

    @abstractmethod
    async def close(self) -> None:
        """リソース解放"""
        ...
