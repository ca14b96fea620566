# attendance/orchestrator.py
from dataclasses import dataclass, field
from typing import Optional

from attendance.form import CorrectionFormState
from attendance.graph import build_submission_graph
from attendance.state import initial_state
from attendance.validator import date_key
from services.api_interface import AttendanceApiInterface
from services.logger import get_logger

logger = get_logger("Orchestrator")

INVALID_FORM = "Please fill in all required fields correctly"


@dataclass
class DateOutcome:
    work_date: str
    success: bool
    error: Optional[str] = None
    warnings: list[str] = field(default_factory=list)
    action: Optional[str] = None        # "created" / "updated" / "error"
    attendance_id: Optional[str] = None


@dataclass
class SubmissionReport:
    outcomes: list[DateOutcome]
    level: str                          # "success" / "partial" / "failure"
    message: str

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


def classify_outcomes(outcomes: list[DateOutcome]) -> SubmissionReport:
    """日付ごとの結果を 全成功 / 一部成功 / 全失敗 のいずれかに分類する"""
    succeeded = sum(1 for o in outcomes if o.success)
    failed = len(outcomes) - succeeded

    if succeeded > 0 and failed == 0:
        level = "success"
        message = f"Successfully submitted corrections for {_plural(succeeded, 'date')}!"
    elif succeeded > 0:
        level = "partial"
        message = (
            f"Submitted {_plural(succeeded, 'correction')} successfully, "
            f"but {failed} failed."
        )
    else:
        first_error = next((o.error for o in outcomes if o.error), None)
        level = "failure"
        message = f"Failed to submit corrections. {first_error or 'Unknown error'}"

    return SubmissionReport(outcomes=outcomes, level=level, message=message)


class SubmissionOrchestrator:
    """補正フォームを外部勤怠APIへ日付ごとに順番に反映する"""

    def __init__(
        self,
        api: AttendanceApiInterface,
        employee_id: str,
        form: CorrectionFormState,
        notifier=None,
        dashboard=None,
    ):
        self._api = api
        self._employee_id = employee_id
        self._form = form
        self._notifier = notifier
        self._dashboard = dashboard
        self.submitting = False
        self.last_report: Optional[SubmissionReport] = None

    async def submit(self) -> bool:
        """検証→日付ごとの反映→結果通知→フォームリセット→再読込

        例外は外に出さず、1日でも成功すればTrueを返す。
        """
        if self.submitting:
            logger.warning("補正申請は既に実行中です")
            return False

        if not self._form.validate():
            self._notify("error", INVALID_FORM)
            return False

        self.submitting = True
        try:
            outcomes = []
            graph = build_submission_graph(api=self._api, broadcast=self._form.broadcast)
            for day in list(self._form.dates):
                outcomes.append(await self._submit_date(graph, day))

            report = classify_outcomes(outcomes)
            self.last_report = report
            self._notify(report.level, report.message)

            self._form.reset()
            if self._dashboard is not None:
                await self._dashboard.refresh_after_submit()

            return report.succeeded > 0
        finally:
            self.submitting = False

    async def _submit_date(self, graph, day) -> DateOutcome:
        work_date = date_key(day)
        entry = self._form.entry_for(day)
        state = initial_state(
            employee_id=self._employee_id,
            work_date=work_date,
            clock_in=entry.clock_in,
            clock_out=entry.clock_out,
            comment=entry.comment,
        )
        logger.info("%s の補正を開始します", work_date)

        try:
            result = await graph.ainvoke(state)
        except Exception as e:
            logger.exception("%s の補正中に予期しないエラー", work_date)
            return DateOutcome(
                work_date=work_date,
                success=False,
                error=str(e) or "Failed to submit correction",
                action="error",
            )

        if result["action_taken"] == "error":
            logger.error("%s の補正に失敗: %s", work_date, result["error_message"])
            return DateOutcome(
                work_date=work_date,
                success=False,
                error=result["error_message"] or "Failed to submit correction",
                warnings=result["warnings"],
                action="error",
            )

        return DateOutcome(
            work_date=work_date,
            success=True,
            warnings=result["warnings"],
            action=result["action_taken"],
            attendance_id=result["attendance_id"],
        )

    def _notify(self, level: str, message: str) -> None:
        if self._notifier is None:
            return
        if level == "success":
            self._notifier.send(message)
        elif level == "partial":
            self._notifier.send_warning(message)
        else:
            self._notifier.send_error(message)
