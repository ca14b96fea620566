"""勤怠補正エージェント - エントリーポイント"""
import argparse
import asyncio
import os
import signal
import sys
import time

from services.api_interface import ApiError
from services.config_loader import apply_env_overrides, load_config
from services.logger import configure_logging, get_logger
from services.slack_client import create_notifier
from attendance.dashboard import AttendanceDashboard
from attendance.form import CorrectionFormState
from attendance.orchestrator import SubmissionOrchestrator
from schedulers.scheduler import RefreshScheduler

logger = get_logger("Main")


def create_services(config: dict):
    """設定に基づいてサービスインスタンスを生成"""
    notifier = create_notifier(config, token=os.getenv("SLACK_BOT_TOKEN", ""))

    api_config = config["api"]
    if api_config.get("client", "http") == "dummy":
        from services.dummy_api import DummyAttendanceApi
        api = DummyAttendanceApi()
    else:
        from services.attendance_api import AttendanceApiClient
        api = AttendanceApiClient(
            base_url=api_config["base_url"],
            token=os.getenv("ATTENDANCE_API_TOKEN", ""),
            config=config,
        )

    employee_id = str(config["employee"]["id"])
    dashboard = AttendanceDashboard(api, employee_id, notifier=notifier)
    return api, notifier, dashboard


def _parse_entry(raw: str) -> tuple[str, str, str, str]:
    """YYYY-MM-DD=HH:MM,HH:MM[,コメント] を分解"""
    day, _, values = raw.partition("=")
    parts = values.split(",", 2)
    if not day or len(parts) < 2:
        raise argparse.ArgumentTypeError(f"invalid --entry: {raw}")
    comment = parts[2] if len(parts) > 2 else ""
    return day.strip(), parts[0].strip(), parts[1].strip(), comment


def build_form(args) -> CorrectionFormState:
    """コマンドライン引数から補正フォームを組み立てる"""
    form = CorrectionFormState()
    entries = [_parse_entry(raw) for raw in args.entry]
    form.set_dates(list(args.date) + [e[0] for e in entries])

    form.set_broadcast_field("clock_in", args.clock_in or "")
    form.set_broadcast_field("clock_out", args.clock_out or "")
    form.set_broadcast_field("comment", args.comment or "")
    form.apply_broadcast_to_all()

    for day, clock_in, clock_out, comment in entries:
        form.set_entry_field(day, "clock_in", clock_in)
        form.set_entry_field(day, "clock_out", clock_out)
        if comment:
            form.set_entry_field(day, "comment", comment)
    return form


async def run_available(dashboard: AttendanceDashboard) -> int:
    dates = await dashboard.fetch_available_dates()
    print(f"補正可能な日付: {len(dates)}件")
    for day in dates:
        print(f"  {day.isoformat()} ({day.strftime('%a')})")
    return 0


async def run_submit(api, notifier, dashboard, args) -> int:
    form = build_form(args)
    orchestrator = SubmissionOrchestrator(
        api, dashboard.employee_id, form, notifier=notifier, dashboard=dashboard
    )
    ok = await orchestrator.submit()
    if form.errors:
        for key, message in sorted(form.errors.items()):
            print(f"  {key}: {message}", file=sys.stderr)
    return 0 if ok else 1


async def run_history(dashboard: AttendanceDashboard) -> int:
    corrections = await dashboard.fetch_correction_history()
    print(f"補正申請履歴: {len(corrections)}件")
    for c in corrections:
        print(
            f"  {c.correction_date} [{c.status or '-'}] "
            f"{c.requested_check_in or '-'} - {c.requested_check_out or '-'} "
            f"{c.reason or ''}".rstrip()
        )
        if c.approver_remarks:
            print(f"    承認者コメント: {c.approver_remarks}")
    return 0


async def run_eligible(dashboard: AttendanceDashboard) -> int:
    eligible = await dashboard.fetch_eligible_dates()
    print(f"補正対象日: {len(eligible)}件")
    for d in eligible:
        status = "PRESENT" if d.has_attendance_record else "ABSENT"
        reason = d.eligibility_reason or "Eligible for correction"
        print(f"  {d.date} {status} {reason}")
    return 0


def run_watch(dashboard: AttendanceDashboard, config: dict) -> int:
    """定期的に勤怠データを再読込して表示する"""

    def report(board: AttendanceDashboard):
        today = board.today_attendance
        logger.info(
            "今日: 出勤=%s 退勤=%s / 今週 %.1fh",
            today.clock_in if today else "-",
            today.clock_out if today else "-",
            board.weekly_stats.total_hours,
        )

    dashboard.subscribe(report)
    scheduler = RefreshScheduler.from_config(dashboard, config)
    scheduler.run_once()
    scheduler.start()
    print(f"[勤怠エージェント] {scheduler.interval_minutes}分間隔で再読込します（Ctrl+Cで停止）")

    def shutdown(signum, frame):
        scheduler.stop()
        print("[勤怠エージェント] 停止しました")
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    while True:
        time.sleep(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="勤怠補正エージェント")
    parser.add_argument("--config", default="config.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("available", help="今月の補正可能な日付を表示")

    submit = sub.add_parser("submit", help="勤怠補正を申請")
    submit.add_argument("--date", action="append", default=[], help="YYYY-MM-DD（複数可）")
    submit.add_argument("--clock-in", help="全日付共通の出勤時刻 HH:MM")
    submit.add_argument("--clock-out", help="全日付共通の退勤時刻 HH:MM")
    submit.add_argument("--comment", help="補正理由")
    submit.add_argument(
        "--entry",
        action="append",
        default=[],
        help="日付ごとの指定 YYYY-MM-DD=HH:MM,HH:MM[,コメント]",
    )

    sub.add_parser("clock-in", help="現在時刻で出勤打刻")
    sub.add_parser("clock-out", help="現在時刻で退勤打刻")
    sub.add_parser("history", help="補正申請の履歴を表示")
    sub.add_parser("eligible", help="APIが示す補正対象日を表示")
    sub.add_parser("watch", help="勤怠データを定期的に再読込")
    return parser


def main(argv=None) -> int:
    """メイン起動処理"""
    args = build_parser().parse_args(argv)
    config = apply_env_overrides(load_config(args.config))
    configure_logging(config["logging"]["level"], config["logging"]["file"] or None)

    if not config["employee"]["id"]:
        print("社員IDが未設定です（employee.id / ATTENDANCE_EMPLOYEE_ID）", file=sys.stderr)
        return 2

    api, notifier, dashboard = create_services(config)

    if args.command == "watch":
        return run_watch(dashboard, config)

    async def run() -> int:
        try:
            if args.command == "available":
                return await run_available(dashboard)
            if args.command == "submit":
                return await run_submit(api, notifier, dashboard, args)
            if args.command == "history":
                return await run_history(dashboard)
            if args.command == "eligible":
                return await run_eligible(dashboard)
            if args.command == "clock-in":
                await dashboard.clock_in_now()
            elif args.command == "clock-out":
                await dashboard.clock_out_now()
            return 0
        except ApiError as e:
            logger.error("勤怠APIの呼び出しに失敗しました: %s", e.message)
            return 1
        finally:
            await api.close()

    return asyncio.run(run())


if __name__ == "__main__":
    sys.exit(main())
