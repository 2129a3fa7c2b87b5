"""勤怠トラッカー - エントリーポイント"""
import argparse
import asyncio
import os
import signal
import sys
import time
from datetime import date, datetime

from dotenv import load_dotenv

from accounting.durations import MS_PER_MINUTE, format_duration, format_timer, hours_to_ms, ms_to_hours
from accounting.errors import TrackerError
from accounting.models import LEAVE_TYPES, HistoryEntry
from accounting.session import SessionStatus
from graph.graph import build_graph
from schedulers.scheduler import ReminderScheduler, TickScheduler
from services.config_loader import load_config
from services.file_reader import LocalFileReader
from services.slack_client import create_notifier
from services.storage import JsonFileStore, TrackerRepository
from services.tracker_service import WorkTracker, break_minutes_of

STATUS_LABELS = {
    SessionStatus.IDLE: "Not Checked In",
    SessionStatus.WORKING: "Working",
    SessionStatus.ON_BREAK: "On Break",
}


def create_services(config: dict):
    """設定に基づいてサービスインスタンスを生成"""
    load_dotenv()

    storage_path = os.getenv("WORK_TRACKER_STORAGE", config["storage"]["path"])
    repository = TrackerRepository(JsonFileStore(storage_path))

    slack_config = config["notifications"]["slack"]
    notifier = create_notifier(
        token=os.getenv("SLACK_BOT_TOKEN", ""),
        channel=os.getenv("SLACK_NOTIFY_CHANNEL", slack_config.get("notify_channel", "")),
        enabled=slack_config["enabled"],
    )

    reminders = ReminderScheduler()
    tracker = WorkTracker(
        repository,
        notifier=notifier,
        reminders=reminders,
        file_reader=LocalFileReader(),
        break_allowance_ms=int(config["reminders"]["break_allowance_minutes"] * MS_PER_MINUTE),
    )
    return tracker, notifier, reminders


def _parse_month(value: str) -> tuple[int, int]:
    year, month = value.split("-")
    return int(year), int(month)


def _parse_clock(value: str):
    return datetime.strptime(value, "%H:%M").time()


def _print_dashboard(result: dict):
    today = result["today"]
    cycle = result["cycle"]
    analytics = result["analytics"]
    session = result["session"]

    print(f"Status:          {STATUS_LABELS[session.status]}")
    print(f"Timer:           {format_timer(today.session_ms)}")
    print(f"Today worked:    {format_duration(today.worked_ms)}")
    print(f"Today breaks:    {format_duration(today.break_ms)}")
    print(f"Remaining today: {format_duration(today.remaining_ms)}")
    print(f"Overtime:        {format_duration(today.overtime_ms)}")
    print(
        f"Cycle {cycle.cycle.start:%Y-%m-%d} - {cycle.cycle.end:%Y-%m-%d}: "
        f"{cycle.worked_hours:.1f} / {cycle.target_hours:g} hrs ({round(cycle.percentage)}%)"
    )
    print(f"Daily required:  {cycle.daily_required_hours:.1f}h over {cycle.remaining_days} days")
    print(
        f"Avg daily {analytics.avg_daily_hours:.1f}h, "
        f"avg break {round(analytics.avg_break_minutes)}m, "
        f"total overtime {analytics.total_overtime_hours:.1f}h"
    )


def cmd_status(tracker: WorkTracker, args, notifier):
    result = tracker.dashboard(build_graph(notifier=notifier))
    _print_dashboard(result)
    session = result["session"]
    for index, record in enumerate(session.breaks, start=1):
        print(f"  Break {index}: {format_duration(record.duration)}")
    if session.is_on_break:
        print("  Current Break: Ongoing...")


def cmd_check_in(tracker: WorkTracker, args, notifier):
    if tracker.check_in():
        print("[勤怠トラッカー] Checked in successfully!")
    else:
        print("[勤怠トラッカー] Already checked in")


def cmd_break_in(tracker: WorkTracker, args, notifier):
    if tracker.break_in():
        print("[勤怠トラッカー] Break started")
    else:
        print("[勤怠トラッカー] Not working, break not started")


def cmd_break_out(tracker: WorkTracker, args, notifier):
    record = tracker.break_out()
    if record is not None:
        print(f"[勤怠トラッカー] Break ended ({format_duration(record.duration)})")
    else:
        print("[勤怠トラッカー] Not on break")


def cmd_check_out(tracker: WorkTracker, args, notifier):
    tracker.check_out()


def cmd_edit(tracker: WorkTracker, args, notifier):
    day = date.fromisoformat(args.date)
    break_minutes = args.break_minutes
    if break_minutes is None:
        existing = tracker.history.get(day)
        break_minutes = break_minutes_of(existing) if existing else 60
    entry = tracker.save_entry(day, _parse_clock(args.check_in), _parse_clock(args.check_out), break_minutes)
    print(f"[勤怠トラッカー] Entry saved successfully! ({format_duration(entry.total_worked)})")


def cmd_history(tracker: WorkTracker, args, notifier):
    year, month = _parse_month(args.month)
    items = tracker.month_entries(year, month)
    if not items:
        print("No entries for this month")
        return
    for item in items:
        if isinstance(item, HistoryEntry):
            badge = " OT" if item.overtime > 0 else ""
            print(
                f"{item.date:%a, %b %d}  {item.check_in:%H:%M} - {item.check_out:%H:%M}  "
                f"{format_duration(item.total_worked)}{badge}"
            )
        else:
            notes = f" - {item.notes}" if item.notes else ""
            print(f"{item.date:%a, %b %d}  {item.type.capitalize()}{notes}")


def cmd_leave(tracker: WorkTracker, args, notifier):
    if args.leave_command == "add":
        tracker.add_leave(date.fromisoformat(args.date), args.type, args.notes)
        print("[勤怠トラッカー] Leave marked successfully!")
    elif args.leave_command == "delete":
        tracker.delete_leave(date.fromisoformat(args.date))
        print("[勤怠トラッカー] Leave deleted")
    else:
        leaves = tracker.leaves
        if not leaves:
            print("No leaves marked")
        for leave in leaves:
            notes = f" - {leave.notes}" if leave.notes else ""
            print(f"{leave.date.isoformat()}  {leave.type}{notes}")


def cmd_settings(tracker: WorkTracker, args, notifier):
    if args.settings_command == "set":
        changes = {}
        if args.monthly_target is not None:
            changes["monthly_target_hours"] = args.monthly_target
        if args.daily_hours is not None:
            changes["daily_hours"] = args.daily_hours
        if args.overtime_threshold is not None:
            changes["overtime_threshold_hours"] = args.overtime_threshold
        if args.checkout_reminder is not None:
            changes["checkout_reminder_enabled"] = args.checkout_reminder == "on"
        if args.overtime_alert is not None:
            changes["overtime_alert_enabled"] = args.overtime_alert == "on"
        if args.month_start_day is not None:
            changes["month_start_day"] = args.month_start_day
        if args.month_end_day is not None:
            changes["month_end_day"] = args.month_end_day
        if args.carry_forward_hours is not None:
            changes["carry_forward_ms"] = hours_to_ms(args.carry_forward_hours)
        tracker.update_settings(**changes)
        print("[勤怠トラッカー] Settings saved!")

    settings = tracker.settings
    for key, value in settings.to_dict().items():
        if key == "carryForwardMs":
            print(f"carryForward: {ms_to_hours(value):g}h")
        else:
            print(f"{key}: {value}")


def cmd_export(tracker: WorkTracker, args, notifier):
    if args.format == "csv":
        month = args.month or date.today().strftime("%Y-%m")
        content = tracker.export_csv(*_parse_month(month))
        filename = args.output or f"work-hours-{month}.csv"
    else:
        content = tracker.export_backup()
        filename = args.output or "work-hours-backup.json"
    with open(filename, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    print(f"[勤怠トラッカー] {filename} に書き出しました")


def cmd_import(tracker: WorkTracker, args, notifier):
    summary = asyncio.run(tracker.import_file(args.path))
    print(f"[勤怠トラッカー] Imported {summary.accepted} entries ({summary.kind})")
    if summary.warnings:
        print(f"[勤怠トラッカー] {len(summary.warnings)} rows skipped", file=sys.stderr)


def cmd_clear(tracker: WorkTracker, args, notifier):
    if not args.yes:
        answer = input("Are you sure you want to clear all data? This cannot be undone! [y/N] ")
        if answer.strip().lower() != "y":
            return
    tracker.clear_all()
    print("[勤怠トラッカー] All data cleared")


def cmd_watch(tracker: WorkTracker, args, notifier, reminders, config):
    """1秒ごとにダッシュボードを更新し、リマインダーを鳴らす"""
    graph = build_graph(notifier=notifier)
    # 別プロセスからの打刻・設定変更を検知してリマインダーを張り直す
    last_seen = {"key": None}

    def tick_job():
        try:
            result = tracker.dashboard(graph)
            session = result["session"]
            key = (session.check_in_time, tuple(result["settings"].to_dict().items()))
            if key != last_seen["key"]:
                last_seen["key"] = key
                tracker.reschedule_reminders(session=session, settings=result["settings"])
            today = result["today"]
            print(
                f"\r{STATUS_LABELS[result['session'].status]:<15} {format_timer(today.session_ms)}  "
                f"today {format_duration(today.worked_ms)}  "
                f"cycle {round(result['cycle'].percentage)}%",
                end="",
                flush=True,
            )
        except Exception as e:
            print(f"\n[勤怠トラッカー] 更新中にエラー: {e}")
            notifier.send_error(str(e))

    ticker = TickScheduler(interval_seconds=config["scheduler"]["tick_seconds"], job_func=tick_job)
    reminders.start()
    ticker.start()
    print("[勤怠トラッカー] Ctrl+Cで停止します")

    # シグナルハンドリング
    def shutdown(signum, frame):
        print("\n[勤怠トラッカー] 停止中...")
        ticker.stop()
        reminders.stop()
        print("[勤怠トラッカー] 停止しました")
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        shutdown(None, None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="work-hours", description="Personal work-hours tracker")
    parser.add_argument("--config", default="config.yaml", help="YAML config path")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show today's stats and cycle progress")
    sub.add_parser("check-in")
    sub.add_parser("break-in")
    sub.add_parser("break-out")
    sub.add_parser("check-out")
    sub.add_parser("watch", help="Live timer with reminders")

    p = sub.add_parser("edit", help="Add or replace a day's entry")
    p.add_argument("date", help="YYYY-MM-DD")
    p.add_argument("check_in", help="HH:MM")
    p.add_argument("check_out", help="HH:MM")
    p.add_argument("--break-minutes", type=float, default=None)

    p = sub.add_parser("history", help="List entries and leaves for a month")
    p.add_argument("--month", default=date.today().strftime("%Y-%m"), help="YYYY-MM")

    p = sub.add_parser("leave")
    leave_sub = p.add_subparsers(dest="leave_command", required=True)
    lp = leave_sub.add_parser("add")
    lp.add_argument("date", help="YYYY-MM-DD")
    lp.add_argument("--type", choices=LEAVE_TYPES, default="vacation")
    lp.add_argument("--notes", default="")
    lp = leave_sub.add_parser("delete")
    lp.add_argument("date", help="YYYY-MM-DD")
    leave_sub.add_parser("list")

    p = sub.add_parser("settings")
    settings_sub = p.add_subparsers(dest="settings_command", required=True)
    settings_sub.add_parser("show")
    sp = settings_sub.add_parser("set")
    sp.add_argument("--monthly-target", type=float)
    sp.add_argument("--daily-hours", type=float)
    sp.add_argument("--overtime-threshold", type=float)
    sp.add_argument("--checkout-reminder", choices=["on", "off"])
    sp.add_argument("--overtime-alert", choices=["on", "off"])
    sp.add_argument("--month-start-day", type=int)
    sp.add_argument("--month-end-day", type=int)
    sp.add_argument("--carry-forward-hours", type=float)

    p = sub.add_parser("export")
    p.add_argument("format", choices=["csv", "json"])
    p.add_argument("--month", help="YYYY-MM (csv only)")
    p.add_argument("--output", "-o")

    p = sub.add_parser("import", help="Import a JSON backup or CSV file")
    p.add_argument("path")

    p = sub.add_parser("clear", help="Clear all data")
    p.add_argument("--yes", action="store_true")

    return parser


COMMANDS = {
    "status": cmd_status,
    "check-in": cmd_check_in,
    "break-in": cmd_break_in,
    "break-out": cmd_break_out,
    "check-out": cmd_check_out,
    "edit": cmd_edit,
    "history": cmd_history,
    "leave": cmd_leave,
    "settings": cmd_settings,
    "export": cmd_export,
    "import": cmd_import,
    "clear": cmd_clear,
}


def main(argv=None):
    """メイン起動処理"""
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    tracker, notifier, reminders = create_services(config)

    try:
        if args.command == "watch":
            cmd_watch(tracker, args, notifier, reminders, config)
        else:
            COMMANDS[args.command](tracker, args, notifier)
    except TrackerError as e:
        print(f"[勤怠トラッカー] {e}", file=sys.stderr)
        return 1
    except (ValueError, OSError) as e:
        print(f"[勤怠トラッカー] 入力エラー: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
