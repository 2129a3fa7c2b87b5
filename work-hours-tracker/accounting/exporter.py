# accounting/exporter.py
import csv
import io
import json
from datetime import datetime

from accounting.aggregation import month_report
from accounting.durations import format_day_label, format_duration
from accounting.history import HistoryStore
from accounting.models import LeaveEntry, Settings

CSV_HEADER = ["Date", "Check In", "Check Out", "Break Duration", "Total Worked", "Overtime"]


def export_month_csv(history: HistoryStore, year: int, month: int) -> str:
    """指定月の勤怠をCSV文字列にする（時刻・時間は表示用の書式）"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for entry in month_report(history, year, month).entries:
        writer.writerow([
            format_day_label(entry.date),
            entry.check_in.strftime("%H:%M"),
            entry.check_out.strftime("%H:%M"),
            format_duration(entry.total_break),
            format_duration(entry.total_worked),
            format_duration(entry.overtime),
        ])
    return buffer.getvalue()


def build_backup(
    history: HistoryStore,
    settings: Settings,
    leaves: list[LeaveEntry],
    now: datetime,
) -> dict:
    return {
        "history": history.to_dict(),
        "settings": settings.to_dict(),
        "leaves": [leave.to_dict() for leave in leaves],
        "exportDate": now.isoformat(),
    }


def dump_backup(backup: dict) -> str:
    return json.dumps(backup, ensure_ascii=False, indent=2)
