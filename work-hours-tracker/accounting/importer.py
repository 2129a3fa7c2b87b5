# accounting/importer.py
"""外部のCSV/JSONを履歴エントリに変換する

どちらの形式も、ストアに書き込む前に全体の解析を終える。
"""
import csv
import io
import json
import math
import re
import sys
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Optional

from accounting.durations import MS_PER_MINUTE, hours_to_ms, overtime_ms, parse_duration_text, to_ms
from accounting.errors import ImportRejectedError
from accounting.history import HistoryStore
from accounting.models import HistoryEntry, LeaveEntry, Settings

REQUIRED_COLUMNS = ("date", "checkin", "checkout")

DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%a %b %d %Y",
    "%a, %b %d %Y",
    "%b %d %Y",
    "%b %d, %Y",
    "%d %b %Y",
)

TIME_FORMATS = ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M:%S %p", "%I:%M%p")


@dataclass
class BackupPayload:
    """JSONバックアップの解析結果。存在しないキーはNone"""

    history: Optional[HistoryStore] = None
    settings: Optional[Settings] = None
    leaves: Optional[list[LeaveEntry]] = None


@dataclass
class CsvImportResult:
    entries: dict[date, HistoryEntry] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def accepted(self) -> int:
        return len(self.entries)


def _warn(message: str):
    print(f"[CSVインポート] {message}", file=sys.stderr)


def parse_backup(text: str) -> BackupPayload:
    """バックアップJSONを解析する。1つでも壊れていれば全体を拒否"""
    try:
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("backup must be an object")
        payload = BackupPayload()
        # 空の {} や [] も「存在する」扱いで、そのストアを空に置き換える
        if data.get("history") is not None:
            payload.history = HistoryStore.from_dict(data["history"])
        if data.get("settings") is not None:
            payload.settings = Settings.from_dict(data["settings"])
        if data.get("leaves") is not None:
            payload.leaves = [LeaveEntry.from_dict(item) for item in data["leaves"]]
    except (ValueError, OverflowError, KeyError, TypeError, AttributeError) as e:
        raise ImportRejectedError(f"Invalid file format ({e})") from e
    return payload


def _normalize_header(name: str) -> str:
    return re.sub(r"[^a-z]", "", name.lower())


def parse_date(raw: str, today: date) -> Optional[date]:
    """厳密な書式で解析し、だめなら今年の年を付けてもう一度だけ試す"""
    raw = raw.strip()
    if not raw:
        return None
    for candidate in (raw, f"{raw} {today.year}"):
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue
    return None


def parse_time(raw: str) -> Optional[time]:
    raw = raw.strip().upper()
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(raw, fmt).time()
        except ValueError:
            continue
    return None


def _number(raw: str) -> Optional[float]:
    """数値として読めなければNone。inf・nanは不正な値として行ごと拒否する"""
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value):
        raise ValueError(f"not a finite number {raw!r}")
    return value


def _hours_or_duration(raw: str) -> Optional[int]:
    """数値なら時間として、"8h 30m" 形式ならそのままミリ秒に"""
    raw = raw.strip()
    if not raw:
        return None
    hours = _number(raw)
    if hours is None:
        return parse_duration_text(raw)
    return hours_to_ms(hours)


def _minutes(raw: str) -> Optional[int]:
    raw = raw.strip()
    if not raw:
        return None
    minutes = _number(raw)
    if minutes is None:
        return None
    return int(round(minutes * MS_PER_MINUTE))


class _Row:
    def __init__(self, columns: dict[str, int], values: list[str]):
        self._columns = columns
        self._values = values

    def get(self, name: str) -> str:
        index = self._columns.get(name)
        if index is None or index >= len(self._values):
            return ""
        return self._values[index]


def _break_ms(row: _Row) -> int:
    minutes = _minutes(row.get("breakminutes"))
    if minutes is not None:
        return minutes
    hours = _number(row.get("breakhours").strip())
    if hours is not None:
        return int(round(hours * 60 * MS_PER_MINUTE))
    duration = row.get("breakduration").strip()
    if duration:
        parsed = parse_duration_text(duration)
        if parsed is None:
            parsed = _minutes(duration)
        if parsed is not None:
            return parsed
    return 0


def _parse_row(row: _Row, threshold_hours: float, today: date) -> HistoryEntry:
    day = parse_date(row.get("date"), today)
    if day is None:
        raise ValueError(f"unparseable date {row.get('date')!r}")

    check_in_time = parse_time(row.get("checkin"))
    check_out_time = parse_time(row.get("checkout"))
    if check_in_time is None or check_out_time is None:
        raise ValueError(f"unparseable time {row.get('checkin')!r} / {row.get('checkout')!r}")

    check_in = datetime.combine(day, check_in_time)
    check_out = datetime.combine(day, check_out_time)
    if check_out < check_in:
        # 夜勤: 退勤は翌日
        check_out += timedelta(days=1)

    total_break = _break_ms(row)
    if total_break < 0:
        raise ValueError("negative break")

    total_worked = _hours_or_duration(row.get("totalworked"))
    if total_worked is None:
        total_worked = max(0, to_ms(check_out - check_in) - total_break)
    elif total_worked < 0:
        raise ValueError("negative total worked")

    overtime = _hours_or_duration(row.get("overtime"))
    if overtime is None:
        overtime = overtime_ms(total_worked, threshold_hours)
    elif overtime < 0:
        raise ValueError("negative overtime")

    return HistoryEntry(
        date=day,
        check_in=check_in,
        check_out=check_out,
        breaks=[],
        total_break=total_break,
        total_worked=total_worked,
        overtime=overtime,
    )


def parse_csv(text: str, overtime_threshold_hours: float, today: date) -> CsvImportResult:
    """CSVを解析する。不正な行は警告付きでスキップし、有効な行が0件なら拒否"""
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    header = next(reader, None)
    if not header:
        raise ImportRejectedError("CSV file is empty")

    columns: dict[str, int] = {}
    for index, name in enumerate(header):
        columns.setdefault(_normalize_header(name), index)

    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise ImportRejectedError(f"Missing required columns: {', '.join(missing)}")

    result = CsvImportResult()
    for values in reader:
        if not any(value.strip() for value in values):
            continue
        try:
            entry = _parse_row(_Row(columns, values), overtime_threshold_hours, today)
        except (ValueError, OverflowError) as e:
            message = f"line {reader.line_num}: skipped ({e})"
            _warn(message)
            result.warnings.append(message)
            continue
        result.entries[entry.date] = entry

    if not result.entries:
        raise ImportRejectedError("No valid rows found in CSV")
    return result
