# accounting/history.py
from datetime import date, datetime, time
from typing import Iterator, Optional

from accounting.cycle import BillingCycle
from accounting.durations import MS_PER_MINUTE, overtime_ms, to_ms
from accounting.errors import InvalidEntryError
from accounting.models import HistoryEntry, parse_day_key


class HistoryStore:
    """日付 → 確定済み勤怠記録 の台帳"""

    def __init__(self, entries: Optional[dict[date, HistoryEntry]] = None):
        self._entries: dict[date, HistoryEntry] = dict(entries or {})

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, day: date) -> bool:
        return day in self._entries

    def __iter__(self) -> Iterator[HistoryEntry]:
        for day in sorted(self._entries):
            yield self._entries[day]

    def __eq__(self, other) -> bool:
        return isinstance(other, HistoryStore) and self._entries == other._entries

    def get(self, day: date) -> Optional[HistoryEntry]:
        return self._entries.get(day)

    def put(self, entry: HistoryEntry):
        """同じ日の記録は置き換える"""
        self._entries[entry.date] = entry

    def merge(self, entries: dict[date, HistoryEntry]):
        self._entries.update(entries)

    def remove(self, day: date) -> bool:
        return self._entries.pop(day, None) is not None

    def in_cycle(self, cycle: BillingCycle) -> list[HistoryEntry]:
        return [entry for entry in self if cycle.contains(entry.date)]

    def in_month(self, year: int, month: int) -> list[HistoryEntry]:
        return [e for e in self if e.date.year == year and e.date.month == month]

    def to_dict(self) -> dict:
        return {day.isoformat(): entry.to_dict() for day, entry in sorted(self._entries.items())}

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryStore":
        """保存形式から復元。キーは正規のISO日付に揃える"""
        entries = {}
        for key, value in data.items():
            day = parse_day_key(key)
            entries[day] = HistoryEntry.from_dict(value, day=day)
        return cls(entries)


def build_manual_entry(
    day: date,
    check_in: time,
    check_out: time,
    break_minutes: float,
    overtime_threshold_hours: float,
) -> HistoryEntry:
    """手動編集フォームの入力から記録を作る。退勤が出勤（休憩控除後）より前ならエラー"""
    check_in_at = datetime.combine(day, check_in)
    check_out_at = datetime.combine(day, check_out)
    total_break = int(round(break_minutes * MS_PER_MINUTE))
    if total_break < 0:
        raise InvalidEntryError("Break minutes cannot be negative.")

    total_worked = to_ms(check_out_at - check_in_at) - total_break
    if total_worked < 0:
        raise InvalidEntryError()

    return HistoryEntry(
        date=day,
        check_in=check_in_at,
        check_out=check_out_at,
        breaks=[],
        total_break=total_break,
        total_worked=total_worked,
        overtime=overtime_ms(total_worked, overtime_threshold_hours),
    )
