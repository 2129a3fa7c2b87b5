# accounting/leaves.py
from datetime import date

from accounting.errors import InvalidEntryError
from accounting.models import LEAVE_TYPES, LeaveEntry


def add_leave(leaves: list[LeaveEntry], day: date, leave_type: str, notes: str = "") -> list[LeaveEntry]:
    """休暇を追加した新しいリストを返す。同日の勤怠記録との整合性は見ない"""
    if day is None:
        raise InvalidEntryError("Please select a date")
    if leave_type not in LEAVE_TYPES:
        raise InvalidEntryError(f"Unknown leave type: {leave_type}")
    return [*leaves, LeaveEntry(date=day, type=leave_type, notes=notes)]


def delete_leave(leaves: list[LeaveEntry], day: date) -> list[LeaveEntry]:
    """指定日の休暇をすべて削除"""
    return [leave for leave in leaves if leave.date != day]


def leaves_in_month(leaves: list[LeaveEntry], year: int, month: int) -> list[LeaveEntry]:
    return [l for l in leaves if l.date.year == year and l.date.month == month]
