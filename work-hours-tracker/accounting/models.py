# accounting/models.py
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from accounting.durations import clamp_day, parse_timestamp

LEAVE_TYPES = ("vacation", "sick", "personal", "holiday", "other")

# 旧形式のキー（"Mon Mar 04 2024"）
_LEGACY_DAY_KEY_FORMAT = "%a %b %d %Y"


def parse_day_key(text: str) -> date:
    """履歴キーを日付に変換する。ISO形式と旧形式のみ受け付ける"""
    text = text.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        return datetime.strptime(text, _LEGACY_DAY_KEY_FORMAT).date()


@dataclass
class Settings:
    monthly_target_hours: float = 160
    daily_hours: float = 8
    overtime_threshold_hours: float = 8
    checkout_reminder_enabled: bool = False
    overtime_alert_enabled: bool = False
    month_start_day: int = 1
    month_end_day: int = 31
    carry_forward_ms: int = 0

    def __post_init__(self):
        self.month_start_day = clamp_day(self.month_start_day)
        self.month_end_day = clamp_day(self.month_end_day)
        self.carry_forward_ms = max(0, int(self.carry_forward_ms or 0))

    def to_dict(self) -> dict:
        return {
            "monthlyTarget": self.monthly_target_hours,
            "dailyHours": self.daily_hours,
            "overtimeThreshold": self.overtime_threshold_hours,
            "checkoutReminder": self.checkout_reminder_enabled,
            "overtimeAlert": self.overtime_alert_enabled,
            "monthStartDay": self.month_start_day,
            "monthEndDay": self.month_end_day,
            "carryForwardMs": self.carry_forward_ms,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """保存値をデフォルト値の上にマージして生成"""
        merged = {**cls().to_dict(), **data}
        return cls(
            monthly_target_hours=float(merged["monthlyTarget"]),
            daily_hours=float(merged["dailyHours"]),
            overtime_threshold_hours=float(merged["overtimeThreshold"]),
            checkout_reminder_enabled=bool(merged["checkoutReminder"]),
            overtime_alert_enabled=bool(merged["overtimeAlert"]),
            month_start_day=merged["monthStartDay"],
            month_end_day=merged["monthEndDay"],
            carry_forward_ms=merged["carryForwardMs"],
        )


@dataclass
class BreakRecord:
    start: datetime
    end: datetime
    duration: int  # ms

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BreakRecord":
        return cls(
            start=parse_timestamp(data["start"]),
            end=parse_timestamp(data["end"]),
            duration=int(data["duration"]),
        )


@dataclass
class HistoryEntry:
    """確定した1日分の勤怠記録（キーは出勤日）"""

    date: date
    check_in: datetime
    check_out: datetime
    total_break: int
    total_worked: int
    overtime: int
    breaks: list[BreakRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "checkIn": self.check_in.isoformat(),
            "checkOut": self.check_out.isoformat(),
            "breaks": [b.to_dict() for b in self.breaks],
            "totalBreak": self.total_break,
            "totalWorked": self.total_worked,
            "overtime": self.overtime,
        }

    @classmethod
    def from_dict(cls, data: dict, day: Optional[date] = None) -> "HistoryEntry":
        if day is None:
            day = parse_day_key(data["date"])
        return cls(
            date=day,
            check_in=parse_timestamp(data["checkIn"]),
            check_out=parse_timestamp(data["checkOut"]),
            breaks=[BreakRecord.from_dict(b) for b in data.get("breaks") or []],
            total_break=int(data.get("totalBreak") or 0),
            total_worked=int(data["totalWorked"]),
            overtime=int(data.get("overtime") or 0),
        )


@dataclass
class LeaveEntry:
    date: date
    type: str = "vacation"
    notes: str = ""

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "type": self.type, "notes": self.notes}

    @classmethod
    def from_dict(cls, data: dict) -> "LeaveEntry":
        return cls(
            date=parse_day_key(data["date"]),
            type=data.get("type") or "other",
            notes=data.get("notes") or "",
        )
