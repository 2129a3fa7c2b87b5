# accounting/session.py
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional

from accounting.durations import overtime_ms, parse_timestamp, to_ms
from accounting.errors import SessionStateError
from accounting.models import BreakRecord, HistoryEntry, parse_day_key


class SessionStatus(Enum):
    IDLE = "idle"
    WORKING = "working"
    ON_BREAK = "on_break"


@dataclass
class WorkSession:
    """進行中の出勤〜休憩〜退勤のセッション"""

    current_date: date
    is_checked_in: bool = False
    is_on_break: bool = False
    check_in_time: Optional[datetime] = None
    break_start_time: Optional[datetime] = None
    total_break_time: int = 0  # 完了した休憩のみ（ms）
    breaks: list[BreakRecord] = field(default_factory=list)
    overtime_alerted: bool = False

    @property
    def status(self) -> SessionStatus:
        if not self.is_checked_in:
            return SessionStatus.IDLE
        if self.is_on_break:
            return SessionStatus.ON_BREAK
        return SessionStatus.WORKING

    def check_in(self, now: datetime) -> bool:
        """出勤。出勤中なら何もしない（既存の休憩記録を失わないため）"""
        if self.is_checked_in:
            return False
        self.is_checked_in = True
        self.is_on_break = False
        self.check_in_time = now
        self.break_start_time = None
        self.total_break_time = 0
        self.breaks = []
        self.overtime_alerted = False
        self.current_date = now.date()
        return True

    def break_in(self, now: datetime) -> bool:
        if not self.is_checked_in or self.is_on_break:
            return False
        self.is_on_break = True
        self.break_start_time = now
        return True

    def break_out(self, now: datetime) -> Optional[BreakRecord]:
        """休憩終了。完了した休憩を返す。休憩中でなければNone"""
        if not self.is_on_break or self.break_start_time is None:
            return None
        record = BreakRecord(
            start=self.break_start_time,
            end=now,
            duration=to_ms(now - self.break_start_time),
        )
        self.breaks.append(record)
        self.total_break_time += record.duration
        self.is_on_break = False
        self.break_start_time = None
        return record

    def check_out(self, now: datetime, overtime_threshold_hours: float) -> HistoryEntry:
        """退勤。出勤日をキーにした履歴エントリを返し、セッションをリセットする"""
        if not self.is_checked_in or self.check_in_time is None:
            raise SessionStateError()

        if self.is_on_break:
            self.break_out(now)

        worked = max(0, to_ms(now - self.check_in_time) - self.total_break_time)
        entry = HistoryEntry(
            date=self.check_in_time.date(),
            check_in=self.check_in_time,
            check_out=now,
            breaks=list(self.breaks),
            total_break=self.total_break_time,
            total_worked=worked,
            overtime=overtime_ms(worked, overtime_threshold_hours),
        )
        self._reset(now.date())
        return entry

    def current_break_ms(self, now: datetime) -> int:
        if not self.is_on_break or self.break_start_time is None:
            return 0
        return max(0, to_ms(now - self.break_start_time))

    def break_total_ms(self, now: datetime) -> int:
        """完了した休憩と進行中の休憩の合計"""
        return self.total_break_time + self.current_break_ms(now)

    def elapsed_ms(self, now: datetime) -> int:
        """休憩を除いた現在のセッションの作業時間"""
        if not self.is_checked_in or self.check_in_time is None:
            return 0
        elapsed = to_ms(now - self.check_in_time) - self.break_total_ms(now)
        return max(0, elapsed)

    def _reset(self, today: date):
        self.current_date = today
        self.is_checked_in = False
        self.is_on_break = False
        self.check_in_time = None
        self.break_start_time = None
        self.total_break_time = 0
        self.breaks = []
        self.overtime_alerted = False

    def to_dict(self) -> dict:
        return {
            "isCheckedIn": self.is_checked_in,
            "isOnBreak": self.is_on_break,
            "checkInTime": self.check_in_time.isoformat() if self.check_in_time else None,
            "breakStartTime": self.break_start_time.isoformat() if self.break_start_time else None,
            "totalBreakTime": self.total_break_time,
            "breaks": [b.to_dict() for b in self.breaks],
            "overtimeAlerted": self.overtime_alerted,
            "currentDate": self.current_date.isoformat(),
        }

    @classmethod
    def restore(cls, data: dict, today: date) -> "WorkSession":
        """保存されたセッションを復元する

        保存日が今日でなければ、出勤中であっても破棄して新しいセッションを返す。
        日付をまたいだセッションは出勤記録ごと失われる（現行仕様）。
        """
        session = cls.from_dict(data)
        if session.current_date != today:
            return cls(current_date=today)
        return session

    @classmethod
    def from_dict(cls, data: dict) -> "WorkSession":
        """保存値をそのまま復元する（日付跨ぎの判定はしない）"""
        current_date = parse_day_key(data["currentDate"])
        check_in_time = data.get("checkInTime")
        break_start_time = data.get("breakStartTime")
        session = cls(
            current_date=current_date,
            is_checked_in=bool(data.get("isCheckedIn")),
            is_on_break=bool(data.get("isOnBreak")),
            check_in_time=parse_timestamp(check_in_time) if check_in_time else None,
            break_start_time=parse_timestamp(break_start_time) if break_start_time else None,
            total_break_time=int(data.get("totalBreakTime") or 0),
            breaks=[BreakRecord.from_dict(b) for b in data.get("breaks") or []],
            overtime_alerted=bool(data.get("overtimeAlerted")),
        )
        if session.check_in_time is None:
            session.is_checked_in = False
        if not session.is_checked_in or session.break_start_time is None:
            session.is_on_break = False
        return session
