# accounting/reminders.py
from datetime import datetime, timedelta
from typing import Optional

from accounting.durations import MS_PER_MINUTE, hours_to_ms
from accounting.models import Settings
from accounting.session import WorkSession

DEFAULT_BREAK_ALLOWANCE_MS = 60 * MS_PER_MINUTE


def checkout_reminder_at(
    session: WorkSession,
    settings: Settings,
    now: datetime,
    break_allowance_ms: int = DEFAULT_BREAK_ALLOWANCE_MS,
) -> Optional[datetime]:
    """退勤リマインダーを鳴らす時刻（出勤 + 所定労働時間 + 休憩分）

    無効・未出勤・既に過ぎている場合はNone。
    """
    if not settings.checkout_reminder_enabled or not session.is_checked_in:
        return None
    if session.check_in_time is None:
        return None

    offset = hours_to_ms(settings.daily_hours) + break_allowance_ms
    expected = session.check_in_time + timedelta(milliseconds=offset)
    if expected <= now:
        return None
    return expected
