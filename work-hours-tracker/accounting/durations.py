# accounting/durations.py
"""ミリ秒単位の時間と日付境界を扱うユーティリティ"""
import calendar
import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE

END_OF_DAY_TIME = time(23, 59, 59, 999000)

_DURATION_TEXT = re.compile(r"^\s*(?:(\d+)\s*h)?\s*(?:(\d+)\s*m)?\s*$", re.IGNORECASE)


def to_ms(delta: timedelta) -> int:
    """timedeltaをミリ秒（切り捨て）に変換"""
    return delta // timedelta(milliseconds=1)


def hours_to_ms(hours: float) -> int:
    return int(round(hours * MS_PER_HOUR))


def ms_to_hours(ms: float) -> float:
    return ms / MS_PER_HOUR


def overtime_ms(worked_ms: int, threshold_hours: float) -> int:
    """閾値を超えた分の残業時間。超えていなければ0"""
    return max(0, worked_ms - hours_to_ms(threshold_hours))


def format_duration(ms: float) -> str:
    """「8h 30m」形式の表示。秒以下は切り捨て"""
    ms = max(0, int(ms))
    hours = ms // MS_PER_HOUR
    minutes = (ms % MS_PER_HOUR) // MS_PER_MINUTE
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_timer(ms: float) -> str:
    """ライブタイマー用の HH:MM:SS 形式"""
    ms = max(0, int(ms))
    hours = ms // MS_PER_HOUR
    minutes = (ms % MS_PER_HOUR) // MS_PER_MINUTE
    seconds = (ms % MS_PER_MINUTE) // MS_PER_SECOND
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def parse_duration_text(text: str) -> Optional[int]:
    """format_durationの出力（"1h 5m" / "45m"）をミリ秒に戻す。解釈できなければNone"""
    match = _DURATION_TEXT.match(text or "")
    if not match or not any(match.groups()):
        return None
    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    return hours * MS_PER_HOUR + minutes * MS_PER_MINUTE


def clamp_day(value) -> int:
    """月内の日付設定値を1〜31に丸める。数値でなければ1"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 1
    if number != number:  # NaN
        return 1
    return min(31, max(1, int(round(number))))


def start_of_day(day: Union[date, datetime]) -> datetime:
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, time.min)


def end_of_day(day: Union[date, datetime]) -> datetime:
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, END_OF_DAY_TIME)


def safe_date_for_day(year: int, month: int, day: int) -> date:
    """月末を超える日を月末日に丸めた日付を返す

    monthは1始まり。0や13のような範囲外の値は前年・翌年に繰り越す。
    """
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(max(1, day), last_day))


def parse_timestamp(value: str) -> datetime:
    """ISO形式のタイムスタンプをローカル時刻（naive）で返す"""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def format_day_label(day: date) -> str:
    """表示用の日付ラベル（例: "Mon, Mar 4"）"""
    return f"{day:%a}, {day:%b} {day.day}"
