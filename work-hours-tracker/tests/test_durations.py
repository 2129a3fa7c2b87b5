from datetime import date, datetime, timedelta

from accounting.durations import (
    clamp_day,
    end_of_day,
    format_day_label,
    format_duration,
    format_timer,
    hours_to_ms,
    overtime_ms,
    parse_duration_text,
    parse_timestamp,
    safe_date_for_day,
    start_of_day,
    to_ms,
)


def test_format_duration_zero():
    """0msは"0m"になること"""
    assert format_duration(0) == "0m"


def test_format_duration_hours_and_minutes():
    """1時間1分の表示"""
    assert format_duration(3660000) == "1h 1m"


def test_format_duration_floors_seconds():
    """秒以下は切り捨てられること"""
    assert format_duration(59999) == "0m"
    assert format_duration(hours_to_ms(8.5) + 59000) == "8h 30m"


def test_format_timer():
    """HH:MM:SS形式でゼロ埋めされること"""
    assert format_timer(3723000) == "01:02:03"


def test_format_timer_never_negative():
    """負の値は0に丸められること"""
    assert format_timer(-5000) == "00:00:00"


def test_clamp_day():
    """1〜31に丸められ、数値でなければ1になること"""
    assert clamp_day(0) == 1
    assert clamp_day(45) == 31
    assert clamp_day(14.6) == 15
    assert clamp_day("26") == 26
    assert clamp_day("abc") == 1
    assert clamp_day(None) == 1


def test_day_boundaries():
    """日の始まりと終わり（ミリ秒精度）"""
    moment = datetime(2024, 3, 10, 15, 30)
    assert start_of_day(moment) == datetime(2024, 3, 10, 0, 0, 0)
    assert end_of_day(moment) == datetime(2024, 3, 10, 23, 59, 59, 999000)
    assert end_of_day(date(2024, 3, 10)) == datetime(2024, 3, 10, 23, 59, 59, 999000)


def test_safe_date_for_day_clamps_to_month_end():
    """短い月では月末日に丸められること"""
    assert safe_date_for_day(2024, 2, 31) == date(2024, 2, 29)
    assert safe_date_for_day(2023, 2, 31) == date(2023, 2, 28)
    assert safe_date_for_day(2024, 4, 31) == date(2024, 4, 30)


def test_safe_date_for_day_rolls_year():
    """月の範囲外は前年・翌年に繰り越されること"""
    assert safe_date_for_day(2024, 13, 5) == date(2025, 1, 5)
    assert safe_date_for_day(2024, 0, 31) == date(2023, 12, 31)


def test_overtime_ms():
    """閾値を超えた分だけが残業になること"""
    assert overtime_ms(hours_to_ms(8.5), 8) == hours_to_ms(0.5)
    assert overtime_ms(hours_to_ms(7), 8) == 0


def test_to_ms():
    assert to_ms(timedelta(hours=1, microseconds=1500)) == 3600001


def test_parse_duration_text():
    """format_durationの出力をミリ秒に戻せること"""
    assert parse_duration_text("8h 30m") == hours_to_ms(8.5)
    assert parse_duration_text("45m") == 45 * 60000
    assert parse_duration_text("2h") == hours_to_ms(2)
    assert parse_duration_text("") is None
    assert parse_duration_text("abc") is None


def test_parse_timestamp_naive():
    assert parse_timestamp("2024-03-01T09:00:00") == datetime(2024, 3, 1, 9, 0)


def test_parse_timestamp_utc_becomes_local_naive():
    """UTC指定のタイムスタンプはローカル時刻のnaive datetimeになること"""
    parsed = parse_timestamp("2024-03-01T09:00:00.000Z")
    assert parsed.tzinfo is None


def test_format_day_label():
    assert format_day_label(date(2024, 3, 1)) == "Fri, Mar 1"
