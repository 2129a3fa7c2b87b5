from datetime import date, datetime, timedelta

import pytest

from accounting.durations import hours_to_ms
from accounting.errors import SessionStateError
from accounting.session import SessionStatus, WorkSession


def _at(hour, minute=0, day=1):
    return datetime(2024, 3, day, hour, minute, 0)


def _session():
    return WorkSession(current_date=date(2024, 3, 1))


def test_full_day_scenario():
    """9:00出勤、12:00〜12:30休憩、17:30退勤 → 8時間勤務・残業なし"""
    session = _session()
    session.check_in(_at(9))
    session.break_in(_at(12))
    session.break_out(_at(12, 30))
    entry = session.check_out(_at(17, 30), overtime_threshold_hours=8)

    assert entry.total_worked == hours_to_ms(8)
    assert entry.total_break == 30 * 60000
    assert len(entry.breaks) == 1
    assert entry.overtime == 0
    assert entry.date == date(2024, 3, 1)
    assert session.status == SessionStatus.IDLE


def test_status_transitions():
    session = _session()
    assert session.status == SessionStatus.IDLE
    session.check_in(_at(9))
    assert session.status == SessionStatus.WORKING
    session.break_in(_at(10))
    assert session.status == SessionStatus.ON_BREAK
    session.break_out(_at(10, 15))
    assert session.status == SessionStatus.WORKING


def test_check_in_twice_is_noop():
    """出勤中の再出勤は既存の休憩記録を消さないこと"""
    session = _session()
    assert session.check_in(_at(9)) is True
    session.break_in(_at(10))
    session.break_out(_at(10, 10))

    assert session.check_in(_at(11)) is False
    assert session.check_in_time == _at(9)
    assert len(session.breaks) == 1


def test_break_in_requires_working():
    session = _session()
    assert session.break_in(_at(9)) is False

    session.check_in(_at(9))
    assert session.break_in(_at(10)) is True
    assert session.break_in(_at(10, 5)) is False
    assert session.break_start_time == _at(10)


def test_break_out_when_not_on_break_is_noop():
    session = _session()
    session.check_in(_at(9))
    assert session.break_out(_at(10)) is None
    assert session.breaks == []


def test_check_out_closes_open_break():
    """休憩中の退勤は休憩を自動で終了してから計算すること"""
    session = _session()
    session.check_in(_at(9))
    session.break_in(_at(12))
    session.break_out(_at(12, 30))
    session.break_in(_at(17))
    entry = session.check_out(_at(18), overtime_threshold_hours=8)

    assert len(entry.breaks) == 2
    assert entry.total_break == hours_to_ms(1.5)
    assert entry.total_worked == hours_to_ms(7.5)


def test_check_out_when_idle_raises():
    with pytest.raises(SessionStateError):
        _session().check_out(_at(18), overtime_threshold_hours=8)


def test_check_out_records_overtime():
    session = _session()
    session.check_in(_at(8))
    entry = session.check_out(_at(18), overtime_threshold_hours=8)
    assert entry.overtime == hours_to_ms(2)


def test_worked_time_clamped_to_zero():
    """時計のずれで退勤が出勤より前でも負の作業時間を書かないこと"""
    session = _session()
    session.check_in(_at(10))
    entry = session.check_out(_at(9), overtime_threshold_hours=8)
    assert entry.total_worked == 0
    assert entry.overtime == 0


def test_overnight_session_keyed_by_check_in_day():
    """日付をまたいだ勤務は出勤日の記録になること"""
    session = _session()
    session.check_in(_at(22))
    entry = session.check_out(datetime(2024, 3, 2, 2, 0), overtime_threshold_hours=8)
    assert entry.date == date(2024, 3, 1)
    assert entry.total_worked == hours_to_ms(4)
    assert session.current_date == date(2024, 3, 2)


def test_elapsed_increases_while_working():
    session = _session()
    session.check_in(_at(9))
    samples = [session.elapsed_ms(_at(9) + timedelta(minutes=m)) for m in range(0, 120, 7)]
    assert samples == sorted(samples)
    assert samples[-1] > samples[0]


def test_elapsed_constant_while_on_break():
    """休憩中は作業時間が増えないこと"""
    session = _session()
    session.check_in(_at(9))
    session.break_in(_at(12))
    assert session.elapsed_ms(_at(12, 10)) == hours_to_ms(3)
    assert session.elapsed_ms(_at(12, 40)) == hours_to_ms(3)
    assert session.break_total_ms(_at(12, 40)) == 40 * 60000


def test_elapsed_idle_is_zero():
    assert _session().elapsed_ms(_at(12)) == 0


def test_restore_same_day():
    """同日なら保存されたセッションを復元すること"""
    session = _session()
    session.check_in(_at(9))
    session.break_in(_at(12))

    restored = WorkSession.restore(session.to_dict(), date(2024, 3, 1))
    assert restored == session
    assert restored.status == SessionStatus.ON_BREAK


def test_restore_new_day_discards_open_session():
    """日付が変わっていれば出勤中でも破棄すること"""
    session = _session()
    session.check_in(_at(22))

    restored = WorkSession.restore(session.to_dict(), date(2024, 3, 2))
    assert restored.is_checked_in is False
    assert restored.check_in_time is None
    assert restored.current_date == date(2024, 3, 2)


def test_restore_legacy_date_format():
    data = {"isCheckedIn": False, "currentDate": "Fri Mar 01 2024"}
    restored = WorkSession.restore(data, date(2024, 3, 1))
    assert restored.current_date == date(2024, 3, 1)


def test_check_out_at_six_includes_overtime():
    """18:00退勤なら30分休憩を引いても8.5時間で、30分の残業になる"""
    session = _session()
    session.check_in(_at(9))
    session.break_in(_at(12))
    session.break_out(_at(12, 30))
    entry = session.check_out(_at(18), overtime_threshold_hours=8)

    assert entry.total_worked == hours_to_ms(8.5)
    assert entry.overtime == hours_to_ms(0.5)


def test_from_dict_does_not_roll_over():
    session = _session()
    session.check_in(_at(9))
    restored = WorkSession.from_dict(session.to_dict())
    assert restored == session
