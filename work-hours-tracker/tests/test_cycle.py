from datetime import date, datetime, timedelta

from accounting.cycle import resolve_cycle


def test_wrapping_cycle_scenario():
    """26日〜25日設定で3/10を含む期間は2/26〜3/25"""
    cycle = resolve_cycle(date(2024, 3, 10), 26, 25)
    assert cycle.start == datetime(2024, 2, 26, 0, 0, 0)
    assert cycle.end == datetime(2024, 3, 25, 23, 59, 59, 999000)


def test_wrapping_cycle_after_start_day():
    """開始日以降は今月開始・翌月終了"""
    cycle = resolve_cycle(datetime(2024, 3, 27, 8, 0), 26, 25)
    assert cycle.start.date() == date(2024, 3, 26)
    assert cycle.end.date() == date(2024, 4, 25)


def test_wrapping_cycle_crosses_year():
    """年をまたぐ期間"""
    january = resolve_cycle(date(2024, 1, 10), 26, 25)
    assert january.start.date() == date(2023, 12, 26)
    assert january.end.date() == date(2024, 1, 25)

    december = resolve_cycle(date(2024, 12, 28), 26, 25)
    assert december.start.date() == date(2024, 12, 26)
    assert december.end.date() == date(2025, 1, 25)


def test_wrapping_cycle_between_end_and_start():
    """終了日と開始日の間は次に始まる期間を返すこと"""
    cycle = resolve_cycle(date(2024, 3, 10), 26, 5)
    assert cycle.start.date() == date(2024, 3, 26)
    assert cycle.end.date() == date(2024, 4, 5)


def test_calendar_month_cycle_clamps_short_month():
    """1日〜31日設定は2月では月末で終わること"""
    cycle = resolve_cycle(date(2024, 2, 15), 1, 31)
    assert cycle.start.date() == date(2024, 2, 1)
    assert cycle.end.date() == date(2024, 2, 29)


def test_non_wrapping_cycle_before_start_uses_previous_month():
    cycle = resolve_cycle(date(2024, 3, 3), 5, 20)
    assert cycle.start.date() == date(2024, 2, 5)
    assert cycle.end.date() == date(2024, 2, 20)


def test_non_wrapping_cycle_after_end_uses_next_month():
    cycle = resolve_cycle(date(2024, 3, 25), 5, 20)
    assert cycle.start.date() == date(2024, 4, 5)
    assert cycle.end.date() == date(2024, 4, 20)


def test_non_wrapping_cycle_contains_reference_and_has_expected_length():
    """開始日〜終了日の範囲内の参照日では、期間が参照日を含み日数がend-start+1になること"""
    for start_day, end_day in [(1, 28), (5, 20), (10, 10), (1, 15), (16, 28)]:
        for month in range(1, 13):
            for day in range(start_day, end_day + 1):
                reference = datetime(2024, month, day, 12, 0)
                cycle = resolve_cycle(reference, start_day, end_day)
                assert cycle.start <= reference <= cycle.end
                assert len(cycle.days()) == end_day - start_day + 1


def test_wrapping_cycles_contain_reference_and_are_contiguous():
    """26日〜25日設定では全ての日が期間に含まれ、期間が隙間なく連続すること"""
    day = date(2024, 1, 1)
    while day.year == 2024:
        cycle = resolve_cycle(day, 26, 25)
        assert cycle.contains(day)

        following = resolve_cycle(cycle.end + timedelta(milliseconds=1), 26, 25)
        assert following.start == cycle.end + timedelta(milliseconds=1)
        day += timedelta(days=1)


def test_cycle_days():
    cycle = resolve_cycle(date(2024, 3, 10), 26, 25)
    days = cycle.days()
    assert days[0] == date(2024, 2, 26)
    assert days[-1] == date(2024, 3, 25)
    assert len(days) == 29
