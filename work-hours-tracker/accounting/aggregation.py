# accounting/aggregation.py
"""履歴・セッション・設定から表示用の数値を計算する

すべて純粋関数。状態は引数で受け取り、結果はdataclassで返す。
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from accounting.cycle import BillingCycle, resolve_cycle
from accounting.durations import MS_PER_MINUTE, hours_to_ms, ms_to_hours, overtime_ms
from accounting.history import HistoryStore
from accounting.models import HistoryEntry, Settings
from accounting.session import WorkSession


@dataclass(frozen=True)
class TodayStats:
    worked_ms: int
    break_ms: int
    overtime_ms: int
    remaining_ms: int
    session_ms: int  # 進行中セッションの作業時間（タイマー表示用）


@dataclass(frozen=True)
class CycleProgress:
    cycle: BillingCycle
    worked_ms: int
    target_hours: float
    percentage: float
    remaining_hours: float
    remaining_days: int
    daily_required_hours: float

    @property
    def worked_hours(self) -> float:
        return ms_to_hours(self.worked_ms)


@dataclass(frozen=True)
class AnalyticsStats:
    total_days: int
    total_hours: float
    avg_daily_hours: float
    avg_break_minutes: float
    total_overtime_hours: float


@dataclass(frozen=True)
class MonthReport:
    year: int
    month: int
    entries: list[HistoryEntry]
    total_worked_ms: int
    total_overtime_ms: int


def _live_session_in_cycle(session: WorkSession, cycle: BillingCycle) -> bool:
    return (
        session.is_checked_in
        and session.check_in_time is not None
        and cycle.contains(session.check_in_time)
    )


def today_stats(
    history: HistoryStore,
    session: WorkSession,
    settings: Settings,
    now: datetime,
) -> TodayStats:
    worked = 0
    breaks = 0
    overtime = 0

    entry = history.get(now.date())
    if entry is not None:
        worked = entry.total_worked
        breaks = entry.total_break
        overtime = entry.overtime

    session_ms = session.elapsed_ms(now)
    if session.is_checked_in:
        worked += session_ms
        breaks += session.break_total_ms(now)
        overtime = overtime_ms(worked, settings.overtime_threshold_hours)

    remaining = max(0, hours_to_ms(settings.daily_hours) - worked)
    return TodayStats(
        worked_ms=worked,
        break_ms=breaks,
        overtime_ms=overtime,
        remaining_ms=remaining,
        session_ms=session_ms,
    )


def should_alert_overtime(session: WorkSession, stats: TodayStats, settings: Settings) -> bool:
    """残業に入った瞬間を1セッションにつき1回だけ検出する（フラグを立てる）"""
    if not settings.overtime_alert_enabled or not session.is_checked_in:
        return False
    if stats.overtime_ms <= 0 or session.overtime_alerted:
        return False
    session.overtime_alerted = True
    return True


def cycle_progress(
    history: HistoryStore,
    session: WorkSession,
    settings: Settings,
    now: datetime,
) -> CycleProgress:
    cycle = resolve_cycle(now, settings.month_start_day, settings.month_end_day)

    worked = sum(entry.total_worked for entry in history.in_cycle(cycle))
    worked += settings.carry_forward_ms
    if _live_session_in_cycle(session, cycle):
        worked += session.elapsed_ms(now)

    target = settings.monthly_target_hours
    worked_hours = ms_to_hours(worked)
    percentage = min(100.0, worked_hours / target * 100) if target > 0 else 0.0

    first_day = max(now.date(), cycle.start.date())
    remaining_days = (cycle.end.date() - first_day).days + 1
    remaining_hours = max(0.0, target - worked_hours)
    daily_required = remaining_hours / remaining_days if remaining_days > 0 else 0.0

    return CycleProgress(
        cycle=cycle,
        worked_ms=worked,
        target_hours=target,
        percentage=percentage,
        remaining_hours=remaining_hours,
        remaining_days=max(0, remaining_days),
        daily_required_hours=daily_required,
    )


def analytics_stats(
    history: HistoryStore,
    session: WorkSession,
    settings: Settings,
    now: datetime,
) -> AnalyticsStats:
    cycle = resolve_cycle(now, settings.month_start_day, settings.month_end_day)
    entries = history.in_cycle(cycle)

    total_days = len(entries)
    worked = sum(e.total_worked for e in entries)
    breaks = sum(e.total_break for e in entries)
    overtime = sum(e.overtime for e in entries)

    if _live_session_in_cycle(session, cycle):
        worked += session.elapsed_ms(now)
        breaks += session.break_total_ms(now)
        if session.check_in_time.date() not in history:
            total_days += 1

    # 繰越分は合計時間にだけ加え、日数には数えない
    total_hours = ms_to_hours(worked + settings.carry_forward_ms)
    if total_days > 0:
        avg_daily = total_hours / total_days
        avg_break = breaks / total_days / MS_PER_MINUTE
    else:
        avg_daily = 0.0
        avg_break = 0.0

    return AnalyticsStats(
        total_days=total_days,
        total_hours=total_hours,
        avg_daily_hours=avg_daily,
        avg_break_minutes=avg_break,
        total_overtime_hours=ms_to_hours(overtime),
    )


def _hours_for(history: HistoryStore, day: date) -> float:
    entry = history.get(day)
    if entry is None:
        return 0
    return round(ms_to_hours(entry.total_worked), 1)


def weekly_series(history: HistoryStore, today: date) -> list[tuple[str, float]]:
    """todayで終わる直近7日間の (曜日, 時間)"""
    days = [today - timedelta(days=i) for i in range(6, -1, -1)]
    return [(f"{day:%a}", _hours_for(history, day)) for day in days]


def monthly_series(history: HistoryStore, today: date) -> list[tuple[int, float]]:
    """今月1日〜月末の (日, 時間)"""
    first = today.replace(day=1)
    next_month = (first + timedelta(days=32)).replace(day=1)
    count = (next_month - first).days
    return [(i, _hours_for(history, first.replace(day=i))) for i in range(1, count + 1)]


def month_report(history: HistoryStore, year: int, month: int) -> MonthReport:
    entries = history.in_month(year, month)
    return MonthReport(
        year=year,
        month=month,
        entries=entries,
        total_worked_ms=sum(e.total_worked for e in entries),
        total_overtime_ms=sum(e.overtime for e in entries),
    )
