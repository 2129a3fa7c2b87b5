from typing import TypedDict, Optional
from datetime import datetime

from accounting.aggregation import AnalyticsStats, CycleProgress, TodayStats
from accounting.history import HistoryStore
from accounting.models import Settings
from accounting.session import WorkSession


class DashboardState(TypedDict):
    now: datetime                       # 計算基準の現在時刻
    settings: Settings
    session: WorkSession
    history: HistoryStore
    session_reset: bool                 # 日付跨ぎでセッションを破棄したか
    today: Optional[TodayStats]         # 今日の集計
    cycle: Optional[CycleProgress]      # 締め期間の進捗
    analytics: Optional[AnalyticsStats] # 締め期間の平均など
    weekly: list[tuple[str, float]]     # 直近7日の (曜日, 時間)
    monthly: list[tuple[int, float]]    # 今月の (日, 時間)
    alerts: list[str]                   # このティックで送った通知
