# graph/graph.py
from datetime import datetime

from langgraph.graph import StateGraph, END
from graph.state import DashboardState


def route_after_today_stats(state: DashboardState) -> str:
    session = state["session"]
    today = state["today"]
    if (
        state["settings"].overtime_alert_enabled
        and session.is_checked_in
        and not session.overtime_alerted
        and today.overtime_ms > 0
    ):
        return "overtime_alert"
    return "cycle_progress"


def initial_state(now: datetime, settings, session, history) -> DashboardState:
    """1ティック分の初期状態"""
    return {
        "now": now,
        "settings": settings,
        "session": session,
        "history": history,
        "session_reset": False,
        "today": None,
        "cycle": None,
        "analytics": None,
        "weekly": [],
        "monthly": [],
        "alerts": [],
    }


def build_graph(notifier=None):
    """ダッシュボード計算のLangGraphを構築して返す

    通知ノードはnotifierに依存するため、functools.partialでラップして
    LangGraphが期待する (state) -> dict シグネチャに合わせる。
    """
    from functools import partial
    from graph.nodes.day_rollover_node import day_rollover_node
    from graph.nodes.today_stats_node import today_stats_node
    from graph.nodes.overtime_alert_node import overtime_alert_node
    from graph.nodes.cycle_progress_node import cycle_progress_node
    from graph.nodes.analytics_node import analytics_node

    overtime_alert_wrapped = partial(overtime_alert_node, notifier=notifier)

    workflow = StateGraph(DashboardState)

    workflow.add_node("day_rollover", day_rollover_node)
    workflow.add_node("today_stats", today_stats_node)
    workflow.add_node("overtime_alert", overtime_alert_wrapped)
    workflow.add_node("cycle_progress", cycle_progress_node)
    workflow.add_node("analytics", analytics_node)

    workflow.set_entry_point("day_rollover")

    workflow.add_edge("day_rollover", "today_stats")
    workflow.add_conditional_edges(
        "today_stats",
        route_after_today_stats,
        {"overtime_alert": "overtime_alert", "cycle_progress": "cycle_progress"},
    )
    workflow.add_edge("overtime_alert", "cycle_progress")
    workflow.add_edge("cycle_progress", "analytics")
    workflow.add_edge("analytics", END)

    return workflow.compile()
