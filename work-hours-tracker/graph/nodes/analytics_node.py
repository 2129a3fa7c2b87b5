# graph/nodes/analytics_node.py
from accounting.aggregation import analytics_stats, monthly_series, weekly_series
from graph.state import DashboardState


def analytics_node(state: DashboardState) -> dict:
    """平均値とグラフ用の系列を作るノード"""
    history = state["history"]
    today = state["now"].date()
    return {
        "analytics": analytics_stats(
            history, state["session"], state["settings"], state["now"]
        ),
        "weekly": weekly_series(history, today),
        "monthly": monthly_series(history, today),
    }
