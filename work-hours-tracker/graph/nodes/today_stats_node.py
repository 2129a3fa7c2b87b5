# graph/nodes/today_stats_node.py
from accounting.aggregation import today_stats
from graph.state import DashboardState


def today_stats_node(state: DashboardState) -> dict:
    """今日の作業・休憩・残業・残り時間を計算するノード"""
    stats = today_stats(
        state["history"], state["session"], state["settings"], state["now"]
    )
    return {"today": stats}
