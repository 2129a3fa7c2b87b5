# graph/nodes/day_rollover_node.py
from accounting.session import WorkSession
from graph.state import DashboardState


def day_rollover_node(state: DashboardState) -> dict:
    """セッションの日付が今日でなければ破棄するノード（出勤中でも破棄する）"""
    today = state["now"].date()
    session = state["session"]

    if session.current_date != today:
        return {
            "session": WorkSession(current_date=today),
            "session_reset": True,
        }

    return {"session_reset": False}
