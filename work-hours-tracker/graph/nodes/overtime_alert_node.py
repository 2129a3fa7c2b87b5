# graph/nodes/overtime_alert_node.py
from accounting.aggregation import should_alert_overtime
from graph.state import DashboardState


MESSAGES = {
    "overtime": ("Overtime", "You are now in overtime!"),
}


def overtime_alert_node(state: DashboardState, notifier=None) -> dict:
    """残業に入ったら1セッションに1回だけ通知するノード"""
    session = state["session"]
    if not should_alert_overtime(session, state["today"], state["settings"]):
        return {}

    if notifier is not None:
        title, body = MESSAGES["overtime"]
        notifier.notify(title, body)
    return {"session": session, "alerts": state["alerts"] + ["overtime"]}
