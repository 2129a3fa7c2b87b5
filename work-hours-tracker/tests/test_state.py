from datetime import date, datetime

from accounting.history import HistoryStore
from accounting.models import Settings
from accounting.session import WorkSession
from graph.graph import initial_state


def test_initial_state_keys():
    """DashboardStateが正しいキーで生成できること"""
    now = datetime(2024, 3, 10, 12, 0)
    state = initial_state(now, Settings(), WorkSession(current_date=now.date()), HistoryStore())
    assert state["now"] == now
    assert state["session_reset"] is False
    assert state["today"] is None
    assert state["cycle"] is None
    assert state["analytics"] is None
    assert state["weekly"] == []
    assert state["alerts"] == []


def test_initial_state_keeps_references():
    """渡したセッションをそのまま保持すること"""
    session = WorkSession(current_date=date(2024, 3, 10))
    state = initial_state(datetime(2024, 3, 10, 12, 0), Settings(), session, HistoryStore())
    assert state["session"] is session
