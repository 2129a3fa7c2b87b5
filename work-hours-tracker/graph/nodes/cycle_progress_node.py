# graph/nodes/cycle_progress_node.py
from accounting.aggregation import cycle_progress
from graph.state import DashboardState


def cycle_progress_node(state: DashboardState) -> dict:
    """締め期間の目標に対する進捗を計算するノード"""
    progress = cycle_progress(
        state["history"], state["session"], state["settings"], state["now"]
    )
    return {"cycle": progress}
