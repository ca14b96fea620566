# attendance/graph.py
from langgraph.graph import StateGraph, END
from attendance.state import CorrectionState


def route_after_resolve(state: CorrectionState) -> str:
    if state["action_taken"] == "error":
        return "end"
    return "lookup"


def route_after_lookup(state: CorrectionState) -> str:
    if state["attendance_id"]:
        return "update"
    return "create"


def route_after_write(state: CorrectionState) -> str:
    if state["action_taken"] == "error":
        return "end"
    if state["attendance_id"] and state["comment"].strip():
        return "regularize"
    return "end"


def build_submission_graph(api=None, broadcast=None):
    """1日分の補正（確定→検索→作成/更新→理由申請）を行うグラフを構築して返す

    各ノード関数はAPI依存を持つため、functools.partialでラップして
    LangGraphが期待する (state) -> dict シグネチャに合わせる。
    """
    from functools import partial
    from attendance.nodes.resolve_node import resolve_node
    from attendance.nodes.lookup_node import lookup_node
    from attendance.nodes.update_node import update_node
    from attendance.nodes.create_node import create_node
    from attendance.nodes.regularize_node import regularize_node

    workflow = StateGraph(CorrectionState)

    workflow.add_node("resolve", partial(resolve_node, broadcast=broadcast))
    workflow.add_node("lookup", partial(lookup_node, api=api))
    workflow.add_node("update", partial(update_node, api=api))
    workflow.add_node("create", partial(create_node, api=api))
    workflow.add_node("regularize", partial(regularize_node, api=api))

    workflow.set_entry_point("resolve")

    workflow.add_conditional_edges(
        "resolve",
        route_after_resolve,
        {"lookup": "lookup", "end": END},
    )
    workflow.add_conditional_edges(
        "lookup",
        route_after_lookup,
        {"update": "update", "create": "create"},
    )
    for node in ("update", "create"):
        workflow.add_conditional_edges(
            node,
            route_after_write,
            {"regularize": "regularize", "end": END},
        )

    workflow.add_edge("regularize", END)

    return workflow.compile()
