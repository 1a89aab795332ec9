"""
analytics.py — Run Analytics
=============================
Summarises a validated run for the Analytics panel.

Usage:
    metrics = compute_metrics(result, start="A", end="E")
    metrics.path        # ["A", "C", "F", "E"]
    metrics.path_cost   # 20

Everything is read off the steps the model produced; nothing is
re-computed from the input.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from algorithms.step import (
    VISITED_COLORS,
    ArrayStep,
    GraphEdgeState,
    GraphStep,
    SimulationResult,
    TreeStep,
)
from engine.parser import INCLUDED_COLOR, PATH_COLOR

Number = Union[int, float]


# ---------------------------------------------------------------------------
# RunMetrics: what the Analytics panel renders
# ---------------------------------------------------------------------------
@dataclass
class RunMetrics:
    total_steps:     int             = 0
    final_array:     List[Number]    = field(default_factory=list)
    sorted_count:    int             = 0
    found_at:        Optional[Union[int, str]] = None
    traversal_order: List[Number]    = field(default_factory=list)
    nodes_visited:   int             = 0
    path:            List[str]       = field(default_factory=list)
    path_cost:       Number          = 0
    mst_weight:      Number          = 0
    mst_edges:       int             = 0

    @property
    def path_found(self) -> bool:
        return len(self.path) > 1

    def to_dict(self) -> Dict[str, object]:
        out = dict(self.__dict__)
        out["path_found"] = self.path_found
        return out


def compute_metrics(
    result: SimulationResult,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> RunMetrics:
    last = result.steps[-1]
    metrics = RunMetrics(total_steps=len(result.steps))

    if isinstance(last, ArrayStep):
        metrics.final_array  = list(last.array)
        metrics.sorted_count = len(set(last.sorted_indices or ()))
        metrics.found_at     = last.found_at

    elif isinstance(last, TreeStep):
        metrics.traversal_order = list(last.traversal_order)
        metrics.found_at        = last.found_at

    elif isinstance(last, GraphStep):
        metrics.found_at      = last.found_at
        metrics.nodes_visited = sum(1 for n in last.nodes if n.color in VISITED_COLORS)
        path_edges = [e for e in last.edges if e.color == PATH_COLOR]
        metrics.path, metrics.path_cost = _order_path(last, path_edges, start, end)
        included = [e for e in last.edges if e.color == INCLUDED_COLOR]
        metrics.mst_edges  = len(included)
        metrics.mst_weight = sum(_weight(e) for e in included)

    return metrics


# ---------------------------------------------------------------------------
# Internal
# ---------------------------------------------------------------------------
def _weight(edge: GraphEdgeState) -> Number:
    return 1 if edge.weight is None else edge.weight


def _order_path(
    step: GraphStep,
    edges: List[GraphEdgeState],
    start: Optional[str],
    end: Optional[str],
) -> Tuple[List[str], Number]:
    """Walk the path-coloured edges from one endpoint to the other."""
    if not edges:
        return [], 0

    adj: Dict[str, List[GraphEdgeState]] = defaultdict(list)
    for e in edges:
        adj[e.source].append(e)
        adj[e.target].append(e)
    endpoints = [nid for nid, es in adj.items() if len(es) == 1]

    if start in adj:
        head = start
    elif end in endpoints and len(endpoints) == 2:
        head = next(nid for nid in endpoints if nid != end)
    else:
        roots = [nid for nid in endpoints if (step.node(nid) is None or step.node(nid).parent is None)]
        candidates = roots or endpoints or sorted(adj)
        head = candidates[0]

    path = [head]
    cost: Number = 0
    used = set()
    current = head
    while True:
        nxt = next((e for e in adj[current] if id(e) not in used), None)
        if nxt is None:
            break
        used.add(id(nxt))
        cost += _weight(nxt)
        current = nxt.target if nxt.source == current else nxt.source
        path.append(current)
    return path, cost


__all__ = ["RunMetrics", "compute_metrics"]
