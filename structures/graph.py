"""
graph.py — Graph Input Container
=================================
The graph the user submitted, parsed and checked before anything is sent
to the model.

Responsibilities:
  1. Parse the {"nodes": [...], "edges": [...]} JSON shape   (from_dict / from_json)
  2. Structural checks: unique ids, edges reference known nodes
  3. A circular preview layout for the page before a run      (circular_layout)
  4. Serialisation round-trip                                 (to_dict / to_json)

Design decisions:
  - Frozen: a SimulationRequest holds one of these and must never change.
  - Nodes & edges are tuples in input order; the model is asked to keep
    that order, and the preview renders it.
"""

import json
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from structures.edge import Edge
from structures.node import Node


@dataclass(frozen=True)
class Graph:
    """
    Attributes:
        nodes : Tuple of Node in input order.
        edges : Tuple of Edge in input order.
    """

    nodes: Tuple[Node, ...]
    edges: Tuple[Edge, ...]

    # ==================================================================
    # QUERIES
    # ==================================================================
    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def has_node(self, node_id: str) -> bool:
        return any(n.id == node_id for n in self.nodes)

    # ==================================================================
    # LAYOUT
    # ==================================================================
    def circular_layout(
        self,
        canvas_w: float = 500,
        canvas_h: float = 550,
        margin: float = 40,
    ) -> Dict[str, Tuple[float, float]]:
        """Nodes evenly spaced on a circle; used for the input preview only."""
        n = len(self.nodes)
        if n == 0:
            return {}
        cx, cy = canvas_w / 2, canvas_h / 2
        radius = max(0.0, min(canvas_w, canvas_h) / 2 - margin)
        pos: Dict[str, Tuple[float, float]] = {}
        for i, node in enumerate(self.nodes):
            angle = 2 * math.pi * i / n - math.pi / 2
            pos[node.id] = (round(cx + radius * math.cos(angle), 1),
                            round(cy + radius * math.sin(angle), 1))
        return pos

    # ==================================================================
    # SERIALISATION
    # ==================================================================
    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Any) -> "Graph":
        if not isinstance(data, dict):
            raise ValueError("graph data must be a JSON object")
        raw_nodes = data.get("nodes")
        raw_edges = data.get("edges")
        if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
            raise ValueError("graph data needs \"nodes\" and \"edges\" arrays")
        if not raw_nodes:
            raise ValueError("graph needs at least one node")

        nodes = tuple(Node.from_dict(nd) for nd in raw_nodes)
        seen = set()
        for n in nodes:
            if n.id in seen:
                raise ValueError(f"duplicate node id {n.id!r}")
            seen.add(n.id)

        edges = tuple(Edge.from_dict(ed) for ed in raw_edges)
        for e in edges:
            for end in (e.source, e.target):
                if end not in seen:
                    raise ValueError(f"edge {e.source}-{e.target} references unknown node {end!r}")
        return cls(nodes=nodes, edges=edges)

    @classmethod
    def from_json(cls, text: str) -> "Graph":
        try:
            data = json.loads(text)
        except (TypeError, ValueError, RecursionError) as exc:
            raise ValueError(f"graph data is not valid JSON: {exc}") from None
        return cls.from_dict(data)
