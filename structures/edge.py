"""
edge.py — Graph Edge
====================
Connects two nodes with an optional weight.

Design decisions:
  - `source` and `target` are node-id strings, NOT Node references.
    This keeps edges serialisable and avoids circular references.
  - `weight` stays None when the user left it out, so the request sent to
    the model is exactly what was typed.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

Number = Union[int, float]


@dataclass(frozen=True)
class Edge:
    """
    Attributes:
        source : ID of the tail node.
        target : ID of the head node.
        weight : Numeric cost, or None for unweighted input.
    """

    source: str
    target: str
    weight: Optional[Number] = None

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"source": self.source, "target": self.target}
        if self.weight is not None:
            out["weight"] = self.weight
        return out

    @classmethod
    def from_dict(cls, data: Any) -> "Edge":
        if not isinstance(data, dict) or "source" not in data or "target" not in data:
            raise ValueError("every edge needs \"source\" and \"target\"")
        weight = data.get("weight")
        if weight is not None:
            if isinstance(weight, bool) or not isinstance(weight, (int, float)) or not math.isfinite(weight):
                raise ValueError(f"edge weight must be a finite number, got {weight!r}")
        return cls(source=str(data["source"]).strip(), target=str(data["target"]).strip(), weight=weight)

    def __repr__(self) -> str:
        return f"Edge({self.source} ↔ {self.target}, w={self.weight})"
