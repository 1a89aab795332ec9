"""
tree.py — Binary Tree Input
============================
Parses the nested {"value", "left", "right"} JSON the user types and
gives every position a stable, collision-free id derived from its path:

        root
       /    \\
   root.L   root.R
     |
  root.L.R

Values may repeat (a tree with two 7s is fine); path ids never do.  The
annotated tree (with ids) is what gets sent to the model, so the steps
that come back can be checked against these exact ids.
"""

import json
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

Number = Union[int, float]

ROOT_ID        = "root"
MAX_TREE_DEPTH = 32


@dataclass(frozen=True)
class TreeNode:
    id:    str
    value: Number
    left:  Optional["TreeNode"] = None
    right: Optional["TreeNode"] = None

    # ------------------------------------------------------------------
    # Traversal helpers
    # ------------------------------------------------------------------
    def iter_nodes(self) -> Iterator["TreeNode"]:
        """Pre-order walk."""
        yield self
        for child in (self.left, self.right):
            if child is not None:
                yield from child.iter_nodes()

    def node_ids(self) -> List[str]:
        return [n.id for n in self.iter_nodes()]

    def edges(self) -> List[Tuple[str, str]]:
        out = []
        for n in self.iter_nodes():
            for child in (n.left, n.right):
                if child is not None:
                    out.append((n.id, child.id))
        return out

    def layout(self, canvas_w: float = 500, level_gap: float = 80, top: float = 50) -> Dict[str, Tuple[float, float]]:
        """Root top-centre, each level halves the horizontal spread."""
        pos: Dict[str, Tuple[float, float]] = {}

        def place(node: "TreeNode", x: float, y: float, spread: float) -> None:
            pos[node.id] = (round(x, 1), round(y, 1))
            if node.left is not None:
                place(node.left, x - spread, y + level_gap, spread / 2)
            if node.right is not None:
                place(node.right, x + spread, y + level_gap, spread / 2)

        place(self, canvas_w / 2, top, canvas_w / 4)
        return pos

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    def to_dict(self, with_ids: bool = True) -> Dict[str, Any]:
        out: Dict[str, Any] = {"value": self.value}
        if with_ids:
            out = {"id": self.id, "value": self.value}
        if self.left is not None:
            out["left"] = self.left.to_dict(with_ids)
        if self.right is not None:
            out["right"] = self.right.to_dict(with_ids)
        return out

    def to_json(self, with_ids: bool = True) -> str:
        return json.dumps(self.to_dict(with_ids))

    @classmethod
    def from_dict(cls, data: Any, path: str = ROOT_ID, depth: int = 1) -> "TreeNode":
        if depth > MAX_TREE_DEPTH:
            raise ValueError(f"tree is deeper than {MAX_TREE_DEPTH} levels")
        if not isinstance(data, dict) or "value" not in data:
            raise ValueError(f"tree node at {path} needs a \"value\"")
        value = data["value"]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValueError(f"tree node at {path} has non-numeric value {value!r}")

        children = {}
        for side, tag in (("left", "L"), ("right", "R")):
            raw = data.get(side)
            children[side] = None if raw is None else cls.from_dict(raw, f"{path}.{tag}", depth + 1)
        return cls(id=path, value=value, left=children["left"], right=children["right"])

    @classmethod
    def from_json(cls, text: str) -> "TreeNode":
        try:
            data = json.loads(text)
        except (TypeError, ValueError, RecursionError) as exc:
            raise ValueError(f"tree data is not valid JSON: {exc}") from None
        return cls.from_dict(data)
