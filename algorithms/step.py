"""
step.py — Visualization Step Snapshots
=======================================
A step is a frozen-in-time picture of everything the visualizer needs
to render one frame of a run.  Each family has its own shape:

    • ArrayStep   – the array, highlighted / sorted indices, found index
    • GraphStep   – node states (colour, distance, parent) + edge states
    • MatrixStep  – Floyd–Warshall distance matrix + (k, i, j) highlight
    • TreeStep    – node states, edges, traversal order, found node

Design decisions:
  - Steps are frozen dataclasses.  The parser is the only writer; the
    stepper / renderer are pure readers.
  - Collections are tuples so a step can never be mutated after
    validation.
  - `from_dict` assumes the dict already passed the JSON Schema for its
    variant (see schema.py) and only does structural conversion; it
    raises ValueError for shapes the schema cannot express (e.g. a
    non-square matrix).
  - `to_dict` emits the model's wire names (stepDescription, found_at,
    traversalOrder, distanceMatrix) so serialise → parse round-trips.
  - "Infinity" distances become math.inf on the way in and go back to
    the string on the way out.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class StepVariant(Enum):
    ARRAY  = "array"
    GRAPH  = "graph"
    MATRIX = "matrix"
    TREE   = "tree"


INFINITY_TOKEN     = "Infinity"
NEG_INFINITY_TOKEN = "-Infinity"

DEFAULT_COLOR  = "default"
VISITED_COLORS = frozenset({"visited", "path"})
# a node once visited may be re-shown as active (DFS backtracking), never as unvisited
REVISIT_COLORS = VISITED_COLORS | {"active"}

# key aliases the model sometimes uses instead of the wire names
KEY_ALIASES: Dict[str, str] = {
    "description":    "stepDescription",
    "foundAt":        "found_at",
    "traversal_order": "traversalOrder",
    "distance_matrix": "distanceMatrix",
}

Number = Union[int, float]


# ---------------------------------------------------------------------------
# Scalar helpers
# ---------------------------------------------------------------------------
def decode_distance(value: Any) -> Number:
    if value == INFINITY_TOKEN:
        return math.inf
    if value == NEG_INFINITY_TOKEN:
        return -math.inf
    return value


def encode_distance(value: Number) -> Union[Number, str]:
    if isinstance(value, float) and math.isinf(value):
        return INFINITY_TOKEN if value > 0 else NEG_INFINITY_TOKEN
    return value


def node_id(value: Any) -> str:
    """Ids may arrive as numbers (tree ids built from values); always compare as str."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def canonical_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Rename alias keys to wire names; an explicit wire key wins over its alias."""
    out = dict(data)
    for alias, wire in KEY_ALIASES.items():
        if alias in out:
            value = out.pop(alias)
            out.setdefault(wire, value)
    return out


# ---------------------------------------------------------------------------
# Array
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ArrayStep:
    array:          Tuple[Number, ...]
    highlighted:    Tuple[int, ...]           = ()
    sorted_indices: Optional[Tuple[int, ...]] = None
    found_at:       Optional[int]             = None
    description:    str                       = ""

    variant = StepVariant.ARRAY

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArrayStep":
        sorted_raw = data.get("sorted")
        found = data.get("found_at")
        return cls(
            array=tuple(data["array"]),
            highlighted=tuple(int(i) for i in data.get("highlighted", [])),
            sorted_indices=None if sorted_raw is None else tuple(int(i) for i in sorted_raw),
            found_at=None if found is None else int(found),
            description=data.get("stepDescription", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"array": list(self.array), "highlighted": list(self.highlighted)}
        if self.sorted_indices is not None:
            out["sorted"] = list(self.sorted_indices)
        if self.found_at is not None:
            out["found_at"] = self.found_at
        out["stepDescription"] = self.description
        return out


# ---------------------------------------------------------------------------
# Graph (node / edge variant)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class GraphNodeState:
    id:       str
    x:        Number
    y:        Number
    color:    str              = DEFAULT_COLOR
    distance: Optional[Number] = None
    parent:   Optional[str]    = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphNodeState":
        parent = data.get("parent")
        distance = data.get("distance")
        return cls(
            id=node_id(data["id"]),
            x=data["x"],
            y=data["y"],
            color=data.get("color") or DEFAULT_COLOR,
            distance=None if distance is None else decode_distance(distance),
            parent=None if parent is None else node_id(parent),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "x": self.x, "y": self.y, "color": self.color}
        if self.distance is not None:
            out["distance"] = encode_distance(self.distance)
        if self.parent is not None:
            out["parent"] = self.parent
        return out


@dataclass(frozen=True)
class GraphEdgeState:
    source: str
    target: str
    weight: Optional[Number] = None
    color:  Optional[str]    = None

    @property
    def pair(self) -> frozenset:
        """Direction-free identity; the model is free to flip undirected edges."""
        return frozenset((self.source, self.target))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphEdgeState":
        return cls(
            source=node_id(data["source"]),
            target=node_id(data["target"]),
            weight=data.get("weight"),
            color=data.get("color"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"source": self.source, "target": self.target}
        if self.weight is not None:
            out["weight"] = self.weight
        if self.color is not None:
            out["color"] = self.color
        return out


@dataclass(frozen=True)
class GraphStep:
    nodes:       Tuple[GraphNodeState, ...]
    edges:       Tuple[GraphEdgeState, ...]
    description: str           = ""
    found_at:    Optional[str] = None

    variant = StepVariant.GRAPH

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphStep":
        found = data.get("found_at")
        return cls(
            nodes=tuple(GraphNodeState.from_dict(n) for n in data["nodes"]),
            edges=tuple(GraphEdgeState.from_dict(e) for e in data["edges"]),
            description=data.get("stepDescription", ""),
            found_at=None if found is None else node_id(found),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "stepDescription": self.description,
        }
        if self.found_at is not None:
            out["found_at"] = self.found_at
        return out

    def node(self, nid: str) -> Optional[GraphNodeState]:
        for n in self.nodes:
            if n.id == nid:
                return n
        return None


# ---------------------------------------------------------------------------
# Matrix (Floyd–Warshall)
# ---------------------------------------------------------------------------
def _matrix_ref(value: Any) -> Union[str, int]:
    """Row/column refs are labels or indices; 1.0 is index 1."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


@dataclass(frozen=True)
class MatrixHighlight:
    k: Union[str, int]
    i: Union[str, int]
    j: Union[str, int]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatrixHighlight":
        return cls(k=_matrix_ref(data["k"]), i=_matrix_ref(data["i"]), j=_matrix_ref(data["j"]))

    def to_dict(self) -> Dict[str, Any]:
        return {"k": self.k, "i": self.i, "j": self.j}


def _is_cell(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) or value in (INFINITY_TOKEN, NEG_INFINITY_TOKEN)


def split_matrix_header(rows: List[List[Any]]) -> Tuple[Optional[Tuple[str, ...]], List[List[Any]]]:
    """
    The model usually emits a header row and column of node ids:

        [["",  "A", "B"],
         ["A",  0,   4 ],
         ["B",  4,   0 ]]

    Split that into labels + the bare grid.  A matrix whose first row is
    all cells is returned unchanged with labels=None.
    """
    if not rows or not rows[0]:
        raise ValueError("distance matrix is empty")
    first = rows[0]
    if all(_is_cell(v) for v in first):
        return None, rows

    labels = tuple(node_id(v) for v in first[1:])
    grid: List[List[Any]] = []
    for r, row in enumerate(rows[1:]):
        if not row:
            raise ValueError(f"matrix row {r} is empty")
        if r < len(labels) and node_id(row[0]) != labels[r]:
            raise ValueError(f"matrix row {r} is labelled {row[0]!r}, expected {labels[r]!r}")
        grid.append(row[1:])
    return labels, grid


@dataclass(frozen=True)
class MatrixStep:
    matrix:      Tuple[Tuple[Number, ...], ...]
    labels:      Optional[Tuple[str, ...]]  = None
    highlight:   Optional[MatrixHighlight] = None
    description: str                       = ""

    variant = StepVariant.MATRIX

    @property
    def size(self) -> int:
        return len(self.matrix)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatrixStep":
        labels, grid = split_matrix_header(data["distanceMatrix"])
        n = len(grid)
        if labels is not None and len(labels) != n:
            raise ValueError(f"matrix has {len(labels)} labels but {n} rows")
        for r, row in enumerate(grid):
            if len(row) != n:
                raise ValueError(f"matrix row {r} has {len(row)} cells, expected {n}")
            for value in row:
                if not _is_cell(value):
                    raise ValueError(f"matrix row {r} holds non-numeric cell {value!r}")
        hl = data.get("highlight")
        return cls(
            matrix=tuple(tuple(decode_distance(v) for v in row) for row in grid),
            labels=labels,
            highlight=None if hl is None else MatrixHighlight.from_dict(hl),
            description=data.get("stepDescription", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        body = [[encode_distance(v) for v in row] for row in self.matrix]
        if self.labels is not None:
            body = [[""] + list(self.labels)] + [
                [label] + row for label, row in zip(self.labels, body)
            ]
        out: Dict[str, Any] = {"distanceMatrix": body}
        if self.highlight is not None:
            out["highlight"] = self.highlight.to_dict()
        out["stepDescription"] = self.description
        return out


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class TreeNodeState:
    id:    str
    value: Number
    x:     Number
    y:     Number
    color: str = DEFAULT_COLOR

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TreeNodeState":
        return cls(
            id=node_id(data["id"]),
            value=data["value"],
            x=data["x"],
            y=data["y"],
            color=data.get("color") or DEFAULT_COLOR,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "value": self.value, "x": self.x, "y": self.y, "color": self.color}


@dataclass(frozen=True)
class TreeEdge:
    source: str
    target: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TreeEdge":
        return cls(source=node_id(data["source"]), target=node_id(data["target"]))

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "target": self.target}


@dataclass(frozen=True)
class TreeStep:
    nodes:           Tuple[TreeNodeState, ...]
    edges:           Tuple[TreeEdge, ...]
    traversal_order: Tuple[Number, ...] = ()
    found_at:        Optional[str]      = None
    description:     str                = ""

    variant = StepVariant.TREE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TreeStep":
        found = data.get("found_at")
        return cls(
            nodes=tuple(TreeNodeState.from_dict(n) for n in data["nodes"]),
            edges=tuple(TreeEdge.from_dict(e) for e in data["edges"]),
            traversal_order=tuple(data.get("traversalOrder") or ()),
            found_at=None if found is None else node_id(found),
            description=data.get("stepDescription", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "traversalOrder": list(self.traversal_order),
            "stepDescription": self.description,
            "found_at": self.found_at,
        }


VisualizationStep = Union[ArrayStep, GraphStep, MatrixStep, TreeStep]

STEP_TYPES = {
    StepVariant.ARRAY:  ArrayStep,
    StepVariant.GRAPH:  GraphStep,
    StepVariant.MATRIX: MatrixStep,
    StepVariant.TREE:   TreeStep,
}


def step_from_dict(variant: StepVariant, data: Dict[str, Any]) -> VisualizationStep:
    return STEP_TYPES[variant].from_dict(data)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class SimulationResult:
    """One validated run.  Never mutated; replaced wholesale on each run."""

    description: str
    steps:       Tuple[VisualizationStep, ...]

    @property
    def variant(self) -> StepVariant:
        return self.steps[0].variant

    def __len__(self) -> int:
        return len(self.steps)


__all__ = [
    "StepVariant",
    "INFINITY_TOKEN",
    "DEFAULT_COLOR",
    "VISITED_COLORS",
    "REVISIT_COLORS",
    "canonical_keys",
    "decode_distance",
    "encode_distance",
    "node_id",
    "split_matrix_header",
    "ArrayStep",
    "GraphNodeState",
    "GraphEdgeState",
    "GraphStep",
    "MatrixHighlight",
    "MatrixStep",
    "TreeNodeState",
    "TreeEdge",
    "TreeStep",
    "VisualizationStep",
    "STEP_TYPES",
    "step_from_dict",
    "SimulationResult",
]
