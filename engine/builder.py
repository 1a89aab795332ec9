"""
builder.py — Request Builder
=============================
Turns a form submission into an immutable SimulationRequest, or raises
InputError.  Nothing reaches the model until this succeeds.

    request = build(AlgorithmFamily.GRAPH, "Dijkstra's",
                    {"graphData": "...", "startNode": "A", "endNode": "E"})

Raw field names match the request boundary the model sees:

    Array : array (comma-separated numbers), target
    Graph : graphData (JSON), startNode, endNode
    Tree  : treeData (JSON), target

Pure transform: no I/O, no logging, no shared state.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from algorithms import AlgorithmDescriptor, AlgorithmFamily, get_algorithm
from engine.errors import InputError, InputErrorKind
from structures import Graph, TreeNode, parse_number, parse_number_list

Number  = Union[int, float]
Payload = Union[Tuple[Number, ...], Graph, TreeNode]

# raw field names per family
ARRAY_FIELD  = "array"
GRAPH_FIELD  = "graphData"
TREE_FIELD   = "treeData"
TARGET_FIELD = "target"
START_FIELD  = "startNode"
END_FIELD    = "endNode"


# ---------------------------------------------------------------------------
# SimulationRequest
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class SimulationRequest:
    """
    Attributes:
        algorithm : Descriptor of the chosen algorithm.
        family    : Same as algorithm.family; kept for the boundary object.
        payload   : Parsed input: tuple of numbers / Graph / TreeNode.
        start     : Start node id (graph), or None.
        end       : End node id (graph), or None.
        target    : Search target (array / tree), or None.
    """

    algorithm: AlgorithmDescriptor
    family:    AlgorithmFamily
    payload:   Payload
    start:     Optional[str]    = None
    end:       Optional[str]    = None
    target:    Optional[Number] = None

    @property
    def node_ids(self) -> Optional[List[str]]:
        """Identities the model's steps must use; None for arrays."""
        if isinstance(self.payload, Graph):
            return self.payload.node_ids()
        if isinstance(self.payload, TreeNode):
            return self.payload.node_ids()
        return None

    def to_model_fields(self) -> Dict[str, Any]:
        """The structured request object handed to the model."""
        fields: Dict[str, Any] = {"algorithmName": self.algorithm.name}
        if self.family is AlgorithmFamily.ARRAY:
            fields[ARRAY_FIELD] = json.dumps(list(self.payload))
            if self.target is not None:
                fields[TARGET_FIELD] = self.target
        elif self.family is AlgorithmFamily.GRAPH:
            fields[GRAPH_FIELD] = self.payload.to_json()
            if self.start is not None:
                fields[START_FIELD] = self.start
            if self.end is not None:
                fields[END_FIELD] = self.end
        else:
            fields[TREE_FIELD] = self.payload.to_json(with_ids=True)
            if self.target is not None:
                fields[TARGET_FIELD] = self.target
        return fields


# ---------------------------------------------------------------------------
# build()
# ---------------------------------------------------------------------------
def build(
    family: AlgorithmFamily,
    algorithm_name: str,
    raw_fields: Mapping[str, Any],
) -> SimulationRequest:
    descriptor = get_algorithm(family, algorithm_name)
    if descriptor is None:
        raise InputError(
            InputErrorKind.UNKNOWN_ALGORITHM,
            f"Unknown {family.value} algorithm: {algorithm_name!r}.",
            field="algorithm",
        )

    if family is AlgorithmFamily.ARRAY:
        payload: Payload = _parse_array(raw_fields.get(ARRAY_FIELD))
    elif family is AlgorithmFamily.GRAPH:
        payload = _parse_graph(raw_fields.get(GRAPH_FIELD))
    else:
        payload = _parse_tree(raw_fields.get(TREE_FIELD))

    start = end = None
    target = None

    if isinstance(payload, Graph):
        # optional unless the algorithm requires them; sent whenever given
        start = _optional_text(raw_fields, START_FIELD)
        end = _optional_text(raw_fields, END_FIELD)
        if descriptor.requires_start and start is None:
            raise InputError(InputErrorKind.MISSING_REQUIRED_FIELD,
                             "Please select a start node.", field=START_FIELD)
        if descriptor.requires_end and end is None:
            raise InputError(InputErrorKind.MISSING_REQUIRED_FIELD,
                             "Please select an end node.", field=END_FIELD)
        for fname, nid in ((START_FIELD, start), (END_FIELD, end)):
            if nid is not None and not payload.has_node(nid):
                raise InputError(InputErrorKind.UNKNOWN_NODE,
                                 f"Node {nid!r} is not in the graph.", field=fname)

    if descriptor.requires_target:
        raw_target = _required_text(raw_fields, TARGET_FIELD, "Please enter a valid number to search for.")
        try:
            target = parse_number(raw_target)
        except ValueError:
            raise InputError(InputErrorKind.MALFORMED_INPUT,
                             "Please enter a valid number to search for.", field=TARGET_FIELD) from None

    return SimulationRequest(
        algorithm=descriptor,
        family=family,
        payload=payload,
        start=start,
        end=end,
        target=target,
    )


# ---------------------------------------------------------------------------
# Per-family parsing
# ---------------------------------------------------------------------------
def _parse_array(raw: Any) -> Tuple[Number, ...]:
    try:
        return tuple(parse_number_list(raw))
    except ValueError:
        raise InputError(InputErrorKind.MALFORMED_INPUT,
                         "Please enter a valid comma-separated list of numbers.",
                         field=ARRAY_FIELD) from None


def _parse_graph(raw: Any) -> Graph:
    try:
        if isinstance(raw, dict):
            return Graph.from_dict(raw)
        if not isinstance(raw, str) or not raw.strip():
            raise ValueError("graph data is empty")
        return Graph.from_json(raw)
    except ValueError as exc:
        raise InputError(InputErrorKind.MALFORMED_INPUT,
                         f"Invalid graph data format: {exc}.", field=GRAPH_FIELD) from None


def _parse_tree(raw: Any) -> TreeNode:
    try:
        if isinstance(raw, dict):
            return TreeNode.from_dict(raw)
        if not isinstance(raw, str) or not raw.strip():
            raise ValueError("tree data is empty")
        return TreeNode.from_json(raw)
    except ValueError as exc:
        raise InputError(InputErrorKind.MALFORMED_INPUT,
                         f"Invalid tree data format: {exc}.", field=TREE_FIELD) from None


def _optional_text(raw_fields: Mapping[str, Any], name: str) -> Optional[str]:
    value = raw_fields.get(name)
    text = "" if value is None else str(value).strip()
    return text or None


def _required_text(raw_fields: Mapping[str, Any], name: str, message: str) -> str:
    text = _optional_text(raw_fields, name)
    if text is None:
        raise InputError(InputErrorKind.MISSING_REQUIRED_FIELD, message, field=name)
    return text


__all__ = [
    "SimulationRequest",
    "build",
    "ARRAY_FIELD",
    "GRAPH_FIELD",
    "TREE_FIELD",
    "TARGET_FIELD",
    "START_FIELD",
    "END_FIELD",
]
