"""
schema.py — Step Schema Registry
=================================
Declarative source of truth for what one visualization step must look
like, per (family, role), and which sequence-level checks the parser
runs across steps.

    from algorithms.schema import rules_for
    rules = rules_for(AlgorithmFamily.GRAPH, AlgorithmRole.SHORTEST_PATH)
    rules.validator.iter_errors(step_dict)

Step shapes are JSON Schema (Draft 7) documents so the jsonschema
library can collect every error in one pass, and so the same document
can be shown to the model as the contract it must honour.

Lookup only.  An unknown (family, role) pair is a programming error:
`rules_for` raises LookupError, and the module checks at import time
that every registered algorithm has a rule set.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from jsonschema import Draft7Validator

from algorithms import list_algorithms
from algorithms.family import AlgorithmFamily, AlgorithmRole
from algorithms.step import StepVariant


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------
_NUMBER   = {"type": "number"}
_ID       = {"type": ["string", "integer"]}
_INDEX    = {"type": "integer", "minimum": 0}
_DISTANCE = {"anyOf": [{"type": "number"}, {"enum": ["Infinity", "-Infinity"]}]}
_TEXT     = {"type": "string"}

ARRAY_STEP_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Array step",
    "type": "object",
    "required": ["array", "highlighted", "stepDescription"],
    "properties": {
        "array":           {"type": "array", "items": _NUMBER},
        "highlighted":     {"type": "array", "items": _INDEX},
        "sorted":          {"type": ["array", "null"], "items": _INDEX},
        "found_at":        {"anyOf": [_INDEX, {"type": "null"}]},
        "stepDescription": _TEXT,
    },
}

GRAPH_STEP_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Graph step",
    "type": "object",
    "required": ["nodes", "edges", "stepDescription"],
    "properties": {
        "nodes": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "x", "y", "color"],
                "properties": {
                    "id":       _ID,
                    "x":        _NUMBER,
                    "y":        _NUMBER,
                    "color":    _TEXT,
                    "distance": {"anyOf": [_DISTANCE, {"type": "null"}]},
                    "parent":   {"anyOf": [_ID, {"type": "null"}]},
                },
            },
        },
        "edges": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["source", "target"],
                "properties": {
                    "source": _ID,
                    "target": _ID,
                    "weight": {"type": ["number", "null"]},
                    "color":  {"type": ["string", "null"]},
                },
            },
        },
        "found_at":        {"anyOf": [_ID, {"type": "null"}]},
        "stepDescription": _TEXT,
    },
}

MATRIX_STEP_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Floyd-Warshall matrix step",
    "type": "object",
    "required": ["distanceMatrix", "stepDescription"],
    "properties": {
        "distanceMatrix": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "array",
                "minItems": 1,
                "items": {"anyOf": [_DISTANCE, _TEXT]},
            },
        },
        "highlight": {
            "anyOf": [
                {"type": "null"},
                {
                    "type": "object",
                    "required": ["k", "i", "j"],
                    "properties": {"k": _ID, "i": _ID, "j": _ID},
                },
            ]
        },
        "stepDescription": _TEXT,
    },
}

TREE_STEP_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Tree step",
    "type": "object",
    "required": ["nodes", "edges", "traversalOrder", "found_at", "stepDescription"],
    "properties": {
        "nodes": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["id", "value", "x", "y", "color"],
                "properties": {
                    "id":    _ID,
                    "value": _NUMBER,
                    "x":     _NUMBER,
                    "y":     _NUMBER,
                    "color": _TEXT,
                },
            },
        },
        "edges": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["source", "target"],
                "properties": {"source": _ID, "target": _ID},
            },
        },
        "traversalOrder":  {"type": "array", "items": _NUMBER},
        "found_at":        {"anyOf": [_ID, {"type": "null"}]},
        "stepDescription": _TEXT,
    },
}

_SCHEMAS: Dict[StepVariant, Dict[str, Any]] = {
    StepVariant.ARRAY:  ARRAY_STEP_SCHEMA,
    StepVariant.GRAPH:  GRAPH_STEP_SCHEMA,
    StepVariant.MATRIX: MATRIX_STEP_SCHEMA,
    StepVariant.TREE:   TREE_STEP_SCHEMA,
}

for _schema in _SCHEMAS.values():
    Draft7Validator.check_schema(_schema)


# ---------------------------------------------------------------------------
# Prompt-facing shape descriptions
# ---------------------------------------------------------------------------
_SHAPE_TEXT: Dict[StepVariant, str] = {
    StepVariant.ARRAY: (
        'Each step: {"array": [numbers], "highlighted": [indices being compared/moved], '
        '"sorted": [indices already in final position], "found_at": index or null, '
        '"stepDescription": string}.'
    ),
    StepVariant.GRAPH: (
        'Each step: {"nodes": [{"id", "x", "y", "color", "distance"?, "parent"?}], '
        '"edges": [{"source", "target", "weight"?, "color"?}], "stepDescription": string}. '
        "Every step lists ALL nodes and ALL edges of the input graph, with the same ids."
    ),
    StepVariant.MATRIX: (
        'Each step: {"distanceMatrix": square grid with a header row and column of node ids, '
        'cells are numbers or the string "Infinity", "highlight": {"k", "i", "j"} node ids or null, '
        '"stepDescription": string}.'
    ),
    StepVariant.TREE: (
        'Each step: {"nodes": [{"id", "value", "x", "y", "color"}], "edges": [{"source", "target"}], '
        '"traversalOrder": [values processed so far], "found_at": node id or null, '
        '"stepDescription": string}. Every step lists ALL nodes and edges, using the given ids.'
    ),
}


# ---------------------------------------------------------------------------
# ValidationRuleSet
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ValidationRuleSet:
    """
    Attributes:
        family, role           : What the rules apply to.
        variant                : Which step dataclass a conforming step parses into.
        schema                 : JSON Schema for one step.
        found_at_forbidden     : Traversals never "find" anything; found_at must stay null.
        sorted_must_complete   : Sort runs must end with every index marked sorted.
        included_edges_monotonic : MST runs never un-include an edge.
        extra_rules            : Human-readable extra constraints for the prompt.
    """

    family:                   AlgorithmFamily
    role:                     AlgorithmRole
    variant:                  StepVariant
    schema:                   Dict[str, Any] = field(repr=False, hash=False, compare=False)
    found_at_forbidden:       bool = False
    sorted_must_complete:     bool = False
    included_edges_monotonic: bool = False
    extra_rules:              Tuple[str, ...] = ()

    @property
    def validator(self) -> Draft7Validator:
        return _VALIDATORS[self.variant]

    def describe(self) -> str:
        """Shape + sequence rules, phrased for the model."""
        lines = [_SHAPE_TEXT[self.variant]]
        lines.append("The node/edge ids (or array length) never change between steps; only their state does.")
        lines.append("Once an element is marked sorted/visited it stays so; found_at never changes once set.")
        if self.found_at_forbidden:
            lines.append("This is a traversal: found_at MUST be null in every step.")
        if self.sorted_must_complete:
            lines.append('The final step must list every index in "sorted".')
        lines.extend(self.extra_rules)
        return "\n".join(lines)


_VALIDATORS: Dict[StepVariant, Draft7Validator] = {
    variant: Draft7Validator(schema) for variant, schema in _SCHEMAS.items()
}


def _rules(family, role, variant, **flags) -> ValidationRuleSet:
    return ValidationRuleSet(family=family, role=role, variant=variant,
                             schema=_SCHEMAS[variant], **flags)


_F = AlgorithmFamily
_R = AlgorithmRole

RULES: Dict[Tuple[AlgorithmFamily, AlgorithmRole], ValidationRuleSet] = {
    (_F.ARRAY, _R.SORT): _rules(
        _F.ARRAY, _R.SORT, StepVariant.ARRAY, sorted_must_complete=True),
    (_F.ARRAY, _R.SEARCH): _rules(
        _F.ARRAY, _R.SEARCH, StepVariant.ARRAY,
        extra_rules=("Set found_at to the index where the target is found, and keep it there.",)),
    (_F.GRAPH, _R.TRAVERSAL): _rules(
        _F.GRAPH, _R.TRAVERSAL, StepVariant.GRAPH, found_at_forbidden=True,
        extra_rules=("Node colors: 'default', 'active', 'visited'. Edge colors: 'default', 'traversed'.",)),
    (_F.GRAPH, _R.SHORTEST_PATH): _rules(
        _F.GRAPH, _R.SHORTEST_PATH, StepVariant.GRAPH,
        extra_rules=(
            "Node colors: 'default', 'active', 'visited', 'path'. Nodes carry 'distance' "
            "(number or \"Infinity\") and 'parent' (id or null).",
            "The final step colors every node and edge on the shortest path 'path'.",
        )),
    (_F.GRAPH, _R.MST): _rules(
        _F.GRAPH, _R.MST, StepVariant.GRAPH, included_edges_monotonic=True,
        extra_rules=("Edge colors: 'default', 'active', 'included', 'discarded'.",)),
    (_F.GRAPH, _R.ALL_PAIRS_SHORTEST_PATH): _rules(
        _F.GRAPH, _R.ALL_PAIRS_SHORTEST_PATH, StepVariant.MATRIX),
    (_F.TREE, _R.TRAVERSAL): _rules(
        _F.TREE, _R.TRAVERSAL, StepVariant.TREE, found_at_forbidden=True,
        extra_rules=("Node colors: 'default', 'active', 'visited'.",)),
    (_F.TREE, _R.SEARCH): _rules(
        _F.TREE, _R.SEARCH, StepVariant.TREE,
        extra_rules=("Node colors: 'default', 'active', 'path', 'accent' (the found node).",)),
}


def rules_for(family: AlgorithmFamily, role: AlgorithmRole) -> ValidationRuleSet:
    try:
        return RULES[(family, role)]
    except KeyError:
        raise LookupError(f"No step rules for {family.value}/{role.value}") from None


def _check_registry() -> None:
    missing = [d.name for d in list_algorithms() if (d.family, d.role) not in RULES]
    if missing:
        raise LookupError(f"Algorithms without step rules: {', '.join(missing)}")


_check_registry()


__all__ = [
    "ARRAY_STEP_SCHEMA",
    "GRAPH_STEP_SCHEMA",
    "MATRIX_STEP_SCHEMA",
    "TREE_STEP_SCHEMA",
    "ValidationRuleSet",
    "RULES",
    "rules_for",
]
