"""
parser.py — Response Validator / Parser
=========================================
Consumes the model's raw reply and returns a SimulationResult, or raises
ValidationError.  Nothing else ever escapes `parse`.

    result = parse(AlgorithmFamily.ARRAY, AlgorithmRole.SORT, raw_text)

Pipeline:
    1. Decode + parse the outer payload
           {"simulationDescription": str, "visualizationData": "<JSON array>"}
       and then the inner array string                  → MALFORMED_JSON
    2. The inner value must be a non-empty array        → EMPTY_SEQUENCE
    3. Every step against the JSON Schema for its rule
       set, then into its frozen dataclass              → SCHEMA_MISMATCH(index)
    4. Cross-step invariants (identity stability,
       monotonic sorted / visited / traversal order,
       found_at stability, traversal found_at == null)  → INVARIANT_VIOLATION(index)

The payload comes from an untrusted generator, so every step is checked,
not just the first, and the first failure wins.

`serialize` writes a result back in the same external format, so
parse(serialize(r)) == r for any accepted r.
"""

import json
import math
import re
from collections import Counter
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Union

from algorithms.family import AlgorithmFamily, AlgorithmRole
from algorithms.schema import ValidationRuleSet, rules_for
from algorithms.step import (
    REVISIT_COLORS,
    VISITED_COLORS,
    ArrayStep,
    GraphStep,
    MatrixStep,
    SimulationResult,
    StepVariant,
    TreeStep,
    VisualizationStep,
    canonical_keys,
    step_from_dict,
)
from engine.errors import ValidationError, ValidationErrorKind

DESCRIPTION_KEY = "simulationDescription"
STEPS_KEY       = "visualizationData"

INCLUDED_COLOR = "included"
PATH_COLOR     = "path"

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z]*\s*|\s*```\s*$")

_K = ValidationErrorKind


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def parse(
    family: AlgorithmFamily,
    role: AlgorithmRole,
    raw_text: Union[str, bytes],
    expected_node_ids: Optional[Iterable[str]] = None,
) -> SimulationResult:
    """
    Args:
        family, role      : Pick the rule set (see algorithms.schema).
        raw_text          : The model's reply, str or UTF-8 bytes.
        expected_node_ids : When given, step 0 must use exactly these ids
                            (the graph's node ids / the tree's path ids).
    """
    rules = rules_for(family, role)
    expected = None if expected_node_ids is None else frozenset(str(n) for n in expected_node_ids)
    try:
        description, raw_steps = _decode_payload(raw_text)
        steps = [_parse_step(rules, i, raw) for i, raw in enumerate(raw_steps)]
        _check_sequence(rules, steps, expected)
    except ValidationError:
        raise
    except Exception as exc:  # untrusted input: convert anything unforeseen
        raise ValidationError(_K.SCHEMA_MISMATCH, f"unexpected {type(exc).__name__}: {exc}") from exc
    return SimulationResult(description=description, steps=tuple(steps))


def serialize(result: SimulationResult) -> str:
    """SimulationResult → the external text format `parse` accepts."""
    return json.dumps({
        DESCRIPTION_KEY: result.description,
        STEPS_KEY: json.dumps([s.to_dict() for s in result.steps]),
    })


# ---------------------------------------------------------------------------
# 1 + 2. Payload
# ---------------------------------------------------------------------------
def _json_constant(name: str) -> float:
    if name == "Infinity":
        return math.inf
    if name == "-Infinity":
        return -math.inf
    raise ValueError(f"{name} is not a valid value")


def _loads(text: str, what: str) -> Any:
    text = _FENCE_RE.sub("", text)
    try:
        return json.loads(text, parse_constant=_json_constant)
    except (ValueError, RecursionError) as exc:
        raise ValidationError(_K.MALFORMED_JSON, f"{what}: {exc}") from None


def _decode_payload(raw_text: Union[str, bytes]):
    if isinstance(raw_text, (bytes, bytearray)):
        try:
            raw_text = bytes(raw_text).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValidationError(_K.MALFORMED_JSON, f"response is not UTF-8: {exc}") from None
    if not isinstance(raw_text, str) or not raw_text.strip():
        raise ValidationError(_K.MALFORMED_JSON, "response is empty")

    outer = _loads(raw_text, "response")
    if not isinstance(outer, dict):
        raise ValidationError(_K.SCHEMA_MISMATCH, "response must be a JSON object")

    description = outer.get(DESCRIPTION_KEY)
    if not isinstance(description, str):
        raise ValidationError(_K.SCHEMA_MISMATCH, f"{DESCRIPTION_KEY!r} must be a string")
    if STEPS_KEY not in outer:
        raise ValidationError(_K.SCHEMA_MISMATCH, f"{STEPS_KEY!r} is missing")

    steps = outer[STEPS_KEY]
    if isinstance(steps, str):
        steps = _loads(steps, STEPS_KEY)
    if not isinstance(steps, list):
        raise ValidationError(_K.EMPTY_SEQUENCE, f"{STEPS_KEY} is not an array")
    if not steps:
        raise ValidationError(_K.EMPTY_SEQUENCE, f"{STEPS_KEY} has no steps")
    return description, steps


# ---------------------------------------------------------------------------
# 3. Per-step schema
# ---------------------------------------------------------------------------
def _parse_step(rules: ValidationRuleSet, index: int, raw: Any) -> VisualizationStep:
    if not isinstance(raw, dict):
        raise ValidationError(_K.SCHEMA_MISMATCH, f"step is {type(raw).__name__}, not an object", index)
    data = canonical_keys(raw)

    errors = sorted(rules.validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    if errors:
        first = errors[0]
        path = ".".join(str(p) for p in first.absolute_path) or "<root>"
        more = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
        raise ValidationError(_K.SCHEMA_MISMATCH, f"{path}: {first.message}{more}", index)

    try:
        return step_from_dict(rules.variant, data)
    except (ValueError, KeyError, TypeError) as exc:
        raise ValidationError(_K.SCHEMA_MISMATCH, str(exc), index) from None


# ---------------------------------------------------------------------------
# 4. Sequence invariants
# ---------------------------------------------------------------------------
def _violation(index: int, detail: str) -> ValidationError:
    return ValidationError(_K.INVARIANT_VIOLATION, detail, index)


def _check_sequence(
    rules: ValidationRuleSet,
    steps: Sequence[VisualizationStep],
    expected: Optional[FrozenSet[str]],
) -> None:
    if rules.variant is StepVariant.ARRAY:
        _check_array(rules, steps)
    elif rules.variant is StepVariant.GRAPH:
        _check_graph(rules, steps, expected)
    elif rules.variant is StepVariant.MATRIX:
        _check_matrix(steps, expected)
    else:
        _check_tree(rules, steps, expected)

    if rules.variant is not StepVariant.MATRIX:
        _check_found_at(rules, steps)


def _check_found_at(rules: ValidationRuleSet, steps: Sequence[VisualizationStep]) -> None:
    locked = None
    for i, step in enumerate(steps):
        found = step.found_at
        if rules.found_at_forbidden and found is not None:
            raise _violation(i, f"traversal step reports found_at={found!r}; it must be null")
        if locked is not None and found != locked:
            raise _violation(i, f"found_at changed from {locked!r} to {found!r}")
        if found is not None:
            locked = found


# ---- array ----------------------------------------------------------------
def _check_array(rules: ValidationRuleSet, steps: Sequence[ArrayStep]) -> None:
    n = len(steps[0].array)
    prev_sorted: Set[int] = set()
    for i, step in enumerate(steps):
        if len(step.array) != n:
            raise _violation(i, f"array length changed from {n} to {len(step.array)}")
        for v in step.array:
            if not math.isfinite(v):
                raise _violation(i, f"array holds non-finite value {v!r}")
        for name, indices in (("highlighted", step.highlighted), ("sorted", step.sorted_indices or ())):
            bad = [ix for ix in indices if not 0 <= ix < n]
            if bad:
                raise _violation(i, f"{name} index {bad[0]} is outside 0..{n - 1}")
        if step.found_at is not None and not 0 <= step.found_at < n:
            raise _violation(i, f"found_at index {step.found_at} is outside 0..{n - 1}")

        current = set(step.sorted_indices or ())
        lost = prev_sorted - current
        if lost:
            raise _violation(i, f"index {min(lost)} was sorted and is no longer")
        prev_sorted = current

    if rules.sorted_must_complete and prev_sorted != set(range(n)):
        missing = sorted(set(range(n)) - prev_sorted)
        raise _violation(len(steps) - 1, f"final step leaves indices {missing} unsorted")


# ---- shared node/edge identity -------------------------------------------
def _check_finite(index: int, what: str, value: Any) -> None:
    if value is not None and not math.isfinite(value):
        raise _violation(index, f"{what} is non-finite ({value!r})")


def _check_ids(index: int, ids: List[str], kind: str) -> Set[str]:
    seen: Set[str] = set()
    for nid in ids:
        if nid in seen:
            raise _violation(index, f"duplicate {kind} id {nid!r}")
        seen.add(nid)
    return seen


def _check_identity(index: int, ids: Set[str], edges: Counter, base_ids: Set[str], base_edges: Counter) -> None:
    if ids != base_ids:
        added = sorted(ids - base_ids)
        dropped = sorted(base_ids - ids)
        raise _violation(index, f"node ids changed (added {added}, dropped {dropped})")
    if edges != base_edges:
        raise _violation(index, "edge set differs from step 0")


def _check_expected(ids: Set[str], expected: Optional[FrozenSet[str]]) -> None:
    if expected is not None and ids != expected:
        added = sorted(ids - expected)
        dropped = sorted(expected - ids)
        raise _violation(0, f"node ids do not match the request (unknown {added}, missing {dropped})")


# ---- graph ----------------------------------------------------------------
def _check_graph(rules: ValidationRuleSet, steps: Sequence[GraphStep], expected) -> None:
    base_ids: Set[str] = set()
    base_edges: Counter = Counter()
    settled: Set[str] = set()
    included: Set[FrozenSet[str]] = set()

    for i, step in enumerate(steps):
        ids = _check_ids(i, [n.id for n in step.nodes], "node")
        edges = Counter(e.pair for e in step.edges)
        for e in step.edges:
            for end in (e.source, e.target):
                if end not in ids:
                    raise _violation(i, f"edge {e.source}-{e.target} references unknown node {end!r}")
            _check_finite(i, f"edge {e.source}-{e.target} weight", e.weight)
        for n in step.nodes:
            _check_finite(i, f"node {n.id!r} x", n.x)
            _check_finite(i, f"node {n.id!r} y", n.y)
            if n.parent is not None and n.parent not in ids:
                raise _violation(i, f"node {n.id!r} has unknown parent {n.parent!r}")
        if step.found_at is not None and step.found_at not in ids:
            raise _violation(i, f"found_at references unknown node {step.found_at!r}")

        if i == 0:
            base_ids, base_edges = ids, edges
            _check_expected(ids, expected)
        else:
            _check_identity(i, ids, edges, base_ids, base_edges)

        colors = {n.id: n.color for n in step.nodes}
        for nid in sorted(settled):
            if colors[nid] not in REVISIT_COLORS:
                raise _violation(i, f"node {nid!r} was visited and is now {colors[nid]!r}")
        settled |= {nid for nid, c in colors.items() if c in VISITED_COLORS}

        if rules.included_edges_monotonic:
            kept = {e.pair for e in step.edges if e.color in (INCLUDED_COLOR, PATH_COLOR)}
            lost = included - kept
            if lost:
                pair = sorted(next(iter(lost)))
                raise _violation(i, f"edge {'-'.join(pair)} was included and is no longer")
            included |= {e.pair for e in step.edges if e.color == INCLUDED_COLOR}


# ---- matrix ---------------------------------------------------------------
def _highlight_ref_ok(ref: Any, labels: Optional[Sequence[str]], size: int) -> bool:
    if labels is not None and str(ref) in labels:
        return True
    if isinstance(ref, int) and not isinstance(ref, bool):
        return 0 <= ref < size
    return isinstance(ref, str) and ref.isdigit() and int(ref) < size


def _check_matrix(steps: Sequence[MatrixStep], expected) -> None:
    first = steps[0]
    if expected is not None:
        if first.labels is not None:
            _check_expected(set(first.labels), expected)
        elif first.size != len(expected):
            raise _violation(0, f"matrix is {first.size}x{first.size} but the graph has {len(expected)} nodes")

    for i, step in enumerate(steps):
        if step.size != first.size:
            raise _violation(i, f"matrix size changed from {first.size} to {step.size}")
        if step.labels != first.labels:
            raise _violation(i, "matrix labels changed")
        if step.labels is not None:
            _check_ids(i, list(step.labels), "matrix label")
        hl = step.highlight
        if hl is not None:
            for name in ("k", "i", "j"):
                ref = getattr(hl, name)
                if not _highlight_ref_ok(ref, step.labels, step.size):
                    raise _violation(i, f"highlight {name}={ref!r} is not a matrix node")


# ---- tree -----------------------------------------------------------------
def _check_tree(rules: ValidationRuleSet, steps: Sequence[TreeStep], expected) -> None:
    base_ids: Set[str] = set()
    base_edges: Counter = Counter()
    base_values: Dict[str, Any] = {}
    prev_order: Counter = Counter()

    for i, step in enumerate(steps):
        ids = _check_ids(i, [n.id for n in step.nodes], "node")
        edges = Counter(frozenset((e.source, e.target)) for e in step.edges)
        for e in step.edges:
            for end in (e.source, e.target):
                if end not in ids:
                    raise _violation(i, f"edge {e.source}-{e.target} references unknown node {end!r}")
        if step.found_at is not None and step.found_at not in ids:
            raise _violation(i, f"found_at references unknown node {step.found_at!r}")

        for n in step.nodes:
            for attr in ("x", "y", "value"):
                _check_finite(i, f"node {n.id!r} {attr}", getattr(n, attr))
        for v in step.traversal_order:
            _check_finite(i, "traversalOrder entry", v)
        values = {n.id: n.value for n in step.nodes}
        if i == 0:
            base_ids, base_edges, base_values = ids, edges, values
            _check_expected(ids, expected)
        else:
            _check_identity(i, ids, edges, base_ids, base_edges)
            for nid, value in values.items():
                if value != base_values[nid]:
                    raise _violation(i, f"node {nid!r} changed value from {base_values[nid]!r} to {value!r}")

        order = Counter(step.traversal_order)
        lost = prev_order - order
        if lost:
            raise _violation(i, f"value {next(iter(lost))!r} dropped out of traversalOrder")
        prev_order = order


__all__ = ["parse", "serialize", "DESCRIPTION_KEY", "STEPS_KEY"]
