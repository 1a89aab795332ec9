"""
prompts.py — Model Instructions
================================
Builds the text prompt for a SimulationRequest and for the tutor.

A simulation prompt has four parts:
    1. Role line for the family
    2. The structured request fields (algorithmName, array / graphData / ...)
    3. The step shape + sequence rules from the algorithm's ValidationRuleSet
    4. Algorithm-specific guidance and the output envelope

The parser enforces the same rules the prompt states, so the two must be
kept in step.
"""

import json
from typing import Dict

from algorithms import AlgorithmFamily
from algorithms.schema import rules_for
from engine.builder import SimulationRequest

# ---------------------------------------------------------------------------
# Family preambles
# ---------------------------------------------------------------------------
_ROLE_LINE: Dict[AlgorithmFamily, str] = {
    AlgorithmFamily.ARRAY: "You are an expert in algorithms and data structures.",
    AlgorithmFamily.GRAPH: "You are an expert in graph algorithms.",
    AlgorithmFamily.TREE:  "You are an expert in data structures, specializing in binary trees.",
}

_LAYOUT_HINT: Dict[AlgorithmFamily, str] = {
    AlgorithmFamily.ARRAY: "",
    AlgorithmFamily.GRAPH: (
        "Give every node 'x' (0-500) and 'y' (0-550) coordinates for a readable layout "
        "without overlaps, and keep the same coordinates in every step."
    ),
    AlgorithmFamily.TREE: (
        "Give every node 'x' and 'y' coordinates on a 500x400 canvas: root at the top centre, "
        "children below their parent, left child to the left. Use exactly the \"id\" values "
        "given in the tree data."
    ),
}

# ---------------------------------------------------------------------------
# Per-algorithm guidance (keyed by wire name)
# ---------------------------------------------------------------------------
_GUIDANCE: Dict[str, str] = {
    "Bubble Sort": "Highlight the pair being compared; after each pass the largest unsorted element joins \"sorted\".",
    "Selection Sort": "Highlight the current minimum candidate and the scan position; the selected slot joins \"sorted\".",
    "Insertion Sort": "Highlight the element being inserted and the slot it is compared with.",
    "Merge Sort": "Show each merge writing back into the array; highlight the two elements being compared.",
    "Quick Sort": "Highlight the pivot and the scanning indices; a pivot in its final slot joins \"sorted\".",
    "Linear Search": "Highlight one index per step, left to right. Stop at the first match.",
    "Binary Search": "Highlight low, mid and high. The array is assumed sorted.",
    "BFS": (
        "This is a full traversal, not a search. Visit every node reachable from the start node "
        "level by level, marking the current node 'active' and processed nodes 'visited'."
    ),
    "DFS": (
        "This is a full traversal, not a search. Go as deep as possible along each branch "
        "before backtracking, until every reachable node is 'visited'."
    ),
    "Dijkstra's": (
        "Start with distance 0 at the start node and \"Infinity\" elsewhere, parents null. "
        "Each step makes the closest unvisited node 'active', relaxes its edges (updating distance and "
        "parent), then marks it 'visited'. The final step traces parents back from the end node and "
        "colours that path 'path'. Example: with edges A-C:9, C-F:2, F-E:9 the path A -> C -> F -> E "
        "costs 20."
    ),
    "Bellman-Ford": (
        "Step 0 is initialisation (start 0, others \"Infinity\"). Then exactly |V| - 1 steps, one per "
        "full pass over every edge, shown after the pass. The final step colours the shortest path to "
        "the end node (if given) 'path' and states its total weight."
    ),
    "Kruskal's": (
        "Consider edges in increasing weight order: the candidate edge is 'active', then becomes "
        "'included' if it joins two components or 'discarded' if it would close a cycle."
    ),
    "Floyd-Warshall": (
        "Step 0 is the initial matrix (0 on the diagonal, edge weights, \"Infinity\" otherwise). "
        "Each later step shows the matrix after considering intermediate node k for a pair (i, j)."
    ),
    "In-order Traversal": "Left child, node, right child. A node is 'visited' only when its value joins traversalOrder.",
    "Pre-order Traversal": "Node, left child, right child. A node is 'visited' only when its value joins traversalOrder.",
    "Post-order Traversal": "Left child, right child, node. A node is 'visited' only when its value joins traversalOrder.",
}

_TREE_SEARCH_GUIDANCE = (
    "Walk down from the root comparing against the target: the compared node is 'active', nodes "
    "already passed are 'path'. When found, set found_at to its id and colour it 'accent'. If absent, "
    "end after the last comparison with found_at null."
)

_ENVELOPE = """\
Respond with ONE JSON object and nothing else:
{
  "simulationDescription": "<plain-text walkthrough of the whole run>",
  "visualizationData": "<a JSON-encoded string holding the array of step objects>"
}
visualizationData must be a string that JSON.parse can read, with inner quotes escaped.
Cover the run from the initial state to the final state."""


def _request_lines(request: SimulationRequest) -> str:
    labels = {
        "algorithmName": "Algorithm Name",
        "array":         "Array",
        "graphData":     "Graph Data",
        "treeData":      "Tree Data",
        "startNode":     "Start Node",
        "endNode":       "End Node",
        "target":        "Target",
    }
    lines = []
    for key, value in request.to_model_fields().items():
        if not isinstance(value, str):
            value = json.dumps(value)
        lines.append(f"{labels.get(key, key)}: {value}")
    return "\n".join(lines)


def build_simulation_prompt(request: SimulationRequest) -> str:
    algo = request.algorithm
    rules = rules_for(algo.family, algo.role)
    if algo.family is AlgorithmFamily.TREE and algo.requires_target:
        guidance = _TREE_SEARCH_GUIDANCE
    else:
        guidance = _GUIDANCE.get(algo.name, "")

    sections = [
        f"{_ROLE_LINE[request.family]} Generate a step-by-step simulation of the algorithm below. "
        "You MUST follow the algorithm's steps precisely.",
        _request_lines(request),
        "Step format:\n" + rules.describe(),
    ]
    if _LAYOUT_HINT[request.family]:
        sections.append(_LAYOUT_HINT[request.family])
    if guidance:
        sections.append(f"{algo.name}: {guidance}")
    sections.append(_ENVELOPE)
    return "\n\n".join(sections)


# ---------------------------------------------------------------------------
# Tutor
# ---------------------------------------------------------------------------
TUTOR_TEMPLATE = """\
You are an AI tutor who gives step-by-step explanations of student questions.

Subject: {subject}
Question: {question}

First decide what the student most needs: the core idea, a worked example, and code where it helps.
Then answer with a detailed step-by-step explanation tailored to the question and subject.

Format the whole answer in Markdown, using headings, lists, bold text and code blocks where they help."""


def build_tutor_prompt(subject: str, question: str) -> str:
    return TUTOR_TEMPLATE.format(subject=subject.strip(), question=question.strip())


__all__ = ["build_simulation_prompt", "build_tutor_prompt", "TUTOR_TEMPLATE"]
