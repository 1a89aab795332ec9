import json

import pytest

from engine.errors import TransportError

BUBBLE_INPUT = [5, 2, 8, 1, 9, 4]

DIJKSTRA_GRAPH = {
    "nodes": [{"id": "A"}, {"id": "C"}, {"id": "F"}, {"id": "E"}],
    "edges": [
        {"source": "A", "target": "C", "weight": 9},
        {"source": "C", "target": "F", "weight": 2},
        {"source": "F", "target": "E", "weight": 9},
    ],
}

SMALL_TREE = {"value": 10, "left": {"value": 5}, "right": {"value": 15}}


def envelope(steps, description="Simulation.", as_string=True):
    data = json.dumps(steps) if as_string else steps
    return json.dumps({"simulationDescription": description, "visualizationData": data})


# ---------------------------------------------------------------------------
# Step builders
# ---------------------------------------------------------------------------
def bubble_sort_steps(values):
    arr = list(values)
    n = len(arr)
    done = []
    steps = [{"array": list(arr), "highlighted": [], "sorted": [], "stepDescription": "Initial array."}]
    for end in range(n - 1, 0, -1):
        for j in range(end):
            if arr[j] > arr[j + 1]:
                arr[j], arr[j + 1] = arr[j + 1], arr[j]
            steps.append({"array": list(arr), "highlighted": [j, j + 1], "sorted": list(done),
                          "stepDescription": f"Compare {j} and {j + 1}."})
        done = done + [end]
        steps.append({"array": list(arr), "highlighted": [], "sorted": list(done),
                      "stepDescription": f"Index {end} is in place."})
    steps.append({"array": list(arr), "highlighted": [], "sorted": list(range(n)),
                  "stepDescription": "Array is sorted."})
    return steps


_POS = {"A": (50, 150), "C": (200, 60), "F": (350, 150), "E": (450, 300)}
_WEIGHTS = {("A", "C"): 9, ("C", "F"): 2, ("F", "E"): 9}


def _graph_step(colors, dists, parents, edge_colors=None, description=""):
    edge_colors = edge_colors or {}
    return {
        "nodes": [
            {"id": nid, "x": _POS[nid][0], "y": _POS[nid][1], "color": colors.get(nid, "default"),
             "distance": dists.get(nid, "Infinity"), "parent": parents.get(nid)}
            for nid in ("A", "C", "F", "E")
        ],
        "edges": [
            {"source": s, "target": t, "weight": w, "color": edge_colors.get((s, t), "default")}
            for (s, t), w in _WEIGHTS.items()
        ],
        "stepDescription": description,
    }


def dijkstra_steps():
    path_edges = {pair: "path" for pair in _WEIGHTS}
    return [
        _graph_step({"A": "active"}, {"A": 0}, {}, description="Start at A."),
        _graph_step({"A": "visited", "C": "active"}, {"A": 0, "C": 9}, {"C": "A"},
                    {("A", "C"): "active"}, "Relax A-C."),
        _graph_step({"A": "visited", "C": "visited", "F": "active"}, {"A": 0, "C": 9, "F": 11},
                    {"C": "A", "F": "C"}, {("C", "F"): "active"}, "Relax C-F."),
        _graph_step({"A": "visited", "C": "visited", "F": "visited", "E": "active"},
                    {"A": 0, "C": 9, "F": 11, "E": 20}, {"C": "A", "F": "C", "E": "F"},
                    {("F", "E"): "active"}, "Relax F-E."),
        _graph_step({"A": "path", "C": "path", "F": "path", "E": "path"},
                    {"A": 0, "C": 9, "F": 11, "E": 20}, {"C": "A", "F": "C", "E": "F"},
                    path_edges, "Shortest path A -> C -> F -> E, total 20."),
    ]


_TREE_POS = {"root": (250, 50, 10), "root.L": (150, 150, 5), "root.R": (350, 150, 15)}


def _tree_step(colors, order, description=""):
    return {
        "nodes": [
            {"id": nid, "value": v, "x": x, "y": y, "color": colors.get(nid, "default")}
            for nid, (x, y, v) in _TREE_POS.items()
        ],
        "edges": [{"source": "root", "target": "root.L"}, {"source": "root", "target": "root.R"}],
        "traversalOrder": order,
        "found_at": None,
        "stepDescription": description,
    }


def inorder_steps():
    return [
        _tree_step({"root": "active"}, [], "Start at the root."),
        _tree_step({"root.L": "active"}, [], "Go left to 5."),
        _tree_step({"root.L": "visited"}, [5], "Visit 5."),
        _tree_step({"root.L": "visited", "root": "visited"}, [5, 10], "Visit 10."),
        _tree_step({"root.L": "visited", "root": "visited", "root.R": "visited"}, [5, 10, 15], "Visit 15."),
    ]


def bst_search_steps():
    """Look up 15: root, then right child, found at root.R."""
    steps = [
        _tree_step({"root": "active"}, [], "Compare 15 with 10."),
        _tree_step({"root": "path", "root.R": "active"}, [], "15 > 10, go right."),
        _tree_step({"root": "path", "root.R": "accent"}, [], "Found 15."),
    ]
    steps[2]["found_at"] = "root.R"
    return steps


def linear_search_steps():
    """Look for 7 in [4, 7, 9]."""
    return [
        {"array": [4, 7, 9], "highlighted": [0], "found_at": None, "stepDescription": "4 is not 7."},
        {"array": [4, 7, 9], "highlighted": [1], "found_at": 1, "stepDescription": "Found 7 at index 1."},
        {"array": [4, 7, 9], "highlighted": [], "found_at": 1, "stepDescription": "Search complete."},
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def bubble_response():
    return envelope(bubble_sort_steps(BUBBLE_INPUT), "Bubble sort on [5, 2, 8, 1, 9, 4].")


@pytest.fixture
def dijkstra_response():
    return envelope(dijkstra_steps(), "Dijkstra from A to E.")


@pytest.fixture
def inorder_response():
    return envelope(inorder_steps(), "In-order traversal.")


class FakeBackend:
    """Replays canned responses; an Exception instance in the queue is raised."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.questions = []

    def generate_simulation(self, request):
        self.requests.append(request)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def explain(self, subject, question):
        self.questions.append((subject, question))
        if self.responses and isinstance(self.responses[0], Exception):
            raise self.responses.pop(0)
        return f"## {subject}\n\n1. Think about **{question}**."


@pytest.fixture
def fake_backend():
    return FakeBackend


@pytest.fixture
def transport_failure():
    return TransportError("quota exceeded")
