"""
algorithms/__init__.py — Algorithm Registry
=============================================
Single source of truth for every algorithm the tutor can simulate.

    from algorithms import REGISTRY, get_algorithm

REGISTRY is a dict keyed by (family, name):
    {
        (AlgorithmFamily.GRAPH, "Dijkstra's"): AlgorithmDescriptor(...),
        …
    }

The key has to include the family: "Binary Search" exists both as an
array search and as a binary-search-tree lookup, with different step
shapes.

Descriptors are frozen and built once at import.  The request builder
reads the requires_* flags, the parser reads the role, and the UI reads
label / complexity / description.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from algorithms.family import AlgorithmFamily, AlgorithmRole


# ---------------------------------------------------------------------------
# AlgorithmDescriptor: metadata card for each algorithm
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class AlgorithmDescriptor:
    name:            str                  # wire name sent to the model, e.g. "Dijkstra's"
    family:          AlgorithmFamily
    role:            AlgorithmRole
    requires_start:  bool = False
    requires_end:    bool = False
    requires_target: bool = False
    label:           str  = ""            # human label, e.g. "Dijkstra's Algorithm"
    complexity_time: str  = ""            # e.g. "O((V + E) log V)"
    description:     str  = ""            # one-liner for the UI card

    @property
    def key(self) -> str:
        """URL/DOM-safe key, e.g. "dijkstra_s"."""
        cleaned = "".join(ch.lower() if ch.isalnum() else "_" for ch in self.name)
        return "_".join(part for part in cleaned.split("_") if part)

    @property
    def display_label(self) -> str:
        return self.label or self.name


_A = AlgorithmFamily.ARRAY
_G = AlgorithmFamily.GRAPH
_T = AlgorithmFamily.TREE
_R = AlgorithmRole

_DESCRIPTORS: List[AlgorithmDescriptor] = [
    # ---- array ----
    AlgorithmDescriptor("Bubble Sort", _A, _R.SORT, complexity_time="O(n²)",
                        description="Repeatedly swaps adjacent out-of-order pairs."),
    AlgorithmDescriptor("Selection Sort", _A, _R.SORT, complexity_time="O(n²)",
                        description="Selects the minimum of the unsorted suffix each pass."),
    AlgorithmDescriptor("Insertion Sort", _A, _R.SORT, complexity_time="O(n²)",
                        description="Grows a sorted prefix one element at a time."),
    AlgorithmDescriptor("Merge Sort", _A, _R.SORT, complexity_time="O(n log n)",
                        description="Splits in halves, sorts them, merges the results."),
    AlgorithmDescriptor("Quick Sort", _A, _R.SORT, complexity_time="O(n log n) avg",
                        description="Partitions around a pivot, recurses on both sides."),
    AlgorithmDescriptor("Linear Search", _A, _R.SEARCH, requires_target=True,
                        complexity_time="O(n)",
                        description="Scans left to right until the target appears."),
    AlgorithmDescriptor("Binary Search", _A, _R.SEARCH, requires_target=True,
                        complexity_time="O(log n)",
                        description="Halves a sorted range around the middle element."),

    # ---- graph ----
    AlgorithmDescriptor("BFS", _G, _R.TRAVERSAL, requires_start=True,
                        label="Breadth-First Search", complexity_time="O(V + E)",
                        description="Explores layer-by-layer from the start node."),
    AlgorithmDescriptor("DFS", _G, _R.TRAVERSAL, requires_start=True,
                        label="Depth-First Search", complexity_time="O(V + E)",
                        description="Dives deep before backtracking."),
    AlgorithmDescriptor("Dijkstra's", _G, _R.SHORTEST_PATH, requires_start=True, requires_end=True,
                        label="Dijkstra's Algorithm", complexity_time="O((V + E) log V)",
                        description="Greedily settles the closest node. Non-negative weights."),
    AlgorithmDescriptor("Bellman-Ford", _G, _R.SHORTEST_PATH, requires_start=True,
                        label="Bellman-Ford Algorithm", complexity_time="O(V · E)",
                        description="Relaxes every edge |V| - 1 times. Handles negative edges."),
    AlgorithmDescriptor("Kruskal's", _G, _R.MST,
                        label="Kruskal's Algorithm", complexity_time="O(E log E)",
                        description="Adds the cheapest edge that does not close a cycle."),
    AlgorithmDescriptor("Floyd-Warshall", _G, _R.ALL_PAIRS_SHORTEST_PATH,
                        label="Floyd-Warshall Algorithm", complexity_time="O(V³)",
                        description="All-pairs shortest paths. Watch the matrix evolve."),

    # ---- tree ----
    AlgorithmDescriptor("In-order Traversal", _T, _R.TRAVERSAL, complexity_time="O(n)",
                        description="Left subtree, node, right subtree."),
    AlgorithmDescriptor("Pre-order Traversal", _T, _R.TRAVERSAL, complexity_time="O(n)",
                        description="Node, left subtree, right subtree."),
    AlgorithmDescriptor("Post-order Traversal", _T, _R.TRAVERSAL, complexity_time="O(n)",
                        description="Left subtree, right subtree, node."),
    AlgorithmDescriptor("Binary Search", _T, _R.SEARCH, requires_target=True,
                        label="Binary Search Tree Lookup", complexity_time="O(h)",
                        description="Walks down comparing against the target."),
]


# ---------------------------------------------------------------------------
# THE REGISTRY
# ---------------------------------------------------------------------------
REGISTRY: Dict[Tuple[AlgorithmFamily, str], AlgorithmDescriptor] = {
    (d.family, d.name): d for d in _DESCRIPTORS
}


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------
def get_algorithm(family: AlgorithmFamily, name: str) -> Optional[AlgorithmDescriptor]:
    """Return the descriptor by exact name or key within a family, or None."""
    name = (name or "").strip()
    found = REGISTRY.get((family, name))
    if found is not None:
        return found
    for d in _DESCRIPTORS:
        if d.family == family and (d.key == name or d.name.lower() == name.lower()):
            return d
    return None


def find_families(name: str) -> List[AlgorithmFamily]:
    """Families in which an algorithm called `name` is registered."""
    return [fam for (fam, n) in REGISTRY if n == name]


def list_algorithms(family: Optional[AlgorithmFamily] = None) -> List[AlgorithmDescriptor]:
    """All registered algorithms in insertion order, optionally for one family."""
    return [d for d in _DESCRIPTORS if family is None or d.family == family]


__all__ = [
    "AlgorithmFamily",
    "AlgorithmRole",
    "AlgorithmDescriptor",
    "REGISTRY",
    "get_algorithm",
    "find_families",
    "list_algorithms",
]
