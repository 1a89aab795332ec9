"""
family.py — Algorithm Families & Roles
=======================================
The two closed enums every other layer keys off.

    AlgorithmFamily  – which step shape applies (array / graph / tree)
    AlgorithmRole    – what the algorithm is *for*; decides which
                       sequence-level checks the parser runs
"""

from enum import Enum


class AlgorithmFamily(Enum):
    ARRAY = "array"
    GRAPH = "graph"
    TREE  = "tree"

    @classmethod
    def parse(cls, value: str) -> "AlgorithmFamily":
        """Case-insensitive lookup used by the web routes."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise LookupError(f"Unknown algorithm family: {value!r}") from None


class AlgorithmRole(Enum):
    SORT                    = "sort"
    SEARCH                  = "search"
    TRAVERSAL               = "traversal"
    SHORTEST_PATH           = "shortest_path"
    MST                     = "mst"
    ALL_PAIRS_SHORTEST_PATH = "all_pairs_shortest_path"


__all__ = ["AlgorithmFamily", "AlgorithmRole"]
