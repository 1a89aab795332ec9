"""
structures/
-----------
Input data layer: what the user typed, parsed and checked.  Public API:

    from structures import Graph, Node, Edge
    from structures import TreeNode
    from structures import parse_number_list, parse_number
"""

from structures.node  import Node
from structures.edge  import Edge
from structures.graph import Graph
from structures.tree  import TreeNode, ROOT_ID, MAX_TREE_DEPTH
from structures.array import parse_number_list, parse_number, is_number

__all__ = [
    "Node",
    "Edge",
    "Graph",
    "TreeNode",
    "ROOT_ID",
    "MAX_TREE_DEPTH",
    "parse_number_list",
    "parse_number",
    "is_number",
]
