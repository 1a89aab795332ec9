from algorithms import AlgorithmFamily, AlgorithmRole
from engine.analytics import compute_metrics
from engine.parser import parse
from tests.conftest import dijkstra_steps, envelope, inorder_steps

F = AlgorithmFamily
R = AlgorithmRole


def test_sort_metrics(bubble_response):
    metrics = compute_metrics(parse(F.ARRAY, R.SORT, bubble_response))
    assert metrics.final_array == [1, 2, 4, 5, 8, 9]
    assert metrics.sorted_count == 6
    assert metrics.found_at is None
    assert not metrics.path_found


def test_shortest_path_metrics(dijkstra_response):
    result = parse(F.GRAPH, R.SHORTEST_PATH, dijkstra_response)
    metrics = compute_metrics(result, start="A", end="E")
    assert metrics.path == ["A", "C", "F", "E"]
    assert metrics.path_cost == 20
    assert metrics.nodes_visited == 4
    assert metrics.total_steps == len(result)


def test_path_is_oriented_from_end_without_start(dijkstra_response):
    metrics = compute_metrics(parse(F.GRAPH, R.SHORTEST_PATH, dijkstra_response), end="A")
    assert metrics.path == ["E", "F", "C", "A"]


def test_path_head_falls_back_to_parentless_endpoint(dijkstra_response):
    metrics = compute_metrics(parse(F.GRAPH, R.SHORTEST_PATH, dijkstra_response))
    assert metrics.path[0] == "A"


def test_mst_metrics():
    steps = dijkstra_steps()[:3]
    for step in steps:
        for node in step["nodes"]:
            node["color"] = "default"
        for edge in step["edges"]:
            edge["color"] = "default"
    steps[1]["edges"][1]["color"] = "included"
    steps[2]["edges"][1]["color"] = "included"
    steps[2]["edges"][0]["color"] = "included"
    metrics = compute_metrics(parse(F.GRAPH, R.MST, envelope(steps)))
    assert metrics.mst_edges == 2
    assert metrics.mst_weight == 11
    assert metrics.path == []


def test_tree_traversal_metrics():
    metrics = compute_metrics(parse(F.TREE, R.TRAVERSAL, envelope(inorder_steps())))
    assert metrics.traversal_order == [5, 10, 15]
    assert metrics.to_dict()["path_found"] is False
