import json

from algorithms import AlgorithmFamily, AlgorithmRole
from engine.analytics import compute_metrics
from engine.parser import parse
from engine.stepper import Stepper
from structures import Graph, TreeNode
from tests.conftest import DIJKSTRA_GRAPH, SMALL_TREE, bubble_sort_steps, envelope
from ui import (
    algorithm_selector,
    analytics_panel,
    error_banner,
    explanation_panel,
    playback_controls,
    render_graph_preview,
    render_step,
    render_tree_preview,
)

F = AlgorithmFamily
R = AlgorithmRole


def test_graph_step_shows_infinity(dijkstra_response):
    svg = render_step(parse(F.GRAPH, R.SHORTEST_PATH, dijkstra_response).steps[0])
    assert svg.startswith("<svg")
    assert "∞" in svg
    assert 'data-id="E"' in svg


def test_matrix_step_renders_labels():
    steps = [{"distanceMatrix": [["", "A", "B"], ["A", 0, "Infinity"], ["B", 4, 0]],
              "highlight": None, "stepDescription": "Initial."}]
    svg = render_step(parse(F.GRAPH, R.ALL_PAIRS_SHORTEST_PATH, envelope(steps)).steps[0])
    assert ">A<" in svg and "∞" in svg


def test_model_text_is_escaped():
    html = explanation_panel("<script>alert(1)</script>", "overview & more")
    assert "<script>" not in html
    assert "&lt;script&gt;" in html and "&amp;" in html
    assert "<script>" not in error_banner("<script>")
    assert error_banner(None) == ""


def test_previews_render_every_node():
    graph = Graph.from_json(json.dumps(DIJKSTRA_GRAPH))
    assert render_graph_preview(graph).count('class="node ') == 4
    tree = TreeNode.from_dict(SMALL_TREE)
    assert 'data-id="root.R"' in render_tree_preview(tree)


def test_playback_controls_disable_at_ends():
    assert 'id="btn-next"' not in playback_controls(None)
    stepper = Stepper()
    stepper.load(parse(F.ARRAY, R.SORT, envelope(bubble_sort_steps([2, 1]))), stepper.begin_request())
    html = playback_controls(stepper.snapshot())
    assert 'title="Rewind to start" disabled' in html
    assert 'title="Next step" >' in html
    assert 'id="current-step">1<' in html
    stepper.jump_to_end()
    assert "FINISHED" in playback_controls(stepper.snapshot())


def test_selector_lists_family_algorithms():
    html = algorithm_selector(F.TREE, "Binary Search")
    assert "In-order Traversal" in html
    assert "Bubble Sort" not in html


def test_analytics_panel_shows_sort_summary(bubble_response):
    html = analytics_panel(compute_metrics(parse(F.ARRAY, R.SORT, bubble_response)))
    assert "6 / 6" in html
    assert "Run a simulation" in analytics_panel(None)


def test_shortest_paths_offer_an_end_node():
    html = algorithm_selector(F.GRAPH)
    assert 'value="Bellman-Ford" data-needs="start,end"' in html
    assert 'value="Kruskal&#39;s" data-needs=""' in html
