import json

import pytest

import main
from engine.errors import PLAYBACK_MESSAGE, TRANSPORT_MESSAGE, VALIDATION_MESSAGE
from engine.session import SessionStore, SimulationSession
from tests.conftest import DIJKSTRA_GRAPH, SMALL_TREE, FakeBackend, dijkstra_steps, envelope

TRUNCATED = json.dumps({"simulationDescription": "x", "visualizationData": '[{"array": [1, 2], "highl'})


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def client(backend):
    main.app.config.update(TESTING=True, SIMULATION_BACKEND=backend)
    with main.app.test_client() as c:
        yield c
    main.app.config["SIMULATION_BACKEND"] = None


def run_bubble(client):
    return client.post("/api/array/simulate", json={"algorithm": "Bubble Sort", "array": "5, 2, 8, 1, 9, 4"})


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------
def test_pages_render(client):
    assert client.get("/").status_code == 200
    for family in ("array", "graph", "tree"):
        res = client.get(f"/simulations/{family}")
        assert res.status_code == 200
        assert b'id="sim-form"' in res.data


def test_unknown_family_is_404(client):
    assert client.get("/simulations/heap").status_code == 404
    assert client.post("/api/heap/simulate", json={}).status_code == 404


def test_algorithm_listing_filters_by_family(client):
    names = [a["name"] for a in client.get("/api/algorithms?family=graph").get_json()]
    assert "Dijkstra's" in names and "Bubble Sort" not in names
    assert len(client.get("/api/algorithms").get_json()) == 17


# ---------------------------------------------------------------------------
# Simulate
# ---------------------------------------------------------------------------
def test_simulate_loads_step_zero(client, backend, bubble_response):
    backend.responses.append(bubble_response)
    data = run_bubble(client).get_json()
    assert data["ready"] is True
    assert data["index"] == 0
    assert data["algorithm"] == "Bubble Sort"
    assert data["step"]["array"] == [5, 2, 8, 1, 9, 4]
    assert "<svg" in data["svg"]
    assert data["metrics"]["sorted_count"] == 6


def test_simulate_input_error_is_400(client, backend):
    res = client.post("/api/array/simulate", json={"algorithm": "Linear Search", "array": "1,2", "target": ""})
    assert res.status_code == 400
    assert res.get_json()["field"] == "target"
    assert backend.requests == []


def test_simulate_rejected_response_is_502(client, backend, bubble_response):
    backend.responses.extend([bubble_response, TRUNCATED])
    run_bubble(client)
    res = run_bubble(client)
    assert res.status_code == 502
    data = res.get_json()
    assert data["error"] == VALIDATION_MESSAGE
    assert data["ready"] is False


def test_simulate_transport_error_is_502(client, backend, transport_failure):
    backend.responses.append(transport_failure)
    res = run_bubble(client)
    assert res.status_code == 502
    assert res.get_json()["error"] == TRANSPORT_MESSAGE


def test_graph_simulation_includes_preview(client, backend, dijkstra_response):
    backend.responses.append(dijkstra_response)
    res = client.post("/api/graph/simulate", json={
        "algorithm": "Dijkstra's", "graphData": json.dumps(DIJKSTRA_GRAPH), "startNode": "A", "endNode": "E",
    })
    data = res.get_json()
    assert res.status_code == 200
    assert "<svg" in data["preview"]
    assert data["step"]["nodes"][3]["distance"] == "Infinity"
    assert data["metrics"]["path"] == ["A", "C", "F", "E"]


def test_tree_simulation(client, backend, inorder_response):
    backend.responses.append(inorder_response)
    res = client.post("/api/tree/simulate", json={
        "algorithm": "In-order Traversal", "treeData": json.dumps(SMALL_TREE),
    })
    assert res.status_code == 200
    assert res.get_json()["total"] == 5


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------
@pytest.mark.parametrize("move", ["next", "prev", "rewind", "end"])
def test_navigation_before_a_run_is_409(client, move):
    res = client.post(f"/api/array/step/{move}")
    assert res.status_code == 409
    assert res.get_json()["error"] == PLAYBACK_MESSAGE


def test_navigation_moves_and_clamps(client, backend, bubble_response):
    backend.responses.append(bubble_response)
    total = run_bubble(client).get_json()["total"]

    assert client.post("/api/array/step/next").get_json()["index"] == 1
    assert client.post("/api/array/step/prev").get_json()["index"] == 0
    assert client.post("/api/array/step/prev").get_json()["index"] == 0
    assert client.post("/api/array/step/goto", json={"index": 10 ** 6}).get_json()["index"] == total - 1
    assert client.post("/api/array/step/goto", json={"index": -4}).get_json()["at_start"] is True
    assert client.post("/api/array/step/end").get_json()["at_end"] is True
    assert client.post("/api/array/step/rewind").get_json()["index"] == 0


def test_goto_requires_integer(client, backend, bubble_response):
    backend.responses.append(bubble_response)
    run_bubble(client)
    assert client.post("/api/array/step/goto", json={"index": "two"}).status_code == 400


def test_panels_are_independent_per_family(client, backend, bubble_response):
    backend.responses.append(bubble_response)
    run_bubble(client)
    assert client.get("/api/array/state").get_json()["ready"] is True
    assert client.get("/api/graph/state").get_json()["ready"] is False


def test_reset_clears_panel(client, backend, bubble_response):
    backend.responses.append(bubble_response)
    run_bubble(client)
    data = client.post("/api/array/reset").get_json()
    assert data["state"] == "empty"
    assert client.post("/api/array/step/next").status_code == 409


# ---------------------------------------------------------------------------
# Tutor
# ---------------------------------------------------------------------------
def test_tutor_returns_markdown(client, backend):
    res = client.post("/api/tutor", json={"subject": "Graphs", "question": "What is BFS?"})
    assert res.status_code == 200
    assert res.get_json()["explanation"].startswith("## Graphs")
    assert backend.questions == [("Graphs", "What is BFS?")]


def test_tutor_requires_both_fields(client):
    assert client.post("/api/tutor", json={"subject": "Graphs"}).status_code == 400


def test_tutor_transport_error_is_502(client, backend, transport_failure):
    backend.responses.append(transport_failure)
    res = client.post("/api/tutor", json={"subject": "Graphs", "question": "Why?"})
    assert res.status_code == 502
    assert res.get_json()["error"] == TRANSPORT_MESSAGE


def test_store_stays_bounded_across_fresh_clients(monkeypatch, backend):
    bounded = SessionStore(lambda family: SimulationSession(family, backend), max_sessions=5)
    monkeypatch.setattr(main, "store", bounded)
    main.app.config["TESTING"] = True
    for _ in range(40):
        assert main.app.test_client().get("/api/array/state").status_code == 200
    assert len(bounded) == 5


def test_infinite_coordinates_are_rejected_before_display(client, backend):
    steps = dijkstra_steps()
    steps[1]["nodes"][0]["x"] = float("inf")
    backend.responses.append(envelope(steps))
    res = client.post("/api/graph/simulate", json={
        "algorithm": "Dijkstra's", "graphData": json.dumps(DIJKSTRA_GRAPH), "startNode": "A", "endNode": "E",
    })
    assert res.status_code == 502
    assert res.get_json()["error"] == VALIDATION_MESSAGE
    json.loads(res.get_data(as_text=True), parse_constant=pytest.fail)


def test_optional_end_node_reaches_the_model(client, backend, dijkstra_response):
    backend.responses.append(dijkstra_response)
    res = client.post("/api/graph/simulate", json={
        "algorithm": "Bellman-Ford", "graphData": json.dumps(DIJKSTRA_GRAPH), "startNode": "A", "endNode": "E",
    })
    assert res.status_code == 200
    assert backend.requests[-1].end == "E"
    assert res.get_json()["metrics"]["path"] == ["A", "C", "F", "E"]
