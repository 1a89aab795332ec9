import json
from types import SimpleNamespace
from unittest import mock

import pytest

from algorithms import AlgorithmFamily
from config import Settings
from engine.builder import build
from engine.errors import TransportError
from llm.gemini_client import JSON_MIME_TYPE, GeminiClient, extract_text
from llm.prompts import build_simulation_prompt, build_tutor_prompt
from tests.conftest import DIJKSTRA_GRAPH

SETTINGS = Settings.from_env({"GEMINI_API_KEY": "test-key", "GEMINI_MODEL": "gemini-test"})


class BlockedResponse:
    """`.text` raises when the only candidate was blocked."""

    candidates = [SimpleNamespace(content=SimpleNamespace(parts=[]), finish_reason=SimpleNamespace(name="SAFETY"))]

    @property
    def text(self):
        raise ValueError("response was blocked")


@pytest.fixture
def genai():
    with mock.patch("llm.gemini_client.genai") as fake:
        yield fake


@pytest.fixture
def sort_request():
    return build(AlgorithmFamily.ARRAY, "Bubble Sort", {"array": "5, 2, 8"})


# ---------------------------------------------------------------------------
# extract_text
# ---------------------------------------------------------------------------
def test_extract_text_shapes():
    assert extract_text(SimpleNamespace(text="  hi ")) == "hi"
    assert extract_text({"text": "hello"}) == "hello"
    assert extract_text({"candidates": [{"content": {"parts": [{"text": "a"}, {"text": "b"}]}}]}) == "a\nb"
    parts = [SimpleNamespace(text="x"), SimpleNamespace(text="y")]
    resp = SimpleNamespace(text="", candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))])
    assert extract_text(resp) == "x\ny"
    assert extract_text(None) == ""
    assert extract_text(BlockedResponse()) == ""


# ---------------------------------------------------------------------------
# GeminiClient
# ---------------------------------------------------------------------------
def test_missing_api_key_is_refused(genai):
    with pytest.raises(RuntimeError):
        GeminiClient(Settings.from_env({}))
    genai.configure.assert_not_called()


def test_simulation_asks_for_json(genai, sort_request):
    model = genai.GenerativeModel.return_value
    model.generate_content.return_value = SimpleNamespace(text='{"simulationDescription": ""}')

    client = GeminiClient(SETTINGS)
    assert client.generate_simulation(sort_request) == '{"simulationDescription": ""}'

    genai.configure.assert_called_once_with(api_key="test-key")
    genai.GenerativeModel.assert_called_once_with("gemini-test")
    prompt, = model.generate_content.call_args.args
    config = model.generate_content.call_args.kwargs["generation_config"]
    assert config["response_mime_type"] == JSON_MIME_TYPE
    assert config["temperature"] == SETTINGS.gemini_temperature
    assert "Bubble Sort" in prompt and "[5, 2, 8]" in prompt


def test_provider_exception_becomes_transport_error(genai, sort_request):
    genai.GenerativeModel.return_value.generate_content.side_effect = RuntimeError("429 quota")
    with pytest.raises(TransportError):
        GeminiClient(SETTINGS).generate_simulation(sort_request)


def test_empty_reply_becomes_transport_error(genai, sort_request):
    genai.GenerativeModel.return_value.generate_content.return_value = BlockedResponse()
    with pytest.raises(TransportError) as info:
        GeminiClient(SETTINGS).generate_simulation(sort_request)
    assert "SAFETY" in str(info.value)


def test_explain_returns_markdown_without_json_mode(genai):
    model = genai.GenerativeModel.return_value
    model.generate_content.return_value = SimpleNamespace(text="## Stacks\n1. Push.")
    assert GeminiClient(SETTINGS).explain("Stacks", "What is push?") == "## Stacks\n1. Push."
    config = model.generate_content.call_args.kwargs["generation_config"]
    assert "response_mime_type" not in config


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------
def test_graph_prompt_carries_ids_and_rules():
    request = build(AlgorithmFamily.GRAPH, "Dijkstra's", {
        "graphData": json.dumps(DIJKSTRA_GRAPH), "startNode": "A", "endNode": "E",
    })
    prompt = build_simulation_prompt(request)
    assert "Start Node: A" in prompt and "End Node: E" in prompt
    assert "simulationDescription" in prompt and "visualizationData" in prompt
    assert "Every step lists ALL nodes and ALL edges" in prompt


def test_tutor_prompt_mentions_subject_and_question():
    prompt = build_tutor_prompt("Heaps", "Why is insert log n?")
    assert "Heaps" in prompt and "Why is insert log n?" in prompt
