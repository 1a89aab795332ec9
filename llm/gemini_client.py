"""
Gemini transport for simulations and tutor explanations.

Requirements:
    pip install google-generativeai python-dotenv

Behavior:
- Configures google.generativeai with GEMINI_API_KEY from Settings.
- Simulations ask for a JSON response (response_mime_type) at a low temperature.
- Extracts text from the several response shapes the library returns.
- Every failure of the call itself becomes a TransportError; whether the
  text is usable is the parser's business, not this module's.
"""

import logging
from typing import Any, Dict, Optional

import google.generativeai as genai

from config import Settings
from engine.builder import SimulationRequest
from engine.errors import TransportError
from llm.prompts import build_simulation_prompt, build_tutor_prompt

logger = logging.getLogger(__name__)

JSON_MIME_TYPE = "application/json"


# -----------------------------
# Response extraction
# -----------------------------
def extract_text(resp: Any) -> str:
    """
    Gemini 2.x returns response.candidates[0].content.parts[*].text; the
    `.text` shortcut raises ValueError when the candidate was blocked.
    """
    if resp is None:
        return ""

    if isinstance(resp, dict):
        if isinstance(resp.get("text"), str):
            return resp["text"].strip()
        cand = resp.get("candidates") or []
        if cand and isinstance(cand[0], dict):
            parts = (cand[0].get("content") or {}).get("parts") or []
            return "\n".join(p.get("text", "") for p in parts if isinstance(p, dict)).strip()
        return ""

    try:
        text = getattr(resp, "text", None)
    except ValueError:
        text = None
    if isinstance(text, str) and text.strip():
        return text.strip()

    cand = getattr(resp, "candidates", None)
    if cand:
        content = getattr(cand[0], "content", None)
        parts = getattr(content, "parts", None) or []
        out = [p.text for p in parts if isinstance(getattr(p, "text", None), str)]
        return "\n".join(out).strip()
    return ""


# -----------------------------
# Client
# -----------------------------
class GeminiClient:
    """
    One configured model handle; safe to share between requests.

        client = GeminiClient(Settings.from_env())
        raw = client.generate_simulation(request)
    """

    def __init__(self, settings: Settings):
        genai.configure(api_key=settings.require_api_key())
        self.settings = settings
        self.model_name = settings.gemini_model
        self._model = genai.GenerativeModel(self.model_name)

    def generate_simulation(self, request: SimulationRequest) -> str:
        prompt = build_simulation_prompt(request)
        logger.debug("Simulation prompt for %s:\n%s", request.algorithm.name, prompt)
        return self._generate(prompt, {
            "temperature": self.settings.gemini_temperature,
            "max_output_tokens": self.settings.gemini_max_output_tokens,
            "response_mime_type": JSON_MIME_TYPE,
        })

    def explain(self, subject: str, question: str) -> str:
        """Markdown step-by-step explanation for the tutor page."""
        prompt = build_tutor_prompt(subject, question)
        logger.debug("Tutor prompt:\n%s", prompt)
        return self._generate(prompt, {
            "temperature": 0.4,
            "max_output_tokens": self.settings.gemini_max_output_tokens,
        })

    def _generate(self, prompt: str, generation_config: Dict[str, Any]) -> str:
        try:
            resp = self._model.generate_content(prompt, generation_config=generation_config)
        except Exception as exc:  # provider faults come in many types
            logger.warning("Gemini call to %s failed: %s", self.model_name, exc)
            raise TransportError(f"model call failed: {exc}") from exc

        text = extract_text(resp)
        if not text:
            reason = _finish_reason(resp)
            logger.warning("Gemini returned no text (finish_reason=%s)", reason)
            raise TransportError(f"model returned no text (finish_reason={reason})")
        return text


def _finish_reason(resp: Any) -> Optional[str]:
    cand = getattr(resp, "candidates", None)
    if not cand:
        return None
    reason = getattr(cand[0], "finish_reason", None)
    return getattr(reason, "name", None) or (str(reason) if reason is not None else None)


__all__ = ["GeminiClient", "extract_text", "JSON_MIME_TYPE"]
