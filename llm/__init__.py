"""
llm/
----
The external collaborator: prompt construction and the Gemini transport.

    from llm import GeminiClient
"""

from llm.gemini_client import GeminiClient, extract_text
from llm.prompts import build_simulation_prompt, build_tutor_prompt

__all__ = ["GeminiClient", "extract_text", "build_simulation_prompt", "build_tutor_prompt"]
