"""
config.py — Runtime Settings
=============================
Reads the environment (and a .env file, if one is found) once and
freezes it into a Settings object.

    settings = Settings.from_env()
    settings.gemini_model          # "gemini-2.0-flash"

GEMINI_API_KEY is only required when the Gemini client is actually
built; the app and the tests run without it.
"""

import os
import secrets
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_MODEL             = "gemini-2.0-flash"
DEFAULT_TEMPERATURE       = 0.2
DEFAULT_MAX_OUTPUT_TOKENS = 8192
DEFAULT_MAX_SESSIONS      = 1000

_TRUTHY = {"1", "true", "yes", "on"}


def load_environment() -> None:
    """Load .env from the nearest parent directory; existing variables win."""
    env_path = find_dotenv(usecwd=True)
    if env_path:
        load_dotenv(env_path)


@dataclass(frozen=True)
class Settings:
    gemini_api_key:           Optional[str] = None
    gemini_model:             str   = DEFAULT_MODEL
    gemini_temperature:       float = DEFAULT_TEMPERATURE
    gemini_max_output_tokens: int   = DEFAULT_MAX_OUTPUT_TOKENS
    log_level:                str   = "INFO"
    response_log_path:        Optional[str] = None
    max_sessions:             int   = DEFAULT_MAX_SESSIONS
    secret_key:               str   = ""
    host:                     str   = "127.0.0.1"
    port:                     int   = 5000
    debug:                    bool  = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        if environ is None:
            load_environment()
            environ = os.environ
        env = environ

        def text(name: str) -> Optional[str]:
            value = env.get(name)
            return value.strip() if value and value.strip() else None

        return cls(
            gemini_api_key=text("GEMINI_API_KEY"),
            gemini_model=text("GEMINI_MODEL") or DEFAULT_MODEL,
            gemini_temperature=float(text("GEMINI_TEMPERATURE") or DEFAULT_TEMPERATURE),
            gemini_max_output_tokens=int(text("GEMINI_MAX_OUTPUT_TOKENS") or DEFAULT_MAX_OUTPUT_TOKENS),
            log_level=(text("LOG_LEVEL") or "INFO").upper(),
            response_log_path=text("RESPONSE_LOG_PATH"),
            max_sessions=int(text("MAX_SESSIONS") or DEFAULT_MAX_SESSIONS),
            secret_key=text("FLASK_SECRET_KEY") or secrets.token_hex(16),
            host=text("HOST") or "127.0.0.1",
            port=int(text("PORT") or 5000),
            debug=(text("DEBUG") or "").lower() in _TRUTHY,
        )

    def require_api_key(self) -> str:
        if not self.gemini_api_key:
            raise RuntimeError("GEMINI_API_KEY not found in environment variables. Put it in a .env file.")
        return self.gemini_api_key
