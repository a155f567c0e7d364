"""
Runtime configuration
=====================
Values come from the process environment (a local .env file is loaded first
via python-dotenv). Only GEMINI_API_KEY is a secret; it is checked when the
Gemini client is built so the server refuses to start without it.
"""

import os
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from .errors import ConfigurationError

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_MAX_UPLOAD_MB = 10
DEFAULT_PORT = 8002

API_KEY_VAR = "GEMINI_API_KEY"


class Settings(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    api_key: Optional[str] = None
    model_name: str = DEFAULT_MODEL
    temperature: float = 0.1
    max_output_tokens: int = 1000
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_MB * 1024 * 1024
    prompt_file: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``environ`` (defaults to os.environ after loading .env)."""
        if environ is None:
            load_dotenv()
            environ = os.environ

        max_upload_mb = _number(environ, "MAX_UPLOAD_MB", float, DEFAULT_MAX_UPLOAD_MB)
        if max_upload_mb <= 0:
            raise ConfigurationError("MAX_UPLOAD_MB must be greater than zero")

        return cls(
            api_key=(environ.get(API_KEY_VAR) or "").strip() or None,
            model_name=environ.get("GEMINI_MODEL") or DEFAULT_MODEL,
            temperature=_number(environ, "GEMINI_TEMPERATURE", float, 0.1),
            max_output_tokens=_number(environ, "GEMINI_MAX_OUTPUT_TOKENS", int, 1000),
            max_upload_bytes=int(max_upload_mb * 1024 * 1024),
            prompt_file=environ.get("ANALYSIS_PROMPT_FILE") or None,
            log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
            log_file=environ.get("LOG_FILE") or None,
            port=_number(environ, "PORT", int, DEFAULT_PORT),
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(
                f"{API_KEY_VAR} is not set. Add it to the environment or a .env file."
            )
        return self.api_key


def _number(environ: Mapping[str, str], name: str, cast, default):
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
