"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

DEFAULT_AGENT_SSE_URL = "https://agent.tinyfish.ai/v1/automation/run-sse"


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class AgentSettings:
    """
    Browser automation agent connection settings.

    ``api_key`` may be None; searches are then refused with a 500 while the
    rest of the API keeps serving.
    """

    api_key: str | None = None
    sse_url: str = DEFAULT_AGENT_SSE_URL
    request_timeout_seconds: float = 270.0


@dataclass(frozen=True)
class SearchSettings:
    """
    Fan-out and cache behaviour for city searches.
    """

    stagger_seconds: float = 0.5
    cache_ttl_hours: float = 6.0
    cache_read_timeout_seconds: float = 3.0


@lru_cache(maxsize=1)
def get_agent_settings() -> AgentSettings:
    """
    Return cached automation agent settings from environment variables.
    """

    return AgentSettings(
        api_key=_get_optional_str_env("TINYFISH_API_KEY"),
        sse_url=_get_str_env("AGENT_SSE_URL", DEFAULT_AGENT_SSE_URL),
        request_timeout_seconds=max(
            1.0,
            _get_float_env("SEARCH_REQUEST_TIMEOUT_SECONDS", 270.0),
        ),
    )


@lru_cache(maxsize=1)
def get_search_settings() -> SearchSettings:
    """
    Return cached search orchestration settings from environment variables.
    """

    return SearchSettings(
        stagger_seconds=max(0.0, _get_float_env("SEARCH_STAGGER_SECONDS", 0.5)),
        cache_ttl_hours=max(0.0, _get_float_env("SEARCH_CACHE_TTL_HOURS", 6.0)),
        cache_read_timeout_seconds=max(
            0.1,
            _get_float_env("SEARCH_CACHE_READ_TIMEOUT_SECONDS", 3.0),
        ),
    )
