"""
app/api/dependencies.py

Shared FastAPI dependencies for the search API.
"""

from __future__ import annotations

from app.config import AgentSettings, get_agent_settings
from app.services.search_orchestrator import SearchOrchestrator, get_search_orchestrator


def get_orchestrator() -> SearchOrchestrator:
    return get_search_orchestrator()


def get_agent_settings_dependency() -> AgentSettings:
    """
    Agent settings, read per request so tests can override them.
    """

    return get_agent_settings()
