"""
app/services package marker.
"""

from app.services.event_sink import EventSink
from app.services.search_orchestrator import SearchOrchestrator, get_search_orchestrator

__all__ = [
    "EventSink",
    "SearchOrchestrator",
    "get_search_orchestrator",
]
