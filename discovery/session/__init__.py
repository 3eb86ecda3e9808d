"""Client-side search session"""

from .client import ExploreClient
from .controller import FilterChip, SearchSessionController, SearchSessionState, SessionPhase
from .debouncer import Debouncer

__all__ = [
    "ExploreClient",
    "FilterChip",
    "SearchSessionController",
    "SearchSessionState",
    "SessionPhase",
    "Debouncer",
]
