"""Discovery services"""

from .assembler import ResultAssembler, days_listed
from .counters import CounterService, ListingCounters, PlaceholderCounterService, RedisCounterService
from .explore import ExploreService
from .profile_cache import ProfileSummaryCache

__all__ = [
    "ResultAssembler",
    "days_listed",
    "CounterService",
    "ListingCounters",
    "PlaceholderCounterService",
    "RedisCounterService",
    "ExploreService",
    "ProfileSummaryCache",
]
