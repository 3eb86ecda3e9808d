"""
Search session controller.

Owns the mutable, UI-facing state of one search session: the draft filters,
the current page, view mode, the locally-liked set and the last settled
result page. Every settled state change compiles a fresh specification and
dispatches it tagged with an increasing sequence number; only the response
to the latest dispatch is ever committed. There is no lock, only "last
dispatched wins".
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Mapping, Optional, Set

from discovery.catalog import DEFAULT_SORT, ViewMode
from discovery.config import DiscoverySettings, get_discovery_settings
from discovery.error_handling import QueryValidationError
from discovery.models import ExploreResponse
from discovery.query import QuerySpecification, normalize
from .debouncer import Debouncer

logger = logging.getLogger(__name__)

SearchFunction = Callable[[QuerySpecification], Awaitable[ExploreResponse]]

# Draft keys that are not filters
_NON_FILTER_KEYS = ("q", "page", "per_page", "sort_by")

_CHIP_LABELS = {
    "q": "Search",
    "state": "State",
    "lga": "LGA",
    "property_type": "Type",
    "listing_type": "Purpose",
    "min_price": "Min price",
    "max_price": "Max price",
    "bedrooms": "Bedrooms",
    "bathrooms": "Bathrooms",
    "has_bq": "BQ",
    "verified_only": "Verified only",
    "nepa_status": "Power",
    "water_source": "Water",
    "internet_type": "Internet",
    "security_type": "Security",
    "latitude": "Latitude",
    "longitude": "Longitude",
    "radius_km": "Radius (km)",
}


class SessionPhase(str, Enum):
    """Search session state machine states"""
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    QUERYING = "querying"
    SETTLED = "settled"
    FAILED = "failed"


@dataclass(frozen=True)
class FilterChip:
    """One removable active-filter chip"""
    key: str
    label: str
    value: Any


@dataclass(frozen=True)
class SearchSessionState:
    """Read-only snapshot of a session for rendering"""
    phase: SessionPhase
    spec: Optional[QuerySpecification]
    result: Optional[ExploreResponse]
    error: Optional[Exception]
    page: int
    sort_by: str
    view_mode: ViewMode
    liked: FrozenSet[str]

    @property
    def loading(self) -> bool:
        return self.phase is SessionPhase.QUERYING


class SearchSessionController:
    """
    Single-writer controller for one search session.

    Attributes:
        view_mode: Grid, list or map presentation; never affects filtering
        liked: Session-local set of liked listing ids
        phase: Current state machine phase
        result: Last committed result page, retained across failures
        error: Error of the latest dispatch, if it failed
        spec: Specification of the latest dispatch
    """

    def __init__(
        self,
        search: SearchFunction,
        debounce_seconds: Optional[float] = None,
        settings: Optional[DiscoverySettings] = None,
        initial_filters: Optional[Mapping[str, Any]] = None,
        per_page: Optional[int] = None
    ):
        self.settings = settings or get_discovery_settings()
        if debounce_seconds is None:
            debounce_seconds = self.settings.session.debounce_seconds

        self._search = search
        self._filters: Dict[str, Any] = dict(initial_filters or {})
        self._search_text = ""
        self._page = 1
        self._per_page = per_page
        self._sort_by: str = DEFAULT_SORT.value

        self.view_mode = ViewMode.GRID
        self.liked: Set[str] = set()

        self.phase = SessionPhase.IDLE
        self.result: Optional[ExploreResponse] = None
        self.error: Optional[Exception] = None
        self.spec: Optional[QuerySpecification] = None

        self._sequence = 0
        self._inflight: Dict[int, asyncio.Task] = {}
        self._closed = False
        self._debouncer = Debouncer(debounce_seconds, self._dispatch)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def sequence(self) -> int:
        """Sequence number of the latest dispatch."""
        return self._sequence

    @property
    def page(self) -> int:
        return self._page

    @property
    def sort_by(self) -> str:
        return self._sort_by

    @property
    def search_text(self) -> str:
        return self._search_text

    @property
    def filters(self) -> Dict[str, Any]:
        return dict(self._filters)

    @property
    def loading(self) -> bool:
        return self.phase is SessionPhase.QUERYING

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_empty(self) -> bool:
        """True only when the latest query succeeded and matched nothing."""
        return (
            self.phase is SessionPhase.SETTLED
            and self.result is not None
            and self.result.is_empty
        )

    @property
    def has_error(self) -> bool:
        return self.phase is SessionPhase.FAILED

    @property
    def draft(self) -> Dict[str, Any]:
        """Raw search input assembled from the current session state."""
        draft = dict(self._filters)
        draft["q"] = self._search_text
        draft["page"] = self._page
        draft["sort_by"] = self._sort_by
        if self._per_page is not None:
            draft["per_page"] = self._per_page
        return draft

    def active_filters(self) -> List[FilterChip]:
        chips = []
        if self._search_text.strip():
            chips.append(FilterChip("q", _CHIP_LABELS["q"], self._search_text.strip()))
        for key, value in self._filters.items():
            if key in _NON_FILTER_KEYS or value in (None, "", [], ()):
                continue
            chips.append(FilterChip(key, _CHIP_LABELS.get(key, key), value))
        return chips

    def state(self) -> SearchSessionState:
        return SearchSessionState(
            phase=self.phase,
            spec=self.spec,
            result=self.result,
            error=self.error,
            page=self._page,
            sort_by=self._sort_by,
            view_mode=self.view_mode,
            liked=frozenset(self.liked),
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_search_text(self, text: str) -> None:
        """Live-typed free text: debounced."""
        self._search_text = text
        self._page = 1
        self._schedule()

    def submit_search(self, text: Optional[str] = None) -> Optional[asyncio.Task]:
        """Explicit "Search" action: dispatched immediately."""
        if text is not None:
            self._search_text = text
        self._page = 1
        return self._dispatch()

    def apply_filters(self, filters: Mapping[str, Any]) -> Optional[asyncio.Task]:
        """Replace the whole filter set (filter panel "Apply")."""
        self._filters = {
            key: value for key, value in filters.items() if key not in _NON_FILTER_KEYS
        }
        self._page = 1
        return self._dispatch()

    def set_filter(self, key: str, value: Any) -> Optional[asyncio.Task]:
        """Set one filter; None or an empty value removes it."""
        if key in _NON_FILTER_KEYS:
            raise ValueError(f"{key} is not a filter")
        if value in (None, "", [], ()):
            self._filters.pop(key, None)
        else:
            self._filters[key] = value
        self._page = 1
        return self._dispatch()

    def remove_filter(self, key: str) -> Optional[asyncio.Task]:
        """Remove one chip. Removing "q" clears the search text."""
        if key == "q":
            self._search_text = ""
        else:
            self._filters.pop(key, None)
        self._page = 1
        return self._dispatch()

    def clear_filters(self) -> Optional[asyncio.Task]:
        self._filters = {}
        self._search_text = ""
        self._page = 1
        return self._dispatch()

    def set_sort(self, sort_by: str) -> Optional[asyncio.Task]:
        self._sort_by = getattr(sort_by, "value", sort_by)
        self._page = 1
        return self._dispatch()

    def go_to_page(self, page: int) -> Optional[asyncio.Task]:
        """Change only the page; filters, text and sort are untouched."""
        self._page = page
        return self._dispatch()

    def next_page(self) -> Optional[asyncio.Task]:
        if self.result is None or not self.result.pagination.has_next:
            return None
        return self.go_to_page(self._page + 1)

    def previous_page(self) -> Optional[asyncio.Task]:
        if self._page <= 1:
            return None
        return self.go_to_page(self._page - 1)

    def refresh(self) -> Optional[asyncio.Task]:
        return self._dispatch()

    def page_window(self, size: int = 5) -> List[int]:
        """Page numbers to show in the pager, around the current page.

        Built from the last committed pagination, so the window never
        points past the known last page.
        """
        if size < 1:
            raise ValueError("size must be at least 1")
        if self.result is None:
            return []
        pagination = self.result.pagination
        total_pages = pagination.total_pages
        if total_pages == 0:
            return []

        current = min(max(pagination.page, 1), total_pages)
        start = max(1, current - size // 2)
        end = min(total_pages, start + size - 1)
        start = max(1, end - size + 1)
        return list(range(start, end + 1))

    def set_view_mode(self, mode: str) -> None:
        self.view_mode = ViewMode(mode)

    def toggle_like(self, listing_id: str) -> bool:
        """Flip the local like state. Independent of the query lifecycle."""
        if listing_id in self.liked:
            self.liked.discard(listing_id)
            return False
        self.liked.add(listing_id)
        return True

    def is_liked(self, listing_id: str) -> bool:
        return listing_id in self.liked

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Tear down the session. In-flight responses become no-ops."""
        self._closed = True
        self._debouncer.cancel()
        logger.debug(f"Search session closed with {len(self._inflight)} queries in flight")

    async def wait_until_settled(self) -> None:
        """Wait for the debounce window and every in-flight query to finish."""
        await self._debouncer.wait()
        while self._inflight:
            await asyncio.wait(list(self._inflight.values()))

    def _schedule(self) -> None:
        if self._closed:
            return
        # Pending input already supersedes whatever is in flight
        self._sequence += 1
        self.phase = SessionPhase.DEBOUNCING
        self._debouncer.trigger()

    def _dispatch(self) -> Optional[asyncio.Task]:
        if self._closed:
            return None
        self._debouncer.cancel()

        # Any new intent supersedes whatever is still in flight
        self._sequence += 1
        sequence = self._sequence

        try:
            spec = normalize(self.draft, self.settings)
        except QueryValidationError as e:
            logger.info(f"Search input rejected before dispatch: {e.fields}")
            self.error = e
            self.phase = SessionPhase.FAILED
            return None

        self.spec = spec
        self.phase = SessionPhase.QUERYING
        task = asyncio.get_running_loop().create_task(self._run(sequence, spec))
        self._inflight[sequence] = task
        task.add_done_callback(lambda _: self._inflight.pop(sequence, None))
        return task

    def _is_current(self, sequence: int) -> bool:
        return not self._closed and sequence == self._sequence

    async def _run(self, sequence: int, spec: QuerySpecification) -> None:
        try:
            response = await self._search(spec)
        except Exception as e:
            if not self._is_current(sequence):
                logger.debug(f"Ignoring failure of superseded query #{sequence}: {e}")
                return
            logger.warning(f"Search query #{sequence} failed: {e}")
            # Prior result stays on screen alongside the error
            self.error = e
            self.phase = SessionPhase.FAILED
            return

        if not self._is_current(sequence):
            logger.debug(f"Discarding stale response for query #{sequence} (latest #{self._sequence})")
            return

        self.result = response
        self.error = None
        self.phase = SessionPhase.SETTLED
