"""
Query compiler for property discovery.

Turns a QuerySpecification into an ordered, immutable sequence of
filter/sort/paginate operations, and executes it against a listing store.
A geospatial radius is resolved first into a candidate identifier set; an
empty candidate set short-circuits to an empty page and never widens into an
unconstrained query.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, FrozenSet, Iterable, List, Optional, Tuple, TYPE_CHECKING

from discovery.catalog import ListingStatus, SortKey
from discovery.geo import haversine_km
from discovery.models import Listing, Pagination
from discovery.query.specification import QuerySpecification

if TYPE_CHECKING:
    from discovery.store.base import ListingStore


logger = logging.getLogger(__name__)

# Columns searched by the free-text term
TEXT_SEARCH_FIELDS = ("title", "address", "description")


class Operator(str, Enum):
    """Predicate operators the listing store must support"""
    EQ = "eq"
    GTE = "gte"
    LTE = "lte"
    IN = "in"
    OVERLAPS = "overlaps"
    NOT_NULL = "not_null"
    CONTAINS_TEXT = "contains_text"


@dataclass(frozen=True)
class Predicate:
    """One conjunctive filter over a listing.

    Attributes:
        fields: Listing attributes the predicate reads (several only for
            CONTAINS_TEXT, which matches if any of them contains the term)
        op: Comparison operator
        value: Operand; a frozenset for IN and OVERLAPS
    """
    fields: Tuple[str, ...]
    op: Operator
    value: Any = None

    @property
    def field(self) -> str:
        return self.fields[0]

    def matches(self, listing: Any) -> bool:
        """Evaluate this predicate against a listing (or any attribute bag)."""
        if self.op is Operator.CONTAINS_TEXT:
            needle = str(self.value).lower()
            return any(
                needle in str(getattr(listing, name, None) or "").lower()
                for name in self.fields
            )

        actual = getattr(listing, self.field, None)
        if self.op is Operator.NOT_NULL:
            return actual is not None
        if self.op is Operator.OVERLAPS:
            return bool(set(actual or ()) & self.value)
        if actual is None:
            return False
        if self.op is Operator.EQ:
            return actual == self.value
        if self.op is Operator.GTE:
            return actual >= self.value
        if self.op is Operator.LTE:
            return actual <= self.value
        if self.op is Operator.IN:
            return actual in self.value
        raise ValueError(f"Unsupported operator: {self.op}")


@dataclass(frozen=True)
class SortTerm:
    """One ordering term; `origin` is set only for distance ordering"""
    field: str
    descending: bool = False
    origin: Optional[Tuple[float, float]] = None

    def key(self, listing: Listing) -> Any:
        if self.field == "distance":
            return distance_from(self.origin, listing)
        return getattr(listing, self.field)


@dataclass(frozen=True)
class RadiusFilter:
    latitude: float
    longitude: float
    radius_km: float


@dataclass(frozen=True)
class CompiledQuery:
    """Concrete operation sequence derived from one QuerySpecification"""
    spec: QuerySpecification
    predicates: Tuple[Predicate, ...]
    ordering: Tuple[SortTerm, ...]
    offset: int
    limit: int
    radius: Optional[RadiusFilter] = None
    candidate_ids: Optional[FrozenSet[str]] = None

    def restricted_to(self, candidate_ids: Iterable[str]) -> "CompiledQuery":
        """Return a copy narrowed to the given identifiers."""
        ids = frozenset(candidate_ids)
        membership = Predicate(("id",), Operator.IN, ids)
        # Identifier membership sits right after the status predicate
        predicates = self.predicates[:1] + (membership,) + self.predicates[1:]
        return replace(self, predicates=predicates, candidate_ids=ids)

    def matches(self, listing: Listing) -> bool:
        return all(predicate.matches(listing) for predicate in self.predicates)

    def describe(self) -> List[str]:
        steps = []
        if self.radius is not None:
            steps.append(
                f"radius({self.radius.latitude}, {self.radius.longitude}, {self.radius.radius_km}km)"
            )
        for predicate in self.predicates:
            operand = sorted(predicate.value) if isinstance(predicate.value, frozenset) else predicate.value
            steps.append(f"{'|'.join(predicate.fields)} {predicate.op.value} {operand!r}")
        steps.append(
            "order by " + ", ".join(
                f"{term.field} {'desc' if term.descending else 'asc'}" for term in self.ordering
            )
        )
        steps.append(f"offset {self.offset} limit {self.limit}")
        return steps


@dataclass
class ResultPage:
    """Rows of one page plus the match count over the unpaginated set"""
    listings: List[Listing]
    total: int
    page: int
    per_page: int
    candidate_ids: Optional[FrozenSet[str]] = field(default=None, repr=False)

    @classmethod
    def empty(cls, spec: QuerySpecification) -> "ResultPage":
        return cls(listings=[], total=0, page=spec.page, per_page=spec.per_page)

    @property
    def pagination(self) -> Pagination:
        return Pagination.build(self.page, self.per_page, self.total)


def distance_from(origin: Optional[Tuple[float, float]], listing: Listing) -> Optional[float]:
    """Distance in km from origin to the listing, or None if either is unknown."""
    if origin is None or not listing.has_coordinates:
        return None
    return haversine_km(origin[0], origin[1], listing.latitude, listing.longitude)


def _ordering(spec: QuerySpecification) -> Tuple[SortTerm, ...]:
    sort_by = spec.sort_by
    if sort_by is SortKey.DISTANCE and not spec.has_center:
        sort_by = SortKey.NEWEST

    if sort_by is SortKey.OLDEST:
        primary = SortTerm("created_at")
    elif sort_by is SortKey.PRICE_ASC:
        primary = SortTerm("price")
    elif sort_by is SortKey.PRICE_DESC:
        primary = SortTerm("price", descending=True)
    elif sort_by is SortKey.DISTANCE:
        primary = SortTerm("distance", origin=spec.center)
    else:
        primary = SortTerm("created_at", descending=True)

    # Ties fall back to creation order, then identifier, so pages are stable
    terms = [primary]
    if primary.field != "created_at":
        terms.append(SortTerm("created_at"))
    terms.append(SortTerm("id"))
    return tuple(terms)


def compile_query(spec: QuerySpecification) -> CompiledQuery:
    """Compile a specification into predicates, ordering and a page window.

    Predicates are AND-combined and always start with `status = live`.
    """
    predicates: List[Predicate] = [Predicate(("status",), Operator.EQ, ListingStatus.LIVE)]

    def add(name: str, op: Operator, value: Any) -> None:
        if value is not None:
            predicates.append(Predicate((name,), op, value))

    add("state", Operator.EQ, spec.state)
    add("lga", Operator.EQ, spec.lga)
    add("property_type", Operator.EQ, spec.property_type)
    add("listing_type", Operator.EQ, spec.listing_type)
    add("price", Operator.GTE, spec.min_price)
    add("price", Operator.LTE, spec.max_price)
    add("bedrooms", Operator.GTE, spec.bedrooms)
    add("bathrooms", Operator.GTE, spec.bathrooms)
    add("has_bq", Operator.EQ, spec.has_bq)
    if spec.verified_only:
        predicates.append(Predicate(("verified_at",), Operator.NOT_NULL))
    add("nepa_status", Operator.EQ, spec.nepa_status)
    add("water_source", Operator.EQ, spec.water_source)
    add("internet_type", Operator.EQ, spec.internet_type)
    if spec.security_type:
        predicates.append(Predicate(("security_type",), Operator.OVERLAPS, frozenset(spec.security_type)))
    if spec.q:
        predicates.append(Predicate(TEXT_SEARCH_FIELDS, Operator.CONTAINS_TEXT, spec.q))

    radius = None
    if spec.has_radius:
        radius = RadiusFilter(spec.latitude, spec.longitude, spec.radius_km)

    return CompiledQuery(
        spec=spec,
        predicates=tuple(predicates),
        ordering=_ordering(spec),
        offset=spec.offset,
        limit=spec.per_page,
        radius=radius,
    )


async def execute(compiled: CompiledQuery, store: "ListingStore") -> ResultPage:
    """Run a compiled query against the store.

    Raises:
        StoreUnavailableError: If either store round-trip fails
    """
    spec = compiled.spec

    if compiled.radius is not None:
        radius = compiled.radius
        candidate_ids = await store.find_ids_within_radius(
            radius.latitude, radius.longitude, radius.radius_km
        )
        if not candidate_ids:
            logger.info(
                f"No live listings within {radius.radius_km}km of "
                f"({radius.latitude}, {radius.longitude}); returning empty page"
            )
            return ResultPage.empty(spec)
        compiled = compiled.restricted_to(candidate_ids)
        logger.debug(f"Radius pre-filter narrowed to {len(compiled.candidate_ids)} candidates")

    listings, total = await store.query(compiled)
    logger.debug(f"Compiled query {compiled.describe()} matched {total} listings")

    return ResultPage(
        listings=listings,
        total=total,
        page=spec.page,
        per_page=spec.per_page,
        candidate_ids=compiled.candidate_ids,
    )
