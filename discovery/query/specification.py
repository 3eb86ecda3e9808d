"""
Query specification for property discovery.

A QuerySpecification is the normalized, validated and immutable form of one
search request. `normalize` is the only way raw user input becomes a
specification; every failure is reported against the wire name of the field
that caused it.
"""

import logging
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator, model_validator
from pydantic_core import PydanticCustomError

from discovery.catalog import (
    DEFAULT_SORT,
    MULTI_VALUED_FACETS,
    InternetType,
    ListingType,
    NepaStatus,
    PropertyType,
    SecurityType,
    SortKey,
    WaterSource,
    resolve_sort_key,
)
from discovery.config import DiscoverySettings, get_discovery_settings
from discovery.error_handling import FieldError, QueryValidationError


logger = logging.getLogger(__name__)

_EMPTY_VALUES = (None, "", [], ())


def _settings(info: ValidationInfo) -> DiscoverySettings:
    context = info.context or {}
    return context.get("settings") or get_discovery_settings()


class QuerySpecification(BaseModel):
    """Normalized search request.

    Attributes mirror the explore endpoint's query parameters. Every filter is
    optional; absent filters do not constrain the result set. Instances are
    frozen: callers build a new specification rather than mutate one.
    """
    q: Optional[str] = None

    # Location
    state: Optional[str] = None
    lga: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_km: Optional[float] = None

    # Categorical and structural
    property_type: Optional[PropertyType] = None
    listing_type: Optional[ListingType] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    has_bq: Optional[bool] = None
    verified_only: bool = False

    # Regional infrastructure
    nepa_status: Optional[NepaStatus] = None
    water_source: Optional[WaterSource] = None
    internet_type: Optional[InternetType] = None
    security_type: FrozenSet[SecurityType] = frozenset()

    # Pagination and ordering
    page: int = 1
    per_page: Optional[int] = Field(None, validate_default=True)
    sort_by: SortKey = DEFAULT_SORT

    class Config:
        frozen = True
        extra = "ignore"

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_values(cls, data: Any) -> Any:
        # Blank form fields mean "no filter"
        if isinstance(data, Mapping):
            return {key: value for key, value in data.items() if value not in _EMPTY_VALUES}
        return data

    @field_validator("q", "state", "lga", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("security_type", mode="before")
    @classmethod
    def _parse_security_set(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple, set, frozenset)):
            # Blank entries from repeated empty form fields mean "no filter"
            return [
                part.strip() if isinstance(part, str) else part
                for part in value
                if not (isinstance(part, str) and not part.strip())
            ]
        return value

    @field_validator("sort_by", mode="before")
    @classmethod
    def _resolve_sort_alias(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return resolve_sort_key(value)
            except ValueError:
                allowed = ", ".join(key.value for key in SortKey)
                raise ValueError(f"must be one of {allowed}")
        return value

    @field_validator("min_price", "max_price", "bedrooms", "bathrooms")
    @classmethod
    def _non_negative(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value < 0:
            raise ValueError("must be greater than or equal to 0")
        return value

    @field_validator("latitude")
    @classmethod
    def _check_latitude(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and not -90 <= value <= 90:
            raise ValueError("must be between -90 and 90")
        return value

    @field_validator("longitude")
    @classmethod
    def _check_longitude(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and not -180 <= value <= 180:
            raise ValueError("must be between -180 and 180")
        return value

    @field_validator("radius_km")
    @classmethod
    def _check_radius(cls, value: Optional[float], info: ValidationInfo) -> Optional[float]:
        if value is None:
            return value
        bounds = _settings(info).radius
        if not bounds.min_radius_km <= value <= bounds.max_radius_km:
            raise ValueError(
                f"must be between {bounds.min_radius_km:g} and {bounds.max_radius_km:g} km"
            )
        return value

    @field_validator("page")
    @classmethod
    def _check_page(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @field_validator("per_page")
    @classmethod
    def _clamp_per_page(cls, value: Optional[int], info: ValidationInfo) -> int:
        pagination = _settings(info).pagination
        if value is None:
            return pagination.default_per_page
        if value < 1:
            raise ValueError("must be at least 1")
        return min(value, pagination.max_per_page)

    @model_validator(mode="after")
    def _check_combinations(self) -> "QuerySpecification":
        has_lat = self.latitude is not None
        has_lng = self.longitude is not None
        if has_lat != has_lng:
            missing = "longitude" if has_lat else "latitude"
            raise PydanticCustomError(
                "incomplete_center",
                "latitude and longitude must be supplied together",
                {"field": missing},
            )
        if self.radius_km is not None and not has_lat:
            raise PydanticCustomError(
                "radius_without_center",
                "radius_km requires both latitude and longitude",
                {"field": "radius_km"},
            )
        if has_lat and self.radius_km is None:
            raise PydanticCustomError(
                "center_without_radius",
                "latitude and longitude require radius_km",
                {"field": "radius_km"},
            )
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise PydanticCustomError(
                "inverted_price_range",
                "min_price must be less than or equal to max_price",
                {"field": "min_price"},
            )
        return self

    @property
    def has_center(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def center(self) -> Optional[Tuple[float, float]]:
        if not self.has_center:
            return None
        return (self.latitude, self.longitude)

    @property
    def has_radius(self) -> bool:
        return self.has_center and self.radius_km is not None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    def applied_filters(self) -> Dict[str, Any]:
        """Echo of the recognized, non-empty filters in this specification."""
        applied: Dict[str, Any] = {}
        for name in ("q", "state", "lga", "property_type", "listing_type"):
            value = getattr(self, name)
            if value is not None:
                applied[name] = _wire(value)

        if self.min_price is not None or self.max_price is not None:
            applied["price_range"] = {"min": self.min_price, "max": self.max_price}

        for name in ("bedrooms", "bathrooms", "has_bq", "nepa_status", "water_source", "internet_type"):
            value = getattr(self, name)
            if value is not None:
                applied[name] = _wire(value)

        if self.verified_only:
            applied["verified_only"] = True
        if self.security_type:
            applied["security_type"] = sorted(item.value for item in self.security_type)
        if self.has_center:
            applied["location"] = {
                "latitude": self.latitude,
                "longitude": self.longitude,
                "radius_km": self.radius_km,
            }
        return applied

    def to_query_params(self) -> List[Tuple[str, str]]:
        """Render back to wire query parameters, repeating multi-valued keys."""
        params: List[Tuple[str, str]] = []
        for name, value in self.model_dump(exclude_none=True).items():
            if name in MULTI_VALUED_FACETS:
                params.extend((name, item) for item in sorted(_wire(v) for v in value))
            elif isinstance(value, bool):
                if name == "verified_only" and not value:
                    continue
                params.append((name, "true" if value else "false"))
            else:
                params.append((name, str(_wire(value))))
        return params


def _wire(value: Any) -> Any:
    return getattr(value, "value", value)


def collect_query_params(items: Iterable[Tuple[str, str]]) -> Dict[str, Any]:
    """Fold raw (key, value) pairs into normalize() input.

    Multi-valued facets accumulate into lists; any other repeated key keeps
    its last value.
    """
    collected: Dict[str, Any] = {}
    for key, value in items:
        if key in MULTI_VALUED_FACETS:
            collected.setdefault(key, []).append(value)
        else:
            collected[key] = value
    return collected


def normalize(
    raw: Mapping[str, Any],
    settings: Optional[DiscoverySettings] = None
) -> QuerySpecification:
    """Validate raw search input into a QuerySpecification.

    Unknown keys are ignored. Recognized keys with illegal values fail.

    Args:
        raw: Mapping of wire parameter names to raw values
        settings: Limits to validate against (defaults to environment config)

    Returns:
        Frozen QuerySpecification

    Raises:
        QueryValidationError: With one FieldError per offending field
    """
    try:
        return QuerySpecification.model_validate(
            dict(raw),
            context={"settings": settings or get_discovery_settings()},
        )
    except ValidationError as e:
        errors = [_to_field_error(error) for error in e.errors()]
        logger.info(f"Rejected search input: {[error.field for error in errors]}")
        raise QueryValidationError(errors) from None


def _to_field_error(error: Dict[str, Any]) -> FieldError:
    loc = error.get("loc") or ()
    if loc:
        field = str(loc[0])
    else:
        field = str((error.get("ctx") or {}).get("field", "query"))
    message = error.get("msg", "invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return FieldError(field=field, message=message)
