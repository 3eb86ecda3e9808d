"""
Error taxonomy for property discovery.

Validation errors are raised before any store access and always name the
offending field. Store errors are retryable by the caller but never retried
here. Enrichment errors are isolated to a single row by the assembler.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class FieldError:
    """A single field-attributed validation failure.

    Attributes:
        field: Wire name of the offending query parameter
        message: Human readable explanation
    """
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


class DiscoveryError(Exception):
    """Base class for every error raised by the discovery subsystem."""

    retryable = False


class QueryValidationError(DiscoveryError):
    """Malformed, out-of-catalog or out-of-range search input."""

    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        fields = ", ".join(error.field for error in self.errors)
        super().__init__(f"Invalid query parameters: {fields}")

    @property
    def fields(self) -> List[str]:
        return [error.field for error in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "Invalid query parameters",
            "details": [error.to_dict() for error in self.errors],
        }


class StoreUnavailableError(DiscoveryError):
    """The listing store could not be reached or failed mid-query."""

    retryable = True

    def __init__(self, message: str = "Listing store unavailable", cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class EnrichmentError(DiscoveryError):
    """One join for one listing failed; the row is returned degraded."""

    def __init__(self, listing_id: str, part: str, cause: Optional[BaseException] = None):
        self.listing_id = listing_id
        self.part = part
        self.cause = cause
        super().__init__(f"Failed to load {part} for listing {listing_id}: {cause}")
