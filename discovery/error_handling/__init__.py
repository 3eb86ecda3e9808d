"""
Error handling module for property discovery.

Defines the error taxonomy shared by the query pipeline, the HTTP surface
and the client-side session controller.
"""

from .errors import (
    DiscoveryError,
    EnrichmentError,
    FieldError,
    QueryValidationError,
    StoreUnavailableError,
)

__all__ = [
    'DiscoveryError',
    'EnrichmentError',
    'FieldError',
    'QueryValidationError',
    'StoreUnavailableError',
]
