"""Listing store collaborators"""

from .base import ListingStore, ProfileDirectory
from .memory import InMemoryListingStore

__all__ = ["ListingStore", "ProfileDirectory", "InMemoryListingStore"]
