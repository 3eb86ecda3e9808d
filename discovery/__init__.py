"""Faceted property discovery for the RealEst marketplace."""

__version__ = "0.1.0"
