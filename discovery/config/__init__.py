"""Configuration module for RealEst property discovery."""

from .discovery_config import (
    DISCOVERY_CONFIG,
    DiscoverySettings,
    PaginationConfig,
    RadiusConfig,
    SessionConfig,
    CacheConfig,
    StorageConfig,
    get_discovery_settings,
)

__all__ = [
    'DISCOVERY_CONFIG',
    'DiscoverySettings',
    'PaginationConfig',
    'RadiusConfig',
    'SessionConfig',
    'CacheConfig',
    'StorageConfig',
    'get_discovery_settings',
]
