"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the
process.

Usage:
    from permission_service.core.settings.loader import get_permission_settings

    settings = get_permission_settings()  # First call: loads and validates
    settings = get_permission_settings()  # Subsequent calls: cached instance

Testing:
    Clear the caches to force a reload after changing the environment:
    clear_all_caches()
"""

from __future__ import annotations

from functools import lru_cache

from .logs import LoggingSettings
from .permissions import PermissionSettings


@lru_cache(maxsize=1)
def get_permission_settings() -> PermissionSettings:
    """Get cached permission engine settings.

    Returns:
        Validated and frozen PermissionSettings instance.
    """
    return PermissionSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


def clear_all_caches() -> None:
    """Clear all settings caches and everything derived from them.

    Useful for testing or when you need to force reload settings.
    In production, prefer process restarts over cache clearing.
    """
    from permission_service.core.permissions.compiler import _get_cached_compiled_permissions
    from permission_service.core.permissions.hierarchy import (
        get_guest_allow_list,
        get_permission_hierarchy,
    )

    get_permission_settings.cache_clear()
    get_logging_settings.cache_clear()
    get_permission_hierarchy.cache_clear()
    get_guest_allow_list.cache_clear()
    _get_cached_compiled_permissions.cache_clear()
