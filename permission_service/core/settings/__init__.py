"""Pydantic Settings v2 configuration.

Settings are split by domain (permissions, logging), frozen, and loaded
through LRU-cached loaders:

    from permission_service.core.settings import get_permission_settings

    settings = get_permission_settings()
    print(settings.max_expansion_passes)

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. YAML/conf.d files (conf/permissions.yaml, conf/permissions.d/*.yaml)
    3. Environment variables (PERMISSIONS_*, LOG_*)
    4. .env file
    5. secrets_dir
"""

from __future__ import annotations

from .loader import clear_all_caches, get_logging_settings, get_permission_settings
from .logs import LoggingSettings
from .permissions import PermissionSettings

__all__ = [
    "LoggingSettings",
    "PermissionSettings",
    "clear_all_caches",
    "get_logging_settings",
    "get_permission_settings",
]
