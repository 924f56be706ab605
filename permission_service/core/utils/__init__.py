"""Core utility functions for route handlers.

Utilities Organization:
    - permissions: imperative permission checks raising HTTPException(403)
"""

from __future__ import annotations

from permission_service.core.utils.permissions import (
    permission_denied_http_exception,
    require_all_permissions,
    require_any_permission,
    require_permission,
)

__all__ = [
    "permission_denied_http_exception",
    "require_all_permissions",
    "require_any_permission",
    "require_permission",
]
