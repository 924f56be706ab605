"""FastAPI dependencies for route handlers.

Usage:
    from permission_service.core.dependencies import CurrentSubject, require_permissions

    @router.get("/workspaces/{workspace_id}/members")
    async def list_members(
        subject: Annotated[
            Subject, Depends(require_permissions("workspace:{workspace_id}:members:read:allow"))
        ],
    ):
        ...
"""

from __future__ import annotations

from permission_service.core.dependencies.permissions import (
    CurrentSubject,
    Subject,
    get_current_subject,
    require_permissions,
)

__all__ = [
    "CurrentSubject",
    "Subject",
    "get_current_subject",
    "require_permissions",
]
