"""Permission checking utilities for route handlers.

High-level helpers that raise HTTPException with an RFC 7807 Problem
Details body when a permission check fails. Use them in route handler
bodies when the permission depends on runtime data; use the
``require_permissions()`` dependency factory from
``core.dependencies.permissions`` when an endpoint always needs the same
permission.

Example Usage:
    ```python
    from permission_service.core.dependencies.permissions import CurrentSubject
    from permission_service.core.utils.permissions import require_permission

    @router.delete("/projects/{project_id}/devices/{device_id}")
    async def delete_device(
        project_id: str,
        device_id: str,
        subject: CurrentSubject,
        request: Request,
    ):
        device = await devices.get(device_id)
        require_permission(
            subject.permissions,
            f"project:{device.project_id}:devices:delete:allow",
            request.url.path,
        )
        await devices.delete(device_id)
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import HTTPException, status

from permission_service.core.exceptions import PermissionDeniedException
from permission_service.core.permissions.evaluator import with_permission

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


def permission_denied_http_exception(
    exc: PermissionDeniedException,
    request_path: str | None = None,
) -> HTTPException:
    """Convert a ``PermissionDeniedException`` to a 403 HTTPException."""
    detail = exc.to_problem_detail()
    detail["instance"] = request_path or exc.instance
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def _require(
    granted: Iterable[str],
    permissions: str | Sequence[str],
    request_path: str | None,
    match: str,
) -> None:
    try:
        with_permission(granted, permissions, match=match, context={"instance": request_path})
    except PermissionDeniedException as exc:
        raise permission_denied_http_exception(exc, request_path) from exc


def require_permission(
    granted: Iterable[str],
    permission: str,
    request_path: str | None = None,
) -> None:
    """Require the granted permissions to allow one permission.

    Args:
        granted: The subject's granted permission strings.
        permission: Required permission (e.g., "project:42:devices:delete:allow").
        request_path: Optional request path for error context (use request.url.path).

    Raises:
        HTTPException: 403 Forbidden if the permission is not allowed.
    """
    _require(granted, permission, request_path, "any")


def require_any_permission(
    granted: Iterable[str],
    permissions: Sequence[str],
    request_path: str | None = None,
) -> None:
    """Require at least one of the permissions (OR logic).

    An empty ``permissions`` list is always satisfied.

    Raises:
        HTTPException: 403 Forbidden if none of the permissions is allowed.
    """
    _require(granted, list(permissions), request_path, "any")


def require_all_permissions(
    granted: Iterable[str],
    permissions: Sequence[str],
    request_path: str | None = None,
) -> None:
    """Require every one of the permissions (AND logic).

    The 403 body lists every missing permission under ``denied_permissions``.

    Raises:
        HTTPException: 403 Forbidden if any permission is not allowed.
    """
    _require(granted, list(permissions), request_path, "all")


__all__ = [
    "permission_denied_http_exception",
    "require_all_permissions",
    "require_any_permission",
    "require_permission",
]
