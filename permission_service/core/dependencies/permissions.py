"""Permission dependencies for FastAPI endpoints.

This module provides:
- ``Subject``: the granted permissions of the caller
- ``get_current_subject``: the dependency resolving the caller (override it)
- ``require_permissions``: dependency factory checking permissions per route

The engine does not authenticate. Applications either store a ``Subject`` on
``request.state.subject`` in their auth middleware, or override
``get_current_subject``:

    ```python
    app.dependency_overrides[get_current_subject] = my_subject_resolver
    ```

Type Alias Pattern:
    ```python
    from typing import Annotated
    from fastapi import Depends

    ProjectReader = Annotated[
        Subject, Depends(require_permissions("project:{project_id}:*:read:allow"))
    ]

    @router.get("/projects/{project_id}")
    async def get_project(project_id: str, subject: ProjectReader):
        ...
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine
import logging
from typing import Annotated, Any, Literal

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field

from permission_service.core.exceptions import PermissionDeniedException
from permission_service.core.permissions.evaluator import with_permission
from permission_service.core.utils.permissions import permission_denied_http_exception

logger = logging.getLogger(__name__)


class Subject(BaseModel):
    """The caller of an endpoint and its granted permissions."""

    model_config = ConfigDict(frozen=True)

    subject_id: str = Field(min_length=1, description="User or service identifier")
    permissions: tuple[str, ...] = Field(
        default=(), description="Granted permission strings (roles and exceptions combined)"
    )
    is_guest: bool = Field(default=False, description="Whether the membership is a guest membership")


async def get_current_subject(request: Request) -> Subject:
    """Get the subject stored on ``request.state.subject``.

    Raises:
        HTTPException: 401 if no subject was resolved for the request.
    """
    subject = getattr(request.state, "subject", None)
    if not isinstance(subject, Subject):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "type": "unauthenticated",
                "title": "Unauthorized",
                "status": 401,
                "detail": "No authenticated subject for this request",
                "instance": request.url.path,
            },
        )
    return subject


CurrentSubject = Annotated[Subject, Depends(get_current_subject)]


def require_permissions(
    *permissions: str,
    match: Literal["any", "all"] = "any",
) -> Callable[[Request, Subject], Coroutine[Any, Any, Subject]]:
    """Dependency factory requiring permissions for a route.

    Permission templates may contain path parameter placeholders like
    ``{project_id}``, formatted with the actual request values. Guest
    subjects are additionally narrowed to the guest-allow list.

    Args:
        *permissions: Required permission templates.
        match: ``any`` (default) or ``all`` of the permissions.

    Returns:
        Dependency returning the subject when the check passes.

    Example:
        @router.delete("/projects/{project_id}/devices/{device_id}")
        async def delete_device(
            subject: Annotated[
                Subject,
                Depends(require_permissions("project:{project_id}:devices:delete:allow")),
            ],
        ):
            ...
    """

    async def permission_checker(
        request: Request,
        subject: Annotated[Subject, Depends(get_current_subject)],
    ) -> Subject:
        formatted = [permission.format(**request.path_params) for permission in permissions]

        try:
            with_permission(
                subject.permissions,
                formatted,
                match=match,
                is_guest=subject.is_guest,
                context={"subject_id": subject.subject_id, "instance": request.url.path},
            )
        except PermissionDeniedException as exc:
            logger.warning(
                "Subject lacks required permissions",
                extra={
                    "subject_id": subject.subject_id,
                    "is_guest": subject.is_guest,
                    "required_permissions": formatted,
                    "denied_permissions": exc.denied_permissions,
                    "match": match,
                },
            )
            raise permission_denied_http_exception(exc, request.url.path) from exc

        return subject

    return permission_checker


__all__ = [
    "CurrentSubject",
    "Subject",
    "get_current_subject",
    "require_permissions",
]
