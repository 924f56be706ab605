"""Custom exception classes for the permission engine."""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception.

    All custom exceptions should inherit from this class.
    Follows RFC 7807 Problem Details for HTTP APIs so callers can map
    engine errors straight onto a response body.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message.
        type: Error type identifier (used in RFC 7807 problem details).
        title: Short, human-readable summary of the problem type.
        instance: URI reference that identifies the specific occurrence of the problem.
        extra: Additional context-specific information about the error.

    Example:
            raise AppException(
            status_code=403,
            detail="Permission denied: project:42:devices:delete:allow",
            type="permission-denied",
            instance="/api/v1/projects/42/devices/7",
            extra={"permission": "project:42:devices:delete:allow"}
        )
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            status_code: HTTP status code.
            detail: Human-readable error message.
            type: Error type identifier.
            title: Short summary of the problem type.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        """Get default title for HTTP status code.

        Args:
            status_code: HTTP status code.

        Returns:
            Default title for the status code.
        """
        titles = {
            400: "Bad Request",
            403: "Forbidden",
            422: "Unprocessable Entity",
            500: "Internal Server Error",
        }
        return titles.get(status_code, "Error")

    def to_problem_detail(self) -> dict[str, Any]:
        """Render the exception as an RFC 7807 problem detail mapping."""
        problem: dict[str, Any] = {
            "type": self.type,
            "title": self.title,
            "status": self.status_code,
            "detail": self.detail,
        }
        if self.instance is not None:
            problem["instance"] = self.instance
        problem.update(self.extra)
        return problem


class ForbiddenException(AppException):
    """Exception raised for authorization failures.

    Example:
            raise ForbiddenException(
            detail="Insufficient permissions",
            type="forbidden",
            extra={"required_permission": "workspace:w1:members:admin:allow"}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "forbidden",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize forbidden exception.

        Args:
            detail: Human-readable error message.
            type: Error type identifier.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        super().__init__(
            status_code=403,
            detail=detail,
            type=type,
            title="Forbidden",
            instance=instance,
            extra=extra,
        )


class BadRequestException(AppException):
    """Exception raised for malformed input.

    Example:
            raise BadRequestException(
            detail="Invalid permission format",
            type="bad-request",
            extra={"reason": "expected 5 segments"}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "bad-request",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize bad request exception.

        Args:
            detail: Human-readable error message.
            type: Error type identifier.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        super().__init__(
            status_code=400,
            detail=detail,
            type=type,
            title="Bad Request",
            instance=instance,
            extra=extra,
        )


class InternalServerException(AppException):
    """Exception raised for failures that are not the caller's fault."""

    def __init__(
        self,
        detail: str,
        type: str = "internal-error",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize internal server exception."""
        super().__init__(
            status_code=500,
            detail=detail,
            type=type,
            title="Internal Server Error",
            instance=instance,
            extra=extra,
        )


# ============================================================================
# Permission Engine Exceptions
# ============================================================================


class MalformedPermissionError(BadRequestException, ValueError):
    """Exception raised when a permission string cannot be parsed.

    A permission string must have exactly five non-empty colon-separated
    segments and end in ``allow`` or ``deny``.

    Example:
        raise MalformedPermissionError("project:42:read", "expected 5 segments, got 3")
    """

    def __init__(
        self,
        permission: str,
        reason: str,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize malformed permission exception."""
        self.permission = permission
        self.reason = reason
        final_extra: dict[str, Any] = {"permission": permission, "reason": reason}
        if extra:
            final_extra.update(extra)
        super().__init__(
            detail=(
                f"Invalid permission format: {permission!r} ({reason}). "
                "Expected format: resource_type:resource_id:scope:action:effect"
            ),
            type="malformed-permission",
            instance=instance,
            extra=final_extra,
        )


class PermissionDeniedException(ForbiddenException):
    """Exception raised by throwing-mode permission checks.

    ``permission`` is the first permission that failed; ``denied_permissions``
    holds every failing permission (for ``match="all"`` checks) or the whole
    request (for ``match="any"`` checks).

    Example:
        raise PermissionDeniedException(
            "project:42:devices:delete:allow",
            denied_permissions=["project:42:devices:delete:allow"],
        )
    """

    def __init__(
        self,
        permission: str,
        denied_permissions: list[str] | None = None,
        detail: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize permission denied exception."""
        self.permission = permission
        self.denied_permissions = list(denied_permissions or [permission])
        final_extra: dict[str, Any] = {
            "permission": permission,
            "denied_permissions": self.denied_permissions,
        }
        if extra:
            final_extra.update(extra)
        super().__init__(
            detail=detail or f"Permission denied: {permission}",
            type="permission-denied",
            instance=instance,
            extra=final_extra,
        )

    @property
    def scope(self) -> str | None:
        """Scope segment of the failing permission, if it parses that far."""
        parts = self.permission.split(":")
        return parts[2] if len(parts) > 2 else None

    @property
    def action(self) -> str | None:
        """Action segment of the failing permission, if it parses that far."""
        parts = self.permission.split(":")
        return parts[3] if len(parts) > 3 else None


class HierarchyExpansionError(InternalServerException):
    """Exception raised when hierarchy expansion exceeds its configured bounds.

    Example:
        raise HierarchyExpansionError("no fixed point after 64 passes", passes=64, size=812)
    """

    def __init__(
        self,
        detail: str,
        passes: int,
        size: int,
        instance: str | None = None,
    ) -> None:
        """Initialize hierarchy expansion exception."""
        self.passes = passes
        self.size = size
        super().__init__(
            detail=f"Permission hierarchy expansion aborted: {detail}",
            type="hierarchy-expansion-failed",
            instance=instance,
            extra={"passes": passes, "size": size},
        )


class PermissionConfigurationError(InternalServerException, ValueError):
    """Exception raised when the hierarchy or guest-allow list is misconfigured."""

    def __init__(
        self,
        detail: str,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize permission configuration exception."""
        super().__init__(
            detail=detail,
            type="permission-configuration-invalid",
            extra=extra,
        )


__all__ = [
    "AppException",
    "BadRequestException",
    "ForbiddenException",
    "HierarchyExpansionError",
    "InternalServerException",
    "MalformedPermissionError",
    "PermissionConfigurationError",
    "PermissionDeniedException",
]
