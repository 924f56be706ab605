"""Resource-bound permission checker for use in business logic.

While the ``require_permissions()`` dependency is preferred for route
protection, this class answers "can this subject do X on this resource?"
inside service methods, where the resource is already known.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from permission_service.core.permissions.evaluator import can_do

if TYPE_CHECKING:
    from collections.abc import Iterable

    from permission_service.core.permissions.hierarchy import PermissionHierarchy

__all__ = [
    "ResourcePermissionChecker",
    "create_project_permission_checker",
    "create_workspace_permission_checker",
]


class ResourcePermissionChecker:
    """Permission checks bound to one resource.

    Every method builds ``resource_type:resource_id:<scope>:<action>:allow``
    and runs it through ``can_do``, so checks are silent unless a ``mode`` is
    passed.

    Example:
        >>> checker = ResourcePermissionChecker(
        ...     ["project:*:devices:read:allow"], "project", "p1"
        ... )
        >>> checker.can_read("devices")
        True
        >>> checker.can_delete("devices")
        False
    """

    def __init__(
        self,
        granted: Iterable[str],
        resource_type: str,
        resource_id: str,
        hierarchy: PermissionHierarchy | None = None,
    ) -> None:
        """Bind granted permissions to a resource.

        Args:
            granted: The subject's granted permission strings.
            resource_type: Resource type, e.g. ``workspace`` or ``project``.
            resource_id: Concrete resource id.
            hierarchy: Hierarchy to expand grants with. Defaults to the configured one.
        """
        self.granted = tuple(granted)
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.hierarchy = hierarchy

    def can(self, scope: str, action: str, **options: Any) -> bool | None:
        """Check an arbitrary scope/action on the bound resource."""
        return can_do(
            self.granted,
            self.resource_type,
            self.resource_id,
            scope,
            action,
            hierarchy=self.hierarchy,
            **options,
        )

    def can_read(self, scope: str, **options: Any) -> bool | None:
        return self.can(scope, "read", **options)

    def can_write(self, scope: str, **options: Any) -> bool | None:
        return self.can(scope, "write", **options)

    def can_create(self, scope: str, **options: Any) -> bool | None:
        return self.can(scope, "create", **options)

    def can_update(self, scope: str, **options: Any) -> bool | None:
        return self.can(scope, "update", **options)

    def can_delete(self, scope: str, **options: Any) -> bool | None:
        return self.can(scope, "delete", **options)

    def can_admin(self, scope: str, **options: Any) -> bool | None:
        return self.can(scope, "admin", **options)

    def get_failed_actions(self, scope: str, *actions: str) -> list[str]:
        """Get the actions on a scope that the subject may NOT perform.

        Useful for error messages explaining missing permissions.
        """
        return [action for action in actions if not self.can(scope, action, mode="silent")]

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(resource_type={self.resource_type!r}, "
            f"resource_id={self.resource_id!r}, grants={len(self.granted)})"
        )


def create_workspace_permission_checker(
    granted: Iterable[str],
    workspace_id: str,
    hierarchy: PermissionHierarchy | None = None,
) -> ResourcePermissionChecker:
    """Create a checker bound to ``workspace:<workspace_id>``."""
    return ResourcePermissionChecker(granted, "workspace", workspace_id, hierarchy)


def create_project_permission_checker(
    granted: Iterable[str],
    project_id: str,
    hierarchy: PermissionHierarchy | None = None,
) -> ResourcePermissionChecker:
    """Create a checker bound to ``project:<project_id>``."""
    return ResourcePermissionChecker(granted, "project", project_id, hierarchy)
