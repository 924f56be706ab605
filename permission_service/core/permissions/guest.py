"""Guest scope filtering.

Guests are members whose effective permissions are narrowed to a fixed
guest-allow list. A guest is allowed only if the normal decision allows the
request *and* the requested permission matches one of the guest-allow
patterns. Non-guests get the normal decision unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from permission_service.core.permissions.evaluator import check_permission, is_permission_allowed
from permission_service.core.permissions.hierarchy import compile_guest_allow_list, get_guest_allow_list
from permission_service.core.permissions.matching import any_matches
from permission_service.core.permissions.tokens import try_parse_permission

if TYPE_CHECKING:
    from collections.abc import Iterable

    from permission_service.core.permissions.hierarchy import PermissionHierarchy

__all__ = [
    "is_allowed_for_guest",
    "is_permission_allowed_for_user",
    "is_permission_guest_assignable",
    "is_role_guest_assignable",
]


def is_permission_guest_assignable(
    permission: str,
    guest_allow_list: Iterable[str] | None = None,
) -> bool:
    """Check whether a permission is structurally covered by the guest-allow list.

    No hierarchy expansion is applied and the pattern effects are ignored.
    A malformed permission is never guest assignable.

    Example:
        >>> is_permission_guest_assignable("project:7:jobs:read:allow")
        True
        >>> is_permission_guest_assignable("project:7:jobs:delete:allow")
        False
    """
    token = try_parse_permission(permission)
    if token is None:
        return False
    return any_matches(compile_guest_allow_list(guest_allow_list), token)


def is_permission_allowed_for_user(
    granted: Iterable[str],
    requested: str,
    *,
    is_guest: bool,
    guest_allow_list: Iterable[str] | None = None,
    hierarchy: PermissionHierarchy | None = None,
) -> bool:
    """Decide a request, narrowing the result for guest members.

    Args:
        granted: The subject's granted permission strings.
        requested: Concrete permission being requested.
        is_guest: Whether the subject holds a guest membership.
        guest_allow_list: Guest-allow patterns. Defaults to the configured list.
        hierarchy: Hierarchy to expand grants with. Defaults to the configured one.

    Returns:
        The normal decision for non-guests; for guests, the normal decision
        AND a guest-allow pattern covering the request.
    """
    return is_permission_allowed(
        granted,
        requested,
        hierarchy,
        is_guest=is_guest,
        guest_allow_list=guest_allow_list,
    )


def is_allowed_for_guest(
    granted: Iterable[str],
    requested: str,
    guest_allow_list: Iterable[str] | None = None,
    hierarchy: PermissionHierarchy | None = None,
) -> bool:
    """Guest form of ``is_permission_allowed_for_user``."""
    return is_permission_allowed_for_user(
        granted,
        requested,
        is_guest=True,
        guest_allow_list=guest_allow_list,
        hierarchy=hierarchy,
    )


def is_role_guest_assignable(
    role_permissions: Iterable[str],
    guest_allow_list: Iterable[str] | None = None,
    hierarchy: PermissionHierarchy | None = None,
) -> bool:
    """Check whether every permission of a role could be held by a guest.

    The guest-allow list is treated as a grant set: it is expanded with the
    hierarchy and each role permission must be allowed by it.

    Example:
        >>> is_role_guest_assignable(
        ...     ["project:*:*:read:allow", "project:*:jobs:create:allow"],
        ...     ["project:*:*:read:allow"],
        ... )
        False
    """
    patterns = list(get_guest_allow_list() if guest_allow_list is None else guest_allow_list)
    return all(
        check_permission(patterns, permission, mode="silent", hierarchy=hierarchy)
        for permission in role_permissions
    )
