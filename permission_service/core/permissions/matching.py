"""Structural wildcard matching between permission tokens."""

from __future__ import annotations

from typing import TYPE_CHECKING

from permission_service.core.permissions.tokens import WILDCARD

if TYPE_CHECKING:
    from collections.abc import Iterable

    from permission_service.core.permissions.tokens import PermissionToken

__all__ = ["any_matches", "permission_matches"]


def _field_matches(pattern_value: str, target_value: str) -> bool:
    return pattern_value == WILDCARD or pattern_value == target_value


def permission_matches(pattern: PermissionToken, target: PermissionToken) -> bool:
    """Check whether a pattern token covers a target token.

    Resource type, resource id, scope and action are compared position by
    position; a ``*`` in the pattern matches any value. The effect is not
    compared.

    Only the pattern's wildcards count. A literal ``*`` in the target is just
    a value, so ``workspace:*:members:read`` does not cover
    ``workspace:*:*:read``.

    Args:
        pattern: Granted or hierarchy token (may contain wildcards).
        target: Requested token.

    Returns:
        True if every structural field of the pattern matches the target.
    """
    return (
        _field_matches(pattern.resource_type, target.resource_type)
        and _field_matches(pattern.resource_id, target.resource_id)
        and _field_matches(pattern.scope, target.scope)
        and _field_matches(pattern.action, target.action)
    )


def any_matches(patterns: Iterable[PermissionToken], target: PermissionToken) -> bool:
    """Check whether at least one pattern covers the target."""
    return any(permission_matches(pattern, target) for pattern in patterns)
