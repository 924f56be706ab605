"""Permission string parsing.

A permission string has five colon-separated segments::

    resource_type:resource_id:scope:action:effect

Examples:
    - project:abc123:devices:read:allow
    - workspace:*:settings:update:allow
    - project:42:devices:*:deny

Any of the first four segments may be the literal wildcard ``*``. The effect
is always concrete and must be ``allow`` or ``deny``. Strings are taken as
already canonical: no trimming and no case folding happen here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from permission_service.core.exceptions import MalformedPermissionError

__all__ = [
    "EFFECTS",
    "SEGMENT_COUNT",
    "WILDCARD",
    "Effect",
    "PermissionToken",
    "format_permission",
    "parse_permission",
    "try_parse_permission",
    "validate_permission_format",
]

WILDCARD = "*"
SEGMENT_COUNT = 5
EFFECTS = ("allow", "deny")

Effect = Literal["allow", "deny"]


@dataclass(frozen=True, slots=True)
class PermissionToken:
    """Parsed permission string.

    Tokens are immutable value objects: two tokens with the same fields are
    equal and hash the same.
    """

    resource_type: str
    resource_id: str
    scope: str
    action: str
    effect: Effect

    def __str__(self) -> str:
        return format_permission(
            self.resource_type,
            self.resource_id,
            self.scope,
            self.action,
            self.effect,
        )

    @property
    def is_allow(self) -> bool:
        return self.effect == "allow"

    @property
    def is_deny(self) -> bool:
        return self.effect == "deny"

    @property
    def has_wildcards(self) -> bool:
        """Whether any structural field is the ``*`` wildcard."""
        return WILDCARD in (self.resource_type, self.resource_id, self.scope, self.action)


def parse_permission(permission: str) -> PermissionToken:
    """Parse a permission string into a PermissionToken.

    Args:
        permission: Permission string, e.g. ``"project:42:devices:read:allow"``.

    Returns:
        The parsed token.

    Raises:
        MalformedPermissionError: If the string does not have exactly five
            non-empty segments, or the effect is not ``allow``/``deny``.

    Example:
        >>> parse_permission("workspace:*:members:admin:allow")
        PermissionToken(resource_type='workspace', resource_id='*', scope='members', action='admin', effect='allow')
    """
    parts = permission.split(":")

    if len(parts) != SEGMENT_COUNT:
        msg = f"expected {SEGMENT_COUNT} segments, got {len(parts)}"
        raise MalformedPermissionError(permission, msg)

    for index, part in enumerate(parts):
        if not part:
            msg = f"segment {index + 1} is empty"
            raise MalformedPermissionError(permission, msg)

    resource_type, resource_id, scope, action, effect = parts

    if effect not in EFFECTS:
        msg = f"effect must be 'allow' or 'deny', got {effect!r}"
        raise MalformedPermissionError(permission, msg)

    return PermissionToken(
        resource_type=resource_type,
        resource_id=resource_id,
        scope=scope,
        action=action,
        effect=effect,  # type: ignore[arg-type]
    )


def try_parse_permission(permission: str) -> PermissionToken | None:
    """Parse a permission string, returning None instead of raising."""
    try:
        return parse_permission(permission)
    except MalformedPermissionError:
        return None


def validate_permission_format(permission: str) -> bool:
    """Check whether a string is a well-formed permission.

    Example:
        >>> validate_permission_format("project:42:devices:read:allow")
        True
        >>> validate_permission_format("project:42:read")
        False
    """
    return try_parse_permission(permission) is not None


def format_permission(
    resource_type: str,
    resource_id: str,
    scope: str,
    action: str,
    effect: str = "allow",
) -> str:
    """Build a permission string from its segments.

    Use this instead of f-strings so every permission is assembled the same way.

    Example:
        >>> format_permission("project", "42", "devices", "read")
        'project:42:devices:read:allow'
    """
    return ":".join((resource_type, resource_id, scope, action, effect))
