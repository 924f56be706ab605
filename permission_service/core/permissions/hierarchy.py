"""Permission hierarchy and guest-allow list.

The hierarchy maps a trigger pattern to the permission templates it implies.
When a granted *allow* permission matches a trigger, every implied template is
added to the grant set, with a ``*`` resource type or resource id filled in
from the granted permission (see ``expansion.expand_permissions``).

Both the hierarchy and the guest-allow list are read-only process-wide
constants. They come from ``PermissionSettings`` (YAML or environment) and
default to the built-in tables below.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType

from permission_service.core.exceptions import (
    MalformedPermissionError,
    PermissionConfigurationError,
)
from permission_service.core.permissions.matching import permission_matches
from permission_service.core.permissions.tokens import (
    PermissionToken,
    parse_permission,
    try_parse_permission,
)

__all__ = [
    "DEFAULT_GUEST_ALLOW_LIST",
    "DEFAULT_PERMISSION_HIERARCHY",
    "HierarchyRule",
    "PermissionHierarchy",
    "compile_guest_allow_list",
    "get_guest_allow_list",
    "get_permission_hierarchy",
    "validate_guest_allow_list",
    "validate_hierarchy",
]


DEFAULT_PERMISSION_HIERARCHY: Mapping[str, tuple[str, ...]] = MappingProxyType({
    # Analytics and jobs
    "project:*:analytics:create:allow": ("project:*:analytics:execute:allow",),
    "project:*:analytics:update:allow": ("project:*:analytics:execute:allow",),
    "project:*:jobs:create:allow": ("project:*:jobs:execute:allow",),
    # Invitations
    "workspace:*:*:invite:allow": ("workspace:*:members:invite:allow",),
    "project:*:*:invite:allow": ("project:*:members:invite:allow",),
    # Workspace scopes
    "workspace:*:settings:admin:allow": (
        "workspace:*:settings:read:allow",
        "workspace:*:settings:update:allow",
    ),
    "workspace:*:members:admin:allow": (
        "workspace:*:members:read:allow",
        "workspace:*:members:invite:allow",
        "workspace:*:members:update:allow",
        "workspace:*:members:delete:allow",
    ),
    "workspace:*:projects:admin:allow": (
        "workspace:*:projects:read:allow",
        "workspace:*:projects:create:allow",
        "workspace:*:projects:update:allow",
        "workspace:*:projects:delete:allow",
        "project:*:settings:read:allow",
        "project:*:members:read:allow",
    ),
    "workspace:*:teams:admin:allow": (
        "workspace:*:teams:read:allow",
        "workspace:*:teams:create:allow",
        "workspace:*:teams:update:allow",
        "workspace:*:teams:delete:allow",
    ),
    "workspace:*:billing:admin:allow": (
        "workspace:*:billing:read:allow",
        "workspace:*:billing:update:allow",
    ),
    # Project scopes
    "project:*:settings:admin:allow": (
        "project:*:settings:read:allow",
        "project:*:settings:update:allow",
    ),
    "project:*:devices:admin:allow": (
        "project:*:devices:read:allow",
        "project:*:devices:create:allow",
        "project:*:devices:update:allow",
        "project:*:devices:delete:allow",
    ),
    "project:*:assets:admin:allow": (
        "project:*:assets:read:allow",
        "project:*:assets:create:allow",
        "project:*:assets:update:allow",
        "project:*:assets:delete:allow",
    ),
    "project:*:analytics:admin:allow": (
        "project:*:analytics:read:allow",
        "project:*:analytics:create:allow",
        "project:*:analytics:update:allow",
        "project:*:analytics:delete:allow",
        "project:*:analytics:execute:allow",
    ),
    "project:*:jobs:admin:allow": (
        "project:*:jobs:read:allow",
        "project:*:jobs:create:allow",
        "project:*:jobs:update:allow",
        "project:*:jobs:delete:allow",
        "project:*:jobs:execute:allow",
    ),
    "project:*:members:admin:allow": (
        "project:*:members:read:allow",
        "project:*:members:invite:allow",
        "project:*:members:update:allow",
        "project:*:members:delete:allow",
    ),
    # Resource type level
    "workspace:*:*:admin:allow": (
        "workspace:*:*:read:allow",
        "workspace:*:*:create:allow",
        "workspace:*:*:update:allow",
        "workspace:*:*:delete:allow",
        "project:*:*:read:allow",
    ),
    "project:*:*:admin:allow": (
        "project:*:*:read:allow",
        "project:*:*:create:allow",
        "project:*:*:update:allow",
        "project:*:*:delete:allow",
    ),
    "system:*:*:admin:allow": (
        "system:*:*:read:allow",
        "system:*:*:create:allow",
        "system:*:*:update:allow",
        "system:*:*:delete:allow",
    ),
    # Action level
    "*:*:*:write:allow": (
        "*:*:*:create:allow",
        "*:*:*:update:allow",
    ),
    "*:*:*:update:allow": ("*:*:*:create:allow",),
})

DEFAULT_GUEST_ALLOW_LIST: tuple[str, ...] = (
    "workspace:*:*:read:allow",
    "project:*:*:read:allow",
    "project:*:analytics:read:allow",
    "project:*:devices:read:allow",
    "project:*:assets:read:allow",
    "project:*:jobs:read:allow",
)


@dataclass(frozen=True, slots=True)
class HierarchyRule:
    """One trigger pattern and the templates it implies."""

    pattern: str
    trigger: PermissionToken
    implies: tuple[str, ...]


class PermissionHierarchy:
    """Immutable, parsed permission hierarchy.

    Trigger patterns are parsed once, here. Implied templates are kept
    verbatim; a malformed template is skipped (with a warning) when it is
    reached during expansion.

    Example:
        >>> hierarchy = PermissionHierarchy({
        ...     "workspace:*:members:admin:allow": ["workspace:*:members:read:allow"],
        ... })
        >>> len(hierarchy)
        1
    """

    __slots__ = ("_rules",)

    def __init__(self, rules: Mapping[str, Iterable[str]] | None = None) -> None:
        """Parse the trigger patterns of a hierarchy mapping.

        Args:
            rules: Mapping of trigger pattern to implied permission templates.

        Raises:
            PermissionConfigurationError: If a trigger pattern is malformed.
        """
        parsed: list[HierarchyRule] = []
        for pattern, implies in (rules or {}).items():
            try:
                trigger = parse_permission(pattern)
            except MalformedPermissionError as exc:
                msg = f"Invalid hierarchy trigger {pattern!r}: {exc.reason}"
                raise PermissionConfigurationError(msg, extra={"pattern": pattern}) from exc
            parsed.append(HierarchyRule(pattern=pattern, trigger=trigger, implies=tuple(implies)))
        self._rules: tuple[HierarchyRule, ...] = tuple(parsed)

    @classmethod
    def empty(cls) -> PermissionHierarchy:
        return cls({})

    @property
    def rules(self) -> tuple[HierarchyRule, ...]:
        return self._rules

    def matching_rules(self, token: PermissionToken) -> Iterator[HierarchyRule]:
        """Yield rules whose trigger pattern matches the token."""
        for rule in self._rules:
            if permission_matches(rule.trigger, token):
                yield rule

    def as_dict(self) -> dict[str, list[str]]:
        return {rule.pattern: list(rule.implies) for rule in self._rules}

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[HierarchyRule]:
        return iter(self._rules)

    def __bool__(self) -> bool:
        return bool(self._rules)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rules={len(self._rules)})"


def validate_hierarchy(rules: Mapping[str, Iterable[str]]) -> list[str]:
    """Collect every problem in a hierarchy mapping.

    Used at configuration load time so that a bad hierarchy fails loudly
    instead of being skipped entry by entry during expansion.

    Args:
        rules: Mapping of trigger pattern to implied templates.

    Returns:
        Human-readable error messages; empty when the hierarchy is valid.
    """
    errors: list[str] = []
    for pattern, implies in rules.items():
        try:
            parse_permission(pattern)
        except MalformedPermissionError as exc:
            errors.append(f"trigger {pattern!r}: {exc.reason}")
        for template in implies:
            try:
                parse_permission(template)
            except MalformedPermissionError as exc:
                errors.append(f"template {template!r} (under {pattern!r}): {exc.reason}")
    return errors


def validate_guest_allow_list(patterns: Iterable[str]) -> list[str]:
    """Collect every malformed pattern in a guest-allow list."""
    errors: list[str] = []
    for pattern in patterns:
        try:
            parse_permission(pattern)
        except MalformedPermissionError as exc:
            errors.append(f"guest pattern {pattern!r}: {exc.reason}")
    return errors


@lru_cache(maxsize=1)
def get_permission_hierarchy() -> PermissionHierarchy:
    """Get the configured, process-wide permission hierarchy.

    Loaded once from ``PermissionSettings``. Tests can reset it with
    ``get_permission_hierarchy.cache_clear()``.
    """
    from permission_service.core.settings import get_permission_settings

    return PermissionHierarchy(get_permission_settings().hierarchy)


@lru_cache(maxsize=1)
def get_guest_allow_list() -> tuple[str, ...]:
    """Get the configured, process-wide guest-allow list."""
    from permission_service.core.settings import get_permission_settings

    return tuple(get_permission_settings().guest_allow_list)


def compile_guest_allow_list(guest_allow_list: Iterable[str] | None = None) -> tuple[PermissionToken, ...]:
    """Parse guest-allow patterns, dropping malformed ones.

    ``None`` means the configured list.
    """
    patterns = get_guest_allow_list() if guest_allow_list is None else guest_allow_list
    return tuple(token for token in map(try_parse_permission, patterns) if token is not None)
