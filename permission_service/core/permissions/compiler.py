"""Compile permission lists into allow/deny token sets.

Compilation parses every entry once and partitions the tokens by effect so
that repeated lookups against the same grants only do structural matching.
Malformed entries are dropped with a warning; one corrupt grant must not
defeat authorization for an otherwise valid subject.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import logging
from typing import TYPE_CHECKING

from permission_service.core.exceptions import MalformedPermissionError
from permission_service.core.permissions.expansion import expand_permissions
from permission_service.core.permissions.hierarchy import get_permission_hierarchy
from permission_service.core.permissions.matching import any_matches
from permission_service.core.permissions.tokens import PermissionToken, parse_permission

if TYPE_CHECKING:
    from collections.abc import Iterable

    from permission_service.core.permissions.hierarchy import PermissionHierarchy

__all__ = [
    "CompiledPermissionSet",
    "compile_permissions",
    "get_cached_compiled_permissions",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CompiledPermissionSet:
    """Granted permissions partitioned by effect.

    Matching rules:
    1. Deny tokens are checked first - any match means denied
    2. Allow tokens are checked next - any match means allowed
    3. Nothing matches - denied
    """

    allows: tuple[PermissionToken, ...] = ()
    denies: tuple[PermissionToken, ...] = ()

    def is_denied(self, target: PermissionToken) -> bool:
        return any_matches(self.denies, target)

    def is_granted(self, target: PermissionToken) -> bool:
        return any_matches(self.allows, target)

    def decide(self, target: PermissionToken) -> bool:
        """Apply deny-override then default-deny to a requested token."""
        if self.is_denied(target):
            return False
        return self.is_granted(target)


def compile_permissions(permissions: Iterable[str], *, warn: bool = True) -> CompiledPermissionSet:
    """Parse and partition a permission list.

    This does not expand the list; pass the result of ``expand_permissions``
    when hierarchy implications should count.

    Args:
        permissions: Permission strings.
        warn: Log a warning for each malformed entry dropped.

    Returns:
        The compiled allow/deny sets.
    """
    allows: list[PermissionToken] = []
    denies: list[PermissionToken] = []

    for permission in permissions:
        try:
            token = parse_permission(permission)
        except MalformedPermissionError as exc:
            if warn:
                logger.warning(
                    "Dropping malformed permission during compilation: %s",
                    exc.reason,
                    extra={"permission": permission},
                )
            continue

        if token.is_deny:
            denies.append(token)
        else:
            allows.append(token)

    return CompiledPermissionSet(allows=tuple(allows), denies=tuple(denies))


def get_cached_compiled_permissions(
    permissions: Iterable[str],
    hierarchy: PermissionHierarchy | None = None,
) -> CompiledPermissionSet:
    """Expand and compile a grant list, reusing earlier results.

    Opt-in helper for callers that check the same grants many times (for
    example once per request for a long-lived session). Results are keyed by
    the exact grant tuple and the hierarchy object.

    Args:
        permissions: Granted permission strings.
        hierarchy: Hierarchy to expand with. Defaults to the configured one.

    Returns:
        Cached or newly compiled permission set.
    """
    if hierarchy is None:
        hierarchy = get_permission_hierarchy()
    # Convert to tuple for hashability (required for LRU cache)
    return _get_cached_compiled_permissions(tuple(permissions), hierarchy)


@lru_cache(maxsize=512)
def _get_cached_compiled_permissions(
    permissions: tuple[str, ...],
    hierarchy: PermissionHierarchy,
) -> CompiledPermissionSet:
    return compile_permissions(expand_permissions(permissions, hierarchy))
