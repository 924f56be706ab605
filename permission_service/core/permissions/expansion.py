"""Hierarchy expansion: the closure of a grant set under the hierarchy.

Expansion runs full passes over the working set until a pass adds nothing.
For every *allow* entry and every hierarchy rule whose trigger matches it,
each implied template is added after wildcard substitution:

- a ``*`` resource type in the template takes the entry's resource type,
  when the entry's resource type is concrete;
- a ``*`` resource id in the template takes the entry's resource id,
  when the entry's resource id is concrete;
- scope and action are copied from the template verbatim.

Deny entries never trigger expansion; they only block at evaluation time.

The working set only grows and every derivable string is built from the
finite set of segments in the input and the hierarchy, so the loop reaches a
fixed point. ``max_passes`` and ``max_size`` still bound the work and raise
``HierarchyExpansionError`` rather than letting a pathological configuration
run away. ``max_size`` counts derived permissions only, so a large grant list
never trips it on its own.
"""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import TYPE_CHECKING

from permission_service.core.exceptions import HierarchyExpansionError, MalformedPermissionError
from permission_service.core.permissions.hierarchy import get_permission_hierarchy
from permission_service.core.permissions.tokens import WILDCARD, PermissionToken, parse_permission

if TYPE_CHECKING:
    from collections.abc import Iterable

    from permission_service.core.permissions.hierarchy import PermissionHierarchy

__all__ = [
    "DEFAULT_MAX_EXPANDED_PERMISSIONS",
    "DEFAULT_MAX_EXPANSION_PASSES",
    "expand_permissions",
    "resolve_template",
]

logger = logging.getLogger(__name__)

DEFAULT_MAX_EXPANSION_PASSES = 64
DEFAULT_MAX_EXPANDED_PERMISSIONS = 10_000


def resolve_template(template: PermissionToken, source: PermissionToken) -> PermissionToken:
    """Fill the template's wildcard resource type/id from a concrete source.

    Example:
        >>> resolve_template(
        ...     parse_permission("workspace:*:members:read:allow"),
        ...     parse_permission("workspace:w1:members:admin:allow"),
        ... )
        PermissionToken(resource_type='workspace', resource_id='w1', scope='members', action='read', effect='allow')
    """
    resolved = template
    if template.resource_type == WILDCARD and source.resource_type != WILDCARD:
        resolved = replace(resolved, resource_type=source.resource_type)
    if template.resource_id == WILDCARD and source.resource_id != WILDCARD:
        resolved = replace(resolved, resource_id=source.resource_id)
    return resolved


def _expansion_limits(max_passes: int | None, max_size: int | None) -> tuple[int, int]:
    if max_passes is not None and max_size is not None:
        return max_passes, max_size

    from permission_service.core.settings import get_permission_settings

    settings = get_permission_settings()
    return (
        max_passes if max_passes is not None else settings.max_expansion_passes,
        max_size if max_size is not None else settings.max_expanded_permissions,
    )


def expand_permissions(
    permissions: Iterable[str],
    hierarchy: PermissionHierarchy | None = None,
    *,
    max_passes: int | None = None,
    max_size: int | None = None,
    warn: bool = True,
) -> list[str]:
    """Expand a permission list with everything the hierarchy implies.

    Args:
        permissions: Granted permission strings (allow and deny).
        hierarchy: Hierarchy to expand with. Defaults to the configured one.
        max_passes: Pass limit. Defaults to ``PermissionSettings.max_expansion_passes``.
        max_size: Limit on derived permissions, input grants excluded. Defaults to
            ``PermissionSettings.max_expanded_permissions``.
        warn: Log a warning for each malformed entry or template skipped.

    Returns:
        The input entries (deduplicated, original order) followed by every
        derived permission, in the order it was derived.

    Raises:
        HierarchyExpansionError: If no fixed point is reached within the limits.

    Example:
        >>> hierarchy = PermissionHierarchy({
        ...     "workspace:*:members:admin:allow": ["workspace:*:members:read:allow"],
        ... })
        >>> expand_permissions(["workspace:w1:members:admin:allow"], hierarchy)
        ['workspace:w1:members:admin:allow', 'workspace:w1:members:read:allow']
    """
    if hierarchy is None:
        hierarchy = get_permission_hierarchy()
    pass_limit, size_limit = _expansion_limits(max_passes, max_size)

    expanded: dict[str, None] = dict.fromkeys(permissions)
    input_size = len(expanded)
    if not hierarchy:
        return list(expanded)

    parsed: dict[str, PermissionToken | None] = {}

    def _parse(permission: str, what: str) -> PermissionToken | None:
        if permission in parsed:
            return parsed[permission]
        try:
            token: PermissionToken | None = parse_permission(permission)
        except MalformedPermissionError as exc:
            token = None
            if warn:
                logger.warning(
                    "Skipping malformed %s during expansion: %s",
                    what,
                    exc.reason,
                    extra={"permission": permission},
                )
        parsed[permission] = token
        return token

    passes = 0
    changed = True
    while changed:
        if passes >= pass_limit:
            msg = f"no fixed point after {passes} passes"
            raise HierarchyExpansionError(msg, passes=passes, size=len(expanded))
        passes += 1
        changed = False

        for permission in list(expanded):
            token = _parse(permission, "permission")
            if token is None or token.is_deny:
                continue

            for rule in hierarchy.matching_rules(token):
                for template in rule.implies:
                    template_token = _parse(template, "hierarchy template")
                    if template_token is None:
                        continue

                    resolved = str(resolve_template(template_token, token))
                    if resolved in expanded:
                        continue

                    expanded[resolved] = None
                    changed = True
                    if len(expanded) - input_size > size_limit:
                        msg = f"more than {size_limit} derived permissions"
                        raise HierarchyExpansionError(msg, passes=passes, size=len(expanded))

    return list(expanded)
