"""Permission decisions: single checks, batch checks and check modes.

Decision procedure for one requested permission:

1. Parse the request. A malformed request is denied (fail closed).
2. Expand the grants with the hierarchy and compile them.
3. Any matching deny -> denied.
4. Any matching allow -> allowed.
5. Otherwise denied.

``check_permission`` layers batch semantics (``match="any"``/``"all"``)
and three modes on top:

- ``boolean``: return the decision.
- ``throw``: raise ``PermissionDeniedException`` when denied, return None otherwise.
- ``silent``: return the decision without any audit or log side effect.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from typing import TYPE_CHECKING, Any, Literal

from permission_service.core.exceptions import MalformedPermissionError, PermissionDeniedException
from permission_service.core.permissions.compiler import compile_permissions
from permission_service.core.permissions.expansion import expand_permissions
from permission_service.core.permissions.hierarchy import compile_guest_allow_list
from permission_service.core.permissions.matching import any_matches
from permission_service.core.permissions.tokens import format_permission, parse_permission

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from permission_service.core.permissions.compiler import CompiledPermissionSet
    from permission_service.core.permissions.hierarchy import PermissionHierarchy
    from permission_service.core.permissions.tokens import PermissionToken

__all__ = [
    "CheckMode",
    "MatchMode",
    "PermissionOptions",
    "can_do",
    "check_permission",
    "has_permission",
    "is_permission_allowed",
    "with_permission",
]

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("permission_service.audit")

CheckMode = Literal["boolean", "throw", "silent"]
MatchMode = Literal["any", "all"]

_CHECK_MODES = ("boolean", "throw", "silent")
_MATCH_MODES = ("any", "all")


@dataclass(frozen=True)
class PermissionOptions:
    """Options for ``check_permission``.

    Attributes:
        mode: ``boolean`` (default), ``throw`` or ``silent``.
        match: For list requests, ``any`` (default) or ``all``.
        error_message: Custom message for ``PermissionDeniedException`` in throw mode.
        audit: Write an audit record for this check (ignored in silent mode).
        context: Extra fields recorded with the audit record.
        is_guest: Narrow the decision to the guest-allow list.
    """

    mode: CheckMode = "boolean"
    match: MatchMode = "any"
    error_message: str | None = None
    audit: bool = True
    context: dict[str, Any] = field(default_factory=dict)
    is_guest: bool = False

    def __post_init__(self) -> None:
        if self.mode not in _CHECK_MODES:
            msg = f"mode must be one of {', '.join(_CHECK_MODES)}, got {self.mode!r}"
            raise ValueError(msg)
        if self.match not in _MATCH_MODES:
            msg = f"match must be one of {', '.join(_MATCH_MODES)}, got {self.match!r}"
            raise ValueError(msg)

    @property
    def is_silent(self) -> bool:
        return self.mode == "silent"


def _decide(
    compiled: CompiledPermissionSet,
    requested: str,
    *,
    warn: bool,
    guest_patterns: Sequence[PermissionToken] | None = None,
) -> bool:
    try:
        token = parse_permission(requested)
    except MalformedPermissionError as exc:
        if warn:
            logger.warning(
                "Denying malformed requested permission: %s",
                exc.reason,
                extra={"permission": requested},
            )
        return False
    if not compiled.decide(token):
        return False
    if guest_patterns is None:
        return True

    # Guests also need a guest-allow pattern covering the request
    if any_matches(guest_patterns, token):
        return True
    if warn:
        logger.debug("Guest narrowed out of granted permission", extra={"permission": requested})
    return False


def _compile_grants(
    granted: Iterable[str],
    hierarchy: PermissionHierarchy | None,
    *,
    warn: bool,
) -> CompiledPermissionSet:
    expanded = expand_permissions(granted, hierarchy, warn=warn)
    return compile_permissions(expanded, warn=warn)


def is_permission_allowed(
    granted: Iterable[str],
    requested: str,
    hierarchy: PermissionHierarchy | None = None,
    *,
    is_guest: bool = False,
    guest_allow_list: Iterable[str] | None = None,
) -> bool:
    """Decide whether granted permissions allow one requested permission.

    Args:
        granted: The subject's granted permission strings.
        requested: Concrete permission being requested.
        hierarchy: Hierarchy to expand grants with. Defaults to the configured one.
        is_guest: Also require a guest-allow pattern covering the request.
        guest_allow_list: Guest-allow patterns. Defaults to the configured list.

    Returns:
        True only if an allow matches and no deny matches (and, for guests,
        a guest-allow pattern matches).

    Example:
        >>> is_permission_allowed(["project:*:*:*:allow"], "project:42:devices:read:allow")
        True
        >>> is_permission_allowed(
        ...     ["project:42:devices:*:deny", "project:*:*:*:allow"],
        ...     "project:42:devices:read:allow",
        ... )
        False
    """
    guest_patterns = compile_guest_allow_list(guest_allow_list) if is_guest else None
    compiled = _compile_grants(granted, hierarchy, warn=True)
    return _decide(compiled, requested, warn=True, guest_patterns=guest_patterns)


def _write_audit_record(
    request: str | Sequence[str],
    options: PermissionOptions,
    allowed: bool,
    denied: list[str],
) -> None:
    from permission_service.core.settings import get_permission_settings

    if not get_permission_settings().audit_enabled:
        return
    permissions = [request] if isinstance(request, str) else list(request)
    audit_logger.info(
        "Permission check %s",
        "granted" if allowed else "denied",
        extra={
            "audit_event": "permission_check",
            "permissions": permissions,
            "denied_permissions": denied,
            "match": options.match,
            "mode": options.mode,
            "allowed": allowed,
            "is_guest": options.is_guest,
            "check_context": options.context,
        },
    )


def _raise_denied(
    request: str | Sequence[str],
    options: PermissionOptions,
    denied: list[str],
) -> None:
    if isinstance(request, str):
        detail = options.error_message or f"Permission denied: {request}"
        raise PermissionDeniedException(request, denied_permissions=[request], detail=detail)

    if options.match == "all":
        default = f"Permissions denied: {', '.join(denied)}"
    else:
        default = f"All permissions denied: {', '.join(request)}"
    raise PermissionDeniedException(
        denied[0],
        denied_permissions=denied,
        detail=options.error_message or default,
    )


def check_permission(
    granted: Iterable[str],
    request: str | Sequence[str],
    options: PermissionOptions | None = None,
    *,
    hierarchy: PermissionHierarchy | None = None,
    guest_allow_list: Iterable[str] | None = None,
    **overrides: Any,
) -> bool | None:
    """Check one or several requested permissions.

    Args:
        granted: The subject's granted permission strings.
        request: One permission string, or a list of them.
        options: Check options. Keyword overrides (``mode=``, ``match=``,
            ``error_message=``, ``audit=``, ``context=``, ``is_guest=``) are
            applied on top.
        hierarchy: Hierarchy to expand grants with. Defaults to the configured one.
        guest_allow_list: Guest-allow patterns for ``is_guest`` checks. Defaults
            to the configured list.

    Returns:
        The decision in ``boolean`` and ``silent`` modes; None in ``throw``
        mode when the check passes.

    Raises:
        PermissionDeniedException: In ``throw`` mode when the check fails.

    Example:
        >>> grants = ["project:*:*:read:allow"]
        >>> check_permission(grants, ["project:1:jobs:read:allow", "project:1:jobs:delete:allow"])
        True
        >>> check_permission(grants, ["project:1:jobs:read:allow", "project:1:jobs:delete:allow"], match="all")
        False
        >>> check_permission(grants, [], match="all")
        True
    """
    options = options or PermissionOptions()
    if overrides:
        options = replace(options, **overrides)

    warn = not options.is_silent
    guest_patterns = compile_guest_allow_list(guest_allow_list) if options.is_guest else None

    if isinstance(request, str):
        compiled = _compile_grants(granted, hierarchy, warn=warn)
        allowed = _decide(compiled, request, warn=warn, guest_patterns=guest_patterns)
        denied = [] if allowed else [request]
    elif not request:
        # Nothing requested, nothing to restrict
        return None if options.mode == "throw" else True
    else:
        compiled = _compile_grants(granted, hierarchy, warn=warn)
        results = [
            (permission, _decide(compiled, permission, warn=warn, guest_patterns=guest_patterns))
            for permission in request
        ]
        failing = [permission for permission, ok in results if not ok]
        if options.match == "all":
            allowed = not failing
            denied = failing
        else:
            allowed = len(failing) < len(results)
            denied = [] if allowed else list(request)

    if options.audit and not options.is_silent:
        _write_audit_record(request, options, allowed, denied)

    if options.mode == "throw":
        if not allowed:
            _raise_denied(request, options, denied)
        return None

    return allowed


def has_permission(
    granted: Iterable[str],
    request: str | Sequence[str],
    *,
    hierarchy: PermissionHierarchy | None = None,
    **options: Any,
) -> bool:
    """Boolean-mode ``check_permission``."""
    options["mode"] = "boolean"
    return bool(check_permission(granted, request, hierarchy=hierarchy, **options))


def with_permission(
    granted: Iterable[str],
    request: str | Sequence[str],
    *,
    hierarchy: PermissionHierarchy | None = None,
    **options: Any,
) -> None:
    """Throw-mode ``check_permission``: raises unless the check passes.

    Example:
        >>> with_permission(
        ...     ["project:*:*:read:allow"],
        ...     "project:42:devices:delete:allow",
        ...     error_message="You cannot delete devices",
        ... )
        Traceback (most recent call last):
        ...
        permission_service.core.exceptions.PermissionDeniedException: You cannot delete devices
    """
    options["mode"] = "throw"
    check_permission(granted, request, hierarchy=hierarchy, **options)


def can_do(
    granted: Iterable[str],
    resource_type: str,
    resource_id: str,
    scope: str,
    action: str,
    *,
    hierarchy: PermissionHierarchy | None = None,
    **options: Any,
) -> bool | None:
    """Check ``resource_type:resource_id:scope:action:allow``.

    Defaults to silent mode since these are usually UI or business-logic
    probes rather than access decisions worth auditing.
    """
    options.setdefault("mode", "silent")
    permission = format_permission(resource_type, resource_id, scope, action)
    return check_permission(granted, permission, hierarchy=hierarchy, **options)
