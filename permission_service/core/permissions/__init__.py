"""Permission string evaluation for authorization.

This package decides whether a subject's granted permission strings allow a
requested permission. Everything here is pure, synchronous computation:
assembling the granted list (roles, per-user exceptions) is the caller's job.

Components:
    Token Model:
        - PermissionToken: Parsed ``type:id:scope:action:effect`` value object
        - parse_permission / try_parse_permission: Strict parsing
        - format_permission: Build permission strings consistently

    Matching and Hierarchy:
        - permission_matches: Asymmetric wildcard matching (pattern vs target)
        - PermissionHierarchy: Trigger pattern -> implied templates
        - expand_permissions: Fixed-point closure of a grant set

    Evaluation:
        - compile_permissions: Partition grants into allow/deny sets
        - is_permission_allowed: Deny-override, default-deny decision
        - check_permission: Batch checks with boolean/throw/silent modes
        - has_permission / with_permission / can_do: Convenience forms
        - ResourcePermissionChecker: Checks bound to one resource

    Guests:
        - is_permission_allowed_for_user: Decision narrowed for guests
        - is_role_guest_assignable: Whether a role fits the guest-allow list

    Roles:
        - RoleDefinition, SYSTEM_ROLES, WORKSPACE_ROLES, PROJECT_ROLES

Permission Syntax:
    - Five colon-separated segments: "project:abc123:devices:read:allow"
    - Wildcard (*) in any of the first four segments: "project:*:*:read:allow"
    - Effect is always "allow" or "deny"; any matching deny wins

Examples:
    >>> from permission_service.core.permissions import check_permission
    >>>
    >>> granted = ["project:*:*:*:allow", "project:42:devices:*:deny"]
    >>> check_permission(granted, "project:7:devices:read:allow")  # True
    >>> check_permission(granted, "project:42:devices:read:allow")  # False (denied)
    >>> check_permission(
    ...     granted,
    ...     ["project:42:jobs:read:allow", "project:42:devices:read:allow"],
    ...     match="all",
    ... )  # False
"""

from __future__ import annotations

from permission_service.core.permissions.checker import (
    ResourcePermissionChecker,
    create_project_permission_checker,
    create_workspace_permission_checker,
)
from permission_service.core.permissions.compiler import (
    CompiledPermissionSet,
    compile_permissions,
    get_cached_compiled_permissions,
)
from permission_service.core.permissions.evaluator import (
    PermissionOptions,
    can_do,
    check_permission,
    has_permission,
    is_permission_allowed,
    with_permission,
)
from permission_service.core.permissions.expansion import expand_permissions
from permission_service.core.permissions.guest import (
    is_allowed_for_guest,
    is_permission_allowed_for_user,
    is_permission_guest_assignable,
    is_role_guest_assignable,
)
from permission_service.core.permissions.hierarchy import (
    DEFAULT_GUEST_ALLOW_LIST,
    DEFAULT_PERMISSION_HIERARCHY,
    PermissionHierarchy,
    get_guest_allow_list,
    get_permission_hierarchy,
    validate_guest_allow_list,
    validate_hierarchy,
)
from permission_service.core.permissions.matching import permission_matches
from permission_service.core.permissions.roles import (
    PROJECT_ROLES,
    SYSTEM_ROLES,
    WORKSPACE_ROLES,
    PermissionAction,
    PermissionEffect,
    PermissionScope,
    ResourceType,
    RoleDefinition,
    get_default_role_for_resource,
    get_role_definitions_for_resource_type,
)
from permission_service.core.permissions.tokens import (
    PermissionToken,
    format_permission,
    parse_permission,
    try_parse_permission,
    validate_permission_format,
)

__all__ = [
    "DEFAULT_GUEST_ALLOW_LIST",
    "DEFAULT_PERMISSION_HIERARCHY",
    "PROJECT_ROLES",
    "SYSTEM_ROLES",
    "WORKSPACE_ROLES",
    "CompiledPermissionSet",
    "PermissionAction",
    "PermissionEffect",
    "PermissionHierarchy",
    "PermissionOptions",
    "PermissionScope",
    "PermissionToken",
    "ResourcePermissionChecker",
    "ResourceType",
    "RoleDefinition",
    "can_do",
    "check_permission",
    "compile_permissions",
    "create_project_permission_checker",
    "create_workspace_permission_checker",
    "expand_permissions",
    "format_permission",
    "get_cached_compiled_permissions",
    "get_default_role_for_resource",
    "get_guest_allow_list",
    "get_permission_hierarchy",
    "get_role_definitions_for_resource_type",
    "has_permission",
    "is_allowed_for_guest",
    "is_permission_allowed",
    "is_permission_allowed_for_user",
    "is_permission_guest_assignable",
    "is_role_guest_assignable",
    "parse_permission",
    "permission_matches",
    "try_parse_permission",
    "validate_guest_allow_list",
    "validate_hierarchy",
    "validate_permission_format",
]
