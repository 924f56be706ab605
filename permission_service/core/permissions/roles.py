"""Built-in role catalogue and permission vocabulary.

Roles are named bundles of permission strings. The catalogues below are the
roles every deployment starts with; stored custom roles are out of scope for
this package.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator

from permission_service.core.exceptions import MalformedPermissionError
from permission_service.core.permissions.tokens import parse_permission

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__ = [
    "PROJECT_ROLES",
    "SYSTEM_ROLES",
    "WORKSPACE_ROLES",
    "PermissionAction",
    "PermissionEffect",
    "PermissionScope",
    "ResourceType",
    "RoleDefinition",
    "get_default_role_for_resource",
    "get_role_definitions_for_resource_type",
]


class ResourceType(str, Enum):
    """Resource types permissions can target."""

    SYSTEM = "system"
    WORKSPACE = "workspace"
    PROJECT = "project"


class PermissionScope(str, Enum):
    """Known permission scopes."""

    ALL = "*"
    SETTINGS = "settings"
    MEMBERS = "members"

    # Workspace
    TEAMS = "teams"
    PROJECTS = "projects"
    BILLING = "billing"

    # Project
    DEVICES = "devices"
    ASSETS = "assets"
    ANALYTICS = "analytics"
    JOBS = "jobs"

    # System
    USERS = "users"
    ROLES = "roles"
    SYSTEM_SETTINGS = "system-settings"


class PermissionAction(str, Enum):
    """Known permission actions."""

    ALL = "*"
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    INVITE = "invite"
    ADMIN = "admin"
    EXECUTE = "execute"


class PermissionEffect(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class RoleDefinition(BaseModel):
    """A named bundle of permission strings."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Stable role identifier")
    name: str = Field(min_length=1, description="Human readable role name")
    description: str = Field(default="", description="What the role is for")
    permissions: tuple[str, ...] = Field(
        default=(), description="Permission strings granted by the role"
    )
    resource_type: ResourceType = Field(description="Resource type the role is assigned on")
    resource_id: str = Field(default="*", description="Resource the role is scoped to")
    is_system_role: bool = Field(default=True, description="Built-in, non-editable role")

    @field_validator("permissions", mode="after")
    @classmethod
    def validate_permissions(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """Reject roles carrying malformed permission strings."""
        for permission in value:
            try:
                parse_permission(permission)
            except MalformedPermissionError as exc:
                msg = f"Invalid permission {permission!r}: {exc.reason}"
                raise ValueError(msg) from exc
        return value


SYSTEM_ROLES: Mapping[str, RoleDefinition] = MappingProxyType({
    "SYSTEM_ADMIN": RoleDefinition(
        id="system-admin",
        name="System Administrator",
        description="Full access to all platform resources and settings",
        permissions=("system:*:*:*:allow",),
        resource_type=ResourceType.SYSTEM,
    ),
    "BILLING_ADMIN": RoleDefinition(
        id="billing-admin",
        name="Billing Administrator",
        description="Manages billing for all workspaces",
        permissions=(
            "system:*:billing:*:allow",
            "workspace:*:billing:read:allow",
        ),
        resource_type=ResourceType.SYSTEM,
    ),
})

WORKSPACE_ROLES: Mapping[str, RoleDefinition] = MappingProxyType({
    "WORKSPACE_OWNER": RoleDefinition(
        id="workspace-owner",
        name="Workspace Owner",
        description="Full control over workspace and its projects",
        permissions=(
            "workspace:*:*:*:allow",
            "project:*:*:*:allow",
        ),
        resource_type=ResourceType.WORKSPACE,
    ),
    "WORKSPACE_ADMIN": RoleDefinition(
        id="workspace-admin",
        name="Workspace Administrator",
        description="Manages workspace settings, members, and projects",
        permissions=(
            "workspace:*:settings:*:allow",
            "workspace:*:members:*:allow",
            "workspace:*:projects:*:allow",
            "workspace:*:teams:*:allow",
            "workspace:*:*:read:allow",
            "project:*:*:read:allow",
            "project:*:members:invite:allow",
        ),
        resource_type=ResourceType.WORKSPACE,
    ),
    "WORKSPACE_BILLING_MANAGER": RoleDefinition(
        id="workspace-billing-manager",
        name="Workspace Billing Manager",
        description="Manages workspace billing and payment settings",
        permissions=(
            "workspace:*:billing:*:allow",
            "workspace:*:*:read:allow",
        ),
        resource_type=ResourceType.WORKSPACE,
    ),
    "WORKSPACE_MEMBER": RoleDefinition(
        id="workspace-member",
        name="Workspace Member",
        description="Standard workspace membership with access to shared projects",
        permissions=("workspace:*:*:read:allow",),
        resource_type=ResourceType.WORKSPACE,
    ),
    "WORKSPACE_GUEST": RoleDefinition(
        id="workspace-guest",
        name="Workspace Guest",
        description="Limited access to specific workspace resources",
        permissions=("workspace:*:*:read:allow",),
        resource_type=ResourceType.WORKSPACE,
    ),
})

PROJECT_ROLES: Mapping[str, RoleDefinition] = MappingProxyType({
    "PROJECT_OWNER": RoleDefinition(
        id="project-owner",
        name="Project Owner",
        description="Full control over the project and its resources",
        permissions=("project:*:*:*:allow",),
        resource_type=ResourceType.PROJECT,
    ),
    "PROJECT_MANAGER": RoleDefinition(
        id="project-manager",
        name="Project Manager",
        description="Manages project resources and team but cannot delete project",
        permissions=(
            "project:*:settings:update:allow",
            "project:*:devices:*:allow",
            "project:*:assets:*:allow",
            "project:*:analytics:*:allow",
            "project:*:members:invite:allow",
            "project:*:jobs:*:allow",
            "project:*:*:read:allow",
        ),
        resource_type=ResourceType.PROJECT,
    ),
    "DATA_ANALYST": RoleDefinition(
        id="data-analyst",
        name="Data Analyst",
        description="Can view all data and create analyses",
        permissions=(
            "project:*:analytics:*:allow",
            "project:*:devices:read:allow",
            "project:*:assets:read:allow",
            "project:*:jobs:create:allow",
            "project:*:jobs:read:allow",
            "project:*:jobs:update:allow",
            "project:*:*:read:allow",
        ),
        resource_type=ResourceType.PROJECT,
    ),
    "DEVICE_MANAGER": RoleDefinition(
        id="device-manager",
        name="Device Manager",
        description="Manages devices and their data",
        permissions=(
            "project:*:devices:*:allow",
            "project:*:analytics:read:allow",
            "project:*:jobs:read:allow",
        ),
        resource_type=ResourceType.PROJECT,
    ),
    "REPORT_VIEWER": RoleDefinition(
        id="report-viewer",
        name="Report Viewer",
        description="View-only access to processed insights",
        permissions=("project:*:analytics:read:allow",),
        resource_type=ResourceType.PROJECT,
    ),
})

_CATALOGUES: Mapping[ResourceType, Mapping[str, RoleDefinition]] = MappingProxyType({
    ResourceType.SYSTEM: SYSTEM_ROLES,
    ResourceType.WORKSPACE: WORKSPACE_ROLES,
    ResourceType.PROJECT: PROJECT_ROLES,
})


def get_role_definitions_for_resource_type(resource_type: ResourceType | str) -> list[RoleDefinition]:
    """Get the built-in roles assignable on a resource type.

    Unknown resource types have no built-in roles.
    """
    try:
        resource_type = ResourceType(resource_type)
    except ValueError:
        return []
    return list(_CATALOGUES[resource_type].values())


def get_default_role_for_resource(
    resource_type: ResourceType | str,
    is_creator: bool = False,
) -> RoleDefinition | None:
    """Get the role a new member receives on a resource.

    Creators become owners; everyone else gets the least privileged
    standard role. System resources have no default role.

    Example:
        >>> get_default_role_for_resource("project", is_creator=True).id
        'project-owner'
        >>> get_default_role_for_resource("project").id
        'report-viewer'
    """
    try:
        resource_type = ResourceType(resource_type)
    except ValueError:
        return None

    if resource_type is ResourceType.WORKSPACE:
        key = "WORKSPACE_OWNER" if is_creator else "WORKSPACE_MEMBER"
        return WORKSPACE_ROLES[key]
    if resource_type is ResourceType.PROJECT:
        key = "PROJECT_OWNER" if is_creator else "REPORT_VIEWER"
        return PROJECT_ROLES[key]
    return None
