"""Permission evaluation commands.

Evaluate permission strings against a grant set without running a service:
useful for debugging role definitions and hierarchy configuration.
"""

import json
from pathlib import Path
import sys

import click

from permission_service.cli.utils import (
    decision,
    error,
    header,
    info,
    load_hierarchy_file,
    load_permission_list,
    success,
    warning,
)
from permission_service.core.exceptions import AppException
from permission_service.core.permissions import (
    check_permission,
    expand_permissions,
    get_guest_allow_list,
    is_permission_guest_assignable,
    is_role_guest_assignable,
)
from permission_service.core.permissions.roles import (
    PROJECT_ROLES,
    SYSTEM_ROLES,
    WORKSPACE_ROLES,
)

_grant_option = click.option(
    "--grant",
    "-g",
    "grants",
    multiple=True,
    help="Granted permission string (repeatable)",
)
_grants_file_option = click.option(
    "--grants-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML/JSON file containing a list of granted permissions",
)
_hierarchy_file_option = click.option(
    "--hierarchy-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML/JSON hierarchy mapping to use instead of the configured one",
)
_format_option = click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)


@click.command(name="check")
@click.argument("permissions", nargs=-1, required=True)
@_grant_option
@_grants_file_option
@_hierarchy_file_option
@click.option(
    "--match",
    type=click.Choice(["any", "all"]),
    default="any",
    help="Require any (default) or all of the permissions",
)
@click.option("--guest", is_flag=True, help="Narrow the decision to the guest-allow list")
@_format_option
def check(
    permissions: tuple[str, ...],
    grants: tuple[str, ...],
    grants_file: Path | None,
    hierarchy_file: Path | None,
    match: str,
    guest: bool,
    output_format: str,
) -> None:
    """Check requested permissions against granted permissions.

    Exits with status 0 when the request is allowed and 1 when denied.

    Examples:
    \b
      permission-service check project:42:devices:read:allow -g 'project:*:*:read:allow'
      permission-service check a:1:x:read:allow a:1:x:delete:allow --match all --grants-file grants.yaml
    """
    try:
        granted = load_permission_list(grants, grants_file)
        hierarchy = load_hierarchy_file(hierarchy_file)

        results = {
            permission: bool(
                check_permission(
                    granted, permission, mode="silent", hierarchy=hierarchy, is_guest=guest
                )
            )
            for permission in permissions
        }
        allowed = bool(
            check_permission(
                granted,
                list(permissions),
                match=match,
                hierarchy=hierarchy,
                is_guest=guest,
                context={"source": "cli"},
            )
        )
    except AppException as e:
        error(str(e))
        sys.exit(2)

    if output_format == "json":
        click.echo(
            json.dumps(
                {
                    "allowed": allowed,
                    "match": match,
                    "guest": guest,
                    "results": results,
                },
                indent=2,
            )
        )
    else:
        header(f"Permission check (match={match}{', guest' if guest else ''})")
        for permission, permission_allowed in results.items():
            decision(permission, permission_allowed)
        click.echo()
        if allowed:
            success("Allowed")
        else:
            error("Denied")

    sys.exit(0 if allowed else 1)


@click.command(name="expand")
@_grant_option
@_grants_file_option
@_hierarchy_file_option
@_format_option
def expand(
    grants: tuple[str, ...],
    grants_file: Path | None,
    hierarchy_file: Path | None,
    output_format: str,
) -> None:
    """Show the grant set after hierarchy expansion.

    Examples:
    \b
      permission-service expand -g 'workspace:w1:members:admin:allow'
    """
    try:
        granted = load_permission_list(grants, grants_file)
        hierarchy = load_hierarchy_file(hierarchy_file)
        expanded = expand_permissions(granted, hierarchy)
    except AppException as e:
        error(str(e))
        sys.exit(2)

    original = set(granted)
    if output_format == "json":
        click.echo(
            json.dumps(
                {
                    "granted": list(dict.fromkeys(granted)),
                    "derived": [p for p in expanded if p not in original],
                    "expanded": expanded,
                },
                indent=2,
            )
        )
        return

    header(f"Expanded permissions ({len(expanded)})")
    for permission in expanded:
        marker = " " if permission in original else "+"
        click.echo(f"  {marker} {permission}")
    info(f"{len(expanded) - len(original & set(expanded))} derived from the hierarchy")


@click.command(name="guest-check")
@click.argument("permissions", nargs=-1, required=True)
@click.option(
    "--guest-pattern",
    "guest_patterns",
    multiple=True,
    help="Guest-allow pattern (repeatable). Defaults to the configured list.",
)
def guest_check(permissions: tuple[str, ...], guest_patterns: tuple[str, ...]) -> None:
    """Check whether permissions may be held by guest members.

    Exits with status 0 when every permission is guest assignable.
    """
    patterns = list(guest_patterns) if guest_patterns else list(get_guest_allow_list())

    header("Guest assignability")
    results = {p: is_permission_guest_assignable(p, patterns) for p in permissions}
    for permission, allowed in results.items():
        decision(permission, allowed)

    if all(results.values()):
        success("All permissions are guest assignable")
        sys.exit(0)
    warning("Some permissions are not guest assignable")
    sys.exit(1)


def _find_role_permissions(role: str) -> list[str] | None:
    for catalogue in (SYSTEM_ROLES, WORKSPACE_ROLES, PROJECT_ROLES):
        for key, definition in catalogue.items():
            if role in (key, definition.id):
                return list(definition.permissions)
    return None


@click.command(name="role-guest-assignable")
@click.argument("role", required=False)
@click.option(
    "--permission",
    "-p",
    "role_permissions",
    multiple=True,
    help="Role permission (repeatable), instead of a built-in role id",
)
@click.option(
    "--guest-pattern",
    "guest_patterns",
    multiple=True,
    help="Guest-allow pattern (repeatable). Defaults to the configured list.",
)
def role_guest_assignable(
    role: str | None,
    role_permissions: tuple[str, ...],
    guest_patterns: tuple[str, ...],
) -> None:
    """Check whether a role may be assigned to guest members.

    ROLE is a built-in role id (e.g. report-viewer) or catalogue key
    (e.g. REPORT_VIEWER). Use --permission to check an ad-hoc role instead.

    Examples:
    \b
      permission-service role-guest-assignable report-viewer
      permission-service role-guest-assignable -p 'project:*:*:read:allow' -p 'project:*:jobs:create:allow'
    """
    if role_permissions:
        permissions = list(role_permissions)
        label = "custom role"
    elif role:
        found = _find_role_permissions(role)
        if found is None:
            error(f"Unknown role: {role}")
            sys.exit(2)
        permissions = found
        label = role
    else:
        error("Provide a ROLE or at least one --permission")
        sys.exit(2)

    patterns = list(guest_patterns) if guest_patterns else None
    try:
        assignable = is_role_guest_assignable(permissions, patterns)
    except AppException as e:
        error(str(e))
        sys.exit(2)

    if assignable:
        success(f"{label} is guest assignable")
        sys.exit(0)
    warning(f"{label} is not guest assignable")
    sys.exit(1)
