"""Built-in role catalogue commands."""

import json

import click

from permission_service.cli.utils import header, info
from permission_service.core.permissions import (
    ResourceType,
    get_default_role_for_resource,
    get_role_definitions_for_resource_type,
    is_role_guest_assignable,
)


@click.command(name="roles")
@click.option(
    "--resource-type",
    "-r",
    "resource_types",
    type=click.Choice([rt.value for rt in ResourceType]),
    multiple=True,
    help="Only show roles for this resource type (repeatable)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
def roles(resource_types: tuple[str, ...], output_format: str) -> None:
    """List the built-in roles and their permissions.

    Default roles for new members and creators are marked, as is whether
    each role can be assigned to guest members.
    """
    selected = [ResourceType(rt) for rt in resource_types] or list(ResourceType)

    rows = []
    for resource_type in selected:
        member_default = get_default_role_for_resource(resource_type)
        creator_default = get_default_role_for_resource(resource_type, is_creator=True)
        for role in get_role_definitions_for_resource_type(resource_type):
            rows.append({
                **role.model_dump(mode="json"),
                "guest_assignable": is_role_guest_assignable(role.permissions),
                "default_for_member": member_default is not None and member_default.id == role.id,
                "default_for_creator": creator_default is not None and creator_default.id == role.id,
            })

    if output_format == "json":
        click.echo(json.dumps(rows, indent=2))
        return

    for resource_type in selected:
        header(f"{resource_type.value.upper()} roles")
        for row in rows:
            if row["resource_type"] != resource_type.value:
                continue
            flags = []
            if row["default_for_creator"]:
                flags.append("creator default")
            if row["default_for_member"]:
                flags.append("member default")
            if row["guest_assignable"]:
                flags.append("guest assignable")
            suffix = f"  [{', '.join(flags)}]" if flags else ""
            click.echo(f"  {row['id']:28} {row['name']}{suffix}")
            for permission in row["permissions"]:
                click.echo(f"      {permission}")
    info(f"{len(rows)} roles")
