"""Configuration management commands."""

import json
import sys

import click
from pydantic import ValidationError
import yaml

from permission_service.cli.utils import error, header, info, success, warning
from permission_service.core.exceptions import AppException
from permission_service.core.permissions.hierarchy import PermissionHierarchy
from permission_service.core.settings import get_logging_settings, get_permission_settings


@click.group(name="config")
def config() -> None:
    """Configuration management commands."""


@config.command()
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "yaml", "table"]),
    default="table",
    help="Output format",
)
def show(output_format: str) -> None:
    """Display the effective permission and logging settings."""
    try:
        permission_settings = get_permission_settings()
        logging_settings = get_logging_settings()
    except (ValidationError, AppException) as e:
        error(f"Failed to load configuration: {e}")
        sys.exit(1)

    config_dict: dict[str, dict[str, object]] = {
        "permissions": permission_settings.model_dump(mode="json"),
        "logging": logging_settings.model_dump(
            mode="json",
            include={"service_name", "level", "json_logs", "audit_level", "console_enabled", "file_enabled"},
        ),
    }

    if output_format == "json":
        click.echo(json.dumps(config_dict, indent=2, default=str))
    elif output_format == "yaml":
        click.echo(yaml.safe_dump(config_dict, default_flow_style=False, sort_keys=False))
    else:
        permissions = config_dict["permissions"]
        click.echo("\n" + "=" * 80)
        click.echo("CONFIGURATION SETTINGS")
        click.echo("=" * 80)

        click.echo("\n[PERMISSIONS]")
        click.echo(f"  {'hierarchy rules':30} = {len(permissions['hierarchy'])}")
        click.echo(f"  {'guest allow patterns':30} = {len(permissions['guest_allow_list'])}")
        for key in ("max_expansion_passes", "max_expanded_permissions", "audit_enabled"):
            click.echo(f"  {key:30} = {permissions[key]}")

        click.echo("\n[LOGGING]")
        for key, value in config_dict["logging"].items():
            click.echo(f"  {key:30} = {value}")

        click.echo("\n" + "=" * 80)


@config.command()
def validate() -> None:
    """Validate the permission hierarchy and guest-allow list."""
    info("Validating configuration...")

    try:
        settings = get_permission_settings()
        hierarchy = PermissionHierarchy(settings.hierarchy)
    except ValidationError as e:
        error("Permission settings are invalid:")
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"])
            click.echo(f"  {location}: {err['msg']}", err=True)
        sys.exit(1)
    except AppException as e:
        error(str(e))
        sys.exit(1)

    success(f"Hierarchy: {len(hierarchy)} rules")
    success(f"Guest allow list: {len(settings.guest_allow_list)} patterns")
    if not hierarchy:
        warning("Hierarchy is empty: grants will not imply any other permissions")
    if not settings.guest_allow_list:
        warning("Guest allow list is empty: guests will be denied everything")
    if not settings.audit_enabled:
        warning("Permission check auditing is disabled")

    header("Configuration is valid")
