"""Main CLI entry point for permission-service commands."""

import click

from permission_service.cli.commands import config, permissions, roles
from permission_service.infra.logging.config import setup_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="permission-service")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Permission Service CLI - evaluate and inspect permission strings.

    Permission strings have the form
    resource_type:resource_id:scope:action:effect, where any of the first
    four segments may be the * wildcard and effect is allow or deny.

    \b
    Commands:
      check                  Check permissions against a grant set
      expand                 Show a grant set after hierarchy expansion
      guest-check            Check permissions against the guest-allow list
      role-guest-assignable  Check whether a role may be assigned to guests
      roles                  List the built-in roles
      config                 Show and validate configuration

    \b
    Quick Start:
      permission-service config validate
      permission-service check project:42:devices:read:allow -g 'project:*:*:read:allow'
      permission-service expand -g 'workspace:w1:members:admin:allow'
    """
    ctx.ensure_object(dict)


cli.add_command(permissions.check)
cli.add_command(permissions.expand)
cli.add_command(permissions.guest_check)
cli.add_command(permissions.role_guest_assignable)
cli.add_command(roles.roles)
cli.add_command(config.config)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
