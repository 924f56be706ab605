"""CLI command modules."""

from permission_service.cli.commands import config, permissions, roles

__all__ = [
    "config",
    "permissions",
    "roles",
]
