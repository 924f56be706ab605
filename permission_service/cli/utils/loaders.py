"""Read permission lists and hierarchies given on the command line."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click
import yaml

from permission_service.core.exceptions import PermissionConfigurationError
from permission_service.core.permissions.hierarchy import PermissionHierarchy, validate_hierarchy

if TYPE_CHECKING:
    from collections.abc import Iterable


def _read_yaml(path: Path) -> object:
    try:
        with path.open(encoding="utf-8") as fh:
            return yaml.safe_load(fh)
    except yaml.YAMLError as e:
        msg = f"{path}: not valid YAML/JSON ({e})"
        raise click.BadParameter(msg) from e


def load_permission_list(inline: Iterable[str], path: Path | None) -> list[str]:
    """Combine ``--grant`` options with an optional YAML/JSON list file.

    Inline values come first, followed by the file entries in file order.
    """
    permissions = list(inline)
    if path is None:
        return permissions

    data = _read_yaml(path)
    if data is None:
        return permissions
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        msg = f"{path}: expected a list of permission strings"
        raise click.BadParameter(msg)
    return permissions + data


def load_hierarchy_file(path: Path | None) -> PermissionHierarchy | None:
    """Load a hierarchy mapping from YAML/JSON, or None to use the configured one.

    Raises:
        click.BadParameter: If the file is not a mapping of pattern -> list of templates.
        PermissionConfigurationError: If a trigger or template is malformed.
    """
    if path is None:
        return None

    data = _read_yaml(path) or {}
    if not isinstance(data, dict) or not all(
        isinstance(implies, list) and all(isinstance(t, str) for t in implies)
        for implies in data.values()
    ):
        msg = f"{path}: expected a mapping of trigger pattern to a list of templates"
        raise click.BadParameter(msg)

    errors = validate_hierarchy(data)
    if errors:
        msg = f"Invalid permission hierarchy in {path}: " + "; ".join(errors)
        raise PermissionConfigurationError(msg, extra={"errors": errors})
    return PermissionHierarchy(data)
