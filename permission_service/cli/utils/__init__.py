"""CLI utilities for loading inputs and formatting output."""

from permission_service.cli.utils.formatters import (
    decision,
    error,
    header,
    info,
    success,
    warning,
)
from permission_service.cli.utils.loaders import (
    load_hierarchy_file,
    load_permission_list,
)

__all__ = [
    "decision",
    "error",
    "header",
    "info",
    "load_hierarchy_file",
    "load_permission_list",
    "success",
    "warning",
]
