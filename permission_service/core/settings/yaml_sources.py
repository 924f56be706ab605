"""Custom YAML config source with conf.d directory support.

Extends pydantic-settings ``YamlConfigSettingsSource`` to read:
- a main YAML file (e.g., conf/permissions.yaml)
- a conf.d directory merged in alphabetical order (e.g., conf/permissions.d/*.yaml)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic_settings import YamlConfigSettingsSource

if TYPE_CHECKING:
    from pydantic_settings import BaseSettings


class ConfDYamlConfigSettingsSource(YamlConfigSettingsSource):
    """YAML settings source with conf.d directory support.

    Supports the standard Linux conf.d pattern:
    - conf/permissions.yaml        (base configuration)
    - conf/permissions.d/*.yaml    (override files, merged alphabetically)

    An environment variable can override the config directory, e.g.
    ``PERMISSIONS_CONFIG_DIR=/etc/permission-service``.
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: str = "permissions.yaml",
        confd_dir: str | None = "permissions.d",
        config_dir_env: str = "CONFIG_DIR",
        base_dir: str = "conf",
        yaml_file_encoding: str | None = "utf-8",
    ) -> None:
        """Initialize the conf.d YAML source.

        Args:
            settings_cls: The settings class being configured.
            yaml_file: Main YAML file name.
            confd_dir: conf.d subdirectory name, or None to disable.
            config_dir_env: Environment variable overriding the base directory.
            base_dir: Default base directory for config files.
            yaml_file_encoding: File encoding for YAML files.
        """
        config_base = Path(os.getenv(config_dir_env, base_dir))

        yaml_files: list[Path] = []

        main_file = config_base / yaml_file
        if main_file.exists():
            yaml_files.append(main_file)

        # Sorted for deterministic override order
        if confd_dir:
            confd_path = config_base / confd_dir
            if confd_path.is_dir():
                yaml_files.extend(sorted(confd_path.glob("*.yaml")))
                yaml_files.extend(sorted(confd_path.glob("*.yml")))

        self._yaml_files = yaml_files

        super().__init__(
            settings_cls=settings_cls,
            yaml_file=yaml_files or None,
            yaml_file_encoding=yaml_file_encoding,
        )

    @property
    def yaml_files(self) -> list[Path]:
        """YAML files this source reads, in merge order."""
        return list(self._yaml_files)

    def __repr__(self) -> str:
        files_str = ", ".join(str(f) for f in self._yaml_files)
        return f"{self.__class__.__name__}(yaml_files=[{files_str}])"


def create_permissions_yaml_source(settings_cls: type[BaseSettings]) -> ConfDYamlConfigSettingsSource:
    """Create YAML source for PermissionSettings.

    Loads from:
    - conf/permissions.yaml (base)
    - conf/permissions.d/*.yaml (overrides)

    Override directory with: PERMISSIONS_CONFIG_DIR=/custom/path
    """
    return ConfDYamlConfigSettingsSource(
        settings_cls,
        yaml_file="permissions.yaml",
        confd_dir="permissions.d",
        config_dir_env="PERMISSIONS_CONFIG_DIR",
    )


def create_logging_yaml_source(settings_cls: type[BaseSettings]) -> ConfDYamlConfigSettingsSource:
    """Create YAML source for LoggingSettings.

    Loads from:
    - conf/logging.yaml (base)
    - conf/logging.d/*.yaml (overrides)

    Override directory with: LOGGING_CONFIG_DIR=/custom/path
    """
    return ConfDYamlConfigSettingsSource(
        settings_cls,
        yaml_file="logging.yaml",
        confd_dir="logging.d",
        config_dir_env="LOGGING_CONFIG_DIR",
    )
