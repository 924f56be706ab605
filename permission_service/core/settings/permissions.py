"""Permission engine settings."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from permission_service.core.exceptions import PermissionConfigurationError
from permission_service.core.permissions.expansion import (
    DEFAULT_MAX_EXPANDED_PERMISSIONS,
    DEFAULT_MAX_EXPANSION_PASSES,
)
from permission_service.core.permissions.hierarchy import (
    DEFAULT_GUEST_ALLOW_LIST,
    DEFAULT_PERMISSION_HIERARCHY,
    validate_guest_allow_list,
    validate_hierarchy,
)

from ._sanitizers import sanitize_inline_numeric
from .yaml_sources import create_permissions_yaml_source


def _default_hierarchy() -> dict[str, list[str]]:
    return {pattern: list(implies) for pattern, implies in DEFAULT_PERMISSION_HIERARCHY.items()}


class PermissionSettings(BaseSettings):
    """Permission hierarchy, guest-allow list and evaluation limits.

    Environment variables use PERMISSIONS_ prefix. Structured values are JSON:
        PERMISSIONS_GUEST_ALLOW_LIST='["project:*:*:read:allow"]'
        PERMISSIONS_AUDIT_ENABLED=false

    The hierarchy and guest-allow list are validated at load time; a
    malformed entry fails settings validation instead of being skipped at
    evaluation time.
    """

    hierarchy: dict[str, list[str]] = Field(
        default_factory=_default_hierarchy,
        description="Trigger pattern -> implied permission templates",
    )
    guest_allow_list: list[str] = Field(
        default_factory=lambda: list(DEFAULT_GUEST_ALLOW_LIST),
        description="Permission patterns assignable to guest memberships",
    )

    max_expansion_passes: int = Field(
        default=DEFAULT_MAX_EXPANSION_PASSES,
        ge=1,
        le=10_000,
        description="Maximum hierarchy expansion passes before aborting",
    )
    max_expanded_permissions: int = Field(
        default=DEFAULT_MAX_EXPANDED_PERMISSIONS,
        ge=1,
        le=1_000_000,
        description="Maximum number of permissions derived by expansion (input grants excluded) before aborting",
    )

    audit_enabled: bool = Field(
        default=True,
        description="Write permission check audit records to the permission_service.audit logger",
    )

    model_config = SettingsConfigDict(
        env_prefix="PERMISSIONS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @field_validator("max_expansion_passes", "max_expanded_permissions", mode="before")
    @classmethod
    def _sanitize_numeric(cls, value: Any) -> Any:
        return sanitize_inline_numeric(value)

    @field_validator("hierarchy", mode="after")
    @classmethod
    def _validate_hierarchy(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        errors = validate_hierarchy(value)
        if errors:
            msg = "Invalid permission hierarchy: " + "; ".join(errors)
            raise PermissionConfigurationError(msg, extra={"errors": errors})
        return value

    @field_validator("guest_allow_list", mode="after")
    @classmethod
    def _validate_guest_allow_list(cls, value: list[str]) -> list[str]:
        errors = validate_guest_allow_list(value)
        if errors:
            msg = "Invalid guest allow list: " + "; ".join(errors)
            raise PermissionConfigurationError(msg, extra={"errors": errors})
        return value

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        """Customize settings source precedence: init > yaml > env > dotenv > secrets."""
        return (
            init_settings,
            create_permissions_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )
