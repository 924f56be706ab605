"""Tests for the permission hierarchy and hierarchy expansion."""

from __future__ import annotations

import logging

import pytest

from permission_service.core.exceptions import HierarchyExpansionError, PermissionConfigurationError
from permission_service.core.permissions.expansion import expand_permissions, resolve_template
from permission_service.core.permissions.hierarchy import (
    DEFAULT_PERMISSION_HIERARCHY,
    PermissionHierarchy,
    get_guest_allow_list,
    get_permission_hierarchy,
    validate_guest_allow_list,
    validate_hierarchy,
)
from permission_service.core.permissions.tokens import parse_permission

CHAIN = {
    "app:*:data:admin:allow": ["app:*:data:write:allow"],
    "app:*:data:write:allow": ["app:*:data:read:allow"],
}


@pytest.mark.unit
class TestPermissionHierarchy:
    """Tests for PermissionHierarchy construction and lookup."""

    def test_parses_triggers(self, members_hierarchy) -> None:
        assert len(members_hierarchy) == 1
        rule = members_hierarchy.rules[0]
        assert rule.trigger == parse_permission("workspace:*:members:admin:allow")
        assert rule.implies == ("workspace:*:members:read:allow",)

    def test_malformed_trigger_is_configuration_error(self) -> None:
        with pytest.raises(PermissionConfigurationError) as exc:
            PermissionHierarchy({"workspace:*:members:admin": ["workspace:*:members:read:allow"]})

        assert exc.value.extra["pattern"] == "workspace:*:members:admin"
        assert exc.value.status_code == 500

    def test_matching_rules(self, members_hierarchy) -> None:
        matched = list(members_hierarchy.matching_rules(parse_permission("workspace:w1:members:admin:allow")))
        assert [rule.pattern for rule in matched] == ["workspace:*:members:admin:allow"]
        assert not list(members_hierarchy.matching_rules(parse_permission("workspace:w1:teams:admin:allow")))

    def test_empty_hierarchy_is_falsy(self, empty_hierarchy) -> None:
        assert not empty_hierarchy
        assert len(empty_hierarchy) == 0
        assert empty_hierarchy.as_dict() == {}

    def test_as_dict_round_trips_default(self) -> None:
        hierarchy = PermissionHierarchy(DEFAULT_PERMISSION_HIERARCHY)
        assert hierarchy.as_dict() == {k: list(v) for k, v in DEFAULT_PERMISSION_HIERARCHY.items()}

    def test_default_hierarchy_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            DEFAULT_PERMISSION_HIERARCHY["x:*:*:*:allow"] = ()  # type: ignore[index]

    def test_configured_hierarchy_and_guest_list_default_to_builtins(self) -> None:
        assert get_permission_hierarchy().as_dict() == {
            k: list(v) for k, v in DEFAULT_PERMISSION_HIERARCHY.items()
        }
        assert "project:*:*:read:allow" in get_guest_allow_list()

    def test_configured_hierarchy_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("PERMISSIONS_HIERARCHY", '{"a:*:s:admin:allow": ["a:*:s:read:allow"]}')

        assert get_permission_hierarchy().as_dict() == {"a:*:s:admin:allow": ["a:*:s:read:allow"]}
        assert expand_permissions(["a:1:s:admin:allow"]) == ["a:1:s:admin:allow", "a:1:s:read:allow"]


@pytest.mark.unit
class TestValidation:
    """Tests for load-time validation helpers."""

    def test_valid_default_hierarchy(self) -> None:
        assert validate_hierarchy(DEFAULT_PERMISSION_HIERARCHY) == []

    def test_collects_trigger_and_template_errors(self) -> None:
        errors = validate_hierarchy({
            "bad-trigger": ["a:*:s:read:allow"],
            "a:*:s:admin:allow": ["a:*:s:read", "a:*:s:write:allow"],
        })

        assert len(errors) == 2
        assert errors[0].startswith("trigger 'bad-trigger'")
        assert errors[1].startswith("template 'a:*:s:read'")

    def test_guest_allow_list(self) -> None:
        assert validate_guest_allow_list(["project:*:*:read:allow"]) == []
        assert validate_guest_allow_list(["project:*:*:read"]) == [
            "guest pattern 'project:*:*:read': expected 5 segments, got 4"
        ]


@pytest.mark.unit
class TestResolveTemplate:
    """Tests for wildcard substitution in implied templates."""

    def test_fills_wildcard_type_and_id(self) -> None:
        resolved = resolve_template(
            parse_permission("*:*:*:create:allow"),
            parse_permission("project:42:devices:write:allow"),
        )
        assert str(resolved) == "project:42:*:create:allow"

    def test_keeps_concrete_template_fields(self) -> None:
        resolved = resolve_template(
            parse_permission("project:*:settings:read:allow"),
            parse_permission("workspace:w1:projects:admin:allow"),
        )
        assert str(resolved) == "project:w1:settings:read:allow"

    def test_wildcard_source_leaves_template_wildcard(self) -> None:
        resolved = resolve_template(
            parse_permission("workspace:*:members:read:allow"),
            parse_permission("workspace:*:members:admin:allow"),
        )
        assert str(resolved) == "workspace:*:members:read:allow"


@pytest.mark.unit
class TestExpandPermissions:
    """Tests for expand_permissions."""

    def test_members_admin_implies_read(self, members_hierarchy) -> None:
        expanded = expand_permissions(["workspace:w1:members:admin:allow"], members_hierarchy)

        assert expanded == ["workspace:w1:members:admin:allow", "workspace:w1:members:read:allow"]

    def test_empty_hierarchy_returns_deduplicated_input(self, empty_hierarchy) -> None:
        grants = ["a:1:s:read:allow", "a:1:s:read:allow", "bad"]
        assert expand_permissions(grants, empty_hierarchy) == ["a:1:s:read:allow", "bad"]

    def test_deny_never_triggers(self, members_hierarchy) -> None:
        grants = ["workspace:w1:members:admin:deny"]
        assert expand_permissions(grants, members_hierarchy) == grants

    def test_chained_rules_reach_fixed_point(self) -> None:
        expanded = expand_permissions(["app:1:data:admin:allow"], PermissionHierarchy(CHAIN))

        assert expanded == [
            "app:1:data:admin:allow",
            "app:1:data:write:allow",
            "app:1:data:read:allow",
        ]

    def test_is_idempotent(self) -> None:
        hierarchy = PermissionHierarchy(CHAIN)
        once = expand_permissions(["app:1:data:admin:allow"], hierarchy)

        assert expand_permissions(once, hierarchy) == once

    def test_default_hierarchy_expands_scope_admin(self) -> None:
        expanded = expand_permissions(["workspace:w1:members:admin:allow"])

        for action in ("read", "invite", "update", "delete"):
            assert f"workspace:w1:members:{action}:allow" in expanded

    def test_default_hierarchy_write_implies_create_and_update(self) -> None:
        expanded = expand_permissions(["project:p1:devices:write:allow"])

        assert "project:p1:*:create:allow" in expanded
        assert "project:p1:*:update:allow" in expanded
        assert not any(p.endswith(":delete:allow") for p in expanded)

    def test_skips_malformed_grants_with_warning(self, members_hierarchy, caplog) -> None:
        caplog.set_level(logging.WARNING)

        expanded = expand_permissions(["bad", "workspace:w1:members:admin:allow"], members_hierarchy)

        assert "workspace:w1:members:read:allow" in expanded
        assert any("Skipping malformed permission" in r.getMessage() for r in caplog.records)

    def test_skips_malformed_templates_with_warning(self, caplog) -> None:
        caplog.set_level(logging.WARNING)
        hierarchy = PermissionHierarchy({"a:*:s:admin:allow": ["nope", "a:*:s:read:allow"]})

        expanded = expand_permissions(["a:1:s:admin:allow"], hierarchy)

        assert expanded == ["a:1:s:admin:allow", "a:1:s:read:allow"]
        assert any("hierarchy template" in r.getMessage() for r in caplog.records)

    def test_warn_false_is_quiet(self, members_hierarchy, caplog) -> None:
        caplog.set_level(logging.DEBUG)

        expand_permissions(["bad"], members_hierarchy, max_passes=4, max_size=10, warn=False)

        assert caplog.records == []

    def test_pass_limit_raises(self) -> None:
        with pytest.raises(HierarchyExpansionError) as exc:
            expand_permissions(
                ["app:1:data:admin:allow"],
                PermissionHierarchy(CHAIN),
                max_passes=2,
                max_size=100,
            )

        assert exc.value.passes == 2
        assert exc.value.status_code == 500

    def test_size_limit_raises(self) -> None:
        with pytest.raises(HierarchyExpansionError) as exc:
            expand_permissions(
                ["app:1:data:admin:allow"],
                PermissionHierarchy(CHAIN),
                max_passes=100,
                max_size=1,
            )

        assert exc.value.size == 3

    def test_size_limit_ignores_input_grants(self) -> None:
        granted = [f"app:{n}:logs:read:allow" for n in range(5)] + ["app:1:data:admin:allow"]

        expanded = expand_permissions(
            granted,
            PermissionHierarchy(CHAIN),
            max_passes=100,
            max_size=2,
        )

        assert expanded == [*granted, "app:1:data:write:allow", "app:1:data:read:allow"]

    def test_limits_come_from_settings(self, monkeypatch) -> None:
        monkeypatch.setenv("PERMISSIONS_MAX_EXPANSION_PASSES", "1")

        with pytest.raises(HierarchyExpansionError):
            expand_permissions(["app:1:data:admin:allow"], PermissionHierarchy(CHAIN))
