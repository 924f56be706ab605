"""Tests for guest scope filtering."""

from __future__ import annotations

import pytest

from permission_service.core.permissions.guest import (
    is_allowed_for_guest,
    is_permission_allowed_for_user,
    is_permission_guest_assignable,
    is_role_guest_assignable,
)

GUEST_READ_ONLY = ["project:*:*:read:allow"]


@pytest.mark.unit
class TestIsPermissionGuestAssignable:
    """Tests for the structural guest-allow check."""

    def test_covered_by_default_list(self) -> None:
        assert is_permission_guest_assignable("project:7:jobs:read:allow")
        assert is_permission_guest_assignable("workspace:w1:settings:read:allow")

    def test_not_covered_by_default_list(self) -> None:
        assert not is_permission_guest_assignable("project:7:jobs:delete:allow")

    def test_explicit_list(self) -> None:
        patterns = ["project:*:jobs:create:allow"]

        assert is_permission_guest_assignable("project:7:jobs:create:allow", patterns)
        assert not is_permission_guest_assignable("project:7:jobs:read:allow", patterns)

    def test_no_hierarchy_is_applied(self) -> None:
        patterns = ["project:*:jobs:admin:allow"]

        assert not is_permission_guest_assignable("project:7:jobs:read:allow", patterns)

    def test_effect_is_ignored(self) -> None:
        assert is_permission_guest_assignable("project:7:jobs:read:deny", GUEST_READ_ONLY)

    def test_malformed_permission_is_not_assignable(self) -> None:
        assert not is_permission_guest_assignable("project:7:read", GUEST_READ_ONLY)

    def test_malformed_patterns_are_ignored(self) -> None:
        patterns = ["bogus", "project:*:*:read:allow"]

        assert is_permission_guest_assignable("project:7:jobs:read:allow", patterns)

    def test_empty_list_allows_nothing(self) -> None:
        assert not is_permission_guest_assignable("project:7:jobs:read:allow", [])

    def test_configured_list(self, monkeypatch) -> None:
        monkeypatch.setenv("PERMISSIONS_GUEST_ALLOW_LIST", '["project:*:jobs:execute:allow"]')

        assert is_permission_guest_assignable("project:7:jobs:execute:allow")
        assert not is_permission_guest_assignable("project:7:jobs:read:allow")


@pytest.mark.unit
class TestIsPermissionAllowedForUser:
    """Tests for the guest-narrowed decision."""

    def test_non_guest_gets_normal_decision(self) -> None:
        granted = ["project:*:*:*:allow"]

        assert is_permission_allowed_for_user(
            granted, "project:7:jobs:delete:allow", is_guest=False
        )

    def test_guest_is_narrowed(self) -> None:
        granted = ["project:*:*:*:allow"]

        assert not is_permission_allowed_for_user(
            granted, "project:7:jobs:delete:allow", is_guest=True
        )
        assert is_permission_allowed_for_user(granted, "project:7:jobs:read:allow", is_guest=True)

    def test_guest_still_needs_a_grant(self) -> None:
        assert not is_permission_allowed_for_user(
            [], "project:7:jobs:read:allow", is_guest=True
        )

    def test_guest_deny_still_wins(self) -> None:
        granted = ["project:*:*:read:allow", "project:7:*:*:deny"]

        assert not is_permission_allowed_for_user(
            granted, "project:7:jobs:read:allow", is_guest=True
        )

    def test_guest_with_explicit_list(self, empty_hierarchy) -> None:
        granted = ["project:*:*:*:allow"]
        patterns = ["project:*:jobs:create:allow"]

        assert is_permission_allowed_for_user(
            granted,
            "project:7:jobs:create:allow",
            is_guest=True,
            guest_allow_list=patterns,
            hierarchy=empty_hierarchy,
        )
        assert not is_permission_allowed_for_user(
            granted,
            "project:7:jobs:read:allow",
            is_guest=True,
            guest_allow_list=patterns,
            hierarchy=empty_hierarchy,
        )

    def test_is_allowed_for_guest(self) -> None:
        granted = ["project:*:*:*:allow"]

        assert is_allowed_for_guest(granted, "project:7:devices:read:allow")
        assert not is_allowed_for_guest(granted, "project:7:devices:update:allow")


@pytest.mark.unit
class TestIsRoleGuestAssignable:
    """Tests for role-level guest assignability."""

    def test_role_with_non_guest_permission(self) -> None:
        role = ["project:*:*:read:allow", "project:*:jobs:create:allow"]

        assert not is_role_guest_assignable(role, GUEST_READ_ONLY)

    def test_read_only_role(self) -> None:
        assert is_role_guest_assignable(["project:*:*:read:allow"], GUEST_READ_ONLY)

    def test_hierarchy_expands_the_guest_list(self) -> None:
        # jobs:create implies jobs:execute in the default hierarchy
        guest_list = ["project:*:jobs:create:allow"]

        assert is_role_guest_assignable(["project:*:jobs:execute:allow"], guest_list)

    def test_hierarchy_can_be_replaced(self, empty_hierarchy) -> None:
        guest_list = ["project:*:jobs:create:allow"]

        assert not is_role_guest_assignable(
            ["project:*:jobs:execute:allow"], guest_list, empty_hierarchy
        )

    def test_empty_role_is_assignable(self) -> None:
        assert is_role_guest_assignable([], GUEST_READ_ONLY)

    def test_default_list(self) -> None:
        assert is_role_guest_assignable(["project:*:devices:read:allow"])
        assert not is_role_guest_assignable(["project:*:devices:update:allow"])
