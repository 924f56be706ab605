"""Tests for permission decisions and check modes."""

from __future__ import annotations

import logging

import pytest

from permission_service.core.exceptions import PermissionDeniedException
from permission_service.core.permissions.evaluator import (
    PermissionOptions,
    can_do,
    check_permission,
    has_permission,
    is_permission_allowed,
    with_permission,
)
from permission_service.core.permissions.expansion import expand_permissions

AUDIT_LOGGER = "permission_service.audit"

READ = "project:42:devices:read:allow"
DELETE = "project:42:devices:delete:allow"


def _audit_records(caplog) -> list[logging.LogRecord]:
    return [r for r in caplog.records if r.name == AUDIT_LOGGER]


@pytest.mark.unit
class TestIsPermissionAllowed:
    """Tests for single-permission decisions."""

    def test_wildcard_allow_grants(self) -> None:
        assert is_permission_allowed(["project:*:*:*:allow"], READ)

    def test_deny_overrides_broader_allow(self) -> None:
        granted = ["project:42:devices:*:deny", "project:*:*:*:allow"]

        assert not is_permission_allowed(granted, READ)

    def test_deny_order_does_not_matter(self) -> None:
        granted = ["project:*:*:*:allow", "project:42:devices:*:deny"]

        assert not is_permission_allowed(granted, READ)

    def test_deny_only_blocks_what_it_matches(self) -> None:
        granted = ["project:42:devices:*:deny", "project:*:*:*:allow"]

        assert is_permission_allowed(granted, "project:43:devices:read:allow")

    def test_default_deny(self, empty_hierarchy) -> None:
        assert not is_permission_allowed(["project:*:*:read:allow"], DELETE, empty_hierarchy)
        assert not is_permission_allowed([], READ, empty_hierarchy)

    def test_hierarchy_expansion_counts(self, members_hierarchy) -> None:
        granted = ["workspace:w1:members:admin:allow"]
        expanded = expand_permissions(granted, members_hierarchy)

        assert "workspace:w1:members:read:allow" in expanded
        assert is_permission_allowed(expanded, "workspace:w1:members:read:allow", members_hierarchy)
        assert is_permission_allowed(granted, "workspace:w1:members:read:allow", members_hierarchy)

    def test_expansion_is_bound_to_the_resource(self, members_hierarchy) -> None:
        granted = ["workspace:w1:members:admin:allow"]

        assert not is_permission_allowed(granted, "workspace:w2:members:read:allow", members_hierarchy)

    def test_deny_does_not_expand(self, members_hierarchy) -> None:
        granted = ["workspace:w1:members:admin:deny", "workspace:*:members:read:allow"]

        assert is_permission_allowed(granted, "workspace:w1:members:read:allow", members_hierarchy)

    def test_malformed_request_fails_closed(self, caplog) -> None:
        caplog.set_level(logging.WARNING)

        assert not is_permission_allowed(["*:*:*:*:allow"], "project:42:read")
        assert any("Denying malformed requested permission" in r.getMessage() for r in caplog.records)

    def test_malformed_grant_is_ignored(self) -> None:
        assert is_permission_allowed(["garbage", "project:*:*:read:allow"], READ)

    def test_literal_wildcard_request_needs_wildcard_grant(self, empty_hierarchy) -> None:
        granted = ["workspace:*:members:read:allow"]

        assert not is_permission_allowed(granted, "workspace:*:*:read:allow", empty_hierarchy)


@pytest.mark.unit
class TestCheckPermission:
    """Tests for check_permission batch semantics and modes."""

    def test_single_request(self) -> None:
        assert check_permission(["project:*:*:read:allow"], READ) is True
        assert check_permission(["project:*:*:read:allow"], DELETE) is False

    def test_match_any(self) -> None:
        assert check_permission(["project:*:*:read:allow"], [DELETE, READ]) is True
        assert check_permission([], [DELETE, READ]) is False

    def test_match_all(self) -> None:
        granted = ["project:*:*:read:allow"]

        assert check_permission(granted, [READ, "project:1:jobs:read:allow"], match="all") is True
        assert check_permission(granted, [READ, DELETE], match="all") is False

    @pytest.mark.parametrize("match", ["any", "all"])
    def test_empty_request_is_allowed(self, match: str) -> None:
        assert check_permission([], [], match=match) is True

    def test_empty_request_in_throw_mode_returns_none(self) -> None:
        assert check_permission([], [], mode="throw") is None

    def test_silent_mode_returns_decision(self) -> None:
        assert check_permission(["project:*:*:read:allow"], READ, mode="silent") is True
        assert check_permission(["project:*:*:read:allow"], DELETE, mode="silent") is False

    def test_throw_mode_returns_none_when_allowed(self) -> None:
        assert check_permission(["project:*:*:read:allow"], READ, mode="throw") is None

    def test_throw_mode_single(self) -> None:
        with pytest.raises(PermissionDeniedException) as exc:
            check_permission(["project:*:*:read:allow"], DELETE, mode="throw")

        assert exc.value.status_code == 403
        assert exc.value.detail == f"Permission denied: {DELETE}"
        assert exc.value.permission == DELETE
        assert exc.value.denied_permissions == [DELETE]

    def test_throw_mode_all_lists_failing_permissions(self) -> None:
        other = "project:42:devices:update:allow"

        with pytest.raises(PermissionDeniedException) as exc:
            check_permission(
                ["project:*:*:read:allow"], [READ, DELETE, other], mode="throw", match="all"
            )

        assert exc.value.denied_permissions == [DELETE, other]
        assert exc.value.detail == f"Permissions denied: {DELETE}, {other}"

    def test_throw_mode_any_lists_whole_request(self) -> None:
        with pytest.raises(PermissionDeniedException) as exc:
            check_permission([], [READ, DELETE], mode="throw")

        assert exc.value.permission == READ
        assert exc.value.denied_permissions == [READ, DELETE]
        assert exc.value.detail == f"All permissions denied: {READ}, {DELETE}"

    def test_custom_error_message(self) -> None:
        with pytest.raises(PermissionDeniedException, match="No deleting"):
            check_permission([], DELETE, mode="throw", error_message="No deleting")

    def test_options_object(self) -> None:
        options = PermissionOptions(mode="silent", match="all")

        assert check_permission(["project:*:*:read:allow"], [READ, DELETE], options) is False

    def test_overrides_apply_on_top_of_options(self) -> None:
        options = PermissionOptions(mode="silent", match="all")

        assert check_permission(["project:*:*:read:allow"], [READ, DELETE], options, match="any")

    def test_explicit_hierarchy(self, members_hierarchy, empty_hierarchy) -> None:
        granted = ["workspace:w1:members:admin:allow"]
        requested = "workspace:w1:members:read:allow"

        assert check_permission(granted, requested, hierarchy=members_hierarchy)
        assert not check_permission(granted, requested, hierarchy=empty_hierarchy)


@pytest.mark.unit
class TestGuestChecks:
    """Tests for is_guest narrowing in check_permission."""

    GUEST_LIST = ["project:*:devices:read:allow"]

    def test_guest_is_narrowed_to_guest_list(self) -> None:
        granted = ["project:*:*:*:allow"]

        assert check_permission(granted, DELETE, is_guest=True, guest_allow_list=self.GUEST_LIST) is False
        assert check_permission(granted, READ, is_guest=True, guest_allow_list=self.GUEST_LIST) is True
        assert check_permission(granted, DELETE) is True

    def test_guest_list_does_not_grant(self) -> None:
        assert not check_permission([], READ, is_guest=True, guest_allow_list=self.GUEST_LIST)

    def test_guest_match_all_throw_message(self) -> None:
        with pytest.raises(PermissionDeniedException) as exc:
            check_permission(
                ["project:*:*:*:allow"],
                [READ, DELETE],
                mode="throw",
                match="all",
                is_guest=True,
                guest_allow_list=self.GUEST_LIST,
            )

        assert exc.value.denied_permissions == [DELETE]
        assert exc.value.detail == f"Permissions denied: {DELETE}"

    def test_guest_match_any_passes_with_one_covered(self) -> None:
        granted = ["project:*:*:*:allow"]

        assert with_permission(granted, [DELETE, READ], is_guest=True, guest_allow_list=self.GUEST_LIST) is None

    def test_is_permission_allowed_for_guest(self) -> None:
        granted = ["project:*:*:*:allow"]

        assert is_permission_allowed(granted, READ, is_guest=True, guest_allow_list=self.GUEST_LIST)
        assert not is_permission_allowed(granted, DELETE, is_guest=True, guest_allow_list=self.GUEST_LIST)

    def test_configured_guest_list_is_default(self) -> None:
        assert check_permission(["project:*:*:*:allow"], "project:42:jobs:read:allow", is_guest=True)
        assert not check_permission(["project:*:*:*:allow"], DELETE, is_guest=True)


@pytest.mark.unit
class TestPermissionOptions:
    """Tests for PermissionOptions validation."""

    def test_defaults(self) -> None:
        options = PermissionOptions()

        assert options.mode == "boolean"
        assert options.match == "any"
        assert options.audit is True
        assert options.context == {}
        assert options.is_guest is False
        assert not options.is_silent

    def test_invalid_mode(self) -> None:
        with pytest.raises(ValueError, match="mode must be one of"):
            PermissionOptions(mode="loud")  # type: ignore[arg-type]

    def test_invalid_match(self) -> None:
        with pytest.raises(ValueError, match="match must be one of"):
            PermissionOptions(match="some")  # type: ignore[arg-type]

    def test_invalid_override(self) -> None:
        with pytest.raises(ValueError):
            check_permission([], READ, mode="loud")


@pytest.mark.unit
class TestAuditRecords:
    """Tests for the permission_service.audit records."""

    def test_granted_record(self, caplog) -> None:
        caplog.set_level(logging.INFO, logger=AUDIT_LOGGER)

        check_permission(["project:*:*:read:allow"], READ, context={"subject_id": "u1"})

        (record,) = _audit_records(caplog)
        assert record.getMessage() == "Permission check granted"
        assert record.audit_event == "permission_check"
        assert record.permissions == [READ]
        assert record.denied_permissions == []
        assert record.allowed is True
        assert record.mode == "boolean"
        assert record.check_context == {"subject_id": "u1"}
        assert record.is_guest is False

    def test_guest_record(self, caplog) -> None:
        caplog.set_level(logging.INFO, logger=AUDIT_LOGGER)

        check_permission(["project:*:*:*:allow"], DELETE, is_guest=True, context={"subject_id": "g1"})

        (record,) = _audit_records(caplog)
        assert record.getMessage() == "Permission check denied"
        assert record.is_guest is True
        assert record.denied_permissions == [DELETE]
        assert record.check_context == {"subject_id": "g1"}

    def test_denied_record_in_throw_mode(self, caplog) -> None:
        caplog.set_level(logging.INFO, logger=AUDIT_LOGGER)

        with pytest.raises(PermissionDeniedException):
            with_permission([], [READ, DELETE], match="all")

        (record,) = _audit_records(caplog)
        assert record.getMessage() == "Permission check denied"
        assert record.denied_permissions == [READ, DELETE]
        assert record.match == "all"
        assert record.mode == "throw"

    def test_silent_mode_writes_nothing(self, caplog) -> None:
        caplog.set_level(logging.DEBUG)

        check_permission(["garbage"], "also-garbage", mode="silent")
        check_permission([], [READ, DELETE], mode="silent")

        assert caplog.records == []

    def test_audit_false_skips_record(self, caplog) -> None:
        caplog.set_level(logging.INFO, logger=AUDIT_LOGGER)

        check_permission([], READ, audit=False)

        assert _audit_records(caplog) == []

    def test_audit_disabled_in_settings(self, caplog, monkeypatch) -> None:
        monkeypatch.setenv("PERMISSIONS_AUDIT_ENABLED", "false")
        caplog.set_level(logging.INFO, logger=AUDIT_LOGGER)

        check_permission([], READ)

        assert _audit_records(caplog) == []


@pytest.mark.unit
class TestConvenienceWrappers:
    """Tests for has_permission, with_permission and can_do."""

    def test_has_permission_forces_boolean(self) -> None:
        assert has_permission([], READ, mode="throw") is False
        assert has_permission(["project:*:*:read:allow"], READ) is True

    def test_with_permission_raises(self) -> None:
        with pytest.raises(PermissionDeniedException):
            with_permission([], READ)

    def test_with_permission_passes(self) -> None:
        assert with_permission(["project:*:*:read:allow"], READ) is None

    def test_can_do_builds_allow_permission(self) -> None:
        granted = ["project:42:devices:read:allow"]

        assert can_do(granted, "project", "42", "devices", "read") is True
        assert can_do(granted, "project", "42", "devices", "delete") is False

    def test_can_do_is_silent_by_default(self, caplog) -> None:
        caplog.set_level(logging.DEBUG)

        can_do([], "project", "42", "devices", "read")

        assert caplog.records == []

    def test_can_do_accepts_mode(self) -> None:
        with pytest.raises(PermissionDeniedException):
            can_do([], "project", "42", "devices", "read", mode="throw")
