"""Pytest configuration and shared fixtures.

Organization:
    - Environment: keep settings independent of the developer's machine
    - Cache Fixtures: reset the LRU-cached settings, hierarchy and guest list
    - Permission Fixtures: small grant sets and hierarchies used across tests
"""

from __future__ import annotations

import os

import pytest

# Never pick up conf/ files or a developer's .env while testing
os.environ.setdefault("PERMISSIONS_CONFIG_DIR", "/nonexistent/permission-service-test-conf")
os.environ.setdefault("LOGGING_CONFIG_DIR", "/nonexistent/permission-service-test-conf")


# ============================================================================
# Cache Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_settings_caches():
    """Clear settings-derived caches around every test.

    Tests that change PERMISSIONS_* variables with monkeypatch then see the
    new values on the next ``get_permission_settings()`` call.
    """
    from permission_service.core.settings import clear_all_caches

    clear_all_caches()
    yield
    clear_all_caches()


# ============================================================================
# Permission Fixtures
# ============================================================================


@pytest.fixture
def members_hierarchy():
    """Hierarchy where members:admin implies members:read."""
    from permission_service.core.permissions import PermissionHierarchy

    return PermissionHierarchy({
        "workspace:*:members:admin:allow": ["workspace:*:members:read:allow"],
    })


@pytest.fixture
def empty_hierarchy():
    """Hierarchy without rules: grants imply nothing."""
    from permission_service.core.permissions import PermissionHierarchy

    return PermissionHierarchy.empty()


@pytest.fixture
def project_reader_grants() -> list[str]:
    """Read access to every project."""
    return ["project:*:*:read:allow"]
