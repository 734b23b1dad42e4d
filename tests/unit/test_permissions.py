"""Tests for the role permission matrix."""

import pytest

from src.crm.core.permissions import (
    DEFAULT_ROLE_PERMISSIONS,
    MODULES,
    custom_roles_from_settings,
    get_role_permissions,
    has_permission,
    is_known_role,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize("role", ["admin", "tenant_admin"])
@pytest.mark.parametrize("module", MODULES)
def test_admin_roles_can_do_everything(role, module):
    for action in ("view", "create", "edit", "delete"):
        assert has_permission(role, module, action)


class TestSalesRep:
    def test_works_the_pipeline(self):
        for module in ("leads", "contacts", "accounts", "opportunities", "contracts"):
            assert has_permission("sales_rep", module, "create")
            assert has_permission("sales_rep", module, "edit")

    def test_cannot_delete(self):
        assert not has_permission("sales_rep", "leads", "delete")

    def test_invoices_are_read_only(self):
        assert has_permission("sales_rep", "invoices", "view")
        assert not has_permission("sales_rep", "invoices", "edit")

    def test_no_user_management(self):
        assert not has_permission("sales_rep", "users", "view")


class TestOperationsManager:
    def test_owns_events(self):
        assert has_permission("operations_manager", "events", "delete")

    def test_reads_sales_data(self):
        assert has_permission("operations_manager", "opportunities", "view")
        assert not has_permission("operations_manager", "opportunities", "edit")


@pytest.mark.parametrize("role", ["user", "staff"])
def test_basic_roles_have_no_permissions(role):
    perms = DEFAULT_ROLE_PERMISSIONS[role]
    assert not any(allowed for actions in perms.values() for allowed in actions.values())


def test_unknown_role_falls_back_to_user():
    assert get_role_permissions("nonexistent") is DEFAULT_ROLE_PERMISSIONS["user"]
    assert not has_permission("nonexistent", "leads", "view")


def test_unknown_module_is_denied():
    assert not has_permission("admin", "spaceships", "view")


class TestSettingsModule:
    def test_create_and_delete_map_to_edit(self):
        assert has_permission("admin", "settings", "create")
        assert has_permission("admin", "settings", "delete")
        assert not has_permission("sales_rep", "settings", "edit")


class TestCustomRoles:
    CUSTOM = [
        {
            "id": "bookkeeper",
            "name": "Bookkeeper",
            "permissions": {"invoices": {"view": True, "create": True, "edit": True}},
        }
    ]

    def test_custom_role_grants_its_permissions(self):
        assert has_permission("bookkeeper", "invoices", "edit", self.CUSTOM)
        assert not has_permission("bookkeeper", "invoices", "delete", self.CUSTOM)
        assert not has_permission("bookkeeper", "leads", "view", self.CUSTOM)

    def test_system_role_wins_over_custom_role_with_same_id(self):
        shadow = [{"id": "staff", "permissions": {"leads": {"view": True}}}]
        assert not has_permission("staff", "leads", "view", shadow)

    def test_roles_read_from_tenant_settings(self):
        settings = {"custom_roles": [*self.CUSTOM, "garbage"]}
        assert custom_roles_from_settings(settings) == self.CUSTOM
        assert custom_roles_from_settings(None) == []

    def test_is_known_role(self):
        assert is_known_role("sales_rep")
        assert is_known_role("bookkeeper", self.CUSTOM)
        assert not is_known_role("bookkeeper")
