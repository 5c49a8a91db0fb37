# tests/test_permissions.py
import pytest

from madrasah_admin.core.permissions import (
    CAPABILITY_POLICY,
    TABLE_WRITE_POLICY,
    Capability,
    TableAction,
    UserRole,
    capability_map,
    has_permission,
    role_can,
    row_level_policy_statements,
    table_action_allowed,
)
from madrasah_admin.services.backup_tables import BACKUP_TABLES

EXPECTED = {
    Capability.ADD_STUDENTS: {"admin", "teacher", "manager"},
    Capability.EDIT_STUDENTS: {"admin", "teacher", "manager"},
    Capability.ADD_TEACHERS: {"admin", "manager"},
    Capability.ADD_LEARNING_REPORTS: {"admin", "teacher"},
    Capability.MANAGE_FINANCES: {"admin", "manager"},
    Capability.PAY_FEES: {"admin", "manager", "parent"},
    Capability.DELETE_DATA: {"admin"},
    Capability.MANAGE_BACKUPS: {"admin"},
    Capability.MANAGE_USERS: {"admin"},
}


@pytest.mark.parametrize("capability", list(Capability))
@pytest.mark.parametrize("role", list(UserRole))
def test_capability_allow_lists(capability, role):
    assert role_can(role, capability) is (role.value in EXPECTED[capability])


def test_no_role_has_no_capabilities():
    assert not any(capability_map(None).values())
    assert has_permission(None, ["admin", "teacher"]) is False


def test_plain_user_role_has_no_capabilities():
    assert not any(capability_map(UserRole.USER).values())


def test_unknown_role_string_parses_to_none():
    assert UserRole.parse("superuser") is None
    assert UserRole.parse(None) is None
    assert UserRole.parse("manager") is UserRole.MANAGER


def test_has_permission_accepts_strings_and_enums():
    assert has_permission(UserRole.PARENT, ["parent"])
    assert has_permission(UserRole.PARENT, [UserRole.ADMIN, UserRole.PARENT])
    assert not has_permission(UserRole.PARENT, ["admin", "bogus"])


def test_every_backup_table_has_a_write_policy():
    assert set(TABLE_WRITE_POLICY) == set(BACKUP_TABLES)


def test_table_policy_follows_capabilities():
    assert table_action_allowed(UserRole.TEACHER, "learning_reports", TableAction.WRITE)
    assert not table_action_allowed(UserRole.MANAGER, "learning_reports", TableAction.WRITE)
    assert table_action_allowed(UserRole.PARENT, "fees", TableAction.WRITE)
    assert not table_action_allowed(UserRole.PARENT, "students", TableAction.WRITE)
    assert table_action_allowed(UserRole.PARENT, "students", TableAction.READ)
    assert not table_action_allowed(UserRole.MANAGER, "students", TableAction.DELETE)
    assert table_action_allowed(UserRole.ADMIN, "students", TableAction.DELETE)
    assert not table_action_allowed(None, "students", TableAction.READ)


def test_row_level_policies_use_the_same_allow_lists():
    statements = row_level_policy_statements("fees")
    assert statements[0] == "ALTER TABLE fees ENABLE ROW LEVEL SECURITY"
    insert_policy = next(s for s in statements if "fees_tenant_insert" in s)
    for role in CAPABILITY_POLICY[Capability.PAY_FEES]:
        assert f"'{role.value}'" in insert_policy
    assert "'teacher'" not in insert_policy
    delete_policy = next(s for s in statements if "fees_tenant_delete" in s)
    assert "ur.role IN ('admin')" in delete_policy
    read_policy = next(s for s in statements if "fees_tenant_read" in s)
    assert "ur.role IN" not in read_policy
    assert "fees.madrasah_id" in read_policy
