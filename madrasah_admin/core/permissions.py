# madrasah_admin/core/permissions.py
"""
Role to capability policy.

This module is the only place where roles are mapped to capabilities. The
API dependencies, the tenant data-access layer and the PostgreSQL
row-level-security statements applied by the migration are all derived
from the tables below.
"""
import enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Union


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    MANAGER = "manager"
    PARENT = "parent"
    USER = "user"

    @classmethod
    def parse(cls, value: Union[str, "UserRole", None]) -> Optional["UserRole"]:
        """Unknown or missing role strings resolve to no role."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class Capability(str, enum.Enum):
    ADD_STUDENTS = "can_add_students"
    EDIT_STUDENTS = "can_edit_students"
    ADD_TEACHERS = "can_add_teachers"
    ADD_LEARNING_REPORTS = "can_add_learning_reports"
    MANAGE_FINANCES = "can_manage_finances"
    PAY_FEES = "can_pay_fees"
    DELETE_DATA = "can_delete_data"
    MANAGE_BACKUPS = "can_manage_backups"
    MANAGE_USERS = "can_manage_users"


CAPABILITY_POLICY: Dict[Capability, FrozenSet[UserRole]] = {
    Capability.ADD_STUDENTS: frozenset({UserRole.ADMIN, UserRole.TEACHER, UserRole.MANAGER}),
    Capability.EDIT_STUDENTS: frozenset({UserRole.ADMIN, UserRole.TEACHER, UserRole.MANAGER}),
    Capability.ADD_TEACHERS: frozenset({UserRole.ADMIN, UserRole.MANAGER}),
    Capability.ADD_LEARNING_REPORTS: frozenset({UserRole.ADMIN, UserRole.TEACHER}),
    Capability.MANAGE_FINANCES: frozenset({UserRole.ADMIN, UserRole.MANAGER}),
    Capability.PAY_FEES: frozenset({UserRole.ADMIN, UserRole.MANAGER, UserRole.PARENT}),
    Capability.DELETE_DATA: frozenset({UserRole.ADMIN}),
    Capability.MANAGE_BACKUPS: frozenset({UserRole.ADMIN}),
    Capability.MANAGE_USERS: frozenset({UserRole.ADMIN}),
}


class TableAction(str, enum.Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"


# Capability needed to insert/update rows of each tenant table. Reads are
# open to any member of the tenant; deletes always need DELETE_DATA.
TABLE_WRITE_POLICY: Dict[str, Capability] = {
    "students": Capability.ADD_STUDENTS,
    "teachers": Capability.ADD_TEACHERS,
    "classes": Capability.ADD_STUDENTS,
    "class_teachers": Capability.ADD_TEACHERS,
    "attendance": Capability.ADD_STUDENTS,
    "fees": Capability.PAY_FEES,
    "income": Capability.MANAGE_FINANCES,
    "expense": Capability.MANAGE_FINANCES,
    "salaries": Capability.MANAGE_FINANCES,
    "loans": Capability.MANAGE_FINANCES,
    "learning_reports": Capability.ADD_LEARNING_REPORTS,
}


def has_permission(role: Optional[UserRole], allowed_roles: Iterable[Union[UserRole, str]]) -> bool:
    if role is None:
        return False
    allowed = {UserRole.parse(r) for r in allowed_roles}
    return role in allowed


def role_can(role: Optional[UserRole], capability: Capability) -> bool:
    return has_permission(role, CAPABILITY_POLICY[capability])


def capability_map(role: Optional[UserRole]) -> Dict[str, bool]:
    return {capability.value: role_can(role, capability) for capability in Capability}


def required_capability(table: str, action: TableAction) -> Optional[Capability]:
    if action == TableAction.READ:
        return None
    if action == TableAction.DELETE:
        return Capability.DELETE_DATA
    return TABLE_WRITE_POLICY[table]


def table_action_allowed(role: Optional[UserRole], table: str, action: TableAction) -> bool:
    if role is None:
        return False
    capability = required_capability(table, action)
    return capability is None or role_can(role, capability)


def _sql_role_list(roles: Iterable[UserRole]) -> str:
    return ", ".join(f"'{role.value}'" for role in sorted(roles, key=lambda r: r.value))


def row_level_policy_statements(table: str) -> List[str]:
    """
    PostgreSQL RLS statements for one tenant table.

    The session user id is read from ``app.user_id``; a row is visible when
    the user holds any role in the row's madrasah, and writable when that
    role is in the table's allow-list.
    """
    write_roles = CAPABILITY_POLICY[TABLE_WRITE_POLICY[table]]
    delete_roles = CAPABILITY_POLICY[Capability.DELETE_DATA]
    member = (
        "EXISTS (SELECT 1 FROM user_roles ur WHERE ur.madrasah_id = {t}.madrasah_id "
        "AND ur.user_id = current_setting('app.user_id', true)::uuid{roles})"
    )

    def predicate(roles=None) -> str:
        role_clause = f" AND ur.role IN ({_sql_role_list(roles)})" if roles else ""
        return member.format(t=table, roles=role_clause)

    return [
        f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY",
        f"CREATE POLICY {table}_tenant_read ON {table} FOR SELECT USING ({predicate()})",
        f"CREATE POLICY {table}_tenant_insert ON {table} FOR INSERT WITH CHECK ({predicate(write_roles)})",
        f"CREATE POLICY {table}_tenant_update ON {table} FOR UPDATE USING ({predicate(write_roles)})",
        f"CREATE POLICY {table}_tenant_delete ON {table} FOR DELETE USING ({predicate(delete_roles)})",
    ]
