"""Canonical role and business-unit templates for new tenants.

System roles are fully template-driven: the permission migration engine
overwrites their stored permission lists with the lists below whenever
they drift. Bump ROLE_TEMPLATE_VERSION when a template changes and, if old
permission strings need translating, append a generation to
LEGACY_PERMISSION_MIGRATIONS (never edit an existing generation).
"""

from __future__ import annotations

from typing import TypedDict

from app.domain.enums import Permission


class RoleTemplate(TypedDict):
    """Template for one system role."""

    name: str
    description: str
    permissions: list[Permission]


ROLE_TEMPLATE_VERSION = 2

ADMIN_ROLE_NAME = "Admin"

_BASE_PERMISSIONS: list[Permission] = [
    Permission.CAN_SUBMIT_OWN_EOD,
    Permission.CAN_VIEW_OWN_REPORTS,
    Permission.CAN_CREATE_PERSONAL_TASKS,
    Permission.CAN_VIEW_OWN_MEETINGS,
    Permission.CAN_VIEW_OWN_CALENDAR,
    Permission.CAN_VIEW_LEADERBOARD,
    Permission.CAN_SUBMIT_OWN_LEAVE,
]

# Keyed by template id; the keys are the system-role allow-list.
DEFAULT_ROLES: dict[str, RoleTemplate] = {
    "employee": {
        "name": "Employee",
        "description": "Standard employee with basic access",
        "permissions": list(_BASE_PERMISSIONS),
    },
    "manager": {
        "name": "Manager",
        "description": "Team manager with team oversight",
        "permissions": [
            *_BASE_PERMISSIONS,
            Permission.CAN_MANAGE_TEAM_REPORTS,
            Permission.CAN_ACKNOWLEDGE_REPORTS,
            Permission.CAN_MANAGE_TEAM_TASKS,
            Permission.CAN_MANAGE_TEAM_MEETINGS,
            Permission.CAN_VIEW_TEAM_CALENDAR,
            Permission.CAN_USE_PERFORMANCE_HUB,
        ],
    },
    "admin": {
        "name": ADMIN_ROLE_NAME,
        "description": "Administrator with full tenant access",
        "permissions": [
            *_BASE_PERMISSIONS,
            Permission.CAN_MANAGE_USERS,
            Permission.CAN_CREATE_USER,
            Permission.CAN_EDIT_USER,
            Permission.CAN_ARCHIVE_USER,
            Permission.CAN_DELETE_ARCHIVED_USER,
            Permission.CAN_MANAGE_ROLES,
            Permission.CAN_VIEW_ALL_REPORTS,
            Permission.CAN_MANAGE_TEAM_REPORTS,
            Permission.CAN_ACKNOWLEDGE_REPORTS,
            Permission.CAN_MANAGE_TEAM_TASKS,
            Permission.CAN_EDIT_ANY_TASK_STATUS,
            Permission.CAN_MANAGE_ALL_LEAVES,
            Permission.CAN_MANAGE_TEAM_MEETINGS,
            Permission.CAN_VIEW_TEAM_CALENDAR,
            Permission.CAN_MANAGE_BUSINESS_UNITS,
            Permission.CAN_VIEW_TRIGGER_LOG,
            Permission.CAN_USE_PERFORMANCE_HUB,
        ],
    },
}

SYSTEM_ROLE_IDS: frozenset[str] = frozenset(DEFAULT_ROLES)

# First entry is the admin's default unit.
DEFAULT_BUSINESS_UNITS: list[str] = [
    "Engineering",
    "Product",
    "Design",
    "Marketing",
    "Sales",
]

# (from_version, to_version) -> legacy string -> canonical permission.
# Strings absent from a generation are dropped when that generation runs.
LEGACY_PERMISSION_MIGRATIONS: dict[tuple[int, int], dict[str, Permission]] = {
    (1, 2): {
        "view_own_eod": Permission.CAN_VIEW_OWN_REPORTS,
        "submit_eod": Permission.CAN_SUBMIT_OWN_EOD,
        "view_team_eod": Permission.CAN_MANAGE_TEAM_REPORTS,
        "view_all_eod": Permission.CAN_VIEW_ALL_REPORTS,
        "acknowledge_eod": Permission.CAN_ACKNOWLEDGE_REPORTS,
        "view_own_tasks": Permission.CAN_CREATE_PERSONAL_TASKS,
        "view_team_tasks": Permission.CAN_MANAGE_TEAM_TASKS,
        "view_all_tasks": Permission.CAN_MANAGE_TEAM_TASKS,
        "assign_tasks": Permission.CAN_MANAGE_TEAM_TASKS,
        "manage_users": Permission.CAN_MANAGE_USERS,
        "manage_roles": Permission.CAN_MANAGE_ROLES,
        "manage_business_units": Permission.CAN_MANAGE_BUSINESS_UNITS,
        "mark_leave": Permission.CAN_SUBMIT_OWN_LEAVE,
        "manage_leave": Permission.CAN_MANAGE_ALL_LEAVES,
        "view_team_leave": Permission.CAN_MANAGE_ALL_LEAVES,
        "view_analytics": Permission.CAN_USE_PERFORMANCE_HUB,
        "manage_settings": Permission.CAN_MANAGE_BUSINESS_UNITS,
    },
}


def template_permission_values(template_id: str) -> list[str]:
    """Return the canonical permission strings for a system role template."""
    return [p.value for p in DEFAULT_ROLES[template_id]["permissions"]]


def translate_legacy_permissions(
    permissions: list[str], from_version: int = 1
) -> list[str]:
    """Translate permission strings through every generation from from_version on.

    Canonical strings pass through unchanged; legacy strings are mapped by the
    generation that knows them; unrecognized strings are dropped. Order is
    preserved and duplicates removed.
    """
    canonical = set(Permission.values())
    current = list(permissions)
    for (src, _dst), table in sorted(LEGACY_PERMISSION_MIGRATIONS.items()):
        if src < from_version:
            continue
        translated: list[str] = []
        for perm in current:
            if perm in canonical:
                translated.append(perm)
            elif perm in table:
                translated.append(table[perm].value)
        current = translated
    current = [p for p in current if p in canonical]
    return list(dict.fromkeys(current))
