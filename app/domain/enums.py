"""Domain enumerations for the tenancy platform.

Enums represent fixed sets of domain values (tenant status, plan,
permission codes). Values match what is persisted in Firestore.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings (e.g. for validation messages)."""
        return [member.value for member in cls]


class TenantStatus(_ValuesMixin, str, Enum):
    """Tenant lifecycle status.

    Tenants are soft-mutated: suspension and deactivation change this field;
    hard delete only happens on the orphan-cleanup path.
    """

    ACTIVE = "Active"
    SUSPENDED = "Suspended"
    INACTIVE = "Inactive"


# User-count ceiling per plan.
PLAN_USER_LIMITS: dict[str, int] = {
    "Starter": 10,
    "Professional": 50,
    "Enterprise": 500,
}


class TenantPlan(_ValuesMixin, str, Enum):
    """Subscription plan; each plan carries a user-count ceiling."""

    STARTER = "Starter"
    PROFESSIONAL = "Professional"
    ENTERPRISE = "Enterprise"

    @property
    def user_limit(self) -> int:
        return PLAN_USER_LIMITS[self.value]


class OperationKind(_ValuesMixin, str, Enum):
    """Kind of privileged tenant operation recorded in the operations log."""

    CREATE = "create"
    UPDATE = "update"
    SUSPEND = "suspend"
    ACTIVATE = "activate"
    DELETE = "delete"


class Permission(_ValuesMixin, str, Enum):
    """Closed set of permission codes a Role may carry."""

    # Platform
    PLATFORM_ADMIN = "PLATFORM_ADMIN"
    CAN_MANAGE_TENANTS = "CAN_MANAGE_TENANTS"
    CAN_VIEW_ALL_TENANTS = "CAN_VIEW_ALL_TENANTS"

    # Users and roles
    CAN_MANAGE_USERS = "CAN_MANAGE_USERS"
    CAN_CREATE_USER = "CAN_CREATE_USER"
    CAN_EDIT_USER = "CAN_EDIT_USER"
    CAN_ARCHIVE_USER = "CAN_ARCHIVE_USER"
    CAN_DELETE_ARCHIVED_USER = "CAN_DELETE_ARCHIVED_USER"
    CAN_MANAGE_ROLES = "CAN_MANAGE_ROLES"

    # Reports
    CAN_VIEW_ALL_REPORTS = "CAN_VIEW_ALL_REPORTS"
    CAN_MANAGE_TEAM_REPORTS = "CAN_MANAGE_TEAM_REPORTS"
    CAN_ACKNOWLEDGE_REPORTS = "CAN_ACKNOWLEDGE_REPORTS"
    CAN_SUBMIT_OWN_EOD = "CAN_SUBMIT_OWN_EOD"
    CAN_VIEW_OWN_REPORTS = "CAN_VIEW_OWN_REPORTS"

    # Tasks
    CAN_MANAGE_TEAM_TASKS = "CAN_MANAGE_TEAM_TASKS"
    CAN_CREATE_PERSONAL_TASKS = "CAN_CREATE_PERSONAL_TASKS"
    CAN_EDIT_ANY_TASK_STATUS = "CAN_EDIT_ANY_TASK_STATUS"

    # Leave
    CAN_MANAGE_ALL_LEAVES = "CAN_MANAGE_ALL_LEAVES"
    CAN_SUBMIT_OWN_LEAVE = "CAN_SUBMIT_OWN_LEAVE"

    # Meetings
    CAN_MANAGE_TEAM_MEETINGS = "CAN_MANAGE_TEAM_MEETINGS"
    CAN_VIEW_OWN_MEETINGS = "CAN_VIEW_OWN_MEETINGS"

    # Other
    CAN_VIEW_LEADERBOARD = "CAN_VIEW_LEADERBOARD"
    CAN_VIEW_TEAM_CALENDAR = "CAN_VIEW_TEAM_CALENDAR"
    CAN_VIEW_OWN_CALENDAR = "CAN_VIEW_OWN_CALENDAR"
    CAN_MANAGE_BUSINESS_UNITS = "CAN_MANAGE_BUSINESS_UNITS"
    CAN_VIEW_TRIGGER_LOG = "CAN_VIEW_TRIGGER_LOG"
    CAN_USE_PERFORMANCE_HUB = "CAN_USE_PERFORMANCE_HUB"


class SagaKind(_ValuesMixin, str, Enum):
    """Which provisioning saga a persisted attempt belongs to."""

    TENANT = "tenant"
    USER = "user"


class ProvisioningStatus(_ValuesMixin, str, Enum):
    """Status of a persisted provisioning attempt.

    CLEANUP_PENDING marks an attempt whose compensation did not fully
    succeed; the recovery job retries it.
    """

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ROLLED_BACK = "rolled_back"
    CLEANUP_PENDING = "cleanup_pending"


class AdminFlagCheck(_ValuesMixin, str, Enum):
    """Agreement between the platform-admin claim and the profile flag."""

    BOTH_TRUE = "both_true"
    BOTH_FALSE = "both_false"
    DISAGREE = "disagree"
