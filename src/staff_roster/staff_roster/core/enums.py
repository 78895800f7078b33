from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Attendance annotation stored on a roster slot."""

    PRESENT = "present"
    LATE = "late"
    LEFT_EARLY = "left_early"
    ABSENT = "absent"
    SUBSTITUTED = "substituted"


class RosterStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class RoleName(str, Enum):
    """Known role names. Permissions are keyed by these."""

    STORE_MANAGER = "Store Manager"
    SHIFT_IN_CHARGE = "Shift In Charge"
    INVENTORY_EXECUTIVE = "Inventory Executive"
    DISPATCHER = "Dispatcher"
    PICKER_PACKER_WAREHOUSE = "Picker Packer (Warehouse)"
    PICKER_PACKER_AD_HOC = "Picker Packer (Ad-Hoc)"


class Permission(str, Enum):
    CRUD_USER = "CRUD_USER"
    CRUD_ROLE = "CRUD_ROLE"
    VIEW_ALL_STAFF = "VIEW_ALL_STAFF"
    VIEW_OWN_STAFF = "VIEW_OWN_STAFF"
    ASSIGN_SHIFT = "ASSIGN_SHIFT"
    CREATE_ROSTER = "CREATE_ROSTER"
    MODIFY_ROSTER = "MODIFY_ROSTER"
    PUBLISH_ROSTER = "PUBLISH_ROSTER"
    DELETE_ROSTER = "DELETE_ROSTER"
    VIEW_ROSTER = "VIEW_ROSTER"
    ASSIGN_TASK = "ASSIGN_TASK"
    MODIFY_TASK = "MODIFY_TASK"
    MANAGE_SETTINGS = "MANAGE_SETTINGS"
    MANAGE_SHIFT_DEFINITIONS = "MANAGE_SHIFT_DEFINITIONS"
    MANAGE_ROSTER_TEMPLATES = "MANAGE_ROSTER_TEMPLATES"
    EXPORT_ROSTER = "EXPORT_ROSTER"
    SHARE_ROSTER = "SHARE_ROSTER"
    VIEW_AUDIT_LOG = "VIEW_AUDIT_LOG"
    VIEW_REPORTS = "VIEW_REPORTS"
    DELETE_SM_USER = "DELETE_SM_USER"
    DEMOTE_SM_USER = "DEMOTE_SM_USER"
    MANAGE_AD_HOC_PP = "MANAGE_AD_HOC_PP"


class AuditAction(str, Enum):
    CHECK_IN = "CHECK_IN"
    CHECK_OUT = "CHECK_OUT"
    RECORD_ACTUALS = "RECORD_ACTUALS"
    CREATE_ROSTER = "CREATE_ROSTER"
    PUBLISH_ROSTER = "PUBLISH_ROSTER"
    DELETE_ROSTER = "DELETE_ROSTER"
    EXPORT_ROSTER = "EXPORT_ROSTER"
    TESTING_ENVIRONMENT_TRIGGER = "TESTING_ENVIRONMENT_TRIGGER"
    TESTING_ENVIRONMENT_ENDED = "TESTING_ENVIRONMENT_ENDED"


# Exempt from test-mode suppression and from the cleanup purge.
LIFECYCLE_ACTIONS = frozenset(
    {AuditAction.TESTING_ENVIRONMENT_TRIGGER, AuditAction.TESTING_ENVIRONMENT_ENDED}
)


class EntityType(str, Enum):
    USER = "user"
    ROSTER = "roster"
    ROLE = "role"
    SETTINGS = "settings"


class ExperienceLevel(str, Enum):
    EXPERIENCED = "experienced"
    FRESHER = "fresher"


class PPType(str, Enum):
    WAREHOUSE = "warehouse"
    AD_HOC = "adHoc"
