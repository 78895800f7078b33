"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_LATE_GRACE_MINUTES = 15
DEFAULT_EARLY_LEAVE_MINUTES = 15

TEST_EMPLOYEE_PREFIX = "TEST-"
TEST_ROSTER_NAME_SUFFIX = "- TEST"
TEST_ENVIRONMENT_ENTITY_ID = "test-environment"
TEST_USER_EMAIL_DOMAIN = "test.local"

CHECK_OUT_NOTE_PREFIX = "[Check-out]: "
