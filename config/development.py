import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "staff_roster"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Minutes after the planned start still counted as on time / before the planned end
# that still count as a full shift.
LATE_GRACE_MINUTES = int(os.getenv("LATE_GRACE_MINUTES", "15"))
EARLY_LEAVE_MINUTES = int(os.getenv("EARLY_LEAVE_MINUTES", "15"))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed the default roles on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
