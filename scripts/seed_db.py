"""Seed the default roles and, when configured, a first Store Manager login.

Manager seeding reads SEED_MANAGER_EMAIL, SEED_MANAGER_PASSWORD and SEED_STORE_ID.
"""

from __future__ import annotations

import importlib
import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.staff_roster.staff_roster.database.bootstrap import ensure_default_roles, ensure_store_manager


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    roles = ensure_default_roles(db_config)
    print(f"OK: {len(roles)} roles ready")

    email = os.getenv("SEED_MANAGER_EMAIL")
    password = os.getenv("SEED_MANAGER_PASSWORD")
    store_id = os.getenv("SEED_STORE_ID")
    if email and password and store_id:
        user_id = ensure_store_manager(db_config, email=email, password=password, store_id=store_id)
        print(f"OK: Store Manager {email} -> {user_id}")
    else:
        print("Skipped manager seed (set SEED_MANAGER_EMAIL, SEED_MANAGER_PASSWORD, SEED_STORE_ID)")


if __name__ == "__main__":
    main()
