from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .audit.controller import register as register_audit
from .common.http import register_error_handlers
from .container import Container, build_container
from .core.constants import DEFAULT_EARLY_LEAVE_MINUTES, DEFAULT_LATE_GRACE_MINUTES
from .database.bootstrap import apply_schema, ensure_default_roles, list_tables
from .rosters.controller import register as register_rosters
from .sandbox.controller import register as register_sandbox
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    ``container`` lets tests plug in services built over in-memory repositories;
    when omitted the MySQL container is built from the active settings module.
    """

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            roles = ensure_default_roles(db_config)
            logger.info("Default roles ready (%s)", len(roles))

        container = build_container(
            db_config=db_config,
            late_grace_minutes=int(getattr(settings, "LATE_GRACE_MINUTES", DEFAULT_LATE_GRACE_MINUTES)),
            early_leave_minutes=int(getattr(settings, "EARLY_LEAVE_MINUTES", DEFAULT_EARLY_LEAVE_MINUTES)),
        )

    register_error_handlers(app)
    register_users(app, container)
    register_attendance(app, container)
    register_rosters(app, container)
    register_sandbox(app, container)
    register_audit(app, container)

    return app
