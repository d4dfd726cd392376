from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.logging_setup import setup_logging
from .container import Container, build_container
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .events.controller import register as register_events
from .penalties.controller import register as register_penalties
from .points.controller import register as register_points
from .staff_requests.controller import register as register_staff_requests
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["CRON_SECRET"] = getattr(settings, "CRON_SECRET", "")
    app.json.ensure_ascii = False

    setup_logging(app, log_dir=getattr(settings, "LOG_DIR", None), level_name=getattr(settings, "LOG_LEVEL", None))
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_users(db_config)
        container = build_container(db_config=db_config)

    register_users(app, container)
    register_events(app, container)
    register_attendance(app, container)
    register_points(app, container)
    register_staff_requests(app, container)
    register_penalties(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok"})

    return app
