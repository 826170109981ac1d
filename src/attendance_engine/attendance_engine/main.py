from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .attendance.controller import register as register_attendance
from .common.web import register_error_handlers
from .overtime.controller import register as register_overtime
from .payroll.controller import register as register_payroll
from .reports.controller import register as register_reports
from .review.controller import register as register_review
from .timing.controller import register as register_timing

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def load_settings():
    load_dotenv(override=False)
    return importlib.import_module(get_settings_module())


def create_app(container: Optional[Container] = None) -> Flask:
    settings = load_settings()
    debug = bool(getattr(settings, "DEBUG", False))
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = debug
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings.__name__, db_config.get("user"), db_config.get("host"),
            db_config.get("port", 3306), db_config.get("database"),
        )
        container = build_container(settings=settings)
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(container.conn, schema_path=SCHEMA_PATH)
            logger.info("Schema ready (tables=%d)", len(list_tables(container.conn)))

    app.extensions["attendance_engine"] = container

    register_error_handlers(app)
    register_attendance(app, container)
    register_overtime(app, container)
    register_review(app, container)
    register_payroll(app, container)
    register_reports(app, container)
    register_timing(app, container)

    return app
