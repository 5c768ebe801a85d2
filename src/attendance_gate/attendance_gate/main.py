from __future__ import annotations

import importlib
from typing import Optional

import structlog
from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.logging import setup_logging
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .reports.controller import register as register_reports

logger = structlog.get_logger(__name__)


def create_app(*, settings_module: Optional[str] = None, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", None))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema_ready", tables=len(list_tables(db_config)))
        container = build_container(settings)

    logger.info("app_created", settings=settings_module, timezone=str(container.tz))

    register_attendance(app, container)
    register_reports(app, container)

    return app
