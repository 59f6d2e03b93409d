from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .common.web import register_error_handlers
from .config import get_settings_module
from .container import Container, build_container
from .core.logging import configure_logging
from .database.bootstrap import apply_schema, list_tables
from .requests.controller import register as register_requests
from .rooms.controller import register as register_rooms
from .schedules.controller import register as register_schedules
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def create_app(*, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        backend = str(getattr(settings, "STORE_BACKEND", "mysql"))
        db_config = getattr(settings, "DB_CONFIG", None)
        logger.info("settings=%s backend=%s", settings_module, backend)

        if backend == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            backend=backend,
            db_config=db_config,
            invite_code_length=int(getattr(settings, "INVITE_CODE_LENGTH", 6)),
            upcoming_days=int(getattr(settings, "UPCOMING_DAYS", 7)),
        )

    app.extensions["office_attendance"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_rooms(app, container)
    register_schedules(app, container)
    register_requests(app, container)

    return app
