from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .common.http import register_error_handlers
from .common.logging_utils import configure_logging
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .sync.controller import register as register_sync
from .sync_errors.controller import register as register_sync_errors

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        replica_db_config = getattr(settings, "REPLICA_DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s replica=%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
            replica_db_config.get("host"),
            replica_db_config.get("port", 3306),
            replica_db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            replica_db_config=replica_db_config,
            replica_site_cd=getattr(settings, "REPLICA_SITE_CD"),
            replica_timeout=getattr(settings, "REPLICA_QUERY_TIMEOUT_SECONDS"),
            site_tz_name=getattr(settings, "SITE_TIMEZONE"),
            cutoff_hour=getattr(settings, "DAY_CUTOFF_HOUR"),
            legacy_encoding=getattr(settings, "LEGACY_ENCODING"),
            page_limit=getattr(settings, "SYNC_PAGE_LIMIT"),
        )

    register_error_handlers(app)
    register_sync(app, container)
    register_attendance(app, container)
    register_sync_errors(app, container)

    return app
