"""Shared bootstrap for the job scripts."""
from __future__ import annotations

import importlib

from dotenv import load_dotenv

from workforce_sync.common.logging_utils import configure_logging
from workforce_sync.config import get_settings_module
from workforce_sync.container import Container, build_container


def load_container() -> Container:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    return build_container(
        db_config=dict(settings.DB_CONFIG),
        replica_db_config=dict(settings.REPLICA_DB_CONFIG),
        replica_site_cd=settings.REPLICA_SITE_CD,
        replica_timeout=settings.REPLICA_QUERY_TIMEOUT_SECONDS,
        site_tz_name=settings.SITE_TIMEZONE,
        cutoff_hour=settings.DAY_CUTOFF_HOUR,
        legacy_encoding=settings.LEGACY_ENCODING,
        page_limit=settings.SYNC_PAGE_LIMIT,
    )
