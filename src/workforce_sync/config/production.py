import os

from .base import (  # noqa: F401
    DAY_CUTOFF_HOUR,
    LEGACY_ENCODING,
    REPLICA_QUERY_TIMEOUT_SECONDS,
    REPLICA_SITE_CD,
    SITE_TIMEZONE,
    SYNC_PAGE_LIMIT,
    db_config_from_env,
)

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = db_config_from_env("DB_", database="workforce_db")
REPLICA_DB_CONFIG = db_config_from_env("REPLICA_DB_", database="mdidev")

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
