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

SECRET_KEY = "test-secret"

DB_CONFIG = db_config_from_env("DB_", database="workforce_db_test")
REPLICA_DB_CONFIG = db_config_from_env("REPLICA_DB_", database="mdidev_test")

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
