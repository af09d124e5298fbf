import os


def db_config_from_env(prefix: str, *, database: str, password: str = "") -> dict:
    return {
        "host": os.getenv(f"{prefix}HOST", "localhost"),
        "port": int(os.getenv(f"{prefix}PORT", "3306")),
        "user": os.getenv(f"{prefix}USER", "root"),
        "password": os.getenv(f"{prefix}PASSWORD", password),
        "database": os.getenv(f"{prefix}NAME", database),
    }


SITE_TIMEZONE = os.getenv("SITE_TIMEZONE", "Asia/Seoul")
DAY_CUTOFF_HOUR = int(os.getenv("DAY_CUTOFF_HOUR", "5"))
LEGACY_ENCODING = os.getenv("LEGACY_ENCODING", "cp949")
SYNC_PAGE_LIMIT = int(os.getenv("SYNC_PAGE_LIMIT", "100"))

REPLICA_SITE_CD = os.getenv("REPLICA_SITE_CD", "10")
REPLICA_QUERY_TIMEOUT_SECONDS = int(os.getenv("REPLICA_QUERY_TIMEOUT_SECONDS", "10"))
