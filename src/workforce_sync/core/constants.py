"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DAY_CUTOFF_HOUR = 5
DEFAULT_SITE_TIMEZONE = "Asia/Seoul"

LEGACY_ENCODING = "cp949"

DEFAULT_PAGE_LIMIT = 100
MAX_PAGE_LIMIT = 500

DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 2000

IN_QUERY_CHUNK_SIZE = 50
RECENT_SYNC_LOG_LIMIT = 20

REPLICA_ACTIVE_STATE_FLAG = "W"
REPLICA_DEFAULT_SITE_CD = "10"
REPLICA_QUERY_TIMEOUT_SECONDS = 10

SYNC_LOCK_NAME = "workforce_sync.full_sync"
