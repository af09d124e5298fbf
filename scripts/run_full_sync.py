"""Run one full replica pass (cron entry point).

Exit code 2 means another sync holds the lock; 1 means the replica or the
internal store failed and the pass was left unfinished.
"""
from __future__ import annotations

import argparse
import json
import logging

from _settings import load_container

from workforce_sync.core.exceptions import SyncInProgressError, UpstreamError
from workforce_sync.sync.scheduler import run_full_replica_sync

logger = logging.getLogger("run_full_sync")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--limit", type=int, default=None, help="page size (1-500)")
    args = parser.parse_args()

    container = load_container()
    try:
        report = run_full_replica_sync(
            container.reconciliation_service,
            container.sync_guard,
            limit=args.limit,
            actor_id="cron",
        )
    except SyncInProgressError as exc:
        logger.warning("%s", exc)
        raise SystemExit(2)
    except UpstreamError as exc:
        logger.error("full sync aborted: %s", exc)
        raise SystemExit(1)

    print("OK: " + json.dumps(report.to_dict(), ensure_ascii=False))


if __name__ == "__main__":
    main()
