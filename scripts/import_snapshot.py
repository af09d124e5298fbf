"""Import a terminal snapshot (.db3) into the worker directory."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from _settings import load_container

from workforce_sync.core.exceptions import SnapshotFormatError, SyncInProgressError

logger = logging.getLogger("import_snapshot")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("path", type=Path, help="snapshot file exported by the access-control terminal")
    parser.add_argument("--summary", action="store_true", help="only print row count, companies and last seen")
    args = parser.parse_args()

    data = args.path.read_bytes()
    container = load_container()
    service = container.reconciliation_service
    try:
        if args.summary:
            print(json.dumps(service.summarize_snapshot(data).to_dict(), ensure_ascii=False))
            return
        with container.sync_guard.hold():
            run = service.sync_snapshot(data, actor_id="cli")
    except SnapshotFormatError as exc:
        raise SystemExit(f"{args.path}: {exc}")
    except SyncInProgressError as exc:
        logger.warning("%s", exc)
        raise SystemExit(2)

    print("OK: " + json.dumps(run.to_dict(), ensure_ascii=False))


if __name__ == "__main__":
    main()
