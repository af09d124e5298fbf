from __future__ import annotations

from flask import Flask, request

from ..common.http import actor_id, json_body, ok
from ..core.exceptions import ValidationError
from ..container import Container
from .scheduler import run_full_replica_sync


def register(app: Flask, container: Container) -> None:
    def _snapshot_bytes() -> bytes:
        upload = request.files.get("file")
        data = upload.read() if upload else request.get_data()
        if not data:
            raise ValidationError("snapshot file is required")
        return data

    @app.route("/api/sync/replica/page", methods=["POST"], endpoint="sync_replica_page")
    def sync_replica_page():
        body = json_body()
        with container.sync_guard.hold():
            run = container.reconciliation_service.sync_replica_page(
                offset=body.get("offset"),
                limit=body.get("limit"),
                pass_id=body.get("passId"),
                actor_id=actor_id(),
            )
        return ok(run.to_dict())

    @app.route("/api/sync/replica/full", methods=["POST"], endpoint="sync_replica_full")
    def sync_replica_full():
        body = json_body()
        report = run_full_replica_sync(
            container.reconciliation_service,
            container.sync_guard,
            limit=body.get("limit"),
            actor_id=actor_id(),
        )
        return ok(report.to_dict())

    @app.route("/api/sync/snapshot", methods=["POST"], endpoint="sync_snapshot")
    def sync_snapshot():
        data = _snapshot_bytes()
        with container.sync_guard.hold():
            run = container.reconciliation_service.sync_snapshot(data, actor_id=actor_id())
        return ok(run.to_dict())

    @app.route("/api/sync/snapshot/summary", methods=["POST"], endpoint="sync_snapshot_summary")
    def sync_snapshot_summary():
        summary = container.reconciliation_service.summarize_snapshot(_snapshot_bytes())
        return ok(summary.to_dict())

    @app.route("/api/sync/status", methods=["GET"], endpoint="sync_status")
    def sync_status():
        return ok(container.health_service.status())

    @app.route("/api/sync/search", methods=["GET"], endpoint="sync_search")
    def sync_search():
        found = container.replica_search_service.search(
            name=request.args.get("name"),
            phone=request.args.get("phone"),
        )
        return ok(
            {
                "query": {"name": found.name, "phone": found.phone},
                "results": [r.to_public_dict() for r in found.results],
            }
        )
