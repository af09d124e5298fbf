from __future__ import annotations

from flask import Flask, request

from ..common.http import actor_id, json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/sync-errors", methods=["GET"], endpoint="sync_errors_list")
    def sync_errors_list():
        page = container.sync_error_service.list_errors(
            status=request.args.get("status"),
            sync_type=request.args.get("syncType"),
            site_id=request.args.get("siteId"),
            page=request.args.get("page"),
            limit=request.args.get("limit"),
        )
        return ok(page.to_dict())

    @app.route("/api/sync-errors", methods=["PATCH"], endpoint="sync_errors_update")
    def sync_errors_update():
        body = json_body()
        updated = container.sync_error_service.update_status(
            body.get("id"),
            body.get("status"),
            retry=body.get("retry"),
            actor_id=actor_id(),
        )
        return ok(updated.to_dict())

    @app.route("/api/sync-errors/<int:error_id>", methods=["PATCH"], endpoint="sync_errors_update_one")
    def sync_errors_update_one(error_id: int):
        body = json_body()
        updated = container.sync_error_service.update_status(
            error_id,
            body.get("status"),
            retry=body.get("retry"),
            actor_id=actor_id(),
        )
        return ok(updated.to_dict())
