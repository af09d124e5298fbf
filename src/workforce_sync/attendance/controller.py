from __future__ import annotations

from flask import Flask, request

from ..common.http import actor_id, json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/batch", methods=["POST"], endpoint="attendance_batch")
    def attendance_batch():
        body = json_body()
        result = container.attendance_service.ingest_batch(body.get("events"), actor_id=actor_id())
        return ok(result.to_dict())

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    def attendance_today():
        today = container.attendance_service.today_attendance(
            site_id=request.args.get("siteId"),
            page=request.args.get("page"),
            limit=request.args.get("limit"),
        )
        return ok(today.to_dict())

    @app.route("/api/attendance/present/<int:user_id>", methods=["GET"], endpoint="attendance_present")
    def attendance_present(user_id: int):
        present = container.attendance_service.is_present(user_id)
        return ok({"userId": user_id, "present": present})

    @app.route("/api/attendance/unmatched", methods=["GET"], endpoint="attendance_unmatched")
    def attendance_unmatched():
        page = container.attendance_service.list_unmatched(
            site_id=request.args.get("siteId"),
            page=request.args.get("page"),
            limit=request.args.get("limit"),
        )
        return ok(page.to_dict())
