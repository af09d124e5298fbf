from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, jsonify, request

from ..core.exceptions import (
    DomainError,
    InvalidTransitionError,
    NotFoundError,
    SnapshotFormatError,
    SyncInProgressError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ACTOR_HEADER = "X-Actor-Id"

# Most specific first: InvalidTransitionError is also a ValidationError.
_STATUS_BY_ERROR = (
    (InvalidTransitionError, 409, "INVALID_TRANSITION"),
    (ValidationError, 400, "VALIDATION_ERROR"),
    (NotFoundError, 404, "NOT_FOUND"),
    (SnapshotFormatError, 422, "INVALID_SNAPSHOT"),
    (UpstreamError, 502, "UPSTREAM_ERROR"),
    (SyncInProgressError, 409, "SYNC_IN_PROGRESS"),
)


def ok(data: Any, status: int = 200):
    return jsonify({"success": True, "data": data}), status


def fail(code: str, message: str, status: int):
    return jsonify({"success": False, "error": {"code": code, "message": message}}), status


def actor_id() -> Optional[str]:
    value = request.headers.get(ACTOR_HEADER, "").strip()
    return value or None


def json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("request body must be a JSON object")
    return body


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        for cls, status, code in _STATUS_BY_ERROR:
            if isinstance(exc, cls):
                if status >= 500:
                    logger.error("%s %s failed: %s", request.method, request.path, exc)
                return fail(code, str(exc), status)
        logger.exception("unmapped domain error on %s %s", request.method, request.path)
        return fail("INTERNAL_ERROR", "internal error", 500)
