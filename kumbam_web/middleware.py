"""Per-request hooks: correlation ids, timing, body sampling and CORS."""
from __future__ import annotations

import time
import uuid
from typing import Any, Iterable

from flask import Flask, Response, current_app, g, request

from kumbam_ext.logging import SLOW_THRESHOLD_MS, log_info, log_warn

REQUEST_ID_HEADER = "X-Request-ID"
_BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
_MAX_LIST_ITEMS = 50


def init_app(app: Flask) -> None:
    app.before_request(_start_request)
    app.after_request(_finish_request)
    app.teardown_request(_log_teardown)


def _start_request():
    g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    g.request_started_at = time.perf_counter()
    if request.method in _BODY_METHODS:
        g.request_body = sample_body(current_app.config.get("REDACT_KEYS", ()))
    if request.method == "OPTIONS":
        # Preflight answers here; CORS headers are added in _finish_request.
        return current_app.make_default_options_response()
    return None


def _finish_request(response: Response) -> Response:
    started = g.pop("request_started_at", None)
    if started is not None:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        g.request_latency_ms = int(elapsed_ms)
        response.headers["X-Response-Time"] = f"{elapsed_ms / 1000:.4f}s"
    response.headers[REQUEST_ID_HEADER] = g.get("request_id", "")
    g.response_status_code = response.status_code
    apply_cors(response, current_app.config.get("CORS_ORIGINS") or ())

    latency = g.get("request_latency_ms")
    if latency is not None and latency > SLOW_THRESHOLD_MS:
        log_warn("slow request", component="http")
    log_info("request completed", component="http")
    return response


def _log_teardown(exc: BaseException | None) -> None:
    if exc is not None:
        log_warn("request aborted", component="http", context={"error": type(exc).__name__})


def apply_cors(response: Response, origins: Iterable[str]) -> None:
    """Allow the configured browser origins; ``*`` allows any."""
    origins = tuple(origins)
    origin = request.headers.get("Origin")
    if "*" in origins:
        allowed = "*"
    elif origin and origin in origins:
        allowed = origin
        response.vary.add("Origin")
    else:
        return
    response.headers["Access-Control-Allow-Origin"] = allowed
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = f"Content-Type, {REQUEST_ID_HEADER}"


def sample_body(redact_keys: Iterable[str]) -> Any:
    """Return a loggable view of the request body with credentials masked."""
    if request.mimetype and request.mimetype.startswith("multipart/"):
        return "<multipart omitted>"
    if request.is_json:
        return redact(request.get_json(silent=True) or {}, {key.lower() for key in redact_keys})
    size = request.content_length or 0
    # Only the size of a non-JSON body is logged.
    return f"<{size} bytes omitted>" if size else None


def redact(payload: Any, keys: set[str]) -> Any:
    if isinstance(payload, dict):
        return {
            key: "***" if str(key).lower() in keys else redact(value, keys)
            for key, value in payload.items()
        }
    if isinstance(payload, list):
        return [redact(item, keys) for item in payload[:_MAX_LIST_ITEMS]]
    return payload
