"""Log formatting for the auth and booking API.

Every record carries a ``component`` tag. Auth records may also carry
``email``, ``purpose``, ``user_id`` and ``otp_id`` extras; these are lifted
into top-level fields so login and OTP events can be filtered without
parsing messages. Email addresses are masked unless ``LOG_MASK_EMAILS`` is
turned off.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import Flask, current_app, g, has_request_context, request

SLOW_THRESHOLD_MS = 1000

AUTH_FIELDS = ("purpose", "user_id", "otp_id")
HTTP_FIELDS = ("status", "latency_ms")
_PLAIN_ORDER = ("request_id", "method", "route", "status", "latency_ms", "email", *AUTH_FIELDS)


def mask_email(address: str) -> str:
    """Keep the first character of the local part and the whole domain."""
    local, sep, domain = address.partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"


class StructuredFormatter(logging.Formatter):
    """Render records as one JSON object per line, or as ``key=value`` text."""

    def __init__(self, as_json: bool = True, mask_emails: bool = True) -> None:
        super().__init__()
        self.as_json = as_json
        self.mask_emails = mask_emails

    def format(self, record: logging.LogRecord) -> str:
        fields = self.collect(record)
        if self.as_json:
            return json.dumps(fields, ensure_ascii=True, default=str)
        line = f"{fields['ts']} {fields['level']:<7} [{fields['component']}] {fields['msg']}"
        pairs = [f"{key}={fields[key]}" for key in _PLAIN_ORDER if key in fields]
        if pairs:
            line = f"{line} | {' '.join(pairs)}"
        if "exception" in fields:
            line = f"{line}\n{fields['exception']}"
        return line

    def collect(self, record: logging.LogRecord) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "component": getattr(record, "component", "app"),
            "msg": record.getMessage(),
        }
        if has_request_context():
            fields.update(_request_fields())
        for key in HTTP_FIELDS + AUTH_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                fields[key] = value
        email = getattr(record, "email", None)
        if email:
            fields["email"] = mask_email(email) if self.mask_emails else email
        context = getattr(record, "context", None)
        if context:
            fields["context"] = {**fields.get("context", {}), **context}
        if record.exc_info:
            fields["exception"] = self.formatException(record.exc_info)
        return fields


def _request_fields() -> Dict[str, Any]:
    fields: Dict[str, Any] = {"route": request.path, "method": request.method}
    for key, attr in (("request_id", "request_id"), ("latency_ms", "request_latency_ms"), ("status", "response_status_code")):
        value = getattr(g, attr, None)
        if value is not None:
            fields[key] = value
    body = getattr(g, "request_body", None)
    if body is not None:
        fields["context"] = {"request_body": body}
    return fields


def configure_logging(app: Flask) -> None:
    """Replace the app logger's handlers with a single structured stream handler."""
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    app.logger.setLevel(level if isinstance(level, int) else logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(
        StructuredFormatter(
            as_json=str(app.config.get("LOG_FORMAT", "json")).lower() == "json",
            mask_emails=bool(app.config.get("LOG_MASK_EMAILS", True)),
        )
    )
    app.logger.handlers.clear()
    app.logger.addHandler(handler)


def log_event(level: int, message: str, *, component: str, context: Optional[Any] = None, **fields: Any) -> None:
    if context is not None and not isinstance(context, dict):
        context = {"value": context}
    current_app.logger.log(level, message, extra={"component": component, "context": context, **fields})


def log_info(message: str, *, component: str = "app", **fields: Any) -> None:
    log_event(logging.INFO, message, component=component, **fields)


def log_warn(message: str, *, component: str = "app", **fields: Any) -> None:
    log_event(logging.WARNING, message, component=component, **fields)
