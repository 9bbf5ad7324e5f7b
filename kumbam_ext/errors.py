"""Application-wide error handling and typed exceptions."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Tuple

from flask import Flask, current_app, g, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from kumbam_ext.db import db


@dataclass(eq=False)
class AppError(Exception):
    """Base exception carrying structured context."""

    user_msg: str
    code: str = "APP_ERROR"
    http_status: int = 500
    detail: str | None = None

    # Server faults keep their 5xx status even under the legacy status policy.
    server_fault: ClassVar[bool] = False

    def __str__(self) -> str:
        return self.user_msg

    def payload(self, *, include_detail: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": False,
            "message": self.user_msg,
            "code": self.code,
        }
        request_id = getattr(g, "request_id", None)
        if request_id:
            data["request_id"] = request_id
        if include_detail and self.detail:
            data["detail"] = self.detail
        return data

    def status_code(self, *, legacy: bool) -> int:
        if legacy and not self.server_fault:
            return 200
        return self.http_status

    def to_response(self) -> Tuple[Dict[str, Any], int]:
        include_detail = current_app.debug or (current_app.testing and not self.server_fault)
        legacy = bool(current_app.config.get("LEGACY_STATUS_CODES", True))
        return self.payload(include_detail=include_detail), self.status_code(legacy=legacy)


@dataclass(eq=False)
class ValidationError(AppError):
    code: str = "VALIDATION"
    http_status: int = 400


@dataclass(eq=False)
class NotFoundError(AppError):
    code: str = "NOT_FOUND"
    http_status: int = 404


@dataclass(eq=False)
class ConflictError(AppError):
    code: str = "CONFLICT"
    http_status: int = 409


@dataclass(eq=False)
class InvalidCredential(AppError):
    code: str = "INVALID_CREDENTIAL"
    http_status: int = 401


@dataclass(eq=False)
class ExpiredError(AppError):
    code: str = "EXPIRED"
    http_status: int = 410


@dataclass(eq=False)
class DeliveryFailure(AppError):
    """The notification sink rejected a message after the OTP was stored."""

    code: str = "DELIVERY_FAILED"
    http_status: int = 502


@dataclass(eq=False)
class PersistenceFailure(AppError):
    """The store was unreachable or rejected a write."""

    user_msg: str = "Server error"
    code: str = "PERSISTENCE"
    http_status: int = 500

    server_fault: ClassVar[bool] = True


@dataclass(eq=False)
class InternalError(AppError):
    user_msg: str = "Internal server error"
    code: str = "INTERNAL"
    http_status: int = 500

    server_fault: ClassVar[bool] = True


def init_app(app: Flask) -> None:
    """Attach global error handlers to the Flask application."""

    app.register_error_handler(AppError, _handle_app_error)
    app.register_error_handler(HTTPException, _handle_http_exception)
    app.register_error_handler(SQLAlchemyError, _handle_store_error)
    app.register_error_handler(Exception, _handle_unexpected)


def _handle_app_error(error: AppError):
    if isinstance(error, PersistenceFailure):
        db.session.rollback()
    return _format_error(error)


def _handle_http_exception(error: HTTPException):
    # Routing and protocol errors keep their real status regardless of policy.
    payload = {"success": False, "message": error.description, "code": error.name.upper().replace(" ", "_")}
    resp = jsonify(payload)
    resp.status_code = error.code or 500
    return resp


def _handle_store_error(error: SQLAlchemyError):
    current_app.logger.exception("Unhandled store error", exc_info=error)
    db.session.rollback()
    return _format_error(PersistenceFailure(detail=str(error) if current_app.debug else None))


def _handle_unexpected(error: Exception):
    current_app.logger.exception("Unhandled exception", exc_info=error)
    return _format_error(InternalError(detail=str(error) if current_app.debug else None))


def _format_error(error: AppError):
    payload, status = error.to_response()
    resp = jsonify(payload)
    resp.status_code = status
    return resp
