"""Request body validation shared by the JSON blueprints."""
from __future__ import annotations

from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from kumbam_ext.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def clean_email(value: str) -> str:
    """Lower-case an address and require a local part and a dotted domain."""
    value = value.strip().lower()
    local, sep, domain = value.partition("@")
    if not sep or not local or "." not in domain:
        raise ValueError("A valid email address is required")
    return value


def parse_payload(model: Type[ModelT], payload: Any) -> ModelT:
    """Validate a request body, raising the app's ValidationError on failure."""
    try:
        return model.model_validate(payload or {})
    except PydanticValidationError as exc:
        errors = exc.errors(include_input=False)
        missing = [str(err["loc"][0]) for err in errors if _is_blank(err) and err.get("loc")]
        if missing:
            message = "All fields are required" if len(missing) > 1 else f"{missing[0]} is required"
        else:
            message = str(errors[0]["msg"]).removeprefix("Value error, ") if errors else "Invalid request"
        detail = "; ".join(f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in errors)
        raise ValidationError(message, detail=detail) from exc


def _is_blank(error: dict[str, Any]) -> bool:
    if error.get("type") == "missing":
        return True
    return error.get("type") == "string_too_short" and error.get("ctx", {}).get("min_length") == 1
