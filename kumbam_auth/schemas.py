"""Pydantic schemas for the auth JSON endpoints."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kumbam_ext.validation import clean_email


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


class _Payload(BaseModel):
    # Passwords are hashed exactly as sent, so whitespace is only trimmed
    # from the identifying fields below.
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class EmailRequest(_Payload):
    email: str = Field(min_length=1, max_length=255)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value: Any) -> Any:
        return _strip(value)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, value: str) -> str:
        return clean_email(value)


class SignupRequest(EmailRequest):
    full_name: str = Field(alias="fullName", min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=32)
    password: str = Field(min_length=1, max_length=1024)

    @field_validator("full_name", "phone", mode="before")
    @classmethod
    def strip_contact(cls, value: Any) -> Any:
        return _strip(value)


class LoginRequest(EmailRequest):
    password: str = Field(min_length=1, max_length=1024)


class OtpRequest(EmailRequest):
    otp: str = Field(min_length=1, max_length=16)

    @field_validator("otp", mode="before")
    @classmethod
    def coerce_otp(cls, value: Any) -> Any:
        # Some clients send the code as a JSON number.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return _strip(value)


class ResetPasswordRequest(OtpRequest):
    password: str = Field(min_length=1, max_length=1024)
