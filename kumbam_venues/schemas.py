"""Pydantic schemas for booking requests."""
from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kumbam_ext.validation import clean_email


class BookingRequest(BaseModel):
    """Incoming payload for a new booking."""

    banquet_id: int = Field(alias="banquetId", gt=0)
    booking_date: date = Field(alias="bookingDate")
    email: str = Field(min_length=1, max_length=255)
    guests: Optional[int] = Field(default=None, gt=0)
    notes: Optional[str] = Field(default=None, max_length=2000)

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")

    @field_validator("email")
    @classmethod
    def normalise_email(cls, value: str) -> str:
        return clean_email(value)
