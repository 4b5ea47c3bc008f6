from __future__ import annotations

import re
from datetime import date
from typing import Annotated, Any, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DIGITS_RE = re.compile(r"^[0-9]+$")

# upper bound is the 32-bit INTEGER column the value is stored in
PositiveInt = Annotated[int, Field(gt=0, le=2**31 - 1, strict=True)]
Name = Annotated[str, Field(max_length=120)]


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


class AnnouncementCreate(BaseModel):
    """
    Inbound payload for a new announcement. Field order is the order in which
    violations are reported.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        extra="forbid",
        str_strip_whitespace=True,
    )

    pet_name: Name | None = None
    species: str = Field(min_length=1, max_length=50)
    breed: Name | None = None
    sex: str = Field(min_length=1, max_length=20)
    age: PositiveInt | None = None
    description: str | None = None
    microchip_number: Annotated[str, Field(max_length=30)] | None = None
    location_latitude: float = Field(ge=-90, le=90, strict=True)
    location_longitude: float = Field(ge=-180, le=180, strict=True)
    location_city: Name | None = None
    location_radius: PositiveInt | None = None
    email: Annotated[str, Field(max_length=254)] | None = None
    phone: Annotated[str, Field(max_length=40)] | None = None
    last_seen_date: date
    photo_url: Annotated[str, Field(max_length=255)] | None = None
    status: Literal["MISSING", "FOUND"]
    reward: Name | None = None

    @model_validator(mode="before")
    @classmethod
    def _require_contact(cls, data: Any) -> Any:
        # Checked before any field so a payload without contact details always
        # reports MISSING_CONTACT, whatever else is wrong with it.
        if isinstance(data, dict) and not (_present(data.get("email")) or _present(data.get("phone"))):
            raise PydanticCustomError(
                "missing_contact", "at least one contact method (email or phone) is required"
            )
        return data

    @field_validator("microchip_number")
    @classmethod
    def _digits_only(cls, v: str | None) -> str | None:
        if v is not None and not DIGITS_RE.match(v):
            raise PydanticCustomError("invalid_format", "microchipNumber must contain only digits")
        return v

    @field_validator("email")
    @classmethod
    def _email_shape(cls, v: str | None) -> str | None:
        if v is not None and not EMAIL_RE.match(v):
            raise PydanticCustomError("invalid_format", "email format is invalid")
        return v

    @field_validator("phone")
    @classmethod
    def _phone_has_digit(cls, v: str | None) -> str | None:
        if v is not None and not any(c.isdigit() for c in v):
            raise PydanticCustomError("invalid_format", "invalid phone format")
        return v

    @field_validator("last_seen_date", mode="before")
    @classmethod
    def _iso_date_string(cls, v: Any) -> Any:
        if not isinstance(v, str) or not DATE_RE.match(v.strip()):
            raise PydanticCustomError("invalid_format", "invalid date format (expected YYYY-MM-DD)")
        return v.strip()

    @field_validator("last_seen_date")
    @classmethod
    def _not_in_future(cls, v: date, info: ValidationInfo) -> date:
        today = (info.context or {}).get("today") or date.today()
        if v > today:
            raise PydanticCustomError("invalid_format", "lastSeenDate cannot be in the future")
        return v

    @field_validator("photo_url")
    @classmethod
    def _absolute_http_url(cls, v: str | None) -> str | None:
        if v is None:
            return v
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise PydanticCustomError("invalid_format", "photoUrl must be an absolute http(s) URL")
        return v


class AnnouncementCreatedOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    management_password: str

