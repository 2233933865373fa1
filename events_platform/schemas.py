# events_platform/schemas.py
# ------------------------------------------------------------
# Pydantic v2 schemas, organized by domain
# ------------------------------------------------------------
from datetime import datetime
from decimal import Decimal
import re
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from events_platform.timestamps import to_iso8601


_CONTROL_CHAR_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_SCRIPT_TAG_RE = re.compile(r"<\s*/?\s*script", re.IGNORECASE)


def _sanitize_single_line_text(value: str | None, *, allow_empty: bool = False) -> str | None:
    if value is None:
        return value
    if not isinstance(value, str):
        raise TypeError("Expected string input")
    cleaned = _CONTROL_CHAR_RE.sub("", value).strip()
    if not allow_empty and not cleaned:
        raise ValueError("Value cannot be empty")
    if "\n" in cleaned or "\r" in cleaned:
        raise ValueError("Value must be a single line of text")
    if "<" in cleaned or ">" in cleaned:
        raise ValueError("HTML tags are not allowed in this field")
    return cleaned


def _sanitize_multiline_text(value: str | None) -> str | None:
    if value is None:
        return value
    if not isinstance(value, str):
        raise TypeError("Expected string input")
    cleaned = _CONTROL_CHAR_RE.sub("", value).strip()
    if _SCRIPT_TAG_RE.search(cleaned):
        raise ValueError("Script tags are not allowed")
    return cleaned


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys, matching the browser client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================
# Users
# ============================================================

class UserRegister(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: Literal["user", "staff"] = "user"

    @field_validator("name", mode="before")
    @classmethod
    def _clean_name(cls, value: str) -> str:
        return _sanitize_single_line_text(value)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    redirect: str


# ============================================================
# Events
# ============================================================

class Venue(CamelModel):
    name: Optional[str] = Field(default=None, max_length=200)
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    country: Optional[str] = Field(default=None, max_length=100)

    @field_validator("name", "address", "city", "state", "country", mode="before")
    @classmethod
    def _clean_parts(cls, value: Optional[str]) -> Optional[str]:
        return _sanitize_single_line_text(value, allow_empty=True) if value is not None else value


class Price(CamelModel):
    amount: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    currency: str = Field(default="GBP", min_length=3, max_length=3)

    @field_validator("currency")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper()


class EventCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    category: Optional[str] = Field(default=None, max_length=100)
    status: Literal["active", "cancelled", "postponed"] = "active"
    start_date: datetime
    end_date: Optional[datetime] = None
    venue: Venue = Field(default_factory=Venue)
    price: Optional[Price] = None
    image_url: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name", "category", mode="before")
    @classmethod
    def _clean_single_line(cls, value: Optional[str]) -> Optional[str]:
        return _sanitize_single_line_text(value) if value is not None else value

    @field_validator("description", mode="before")
    @classmethod
    def _clean_description(cls, value: Optional[str]) -> Optional[str]:
        return _sanitize_multiline_text(value)

    @model_validator(mode="after")
    def _check_dates(self) -> "EventCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class EventRead(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    status: str
    start_date: str
    end_date: Optional[str] = None
    venue: Venue
    price: Optional[Price] = None
    image_url: Optional[str] = None
    created_by: str

    @classmethod
    def from_model(cls, event) -> "EventRead":
        price = None
        if event.price_amount is not None:
            price = Price(amount=event.price_amount, currency=event.price_currency or "GBP")
        return cls(
            id=event.id,
            name=event.name,
            description=event.description,
            category=event.category,
            status=event.status,
            start_date=to_iso8601(event.start_date),
            end_date=to_iso8601(event.end_date) if event.end_date is not None else None,
            venue=Venue(
                name=event.venue_name,
                address=event.venue_address,
                city=event.venue_city,
                state=event.venue_state,
                country=event.venue_country,
            ),
            price=price,
            image_url=event.image_url,
            created_by=event.created_by,
        )


class EventEnvelope(BaseModel):
    event: EventRead


# ============================================================
# Registrations
# ============================================================

class RegistrationCreate(CamelModel):
    event_id: str = Field(min_length=1, max_length=36)
    ticket_count: int = Field(default=1, ge=1, le=10)


class RegistrationRead(CamelModel):
    id: str
    event_id: str
    # Legacy rows may lack these; they are rendered as "".
    user_email: str = ""
    user_name: str = ""
    registered_at: str
    status: str
    ticket_count: int


class MyRegistration(RegistrationRead):
    event_name: Optional[str] = None
    event_start_date: Optional[str] = None


class StaffEventRegistrations(CamelModel):
    id: str
    name: str
    start_date: str
    registrations: List[RegistrationRead]


class StaffRegistrationsResponse(BaseModel):
    events: List[StaffEventRegistrations]
