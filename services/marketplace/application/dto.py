from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from services.marketplace.domain.cart import CartItem
from services.marketplace.domain.user import EventRecord


@dataclass(frozen=True)
class RegisterCommand:
    name: str
    email: str
    password: str
    phone: str | None = None


@dataclass(frozen=True)
class LoginCommand:
    email: str
    password: str


@dataclass(frozen=True)
class RecordEventCommand:
    event_type: str
    workers: Sequence[str] = ()
    amount: float | None = None


@dataclass(frozen=True)
class ActionResult:
    success: bool
    error: str | None = None
    value: Any = None


@dataclass(frozen=True)
class BookingSummary:
    event: EventRecord
    items: list[CartItem] = field(default_factory=list)
    subtotal: float = 0.0
    service_fee: float = 0.0
    total: float = 0.0


class PreferencesUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    language: Optional[str] = None
    notifications: Optional[bool] = None
    email_updates: Optional[bool] = None


class SocialLinksUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    facebook: Optional[str] = None
    instagram: Optional[str] = None
    twitter: Optional[str] = None
    linkedin: Optional[str] = None


class ProfileUpdate(BaseModel):
    """Partial profile update; only fields that were set are merged."""

    model_config = ConfigDict(extra="forbid")

    bio: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    date_of_birth: Optional[str] = None
    gender: Optional[Literal["male", "female", "other"]] = None
    occupation: Optional[str] = None
    company: Optional[str] = None
    preferences: Optional[PreferencesUpdate] = None
    avatar: Optional[str] = None
    social_links: Optional[SocialLinksUpdate] = None
