"""User and profile domain models.

Records are stored with the same JSON field names the web client used
(`dateOfBirth`, `eventHistory`, `emailUpdates`, ...), so a store written by
one front-end stays readable by another.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Mapping, Optional, Tuple

LOGGER = logging.getLogger(__name__)

Gender = Literal["male", "female", "other"]

EVENT_HISTORY_LIMIT = 50


def _parse_timestamp(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if not raw:
        return datetime.now(timezone.utc)
    return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))


def _format_timestamp(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Preferences:
    language: str = "en"
    notifications: bool = True
    email_updates: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "language": self.language,
            "notifications": self.notifications,
            "emailUpdates": self.email_updates,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "Preferences":
        data = data or {}
        return cls(
            language=data.get("language", "en"),
            notifications=bool(data.get("notifications", True)),
            email_updates=bool(data.get("emailUpdates", False)),
        )


@dataclass(frozen=True)
class SocialLinks:
    facebook: str | None = None
    instagram: str | None = None
    twitter: str | None = None
    linkedin: str | None = None

    def to_dict(self) -> dict[str, Any]:
        links = {
            "facebook": self.facebook,
            "instagram": self.instagram,
            "twitter": self.twitter,
            "linkedin": self.linkedin,
        }
        return {name: url for name, url in links.items() if url is not None}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SocialLinks":
        return cls(
            facebook=data.get("facebook"),
            instagram=data.get("instagram"),
            twitter=data.get("twitter"),
            linkedin=data.get("linkedin"),
        )


@dataclass(frozen=True)
class EventRecord:
    """A past booking or event in a user's history."""

    id: str
    event_type: str
    date: datetime
    workers: Tuple[str, ...] = ()
    amount: float | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "eventType": self.event_type,
            "date": _format_timestamp(self.date),
            "workers": list(self.workers),
        }
        if self.amount is not None:
            payload["amount"] = self.amount
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EventRecord":
        return cls(
            id=str(data["id"]),
            event_type=str(data["eventType"]),
            date=_parse_timestamp(data.get("date")),
            workers=tuple(str(worker) for worker in data.get("workers", [])),
            amount=data.get("amount"),
        )


def _decode_events(raw: Any) -> Tuple[EventRecord, ...]:
    """Decode history entries, dropping any that are malformed."""
    if not isinstance(raw, list):
        return ()
    events = []
    for entry in raw:
        try:
            events.append(EventRecord.from_dict(entry))
        except (KeyError, TypeError, ValueError, AttributeError):
            LOGGER.warning("Skipping malformed event record: %r", entry)
    return tuple(events)


@dataclass(frozen=True)
class UserProfile:
    updated_at: datetime
    bio: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    date_of_birth: str | None = None
    gender: Optional[Gender] = None
    occupation: str | None = None
    company: str | None = None
    preferences: Preferences = field(default_factory=Preferences)
    avatar: str | None = None
    social_links: SocialLinks | None = None
    event_history: Tuple[EventRecord, ...] = ()
    favorites: Tuple[str, ...] = ()

    @classmethod
    def default(cls, now: datetime | None = None) -> "UserProfile":
        return cls(updated_at=now or datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "preferences": self.preferences.to_dict(),
            "eventHistory": [event.to_dict() for event in self.event_history],
            "favorites": list(self.favorites),
            "updated_at": _format_timestamp(self.updated_at),
        }
        optional = {
            "bio": self.bio,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
            "dateOfBirth": self.date_of_birth,
            "gender": self.gender,
            "occupation": self.occupation,
            "company": self.company,
            "avatar": self.avatar,
            "socialLinks": self.social_links.to_dict() if self.social_links else None,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "UserProfile":
        data = data or {}
        social_links = data.get("socialLinks")
        return cls(
            updated_at=_parse_timestamp(data.get("updated_at")),
            bio=data.get("bio"),
            address=data.get("address"),
            city=data.get("city"),
            state=data.get("state"),
            pincode=data.get("pincode"),
            date_of_birth=data.get("dateOfBirth"),
            gender=data.get("gender"),
            occupation=data.get("occupation"),
            company=data.get("company"),
            preferences=Preferences.from_dict(data.get("preferences")),
            avatar=data.get("avatar"),
            social_links=SocialLinks.from_dict(social_links) if social_links else None,
            event_history=_decode_events(data.get("eventHistory")),
            favorites=tuple(str(worker_id) for worker_id in data.get("favorites", [])),
        )


@dataclass(frozen=True)
class User:
    """User entity."""

    id: str
    name: str
    email: str
    created_at: datetime
    profile: UserProfile
    phone: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "created_at": _format_timestamp(self.created_at),
            "profile": self.profile.to_dict(),
        }
        if self.phone is not None:
            payload["phone"] = self.phone
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "User":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            email=str(data["email"]),
            created_at=_parse_timestamp(data.get("created_at")),
            profile=UserProfile.from_dict(data.get("profile")),
            phone=data.get("phone"),
        )
