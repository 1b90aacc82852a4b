"""Worker (service provider) domain model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Tuple


@dataclass(frozen=True)
class Worker:
    id: str
    name: str
    category_id: str
    rating: float = 0.0
    price: float | None = None
    price_range: str | None = None
    location: str | None = None
    phone: str | None = None
    email: str | None = None
    description: str | None = None
    specialization: str | None = None
    skills: Tuple[str, ...] = ()
    availability: bool = True
    profile_image_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category_id": self.category_id,
            "rating": self.rating,
            "price": self.price,
            "price_range": self.price_range,
            "location": self.location,
            "phone": self.phone,
            "email": self.email,
            "description": self.description,
            "specialization": self.specialization,
            "skills": list(self.skills),
            "availability": self.availability,
            "profile_image_url": self.profile_image_url,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Worker":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            category_id=str(data["category_id"]),
            rating=float(data.get("rating") or 0.0),
            price=data.get("price"),
            price_range=data.get("price_range"),
            location=data.get("location"),
            phone=data.get("phone"),
            email=data.get("email"),
            description=data.get("description"),
            specialization=data.get("specialization"),
            skills=tuple(data.get("skills") or ()),
            availability=bool(data.get("availability", True)),
            profile_image_url=data.get("profile_image_url"),
        )
