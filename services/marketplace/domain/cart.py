"""Cart domain model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable, Mapping

if TYPE_CHECKING:
    from services.marketplace.domain.worker import Worker


@dataclass(frozen=True)
class CartItem:
    """A worker placed in a user's cart. `id` is the worker id."""

    id: str
    name: str
    profile_image_url: str | None = None
    service: str | None = None
    rating: float | None = None
    price: float | None = None
    phone: str | None = None
    category: str | None = None
    added_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "name": self.name}
        optional = {
            "profile_image_url": self.profile_image_url,
            "service": self.service,
            "rating": self.rating,
            "price": self.price,
            "phone": self.phone,
            "category": self.category,
            "addedAt": self.added_at.isoformat() if self.added_at else None,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CartItem":
        added_at = data.get("addedAt")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            profile_image_url=data.get("profile_image_url"),
            service=data.get("service"),
            rating=data.get("rating"),
            price=data.get("price"),
            phone=data.get("phone"),
            category=data.get("category"),
            added_at=datetime.fromisoformat(added_at) if added_at else None,
        )

    @classmethod
    def from_worker(cls, worker: "Worker", added_at: datetime | None = None) -> "CartItem":
        return cls(
            id=worker.id,
            name=worker.name,
            profile_image_url=worker.profile_image_url,
            service=worker.specialization,
            rating=worker.rating,
            price=worker.price,
            phone=worker.phone,
            category=worker.category_id,
            added_at=added_at,
        )


def cart_total(items: Iterable[CartItem]) -> float:
    return sum(item.price or 0 for item in items)
