"""Worker lookups.

`StoreWorkerCatalog` keeps the worker list in the keyed store and seeds it
from `SAMPLE_WORKERS` on first use. `FallbackWorkerCatalog` serves the
sample list whenever the wrapped catalog fails.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from services.marketplace.application.interfaces import KeyedStore, WorkerCatalog
from services.marketplace.domain.worker import Worker
from services.marketplace.infrastructure.local_store import INITIALIZED_KEY, WORKERS_KEY

LOGGER = logging.getLogger(__name__)

SAMPLE_WORKERS: tuple[Worker, ...] = (
    Worker(
        id="1",
        name="Ravi Kumar",
        category_id="1",
        rating=4.8,
        price=75000,
        price_range="₹50,000 - ₹2,00,000",
        location="Hyderabad",
        phone="+91 9876543210",
        email="ravi@example.com",
        description="Experienced wedding planner with traditional expertise",
        specialization="Traditional Weddings",
        skills=("Wedding Planning", "Decoration", "Catering Coordination"),
        profile_image_url="/images/workers/worker1.jpg",
    ),
    Worker(
        id="2",
        name="Priya Sharma",
        category_id="2",
        rating=4.9,
        price=30000,
        price_range="₹15,000 - ₹75,000",
        location="Vijayawada",
        phone="+91 8765432109",
        email="priya@example.com",
        description="Creative birthday party organizer for all ages",
        specialization="Theme Parties",
        skills=("Theme Decoration", "Entertainment", "Cake Design"),
        profile_image_url="/images/workers/worker2.jpg",
    ),
    Worker(
        id="3",
        name="Arun Reddy",
        category_id="3",
        rating=4.7,
        price=150000,
        price_range="₹1,00,000 - ₹5,00,000",
        location="Bangalore",
        phone="+91 7654321098",
        email="arun@example.com",
        description="Corporate event management specialist",
        specialization="Corporate Events",
        skills=("Corporate Events", "Conference Management", "Team Building"),
        profile_image_url="/images/workers/worker3.jpg",
    ),
    Worker(
        id="4",
        name="Sunitha Devi",
        category_id="4",
        rating=4.6,
        price=50000,
        price_range="₹25,000 - ₹1,00,000",
        location="Chennai",
        phone="+91 6543210987",
        email="sunitha@example.com",
        description="Anniversary celebration planning expert",
        specialization="Anniversary Celebrations",
        skills=("Anniversary Planning", "Romantic Setups", "Photography"),
        profile_image_url="/images/workers/worker4.jpg",
    ),
)


class _QueryMixin:
    def get_all(self) -> list[Worker]:
        raise NotImplementedError

    def get_by_id(self, worker_id: str) -> Worker | None:
        for worker in self.get_all():
            if worker.id == worker_id:
                return worker
        return None

    def get_by_category(self, category_id: str) -> list[Worker]:
        return [worker for worker in self.get_all() if worker.category_id == category_id]

    def get_featured(self, limit: int = 6) -> list[Worker]:
        return sorted(self.get_all(), key=lambda worker: worker.rating, reverse=True)[:limit]


class StoreWorkerCatalog(_QueryMixin, WorkerCatalog):
    def __init__(self, store: KeyedStore, seed: Iterable[Worker] = SAMPLE_WORKERS) -> None:
        self._store = store
        self._seed = tuple(seed)

    def get_all(self) -> list[Worker]:
        self._ensure_seeded()
        raw = self._store.get(WORKERS_KEY)
        if not isinstance(raw, list):
            raise ValueError("Stored worker list is missing or malformed")
        return [Worker.from_dict(entry) for entry in raw]

    def _ensure_seeded(self) -> None:
        if self._store.get(INITIALIZED_KEY):
            return
        self._store.set(WORKERS_KEY, [worker.to_dict() for worker in self._seed])
        self._store.set(INITIALIZED_KEY, True)
        LOGGER.info("Seeded worker catalog with %d sample workers", len(self._seed))


class FallbackWorkerCatalog(_QueryMixin, WorkerCatalog):
    def __init__(self, primary: WorkerCatalog, fallback: Sequence[Worker] = SAMPLE_WORKERS) -> None:
        self._primary = primary
        self._fallback = list(fallback)

    def get_all(self) -> list[Worker]:
        try:
            return self._primary.get_all()
        except Exception as exc:
            LOGGER.warning("Error loading workers, using sample data: %s", exc)
            return list(self._fallback)
