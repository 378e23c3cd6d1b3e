"""Shared stubs and builders for the test suite."""

import threading
from datetime import datetime, timezone
from typing import Any, Optional

from grievance.models import (
    Complaint,
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
    Location,
    Prediction,
)


class StubModel:
    """Deterministic image classifier returning canned predictions."""

    def __init__(self, predictions: list[Prediction]) -> None:
        self.predictions = predictions
        self.calls = 0

    def classify(self, image: Any, top_k: int) -> list[Prediction]:
        self.calls += 1
        return self.predictions[:top_k]


class StubProvider:
    def __init__(self, model: Any = None, error: Optional[Exception] = None) -> None:
        self.model = model
        self.error = error
        self.load_calls = 0

    def load(self) -> Any:
        self.load_calls += 1
        if self.error is not None:
            raise self.error
        return self.model


class GatedProvider:
    """Provider whose load blocks until released, counting invocations."""

    def __init__(self, model: Any = None) -> None:
        self.model = model
        self.load_calls = 0
        self.entered = threading.Event()
        self.release = threading.Event()

    def load(self) -> Any:
        self.load_calls += 1
        self.entered.set()
        assert self.release.wait(timeout=5)
        return self.model


class FakeStore:
    """In-memory stand-in for ComplaintStore."""

    def __init__(self, complaints: Optional[list[Complaint]] = None) -> None:
        self.complaints = {c.id: c for c in complaints or []}
        self.inserted = 0

    def get(self, complaint_id: str) -> Optional[Complaint]:
        return self.complaints.get(complaint_id)

    def update_fields(self, complaint_id: str, **fields: Any) -> Optional[Complaint]:
        current = self.complaints.get(complaint_id)
        if current is None:
            return None
        updated = current.model_copy(update=fields)
        self.complaints[complaint_id] = updated
        return updated

    def delete(self, complaint_id: str) -> bool:
        return self.complaints.pop(complaint_id, None) is not None

    def insert(self, new_complaint, priority) -> Complaint:
        self.inserted += 1
        stored = Complaint(
            id=f"c-{self.inserted}",
            user_id=new_complaint.user_id,
            category=new_complaint.category,
            description=new_complaint.description,
            priority=priority,
            location=new_complaint.location,
            image_url=new_complaint.image_url,
            created_at=datetime.now(timezone.utc),
        )
        self.complaints[stored.id] = stored
        return stored


def make_complaint(**overrides: Any) -> Complaint:
    payload: dict[str, Any] = {
        "id": "c-1",
        "user_id": "u-1",
        "category": ComplaintCategory.WATER_SUPPLY,
        "description": "Pipe burst near the market",
        "priority": ComplaintPriority.HIGH,
        "status": ComplaintStatus.PENDING,
        "location": Location(lat=12.9716, lng=77.5946, address="MG Road"),
        "created_at": datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc),
    }
    payload.update(overrides)
    return Complaint(**payload)
