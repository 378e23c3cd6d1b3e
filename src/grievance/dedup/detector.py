"""Advisory near-duplicate check against open complaints."""

from __future__ import annotations

from typing import Optional, Protocol

from grievance.config import Settings
from grievance.db.client import db_cursor
from grievance.db.store import ComplaintStore
from grievance.models import ComplaintCategory, OpenComplaintLocation
from grievance.utils.geo import planar_distance
from grievance.utils.logging import get_logger


logger = get_logger(__name__)

# Raw degree units, roughly 100 m near the equator.
DUPLICATE_DISTANCE_THRESHOLD = 0.001


class ComplaintLocator(Protocol):
    """Source of coordinates for complaints that are not resolved."""

    def find_open_by_category(
        self, category: ComplaintCategory | str
    ) -> list[OpenComplaintLocation]:
        """Return open complaints sharing the category."""


class DatabaseComplaintLocator:
    """Locator that opens its own connection for every query."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()

    def find_open_by_category(
        self, category: ComplaintCategory | str
    ) -> list[OpenComplaintLocation]:
        with db_cursor(self.settings) as cursor:
            return ComplaintStore(cursor).find_open_by_category(category)


def is_nearby(lat: float, lng: float, candidate: OpenComplaintLocation) -> bool:
    return planar_distance(lat, lng, candidate.lat, candidate.lng) < DUPLICATE_DISTANCE_THRESHOLD


class DuplicateDetector:
    """Flag the first open complaint of the same category close to a point."""

    def __init__(self, locator: ComplaintLocator) -> None:
        self.locator = locator

    def find_duplicate(
        self, lat: float, lng: float, category: ComplaintCategory | str
    ) -> Optional[str]:
        """Return the id of a probable duplicate, or None.

        Query failures are logged and reported as no duplicate.
        """
        try:
            candidates = self.locator.find_open_by_category(category)
        except Exception as exc:
            logger.warning("duplicate.query_failed error=%s", exc)
            return None

        for candidate in candidates:
            if is_nearby(lat, lng, candidate):
                logger.info(
                    "duplicate.found duplicate_of=%s category=%s",
                    candidate.id,
                    getattr(category, "value", category),
                )
                return candidate.id
        return None
