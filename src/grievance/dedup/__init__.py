"""Spatial duplicate detection."""

from grievance.dedup.detector import (
    DUPLICATE_DISTANCE_THRESHOLD,
    DatabaseComplaintLocator,
    DuplicateDetector,
    is_nearby,
)

__all__ = [
    "DUPLICATE_DISTANCE_THRESHOLD",
    "DatabaseComplaintLocator",
    "DuplicateDetector",
    "is_nearby",
]
