"""Utility helpers."""

from grievance.utils.geo import planar_distance
from grievance.utils.logging import configure_logging, get_logger
from grievance.utils.text import contains_any, text_context
from grievance.utils.time import days_pending, quarter_bounds, quarter_label

__all__ = [
    "planar_distance",
    "configure_logging",
    "get_logger",
    "contains_any",
    "text_context",
    "days_pending",
    "quarter_bounds",
    "quarter_label",
]
