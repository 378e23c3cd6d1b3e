"""Coordinate helpers."""

from __future__ import annotations

import math


def planar_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Euclidean distance on raw (lat, lng) degree pairs.

    Not latitude-corrected: one unit of longitude shrinks towards the poles,
    so 0.001 only approximates 100 m near the equator.
    """
    return math.hypot(lat1 - lat2, lng1 - lng2)
