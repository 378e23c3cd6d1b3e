"""Aggregations behind the admin dashboard and public boards."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Iterable, Mapping, Optional

from pydantic import BaseModel, Field

from grievance.models import Complaint, ComplaintCategory, ComplaintPriority, ComplaintStatus
from grievance.utils.time import days_pending


DEFAULT_AUTHORITY = "Municipal Corporation"
DEFAULT_REPORTER_NAME = "Civic Hero"
OVERDUE_DAYS = 5

AUTHORITIES: dict[ComplaintCategory, str] = {
    ComplaintCategory.WASTE_MANAGEMENT: "Waste Management Authority",
    ComplaintCategory.WATER_SUPPLY: "Water Supply Board",
    ComplaintCategory.ROAD_POTHOLES: "Public Works Department",
    ComplaintCategory.STREETLIGHT: "Electricity Board",
    ComplaintCategory.DRAINAGE: "Drainage & Sewage Dept",
    ComplaintCategory.SANITATION: "Sanitation Department",
}


class DashboardSummary(BaseModel):
    total: int = 0
    by_category: dict[str, int] = Field(default_factory=dict)
    by_status: dict[str, int] = Field(default_factory=dict)
    by_priority: dict[str, int] = Field(default_factory=dict)


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    count: int
    full_name: str
    avatar_url: Optional[str] = None


class BillboardEntry(BaseModel):
    id: str
    category: ComplaintCategory
    description: str
    address: str
    authority: str
    assigned_to: Optional[str] = None
    created_at: Optional[datetime] = None
    days_pending: int = 0
    overdue: bool = False


def dashboard_summary(complaints: Iterable[Complaint]) -> DashboardSummary:
    """Zero-filled counts by category, status and priority."""
    items = list(complaints)
    categories = Counter(c.category for c in items)
    statuses = Counter(c.status for c in items)
    priorities = Counter(c.priority for c in items)
    return DashboardSummary(
        total=len(items),
        by_category={cat.value: categories.get(cat, 0) for cat in ComplaintCategory},
        by_status={status.value: statuses.get(status, 0) for status in ComplaintStatus},
        by_priority={p.value: priorities.get(p, 0) for p in ComplaintPriority},
    )


def urgent_unassigned(complaints: Iterable[Complaint]) -> list[Complaint]:
    """High priority complaints still pending with nobody assigned."""
    return [
        c
        for c in complaints
        if c.priority is ComplaintPriority.HIGH
        and c.status is ComplaintStatus.PENDING
        and not c.assigned_to
    ]


def build_leaderboard(
    counts: Mapping[str, int],
    profiles: Mapping[str, Mapping[str, Optional[str]]],
    limit: int = 10,
) -> list[LeaderboardEntry]:
    """Rank reporters by complaint count; ties keep their input order."""
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:limit]
    entries: list[LeaderboardEntry] = []
    for position, (user_id, count) in enumerate(ranked, start=1):
        profile = profiles.get(user_id) or {}
        entries.append(
            LeaderboardEntry(
                rank=position,
                user_id=user_id,
                count=count,
                full_name=profile.get("full_name") or DEFAULT_REPORTER_NAME,
                avatar_url=profile.get("avatar_url") or None,
            )
        )
    return entries


def authority_for(category: ComplaintCategory | str) -> str:
    try:
        return AUTHORITIES[ComplaintCategory(category)]
    except ValueError:
        return DEFAULT_AUTHORITY


def build_billboard(
    unresolved: Iterable[Complaint],
    now: Optional[datetime] = None,
) -> list[BillboardEntry]:
    """Unresolved complaints with their responsible authority, in input order."""
    entries: list[BillboardEntry] = []
    for complaint in unresolved:
        if complaint.status is ComplaintStatus.RESOLVED:
            continue
        pending = days_pending(complaint.created_at, now) if complaint.created_at else 0
        entries.append(
            BillboardEntry(
                id=complaint.id,
                category=complaint.category,
                description=complaint.description,
                address=complaint.location.address or "Unknown Location",
                authority=authority_for(complaint.category),
                assigned_to=complaint.assigned_to,
                created_at=complaint.created_at,
                days_pending=pending,
                overdue=pending > OVERDUE_DAYS,
            )
        )
    return entries
