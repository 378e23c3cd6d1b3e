"""Dashboard, leaderboard and billboard reports."""

from grievance.reports.analytics import (
    AUTHORITIES,
    BillboardEntry,
    DashboardSummary,
    LeaderboardEntry,
    build_billboard,
    build_leaderboard,
    dashboard_summary,
    urgent_unassigned,
)

__all__ = [
    "AUTHORITIES",
    "BillboardEntry",
    "DashboardSummary",
    "LeaderboardEntry",
    "build_billboard",
    "build_leaderboard",
    "dashboard_summary",
    "urgent_unassigned",
]
