"""Complaint persistence on top of a psycopg cursor."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from psycopg import Cursor

from grievance.models import (
    Complaint,
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
    Location,
    NewComplaint,
    OpenComplaintLocation,
)
from grievance.utils.logging import get_logger


logger = get_logger(__name__)

COMPLAINT_COLUMNS: tuple[str, ...] = (
    "id",
    "user_id",
    "category",
    "description",
    "priority",
    "status",
    "location_lat",
    "location_lng",
    "location_address",
    "image_url",
    "video_url",
    "media_urls",
    "completed_image_url",
    "assigned_to",
    "created_at",
    "updated_at",
)

UPDATABLE_COLUMNS = {
    "status",
    "priority",
    "assigned_to",
    "completed_image_url",
}

_SELECT = f"select {', '.join(COMPLAINT_COLUMNS)} from complaints"


def row_to_complaint(row: Sequence[Any]) -> Complaint:
    """Map a complaints row (in COMPLAINT_COLUMNS order) to a Complaint."""
    record = dict(zip(COMPLAINT_COLUMNS, row))
    return Complaint(
        id=str(record["id"]),
        user_id=str(record["user_id"]) if record["user_id"] else None,
        category=record["category"],
        description=record["description"] or "",
        priority=record["priority"],
        status=record["status"],
        location=Location(
            lat=record["location_lat"] or 0.0,
            lng=record["location_lng"] or 0.0,
            address=record["location_address"] or "",
        ),
        image_url=record["image_url"],
        video_url=record["video_url"],
        media_urls=record["media_urls"],
        completed_image_url=record["completed_image_url"],
        assigned_to=str(record["assigned_to"]) if record["assigned_to"] else None,
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


def _value(value: Any) -> Any:
    return getattr(value, "value", value)


class ComplaintStore:
    """Queries and writes against the complaints table."""

    def __init__(self, cursor: Cursor) -> None:
        self.cursor = cursor

    def find_open_by_category(
        self, category: ComplaintCategory | str
    ) -> list[OpenComplaintLocation]:
        self.cursor.execute(
            "select id, location_lat, location_lng from complaints "
            "where category = %s and status <> %s "
            "and location_lat is not null and location_lng is not null",
            (_value(category), ComplaintStatus.RESOLVED.value),
        )
        return [
            OpenComplaintLocation(id=str(row[0]), lat=row[1], lng=row[2])
            for row in self.cursor.fetchall()
        ]

    def insert(self, complaint: NewComplaint, priority: ComplaintPriority) -> Complaint:
        self.cursor.execute(
            "insert into complaints (user_id, category, description, priority, status, "
            "location_lat, location_lng, location_address, image_url, video_url, media_urls) "
            "values (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s) "
            f"returning {', '.join(COMPLAINT_COLUMNS)}",
            (
                complaint.user_id,
                complaint.category.value,
                complaint.description,
                _value(priority),
                ComplaintStatus.PENDING.value,
                complaint.location.lat,
                complaint.location.lng,
                complaint.location.address,
                complaint.image_url,
                complaint.video_url,
                list(complaint.media_urls),
            ),
        )
        stored = row_to_complaint(self.cursor.fetchone())
        logger.info("store.insert id=%s priority=%s", stored.id, stored.priority.value)
        return stored

    def get(self, complaint_id: str) -> Optional[Complaint]:
        self.cursor.execute(f"{_SELECT} where id = %s", (complaint_id,))
        row = self.cursor.fetchone()
        return row_to_complaint(row) if row else None

    def list_complaints(
        self,
        status: Optional[ComplaintStatus | str] = None,
        category: Optional[ComplaintCategory | str] = None,
    ) -> list[Complaint]:
        conditions: list[str] = []
        params: list[object] = []
        if status is not None:
            conditions.append("status = %s")
            params.append(_value(status))
        if category is not None:
            conditions.append("category = %s")
            params.append(_value(category))

        query = _SELECT
        if conditions:
            query += f" where {' and '.join(conditions)}"
        query += " order by created_at desc"

        self.cursor.execute(query, params)
        return [row_to_complaint(row) for row in self.cursor.fetchall()]

    def list_assigned(self, worker_id: str) -> list[Complaint]:
        self.cursor.execute(
            f"{_SELECT} where assigned_to = %s order by created_at desc", (worker_id,)
        )
        return [row_to_complaint(row) for row in self.cursor.fetchall()]

    def list_unresolved(self) -> list[Complaint]:
        """Open complaints, oldest first."""
        self.cursor.execute(
            f"{_SELECT} where status <> %s order by created_at asc",
            (ComplaintStatus.RESOLVED.value,),
        )
        return [row_to_complaint(row) for row in self.cursor.fetchall()]

    def update_fields(self, complaint_id: str, **fields: Any) -> Optional[Complaint]:
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {sorted(unknown)}")
        if not fields:
            return self.get(complaint_id)

        assignments = ", ".join(f"{column} = %s" for column in fields)
        params = [_value(value) for value in fields.values()]
        params.append(complaint_id)
        self.cursor.execute(
            f"update complaints set {assignments}, updated_at = now() where id = %s "
            f"returning {', '.join(COMPLAINT_COLUMNS)}",
            params,
        )
        row = self.cursor.fetchone()
        return row_to_complaint(row) if row else None

    def delete(self, complaint_id: str) -> bool:
        self.cursor.execute("delete from complaints where id = %s", (complaint_id,))
        return self.cursor.rowcount > 0

    def complaint_counts_by_user(self, start: datetime, end: datetime) -> dict[str, int]:
        """Authenticated complaint counts per user in [start, end], highest first."""
        self.cursor.execute(
            "select user_id, count(*) from complaints "
            "where created_at >= %s and created_at <= %s and user_id is not null "
            "group by user_id order by count(*) desc",
            (start, end),
        )
        return {str(row[0]): int(row[1]) for row in self.cursor.fetchall()}

    def get_profiles(self, user_ids: Iterable[str]) -> dict[str, dict[str, Optional[str]]]:
        ids = list(user_ids)
        if not ids:
            return {}
        self.cursor.execute(
            "select id, full_name, avatar_url from profiles where id = any(%s)", (ids,)
        )
        return {
            str(row[0]): {"full_name": row[1], "avatar_url": row[2]}
            for row in self.cursor.fetchall()
        }

    def list_workers(self) -> dict[str, dict[str, Optional[str]]]:
        self.cursor.execute(
            "select p.id, p.full_name, p.avatar_url from profiles p "
            "join user_roles r on r.user_id = p.id where r.role = %s "
            "order by p.full_name",
            ("worker",),
        )
        return {
            str(row[0]): {"full_name": row[1], "avatar_url": row[2]}
            for row in self.cursor.fetchall()
        }
