"""Core data models for complaints and priority scoring."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ComplaintCategory(str, Enum):
    WASTE_MANAGEMENT = "waste_management"
    WATER_SUPPLY = "water_supply"
    ROAD_POTHOLES = "road_potholes"
    STREETLIGHT = "streetlight"
    DRAINAGE = "drainage"
    SANITATION = "sanitation"


class ComplaintPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ComplaintStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    WAITING_APPROVAL = "waiting_approval"
    RESOLVED = "resolved"


class Location(BaseModel):
    """Reported position plus human-readable address."""

    model_config = ConfigDict(extra="ignore")

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    address: str = ""


class Complaint(BaseModel):
    """Stored complaint record."""

    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: Optional[str] = None
    category: ComplaintCategory
    description: str
    priority: ComplaintPriority
    status: ComplaintStatus = ComplaintStatus.PENDING
    location: Location
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    media_urls: list[str] = Field(default_factory=list)
    completed_image_url: Optional[str] = None
    assigned_to: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("media_urls", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return value or []


class NewComplaint(BaseModel):
    """Submission input before priority is computed.

    ``image_preview`` is the reference used for classification before the
    upload completes (path, bytes, data URI or URL); it is never persisted.
    """

    model_config = ConfigDict(extra="ignore")

    category: ComplaintCategory
    description: str
    location: Location
    user_id: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    media_urls: list[str] = Field(default_factory=list)
    image_preview: Optional[Any] = Field(default=None, exclude=True)

    @field_validator("description")
    @classmethod
    def _require_description(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("description must not be empty")
        return value


class Prediction(BaseModel):
    """One label emitted by the image classifier."""

    label: str
    probability: float


class PriorityAssessment(BaseModel):
    """Score breakdown behind a priority decision."""

    text_score: int = 0
    visual_score: int = 0
    score: int = 0
    priority: ComplaintPriority
    visual_attempted: bool = False
    predictions: list[Prediction] = Field(default_factory=list)


class OpenComplaintLocation(BaseModel):
    """Coordinates of a complaint that is not yet resolved."""

    id: str
    lat: float
    lng: float


class SubmissionResult(BaseModel):
    """Outcome of a complaint submission."""

    complaint: Complaint
    assessment: PriorityAssessment
    duplicate_of: Optional[str] = None

    @property
    def duplicate_notice(self) -> Optional[str]:
        if not self.duplicate_of:
            return None
        return (
            "A similar complaint was already reported nearby "
            f"(ID {self.duplicate_of}). Your report has still been recorded."
        )
