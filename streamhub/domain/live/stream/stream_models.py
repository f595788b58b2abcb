"""Stream domain models."""

from datetime import datetime

from pydantic import BaseModel, Field

from streamhub.schemas import (
    RequestToJoinStatus,
    StreamStatus,
    StreamType,
    StreamVisibility,
)


class CreateStreamParams(BaseModel):
    """Parameters for a scheduled event or live broadcast."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=3000)
    location: str | None = Field(default=None, max_length=500)
    start_at: datetime
    end_at: datetime
    timezone: str = "UTC"
    visibility: StreamVisibility = StreamVisibility.PUBLIC


class CreateInstantEventParams(BaseModel):
    """Parameters for an event starting now."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=3000)
    location: str | None = Field(default=None, max_length=500)
    # Defaults to INSTANT_EVENT_DEFAULT_MINUTES
    duration_minutes: int | None = Field(default=None, ge=1, le=24 * 60)
    timezone: str = "UTC"
    visibility: StreamVisibility = StreamVisibility.PUBLIC


class UpdateStreamParams(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=3000)
    location: str | None = Field(default=None, max_length=500)


class RescheduleStreamParams(BaseModel):
    start_at: datetime
    end_at: datetime
    timezone: str | None = None


class StreamResponse(BaseModel):
    """Stream response model."""

    stream_id: str
    organizer_id: str
    stream_type: StreamType

    title: str
    description: str | None = None
    location: str | None = None

    status: StreamStatus
    visibility: StreamVisibility

    start_at: datetime
    end_at: datetime
    timezone: str

    total_attendees: int
    like_count: int

    external_id: str | None = None

    created_at: datetime
    updated_at: datetime


class AttendeeResponse(BaseModel):
    attendee_id: str
    stream_id: str
    member_id: str
    request_to_join_status: RequestToJoinStatus
    is_attending: bool
    is_speaker: bool
    is_organizer: bool
    attendee_comment: str | None = None
    organizer_comment: str | None = None


class AttendanceResponse(BaseModel):
    """An attendee together with the stream's attendance summary."""

    stream_id: str
    total_attendees: int
    attendee: AttendeeResponse


class VisibilityChangeResponse(BaseModel):
    stream: StreamResponse
    previous_visibility: StreamVisibility
    # Attendees promoted from PENDING to APPROVED by the change
    promoted_attendee_ids: list[str] = Field(default_factory=list)
