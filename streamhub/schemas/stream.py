"""Stream domain model."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from streamhub.utils.time_utils import ensure_utc, utc_now

from .stream_enums import StreamStatus, StreamType, StreamVisibility


class Stream(BaseModel):
    """A schedulable session: a calendar event or a live broadcast."""

    stream_id: str
    organizer_id: str
    stream_type: StreamType

    # Descriptor
    title: str
    description: str | None = None
    location: str | None = None

    # State
    status: StreamStatus = StreamStatus.ACTIVE
    visibility: StreamVisibility = StreamVisibility.PUBLIC

    # Schedule
    start_at: datetime
    end_at: datetime
    timezone: str = "UTC"

    # Counters
    total_attendees: int = Field(default=0, ge=0)
    like_count: int = Field(default=0, ge=0)

    # External linkage
    calendar_external_id: str | None = None
    external_id: str | None = None

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("start_at", "end_at", "created_at", "updated_at", mode="after")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    def is_public(self) -> bool:
        return self.visibility == StreamVisibility.PUBLIC

    def is_canceled(self) -> bool:
        return self.status == StreamStatus.CANCELED

    def is_deleted(self) -> bool:
        return self.status == StreamStatus.DELETED

    def has_ended(self, now: datetime | None = None) -> bool:
        """A stream has happened once its end time is not in the future."""
        return self.end_at <= (now or utc_now())

    def is_ongoing(self, now: datetime | None = None) -> bool:
        current = now or utc_now()
        return self.start_at <= current < self.end_at

    def is_organizer(self, member_id: str) -> bool:
        return self.organizer_id == member_id


__all__ = ["Stream"]
