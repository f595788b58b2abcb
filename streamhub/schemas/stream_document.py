"""Stream and attendee ODM schemas."""

from datetime import datetime
from typing import Any

from beanie import Document, Indexed
from pydantic import Field, field_validator
from pymongo import IndexModel

from streamhub.utils.time_utils import utc_now

from .schema_utils import parse_mongo_datetime
from .stream_enums import RequestToJoinStatus, StreamStatus, StreamType, StreamVisibility

# Fields Beanie adds to every document; never part of the domain models
DOCUMENT_ONLY_FIELDS = {"id", "revision_id"}


class StreamDocument(Document):
    """Stream document model."""

    stream_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    organizer_id: str
    stream_type: StreamType

    title: str
    description: str | None = None
    location: str | None = None

    status: StreamStatus = StreamStatus.ACTIVE
    visibility: StreamVisibility = StreamVisibility.PUBLIC

    start_at: datetime
    end_at: datetime
    timezone: str = "UTC"

    total_attendees: int = 0
    like_count: int = 0

    calendar_external_id: str | None = None
    external_id: str | None = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("start_at", "end_at", "created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    class Settings:
        name = "stream"
        indexes = [
            "organizer_id",
            [("status", 1), ("end_at", 1)],
        ]


class StreamAttendeeDocument(Document):
    """Stream attendee document model."""

    attendee_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    stream_id: str
    member_id: str

    request_to_join_status: RequestToJoinStatus = RequestToJoinStatus.PENDING
    is_attending: bool = False
    is_speaker: bool = False
    is_organizer: bool = False

    attendee_comment: str | None = None
    organizer_comment: str | None = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    class Settings:
        name = "stream_attendee"
        indexes = [
            IndexModel(
                [("stream_id", 1), ("member_id", 1)],
                unique=True,
                name="stream_id_member_id_unique",
            ),
            IndexModel(
                [("stream_id", 1), ("request_to_join_status", 1)],
                name="stream_id_request_to_join_status",
            ),
        ]


__all__ = ["DOCUMENT_ONLY_FIELDS", "StreamAttendeeDocument", "StreamDocument"]
