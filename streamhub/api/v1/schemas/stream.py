from datetime import datetime

from pydantic import BaseModel, Field

from streamhub.domain.live.stream.stream_models import (
    AttendanceResponse,
    StreamResponse,
    VisibilityChangeResponse,
)
from streamhub.schemas import RequestToJoinDecision, StreamVisibility


class CreateStreamIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=3000)
    location: str | None = Field(default=None, max_length=500)
    start_at: datetime
    end_at: datetime
    timezone: str = "UTC"
    visibility: StreamVisibility = StreamVisibility.PUBLIC


class CreateInstantEventIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=3000)
    location: str | None = Field(default=None, max_length=500)
    duration_minutes: int | None = Field(default=None, ge=1, le=24 * 60)
    timezone: str = "UTC"
    visibility: StreamVisibility = StreamVisibility.PUBLIC


class StreamIdIn(BaseModel):
    stream_id: str = Field(..., min_length=1)


class UpdateStreamIn(StreamIdIn):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=3000)
    location: str | None = Field(default=None, max_length=500)


class RescheduleStreamIn(StreamIdIn):
    start_at: datetime
    end_at: datetime
    timezone: str | None = None


class UpdateVisibilityIn(StreamIdIn):
    visibility: StreamVisibility


class JoinStreamIn(StreamIdIn):
    comment: str | None = Field(default=None, max_length=1000)


class ProcessJoinRequestIn(StreamIdIn):
    attendee_id: str = Field(..., min_length=1)
    decision: RequestToJoinDecision
    comment: str | None = Field(default=None, max_length=1000)


class StreamOut(StreamResponse):
    pass


class AttendanceOut(AttendanceResponse):
    pass


class VisibilityChangeOut(VisibilityChangeResponse):
    pass
