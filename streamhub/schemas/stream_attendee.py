"""Stream attendee domain model."""

from datetime import datetime

from pydantic import BaseModel, Field

from streamhub.utils.time_utils import utc_now

from .stream_enums import RequestToJoinStatus


class StreamAttendee(BaseModel):
    """A member's relationship to a stream: join request status and attendance flag."""

    attendee_id: str
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

    def is_pending(self) -> bool:
        return self.request_to_join_status == RequestToJoinStatus.PENDING

    def is_approved(self) -> bool:
        return self.request_to_join_status == RequestToJoinStatus.APPROVED

    def is_counted(self) -> bool:
        """Counted towards the stream's total attendees."""
        return self.is_approved() and self.is_attending


__all__ = ["StreamAttendee"]
