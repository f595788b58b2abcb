"""Stream notification events published after attendance changes commit."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from streamhub.utils.idgen import new_notification_id
from streamhub.utils.time_utils import utc_now

from .stream_enums import RequestToJoinStatus


class StreamNotificationKind(str, Enum):
    RECEIVED_JOIN_REQUEST = "received_join_request"
    JOIN_REQUEST_APPROVED = "join_request_approved"
    JOIN_REQUEST_DISAPPROVED = "join_request_disapproved"

    def __str__(self) -> str:
        return self.value


class StreamNotification(BaseModel):
    notification_id: str = Field(default_factory=new_notification_id)
    kind: StreamNotificationKind
    stream_id: str
    stream_title: str
    attendee_id: str
    request_to_join_status: RequestToJoinStatus
    organizer_id: str
    actor_member_id: str
    # Member the notification is addressed to
    recipient_id: str
    comment: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


__all__ = ["StreamNotification", "StreamNotificationKind"]
