"""Domain models and Beanie ODM schemas."""

from .init import init_beanie_odm
from .member import MemberProfile
from .notification import StreamNotification, StreamNotificationKind
from .oauth2_authorization import Oauth2Authorization
from .stream import Stream
from .stream_attendee import StreamAttendee
from .stream_document import StreamAttendeeDocument, StreamDocument
from .stream_enums import (
    JoinDecision,
    RequestToJoinDecision,
    RequestToJoinStatus,
    StreamStatus,
    StreamType,
    StreamVisibility,
)

__all__ = [
    "JoinDecision",
    "MemberProfile",
    "Oauth2Authorization",
    "RequestToJoinDecision",
    "RequestToJoinStatus",
    "Stream",
    "StreamAttendee",
    "StreamAttendeeDocument",
    "StreamDocument",
    "StreamNotification",
    "StreamNotificationKind",
    "StreamStatus",
    "StreamType",
    "StreamVisibility",
    "init_beanie_odm",
]
