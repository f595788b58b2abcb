"""Enums shared by stream and attendee schemas."""

from enum import Enum


class StreamType(str, Enum):
    """Kind of stream; decides which external system mirrors it."""

    EVENT = "event"
    LIVE_BROADCAST = "live_broadcast"

    def __str__(self) -> str:
        return self.value


class StreamStatus(str, Enum):
    """Stream lifecycle status.

    - ACTIVE: scheduled or running, accepts attendance mutations.
    - CANCELED: canceled by the organizer, kept for history.
    - DELETED: removed by the organizer, reported as not found.
    """

    ACTIVE = "active"
    CANCELED = "canceled"
    DELETED = "deleted"

    def __str__(self) -> str:
        return self.value


class StreamVisibility(str, Enum):
    """Who may attend a stream.

    - PUBLIC: anyone can join directly.
    - PRIVATE: invite-only, joining requires organizer approval.
    - PROTECTED: discoverable, joining requires organizer approval.
    """

    PUBLIC = "public"
    PRIVATE = "private"
    PROTECTED = "protected"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def restricted(cls) -> set["StreamVisibility"]:
        """Visibilities that gate attendance behind organizer approval."""
        return {cls.PRIVATE, cls.PROTECTED}


class RequestToJoinStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DISAPPROVED = "disapproved"

    def __str__(self) -> str:
        return self.value


class RequestToJoinDecision(str, Enum):
    """Organizer decision on a pending join request."""

    APPROVE = "approve"
    DISAPPROVE = "disapprove"

    def __str__(self) -> str:
        return self.value


class JoinDecision(str, Enum):
    """Outcome of the join policy for a non-organizer member."""

    AUTO_APPROVE = "auto_approve"
    REQUIRES_APPROVAL = "requires_approval"

    def __str__(self) -> str:
        return self.value


__all__ = [
    "JoinDecision",
    "RequestToJoinDecision",
    "RequestToJoinStatus",
    "StreamStatus",
    "StreamType",
    "StreamVisibility",
]
