"""Guards deciding whether an actor may act on, join or request to join a stream."""

from datetime import datetime

from streamhub.repositories import StreamRepository
from streamhub.schemas import (
    JoinDecision,
    RequestToJoinStatus,
    Stream,
    StreamAttendee,
    StreamVisibility,
)
from streamhub.utils import stream_errors
from streamhub.utils.time_utils import utc_now


class StreamAccessPolicy:
    """Read-only checks shared by every stream mutation.

    Each guard returns normally or raises an AppError; none of them writes anything.
    """

    def __init__(self, repository: StreamRepository):
        self.repository = repository

    @staticmethod
    def require_stream(stream: Stream | None, stream_id: str) -> Stream:
        """Deleted streams are reported exactly like missing ones."""
        if stream is None or stream.is_deleted():
            raise stream_errors.stream_not_found(stream_id)
        return stream

    @staticmethod
    def ensure_open(stream: Stream, now: datetime | None = None) -> None:
        """Canceled and finished streams accept no further changes."""
        if stream.is_canceled():
            raise stream_errors.stream_already_canceled(stream.stream_id)
        if stream.has_ended(now):
            raise stream_errors.stream_already_happened(stream.stream_id)

    @staticmethod
    def ensure_not_ongoing(stream: Stream, now: datetime | None = None) -> None:
        if stream.is_ongoing(now):
            raise stream_errors.stream_ongoing(stream.stream_id)

    def can_act_on_stream(
        self,
        stream: Stream | None,
        actor_id: str,
        *,
        stream_id: str | None = None,
        now: datetime | None = None,
    ) -> Stream:
        """Organizer-only guard for update, cancel, delete, reschedule, visibility and
        join-request decisions.

        Checks, in order: the stream exists, the actor organizes it, it is not canceled,
        it has not ended.
        """
        stream = self.require_stream(stream, stream_id or "")
        if not stream.is_organizer(actor_id):
            raise stream_errors.ownership_violation(
                stream.stream_id,
                actor_id,
                f"Only the organizer of stream {stream.stream_id} can perform this action",
            )
        self.ensure_open(stream, now)
        return stream

    def can_request_to_join(
        self, stream: Stream, actor_id: str, now: datetime | None = None
    ) -> JoinDecision:
        """Member guard for join and request-to-join.

        Returns whether a join is accepted immediately (public streams) or needs the
        organizer's approval (private and protected streams).
        """
        if stream.is_organizer(actor_id):
            raise stream_errors.ownership_violation(
                stream.stream_id,
                actor_id,
                f"The organizer is already a member of stream {stream.stream_id}",
            )
        self.ensure_open(stream, now)

        if stream.is_public():
            return JoinDecision.AUTO_APPROVE
        return JoinDecision.REQUIRES_APPROVAL

    def can_join(self, stream: Stream, actor_id: str, now: datetime | None = None) -> JoinDecision:
        """Direct-join guard: as `can_request_to_join`, and private streams are refused."""
        decision = self.can_request_to_join(stream, actor_id, now)
        if stream.visibility == StreamVisibility.PRIVATE:
            raise stream_errors.cannot_join_private_stream(stream.stream_id)
        return decision

    async def check_not_already_attendee(
        self, stream: Stream, actor_id: str
    ) -> StreamAttendee | None:
        """Refuse a repeated join or request.

        Returns the actor's existing attendee record when it may be reused (it was
        disapproved or stopped attending), or None when there is no record yet.
        """
        attendee = await self.repository.find_attendee_by_member(stream.stream_id, actor_id)
        if attendee is None:
            return None

        status = attendee.request_to_join_status
        if status == RequestToJoinStatus.PENDING:
            raise stream_errors.already_requested_to_join(stream.stream_id, status)
        if status == RequestToJoinStatus.APPROVED and attendee.is_attending:
            raise stream_errors.already_approved_request_to_join(stream.stream_id, status)
        return attendee
