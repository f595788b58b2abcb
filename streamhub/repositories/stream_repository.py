"""Storage contract for streams and their attendees."""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from contextlib import AbstractAsyncContextManager

from streamhub.schemas import RequestToJoinStatus, Stream, StreamAttendee


class DuplicateAttendeeError(Exception):
    """An attendee already exists for the (stream_id, member_id) pair."""

    def __init__(self, stream_id: str, member_id: str):
        self.stream_id = stream_id
        self.member_id = member_id
        super().__init__(f"Attendee already exists for stream {stream_id} and member {member_id}")


class StreamRepository(ABC):
    """Persistence seam used by the stream domain.

    Every read and write issued while a `transaction()` block is open belongs to that
    unit of work. Leaving the block with an exception discards all of its writes.
    """

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Open a unit of work. Nested calls join the outer unit of work."""

    @abstractmethod
    async def get_stream(self, stream_id: str) -> Stream | None: ...

    @abstractmethod
    async def insert_stream(self, stream: Stream) -> Stream: ...

    @abstractmethod
    async def update_stream(self, stream: Stream, fields: Iterable[str]) -> Stream:
        """Persist the named fields of `stream`; `updated_at` is always written."""

    @abstractmethod
    async def increment_total_attendees(self, stream_id: str, delta: int) -> int:
        """Atomically add `delta` to the attendee counter and return the new value.

        A decrement never takes the counter below zero.
        """

    @abstractmethod
    async def find_attendee_by_member(
        self, stream_id: str, member_id: str
    ) -> StreamAttendee | None: ...

    @abstractmethod
    async def get_attendee(self, stream_id: str, attendee_id: str) -> StreamAttendee | None: ...

    @abstractmethod
    async def insert_attendee(self, attendee: StreamAttendee) -> StreamAttendee:
        """Insert a new attendee.

        Raises:
            DuplicateAttendeeError: an attendee already exists for the same stream and member
        """

    @abstractmethod
    async def save_attendee(self, attendee: StreamAttendee) -> StreamAttendee: ...

    @abstractmethod
    async def find_attendees_by_status(
        self, stream_id: str, status: RequestToJoinStatus
    ) -> list[StreamAttendee]: ...

    @abstractmethod
    async def approve_attendees(self, stream_id: str, attendee_ids: Sequence[str]) -> int:
        """Move PENDING attendees to APPROVED and attending; return how many changed."""

    @abstractmethod
    async def count_attending(self, stream_id: str) -> int:
        """Count APPROVED and attending attendees by scanning records."""


__all__ = ["DuplicateAttendeeError", "StreamRepository"]
