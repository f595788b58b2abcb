"""In-memory StreamRepository used by domain tests.

Mirrors the Mongo repository's contract: reads return copies, a failed unit of work
restores the state it started from, and (stream_id, member_id) is unique.
"""

import copy
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager

from streamhub.repositories import DuplicateAttendeeError, StreamRepository
from streamhub.schemas import RequestToJoinStatus, Stream, StreamAttendee
from streamhub.utils.time_utils import utc_now


class InMemoryStreamRepository(StreamRepository):
    def __init__(self):
        self.streams: dict[str, Stream] = {}
        self.attendees: dict[str, StreamAttendee] = {}
        self.commits = 0
        self.rollbacks = 0
        self._depth = 0

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._depth > 0:
            yield
            return

        snapshot = (copy.deepcopy(self.streams), copy.deepcopy(self.attendees))
        self._depth += 1
        try:
            yield
        except BaseException:
            self.streams, self.attendees = snapshot
            self.rollbacks += 1
            raise
        else:
            self.commits += 1
        finally:
            self._depth -= 1

    async def get_stream(self, stream_id: str) -> Stream | None:
        stream = self.streams.get(stream_id)
        return stream.model_copy(deep=True) if stream else None

    async def insert_stream(self, stream: Stream) -> Stream:
        self.streams[stream.stream_id] = stream.model_copy(deep=True)
        return stream

    async def update_stream(self, stream: Stream, fields: Iterable[str]) -> Stream:
        stream.updated_at = utc_now()
        stored = self.streams[stream.stream_id]
        for name in set(fields) | {"updated_at"}:
            setattr(stored, name, copy.deepcopy(getattr(stream, name)))
        return stream

    async def increment_total_attendees(self, stream_id: str, delta: int) -> int:
        stored = self.streams.get(stream_id)
        if stored is None:
            return 0
        if stored.total_attendees + delta < 0:
            return stored.total_attendees
        stored.total_attendees += delta
        return stored.total_attendees

    def _stored_attendee(self, stream_id: str, member_id: str) -> StreamAttendee | None:
        for attendee in self.attendees.values():
            if attendee.stream_id == stream_id and attendee.member_id == member_id:
                return attendee
        return None

    async def find_attendee_by_member(
        self, stream_id: str, member_id: str
    ) -> StreamAttendee | None:
        attendee = self._stored_attendee(stream_id, member_id)
        return attendee.model_copy(deep=True) if attendee else None

    async def get_attendee(self, stream_id: str, attendee_id: str) -> StreamAttendee | None:
        attendee = self.attendees.get(attendee_id)
        if attendee is None or attendee.stream_id != stream_id:
            return None
        return attendee.model_copy(deep=True)

    async def insert_attendee(self, attendee: StreamAttendee) -> StreamAttendee:
        if self._stored_attendee(attendee.stream_id, attendee.member_id):
            raise DuplicateAttendeeError(attendee.stream_id, attendee.member_id)
        self.attendees[attendee.attendee_id] = attendee.model_copy(deep=True)
        return attendee

    async def save_attendee(self, attendee: StreamAttendee) -> StreamAttendee:
        attendee.updated_at = utc_now()
        self.attendees[attendee.attendee_id] = attendee.model_copy(deep=True)
        return attendee

    async def find_attendees_by_status(
        self, stream_id: str, status: RequestToJoinStatus
    ) -> list[StreamAttendee]:
        return [
            attendee.model_copy(deep=True)
            for attendee in self.attendees.values()
            if attendee.stream_id == stream_id and attendee.request_to_join_status == status
        ]

    async def approve_attendees(self, stream_id: str, attendee_ids: Sequence[str]) -> int:
        changed = 0
        for attendee_id in attendee_ids:
            attendee = self.attendees.get(attendee_id)
            if attendee is None or attendee.stream_id != stream_id or not attendee.is_pending():
                continue
            attendee.request_to_join_status = RequestToJoinStatus.APPROVED
            attendee.is_attending = True
            attendee.updated_at = utc_now()
            changed += 1
        return changed

    async def count_attending(self, stream_id: str) -> int:
        return sum(
            1
            for attendee in self.attendees.values()
            if attendee.stream_id == stream_id and attendee.is_counted()
        )
