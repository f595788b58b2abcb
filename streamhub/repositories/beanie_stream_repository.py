"""MongoDB implementation of StreamRepository on top of Beanie documents."""

from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager
from contextvars import ContextVar

from beanie import UpdateResponse
from beanie.operators import In, Inc, Set
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession
from pymongo.errors import DuplicateKeyError, OperationFailure

from streamhub.schemas import (
    RequestToJoinStatus,
    Stream,
    StreamAttendee,
    StreamAttendeeDocument,
    StreamDocument,
)
from streamhub.schemas.stream_document import DOCUMENT_ONLY_FIELDS
from streamhub.utils.time_utils import utc_now

from .stream_repository import DuplicateAttendeeError, StreamRepository

_current_session: ContextVar[AsyncIOMotorClientSession | None] = ContextVar(
    "streamhub_mongo_session", default=None
)

WRITE_CONFLICT = 112


def current_session() -> AsyncIOMotorClientSession | None:
    """Session of the transaction open in this task, if any."""
    return _current_session.get()


def _to_stream(doc: StreamDocument) -> Stream:
    return Stream.model_validate(doc.model_dump(exclude=DOCUMENT_ONLY_FIELDS))


def _to_attendee(doc: StreamAttendeeDocument) -> StreamAttendee:
    return StreamAttendee.model_validate(doc.model_dump(exclude=DOCUMENT_ONLY_FIELDS))


class BeanieStreamRepository(StreamRepository):
    """
    Stream repository backed by Beanie documents.

    Units of work are MongoDB multi-document transactions, which require the
    deployment to run as a replica set. The Motor client must be the one Beanie
    was initialized with.
    """

    def __init__(self, client: AsyncIOMotorClient):
        self._client = client

    @property
    def _session(self) -> AsyncIOMotorClientSession | None:
        return current_session()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if _current_session.get() is not None:
            yield
            return

        async with await self._client.start_session() as session:
            async with session.start_transaction():
                token = _current_session.set(session)
                try:
                    yield
                finally:
                    _current_session.reset(token)

    async def _find_stream_doc(self, stream_id: str) -> StreamDocument | None:
        return await StreamDocument.find_one(
            StreamDocument.stream_id == stream_id, session=self._session
        )

    async def get_stream(self, stream_id: str) -> Stream | None:
        doc = await self._find_stream_doc(stream_id)
        return _to_stream(doc) if doc else None

    async def insert_stream(self, stream: Stream) -> Stream:
        doc = StreamDocument(**stream.model_dump())
        await doc.insert(session=self._session)
        logger.debug(f"Inserted stream {stream.stream_id}")
        return stream

    async def update_stream(self, stream: Stream, fields: Iterable[str]) -> Stream:
        stream.updated_at = utc_now()
        names = set(fields) | {"updated_at"}
        updates = stream.model_dump(include=names)
        await StreamDocument.find_one(
            StreamDocument.stream_id == stream.stream_id, session=self._session
        ).update(Set(updates), session=self._session)
        return stream

    async def increment_total_attendees(self, stream_id: str, delta: int) -> int:
        criteria = [StreamDocument.stream_id == stream_id]
        if delta < 0:
            criteria.append(StreamDocument.total_attendees >= -delta)

        doc = await StreamDocument.find_one(*criteria, session=self._session).update(
            Inc({StreamDocument.total_attendees: delta}),
            session=self._session,
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        if doc is not None:
            return doc.total_attendees

        # Decrement below zero was refused; report the unchanged value
        current = await self._find_stream_doc(stream_id)
        if current is not None:
            logger.warning(
                f"Refused to decrement total_attendees of stream {stream_id} below zero "
                f"(current={current.total_attendees}, delta={delta})"
            )
            return current.total_attendees
        return 0

    async def find_attendee_by_member(
        self, stream_id: str, member_id: str
    ) -> StreamAttendee | None:
        doc = await StreamAttendeeDocument.find_one(
            StreamAttendeeDocument.stream_id == stream_id,
            StreamAttendeeDocument.member_id == member_id,
            session=self._session,
        )
        return _to_attendee(doc) if doc else None

    async def get_attendee(self, stream_id: str, attendee_id: str) -> StreamAttendee | None:
        doc = await StreamAttendeeDocument.find_one(
            StreamAttendeeDocument.stream_id == stream_id,
            StreamAttendeeDocument.attendee_id == attendee_id,
            session=self._session,
        )
        return _to_attendee(doc) if doc else None

    async def insert_attendee(self, attendee: StreamAttendee) -> StreamAttendee:
        doc = StreamAttendeeDocument(**attendee.model_dump())
        try:
            await doc.insert(session=self._session)
        except DuplicateKeyError as e:
            logger.warning(
                f"Duplicate attendee for stream {attendee.stream_id} "
                f"and member {attendee.member_id}: {e}"
            )
            raise DuplicateAttendeeError(attendee.stream_id, attendee.member_id) from e
        except OperationFailure as e:
            # A concurrent transaction holds the same (stream, member) key uncommitted
            if e.code != WRITE_CONFLICT:
                raise
            logger.warning(
                f"Write conflict inserting attendee for stream {attendee.stream_id} "
                f"and member {attendee.member_id}: {e}"
            )
            raise DuplicateAttendeeError(attendee.stream_id, attendee.member_id) from e
        return attendee

    async def save_attendee(self, attendee: StreamAttendee) -> StreamAttendee:
        attendee.updated_at = utc_now()
        updates = attendee.model_dump(exclude={"attendee_id", "stream_id", "member_id", "created_at"})
        await StreamAttendeeDocument.find_one(
            StreamAttendeeDocument.attendee_id == attendee.attendee_id, session=self._session
        ).update(Set(updates), session=self._session)
        return attendee

    async def find_attendees_by_status(
        self, stream_id: str, status: RequestToJoinStatus
    ) -> list[StreamAttendee]:
        docs = await StreamAttendeeDocument.find(
            StreamAttendeeDocument.stream_id == stream_id,
            StreamAttendeeDocument.request_to_join_status == status,
            session=self._session,
        ).to_list()
        return [_to_attendee(doc) for doc in docs]

    async def approve_attendees(self, stream_id: str, attendee_ids: Sequence[str]) -> int:
        if not attendee_ids:
            return 0

        result = await StreamAttendeeDocument.find(
            StreamAttendeeDocument.stream_id == stream_id,
            In(StreamAttendeeDocument.attendee_id, list(attendee_ids)),
            StreamAttendeeDocument.request_to_join_status == RequestToJoinStatus.PENDING,
            session=self._session,
        ).update(
            Set(
                {
                    StreamAttendeeDocument.request_to_join_status: RequestToJoinStatus.APPROVED,
                    StreamAttendeeDocument.is_attending: True,
                    StreamAttendeeDocument.updated_at: utc_now(),
                }
            ),
            session=self._session,
        )
        return result.modified_count if result else 0

    async def count_attending(self, stream_id: str) -> int:
        return await StreamAttendeeDocument.find(
            StreamAttendeeDocument.stream_id == stream_id,
            StreamAttendeeDocument.request_to_join_status == RequestToJoinStatus.APPROVED,
            StreamAttendeeDocument.is_attending == True,  # noqa: E712
            session=self._session,
        ).count()


_default_repository: BeanieStreamRepository | None = None


def get_stream_repository() -> BeanieStreamRepository:
    """Repository on the Mongo client Beanie is initialized with."""
    global _default_repository
    if _default_repository is None:
        from streamhub.app_config import get_app_environ_config
        from streamhub.shared.storage.mongo import get_mongo_client

        _default_repository = BeanieStreamRepository(
            get_mongo_client(get_app_environ_config().MONGO_LABEL)
        )
    return _default_repository


__all__ = ["BeanieStreamRepository", "get_stream_repository"]
