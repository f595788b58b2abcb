"""Tests for join, request to join, organizer decisions and leaving a stream."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from streamhub.domain.live.stream.stream_domain import StreamService
from streamhub.schemas import (
    MemberProfile,
    RequestToJoinDecision,
    RequestToJoinStatus,
    StreamNotification,
    StreamNotificationKind,
    StreamStatus,
    StreamType,
    StreamVisibility,
)
from streamhub.utils.app_errors import AppError, AppErrorCode
from streamhub.utils.time_utils import utc_now
from tests.fixtures.memory_repository import InMemoryStreamRepository
from tests.fixtures.stream_fixtures import seed_attendee, seed_stream


async def assert_counter_consistent(repository: InMemoryStreamRepository, stream_id: str) -> int:
    """The stored counter always equals the number of approved, attending members."""
    stream = await repository.get_stream(stream_id)
    assert stream is not None
    assert stream.total_attendees == await repository.count_attending(stream_id)
    return stream.total_attendees


def published(notifier: AsyncMock) -> list[StreamNotification]:
    return [c.args[0] for c in notifier.publish.await_args_list]


class TestJoin:
    async def test_join_public_stream(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        calendar_client: AsyncMock,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository)

        result = await stream_service.join(stream.stream_id, alice, "See you there")

        assert result.total_attendees == 2
        assert result.attendee.member_id == alice.member_id
        assert result.attendee.request_to_join_status == RequestToJoinStatus.APPROVED
        assert result.attendee.is_attending is True
        assert result.attendee.attendee_comment == "See you there"
        assert await assert_counter_consistent(repository, stream.stream_id) == 2
        calendar_client.add_attendee.assert_awaited_once_with(
            "primary", "evt_existing", alice.email_address, "See you there"
        )

    async def test_join_protected_stream_directly(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository, visibility=StreamVisibility.PROTECTED)

        result = await stream_service.join(stream.stream_id, alice)

        assert result.attendee.request_to_join_status == RequestToJoinStatus.APPROVED
        assert result.total_attendees == 2

    async def test_join_private_stream_refused(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        calendar_client: AsyncMock,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository, visibility=StreamVisibility.PRIVATE)

        with pytest.raises(AppError) as exc_info:
            await stream_service.join(stream.stream_id, alice)

        assert exc_info.value.errcode == AppErrorCode.E_CANNOT_JOIN_PRIVATE_STREAM
        assert await repository.find_attendee_by_member(stream.stream_id, alice.member_id) is None
        calendar_client.add_attendee.assert_not_awaited()

    async def test_join_twice_leaves_state_unchanged(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository)
        await stream_service.join(stream.stream_id, alice)

        with pytest.raises(AppError) as exc_info:
            await stream_service.join(stream.stream_id, alice)

        assert exc_info.value.errcode == AppErrorCode.E_ALREADY_APPROVED_REQUEST_TO_JOIN
        assert exc_info.value.details == {"request_to_join_status": "approved"}
        assert await assert_counter_consistent(repository, stream.stream_id) == 2

    async def test_organizer_cannot_join(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        organizer: MemberProfile,
    ):
        stream = await seed_stream(repository)

        with pytest.raises(AppError) as exc_info:
            await stream_service.join(stream.stream_id, organizer)

        assert exc_info.value.errcode == AppErrorCode.E_OWNERSHIP_VIOLATION
        assert await assert_counter_consistent(repository, stream.stream_id) == 1

    async def test_join_canceled_stream(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository, status=StreamStatus.CANCELED)

        with pytest.raises(AppError) as exc_info:
            await stream_service.join(stream.stream_id, alice)

        assert exc_info.value.errcode == AppErrorCode.E_STREAM_ALREADY_CANCELED

    async def test_join_finished_stream(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        alice: MemberProfile,
    ):
        now = utc_now()
        stream = await seed_stream(
            repository, start_at=now - timedelta(hours=2), end_at=now - timedelta(hours=1)
        )

        with pytest.raises(AppError) as exc_info:
            await stream_service.join(stream.stream_id, alice)

        assert exc_info.value.errcode == AppErrorCode.E_STREAM_ALREADY_HAPPENED

    async def test_join_deleted_stream(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository, status=StreamStatus.DELETED)

        with pytest.raises(AppError) as exc_info:
            await stream_service.join(stream.stream_id, alice)

        assert exc_info.value.errcode == AppErrorCode.E_STREAM_NOT_FOUND

    async def test_join_live_broadcast_has_no_external_call(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        broadcast_client: AsyncMock,
        calendar_client: AsyncMock,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository, stream_type=StreamType.LIVE_BROADCAST)

        result = await stream_service.join(stream.stream_id, alice)

        assert result.total_attendees == 2
        assert broadcast_client.mock_calls == []
        assert calendar_client.mock_calls == []

    async def test_external_failure_rolls_back(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        calendar_client: AsyncMock,
        notifier: AsyncMock,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository)
        calendar_client.add_attendee.side_effect = httpx.ConnectError("calendar unreachable")

        with pytest.raises(AppError) as exc_info:
            await stream_service.join(stream.stream_id, alice)

        assert exc_info.value.errcode == AppErrorCode.E_EXTERNAL_SYNC_FAILED
        assert exc_info.value.status_code == 502
        assert repository.rollbacks == 1
        assert await repository.find_attendee_by_member(stream.stream_id, alice.member_id) is None
        assert await assert_counter_consistent(repository, stream.stream_id) == 1
        notifier.publish.assert_not_awaited()

    async def test_concurrent_insert_reported_as_existing_request(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository)
        await seed_attendee(
            repository, stream, alice.member_id, RequestToJoinStatus.APPROVED, is_attending=True
        )

        # The guard read misses the row a concurrent request just wrote
        with patch.object(
            repository, "find_attendee_by_member", AsyncMock(return_value=None)
        ):
            with pytest.raises(AppError) as exc_info:
                await stream_service.join(stream.stream_id, alice)

        assert exc_info.value.errcode == AppErrorCode.E_ALREADY_REQUESTED_TO_JOIN
        assert await assert_counter_consistent(repository, stream.stream_id) == 2


class TestRequestToJoin:
    async def test_request_private_stream(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        calendar_client: AsyncMock,
        notifier: AsyncMock,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository, visibility=StreamVisibility.PRIVATE)

        result = await stream_service.request_to_join(stream.stream_id, alice, "Please")

        assert result.attendee.request_to_join_status == RequestToJoinStatus.PENDING
        assert result.attendee.is_attending is False
        assert result.attendee.attendee_comment == "Please"
        assert result.total_attendees == 1
        assert await assert_counter_consistent(repository, stream.stream_id) == 1
        calendar_client.add_attendee.assert_not_awaited()

        [notification] = published(notifier)
        assert notification.kind == StreamNotificationKind.RECEIVED_JOIN_REQUEST
        assert notification.recipient_id == stream.organizer_id
        assert notification.actor_member_id == alice.member_id
        assert notification.comment == "Please"

    async def test_request_public_stream_fails(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository)

        with pytest.raises(AppError) as exc_info:
            await stream_service.request_to_join(stream.stream_id, alice)

        assert exc_info.value.errcode == AppErrorCode.E_FAILED_OPERATION

    async def test_request_twice(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository, visibility=StreamVisibility.PROTECTED)
        await stream_service.request_to_join(stream.stream_id, alice)

        with pytest.raises(AppError) as exc_info:
            await stream_service.request_to_join(stream.stream_id, alice)

        assert exc_info.value.errcode == AppErrorCode.E_ALREADY_REQUESTED_TO_JOIN
        assert exc_info.value.details == {"request_to_join_status": "pending"}
        rows = [
            a
            for a in repository.attendees.values()
            if a.stream_id == stream.stream_id and a.member_id == alice.member_id
        ]
        assert len(rows) == 1
        assert rows[0].request_to_join_status == RequestToJoinStatus.PENDING
        stored_stream = await repository.get_stream(stream.stream_id)
        assert stored_stream.total_attendees == 1

    async def test_disapproved_member_may_ask_again(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository, visibility=StreamVisibility.PRIVATE)
        previous = await seed_attendee(
            repository, stream, alice.member_id, RequestToJoinStatus.DISAPPROVED
        )

        result = await stream_service.request_to_join(stream.stream_id, alice, "Second try")

        assert result.attendee.attendee_id == previous.attendee_id
        assert result.attendee.request_to_join_status == RequestToJoinStatus.PENDING

    async def test_notification_failure_does_not_fail_request(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        notifier: AsyncMock,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository, visibility=StreamVisibility.PRIVATE)
        notifier.publish.side_effect = RuntimeError("queue down")

        result = await stream_service.request_to_join(stream.stream_id, alice)

        assert result.attendee.request_to_join_status == RequestToJoinStatus.PENDING
        assert await repository.find_attendee_by_member(stream.stream_id, alice.member_id)


class TestProcessJoinRequest:
    async def test_approve(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        calendar_client: AsyncMock,
        notifier: AsyncMock,
        organizer: MemberProfile,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository, visibility=StreamVisibility.PRIVATE)
        attendee = await seed_attendee(repository, stream, alice.member_id)

        result = await stream_service.process_join_request(
            stream.stream_id, attendee.attendee_id, RequestToJoinDecision.APPROVE, organizer, "Welcome"
        )

        assert result.attendee.request_to_join_status == RequestToJoinStatus.APPROVED
        assert result.attendee.is_attending is True
        assert result.attendee.organizer_comment == "Welcome"
        assert result.total_attendees == 2
        assert await assert_counter_consistent(repository, stream.stream_id) == 2
        calendar_client.add_attendee.assert_awaited_once_with(
            "primary", "evt_existing", alice.email_address, "Welcome"
        )

        [notification] = published(notifier)
        assert notification.kind == StreamNotificationKind.JOIN_REQUEST_APPROVED
        assert notification.recipient_id == alice.member_id

    async def test_disapprove(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        calendar_client: AsyncMock,
        notifier: AsyncMock,
        organizer: MemberProfile,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository, visibility=StreamVisibility.PRIVATE)
        attendee = await seed_attendee(repository, stream, alice.member_id)

        result = await stream_service.process_join_request(
            stream.stream_id, attendee.attendee_id, RequestToJoinDecision.DISAPPROVE, organizer
        )

        assert result.attendee.request_to_join_status == RequestToJoinStatus.DISAPPROVED
        assert result.attendee.is_attending is False
        assert await assert_counter_consistent(repository, stream.stream_id) == 1
        calendar_client.add_attendee.assert_not_awaited()
        [notification] = published(notifier)
        assert notification.kind == StreamNotificationKind.JOIN_REQUEST_DISAPPROVED

    async def test_approve_after_disapproval(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        organizer: MemberProfile,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository, visibility=StreamVisibility.PRIVATE)
        attendee = await seed_attendee(
            repository, stream, alice.member_id, RequestToJoinStatus.DISAPPROVED
        )

        result = await stream_service.process_join_request(
            stream.stream_id, attendee.attendee_id, RequestToJoinDecision.APPROVE, organizer
        )

        assert result.attendee.request_to_join_status == RequestToJoinStatus.APPROVED
        assert await assert_counter_consistent(repository, stream.stream_id) == 2

    async def test_already_approved(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        organizer: MemberProfile,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository, visibility=StreamVisibility.PRIVATE)
        attendee = await seed_attendee(
            repository, stream, alice.member_id, RequestToJoinStatus.APPROVED, is_attending=True
        )

        with pytest.raises(AppError) as exc_info:
            await stream_service.process_join_request(
                stream.stream_id, attendee.attendee_id, RequestToJoinDecision.APPROVE, organizer
            )

        assert exc_info.value.errcode == AppErrorCode.E_FAILED_OPERATION
        assert await assert_counter_consistent(repository, stream.stream_id) == 2

    async def test_only_organizer_decides(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        alice: MemberProfile,
        bob: MemberProfile,
    ):
        stream = await seed_stream(repository, visibility=StreamVisibility.PRIVATE)
        attendee = await seed_attendee(repository, stream, alice.member_id)

        with pytest.raises(AppError) as exc_info:
            await stream_service.process_join_request(
                stream.stream_id, attendee.attendee_id, RequestToJoinDecision.APPROVE, bob
            )

        assert exc_info.value.errcode == AppErrorCode.E_OWNERSHIP_VIOLATION

    async def test_unknown_attendee(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        organizer: MemberProfile,
    ):
        stream = await seed_stream(repository, visibility=StreamVisibility.PRIVATE)

        with pytest.raises(AppError) as exc_info:
            await stream_service.process_join_request(
                stream.stream_id, "sa_missing", RequestToJoinDecision.APPROVE, organizer
            )

        assert exc_info.value.errcode == AppErrorCode.E_ATTENDEE_NOT_FOUND

    async def test_calendar_failure_keeps_request_pending(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        calendar_client: AsyncMock,
        notifier: AsyncMock,
        organizer: MemberProfile,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository, visibility=StreamVisibility.PRIVATE)
        attendee = await seed_attendee(repository, stream, alice.member_id)
        calendar_client.add_attendee.side_effect = httpx.HTTPStatusError(
            "503", request=httpx.Request("PATCH", "https://calendar.test"), response=httpx.Response(503)
        )

        with pytest.raises(AppError) as exc_info:
            await stream_service.process_join_request(
                stream.stream_id, attendee.attendee_id, RequestToJoinDecision.APPROVE, organizer
            )

        assert exc_info.value.errcode == AppErrorCode.E_EXTERNAL_SYNC_FAILED
        stored = await repository.get_attendee(stream.stream_id, attendee.attendee_id)
        assert stored is not None
        assert stored.request_to_join_status == RequestToJoinStatus.PENDING
        assert await assert_counter_consistent(repository, stream.stream_id) == 1
        notifier.publish.assert_not_awaited()


class TestNotAttending:
    async def test_leave_after_join(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        calendar_client: AsyncMock,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository)
        await stream_service.join(stream.stream_id, alice)

        result = await stream_service.not_attending(stream.stream_id, alice)

        assert result.total_attendees == 1
        assert result.attendee.is_attending is False
        assert result.attendee.request_to_join_status == RequestToJoinStatus.APPROVED
        assert await assert_counter_consistent(repository, stream.stream_id) == 1
        calendar_client.remove_attendee.assert_awaited_once_with(
            "primary", "evt_existing", alice.email_address
        )

    async def test_rejoin_after_leaving(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository)
        first = await stream_service.join(stream.stream_id, alice)
        await stream_service.not_attending(stream.stream_id, alice)

        result = await stream_service.join(stream.stream_id, alice)

        assert result.attendee.attendee_id == first.attendee.attendee_id
        assert result.total_attendees == 2
        assert await assert_counter_consistent(repository, stream.stream_id) == 2

    async def test_leave_twice(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository)
        await stream_service.join(stream.stream_id, alice)
        await stream_service.not_attending(stream.stream_id, alice)

        with pytest.raises(AppError) as exc_info:
            await stream_service.not_attending(stream.stream_id, alice)

        assert exc_info.value.errcode == AppErrorCode.E_FAILED_OPERATION
        assert await assert_counter_consistent(repository, stream.stream_id) == 1

    async def test_leave_without_record(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        alice: MemberProfile,
    ):
        stream = await seed_stream(repository)

        with pytest.raises(AppError) as exc_info:
            await stream_service.not_attending(stream.stream_id, alice)

        assert exc_info.value.errcode == AppErrorCode.E_ATTENDEE_NOT_FOUND

    async def test_organizer_cannot_leave(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        organizer: MemberProfile,
    ):
        stream = await seed_stream(repository)

        with pytest.raises(AppError) as exc_info:
            await stream_service.not_attending(stream.stream_id, organizer)

        assert exc_info.value.errcode == AppErrorCode.E_OWNERSHIP_VIOLATION


class TestAttendanceScenario:
    async def test_private_stream_lifecycle_keeps_counter_consistent(
        self,
        stream_service: StreamService,
        repository: InMemoryStreamRepository,
        organizer: MemberProfile,
        alice: MemberProfile,
        bob: MemberProfile,
    ):
        stream = await seed_stream(repository, visibility=StreamVisibility.PRIVATE)
        stream_id = stream.stream_id

        alice_request = await stream_service.request_to_join(stream_id, alice)
        bob_request = await stream_service.request_to_join(stream_id, bob)
        assert await assert_counter_consistent(repository, stream_id) == 1

        await stream_service.process_join_request(
            stream_id, alice_request.attendee.attendee_id, RequestToJoinDecision.APPROVE, organizer
        )
        await stream_service.process_join_request(
            stream_id, bob_request.attendee.attendee_id, RequestToJoinDecision.DISAPPROVE, organizer
        )
        assert await assert_counter_consistent(repository, stream_id) == 2

        await stream_service.not_attending(stream_id, alice)
        assert await assert_counter_consistent(repository, stream_id) == 1

        await stream_service.update_visibility(stream_id, StreamVisibility.PUBLIC, organizer)
        assert await assert_counter_consistent(repository, stream_id) == 1

        # Bob was disapproved, but a public stream can be joined directly
        await stream_service.join(stream_id, bob)
        await stream_service.join(stream_id, alice)
        assert await assert_counter_consistent(repository, stream_id) == 3
