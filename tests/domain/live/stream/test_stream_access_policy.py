"""Tests for StreamAccessPolicy guards."""

from datetime import timedelta

import pytest

from streamhub.domain.live.stream.stream_access_policy import StreamAccessPolicy
from streamhub.schemas import (
    JoinDecision,
    RequestToJoinStatus,
    StreamStatus,
    StreamVisibility,
)
from streamhub.utils.app_errors import AppError, AppErrorCode
from streamhub.utils.time_utils import utc_now
from tests.fixtures.memory_repository import InMemoryStreamRepository
from tests.fixtures.stream_fixtures import ORGANIZER_ID, make_stream, seed_attendee, seed_stream


@pytest.fixture
def policy(repository: InMemoryStreamRepository) -> StreamAccessPolicy:
    return StreamAccessPolicy(repository)


class TestCanActOnStream:
    def test_missing_stream(self, policy: StreamAccessPolicy):
        with pytest.raises(AppError) as exc_info:
            policy.can_act_on_stream(None, ORGANIZER_ID, stream_id="st_missing")

        assert exc_info.value.errcode == AppErrorCode.E_STREAM_NOT_FOUND
        assert exc_info.value.status_code == 404

    def test_deleted_stream_reported_as_not_found(self, policy: StreamAccessPolicy):
        stream = make_stream(status=StreamStatus.DELETED)

        with pytest.raises(AppError) as exc_info:
            policy.can_act_on_stream(stream, ORGANIZER_ID)

        assert exc_info.value.errcode == AppErrorCode.E_STREAM_NOT_FOUND

    def test_non_organizer_rejected(self, policy: StreamAccessPolicy):
        with pytest.raises(AppError) as exc_info:
            policy.can_act_on_stream(make_stream(), "mem_alice")

        assert exc_info.value.errcode == AppErrorCode.E_OWNERSHIP_VIOLATION
        assert exc_info.value.status_code == 403

    def test_ownership_checked_before_temporal_state(self, policy: StreamAccessPolicy):
        stream = make_stream(status=StreamStatus.CANCELED)

        with pytest.raises(AppError) as exc_info:
            policy.can_act_on_stream(stream, "mem_alice")

        assert exc_info.value.errcode == AppErrorCode.E_OWNERSHIP_VIOLATION

    def test_canceled_stream(self, policy: StreamAccessPolicy):
        with pytest.raises(AppError) as exc_info:
            policy.can_act_on_stream(make_stream(status=StreamStatus.CANCELED), ORGANIZER_ID)

        assert exc_info.value.errcode == AppErrorCode.E_STREAM_ALREADY_CANCELED

    def test_ended_stream(self, policy: StreamAccessPolicy):
        now = utc_now()
        stream = make_stream(start_at=now - timedelta(hours=2), end_at=now - timedelta(hours=1))

        with pytest.raises(AppError) as exc_info:
            policy.can_act_on_stream(stream, ORGANIZER_ID)

        assert exc_info.value.errcode == AppErrorCode.E_STREAM_ALREADY_HAPPENED

    def test_end_time_equal_to_now_has_happened(self, policy: StreamAccessPolicy):
        now = utc_now()
        stream = make_stream(start_at=now - timedelta(hours=1), end_at=now)

        with pytest.raises(AppError) as exc_info:
            policy.can_act_on_stream(stream, ORGANIZER_ID, now=now)

        assert exc_info.value.errcode == AppErrorCode.E_STREAM_ALREADY_HAPPENED

    def test_organizer_of_upcoming_stream_allowed(self, policy: StreamAccessPolicy):
        stream = make_stream()

        assert policy.can_act_on_stream(stream, ORGANIZER_ID) is stream


class TestEnsureNotOngoing:
    def test_ongoing_stream_rejected(self):
        now = utc_now()
        stream = make_stream(start_at=now - timedelta(minutes=5), end_at=now + timedelta(hours=1))

        with pytest.raises(AppError) as exc_info:
            StreamAccessPolicy.ensure_not_ongoing(stream)

        assert exc_info.value.errcode == AppErrorCode.E_STREAM_ONGOING

    def test_upcoming_stream_allowed(self):
        StreamAccessPolicy.ensure_not_ongoing(make_stream())


class TestCanRequestToJoin:
    def test_public_stream_auto_approves(self, policy: StreamAccessPolicy):
        decision = policy.can_request_to_join(make_stream(), "mem_alice")

        assert decision == JoinDecision.AUTO_APPROVE

    @pytest.mark.parametrize("visibility", [StreamVisibility.PRIVATE, StreamVisibility.PROTECTED])
    def test_restricted_stream_requires_approval(
        self, policy: StreamAccessPolicy, visibility: StreamVisibility
    ):
        decision = policy.can_request_to_join(make_stream(visibility=visibility), "mem_alice")

        assert decision == JoinDecision.REQUIRES_APPROVAL

    def test_organizer_cannot_join_own_stream(self, policy: StreamAccessPolicy):
        with pytest.raises(AppError) as exc_info:
            policy.can_request_to_join(make_stream(), ORGANIZER_ID)

        assert exc_info.value.errcode == AppErrorCode.E_OWNERSHIP_VIOLATION

    def test_canceled_stream(self, policy: StreamAccessPolicy):
        with pytest.raises(AppError) as exc_info:
            policy.can_request_to_join(make_stream(status=StreamStatus.CANCELED), "mem_alice")

        assert exc_info.value.errcode == AppErrorCode.E_STREAM_ALREADY_CANCELED


class TestCanJoin:
    def test_private_stream_refused(self, policy: StreamAccessPolicy):
        with pytest.raises(AppError) as exc_info:
            policy.can_join(make_stream(visibility=StreamVisibility.PRIVATE), "mem_alice")

        assert exc_info.value.errcode == AppErrorCode.E_CANNOT_JOIN_PRIVATE_STREAM

    def test_protected_stream_allowed(self, policy: StreamAccessPolicy):
        decision = policy.can_join(make_stream(visibility=StreamVisibility.PROTECTED), "mem_alice")

        assert decision == JoinDecision.REQUIRES_APPROVAL


class TestCheckNotAlreadyAttendee:
    async def test_no_record(self, policy: StreamAccessPolicy, repository):
        stream = await seed_stream(repository)

        assert await policy.check_not_already_attendee(stream, "mem_alice") is None

    async def test_pending_request_rejected(self, policy: StreamAccessPolicy, repository):
        stream = await seed_stream(repository)
        await seed_attendee(repository, stream, "mem_alice")

        with pytest.raises(AppError) as exc_info:
            await policy.check_not_already_attendee(stream, "mem_alice")

        assert exc_info.value.errcode == AppErrorCode.E_ALREADY_REQUESTED_TO_JOIN
        assert exc_info.value.details == {"request_to_join_status": "pending"}

    async def test_approved_attending_rejected(self, policy: StreamAccessPolicy, repository):
        stream = await seed_stream(repository)
        await seed_attendee(
            repository, stream, "mem_alice", RequestToJoinStatus.APPROVED, is_attending=True
        )

        with pytest.raises(AppError) as exc_info:
            await policy.check_not_already_attendee(stream, "mem_alice")

        assert exc_info.value.errcode == AppErrorCode.E_ALREADY_APPROVED_REQUEST_TO_JOIN
        assert exc_info.value.details == {"request_to_join_status": "approved"}

    async def test_disapproved_record_reusable(self, policy: StreamAccessPolicy, repository):
        stream = await seed_stream(repository)
        attendee = await seed_attendee(
            repository, stream, "mem_alice", RequestToJoinStatus.DISAPPROVED
        )

        existing = await policy.check_not_already_attendee(stream, "mem_alice")

        assert existing is not None
        assert existing.attendee_id == attendee.attendee_id
