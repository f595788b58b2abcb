"""Attendance lifecycle operations: join, request to join, organizer decision, leave."""

from loguru import logger

from streamhub.repositories import DuplicateAttendeeError
from streamhub.schemas import (
    JoinDecision,
    MemberProfile,
    RequestToJoinDecision,
    RequestToJoinStatus,
    Stream,
    StreamAttendee,
    StreamNotificationKind,
)
from streamhub.utils import stream_errors
from streamhub.utils.idgen import new_attendee_id
from streamhub.utils.time_utils import utc_now

from ..sync import (
    ExternalSyncOperation,
    JoinStreamRequest,
    NotAttendingRequest,
    ProcessAttendeeRequest,
)
from ._base import BaseService
from .attendee_state_machine import AttendeeStateMachine
from .stream_models import AttendanceResponse


class AttendanceLifecycleManager(BaseService):
    """Owns attendee records and the stream's total-attendees counter.

    Every operation runs in one unit of work: guards, attendee write, counter update
    and external sync. Notifications go out only after the unit of work commits.
    """

    def _new_attendee(self, stream: Stream, member_id: str, comment: str | None) -> StreamAttendee:
        return StreamAttendee(
            attendee_id=new_attendee_id(),
            stream_id=stream.stream_id,
            member_id=member_id,
            attendee_comment=comment,
        )

    async def _store_attendee(
        self, stream: Stream, attendee: StreamAttendee, is_new: bool
    ) -> StreamAttendee:
        """Insert a new attendee or save an existing one.

        A concurrent request for the same member loses on the unique constraint and is
        reported as an existing request.
        """
        if not is_new:
            return await self.repository.save_attendee(attendee)
        try:
            return await self.repository.insert_attendee(attendee)
        except DuplicateAttendeeError as e:
            logger.warning(
                f"Concurrent join for member {attendee.member_id} on stream {stream.stream_id}"
            )
            raise stream_errors.already_requested_to_join(
                stream.stream_id, RequestToJoinStatus.PENDING
            ) from e

    async def join_public_stream(
        self,
        stream_id: str,
        actor: MemberProfile,
        comment: str | None = None,
    ) -> AttendanceResponse:
        """
        Join a stream directly, becoming an approved and attending member.

        Raises AppError when the stream is missing, canceled, over, private, organized by
        the actor, or the actor already joined or asked to join.
        """
        async with self.repository.transaction():
            stream = await self._get_stream(stream_id)
            self.policy.can_join(stream, actor.member_id)

            existing = await self.policy.check_not_already_attendee(stream, actor.member_id)
            attendee = existing or self._new_attendee(stream, actor.member_id, comment)
            self._set_request_status(attendee, RequestToJoinStatus.APPROVED)
            attendee.is_attending = True
            if comment is not None:
                attendee.attendee_comment = comment
            attendee.updated_at = utc_now()

            await self._store_attendee(stream, attendee, is_new=existing is None)
            total = await self.repository.increment_total_attendees(stream.stream_id, 1)

            if self._applies(stream, ExternalSyncOperation.JOIN):
                await self._sync(
                    JoinStreamRequest(
                        **self._sync_fields(stream),
                        attendee_email=actor.email_address,
                        comment=comment,
                    )
                )

        logger.info(
            f"Member {actor.member_id} joined stream {stream_id} "
            f"(attendee={attendee.attendee_id}, total_attendees={total})"
        )
        return self._attendance_response(attendee, total)

    async def request_to_join(
        self,
        stream_id: str,
        actor: MemberProfile,
        comment: str | None = None,
    ) -> AttendanceResponse:
        """
        Ask the organizer of a private or protected stream for approval.

        The attendee is left PENDING and is not counted until approved.
        """
        async with self.repository.transaction():
            stream = await self._get_stream(stream_id)
            decision = self.policy.can_request_to_join(stream, actor.member_id)
            if decision == JoinDecision.AUTO_APPROVE:
                raise stream_errors.failed_operation(
                    f"Stream {stream_id} is public; join it directly"
                )

            existing = await self.policy.check_not_already_attendee(stream, actor.member_id)
            attendee = existing or self._new_attendee(stream, actor.member_id, comment)
            self._set_request_status(attendee, RequestToJoinStatus.PENDING)
            attendee.is_attending = False
            attendee.attendee_comment = comment
            attendee.organizer_comment = None
            attendee.updated_at = utc_now()

            await self._store_attendee(stream, attendee, is_new=existing is None)
            total = stream.total_attendees

        logger.info(
            f"Member {actor.member_id} requested to join stream {stream_id} "
            f"(attendee={attendee.attendee_id})"
        )
        await self._notify(
            StreamNotificationKind.RECEIVED_JOIN_REQUEST,
            stream,
            attendee,
            actor_member_id=actor.member_id,
            recipient_id=stream.organizer_id,
            comment=comment,
        )
        return self._attendance_response(attendee, total)

    async def process_organizer_decision(
        self,
        stream_id: str,
        attendee_id: str,
        decision: RequestToJoinDecision,
        actor: MemberProfile,
        comment: str | None = None,
    ) -> AttendanceResponse:
        """
        Approve or disapprove a pending (or previously disapproved) join request.

        Raises AppError E_FAILED_OPERATION if the request was already approved.
        """
        async with self.repository.transaction():
            stream = await self.repository.get_stream(stream_id)
            stream = self.policy.can_act_on_stream(stream, actor.member_id, stream_id=stream_id)

            attendee = await self.repository.get_attendee(stream_id, attendee_id)
            if attendee is None:
                raise stream_errors.attendee_not_found(stream_id, attendee_id)

            if not AttendeeStateMachine.is_decidable(attendee.request_to_join_status):
                raise stream_errors.failed_operation(
                    f"Join request {attendee_id} was already {attendee.request_to_join_status}"
                )

            approved = decision == RequestToJoinDecision.APPROVE
            total = stream.total_attendees
            if approved:
                self._set_request_status(attendee, RequestToJoinStatus.APPROVED)
                attendee.is_attending = True
            else:
                self._set_request_status(attendee, RequestToJoinStatus.DISAPPROVED)
                attendee.is_attending = False
            attendee.organizer_comment = comment
            attendee.updated_at = utc_now()

            await self.repository.save_attendee(attendee)
            if approved:
                total = await self.repository.increment_total_attendees(stream_id, 1)

            if self._applies(stream, ExternalSyncOperation.PROCESS_ATTENDEE_REQUEST):
                await self._sync(
                    ProcessAttendeeRequest(
                        **self._sync_fields(stream),
                        attendee_email=await self._member_email(stream_id, attendee.member_id),
                        approved=approved,
                        comment=comment,
                    )
                )

        logger.info(
            f"Organizer {actor.member_id} {decision}d join request {attendee_id} "
            f"on stream {stream_id} (total_attendees={total})"
        )
        await self._notify(
            StreamNotificationKind.JOIN_REQUEST_APPROVED
            if approved
            else StreamNotificationKind.JOIN_REQUEST_DISAPPROVED,
            stream,
            attendee,
            actor_member_id=actor.member_id,
            recipient_id=attendee.member_id,
            comment=comment,
        )
        return self._attendance_response(attendee, total)

    async def mark_not_attending(
        self,
        stream_id: str,
        actor: MemberProfile,
    ) -> AttendanceResponse:
        """
        Stop attending a stream.

        The request-to-join status is kept, so an approved member can attend again
        without a new approval.
        """
        async with self.repository.transaction():
            stream = await self._get_stream(stream_id)
            self.policy.ensure_open(stream)
            if stream.is_organizer(actor.member_id):
                raise stream_errors.ownership_violation(
                    stream_id,
                    actor.member_id,
                    f"The organizer cannot leave stream {stream_id}",
                )

            attendee = await self.repository.find_attendee_by_member(stream_id, actor.member_id)
            if attendee is None:
                raise stream_errors.attendee_not_found(stream_id, actor.member_id)
            if not attendee.is_attending:
                raise stream_errors.failed_operation(
                    f"Member {actor.member_id} is not attending stream {stream_id}"
                )

            was_counted = attendee.is_counted()
            attendee.is_attending = False
            attendee.updated_at = utc_now()
            await self.repository.save_attendee(attendee)

            total = stream.total_attendees
            if was_counted:
                total = await self.repository.increment_total_attendees(stream_id, -1)

            if self._applies(stream, ExternalSyncOperation.NOT_ATTENDING):
                await self._sync(
                    NotAttendingRequest(
                        **self._sync_fields(stream),
                        attendee_email=actor.email_address,
                    )
                )

        logger.info(
            f"Member {actor.member_id} no longer attending stream {stream_id} "
            f"(total_attendees={total})"
        )
        return self._attendance_response(attendee, total)
