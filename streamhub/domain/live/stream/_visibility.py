"""Visibility changes and the promotion of pending requests they unblock."""

from loguru import logger

from streamhub.schemas import (
    MemberProfile,
    RequestToJoinStatus,
    StreamAttendee,
    StreamNotificationKind,
    StreamType,
    StreamVisibility,
)
from streamhub.utils import stream_errors

from ..sync import ExternalSyncOperation, VisibilityUpdateRequest
from ._base import BaseService
from .stream_models import VisibilityChangeResponse


class VisibilityTransitionHandler(BaseService):
    """Changes a stream's visibility.

    Opening a private or protected stream to the public approves every pending request:
    each promoted attendee becomes APPROVED and attending, is counted, and is invited
    on the external platform.
    """

    @staticmethod
    def promotes_pending(previous: StreamVisibility, new: StreamVisibility) -> bool:
        return previous in StreamVisibility.restricted() and new == StreamVisibility.PUBLIC

    async def change_visibility(
        self,
        stream_id: str,
        visibility: StreamVisibility,
        actor: MemberProfile,
    ) -> VisibilityChangeResponse:
        """
        Set a new visibility on a stream that is not currently live.

        Raises AppError on the organizer guard or E_STREAM_ONGOING.
        """
        promoted: list[StreamAttendee] = []

        async with self.repository.transaction():
            stream = await self.repository.get_stream(stream_id)
            stream = self.policy.can_act_on_stream(stream, actor.member_id, stream_id=stream_id)
            self.policy.ensure_not_ongoing(stream)

            previous = stream.visibility
            if previous == visibility:
                logger.info(f"Stream {stream_id} already {visibility}, skipping")
                return VisibilityChangeResponse(
                    stream=self._stream_response(stream), previous_visibility=previous
                )

            stream.visibility = visibility
            await self.repository.update_stream(stream, ["visibility"])

            invitee_emails: list[str] = []
            if self.promotes_pending(previous, visibility):
                promoted = await self.repository.find_attendees_by_status(
                    stream_id, RequestToJoinStatus.PENDING
                )
                changed = await self.repository.approve_attendees(
                    stream_id, [a.attendee_id for a in promoted]
                )
                if changed:
                    stream.total_attendees = await self.repository.increment_total_attendees(
                        stream_id, changed
                    )
                for attendee in promoted:
                    attendee.request_to_join_status = RequestToJoinStatus.APPROVED
                    attendee.is_attending = True

                logger.info(
                    f"Visibility {previous} -> {visibility} on stream {stream_id} "
                    f"promoted {changed} pending attendee(s)"
                )
                # Only calendar events carry an attendee list to invite into
                if promoted and stream.stream_type == StreamType.EVENT:
                    profiles = await self.members.get_members([a.member_id for a in promoted])
                    emails = {p.member_id: p.email_address for p in profiles}
                    for attendee in promoted:
                        if attendee.member_id not in emails:
                            raise stream_errors.attendee_not_found(stream_id, attendee.member_id)
                    invitee_emails = [emails[a.member_id] for a in promoted]

            access_token = await self._access_token(
                stream, ExternalSyncOperation.VISIBILITY_UPDATE
            )
            await self._sync(
                VisibilityUpdateRequest(
                    **self._sync_fields(stream, access_token),
                    visibility=visibility,
                    invitee_emails=invitee_emails,
                )
            )

        logger.info(f"Stream {stream_id} visibility changed {previous} -> {visibility}")
        for attendee in promoted:
            await self._notify(
                StreamNotificationKind.JOIN_REQUEST_APPROVED,
                stream,
                attendee,
                actor_member_id=actor.member_id,
                recipient_id=attendee.member_id,
            )

        return VisibilityChangeResponse(
            stream=self._stream_response(stream),
            previous_visibility=previous,
            promoted_attendee_ids=[a.attendee_id for a in promoted],
        )
