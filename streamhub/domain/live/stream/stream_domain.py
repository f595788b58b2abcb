"""Stream domain service - organizer operations, attendance and visibility."""

from streamhub.repositories import StreamRepository, get_stream_repository
from streamhub.schemas import MemberProfile, RequestToJoinDecision, StreamVisibility
from streamhub.services.integrations.calendar_directory import CalendarDirectory
from streamhub.services.integrations.member_directory import MemberDirectory
from streamhub.services.integrations.notification_publisher import NotificationPublisher
from streamhub.services.integrations.oauth2_service import Oauth2Service

from ..sync import ExternalSyncCoordinator
from ._attendance import AttendanceLifecycleManager
from ._streams import StreamOperations
from ._visibility import VisibilityTransitionHandler
from .stream_models import (
    AttendanceResponse,
    CreateInstantEventParams,
    CreateStreamParams,
    RescheduleStreamParams,
    StreamResponse,
    UpdateStreamParams,
    VisibilityChangeResponse,
)


class StreamService:
    """Entry point for every stream command."""

    def __init__(
        self,
        repository: StreamRepository | None = None,
        coordinator: ExternalSyncCoordinator | None = None,
        members: MemberDirectory | None = None,
        calendars: CalendarDirectory | None = None,
        oauth2: Oauth2Service | None = None,
        notifier: NotificationPublisher | None = None,
    ):
        collaborators = {
            "repository": repository or get_stream_repository(),
            "coordinator": coordinator,
            "members": members,
            "calendars": calendars,
            "oauth2": oauth2,
            "notifier": notifier,
        }
        self._streams = StreamOperations(**collaborators)
        self._attendance = AttendanceLifecycleManager(**collaborators)
        self._visibility = VisibilityTransitionHandler(**collaborators)

    # ==================== STREAMS ====================

    async def create_event(
        self,
        params: CreateStreamParams,
        organizer: MemberProfile,
    ) -> StreamResponse:
        """Create a scheduled calendar event.

        Raises AppError if the schedule is invalid or no calendar serves the organizer.
        """
        return await self._streams.create_event(params=params, organizer=organizer)

    async def create_instant_event(
        self,
        params: CreateInstantEventParams,
        organizer: MemberProfile,
    ) -> StreamResponse:
        """Create a calendar event starting now."""
        return await self._streams.create_instant_event(params=params, organizer=organizer)

    async def create_live_broadcast(
        self,
        params: CreateStreamParams,
        organizer: MemberProfile,
    ) -> StreamResponse:
        """Create a live broadcast.

        Raises AppError if the organizer has no valid OAuth2 authorization.
        """
        return await self._streams.create_live_broadcast(params=params, organizer=organizer)

    async def get_stream(
        self,
        stream_id: str,
    ) -> StreamResponse:
        """Get a single stream by stream_id.

        Raises AppError if stream not found.
        """
        return await self._streams.get_stream(stream_id=stream_id)

    async def update_stream(
        self,
        stream_id: str,
        params: UpdateStreamParams,
        actor: MemberProfile,
    ) -> StreamResponse:
        return await self._streams.update_stream(stream_id=stream_id, params=params, actor=actor)

    async def cancel_stream(
        self,
        stream_id: str,
        actor: MemberProfile,
    ) -> StreamResponse:
        return await self._streams.cancel_stream(stream_id=stream_id, actor=actor)

    async def delete_stream(
        self,
        stream_id: str,
        actor: MemberProfile,
    ) -> StreamResponse:
        return await self._streams.delete_stream(stream_id=stream_id, actor=actor)

    async def reschedule_stream(
        self,
        stream_id: str,
        params: RescheduleStreamParams,
        actor: MemberProfile,
    ) -> StreamResponse:
        return await self._streams.reschedule_stream(
            stream_id=stream_id, params=params, actor=actor
        )

    # ==================== VISIBILITY ====================

    async def update_visibility(
        self,
        stream_id: str,
        visibility: StreamVisibility,
        actor: MemberProfile,
    ) -> VisibilityChangeResponse:
        """Change visibility; opening a restricted stream approves pending requests."""
        return await self._visibility.change_visibility(
            stream_id=stream_id, visibility=visibility, actor=actor
        )

    # ==================== ATTENDANCE ====================

    async def join(
        self,
        stream_id: str,
        actor: MemberProfile,
        comment: str | None = None,
    ) -> AttendanceResponse:
        return await self._attendance.join_public_stream(
            stream_id=stream_id, actor=actor, comment=comment
        )

    async def request_to_join(
        self,
        stream_id: str,
        actor: MemberProfile,
        comment: str | None = None,
    ) -> AttendanceResponse:
        return await self._attendance.request_to_join(
            stream_id=stream_id, actor=actor, comment=comment
        )

    async def process_join_request(
        self,
        stream_id: str,
        attendee_id: str,
        decision: RequestToJoinDecision,
        actor: MemberProfile,
        comment: str | None = None,
    ) -> AttendanceResponse:
        """Approve or disapprove a join request.

        Raises AppError E_FAILED_OPERATION if the request is already approved.
        """
        return await self._attendance.process_organizer_decision(
            stream_id=stream_id,
            attendee_id=attendee_id,
            decision=decision,
            actor=actor,
            comment=comment,
        )

    async def not_attending(
        self,
        stream_id: str,
        actor: MemberProfile,
    ) -> AttendanceResponse:
        return await self._attendance.mark_not_attending(stream_id=stream_id, actor=actor)
