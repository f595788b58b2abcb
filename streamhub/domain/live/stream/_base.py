"""Base service for stream operations."""

from typing import Any

from loguru import logger

from streamhub.repositories import StreamRepository, get_stream_repository
from streamhub.schemas import (
    RequestToJoinStatus,
    Stream,
    StreamAttendee,
    StreamNotification,
    StreamNotificationKind,
    StreamType,
)
from streamhub.services.integrations.calendar_directory import (
    CalendarDirectory,
    calendar_directory,
)
from streamhub.services.integrations.member_directory import MemberDirectory, member_directory
from streamhub.services.integrations.notification_publisher import (
    NotificationPublisher,
    notification_publisher,
)
from streamhub.services.integrations.oauth2_service import Oauth2Service, oauth2_service
from streamhub.utils import stream_errors
from streamhub.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ..sync import (
    ExternalSyncCoordinator,
    ExternalSyncOperation,
    ExternalSyncRequest,
    external_sync_coordinator,
)
from .attendee_state_machine import AttendeeStateMachine
from .stream_access_policy import StreamAccessPolicy
from .stream_models import AttendanceResponse, AttendeeResponse, StreamResponse


class BaseService:
    """Base service with shared stream operation methods."""

    def __init__(
        self,
        repository: StreamRepository | None = None,
        coordinator: ExternalSyncCoordinator | None = None,
        members: MemberDirectory | None = None,
        calendars: CalendarDirectory | None = None,
        oauth2: Oauth2Service | None = None,
        notifier: NotificationPublisher | None = None,
    ):
        """Initialize BaseService with storage and external collaborators."""
        self.repository = repository or get_stream_repository()
        self.policy = StreamAccessPolicy(self.repository)
        self.coordinator = coordinator or external_sync_coordinator
        self.members = members or member_directory
        self.calendars = calendars or calendar_directory
        self.oauth2 = oauth2 or oauth2_service
        self.notifier = notifier or notification_publisher

    async def _get_stream(self, stream_id: str) -> Stream:
        """
        Retrieve a stream that has not been deleted.

        Raises:
            AppError: E_STREAM_NOT_FOUND
        """
        stream = await self.repository.get_stream(stream_id)
        return self.policy.require_stream(stream, stream_id)

    def _set_request_status(self, attendee: StreamAttendee, new_status: RequestToJoinStatus) -> None:
        """Move an attendee to a new request-to-join status, enforcing the state machine."""
        current = attendee.request_to_join_status
        if current == new_status:
            return
        if not AttendeeStateMachine.can_transition(current, new_status):
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg=f"Invalid request-to-join transition: {current} -> {new_status}",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        attendee.request_to_join_status = new_status

    async def _member_email(self, stream_id: str, member_id: str) -> str:
        profile = await self.members.get_member(member_id)
        if profile is None:
            raise stream_errors.attendee_not_found(stream_id, member_id)
        return profile.email_address

    def _applies(self, stream: Stream, operation: ExternalSyncOperation) -> bool:
        return self.coordinator.applies(stream.stream_type, operation)

    async def _access_token(self, stream: Stream, operation: ExternalSyncOperation) -> str | None:
        """Organizer access token for broadcast operations that reach the platform."""
        if stream.stream_type != StreamType.LIVE_BROADCAST or not self._applies(stream, operation):
            return None
        # Anything but CREATE is skipped by the coordinator until a broadcast id exists
        if operation != ExternalSyncOperation.CREATE and stream.external_id is None:
            return None
        return await self.oauth2.get_valid_access_token(stream.organizer_id)

    @staticmethod
    def _sync_fields(stream: Stream, access_token: str | None = None) -> dict[str, Any]:
        """Fields every external sync request carries."""
        return {
            "stream_type": stream.stream_type,
            "stream_id": stream.stream_id,
            "calendar_external_id": stream.calendar_external_id,
            "stream_external_id": stream.external_id,
            "access_token": access_token,
        }

    async def _sync(self, request: ExternalSyncRequest) -> str | None:
        return await self.coordinator.dispatch(request)

    async def _notify(
        self,
        kind: StreamNotificationKind,
        stream: Stream,
        attendee: StreamAttendee,
        *,
        actor_member_id: str,
        recipient_id: str,
        comment: str | None = None,
    ) -> None:
        """Publish a notification; never raises."""
        try:
            notification = StreamNotification(
                kind=kind,
                stream_id=stream.stream_id,
                stream_title=stream.title,
                attendee_id=attendee.attendee_id,
                request_to_join_status=attendee.request_to_join_status,
                organizer_id=stream.organizer_id,
                actor_member_id=actor_member_id,
                recipient_id=recipient_id,
                comment=comment,
            )
            await self.notifier.publish(notification)
        except Exception as e:
            logger.warning(f"Notification {kind} for stream {stream.stream_id} dropped: {e}")

    @staticmethod
    def _stream_response(stream: Stream) -> StreamResponse:
        return StreamResponse(**stream.model_dump(exclude={"calendar_external_id"}))

    @staticmethod
    def _attendance_response(attendee: StreamAttendee, total_attendees: int) -> AttendanceResponse:
        return AttendanceResponse(
            stream_id=attendee.stream_id,
            total_attendees=total_attendees,
            attendee=AttendeeResponse(
                **attendee.model_dump(exclude={"created_at", "updated_at"})
            ),
        )
