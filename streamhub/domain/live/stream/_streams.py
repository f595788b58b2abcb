"""Stream operations performed by the organizer."""

from datetime import datetime, timedelta

from loguru import logger

from streamhub.app_config import get_app_environ_config
from streamhub.schemas import (
    MemberProfile,
    RequestToJoinStatus,
    Stream,
    StreamAttendee,
    StreamStatus,
    StreamType,
    StreamVisibility,
)
from streamhub.utils.app_errors import AppError, AppErrorCode, HttpStatusCode
from streamhub.utils.idgen import new_attendee_id, new_stream_id
from streamhub.utils.time_utils import ensure_utc, utc_now

from ..sync import (
    CancelStreamRequest,
    CreateInstantStreamRequest,
    CreateStreamRequest,
    DeleteStreamRequest,
    ExternalSyncOperation,
    PatchStreamRequest,
    RescheduleStreamRequest,
)
from ._base import BaseService
from .stream_models import (
    CreateInstantEventParams,
    CreateStreamParams,
    RescheduleStreamParams,
    StreamResponse,
    UpdateStreamParams,
)


def _validate_schedule(start_at: datetime, end_at: datetime) -> tuple[datetime, datetime]:
    start_at, end_at = ensure_utc(start_at), ensure_utc(end_at)
    if end_at <= start_at:
        raise AppError(
            errcode=AppErrorCode.E_INVALID_REQUEST,
            errmesg="Stream end time must be after its start time",
            status_code=HttpStatusCode.BAD_REQUEST,
        )
    if end_at <= utc_now():
        raise AppError(
            errcode=AppErrorCode.E_INVALID_REQUEST,
            errmesg="Stream end time must be in the future",
            status_code=HttpStatusCode.BAD_REQUEST,
        )
    return start_at, end_at


class StreamOperations(BaseService):
    """Stream-related operations."""

    async def _create_stream(
        self,
        organizer: MemberProfile,
        stream_type: StreamType,
        operation: ExternalSyncOperation,
        *,
        title: str,
        description: str | None,
        location: str | None,
        start_at: datetime,
        end_at: datetime,
        timezone: str,
        visibility: StreamVisibility,
    ) -> StreamResponse:
        now = utc_now()
        calendar_id = None
        if stream_type == StreamType.EVENT:
            calendar_id = self.calendars.resolve_calendar_id(organizer.country)

        # The organizer is the first approved, attending member
        stream = Stream(
            stream_id=new_stream_id(),
            organizer_id=organizer.member_id,
            stream_type=stream_type,
            title=title,
            description=description,
            location=location,
            visibility=visibility,
            start_at=start_at,
            end_at=end_at,
            timezone=timezone,
            total_attendees=1,
            calendar_external_id=calendar_id,
            created_at=now,
            updated_at=now,
        )
        organizer_attendee = StreamAttendee(
            attendee_id=new_attendee_id(),
            stream_id=stream.stream_id,
            member_id=organizer.member_id,
            request_to_join_status=RequestToJoinStatus.APPROVED,
            is_attending=True,
            is_organizer=True,
        )

        access_token = await self._access_token(stream, ExternalSyncOperation.CREATE)

        request_type = (
            CreateInstantStreamRequest
            if operation == ExternalSyncOperation.CREATE_INSTANT
            else CreateStreamRequest
        )
        request = request_type(
            **self._sync_fields(stream, access_token),
            title=stream.title,
            description=stream.description,
            location=stream.location,
            start_at=stream.start_at,
            end_at=stream.end_at,
            timezone=stream.timezone,
            visibility=stream.visibility,
            organizer_email=organizer.email_address,
            organizer_name=organizer.full_name,
        )

        async with self.repository.transaction():
            await self.repository.insert_stream(stream)
            await self.repository.insert_attendee(organizer_attendee)

            external_id = await self._sync(request)
            if external_id:
                stream.external_id = external_id
                await self.repository.update_stream(stream, ["external_id"])

        logger.info(
            f"Created {stream_type} stream {stream.stream_id} for organizer "
            f"{organizer.member_id} (external_id={stream.external_id})"
        )
        return self._stream_response(stream)

    async def create_event(
        self,
        params: CreateStreamParams,
        organizer: MemberProfile,
    ) -> StreamResponse:
        """
        Create a scheduled calendar event.

        Raises AppError if the schedule is invalid or no calendar serves the organizer.
        """
        start_at, end_at = _validate_schedule(params.start_at, params.end_at)
        return await self._create_stream(
            organizer,
            StreamType.EVENT,
            ExternalSyncOperation.CREATE,
            title=params.title,
            description=params.description,
            location=params.location,
            start_at=start_at,
            end_at=end_at,
            timezone=params.timezone,
            visibility=params.visibility,
        )

    async def create_instant_event(
        self,
        params: CreateInstantEventParams,
        organizer: MemberProfile,
    ) -> StreamResponse:
        """Create a calendar event that starts now."""
        duration = params.duration_minutes or get_app_environ_config().INSTANT_EVENT_DEFAULT_MINUTES
        start_at = utc_now()
        end_at = start_at + timedelta(minutes=duration)
        return await self._create_stream(
            organizer,
            StreamType.EVENT,
            ExternalSyncOperation.CREATE_INSTANT,
            title=params.title,
            description=params.description,
            location=params.location,
            start_at=start_at,
            end_at=end_at,
            timezone=params.timezone,
            visibility=params.visibility,
        )

    async def create_live_broadcast(
        self,
        params: CreateStreamParams,
        organizer: MemberProfile,
    ) -> StreamResponse:
        """
        Create a scheduled live broadcast on the organizer's channel.

        Raises AppError E_OAUTH2_INVALID_AUTHORIZATION when the organizer has not
        authorized the platform.
        """
        start_at, end_at = _validate_schedule(params.start_at, params.end_at)
        return await self._create_stream(
            organizer,
            StreamType.LIVE_BROADCAST,
            ExternalSyncOperation.CREATE,
            title=params.title,
            description=params.description,
            location=params.location,
            start_at=start_at,
            end_at=end_at,
            timezone=params.timezone,
            visibility=params.visibility,
        )

    async def get_stream(
        self,
        stream_id: str,
    ) -> StreamResponse:
        """
        Get a single stream by stream_id.

        Raises AppError if stream not found.
        """
        stream = await self._get_stream(stream_id)
        return self._stream_response(stream)

    async def update_stream(
        self,
        stream_id: str,
        params: UpdateStreamParams,
        actor: MemberProfile,
    ) -> StreamResponse:
        """Update title, description and location."""
        async with self.repository.transaction():
            stream = await self.repository.get_stream(stream_id)
            stream = self.policy.can_act_on_stream(stream, actor.member_id, stream_id=stream_id)

            changed = params.model_dump(exclude_none=True)
            if not changed:
                raise AppError(
                    errcode=AppErrorCode.E_INVALID_REQUEST,
                    errmesg="Nothing to update",
                    status_code=HttpStatusCode.BAD_REQUEST,
                )
            for field, value in changed.items():
                setattr(stream, field, value)
            await self.repository.update_stream(stream, changed.keys())

            access_token = await self._access_token(stream, ExternalSyncOperation.PATCH)
            await self._sync(
                PatchStreamRequest(
                    **self._sync_fields(stream, access_token),
                    title=stream.title,
                    description=stream.description,
                    location=stream.location,
                    start_at=stream.start_at,
                )
            )

        logger.info(f"Stream {stream_id} updated: {sorted(changed)}")
        return self._stream_response(stream)

    async def cancel_stream(
        self,
        stream_id: str,
        actor: MemberProfile,
    ) -> StreamResponse:
        """Cancel a stream that is neither over nor live."""
        async with self.repository.transaction():
            stream = await self.repository.get_stream(stream_id)
            stream = self.policy.can_act_on_stream(stream, actor.member_id, stream_id=stream_id)
            self.policy.ensure_not_ongoing(stream)

            stream.status = StreamStatus.CANCELED
            await self.repository.update_stream(stream, ["status"])

            access_token = await self._access_token(stream, ExternalSyncOperation.CANCEL)
            await self._sync(CancelStreamRequest(**self._sync_fields(stream, access_token)))

        logger.info(f"Stream {stream_id} canceled by {actor.member_id}")
        return self._stream_response(stream)

    async def delete_stream(
        self,
        stream_id: str,
        actor: MemberProfile,
    ) -> StreamResponse:
        """Delete a stream; it is reported as not found from then on."""
        async with self.repository.transaction():
            stream = await self.repository.get_stream(stream_id)
            stream = self.policy.can_act_on_stream(stream, actor.member_id, stream_id=stream_id)
            self.policy.ensure_not_ongoing(stream)

            stream.status = StreamStatus.DELETED
            await self.repository.update_stream(stream, ["status"])

            access_token = await self._access_token(stream, ExternalSyncOperation.DELETE)
            await self._sync(DeleteStreamRequest(**self._sync_fields(stream, access_token)))

        logger.info(f"Stream {stream_id} deleted by {actor.member_id}")
        return self._stream_response(stream)

    async def reschedule_stream(
        self,
        stream_id: str,
        params: RescheduleStreamParams,
        actor: MemberProfile,
    ) -> StreamResponse:
        """Move a stream to a new schedule."""
        start_at, end_at = _validate_schedule(params.start_at, params.end_at)

        async with self.repository.transaction():
            stream = await self.repository.get_stream(stream_id)
            stream = self.policy.can_act_on_stream(stream, actor.member_id, stream_id=stream_id)
            self.policy.ensure_not_ongoing(stream)

            stream.start_at = start_at
            stream.end_at = end_at
            if params.timezone:
                stream.timezone = params.timezone
            await self.repository.update_stream(stream, ["start_at", "end_at", "timezone"])

            access_token = await self._access_token(stream, ExternalSyncOperation.RESCHEDULE)
            await self._sync(
                RescheduleStreamRequest(
                    **self._sync_fields(stream, access_token),
                    title=stream.title,
                    start_at=stream.start_at,
                    end_at=stream.end_at,
                    timezone=stream.timezone,
                )
            )

        logger.info(f"Stream {stream_id} rescheduled to {start_at.isoformat()} - {end_at.isoformat()}")
        return self._stream_response(stream)
