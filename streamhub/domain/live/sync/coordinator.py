"""Dispatches accepted stream mutations to the calendar or live-broadcast platform."""

from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from streamhub.schemas import StreamType
from streamhub.services.integrations.google_calendar import (
    CalendarAttendee,
    CalendarEventPayload,
    GoogleCalendarClient,
    google_calendar_client,
)
from streamhub.services.integrations.youtube import (
    LiveBroadcastPayload,
    YouTubeLiveBroadcastClient,
    youtube_live_broadcast_client,
)
from streamhub.utils.app_errors import AppError
from streamhub.utils.stream_errors import external_sync_failed

from .external_requests import (
    CancelStreamRequest,
    CreateInstantStreamRequest,
    CreateStreamRequest,
    DeleteStreamRequest,
    ExternalSyncOperation,
    ExternalSyncRequest,
    JoinStreamRequest,
    NotAttendingRequest,
    PatchStreamRequest,
    ProcessAttendeeRequest,
    RescheduleStreamRequest,
    VisibilityUpdateRequest,
)

SyncHandler = Callable[[Any], Awaitable[str | None]]


class ExternalSyncCoordinator:
    """Translate one ExternalSyncRequest into at most one external operation.

    Dispatch is keyed by (stream type, operation). Calls are made once, without retry;
    any failure surfaces as E_EXTERNAL_SYNC_FAILED so the caller's unit of work rolls back.
    """

    def __init__(
        self,
        calendar: GoogleCalendarClient | None = None,
        broadcast: YouTubeLiveBroadcastClient | None = None,
    ):
        self.calendar = calendar or google_calendar_client
        self.broadcast = broadcast or youtube_live_broadcast_client

        event_handlers: dict[ExternalSyncOperation, SyncHandler] = {
            ExternalSyncOperation.CREATE: self._create_event,
            ExternalSyncOperation.CREATE_INSTANT: self._create_event,
            ExternalSyncOperation.PATCH: self._patch_event,
            ExternalSyncOperation.DELETE: self._delete_event,
            ExternalSyncOperation.CANCEL: self._cancel_event,
            ExternalSyncOperation.RESCHEDULE: self._reschedule_event,
            ExternalSyncOperation.VISIBILITY_UPDATE: self._update_event_visibility,
            ExternalSyncOperation.JOIN: self._add_event_attendee,
            ExternalSyncOperation.PROCESS_ATTENDEE_REQUEST: self._process_event_attendee,
            ExternalSyncOperation.NOT_ATTENDING: self._remove_event_attendee,
        }
        broadcast_handlers: dict[ExternalSyncOperation, SyncHandler] = {
            ExternalSyncOperation.CREATE: self._create_broadcast,
            ExternalSyncOperation.PATCH: self._patch_broadcast,
            ExternalSyncOperation.DELETE: self._delete_broadcast,
            ExternalSyncOperation.RESCHEDULE: self._reschedule_broadcast,
            ExternalSyncOperation.VISIBILITY_UPDATE: self._update_broadcast_visibility,
        }
        self._handlers: dict[tuple[StreamType, ExternalSyncOperation], SyncHandler] = {
            **{(StreamType.EVENT, op): handler for op, handler in event_handlers.items()},
            **{
                (StreamType.LIVE_BROADCAST, op): handler
                for op, handler in broadcast_handlers.items()
            },
        }

    def applies(self, stream_type: StreamType, operation: ExternalSyncOperation) -> bool:
        """Whether the operation is mirrored externally for this stream type."""
        return (stream_type, operation) in self._handlers

    async def dispatch(self, request: ExternalSyncRequest) -> str | None:
        """Run the external call for a request.

        Returns:
            The external id for create operations, None otherwise

        Raises:
            AppError: E_EXTERNAL_SYNC_FAILED wrapping any collaborator failure
        """
        handler = self._handlers.get((request.stream_type, request.operation))
        if handler is None:
            logger.debug(
                f"No external sync for {request.operation} on {request.stream_type} "
                f"stream {request.stream_id}"
            )
            return None

        try:
            result = await handler(request)
        except AppError:
            raise
        except Exception as e:
            logger.error(
                f"External sync {request.operation} failed for {request.stream_type} "
                f"stream {request.stream_id}: {e}"
            )
            raise external_sync_failed(request.operation.value, request.stream_id, e) from e

        logger.info(
            f"External sync {request.operation} done for {request.stream_type} "
            f"stream {request.stream_id}"
        )
        return result

    @staticmethod
    def _event_target(request: ExternalSyncRequest) -> tuple[str, str] | None:
        if not request.calendar_external_id or not request.stream_external_id:
            logger.warning(
                f"Stream {request.stream_id} has no calendar event yet, "
                f"skipping {request.operation}"
            )
            return None
        return request.calendar_external_id, request.stream_external_id

    @staticmethod
    def _broadcast_target(request: ExternalSyncRequest) -> tuple[str, str] | None:
        if not request.stream_external_id:
            logger.warning(
                f"Stream {request.stream_id} has no live broadcast yet, "
                f"skipping {request.operation}"
            )
            return None
        if not request.access_token:
            raise ValueError(f"{request.operation} on a live broadcast needs an access token")
        return request.stream_external_id, request.access_token

    # EVENT

    async def _create_event(
        self, request: CreateStreamRequest | CreateInstantStreamRequest
    ) -> str | None:
        if not request.calendar_external_id:
            raise ValueError(f"Stream {request.stream_id} has no calendar to create the event in")

        payload = CalendarEventPayload(
            title=request.title,
            description=request.description,
            location=request.location,
            start_at=request.start_at,
            end_at=request.end_at,
            timezone=request.timezone,
            visibility=request.visibility,
            attendees=[
                CalendarAttendee(
                    email=request.organizer_email,
                    display_name=request.organizer_name,
                    organizer=True,
                )
            ],
            stream_id=request.stream_id,
        )
        return await self.calendar.create_event(request.calendar_external_id, payload)

    async def _patch_event(self, request: PatchStreamRequest) -> None:
        target = self._event_target(request)
        if target:
            fields = {
                "title": request.title,
                "description": request.description,
                "location": request.location,
            }
            await self.calendar.patch_event(*target, fields)

    async def _delete_event(self, request: DeleteStreamRequest) -> None:
        target = self._event_target(request)
        if target:
            await self.calendar.delete_event(*target)

    async def _cancel_event(self, request: CancelStreamRequest) -> None:
        target = self._event_target(request)
        if target:
            await self.calendar.cancel_event(*target)

    async def _reschedule_event(self, request: RescheduleStreamRequest) -> None:
        target = self._event_target(request)
        if target:
            await self.calendar.reschedule_event(
                *target, request.start_at, request.end_at, request.timezone
            )

    async def _update_event_visibility(self, request: VisibilityUpdateRequest) -> None:
        target = self._event_target(request)
        if not target:
            return
        await self.calendar.update_visibility(*target, request.visibility)
        for email in request.invitee_emails:
            await self.calendar.add_attendee(*target, email, None)

    async def _add_event_attendee(self, request: JoinStreamRequest) -> None:
        target = self._event_target(request)
        if target:
            await self.calendar.add_attendee(*target, request.attendee_email, request.comment)

    async def _process_event_attendee(self, request: ProcessAttendeeRequest) -> None:
        # A disapproved request has nothing to mirror on the calendar
        if not request.approved:
            return
        target = self._event_target(request)
        if target:
            await self.calendar.add_attendee(*target, request.attendee_email, request.comment)

    async def _remove_event_attendee(self, request: NotAttendingRequest) -> None:
        target = self._event_target(request)
        if target:
            await self.calendar.remove_attendee(*target, request.attendee_email)

    # LIVE_BROADCAST

    async def _create_broadcast(self, request: CreateStreamRequest) -> str:
        if not request.access_token:
            raise ValueError("Creating a live broadcast needs an access token")

        payload = LiveBroadcastPayload(
            title=request.title,
            description=request.description,
            start_at=request.start_at,
            end_at=request.end_at,
            visibility=request.visibility,
        )
        return await self.broadcast.create_broadcast(payload, request.access_token)

    async def _patch_broadcast(self, request: PatchStreamRequest) -> None:
        target = self._broadcast_target(request)
        if target:
            broadcast_id, token = target
            await self.broadcast.update_broadcast(
                broadcast_id, request.title, request.description, request.start_at, token
            )

    async def _delete_broadcast(self, request: DeleteStreamRequest) -> None:
        target = self._broadcast_target(request)
        if target:
            await self.broadcast.delete_broadcast(*target)

    async def _reschedule_broadcast(self, request: RescheduleStreamRequest) -> None:
        target = self._broadcast_target(request)
        if target:
            broadcast_id, token = target
            await self.broadcast.reschedule_broadcast(
                broadcast_id, request.title, request.start_at, request.end_at, token
            )

    async def _update_broadcast_visibility(self, request: VisibilityUpdateRequest) -> None:
        target = self._broadcast_target(request)
        if target:
            broadcast_id, token = target
            await self.broadcast.update_visibility(broadcast_id, request.visibility, token)


external_sync_coordinator = ExternalSyncCoordinator()
