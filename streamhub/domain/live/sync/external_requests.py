"""Typed requests describing one external sync call each.

A request is built by the stream domain after an accepted mutation and consumed
once by ExternalSyncCoordinator. `operation` is the union discriminator.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from streamhub.schemas import StreamType, StreamVisibility


class ExternalSyncOperation(str, Enum):
    CREATE = "create"
    CREATE_INSTANT = "create_instant"
    PATCH = "patch"
    DELETE = "delete"
    CANCEL = "cancel"
    RESCHEDULE = "reschedule"
    VISIBILITY_UPDATE = "visibility_update"
    JOIN = "join"
    PROCESS_ATTENDEE_REQUEST = "process_attendee_request"
    NOT_ATTENDING = "not_attending"

    def __str__(self) -> str:
        return self.value


class _ExternalSyncBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    stream_type: StreamType
    stream_id: str
    # Calendar the event lives in (EVENT streams)
    calendar_external_id: str | None = None
    # Calendar event id or broadcast id, once the stream has been created externally
    stream_external_id: str | None = None
    # OAuth2 access token (LIVE_BROADCAST streams)
    access_token: str | None = None


class _ScheduledStreamFields(_ExternalSyncBase):
    title: str
    description: str | None = None
    location: str | None = None
    start_at: datetime
    end_at: datetime
    timezone: str = "UTC"
    visibility: StreamVisibility
    organizer_email: str
    organizer_name: str | None = None


class CreateStreamRequest(_ScheduledStreamFields):
    operation: Literal[ExternalSyncOperation.CREATE] = ExternalSyncOperation.CREATE


class CreateInstantStreamRequest(_ScheduledStreamFields):
    operation: Literal[ExternalSyncOperation.CREATE_INSTANT] = ExternalSyncOperation.CREATE_INSTANT


class PatchStreamRequest(_ExternalSyncBase):
    operation: Literal[ExternalSyncOperation.PATCH] = ExternalSyncOperation.PATCH
    title: str
    description: str | None = None
    location: str | None = None
    start_at: datetime


class DeleteStreamRequest(_ExternalSyncBase):
    operation: Literal[ExternalSyncOperation.DELETE] = ExternalSyncOperation.DELETE


class CancelStreamRequest(_ExternalSyncBase):
    operation: Literal[ExternalSyncOperation.CANCEL] = ExternalSyncOperation.CANCEL


class RescheduleStreamRequest(_ExternalSyncBase):
    operation: Literal[ExternalSyncOperation.RESCHEDULE] = ExternalSyncOperation.RESCHEDULE
    title: str
    start_at: datetime
    end_at: datetime
    timezone: str = "UTC"


class VisibilityUpdateRequest(_ExternalSyncBase):
    operation: Literal[ExternalSyncOperation.VISIBILITY_UPDATE] = (
        ExternalSyncOperation.VISIBILITY_UPDATE
    )
    visibility: StreamVisibility
    # Attendees promoted by the visibility change who still need an invitation
    invitee_emails: list[str] = Field(default_factory=list)


class JoinStreamRequest(_ExternalSyncBase):
    operation: Literal[ExternalSyncOperation.JOIN] = ExternalSyncOperation.JOIN
    attendee_email: str
    comment: str | None = None


class ProcessAttendeeRequest(_ExternalSyncBase):
    operation: Literal[ExternalSyncOperation.PROCESS_ATTENDEE_REQUEST] = (
        ExternalSyncOperation.PROCESS_ATTENDEE_REQUEST
    )
    attendee_email: str
    approved: bool
    comment: str | None = None


class NotAttendingRequest(_ExternalSyncBase):
    operation: Literal[ExternalSyncOperation.NOT_ATTENDING] = ExternalSyncOperation.NOT_ATTENDING
    attendee_email: str


ExternalSyncRequest = Annotated[
    CreateStreamRequest
    | CreateInstantStreamRequest
    | PatchStreamRequest
    | DeleteStreamRequest
    | CancelStreamRequest
    | RescheduleStreamRequest
    | VisibilityUpdateRequest
    | JoinStreamRequest
    | ProcessAttendeeRequest
    | NotAttendingRequest,
    Field(discriminator="operation"),
]

external_sync_request_adapter: TypeAdapter[ExternalSyncRequest] = TypeAdapter(ExternalSyncRequest)


__all__ = [
    "CancelStreamRequest",
    "CreateInstantStreamRequest",
    "CreateStreamRequest",
    "DeleteStreamRequest",
    "ExternalSyncOperation",
    "ExternalSyncRequest",
    "JoinStreamRequest",
    "NotAttendingRequest",
    "PatchStreamRequest",
    "ProcessAttendeeRequest",
    "RescheduleStreamRequest",
    "VisibilityUpdateRequest",
    "external_sync_request_adapter",
]
