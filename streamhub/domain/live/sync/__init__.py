from .coordinator import ExternalSyncCoordinator, external_sync_coordinator
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

__all__ = [
    "CancelStreamRequest",
    "CreateInstantStreamRequest",
    "CreateStreamRequest",
    "DeleteStreamRequest",
    "ExternalSyncCoordinator",
    "ExternalSyncOperation",
    "ExternalSyncRequest",
    "JoinStreamRequest",
    "NotAttendingRequest",
    "PatchStreamRequest",
    "ProcessAttendeeRequest",
    "RescheduleStreamRequest",
    "VisibilityUpdateRequest",
    "external_sync_coordinator",
]
