"""Constructors for stream and attendance failures.

Each returns an AppError; callers `raise` the result so the raising call site is
what shows up in logs.
"""

from streamhub.schemas.stream_enums import RequestToJoinStatus

from .app_errors import AppError, AppErrorCode, HttpStatusCode


def stream_not_found(stream_id: str) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_STREAM_NOT_FOUND,
        errmesg=f"Stream not found: {stream_id}",
        status_code=HttpStatusCode.NOT_FOUND,
    )


def attendee_not_found(stream_id: str, attendee_ref: str) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_ATTENDEE_NOT_FOUND,
        errmesg=f"Attendee {attendee_ref} not found for stream {stream_id}",
        status_code=HttpStatusCode.NOT_FOUND,
    )


def ownership_violation(stream_id: str, member_id: str, reason: str | None = None) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_OWNERSHIP_VIOLATION,
        errmesg=reason or f"Member {member_id} is not allowed to perform this action on stream {stream_id}",
        status_code=HttpStatusCode.FORBIDDEN,
    )


def stream_already_happened(stream_id: str) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_STREAM_ALREADY_HAPPENED,
        errmesg=f"Stream {stream_id} has already happened",
        status_code=HttpStatusCode.CONFLICT,
    )


def stream_already_canceled(stream_id: str) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_STREAM_ALREADY_CANCELED,
        errmesg=f"Stream {stream_id} has been canceled",
        status_code=HttpStatusCode.CONFLICT,
    )


def stream_ongoing(stream_id: str) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_STREAM_ONGOING,
        errmesg=f"Stream {stream_id} is currently ongoing",
        status_code=HttpStatusCode.CONFLICT,
    )


def cannot_join_private_stream(stream_id: str) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_CANNOT_JOIN_PRIVATE_STREAM,
        errmesg=f"Stream {stream_id} is private; request to join and wait for approval",
        status_code=HttpStatusCode.FORBIDDEN,
    )


def already_requested_to_join(stream_id: str, status: RequestToJoinStatus) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_ALREADY_REQUESTED_TO_JOIN,
        errmesg=f"A request to join stream {stream_id} already exists",
        status_code=HttpStatusCode.CONFLICT,
        details={"request_to_join_status": status.value},
    )


def already_approved_request_to_join(stream_id: str, status: RequestToJoinStatus) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_ALREADY_APPROVED_REQUEST_TO_JOIN,
        errmesg=f"Request to join stream {stream_id} is already approved",
        status_code=HttpStatusCode.CONFLICT,
        details={"request_to_join_status": status.value},
    )


def failed_operation(errmesg: str) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_FAILED_OPERATION,
        errmesg=errmesg,
        status_code=HttpStatusCode.BAD_REQUEST,
    )


def calendar_not_found(country: str | None) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_CALENDAR_NOT_FOUND,
        errmesg=f"No calendar configured for country: {country or 'unknown'}",
        status_code=HttpStatusCode.NOT_FOUND,
    )


def oauth2_invalid_authorization(member_id: str, reason: str | None = None) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_OAUTH2_INVALID_AUTHORIZATION,
        errmesg=reason or f"No valid OAuth2 authorization for member {member_id}",
        status_code=HttpStatusCode.UNAUTHORIZED,
    )


def external_sync_failed(operation: str, stream_id: str, cause: BaseException) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_EXTERNAL_SYNC_FAILED,
        errmesg=f"External sync '{operation}' failed for stream {stream_id}: {cause}",
        status_code=HttpStatusCode.BAD_GATEWAY,
    )
