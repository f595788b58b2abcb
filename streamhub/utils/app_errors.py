import inspect
from enum import IntEnum, StrEnum
from typing import Any
from uuid import uuid4


class HttpStatusCode(IntEnum):
    OK = 200
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    UNPROCESSABLE_ENTITY = 422
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502


class AppErrorCode(StrEnum):
    # generic
    E_INTERNAL_ERROR = "E_INTERNAL_ERROR"
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_INVALID_PARAMS = "E_INVALID_PARAMS"
    E_BAD_TOKEN = "E_BAD_TOKEN"

    # not found
    E_STREAM_NOT_FOUND = "E_STREAM_NOT_FOUND"
    E_ATTENDEE_NOT_FOUND = "E_ATTENDEE_NOT_FOUND"
    E_CALENDAR_NOT_FOUND = "E_CALENDAR_NOT_FOUND"

    # ownership
    E_OWNERSHIP_VIOLATION = "E_OWNERSHIP_VIOLATION"

    # temporal
    E_STREAM_ALREADY_HAPPENED = "E_STREAM_ALREADY_HAPPENED"
    E_STREAM_ALREADY_CANCELED = "E_STREAM_ALREADY_CANCELED"
    E_STREAM_ONGOING = "E_STREAM_ONGOING"

    # attendance
    E_CANNOT_JOIN_PRIVATE_STREAM = "E_CANNOT_JOIN_PRIVATE_STREAM"
    E_ALREADY_REQUESTED_TO_JOIN = "E_ALREADY_REQUESTED_TO_JOIN"
    E_ALREADY_APPROVED_REQUEST_TO_JOIN = "E_ALREADY_APPROVED_REQUEST_TO_JOIN"
    E_FAILED_OPERATION = "E_FAILED_OPERATION"

    # external
    E_OAUTH2_INVALID_AUTHORIZATION = "E_OAUTH2_INVALID_AUTHORIZATION"
    E_EXTERNAL_SYNC_FAILED = "E_EXTERNAL_SYNC_FAILED"


class AppError(Exception):
    """
    Application error carrying an error code, a user-facing message and the
    HTTP status it maps to.

    The raising call site is captured so handlers can log where the error
    originated rather than where it was caught.
    """

    def __init__(
        self,
        errcode: AppErrorCode | str = AppErrorCode.E_INTERNAL_ERROR,
        errmesg: str | None = None,
        status_code: int = HttpStatusCode.BAD_REQUEST,
        *,
        details: dict[str, Any] | None = None,
    ):
        self.errcode = str(errcode)
        self.errmesg = errmesg or "We are sorry, an error occurred."
        self.status_code = int(status_code)
        self.details = details
        self.erresid = uuid4().hex[:10]
        self.caller_info = self._capture_caller()
        super().__init__(f"{self.errcode}: {self.errmesg}")

    @staticmethod
    def _capture_caller() -> str:
        # Skip this helper, __init__ and any error factory in stream_errors
        for frame_info in inspect.stack()[2:]:
            module = inspect.getmodule(frame_info.frame)
            module_name = module.__name__ if module else frame_info.filename
            if module_name.endswith("stream_errors"):
                continue
            return f"{module_name}:{frame_info.function}:{frame_info.lineno}"
        return "unknown"
