from .beanie_stream_repository import (
    BeanieStreamRepository,
    current_session,
    get_stream_repository,
)
from .stream_repository import DuplicateAttendeeError, StreamRepository

__all__ = [
    "BeanieStreamRepository",
    "DuplicateAttendeeError",
    "StreamRepository",
    "current_session",
    "get_stream_repository",
]
