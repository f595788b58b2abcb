"""Beanie initialization for ODM."""

from beanie import Document, init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from streamhub.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .oauth2_authorization import Oauth2Authorization
from .stream_document import StreamAttendeeDocument, StreamDocument

DOCUMENT_MODELS: list[type[Document]] = [
    StreamDocument,
    StreamAttendeeDocument,
    Oauth2Authorization,
]


async def init_beanie_odm(
    target: AsyncIOMotorClient | AsyncIOMotorDatabase,
    database_name: str | None = None,
) -> None:
    """
    Register the stream collections with Beanie and build their indexes.

    Args:
        target: Motor database, or a client together with `database_name`
        database_name: Database to use when `target` is a client
    """
    if isinstance(target, AsyncIOMotorClient):
        if not database_name:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="A database name is needed to initialize Beanie from a client",
                status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
            )
        target = target[database_name]

    await init_beanie(database=target, document_models=DOCUMENT_MODELS)  # type: ignore[arg-type]


__all__ = ["DOCUMENT_MODELS", "init_beanie_odm"]
