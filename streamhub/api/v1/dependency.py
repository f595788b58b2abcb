from typing import Annotated

from fastapi import Depends, Request
from loguru import logger

from streamhub.schemas import MemberProfile
from streamhub.services.integrations.member_directory import MemberDirectory, member_directory
from streamhub.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


def get_member_directory() -> MemberDirectory:
    return member_directory


def _bearer_token(request: Request) -> str | None:
    authorization = request.headers.get("Authorization") or ""
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_member(
    request: Request,
    directory: MemberDirectory = Depends(get_member_directory),
) -> MemberProfile:
    # Do not log request headers here (may include secrets like Authorization).
    token = _bearer_token(request)
    if not token:
        raise AppError(
            errcode=AppErrorCode.E_BAD_TOKEN,
            errmesg="Missing bearer token",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )

    member = await directory.verify_token(token)
    if member is None:
        raise AppError(
            errcode=AppErrorCode.E_BAD_TOKEN,
            errmesg="Invalid token",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )

    logger.debug("Authenticated member_id: {}", member.member_id)
    return member


CurrentMember = Annotated[MemberProfile, Depends(get_current_member)]
