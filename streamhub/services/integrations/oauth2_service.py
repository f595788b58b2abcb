"""OAuth2 access tokens for members publishing live broadcasts."""

from datetime import timedelta

import httpx
from loguru import logger
from pydantic import BaseModel

from streamhub.app_config import get_app_environ_config
from streamhub.repositories import current_session
from streamhub.schemas import Oauth2Authorization
from streamhub.utils.stream_errors import oauth2_invalid_authorization
from streamhub.utils.time_utils import utc_now

DEMO_ACCESS_TOKEN = "demo-access-token"


class TokenResponse(BaseModel):
    access_token: str
    expires_in: int | None = None
    token_type: str = "Bearer"
    scope: str | None = None
    refresh_token: str | None = None


class Oauth2Service:
    """Loads a member's stored authorization and keeps its access token fresh."""

    def __init__(
        self,
        token_url: str,
        client_id: str | None = None,
        client_secret: str | None = None,
        *,
        timeout: float = 30,
        demo_mode: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self._demo_mode = demo_mode
        self._transport = transport

    @property
    def demo_mode(self) -> bool:
        if self._demo_mode is not None:
            return self._demo_mode
        return get_app_environ_config().DEMO_MODE

    # Reads and refreshes join the stream transaction open in the calling task
    async def _load_authorization(self, member_id: str) -> Oauth2Authorization | None:
        return await Oauth2Authorization.find_one(
            Oauth2Authorization.member_id == member_id, session=current_session()
        )

    async def _save_authorization(self, authorization: Oauth2Authorization) -> None:
        await authorization.save(session=current_session())

    async def refresh_access_token(self, member_id: str, refresh_token: str) -> TokenResponse:
        """Exchange a refresh token for a new access token.

        Raises:
            AppError: E_OAUTH2_INVALID_AUTHORIZATION when the token endpoint rejects the grant
        """
        data = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }
        if self.client_id:
            data["client_id"] = self.client_id
        if self.client_secret:
            data["client_secret"] = self.client_secret

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.token_url, data=data)

        if response.status_code in (400, 401):
            logger.warning(
                f"OAuth2 refresh rejected for member {member_id}: "
                f"{response.status_code} {response.text}"
            )
            raise oauth2_invalid_authorization(
                member_id, f"OAuth2 authorization for member {member_id} was revoked or expired"
            )
        response.raise_for_status()
        return TokenResponse.model_validate(response.json())

    async def get_valid_access_token(self, member_id: str) -> str:
        """Return an access token for the member, refreshing it when expired.

        Raises:
            AppError: E_OAUTH2_INVALID_AUTHORIZATION when nothing usable is stored
        """
        if self.demo_mode:
            logger.info(f"OAuth2 DEMO_MODE=true: returning stub access token for {member_id}")
            return DEMO_ACCESS_TOKEN

        authorization = await self._load_authorization(member_id)
        if authorization is None:
            raise oauth2_invalid_authorization(member_id)

        if not authorization.is_expired():
            return authorization.access_token

        if not authorization.refresh_token:
            raise oauth2_invalid_authorization(
                member_id, f"OAuth2 access token for member {member_id} expired and cannot be refreshed"
            )

        token = await self.refresh_access_token(member_id, authorization.refresh_token)
        authorization.access_token = token.access_token
        authorization.token_type = token.token_type
        if token.refresh_token:
            authorization.refresh_token = token.refresh_token
        if token.scope:
            authorization.scope = token.scope
        authorization.expires_at = (
            utc_now() + timedelta(seconds=token.expires_in) if token.expires_in else None
        )
        authorization.updated_at = utc_now()
        await self._save_authorization(authorization)

        logger.info(f"Refreshed OAuth2 access token for member {member_id}")
        return authorization.access_token


_settings = get_app_environ_config()

oauth2_service = Oauth2Service(
    token_url=_settings.OAUTH2_TOKEN_URL,
    client_id=_settings.OAUTH2_CLIENT_ID,
    client_secret=_settings.OAUTH2_CLIENT_SECRET,
    timeout=_settings.EXTERNAL_HTTP_TIMEOUT_SECONDS,
)
