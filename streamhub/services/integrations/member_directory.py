"""Member identity lookup against the member API."""

from collections.abc import Sequence
from urllib.parse import quote

import httpx
from loguru import logger

from streamhub.app_config import get_app_environ_config
from streamhub.schemas import MemberProfile

DEMO_EMAIL_DOMAIN = "demo.streamhub.local"


def demo_profile(member_id: str) -> MemberProfile:
    return MemberProfile(
        member_id=member_id,
        email_address=f"{member_id}@{DEMO_EMAIL_DOMAIN}",
        full_name=f"Member {member_id}",
        country="US",
    )


class MemberDirectory:
    """Resolves member ids to profiles and bearer tokens to members.

    In DEMO_MODE profiles are synthesized and the bearer token is taken as the member id.
    """

    def __init__(
        self,
        base_url: str | None,
        api_key: str | None = None,
        *,
        timeout: float = 30,
        demo_mode: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._demo_mode = demo_mode
        self._transport = transport

    @property
    def demo_mode(self) -> bool:
        if self._demo_mode is not None:
            return self._demo_mode
        return get_app_environ_config().DEMO_MODE

    def _build_headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers: dict[str, str] = {"Accept": "application/json"}
        if self.api_key:
            headers["X-Api-Key"] = self.api_key
        if extra:
            headers.update(extra)
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def get_member(self, member_id: str) -> MemberProfile | None:
        if self.demo_mode:
            return demo_profile(member_id)

        async with self._client() as client:
            response = await client.get(
                f"/members/{quote(member_id, safe='')}", headers=self._build_headers()
            )
            if response.status_code == 404:
                logger.warning(f"Member {member_id} not found in member directory")
                return None
            response.raise_for_status()
            return MemberProfile.model_validate(response.json())

    async def get_members(self, member_ids: Sequence[str]) -> list[MemberProfile]:
        """Resolve several members at once; unknown ids are left out."""
        if not member_ids:
            return []
        if self.demo_mode:
            return [demo_profile(member_id) for member_id in member_ids]

        async with self._client() as client:
            response = await client.post(
                "/members/batch",
                json={"member_ids": list(member_ids)},
                headers=self._build_headers(),
            )
            response.raise_for_status()
            data = response.json()
            items = data.get("members", []) if isinstance(data, dict) else data
            return [MemberProfile.model_validate(item) for item in items]

    async def verify_token(self, token: str) -> MemberProfile | None:
        """Return the member a bearer token belongs to, or None if it is not valid."""
        if not token:
            return None
        if self.demo_mode:
            return demo_profile(token)

        async with self._client() as client:
            response = await client.get(
                "/auth/verify",
                headers=self._build_headers({"Authorization": f"Bearer {token}"}),
            )
            if response.status_code in (401, 403):
                return None
            response.raise_for_status()
            return MemberProfile.model_validate(response.json())


_settings = get_app_environ_config()

member_directory = MemberDirectory(
    base_url=_settings.MEMBER_API_BASE_URL,
    api_key=_settings.MEMBER_API_KEY,
    timeout=_settings.EXTERNAL_HTTP_TIMEOUT_SECONDS,
)
