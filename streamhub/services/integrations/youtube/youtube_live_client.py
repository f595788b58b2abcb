from datetime import datetime
from typing import Any

import httpx
from loguru import logger

from streamhub.app_config import get_app_environ_config
from streamhub.schemas import StreamVisibility
from streamhub.utils.idgen import new_ulid

from .youtube_schemas import LiveBroadcast, LiveBroadcastPayload, rfc3339, to_privacy_status


class YouTubeLiveBroadcastClient:
    """Async client for YouTube live broadcasts.

    All calls act on behalf of the organizer and need a short-lived OAuth2 access token.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30,
        demo_mode: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._demo_mode = demo_mode
        self._transport = transport

    @property
    def demo_mode(self) -> bool:
        if self._demo_mode is not None:
            return self._demo_mode
        return get_app_environ_config().DEMO_MODE

    def _client(self, access_token: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {access_token}",
            },
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _update(self, part: str, body: dict[str, Any], access_token: str) -> None:
        async with self._client(access_token) as client:
            response = await client.put("/liveBroadcasts", params={"part": part}, json=body)
            response.raise_for_status()

    async def create_broadcast(self, payload: LiveBroadcastPayload, access_token: str) -> str:
        """Create a live broadcast and return its id."""
        if self.demo_mode:
            broadcast_id = new_ulid("demo_bc_")
            logger.info(f"YouTube client DEMO_MODE=true: stubbed create_broadcast -> {broadcast_id}")
            return broadcast_id

        async with self._client(access_token) as client:
            response = await client.post(
                "/liveBroadcasts",
                params={"part": "snippet,status,contentDetails"},
                json=payload.to_body(),
            )
            response.raise_for_status()
            broadcast = LiveBroadcast.model_validate(response.json())
            logger.debug(f"create_broadcast response: id={broadcast.id}")
            return broadcast.id

    async def update_broadcast(
        self,
        broadcast_id: str,
        title: str,
        description: str | None,
        start_at: datetime,
        access_token: str,
    ) -> None:
        """Patch title and description; YouTube requires the start time on snippet updates."""
        if self.demo_mode:
            logger.info(f"YouTube client DEMO_MODE=true: stubbed update_broadcast {broadcast_id}")
            return

        snippet: dict[str, Any] = {"title": title, "scheduledStartTime": rfc3339(start_at)}
        if description is not None:
            snippet["description"] = description
        await self._update("snippet", {"id": broadcast_id, "snippet": snippet}, access_token)

    async def reschedule_broadcast(
        self,
        broadcast_id: str,
        title: str,
        start_at: datetime,
        end_at: datetime,
        access_token: str,
    ) -> None:
        if self.demo_mode:
            logger.info(
                f"YouTube client DEMO_MODE=true: stubbed reschedule_broadcast {broadcast_id}"
            )
            return

        snippet = {
            "title": title,
            "scheduledStartTime": rfc3339(start_at),
            "scheduledEndTime": rfc3339(end_at),
        }
        await self._update("snippet", {"id": broadcast_id, "snippet": snippet}, access_token)

    async def update_visibility(
        self, broadcast_id: str, visibility: StreamVisibility, access_token: str
    ) -> None:
        if self.demo_mode:
            logger.info(f"YouTube client DEMO_MODE=true: stubbed update_visibility {broadcast_id}")
            return

        body = {"id": broadcast_id, "status": {"privacyStatus": to_privacy_status(visibility)}}
        await self._update("status", body, access_token)

    async def delete_broadcast(self, broadcast_id: str, access_token: str) -> None:
        if self.demo_mode:
            logger.info(f"YouTube client DEMO_MODE=true: stubbed delete_broadcast {broadcast_id}")
            return

        async with self._client(access_token) as client:
            response = await client.delete("/liveBroadcasts", params={"id": broadcast_id})
            if response.status_code == 404:
                logger.warning(f"Live broadcast {broadcast_id} already deleted")
                return
            response.raise_for_status()


_settings = get_app_environ_config()

youtube_live_broadcast_client = YouTubeLiveBroadcastClient(
    base_url=_settings.YOUTUBE_BASE_URL,
    timeout=_settings.EXTERNAL_HTTP_TIMEOUT_SECONDS,
)
