from datetime import datetime
from typing import Any
from urllib.parse import quote

import httpx
from loguru import logger

from streamhub.app_config import get_app_environ_config
from streamhub.schemas import StreamVisibility
from streamhub.utils.idgen import new_ulid

from .calendar_schemas import (
    CalendarEvent,
    CalendarEventPayload,
    event_time,
    to_calendar_visibility,
)


class GoogleCalendarClient:
    """Thin async client for the Google Calendar events API.

    Every call short-circuits with a stub when DEMO_MODE is on.
    """

    def __init__(
        self,
        base_url: str,
        api_token: str | None = None,
        *,
        timeout: float = 30,
        demo_mode: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = timeout
        self._demo_mode = demo_mode
        self._transport = transport

    @property
    def demo_mode(self) -> bool:
        if self._demo_mode is not None:
            return self._demo_mode
        return get_app_environ_config().DEMO_MODE

    def _build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._build_headers(),
            timeout=self.timeout,
            transport=self._transport,
        )

    @staticmethod
    def _event_path(calendar_id: str, event_id: str | None = None) -> str:
        path = f"/calendars/{quote(calendar_id, safe='')}/events"
        if event_id:
            path = f"{path}/{quote(event_id, safe='')}"
        return path

    async def _patch(self, calendar_id: str, event_id: str, body: dict[str, Any]) -> None:
        async with self._client() as client:
            response = await client.patch(
                self._event_path(calendar_id, event_id),
                params={"sendUpdates": "all"},
                json=body,
            )
            response.raise_for_status()

    async def get_event(self, calendar_id: str, event_id: str) -> CalendarEvent:
        async with self._client() as client:
            response = await client.get(self._event_path(calendar_id, event_id))
            response.raise_for_status()
            return CalendarEvent.model_validate(response.json())

    async def create_event(self, calendar_id: str, payload: CalendarEventPayload) -> str:
        """Create a calendar event and return its id."""
        if self.demo_mode:
            event_id = new_ulid("demo_evt_")
            logger.info(f"Calendar client DEMO_MODE=true: stubbed create_event -> {event_id}")
            return event_id

        async with self._client() as client:
            response = await client.post(
                self._event_path(calendar_id),
                params={"sendUpdates": "all"},
                json=payload.to_body(),
            )
            response.raise_for_status()
            event = CalendarEvent.model_validate(response.json())
            logger.debug(f"create_event response: id={event.id} status={event.status}")
            return event.id

    async def patch_event(self, calendar_id: str, event_id: str, fields: dict[str, Any]) -> None:
        """Patch title/description/location of an event."""
        if self.demo_mode:
            logger.info(f"Calendar client DEMO_MODE=true: stubbed patch_event {event_id}")
            return

        body: dict[str, Any] = {}
        if fields.get("title") is not None:
            body["summary"] = fields["title"]
        if fields.get("description") is not None:
            body["description"] = fields["description"]
        if fields.get("location") is not None:
            body["location"] = fields["location"]
        if not body:
            return
        await self._patch(calendar_id, event_id, body)

    async def delete_event(self, calendar_id: str, event_id: str) -> None:
        if self.demo_mode:
            logger.info(f"Calendar client DEMO_MODE=true: stubbed delete_event {event_id}")
            return

        async with self._client() as client:
            response = await client.delete(
                self._event_path(calendar_id, event_id),
                params={"sendUpdates": "all"},
            )
            # Already gone is fine
            if response.status_code in (404, 410):
                logger.warning(f"Calendar event {event_id} already deleted")
                return
            response.raise_for_status()

    async def cancel_event(self, calendar_id: str, event_id: str) -> None:
        if self.demo_mode:
            logger.info(f"Calendar client DEMO_MODE=true: stubbed cancel_event {event_id}")
            return

        await self._patch(calendar_id, event_id, {"status": "cancelled"})

    async def reschedule_event(
        self,
        calendar_id: str,
        event_id: str,
        start_at: datetime,
        end_at: datetime,
        timezone: str,
    ) -> None:
        if self.demo_mode:
            logger.info(f"Calendar client DEMO_MODE=true: stubbed reschedule_event {event_id}")
            return

        await self._patch(
            calendar_id,
            event_id,
            {"start": event_time(start_at, timezone), "end": event_time(end_at, timezone)},
        )

    async def update_visibility(
        self, calendar_id: str, event_id: str, visibility: StreamVisibility
    ) -> None:
        if self.demo_mode:
            logger.info(f"Calendar client DEMO_MODE=true: stubbed update_visibility {event_id}")
            return

        await self._patch(calendar_id, event_id, {"visibility": to_calendar_visibility(visibility)})

    async def add_attendee(
        self,
        calendar_id: str,
        event_id: str,
        email: str,
        comment: str | None = None,
    ) -> None:
        """Add an attendee to the event's attendee list if not already present."""
        if self.demo_mode:
            logger.info(f"Calendar client DEMO_MODE=true: stubbed add_attendee {email} -> {event_id}")
            return

        event = await self.get_event(calendar_id, event_id)
        attendees = list(event.attendees)
        if any(str(a.get("email", "")).lower() == email.lower() for a in attendees):
            logger.debug(f"{email} already invited to calendar event {event_id}")
            return

        attendee: dict[str, Any] = {"email": email}
        if comment:
            attendee["comment"] = comment
        attendees.append(attendee)
        await self._patch(calendar_id, event_id, {"attendees": attendees})

    async def remove_attendee(self, calendar_id: str, event_id: str, email: str) -> None:
        if self.demo_mode:
            logger.info(
                f"Calendar client DEMO_MODE=true: stubbed remove_attendee {email} <- {event_id}"
            )
            return

        event = await self.get_event(calendar_id, event_id)
        remaining = [
            a for a in event.attendees if str(a.get("email", "")).lower() != email.lower()
        ]
        if len(remaining) == len(event.attendees):
            logger.debug(f"{email} not on calendar event {event_id}, nothing to remove")
            return
        await self._patch(calendar_id, event_id, {"attendees": remaining})


_settings = get_app_environ_config()

google_calendar_client = GoogleCalendarClient(
    base_url=_settings.GOOGLE_CALENDAR_BASE_URL,
    api_token=_settings.GOOGLE_CALENDAR_API_TOKEN,
    timeout=_settings.EXTERNAL_HTTP_TIMEOUT_SECONDS,
)
