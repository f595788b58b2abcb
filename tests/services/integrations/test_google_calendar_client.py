"""Tests for GoogleCalendarClient against a mocked transport."""

from datetime import datetime, timezone

import httpx
import orjson
import pytest

from streamhub.schemas import StreamVisibility
from streamhub.services.integrations.google_calendar import (
    CalendarAttendee,
    CalendarEventPayload,
    GoogleCalendarClient,
)

BASE_URL = "https://calendar.test/calendar/v3"


class RecordingTransport(httpx.MockTransport):
    """Mock transport that keeps every request it served."""

    def __init__(self, responses: list[httpx.Response]):
        self.requests: list[httpx.Request] = []
        self._responses = list(responses)
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responses.pop(0)


def make_client(*responses: httpx.Response) -> tuple[GoogleCalendarClient, RecordingTransport]:
    transport = RecordingTransport(list(responses))
    client = GoogleCalendarClient(
        BASE_URL, api_token="calendar-token", demo_mode=False, transport=transport
    )
    return client, transport


def payload() -> CalendarEventPayload:
    return CalendarEventPayload(
        title="Town hall",
        start_at=datetime(2030, 1, 1, 9, tzinfo=timezone.utc),
        end_at=datetime(2030, 1, 1, 10, tzinfo=timezone.utc),
        timezone="UTC",
        visibility=StreamVisibility.PROTECTED,
        attendees=[CalendarAttendee(email="org@example.com", organizer=True)],
        stream_id="st_1",
    )


class TestDemoMode:
    async def test_create_event_stubbed(self):
        transport = RecordingTransport([])
        client = GoogleCalendarClient(BASE_URL, demo_mode=True, transport=transport)

        event_id = await client.create_event("primary", payload())

        assert event_id.startswith("demo_evt_")
        assert transport.requests == []

    async def test_attendee_changes_stubbed(self):
        transport = RecordingTransport([])
        client = GoogleCalendarClient(BASE_URL, demo_mode=True, transport=transport)

        await client.add_attendee("primary", "evt_1", "a@example.com")
        await client.remove_attendee("primary", "evt_1", "a@example.com")

        assert transport.requests == []


class TestCreateEvent:
    async def test_posts_event(self):
        client, transport = make_client(
            httpx.Response(200, json={"id": "evt_9", "status": "confirmed"})
        )

        event_id = await client.create_event("primary", payload())

        assert event_id == "evt_9"
        [request] = transport.requests
        assert request.method == "POST"
        assert request.url.path == "/calendar/v3/calendars/primary/events"
        assert request.url.params["sendUpdates"] == "all"
        assert request.headers["Authorization"] == "Bearer calendar-token"
        body = orjson.loads(request.content)
        assert body["summary"] == "Town hall"
        assert body["visibility"] == "private"
        assert body["attendees"] == [{"email": "org@example.com", "organizer": True}]

    async def test_error_status_raises(self):
        client, _ = make_client(httpx.Response(403, json={"error": "forbidden"}))

        with pytest.raises(httpx.HTTPStatusError):
            await client.create_event("primary", payload())


class TestAttendees:
    async def test_add_attendee_appends(self):
        client, transport = make_client(
            httpx.Response(200, json={"id": "evt_1", "attendees": [{"email": "org@example.com"}]}),
            httpx.Response(200, json={"id": "evt_1"}),
        )

        await client.add_attendee("primary", "evt_1", "alice@example.com", "Hi")

        get_request, patch_request = transport.requests
        assert get_request.method == "GET"
        assert patch_request.method == "PATCH"
        assert orjson.loads(patch_request.content) == {
            "attendees": [
                {"email": "org@example.com"},
                {"email": "alice@example.com", "comment": "Hi"},
            ]
        }

    async def test_add_attendee_already_invited(self):
        client, transport = make_client(
            httpx.Response(200, json={"id": "evt_1", "attendees": [{"email": "Alice@Example.com"}]}),
        )

        await client.add_attendee("primary", "evt_1", "alice@example.com")

        assert [r.method for r in transport.requests] == ["GET"]

    async def test_remove_attendee(self):
        client, transport = make_client(
            httpx.Response(
                200,
                json={
                    "id": "evt_1",
                    "attendees": [{"email": "org@example.com"}, {"email": "alice@example.com"}],
                },
            ),
            httpx.Response(200, json={"id": "evt_1"}),
        )

        await client.remove_attendee("primary", "evt_1", "alice@example.com")

        assert orjson.loads(transport.requests[1].content) == {
            "attendees": [{"email": "org@example.com"}]
        }


class TestEventChanges:
    async def test_cancel_event(self):
        client, transport = make_client(httpx.Response(200, json={"id": "evt_1"}))

        await client.cancel_event("primary", "evt_1")

        [request] = transport.requests
        assert request.method == "PATCH"
        assert orjson.loads(request.content) == {"status": "cancelled"}

    async def test_update_visibility(self):
        client, transport = make_client(httpx.Response(200, json={"id": "evt_1"}))

        await client.update_visibility("primary", "evt_1", StreamVisibility.PUBLIC)

        assert orjson.loads(transport.requests[0].content) == {"visibility": "public"}

    async def test_patch_without_changes_sends_nothing(self):
        client, transport = make_client()

        await client.patch_event("primary", "evt_1", {"title": None})

        assert transport.requests == []

    async def test_delete_already_gone(self):
        client, transport = make_client(httpx.Response(410))

        await client.delete_event("primary", "evt_1")

        assert transport.requests[0].method == "DELETE"

    async def test_calendar_id_is_escaped(self):
        client, transport = make_client(httpx.Response(204))

        await client.delete_event("team@group.calendar.google.com", "evt_1")

        assert b"team%40group.calendar.google.com" in transport.requests[0].url.raw_path
