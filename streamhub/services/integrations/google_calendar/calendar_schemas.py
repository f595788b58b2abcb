"""Request/response shapes for the Google Calendar events API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from streamhub.schemas import StreamVisibility

# Calendar events only distinguish public and private
CALENDAR_VISIBILITY: dict[StreamVisibility, str] = {
    StreamVisibility.PUBLIC: "public",
    StreamVisibility.PRIVATE: "private",
    StreamVisibility.PROTECTED: "private",
}


def to_calendar_visibility(visibility: StreamVisibility) -> str:
    return CALENDAR_VISIBILITY[visibility]


def event_time(dt: datetime, timezone: str) -> dict[str, str]:
    return {"dateTime": dt.isoformat(), "timeZone": timezone}


class CalendarAttendee(BaseModel):
    email: str
    display_name: str | None = None
    comment: str | None = None
    organizer: bool = False

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"email": self.email}
        if self.display_name:
            body["displayName"] = self.display_name
        if self.comment:
            body["comment"] = self.comment
        if self.organizer:
            body["organizer"] = True
        return body


class CalendarEventPayload(BaseModel):
    """Calendar event to create for a stream."""

    title: str
    description: str | None = None
    location: str | None = None
    start_at: datetime
    end_at: datetime
    timezone: str = "UTC"
    visibility: StreamVisibility = StreamVisibility.PUBLIC
    attendees: list[CalendarAttendee] = Field(default_factory=list)
    # Shared by the streaming service to link the calendar event back to the stream
    stream_id: str | None = None

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "summary": self.title,
            "start": event_time(self.start_at, self.timezone),
            "end": event_time(self.end_at, self.timezone),
            "visibility": to_calendar_visibility(self.visibility),
            "attendees": [attendee.to_body() for attendee in self.attendees],
            "guestsCanSeeOtherGuests": False,
        }
        if self.description:
            body["description"] = self.description
        if self.location:
            body["location"] = self.location
        if self.stream_id:
            body["extendedProperties"] = {"shared": {"stream_id": self.stream_id}}
        return body


class CalendarEvent(BaseModel):
    """Subset of the calendar event resource the service reads back."""

    id: str
    status: str | None = None
    visibility: str | None = None
    attendees: list[dict[str, Any]] = Field(default_factory=list)


__all__ = [
    "CALENDAR_VISIBILITY",
    "CalendarAttendee",
    "CalendarEvent",
    "CalendarEventPayload",
    "event_time",
    "to_calendar_visibility",
]
