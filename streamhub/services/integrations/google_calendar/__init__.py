from .calendar_schemas import CalendarAttendee, CalendarEvent, CalendarEventPayload
from .google_calendar_client import GoogleCalendarClient, google_calendar_client

__all__ = [
    "CalendarAttendee",
    "CalendarEvent",
    "CalendarEventPayload",
    "GoogleCalendarClient",
    "google_calendar_client",
]
