"""Maps an organizer's country to the external calendar their events live in."""

import orjson
from loguru import logger

from streamhub.app_config import get_app_environ_config
from streamhub.utils.stream_errors import calendar_not_found


class CalendarDirectory:
    def __init__(self, calendar_ids: dict[str, str], default_calendar_id: str | None = None):
        self._calendar_ids = {country.upper(): cid for country, cid in calendar_ids.items()}
        self._default_calendar_id = default_calendar_id

    @classmethod
    def from_json(cls, raw: str, default_calendar_id: str | None = None) -> "CalendarDirectory":
        try:
            mapping = orjson.loads(raw or "{}")
        except orjson.JSONDecodeError:
            logger.warning("Invalid CALENDAR_IDS value, expected a JSON object; ignoring it")
            mapping = {}
        if not isinstance(mapping, dict):
            logger.warning("CALENDAR_IDS must be a JSON object; ignoring it")
            mapping = {}
        return cls({str(k): str(v) for k, v in mapping.items()}, default_calendar_id)

    def resolve_calendar_id(self, country: str | None) -> str:
        """Return the calendar id for a country, falling back to the default calendar.

        Raises:
            AppError: E_CALENDAR_NOT_FOUND if neither is configured
        """
        if country:
            calendar_id = self._calendar_ids.get(country.upper())
            if calendar_id:
                return calendar_id
        if self._default_calendar_id:
            return self._default_calendar_id
        raise calendar_not_found(country)


_settings = get_app_environ_config()

calendar_directory = CalendarDirectory.from_json(
    _settings.CALENDAR_IDS, _settings.DEFAULT_CALENDAR_ID
)
