"""Stored OAuth2 authorization for members publishing live broadcasts."""

from datetime import datetime, timedelta
from typing import Any

from beanie import Document, Indexed
from pydantic import Field, field_validator

from streamhub.utils.time_utils import ensure_utc, utc_now

from .schema_utils import parse_mongo_datetime


class Oauth2Authorization(Document):
    member_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    access_token: str
    refresh_token: str | None = None
    token_type: str = "Bearer"
    scope: str | None = None
    expires_at: datetime | None = None
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("expires_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    def is_expired(self, leeway_seconds: int = 60) -> bool:
        """True when the access token expires within the leeway window."""
        if self.expires_at is None:
            return False
        return ensure_utc(self.expires_at) <= utc_now() + timedelta(seconds=leeway_seconds)

    class Settings:
        name = "oauth2_authorization"


__all__ = ["Oauth2Authorization"]
