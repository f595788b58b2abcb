"""Request/response shapes for the YouTube liveBroadcasts API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from streamhub.schemas import StreamVisibility

BROADCAST_PRIVACY_STATUS: dict[StreamVisibility, str] = {
    StreamVisibility.PUBLIC: "public",
    StreamVisibility.PROTECTED: "unlisted",
    StreamVisibility.PRIVATE: "private",
}


def to_privacy_status(visibility: StreamVisibility) -> str:
    return BROADCAST_PRIVACY_STATUS[visibility]


def rfc3339(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


class LiveBroadcastPayload(BaseModel):
    title: str
    description: str | None = None
    start_at: datetime
    end_at: datetime
    visibility: StreamVisibility = StreamVisibility.PUBLIC

    def to_body(self) -> dict[str, Any]:
        snippet: dict[str, Any] = {
            "title": self.title,
            "scheduledStartTime": rfc3339(self.start_at),
            "scheduledEndTime": rfc3339(self.end_at),
        }
        if self.description:
            snippet["description"] = self.description
        return {
            "snippet": snippet,
            "status": {
                "privacyStatus": to_privacy_status(self.visibility),
                "selfDeclaredMadeForKids": False,
            },
            "contentDetails": {"enableAutoStart": True, "enableAutoStop": True},
        }


class LiveBroadcast(BaseModel):
    id: str
    snippet: dict[str, Any] | None = None
    status: dict[str, Any] | None = None


__all__ = [
    "BROADCAST_PRIVACY_STATUS",
    "LiveBroadcast",
    "LiveBroadcastPayload",
    "rfc3339",
    "to_privacy_status",
]
