from pydantic import BaseModel

from streamhub.shared.config import config


class AppEnvironConfig(BaseModel):
    # Demo switch: when enabled, external integrations use stubs and avoid network calls.
    DEMO_MODE: bool = config.get("DEMO_MODE", "true").strip().lower() == "true"  # type: ignore
    DEBUG: bool = config.get("DEBUG", "false").strip().lower() == "true"  # type: ignore

    # HTTP server
    API_HOST: str = config.get("API_HOST", "0.0.0.0").strip()  # type: ignore
    API_PORT: int = int((config.get("API_PORT") or "").strip() or 8000)
    API_WORKERS: int = int((config.get("API_WORKERS") or "").strip() or 1)
    API_CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in (config.get("API_CORS_ORIGINS") or "*").split(",")
        if origin.strip()
    ]

    # MongoDB
    MONGO_LABEL: str = config.get("MONGO_LABEL", "streamhub").strip()  # type: ignore
    MONGO_DB_NAME: str = config.get("MONGO_DB_STREAMHUB", "streamhub").strip()  # type: ignore

    # Google Calendar
    GOOGLE_CALENDAR_BASE_URL: str = config.get(
        "GOOGLE_CALENDAR_BASE_URL", "https://www.googleapis.com/calendar/v3"
    ).strip()  # type: ignore
    GOOGLE_CALENDAR_API_TOKEN: str | None = (
        config.get("GOOGLE_CALENDAR_API_TOKEN") or ""
    ).strip() or None
    GOOGLE_DELEGATED_AUTHORITY_EMAIL: str | None = (
        config.get("GOOGLE_DELEGATED_AUTHORITY_EMAIL") or ""
    ).strip() or None

    # Calendar resolution: JSON object of ISO country code -> external calendar id
    CALENDAR_IDS: str = (config.get("CALENDAR_IDS") or "").strip() or "{}"
    DEFAULT_CALENDAR_ID: str | None = (config.get("DEFAULT_CALENDAR_ID") or "").strip() or None

    # YouTube live broadcasts
    YOUTUBE_BASE_URL: str = config.get(
        "YOUTUBE_BASE_URL", "https://www.googleapis.com/youtube/v3"
    ).strip()  # type: ignore

    # OAuth2 token refresh
    OAUTH2_TOKEN_URL: str = config.get(
        "OAUTH2_TOKEN_URL", "https://oauth2.googleapis.com/token"
    ).strip()  # type: ignore
    OAUTH2_CLIENT_ID: str | None = (config.get("OAUTH2_CLIENT_ID") or "").strip() or None
    OAUTH2_CLIENT_SECRET: str | None = (config.get("OAUTH2_CLIENT_SECRET") or "").strip() or None

    # Member directory (identity lookup)
    MEMBER_API_BASE_URL: str | None = (config.get("MEMBER_API_BASE_URL") or "").strip() or None
    MEMBER_API_KEY: str | None = (config.get("MEMBER_API_KEY") or "").strip() or None

    # External calls
    EXTERNAL_HTTP_TIMEOUT_SECONDS: int = int(
        (config.get("EXTERNAL_HTTP_TIMEOUT_SECONDS") or "").strip() or 30
    )

    # Streams
    INSTANT_EVENT_DEFAULT_MINUTES: int = int(
        (config.get("INSTANT_EVENT_DEFAULT_MINUTES") or "").strip() or 60
    )

    # Notifications
    NOTIFICATION_QUEUE_ENABLED: bool = (
        config.get("NOTIFICATION_QUEUE_ENABLED", "false").strip().lower() == "true"  # type: ignore
    )
    NOTIFICATION_QUEUE_URL: str = config.get(
        "NOTIFICATION_QUEUE_URL", "redis://localhost:6379"
    ).strip()  # type: ignore

    # Observability
    LOGFIRE_ENABLE: bool = config.get("LOGFIRE_ENABLE", "false").strip().lower() == "true"  # type: ignore
    LOGFIRE_TOKEN: str | None = (config.get("LOGFIRE_TOKEN") or "").strip() or None


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
