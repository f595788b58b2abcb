"""Streaq worker delivering stream notifications."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any

from loguru import logger
from streaq import Worker

from streamhub.app_config import get_app_environ_config
from streamhub.schemas import StreamNotification
from streamhub.shared.api.utils import init_logger

QUEUE_KEY = "streamhub:streaq"
QUEUE_KEY_NOTIFICATIONS = f"{QUEUE_KEY}:notifications"


@asynccontextmanager
async def notification_lifespan() -> AsyncIterator[None]:
    """Lifespan context manager for the notification worker."""
    init_logger()
    logger.info("Starting notification worker")
    try:
        yield
    finally:
        logger.info("Notification worker stopped")


worker: Worker[None] = Worker(
    redis_url=get_app_environ_config().NOTIFICATION_QUEUE_URL,
    lifespan=notification_lifespan,  # type: ignore[arg-type]
    queue_name=QUEUE_KEY_NOTIFICATIONS,
)


def render_delivery(notification: StreamNotification) -> dict[str, Any]:
    """Reduce a notification to what the delivery channel needs."""
    return {
        "notification_id": notification.notification_id,
        "kind": notification.kind.value,
        "recipient_id": notification.recipient_id,
        "stream_id": notification.stream_id,
        "stream_title": notification.stream_title,
        "attendee_id": notification.attendee_id,
        "request_to_join_status": notification.request_to_join_status.value,
        "comment": notification.comment,
    }


@worker.task(ttl=timedelta(hours=1))
async def deliver_stream_notification(payload: dict[str, Any]) -> dict[str, Any]:
    """Deliver one stream notification to its recipient.

    Args:
        payload: StreamNotification serialized in JSON mode

    Returns:
        Dict with the delivery summary
    """
    notification = StreamNotification.model_validate(payload)
    delivery = render_delivery(notification)
    logger.info(
        f"Delivering {notification.kind} notification {notification.notification_id} "
        f"to {notification.recipient_id} for stream {notification.stream_id}"
    )
    return {"status": "delivered", **delivery}
