"""Fire-and-forget publication of stream notifications."""

from loguru import logger

from streamhub.app_config import get_app_environ_config
from streamhub.schemas import StreamNotification


class NotificationPublisher:
    """Publishes notifications to the notification worker queue, or logs them when the
    queue is disabled. Never raises: a failed publication is logged and dropped."""

    def __init__(self, queue_enabled: bool | None = None):
        self._queue_enabled = queue_enabled

    @property
    def queue_enabled(self) -> bool:
        if self._queue_enabled is not None:
            return self._queue_enabled
        return get_app_environ_config().NOTIFICATION_QUEUE_ENABLED

    async def _enqueue(self, notification: StreamNotification) -> str | None:
        from streamhub.workers.notification_worker import deliver_stream_notification, worker

        async with worker:
            task = await deliver_stream_notification.enqueue(notification.model_dump(mode="json"))
        return task.id if task else None

    async def publish(self, notification: StreamNotification) -> None:
        try:
            if not self.queue_enabled:
                logger.info(
                    f"Notification {notification.kind} for stream {notification.stream_id} "
                    f"-> {notification.recipient_id} (queue disabled, not delivered)"
                )
                return

            task_id = await self._enqueue(notification)
            logger.info(
                f"Queued {notification.kind} notification {notification.notification_id} "
                f"for stream {notification.stream_id} task={task_id}"
            )
        except Exception as e:
            logger.warning(
                f"Failed to publish {notification.kind} notification for stream "
                f"{notification.stream_id}: {e}"
            )


notification_publisher = NotificationPublisher()
