"""Motor clients shared across the process, one per connection label."""

import atexit
import threading

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient

from ..config import config


class MongoManager:
    """
    Process-wide registry of Motor clients keyed by label.

    The label selects MONGO_URL_<LABEL>. Clients are tz-aware and closed at exit.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, "_initialized"):
            return

        self._clients: dict[str, AsyncIOMotorClient] = {}
        self._max_pool_size = config.get_mongo_max_pool_size()
        self._client_lock = threading.Lock()

        atexit.register(self.close_all)

        self._initialized = True

    def get_client(self, label: str) -> AsyncIOMotorClient:
        """Return the client for a label, creating it on first use."""
        with self._client_lock:
            client = self._clients.get(label)
            if client is not None:
                return client

            url = config.get_mongo_url(label)
            logger.info("Creating MongoDB client for label '{}'", label)
            client = AsyncIOMotorClient(
                url,
                maxPoolSize=self._max_pool_size,
                tz_aware=True,
            )
            self._clients[label] = client
            return client

    def close_client(self, label: str) -> None:
        with self._client_lock:
            client = self._clients.pop(label, None)
        if client is not None:
            client.close()
            logger.debug("Closed MongoDB client for label '{}'", label)

    def close_all(self) -> None:
        for label in list(self._clients):
            self.close_client(label)


def get_mongo_manager() -> MongoManager:
    return MongoManager()


def get_mongo_client(label: str) -> AsyncIOMotorClient:
    return get_mongo_manager().get_client(label)
