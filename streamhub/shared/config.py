"""
Process-wide settings store.

Values are layered, later sources winning:
    env.example  ->  env.local  ->  os.environ

`env.local` holds developer secrets and stays out of version control.
"""

import os
from pathlib import Path

from dotenv import dotenv_values
from loguru import logger

PROJECT_ROOT = Path(__file__).resolve().parents[2]
ENV_FILES = ("env.example", "env.local")

DEFAULT_MONGO_POOL_SIZE = 5


class EnvironConfig:
    """Singleton holding the merged env files and process environment."""

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._values: dict[str, str | None] = {}
            self._load()
            EnvironConfig._initialized = True

    def _load(self):
        for name in ENV_FILES:
            path = PROJECT_ROOT / name
            if path.exists():
                self._values.update(dotenv_values(path))
                logger.info("Loaded settings from {}", path)
        self._values.update(os.environ)

    def get(self, key, default=None):
        return self._values.get(key, default)

    def get_flag(self, key: str, default: bool = False) -> bool:
        """Read a "true"/"false" setting."""
        value = self._values.get(key)
        if value is None:
            return default
        return str(value).strip().lower() == "true"

    def get_mongo_url(self, label: str) -> str:
        """MONGO_URL_<LABEL>, falling back to MONGO_URL and then a local server."""
        return (
            self.get(f"MONGO_URL_{label.upper()}")
            or self.get("MONGO_URL")
            or "mongodb://localhost:27017"
        )

    def get_mongo_max_pool_size(self) -> int:
        raw = self.get("MONGO_MAX_POOL_SIZE")
        if not raw:
            return DEFAULT_MONGO_POOL_SIZE
        try:
            size = int(raw)
        except ValueError:
            logger.warning("Ignoring non-numeric MONGO_MAX_POOL_SIZE={!r}", raw)
            return DEFAULT_MONGO_POOL_SIZE
        if not 1 <= size <= 100:
            logger.warning("MONGO_MAX_POOL_SIZE={} outside 1-100, using default", size)
            return DEFAULT_MONGO_POOL_SIZE
        return size


config = EnvironConfig()
