"""
Simple Redis client manager that creates and tracks cache clients.
"""

import threading
from typing import Dict

from loguru import logger
from redis.asyncio import Redis

from ..config import config
from .postgres import hide_password


class RedisManager:
    """
    Simple Redis client manager.

    Features:
    - Creates and tracks Redis cache clients per label
    - Loads connection strings from REDIS_URL_* configuration
    - Supports standalone and cluster modes (``?mode=cluster``)
    - Thread-safe singleton pattern
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

        self._cache_clients: Dict[str, Redis] = {}
        self._connection_strings: Dict[str, str] = {}
        self._lock = threading.Lock()

        self._load_connection_strings()

        self._initialized = True

    def _load_connection_strings(self):
        for key, value in config.items():
            if key.startswith("REDIS_URL_") and value:
                label = key[len("REDIS_URL_"):].lower()
                self._connection_strings[label] = value
                logger.info("Loaded Redis connection string for label '{}': {}", label, hide_password(value))

        if "default" not in self._connection_strings:
            default_url = config.get_redis_url("default")
            self._connection_strings["default"] = default_url
            logger.info("Using default Redis connection string: {}", hide_password(default_url))

    @staticmethod
    def _split_mode(connection_string: str) -> tuple[str, str]:
        """Return (clean_url, mode), removing the ``mode=`` query parameter."""
        base, _, query = connection_string.partition("?")
        params = [p for p in query.split("&") if p]
        mode = "standalone"
        kept = []
        for param in params:
            if param.startswith("mode="):
                mode = param.split("=", 1)[1] or mode
            else:
                kept.append(param)
        clean_url = f"{base}?{'&'.join(kept)}" if kept else base
        return clean_url, mode

    def get_cache_client(self, label: str | None = None) -> Redis:
        label = label or "default"

        with self._lock:
            if label not in self._cache_clients:
                if label not in self._connection_strings:
                    raise ValueError(f"No Redis connection string found for label '{label}'")

                clean_url, mode = self._split_mode(self._connection_strings[label])
                logger.info("Open Redis cache client for label '{}' (mode: {})", label, mode)

                if mode == "cluster":
                    from redis.asyncio.cluster import RedisCluster

                    self._cache_clients[label] = RedisCluster.from_url(clean_url)  # type: ignore[assignment]
                else:
                    self._cache_clients[label] = Redis.from_url(clean_url)

            return self._cache_clients[label]

    async def close_all(self):
        with self._lock:
            clients = list(self._cache_clients.items())
            self._cache_clients.clear()

        for label, client in clients:
            try:
                await client.aclose()
                logger.info("Closed Redis cache client for label '{}'", label)
            except Exception as e:
                logger.error("Error closing Redis cache client for label '{}': {}", label, e)


def get_redis_manager() -> RedisManager:
    return RedisManager()


def get_cache_client(label: str | None = None) -> Redis:
    return get_redis_manager().get_cache_client(label)
