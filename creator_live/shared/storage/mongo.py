"""
Simple MongoDB client manager that creates and tracks clients.
"""

import threading
from typing import Dict

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient

from ..config import config
from .postgres import hide_password


class MongoManager:
    """
    Simple MongoDB client manager.

    Environment Variables Priority (highest to lowest):
    1. MONGO_URL_<LABEL> - labeled connection string
    2. MONGO_URL_DEFAULT / MONGO_URL - default connection string
    3. Hardcoded fallback - mongodb://localhost:27017/creator_live
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

        self._clients: Dict[str, AsyncIOMotorClient] = {}
        self._connection_strings: Dict[str, str] = {}
        self._max_pool_size = config.get_int("MONGO_MAX_POOL_SIZE", 5)
        self._server_selection_timeout = config.get_int("MONGO_SERVER_SELECTION_TIMEOUT", 30000)
        self._connect_timeout = config.get_int("MONGO_CONNECT_TIMEOUT", 30000)
        self._socket_timeout = config.get_int("MONGO_SOCKET_TIMEOUT", 300000)
        self._lock = threading.Lock()

        self._load_connection_strings()

        self._initialized = True

    def _load_connection_strings(self):
        for key, value in config.items():
            if key.startswith("MONGO_URL_") and value:
                label = key[len("MONGO_URL_"):].lower()
                self._connection_strings[label] = value
                logger.info("Loaded MongoDB connection string for label '{}': {}", label, hide_password(value))

        if "default" not in self._connection_strings:
            self._connection_strings["default"] = config.get_mongo_url("default")

        logger.info(
            "MongoDB parameters: pool={} server_selection={}ms connect={}ms socket={}ms",
            self._max_pool_size,
            self._server_selection_timeout,
            self._connect_timeout,
            self._socket_timeout,
        )

    def get_client(self, label: str | None = None) -> AsyncIOMotorClient:
        label = label or "default"

        with self._lock:
            if label not in self._clients:
                if label not in self._connection_strings:
                    raise ValueError(f"No MongoDB connection string found for label '{label}'")

                logger.info("Open MongoDB client for label '{}'", label)
                self._clients[label] = AsyncIOMotorClient(
                    self._connection_strings[label],
                    serverSelectionTimeoutMS=self._server_selection_timeout,
                    connectTimeoutMS=self._connect_timeout,
                    socketTimeoutMS=self._socket_timeout,
                    maxPoolSize=self._max_pool_size,
                )

            return self._clients[label]

    def close_all(self):
        with self._lock:
            clients = list(self._clients.items())
            self._clients.clear()

        for label, client in clients:
            try:
                client.close()
                logger.info("Closed MongoDB client for label '{}'", label)
            except Exception as e:
                logger.error("Error closing MongoDB client for label '{}': {}", label, e)


def get_mongo_manager() -> MongoManager:
    return MongoManager()


def get_mongo_client(label: str | None = None) -> AsyncIOMotorClient:
    return get_mongo_manager().get_client(label)
