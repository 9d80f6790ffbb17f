"""
Centralized configuration management.

Values are merged from three sources, later sources overriding earlier ones:
1) `env.example` (committed, safe placeholders)
2) `env.local` (optional, MUST NOT be committed)
3) System environment variables (highest priority)
"""

import os
from pathlib import Path

from dotenv import dotenv_values
from loguru import logger


class EnvironConfig:
    """
    Singleton configuration class that loads environment variables from env files
    and system environment, providing dictionary-like access with default values.
    """

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(EnvironConfig, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._config = {}
            self._load_config()
            EnvironConfig._initialized = True

    def _load_config(self):
        root = Path(__file__).parent.parent.parent

        for filename in ("env.example", "env.local"):
            path = root / filename
            if path.exists():
                self._config.update(dotenv_values(path))
                logger.info("Loaded environment variables from {}", path)

        self._config.update(os.environ)

    def __getitem__(self, key):
        if key not in self._config:
            raise KeyError(f"Configuration key '{key}' not found")
        return self._config[key]

    def get(self, key, default=None):
        return self._config.get(key, default)

    def reload(self):
        """Reload configuration from files and environment."""
        self._config.clear()
        self._load_config()
        logger.info("Configuration reloaded")

    def __contains__(self, key):
        return key in self._config

    def __iter__(self):
        return iter(self._config)

    def keys(self):
        return self._config.keys()

    def items(self):
        return self._config.items()

    def _get_labeled_url(self, prefix: str, label: str, fallback: str) -> str:
        """
        Resolve a connection URL by label.

        For the default label the lookup order is `<PREFIX>_URL_DEFAULT`,
        `<PREFIX>_URL`, then the hard-coded fallback. Other labels only look at
        `<PREFIX>_URL_<LABEL>`.
        """
        if label == "default":
            for key in (f"{prefix}_URL_DEFAULT", f"{prefix}_URL"):
                url = self.get(key)
                if url:
                    return url
            return fallback

        return self.get(f"{prefix}_URL_{label.upper()}") or ""

    def get_redis_url(self, label: str = "default") -> str:
        return self._get_labeled_url("REDIS", label, "redis://localhost:6379")

    def get_postgres_url(self, label: str = "default") -> str:
        return self._get_labeled_url("POSTGRES", label, "postgresql://localhost:5432/postgres")

    def get_mongo_url(self, label: str = "default") -> str:
        return self._get_labeled_url("MONGO", label, "mongodb://localhost:27017/creator_live")

    def get_int(self, key: str, default: int, *, minimum: int = 1) -> int:
        """Read a positive integer setting, falling back to default on bad input."""
        raw = self.get(key)
        if raw in (None, ""):
            return default
        try:
            value = int(raw)
        except (ValueError, TypeError):
            logger.warning("Invalid {} value '{}', defaulting to {}", key, raw, default)
            return default
        if value < minimum:
            logger.warning("{} value {} is below {}, defaulting to {}", key, value, minimum, default)
            return default
        return value


# Global configuration instance
config = EnvironConfig()
