import atexit
import inspect
import threading
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import AsyncIterator, Dict

import asyncpg
from asyncpg import Connection
from loguru import logger

from ..config import config

_registered_logger_connections: set[int] = set()
_registered_logger_lock = threading.Lock()
_query_context: ContextVar[dict[str, str] | None] = ContextVar("_cl_query_context", default=None)


def _connection_query_logger(record) -> None:
    """Log executed queries using loguru without assuming record internals."""
    try:
        parts = ["SQL: {}", getattr(record, "query", None)]
        for name in ("args", "elapsed", "exception"):
            value = getattr(record, name, None)
            if value:
                parts[0] += f" | {name}={{}}"
                parts.append(value)

        ctx = _query_context.get()
        if ctx and ctx.get("call_site"):
            parts[0] += " | caller={}"
            parts.append(ctx["call_site"])

        logger.debug(*parts)
    except Exception as exc:  # pragma: no cover - safeguard against logging errors
        logger.debug("SQL: <unable to log query> ({})", exc)


def hide_password(url: str) -> str:
    try:
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            at = rest.rfind("@")
            auth, host = rest[:at], rest[at + 1:]
            if ":" in auth:
                user, pwd = auth.split(":", 1)
                if user and pwd:
                    return f"{proto}://{user}:***@{host}"
        return url
    except Exception:
        return url


class AsyncPGClient:
    """Thin wrapper over an asyncpg connection that tags queries with their call site."""

    def __init__(self, conn: Connection):
        self.conn = conn
        self._ensure_query_logger()

    @staticmethod
    def _call_site() -> str:
        frame = inspect.currentframe()
        while frame:
            module = frame.f_globals.get("__name__", "")
            if not module.startswith(__name__):
                return f"{module}:{frame.f_code.co_name}:{frame.f_lineno}"
            frame = frame.f_back
        return "unknown"

    async def _run_with_query_context(self, coro_factory):
        token = _query_context.set({"call_site": self._call_site()})
        try:
            return await coro_factory()
        finally:
            _query_context.reset(token)

    async def execute(self, query: str, *args, **kwargs):
        return await self._run_with_query_context(lambda: self.conn.execute(query, *args, **kwargs))

    async def executemany(self, query: str, args, **kwargs):
        return await self._run_with_query_context(lambda: self.conn.executemany(query, args, **kwargs))

    async def fetch(self, query: str, *args, **kwargs):
        return await self._run_with_query_context(lambda: self.conn.fetch(query, *args, **kwargs))

    async def fetchrow(self, query: str, *args, **kwargs):
        return await self._run_with_query_context(lambda: self.conn.fetchrow(query, *args, **kwargs))

    async def fetchval(self, query: str, *args, **kwargs):
        return await self._run_with_query_context(lambda: self.conn.fetchval(query, *args, **kwargs))

    def transaction(self, **kwargs):
        """Start a (possibly nested) transaction; nested calls become savepoints."""
        return self.conn.transaction(**kwargs)

    def _ensure_query_logger(self) -> None:
        if not hasattr(self.conn, "add_query_logger"):
            return

        conn_id = id(self.conn)
        with _registered_logger_lock:
            if conn_id in _registered_logger_connections:
                return
            try:
                self.conn.add_query_logger(_connection_query_logger)
            except Exception as exc:  # pragma: no cover - log but do not break queries
                logger.debug("Failed to attach query logger: {}", exc)
                return
            _registered_logger_connections.add(conn_id)


class PgSession:
    """
    Async context session that acquires a connection from a labeled pool and
    returns an AsyncPGClient. On exit, the connection is released to the pool.
    """

    def __init__(self, manager: "PostgresManager", label: str):
        self._manager = manager
        self._label = label
        self._conn: Connection | None = None

    async def __aenter__(self) -> AsyncPGClient:
        self._conn = await self._manager.acquire(self._label)
        return AsyncPGClient(self._conn)

    async def __aexit__(self, exc_type, exc, tb):
        if self._conn is not None:
            await self._manager.release(self._conn, self._label)
            self._conn = None


class PostgresManager:
    """
    PostgreSQL client manager using asyncpg pools.

    - Singleton, thread-safe
    - Labeled pools loaded from configuration (POSTGRES_URL_*)
    - Context-managed session and transaction helpers
    - Cleanup on process exit
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

        self._pools: Dict[str, asyncpg.Pool] = {}
        self._connection_strings: Dict[str, str] = {}
        self._lock = threading.Lock()

        self._load_connection_strings()

        atexit.register(self._cleanup)
        self._initialized = True

    def _load_connection_strings(self):
        for key, value in config.items():
            if key.startswith("POSTGRES_URL_") and value:
                label = key[len("POSTGRES_URL_"):].lower()
                self._connection_strings[label] = value
                logger.info("Loaded Postgres URL for label '{}': {}", label, hide_password(value))

        if "default" not in self._connection_strings:
            default_url = config.get_postgres_url("default")
            self._connection_strings["default"] = default_url
            logger.info("Using default Postgres URL: {}", hide_password(default_url))

    async def get_pool(self, label: str | None = None) -> asyncpg.Pool:
        label = label or "default"
        if label not in self._connection_strings:
            raise ValueError(f"No Postgres connection string found for label '{label}'")

        pool = self._pools.get(label)
        if pool is not None:
            return pool

        logger.info("Open Postgres pool for label '{}'", label)
        pool = await asyncpg.create_pool(self._connection_strings[label])
        with self._lock:
            existing = self._pools.setdefault(label, pool)
        if existing is not pool:
            await pool.close()
        return existing

    async def acquire(self, label: str | None = None) -> Connection:
        pool = await self.get_pool(label)
        return await pool.acquire()

    async def release(self, conn: Connection, label: str | None = None):
        pool = await self.get_pool(label)
        try:
            await pool.release(conn)
        except Exception as e:
            logger.warning("Error releasing Postgres connection: {}", e)

    def session(self, label: str | None = None) -> PgSession:
        return PgSession(self, label or "default")

    @asynccontextmanager
    async def transaction(self, label: str | None = None) -> AsyncIterator[AsyncPGClient]:
        """
        Acquire one connection, open a transaction on it and yield the client.

        The transaction commits when the block exits normally and rolls back on
        any exception; the connection is released exactly once either way.
        """
        async with self.session(label) as client:
            async with client.transaction():
                yield client

    async def close_all(self):
        with self._lock:
            pools = list(self._pools.items())
            self._pools.clear()
        for label, pool in pools:
            try:
                await pool.close()
                logger.info("Closed Postgres pool for label '{}'", label)
            except Exception as e:
                logger.error("Error closing Postgres pool for label '{}': {}", label, e)

    def _cleanup(self):
        labels = list(self._pools.keys())
        for label in labels:
            logger.info("Free Postgres pool for label '{}'", label)
            pool = self._pools.pop(label, None)
            if pool is not None:
                pool.terminate()


_pg_manager: PostgresManager | None = None


def get_postgres_manager() -> PostgresManager:
    global _pg_manager
    if _pg_manager is None:
        _pg_manager = PostgresManager()
    return _pg_manager


def pg_session(label: str | None = None) -> PgSession:
    return get_postgres_manager().session(label)
