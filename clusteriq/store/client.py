"""Redis-backed snapshot store client.

The whole inventory lives under one well-known key as a JSON document
written by the scanner.  The client performs a single GET per call and
keeps no state between calls beyond the Redis connection pool.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

if TYPE_CHECKING:
    from clusteriq.models.config import StoreConfig

_log = structlog.get_logger(component="store.client")


class RetrievalError(Exception):
    """Raised when the snapshot cannot be read from the backing store.

    Covers unreachable stores, timeouts, authentication failures and a
    missing key alike; the underlying exception is kept in ``cause``.
    """

    def __init__(self, message: str, *, key: str = "", cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.key = key
        self.cause = cause


class SnapshotSource(Protocol):
    """Anything that can produce a serialized inventory snapshot."""

    async def fetch_snapshot(self, timeout: float | None = None) -> bytes: ...


class SnapshotStoreClient:
    """Fetches the serialized inventory from Redis.

    Args:
        host:     Redis host.
        port:     Redis port.
        key:      Key holding the snapshot.
        password: Optional Redis password.
        db:       Logical Redis database index.
        timeout:  Default deadline in seconds for each fetch.
        client:   Pre-built ``redis.asyncio.Redis`` (tests inject a mock).
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        key: str = "Stock",
        password: str = "",
        db: int = 0,
        timeout: float = 5.0,
        client: redis.Redis | None = None,
    ) -> None:
        if not key:
            raise ValueError("Snapshot key must not be empty")
        self._key = key
        self._timeout = timeout
        self._address = f"{host}:{port}"
        self._redis = client or redis.Redis(
            host=host,
            port=port,
            db=db,
            password=password or None,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )

    @classmethod
    def from_config(cls, config: StoreConfig) -> SnapshotStoreClient:
        return cls(
            host=config.host,
            port=config.port,
            key=config.key,
            password=config.password,
            db=config.db,
            timeout=config.timeout_seconds,
        )

    @property
    def key(self) -> str:
        return self._key

    @property
    def address(self) -> str:
        return self._address

    async def fetch_snapshot(self, timeout: float | None = None) -> bytes:
        """Return the raw snapshot stored under the configured key.

        Raises:
            RetrievalError: on any transport failure, when *timeout* (or the
                default deadline) expires, or when the key does not exist.
        """
        deadline = self._timeout if timeout is None else timeout
        try:
            value = await asyncio.wait_for(self._redis.get(self._key), timeout=deadline)
        except TimeoutError as exc:
            raise RetrievalError(
                f"timed out after {deadline}s reading key {self._key!r} from {self._address}",
                key=self._key,
                cause=exc,
            ) from exc
        except RedisError as exc:
            raise RetrievalError(
                f"cannot read key {self._key!r} from {self._address}: {exc}",
                key=self._key,
                cause=exc,
            ) from exc

        if value is None:
            raise RetrievalError(f"key {self._key!r} not found on {self._address}", key=self._key)
        if isinstance(value, str):
            return value.encode()
        return bytes(value)

    async def ping(self) -> bool:
        """Check connectivity.  Never raises; returns False when unreachable."""
        try:
            return bool(await asyncio.wait_for(self._redis.ping(), timeout=self._timeout))
        except (TimeoutError, RedisError) as exc:
            _log.warning("store_ping_failed", address=self._address, error=str(exc))
            return False

    async def close(self) -> None:
        """Release the connection pool."""
        await self._redis.aclose()
