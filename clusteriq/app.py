"""Application bootstrap for ClusterIQ.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → snapshot store client → inventory cache → REST

Shutdown is graceful: components are stopped in reverse startup order.
Each component's stop error is caught and logged independently so that a
single component failure does not prevent the rest from shutting down.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

from clusteriq.config import load_config
from clusteriq.models.config import ClusterIQConfig
from clusteriq.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class ClusterIQApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    Calling ``stop()`` on an app that was never started (or already
    stopped) is safe.
    """

    def __init__(self) -> None:
        self.config: ClusterIQConfig | None = None

        self._store_client: object | None = None
        self._cache: object | None = None
        self._rest_server: object | None = None

        self._background_tasks: list[asyncio.Task[None]] = []

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        The caller (main()) turns this into a non-zero exit.
        """
        # --- 1. Configuration -------------------------------------------
        try:
            self.config = load_config()
        except ValueError as exc:
            raise _ComponentError("config", exc) from exc

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level)
        self._log = get_logger("app")
        self._log.info("clusteriq starting", version=_clusteriq_version())
        self._log.info(
            "connection properties",
            api_url=self.config.api.address,
            db_url=self.config.store.address,
            snapshot_key=self.config.store.key,
        )

        # --- 3. Snapshot store client ------------------------------------
        await self._start_store_client()

        # --- 4. Inventory cache ------------------------------------------
        await self._start_cache()

        # --- 5. REST API -------------------------------------------------
        await self._start_rest()

        self._running = True
        self._log.info("clusteriq started, ready to serve", port=self.config.api.port)

    # ------------------------------------------------------------------
    # Component startup helpers
    # ------------------------------------------------------------------

    async def _start_store_client(self) -> None:
        """Build the Redis snapshot client.  An unreachable store is only a warning."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting snapshot store client")
        try:
            from clusteriq.store import SnapshotStoreClient

            client = SnapshotStoreClient.from_config(self.config.store)
        except Exception as exc:
            raise _ComponentError("store_client", exc) from exc

        self._store_client = client
        if await client.ping():
            self._log.info("snapshot store reachable", address=client.address)
        else:
            # Queries still serve (empty) data; the cache retries on every request.
            self._log.warning("snapshot store unreachable at startup", address=client.address)

    async def _start_cache(self) -> None:
        """Build the InventoryCache and attempt a first load."""
        assert self._log is not None
        assert self.config is not None
        assert self._store_client is not None
        self._log.debug("starting inventory cache")
        try:
            from clusteriq.cache import InventoryCache

            cache = InventoryCache(
                source=self._store_client,  # type: ignore[arg-type]
                fetch_timeout=self.config.store.timeout_seconds,
                max_staleness_seconds=self.config.cache.max_staleness_seconds,
            )
        except Exception as exc:
            raise _ComponentError("cache", exc) from exc

        await cache.refresh()
        self._cache = cache
        self._log.info("inventory cache started", cache_state=cache.readiness().value)

    async def _start_rest(self) -> None:
        """Start the uvicorn REST server."""
        assert self._log is not None
        assert self.config is not None
        assert self._cache is not None
        self._log.debug("starting rest api")
        try:
            import uvicorn

            from clusteriq.api import build_app

            fastapi_app = build_app(cache=self._cache, config=self.config)
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host=self.config.api.host,
                port=self.config.api.port,
                log_config=None,  # structlog handles all logging
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            task = asyncio.create_task(server.serve(), name="rest-server")
            self._background_tasks.append(task)
            self._rest_server = server
            self._log.info("rest api started", address=self.config.api.address)
        except Exception as exc:
            raise _ComponentError("rest", exc) from exc

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Gracefully stop all components in reverse startup order."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("clusteriq shutting down")

        self._running = False

        if self._rest_server is not None:
            self._rest_server.should_exit = True  # type: ignore[attr-defined]

        for task in reversed(self._background_tasks):
            if not task.done():
                task.cancel()

        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks.clear()

        await self._stop_component("cache", self._cache)
        await self._stop_store_client()

        log.info("clusteriq stopped")

    async def _stop_component(self, name: str, component: object | None) -> None:
        """Call stop() on a component if it has that method, catching all errors."""
        if component is None:
            return
        log = self._log or get_logger("app")
        stop_fn = getattr(component, "stop", None)
        if stop_fn is None:
            return
        try:
            result = stop_fn()
            if asyncio.iscoroutine(result):
                await asyncio.wait_for(result, timeout=_SHUTDOWN_GRACE_SECONDS)
        except TimeoutError:
            log.warning("component stop timed out", component=name, timeout=_SHUTDOWN_GRACE_SECONDS)
        except Exception as exc:
            log.error("component stop raised an error", component=name, error=str(exc))

    async def _stop_store_client(self) -> None:
        """Close the Redis connection pool."""
        if self._store_client is None:
            return
        log = self._log or get_logger("app")
        try:
            await self._store_client.close()  # type: ignore[attr-defined]
        except Exception as exc:
            log.debug("store client close raised (non-fatal)", error=str(exc))
        self._store_client = None


def _clusteriq_version() -> str:
    from clusteriq import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = ClusterIQApp()
    loop = asyncio.get_running_loop()

    shutdown_triggered = False

    def _request_shutdown() -> None:
        nonlocal shutdown_triggered
        if shutdown_triggered:
            return
        shutdown_triggered = True
        asyncio.create_task(app.stop(), name="shutdown")

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.start()
        while app._running:
            await asyncio.sleep(1)
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app._running:
            await app.stop()
