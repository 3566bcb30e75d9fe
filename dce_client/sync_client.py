# =============================================================================
# DCE Python Client -- Synchronous Wrapper
# =============================================================================
#
# Thread-based wrapper around AsyncDCEClient for blocking usage.
# =============================================================================

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Sequence

from ._logging import logger
from .client import AsyncDCEClient
from .config import ClientConfig
from .errors import DCEConnectionError, DCETimeoutError
from .types import ConnectionState, ConsumerHandler, ConsumerRegistration


class SyncDCEClient:
    """Blocking / thread-based DCE client.

    Runs an :class:`AsyncDCEClient` on a background event loop thread.
    Consumer handlers are invoked on that thread.

    Args:
        url: WebSocket endpoint.  Falls back to ``DCE_SOCKET_URL``.
        config: Full :class:`ClientConfig`.
        debug: Enable diagnostic logging.

    Example::

        client = SyncDCEClient("ws://localhost:8000/dce/")

        @client.consumer
        def notifications(data, error, error_data):
            print(data)

        client.connect()
        invoice = client.call("billing.invoice.create", {"amount": 10})
        client.close()
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        config: ClientConfig | None = None,
        debug: bool = False,
        transport: Any | None = None,
    ) -> None:
        self._client = AsyncDCEClient(url, config=config, debug=debug, transport=transport)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._loop_started = threading.Event()
        self._running = False

    # -- Lifecycle ------------------------------------------------------------

    def connect(self, timeout: float = 15.0) -> None:
        """Start the background loop and open the connection.  Blocks until open."""
        if self._running:
            return

        self._running = True
        self._loop_started.clear()
        self._thread = threading.Thread(
            target=self._run_loop, daemon=True, name="dce-client"
        )
        self._thread.start()
        self._loop_started.wait()

        try:
            self._submit(self._client.connect(), timeout)
        except Exception:
            self._stop_loop()
            raise

    def wait_until_ready(self, timeout: float | None = None) -> None:
        """Block until the server manifest has been installed."""
        self._submit(self._client.wait_until_ready(), timeout)

    def close(self) -> None:
        """Close the connection and stop the background thread."""
        if not self._running:
            return
        try:
            self._submit(self._client.close(), 5.0)
        except Exception as exc:
            logger.debug("Close failed: %s", exc)
        finally:
            self._stop_loop()

    def disconnect(self) -> None:
        """Alias for close."""
        self.close()

    def __enter__(self) -> SyncDCEClient:
        self.connect()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # -- Calls ----------------------------------------------------------------

    def call(
        self,
        path: str | Sequence[str],
        *args: Any,
        timeout: float | None = None,
    ) -> Any:
        """Call an action and block for its result.

        Raises:
            DCEConnectionError: :meth:`connect` has not been called.
            DCETimeoutError: *timeout* expired.  The call itself is not
                cancelled on the server.
        """
        return self._submit(self._client.call(path, *args), timeout)

    # -- Consumers ------------------------------------------------------------

    def register(self, name: str, handler: ConsumerHandler) -> ConsumerRegistration:
        return self._client.register(name, handler)

    def consumer(self, target: Any) -> Any:
        return self._client.consumer(target)

    # -- Properties -----------------------------------------------------------

    @property
    def client(self) -> AsyncDCEClient:
        return self._client

    @property
    def is_connected(self) -> bool:
        return self._client.is_connected

    @property
    def is_ready(self) -> bool:
        return self._client.is_ready

    @property
    def state(self) -> ConnectionState:
        return self._client.state

    def get_stats(self) -> dict[str, Any]:
        return self._client.get_stats()

    # -- Internal -------------------------------------------------------------

    def _submit(self, coro: Any, timeout: float | None) -> Any:
        if not self._running or self._loop is None:
            coro.close()
            raise DCEConnectionError("Client is not running; call connect() first")
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            raise DCETimeoutError(f"Operation timed out after {timeout}s")

    def _run_loop(self) -> None:
        """Background thread: run the async event loop."""
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._loop_started.set)
        try:
            self._loop.run_forever()
        except Exception as exc:
            logger.error("Background loop error: %s", exc)
        finally:
            self._loop.close()
            self._loop = None

    def _stop_loop(self) -> None:
        self._running = False
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._loop.stop)
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        self._thread = None
