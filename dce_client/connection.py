# =============================================================================
# DCE Python Client -- Connection Manager
# =============================================================================
#
# Single WebSocket for the lifetime of the client: open, receive loop, send,
# close.  There is no reconnection; once CLOSED the manager cannot be reused.
# =============================================================================

from __future__ import annotations

import asyncio

from typing import Any, Callable

import websockets.asyncio.client
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedError,
    ConnectionClosedOK,
)

from ._logging import logger
from .constants import CONNECTION_TIMEOUT, MAX_MESSAGE_SIZE, WS_CLOSE_NORMAL
from .errors import DCEConnectionError, DCEError, DCETimeoutError
from .types import ConnectionState


class ConnectionManager:
    """Owns the WebSocket: lifecycle callbacks, receive loop and ``send``.

    The owner wires ``on_message``, ``on_open``, ``on_close`` and
    ``on_error`` before calling :meth:`connect`.
    """

    def __init__(
        self,
        url: str,
        *,
        extra_headers: dict[str, str] | None = None,
        open_timeout: float | None = CONNECTION_TIMEOUT,
    ) -> None:
        self._url = url
        self._extra_headers = extra_headers or {}
        self._open_timeout = open_timeout

        # Callbacks
        self.on_message: Callable[[str | bytes], Any] | None = None
        self.on_open: Callable[[], Any] | None = None
        self.on_close: Callable[[int | None, str], Any] | None = None
        self.on_error: Callable[[DCEError], Any] | None = None

        # State
        self._ws_cm: Any | None = None  # websocket context manager
        self._ws: websockets.asyncio.client.ClientConnection | None = None
        self._state = ConnectionState.IDLE
        self._recv_task: asyncio.Task[None] | None = None

    # -- Properties -----------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_open(self) -> bool:
        return self._ws is not None and self._state == ConnectionState.OPEN

    # -- Connect / Disconnect -------------------------------------------------

    async def connect(self) -> None:
        """Open the WebSocket and start the receive loop."""
        if self._state == ConnectionState.CLOSED:
            raise DCEConnectionError("Connection already closed; it cannot be reopened")
        if self._state in (ConnectionState.CONNECTING, ConnectionState.OPEN):
            return

        self._set_state(ConnectionState.CONNECTING)
        try:
            self._ws_cm = websockets.asyncio.client.connect(
                self._url,
                additional_headers=self._extra_headers,
                max_size=MAX_MESSAGE_SIZE,
                open_timeout=None,  # asyncio.wait_for handles timeout
            )
            self._ws = await asyncio.wait_for(
                self._ws_cm.__aenter__(),
                timeout=self._open_timeout,
            )
        except asyncio.TimeoutError:
            await self._discard_cm()
            self._set_state(ConnectionState.CLOSED)
            raise DCETimeoutError(
                f"Connection timed out after {self._open_timeout}s"
            )
        except Exception as exc:
            await self._discard_cm()
            self._set_state(ConnectionState.CLOSED)
            raise DCEConnectionError(f"Failed to connect: {exc}") from exc

        self._set_state(ConnectionState.OPEN)
        logger.debug("Socket open.")
        if self.on_open:
            self.on_open()

        self._recv_task = asyncio.create_task(self._recv_loop())

    async def close(self) -> None:
        """Graceful shutdown.  Terminal."""
        if self._recv_task:
            self._recv_task.cancel()
            await asyncio.gather(self._recv_task, return_exceptions=True)
            self._recv_task = None

        if self._ws_cm:
            await self._discard_cm()
        elif self._ws:
            try:
                await self._ws.close(WS_CLOSE_NORMAL, "Client disconnect")
            except Exception as exc:
                logger.debug("Close failed: %s", exc)
        self._ws = None

        if self._state != ConnectionState.CLOSED:
            self._mark_closed(WS_CLOSE_NORMAL, "Client disconnect")

    # -- Send -----------------------------------------------------------------

    async def send(self, data: str) -> bool:
        """Send a text frame.  Returns True on success."""
        if not self.is_open:
            return False
        try:
            await self._ws.send(data)
            return True
        except ConnectionClosed:
            logger.debug("Send failed: connection closed")
            return False
        except Exception as exc:
            logger.debug("Send failed: %s", exc)
            return False

    # -- Internal: receive loop -----------------------------------------------

    async def _recv_loop(self) -> None:
        """Read messages from the WebSocket until closed."""
        assert self._ws is not None
        try:
            async for message in self._ws:
                self._handle_raw_message(message)
        except ConnectionClosedOK as exc:
            self._ws = None
            self._mark_closed(exc.rcvd.code if exc.rcvd else None, "")
        except ConnectionClosedError as exc:
            self._ws = None
            code = exc.rcvd.code if exc.rcvd else None
            reason = exc.rcvd.reason if exc.rcvd else ""
            logger.warning("WebSocket closed with error: code=%s reason=%s", code, reason)
            self._mark_closed(code, reason)
        except asyncio.CancelledError:
            return
        except Exception as exc:
            logger.warning("Receive loop error: %s", exc)
            self._ws = None
            self._mark_closed(None, str(exc))
        else:
            self._ws = None
            self._mark_closed(WS_CLOSE_NORMAL, "")

    def _handle_raw_message(self, data: str | bytes) -> None:
        """Forward a frame; report protocol-level failures to ``on_error``."""
        if not self.on_message:
            return
        try:
            self.on_message(data)
        except DCEError as exc:
            if self.on_error:
                self.on_error(exc)
            else:
                logger.error("%s", exc)
        except Exception as exc:
            logger.error("Failed to handle inbound frame: %s", exc)

    # -- State management -----------------------------------------------------

    def _mark_closed(self, code: int | None, reason: str) -> None:
        self._set_state(ConnectionState.CLOSED)
        logger.debug("Socket close. code=%s reason=%s", code, reason)
        if self.on_close:
            self.on_close(code, reason)

    async def _discard_cm(self) -> None:
        ws_cm = self._ws_cm
        self._ws_cm = None
        if ws_cm is not None:
            try:
                await ws_cm.__aexit__(None, None, None)
            except Exception as exc:
                logger.debug("WebSocket teardown failed: %s", exc)

    def _set_state(self, new_state: ConnectionState) -> None:
        if new_state == self._state:
            return
        old = self._state
        self._state = new_state
        logger.debug("State: %s -> %s", old.value, new_state.value)
