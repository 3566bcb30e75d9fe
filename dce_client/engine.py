# =============================================================================
# DCE Python Client -- Correlation Engine
# =============================================================================
#
# Owns the connection and the pending-call table.  Every inbound frame is
# classified here as an RPC reply, a service message or a push message.
# =============================================================================

from __future__ import annotations

import asyncio
import itertools

from typing import Any, Callable

from ._logging import logger
from .barrier import PollingBarrier
from .constants import (
    CONNECT_POLL_INTERVAL,
    FIELD_CMD_ID,
    FIELD_DATA,
    FIELD_ERROR,
    FIELD_ERROR_DATA,
    FIELD_MSG_TYPE,
    FIELD_STATUS,
    MSG_TYPE_SERVICE,
    STATUS_ERROR,
)
from .errors import DCECallError, DCEConnectionError, DCEServerError
from .protocol import MessageCodec, fire_message, rpc_message
from .types import ActionKind, ConnectionState, PendingCall

ManifestHandler = Callable[[Any, Any], None]
PushHandler = Callable[[dict[str, Any]], None]


class CorrelationEngine:
    """Matches RPC replies to calls over one shared connection.

    Args:
        transport: A :class:`~dce_client.connection.ConnectionManager` or any
            object with ``state``, ``connect()``, ``close()``, ``send(text)``
            and an assignable ``on_message`` callback.
        codec: Wire codec (default :class:`MessageCodec`).
        connect_interval: Seconds between "connection open" checks.
    """

    def __init__(
        self,
        transport: Any,
        *,
        codec: MessageCodec | None = None,
        connect_interval: float = CONNECT_POLL_INTERVAL,
    ) -> None:
        self._transport = transport
        self._codec = codec or MessageCodec()
        self._ids = itertools.count(1)
        self._pending: dict[int, PendingCall] = {}

        self._manifest_handler: ManifestHandler | None = None
        self._push_handler: PushHandler | None = None

        self._open_barrier = PollingBarrier(
            lambda: self._transport.state == ConnectionState.OPEN,
            connect_interval,
        )

        # Stats
        self.messages_sent = 0
        self.messages_received = 0
        self.replies_dropped = 0

        self._transport.on_message = self.handle_message

    # -- Wiring ---------------------------------------------------------------

    def set_manifest_handler(self, handler: ManifestHandler) -> None:
        self._manifest_handler = handler

    def set_push_handler(self, handler: PushHandler) -> None:
        self._push_handler = handler

    # -- Properties -----------------------------------------------------------

    @property
    def transport(self) -> Any:
        return self._transport

    @property
    def is_open(self) -> bool:
        return self._open_barrier.is_open

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # -- Lifecycle ------------------------------------------------------------

    async def connect(self) -> None:
        await self._transport.connect()

    async def close(self) -> None:
        await self._transport.close()

    # -- Outbound -------------------------------------------------------------

    async def call(self, action: str, kind: ActionKind, payload: Any) -> Any:
        """Send *action* and, for RPC, wait for its correlated reply.

        Returns:
            The reply's ``data`` for RPC actions, ``None`` for fire-and-forget.

        Raises:
            DCECallError: The RPC reply has status ``"error"``.
            DCEConnectionError: The frame could not be sent.
        """
        if kind is ActionKind.RPC:
            future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

            def complete(reply: dict[str, Any]) -> None:
                if future.done():
                    return
                if reply.get(FIELD_STATUS) == STATUS_ERROR:
                    future.set_exception(
                        DCECallError(reply.get(FIELD_ERROR), reply.get(FIELD_ERROR_DATA))
                    )
                else:
                    future.set_result(reply.get(FIELD_DATA))

            await self._send_rpc(action, payload, complete)
            return await future

        await self._send_fire(action, payload)
        return None

    async def _send_rpc(
        self,
        action: str,
        payload: Any,
        completion: Callable[[dict[str, Any]], None],
    ) -> None:
        await self._open_barrier.wait()

        request_id = next(self._ids)
        self._pending[request_id] = PendingCall(request_id, action, completion)
        encoded = self._codec.encode(rpc_message(action, payload, request_id))
        if not await self._transport.send(encoded):
            self._pending.pop(request_id, None)
            raise DCEConnectionError(f"Failed to send '{action}' (cmd_id={request_id})")
        self.messages_sent += 1
        logger.debug("-> [RPC] %s cmd_id=%d", action, request_id)

    async def _send_fire(self, action: str, payload: Any) -> None:
        await self._open_barrier.wait()

        encoded = self._codec.encode(fire_message(action, payload))
        if not await self._transport.send(encoded):
            raise DCEConnectionError(f"Failed to send '{action}'")
        self.messages_sent += 1
        logger.debug("-> [FIRE] %s", action)

    # -- Inbound --------------------------------------------------------------

    def handle_message(self, data: str | bytes) -> None:
        """Decode and deliver one inbound frame.

        Raises:
            DCEClientError: The frame cannot be decoded.
            DCEServerError: A service message reports status ``"error"``.
        """
        message = self._codec.decode(data)
        self.messages_received += 1

        cmd_id = message.get(FIELD_CMD_ID)
        if cmd_id is not None:
            pending = None
            if isinstance(cmd_id, (int, str)):
                pending = self._pending.pop(_coerce_id(cmd_id), None)
            if pending is None:
                self.replies_dropped += 1
                logger.debug("Dropping reply with unknown cmd_id=%r", cmd_id)
                return
            pending.completion(message)
            return

        if message.get(FIELD_MSG_TYPE) == MSG_TYPE_SERVICE:
            self._handle_service(message)
            return

        if self._push_handler is None:
            logger.warning("No push handler set, dropping message: %s", message)
            return
        self._push_handler(message)

    def _handle_service(self, message: dict[str, Any]) -> None:
        if message.get(FIELD_STATUS) == STATUS_ERROR:
            raise DCEServerError(message.get(FIELD_ERROR), message.get(FIELD_ERROR_DATA))

        data = message.get(FIELD_DATA) or {}
        if not isinstance(data, dict):
            raise DCEServerError("service message data must be an object", data)
        if self._manifest_handler is None:
            logger.warning("No manifest handler set, ignoring service message")
            return
        self._manifest_handler(data.get("actions"), data.get("version"))


def _coerce_id(value: Any) -> Any:
    """Request ids are ints; tolerate servers that echo them back as strings."""
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return value
