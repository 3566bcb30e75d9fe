# =============================================================================
# DCE Python Client -- Wire Protocol Codec
# =============================================================================
#
# All frames are JSON objects sent as text:
#
# Outgoing (client -> server):
#   RPC:              {"action", "data", "cmd_id"}
#   Fire-and-forget:  {"action", "data", "callbacks"}
#
# Incoming (server -> client):
#   RPC reply:  {"cmd_id", "status", "data" | "error"/"error_data"}
#   Service:    {"msg_type": "service", "status", "data": {"actions", "version"}}
#   Push:       {"msg_type", "consumers", "data", "status", "error", "error_data"}
# =============================================================================

from __future__ import annotations

import json

from typing import Any

from .constants import (
    FIELD_ACTION,
    FIELD_CALLBACKS,
    FIELD_CMD_ID,
    FIELD_DATA,
    MAX_MESSAGE_SIZE,
)
from .errors import DCEClientError

try:
    import orjson

    def _json_loads(data: str | bytes) -> Any:
        return orjson.loads(data)

    def _json_dumps(obj: Any) -> str:
        return orjson.dumps(obj).decode()

except ImportError:

    def _json_loads(data: str | bytes) -> Any:
        return json.loads(data)

    def _json_dumps(obj: Any) -> str:
        return json.dumps(obj, separators=(",", ":"))


def rpc_message(action: str, data: Any, cmd_id: int) -> dict[str, Any]:
    """Outgoing RPC frame, correlated by ``cmd_id``."""
    return {FIELD_ACTION: action, FIELD_DATA: data, FIELD_CMD_ID: cmd_id}


def fire_message(action: str, data: Any) -> dict[str, Any]:
    """Outgoing fire-and-forget frame.

    ``callbacks`` lists consumer names the server should answer to; it is
    lifted from ``data["callbacks"]`` when that is a list.
    """
    callbacks: list[Any] = []
    if isinstance(data, dict) and isinstance(data.get(FIELD_CALLBACKS), list):
        callbacks = data[FIELD_CALLBACKS]
    return {FIELD_ACTION: action, FIELD_DATA: data, FIELD_CALLBACKS: callbacks}


class MessageCodec:
    """Encode and decode DCE wire messages."""

    def encode(self, message: dict[str, Any]) -> str:
        return _json_dumps(message)

    def decode(self, data: str | bytes) -> dict[str, Any]:
        """Decode an incoming frame.

        Raises:
            DCEClientError: The frame is too large, is not valid JSON, or
                is not a JSON object.
        """
        if len(data) > MAX_MESSAGE_SIZE:
            raise DCEClientError(
                f"response exceeds max size ({len(data)} bytes)"
            )

        if isinstance(data, bytes):
            try:
                data = data.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise DCEClientError(f"response json parse error: {exc}") from exc

        try:
            parsed = _json_loads(data)
        except (json.JSONDecodeError, ValueError) as exc:
            raise DCEClientError(f"response json parse error: {exc}") from exc

        if not isinstance(parsed, dict):
            raise DCEClientError(
                f"response json parse error: expected object, got {type(parsed).__name__}"
            )
        return parsed
