# =============================================================================
# DCE Python Client -- Configuration
# =============================================================================

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from .constants import (
    CONNECT_POLL_INTERVAL,
    CONNECTION_TIMEOUT,
    ENV_DEBUG,
    ENV_SOCKET_URL,
    READY_POLL_INTERVAL,
)
from .errors import DCEClientError

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass
class ClientConfig:
    """Client configuration.

    Attributes:
        url: WebSocket endpoint, e.g. ``"ws://localhost:8000/dce/"``.
            Required; an empty value fails fast.
        debug: Enable diagnostic logging.  Has no effect on behaviour.
        connect_interval: Seconds between "connection open" checks before
            a send.
        ready_interval: Seconds between "manifest received" checks before
            a façade call.
        open_timeout: Seconds to wait for the WebSocket handshake,
            ``None`` to wait forever.
        extra_headers: Additional HTTP headers for the handshake.
    """

    url: str = ""
    debug: bool = False
    connect_interval: float = CONNECT_POLL_INTERVAL
    ready_interval: float = READY_POLL_INTERVAL
    open_timeout: float | None = CONNECTION_TIMEOUT
    extra_headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.url:
            raise DCEClientError(f"{ENV_SOCKET_URL} undefined.")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> ClientConfig:
        """Build a config from ``DCE_SOCKET_URL`` / ``DCE_DEBUG``.

        Keyword overrides win over the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {
            "url": env.get(ENV_SOCKET_URL, ""),
            "debug": env.get(ENV_DEBUG, "").strip().lower() in _TRUTHY,
        }
        values.update(overrides)
        return cls(**values)
