"""DCE Python client: RPC calls, commands and push consumers over one WebSocket.

Async usage::

    from dce_client import connect

    client = connect("ws://localhost:8000/dce/")

    @client.consumer
    def notifications(data, error, error_data):
        print(data)

    async with client:
        invoice = await client.call("billing.invoice.create", {"amount": 10})

Sync usage::

    from dce_client import SyncDCEClient

    client = SyncDCEClient("ws://localhost:8000/dce/")
    client.connect()
    invoice = client.call("billing.invoice.create", {"amount": 10}, timeout=5.0)
    client.close()

Calls issued before the server has sent its action manifest wait for it.

Optional extras::

    pip install dce-client[orjson]   # faster JSON codec
"""

from ._version import __version__
from .client import AsyncDCEClient
from .config import ClientConfig
from .errors import (
    DCEActionNotImplemented,
    DCECallError,
    DCEClientError,
    DCEConnectionError,
    DCEError,
    DCERequestError,
    DCEServerError,
    DCETimeoutError,
)
from .sync_client import SyncDCEClient
from .types import (
    ActionDescriptor,
    ActionKind,
    ConnectionState,
    Manifest,
)


def connect(
    url: str | None = None,
    **kwargs,
) -> AsyncDCEClient:
    """Create a DCE client.

    Use as an async context manager.  Register consumers before entering
    it.  Keyword arguments are forwarded to :class:`AsyncDCEClient` --
    common ones: ``debug``, ``config``, ``on_error``.

    Args:
        url: WebSocket endpoint.  Falls back to ``DCE_SOCKET_URL``.
        **kwargs: Passed to :class:`AsyncDCEClient`.

    Returns:
        An :class:`AsyncDCEClient` instance.

    Raises:
        DCEClientError: No endpoint is configured.
    """
    return AsyncDCEClient(url, **kwargs)


__all__ = [
    "__version__",
    "connect",
    "AsyncDCEClient",
    "SyncDCEClient",
    "ClientConfig",
    "ActionDescriptor",
    "ActionKind",
    "ConnectionState",
    "Manifest",
    "DCEError",
    "DCEClientError",
    "DCEServerError",
    "DCERequestError",
    "DCECallError",
    "DCEActionNotImplemented",
    "DCEConnectionError",
    "DCETimeoutError",
]
