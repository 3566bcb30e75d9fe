# =============================================================================
# DCE Python Client -- Async Client
# =============================================================================
#
# Primary public API.  Wires the correlation engine, the dispatch tree and
# the consumer router together and gates calls on the server manifest.
# =============================================================================

from __future__ import annotations

from typing import Any, Sequence

from ._logging import enable_debug, logger
from .barrier import PollingBarrier, ReadinessFlag
from .config import ClientConfig
from .connection import ConnectionManager
from .consumers import ConsumerRouter
from .dispatch import ActionNamespace, DispatchTree, extract_payload
from .engine import CorrelationEngine
from .errors import DCEError
from .types import ConnectionState, ConsumerHandler, ConsumerRegistration, Manifest


class AsyncDCEClient:
    """Async DCE client with context manager support.

    Args:
        url: WebSocket endpoint.  Falls back to ``DCE_SOCKET_URL``.
        config: Full :class:`ClientConfig`; built from *url* and *debug*
            when omitted.
        debug: Enable diagnostic logging.
        transport: Pre-built transport (mainly for tests).  Defaults to a
            :class:`ConnectionManager` for the configured URL.
        on_error: Called with protocol errors raised while handling
            inbound frames (server errors, parse errors, request errors).
            Defaults to logging them.

    Example::

        async with AsyncDCEClient("ws://localhost:8000/dce/") as client:
            invoice = await client.call("billing.invoice.create", {"amount": 10})
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        config: ClientConfig | None = None,
        debug: bool = False,
        transport: Any | None = None,
        on_error: Any | None = None,
    ) -> None:
        if config is None:
            # DCE_SOCKET_URL / DCE_DEBUG fill in whatever was not passed
            config = ClientConfig.from_env(url=url) if url else ClientConfig.from_env()
            config.debug = config.debug or debug
        self._config = config
        if config.debug:
            enable_debug()

        if transport is None:
            transport = ConnectionManager(
                config.url,
                extra_headers=config.extra_headers,
                open_timeout=config.open_timeout,
            )
        transport.on_error = on_error or self._on_protocol_error

        self._engine = CorrelationEngine(transport, connect_interval=config.connect_interval)
        self._router = ConsumerRouter()
        self._tree = DispatchTree()
        self._ready = ReadinessFlag()
        self._ready_barrier = PollingBarrier(self._ready.is_set, config.ready_interval)
        self._version: Any = None
        self._ignored_manifests = 0

        self._engine.set_manifest_handler(self._on_manifest)
        self._engine.set_push_handler(self._router.route)

    # -- Context manager ------------------------------------------------------

    async def __aenter__(self) -> AsyncDCEClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # -- Connect / Disconnect -------------------------------------------------

    async def connect(self) -> None:
        """Open the connection.  Consumer registration closes here."""
        self._router.freeze()
        await self._engine.connect()

    async def close(self) -> None:
        await self._engine.close()

    async def wait_until_ready(self) -> None:
        """Block until the server manifest has been installed."""
        await self._ready_barrier.wait()

    # -- Properties -----------------------------------------------------------

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def state(self) -> ConnectionState:
        return self._engine.transport.state

    @property
    def is_connected(self) -> bool:
        return self._engine.is_open

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    @property
    def version(self) -> Any:
        """Server manifest version, ``None`` before readiness."""
        return self._version

    @property
    def tree(self) -> DispatchTree:
        return self._tree

    @property
    def router(self) -> ConsumerRouter:
        return self._router

    @property
    def actions(self) -> ActionNamespace:
        """Attribute access to manifest actions, e.g. ``client.actions.a.b()``."""
        return ActionNamespace(self._tree)

    # -- Calls ----------------------------------------------------------------

    async def call(self, path: str | Sequence[str], *args: Any) -> Any:
        """Call the action at dotted *path* once the manifest is installed.

        The first mapping or list in *args* is sent as the payload.

        Returns:
            The reply data for RPC actions, ``None`` for fire-and-forget.

        Raises:
            DCEActionNotImplemented: *path* does not name an action.
            DCECallError: The RPC reply reports an error.
        """
        payload = extract_payload(args)
        return await self._ready_barrier.run(self._invoke_path, path, payload)

    def _invoke_path(self, path: str | Sequence[str], payload: Any) -> Any:
        return self._tree.resolve(path)(payload)

    # -- Consumers ------------------------------------------------------------

    def register(self, name: str, handler: ConsumerHandler) -> ConsumerRegistration:
        """Register a push-message handler.  Must happen before :meth:`connect`."""
        return self._router.register(name, handler)

    def consumer(self, target: Any) -> Any:
        """Decorator form of :meth:`register` for functions and consumer classes."""
        return self._router.consumer(target)

    # -- Stats ----------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "is_ready": self.is_ready,
            "version": self._version,
            "actions": [str(d) for d in self._tree.actions()],
            "pending_calls": self._engine.pending_count,
            "messages_sent": self._engine.messages_sent,
            "messages_received": self._engine.messages_received,
            "replies_dropped": self._engine.replies_dropped,
            "consumers": self._router.names,
            "routed": self._router.routed,
            "unrouted": self._router.unrouted,
            "ignored_manifests": self._ignored_manifests,
        }

    # -- Internal -------------------------------------------------------------

    def _on_manifest(self, actions: Any, version: Any) -> None:
        if self._tree.is_built:
            self._ignored_manifests += 1
            logger.warning(
                "Ignoring manifest v%s: actions already initialized from v%s",
                version,
                self._version,
            )
            return

        manifest = Manifest.from_wire(actions, version)
        self._tree.build(manifest, self._engine.call)
        self._version = manifest.version
        self._ready.set()
        logger.info(
            "DCEngine v%s initialized with actions: %s",
            manifest.version,
            [str(d) for d in manifest.actions],
        )

    def _on_protocol_error(self, exc: DCEError) -> None:
        logger.error("%s", exc)
