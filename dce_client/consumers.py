# =============================================================================
# DCE Python Client -- Consumer Router
# =============================================================================
#
# Flat registry of named push-message handlers.  A push message names zero
# or more consumers; every registered one is called, in list order.
# =============================================================================

from __future__ import annotations

import asyncio

from typing import Any

from ._logging import logger
from .constants import (
    FIELD_CONSUMERS,
    FIELD_DATA,
    FIELD_ERROR,
    FIELD_ERROR_DATA,
    FIELD_STATUS,
    STATUS_ERROR,
)
from .errors import DCEClientError, DCERequestError
from .types import ConsumerHandler, ConsumerRegistration


class ConsumerRouter:
    """Registry of consumers and fan-out of push messages to them.

    Registration is open until :meth:`freeze` is called (the client does
    this when it connects); the registry is read-only afterwards.
    """

    def __init__(self) -> None:
        self._registrations: dict[str, ConsumerRegistration] = {}
        self._frozen = False
        self._background_tasks: set[asyncio.Task[Any]] = set()

        # Stats
        self.routed = 0
        self.unrouted = 0

    # -- Registration ---------------------------------------------------------

    def register(self, name: str, handler: ConsumerHandler) -> ConsumerRegistration:
        """Register *handler* under *name*.

        Raises:
            DCEClientError: *name* is already registered, or the registry is
                frozen.
        """
        if self._frozen:
            raise DCEClientError(
                f"cannot register consumer {name!r}: registry is closed once traffic begins"
            )
        if name in self._registrations:
            raise DCEClientError(f"consumer {name!r} already registered")
        registration = ConsumerRegistration(name=name, handler=handler)
        self._registrations[name] = registration
        logger.debug("Registered consumer %s", name)
        return registration

    def consumer(self, target: Any) -> Any:
        """Decorator registering a function or a consumer class.

        A function is registered under its ``__name__``.  A class is
        registered under its class name; the handler is the ``consumer``
        method of a fresh instance.

        Example::

            @router.consumer
            class InvoiceCreated:
                def consumer(self, data, error, error_data):
                    ...
        """
        if isinstance(target, type):
            handler = getattr(target(), "consumer", None)
            if not callable(handler):
                raise DCEClientError(
                    f"consumer class {target.__name__} has no consumer() method"
                )
            self.register(target.__name__, handler)
        else:
            self.register(target.__name__, target)
        return target

    def freeze(self) -> None:
        self._frozen = True

    # -- Lookup ---------------------------------------------------------------

    def get(self, name: str) -> ConsumerHandler | None:
        registration = self._registrations.get(name)
        return registration.handler if registration else None

    @property
    def names(self) -> list[str]:
        return list(self._registrations)

    def __contains__(self, name: object) -> bool:
        return name in self._registrations

    def __len__(self) -> int:
        return len(self._registrations)

    # -- Routing --------------------------------------------------------------

    def route(self, message: dict[str, Any]) -> None:
        """Deliver a push message to every consumer it names.

        Raises:
            DCERequestError: No consumers are named and the message reports
                status ``"error"``.
        """
        consumers = message.get(FIELD_CONSUMERS)
        if isinstance(consumers, list) and consumers:
            self.routed += 1
            data = message.get(FIELD_DATA)
            error = message.get(FIELD_ERROR)
            error_data = message.get(FIELD_ERROR_DATA)
            for name in consumers:
                if not isinstance(name, str):
                    continue
                handler = self.get(name)
                if handler is not None:
                    self._invoke(name, handler, data, error, error_data)
            return

        if message.get(FIELD_STATUS) == STATUS_ERROR:
            raise DCERequestError(message.get(FIELD_ERROR), message.get(FIELD_ERROR_DATA))

        self.unrouted += 1
        logger.info("Unrouted message: %s", message)

    def _invoke(
        self,
        name: str,
        handler: ConsumerHandler,
        data: Any,
        error: Any,
        error_data: Any,
    ) -> None:
        try:
            result = handler(data, error, error_data)
            if asyncio.iscoroutine(result):
                self._fire_task(name, result)
        except Exception as exc:
            logger.error("Consumer error for '%s': %s", name, exc)

    def _fire_task(self, name: str, coro: Any) -> None:
        """Schedule a coroutine with a strong reference to prevent GC."""
        task = asyncio.ensure_future(coro)
        self._background_tasks.add(task)

        def _done(t: asyncio.Task) -> None:
            self._background_tasks.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                logger.error("Consumer error for '%s': %s", name, exc)

        task.add_done_callback(_done)
