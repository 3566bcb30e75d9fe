# =============================================================================
# DCE Python Client -- Readiness Barriers
# =============================================================================
#
# Cooperative "wait until predicate" gates.  The predicate is re-checked on
# a fixed timer until it holds; there is no backoff and no retry cap.
# =============================================================================

from __future__ import annotations

import asyncio
import inspect

from typing import Any, Callable

Predicate = Callable[[], bool]


async def await_condition(
    work: Callable[[], Any],
    predicate: Predicate,
    interval: float,
) -> Any:
    """Run *work* once *predicate* holds, re-checking every *interval* seconds.

    If *work* returns an awaitable it is awaited.  Returns the work's result.
    """
    while not predicate():
        await asyncio.sleep(interval)
    result = work()
    if inspect.isawaitable(result):
        result = await result
    return result


class ReadinessFlag:
    """Monotonic false -> true flag.  There is no reset."""

    __slots__ = ("_value",)

    def __init__(self) -> None:
        self._value = False

    def set(self) -> None:
        self._value = True

    def is_set(self) -> bool:
        return self._value

    def __bool__(self) -> bool:
        return self._value

    def __repr__(self) -> str:
        return f"ReadinessFlag({self._value})"


class PollingBarrier:
    """Reusable gate over a single predicate.

    Args:
        predicate: Zero-argument callable; the gate opens when it returns True.
        interval: Seconds between checks.
    """

    def __init__(self, predicate: Predicate, interval: float) -> None:
        self._predicate = predicate
        self.interval = interval

    @property
    def is_open(self) -> bool:
        return bool(self._predicate())

    async def wait(self) -> None:
        await await_condition(lambda: None, self._predicate, self.interval)

    async def run(self, work: Callable[..., Any], *args: Any) -> Any:
        """Run ``work(*args)`` behind the gate and return its (awaited) result."""
        return await await_condition(lambda: work(*args), self._predicate, self.interval)
