"""Tests for polling readiness barriers."""

import asyncio

import pytest

from dce_client.barrier import PollingBarrier, ReadinessFlag, await_condition


class TestAwaitCondition:
    @pytest.mark.asyncio
    async def test_runs_immediately_when_predicate_holds(self):
        calls = []
        result = await await_condition(lambda: calls.append(1) or "done", lambda: True, 10.0)
        assert result == "done"
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_defers_until_predicate_holds(self):
        state = {"ready": False}
        calls = []
        task = asyncio.create_task(
            await_condition(lambda: calls.append(1), lambda: state["ready"], 0.01)
        )
        await asyncio.sleep(0.05)
        assert calls == []
        assert not task.done()

        state["ready"] = True
        await asyncio.wait_for(task, timeout=1.0)
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_awaits_coroutine_work(self):
        async def work():
            return 42

        assert await await_condition(work, lambda: True, 0.01) == 42

    @pytest.mark.asyncio
    async def test_work_exception_propagates(self):
        def work():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await await_condition(work, lambda: True, 0.01)

    @pytest.mark.asyncio
    async def test_checks_predicate_repeatedly(self):
        checks = []

        def predicate():
            checks.append(1)
            return len(checks) >= 4

        await await_condition(lambda: None, predicate, 0.001)
        assert len(checks) == 4


class TestReadinessFlag:
    def test_starts_false(self):
        flag = ReadinessFlag()
        assert flag.is_set() is False
        assert not flag

    def test_set_is_monotonic(self):
        flag = ReadinessFlag()
        flag.set()
        flag.set()
        assert flag.is_set() is True
        assert bool(flag) is True
        assert not hasattr(flag, "clear")


class TestPollingBarrier:
    @pytest.mark.asyncio
    async def test_run_passes_args(self):
        barrier = PollingBarrier(lambda: True, 0.01)
        assert await barrier.run(lambda a, b: a + b, 2, 3) == 5

    @pytest.mark.asyncio
    async def test_wait_blocks_until_open(self):
        flag = ReadinessFlag()
        barrier = PollingBarrier(flag.is_set, 0.01)
        assert barrier.is_open is False

        waiter = asyncio.create_task(barrier.wait())
        await asyncio.sleep(0.03)
        assert not waiter.done()

        flag.set()
        await asyncio.wait_for(waiter, timeout=1.0)
        assert barrier.is_open is True
