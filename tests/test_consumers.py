"""Tests for consumer registration and push routing."""

import asyncio
import logging

import pytest

from dce_client.consumers import ConsumerRouter
from dce_client.errors import DCEClientError, DCERequestError


@pytest.fixture
def router():
    return ConsumerRouter()


class TestRegistration:
    def test_register_and_get(self, router):
        handler = lambda data, error, error_data: None  # noqa: E731
        registration = router.register("X", handler)
        assert registration.name == "X"
        assert router.get("X") is handler
        assert "X" in router
        assert len(router) == 1

    def test_duplicate_name_rejected(self, router):
        router.register("X", lambda *a: None)
        with pytest.raises(DCEClientError, match="already registered"):
            router.register("X", lambda *a: None)

    def test_frozen_registry_rejects(self, router):
        router.freeze()
        with pytest.raises(DCEClientError):
            router.register("X", lambda *a: None)

    def test_function_decorator(self, router):
        @router.consumer
        def notifications(data, error, error_data):
            pass

        assert router.get("notifications") is notifications

    def test_class_decorator(self, router):
        received = []

        @router.consumer
        class InvoiceCreated:
            def consumer(self, data, error, error_data):
                received.append(data)

        assert router.names == ["InvoiceCreated"]
        router.route({"consumers": ["InvoiceCreated"], "data": 1})
        assert received == [1]

    def test_class_without_consumer_method(self, router):
        with pytest.raises(DCEClientError, match="no consumer"):

            @router.consumer
            class Broken:
                pass


class TestRouting:
    def test_fan_out_in_list_order(self, router):
        calls = []
        router.register("X", lambda d, e, ed: calls.append(("X", d, e, ed)))
        router.register("Y", lambda d, e, ed: calls.append(("Y", d, e, ed)))

        router.route({"consumers": ["X", "Y"], "data": "D"})

        assert calls == [("X", "D", None, None), ("Y", "D", None, None)]

    def test_order_follows_message_not_registration(self, router):
        calls = []
        router.register("X", lambda *a: calls.append("X"))
        router.register("Y", lambda *a: calls.append("Y"))

        router.route({"consumers": ["Y", "X", "Y"], "data": None})

        assert calls == ["Y", "X", "Y"]

    def test_unregistered_names_skipped(self, router):
        calls = []
        router.register("X", lambda *a: calls.append("X"))
        router.route({"consumers": ["missing", "X"], "data": 1})
        assert calls == ["X"]

    def test_non_string_names_skipped(self, router):
        calls = []
        router.register("X", lambda *a: calls.append("X"))
        router.route({"consumers": [{"x": 1}, ["X"], 7, None, "X"], "data": 1})
        assert calls == ["X"]

    def test_error_fields_passed_through(self, router):
        calls = []
        router.register("X", lambda *a: calls.append(a))
        router.route(
            {"consumers": ["X"], "status": "error", "error": "E", "error_data": {"k": 1}}
        )
        assert calls == [(None, "E", {"k": 1})]

    def test_no_consumers_with_error_raises(self, router):
        with pytest.raises(DCERequestError) as exc_info:
            router.route({"consumers": [], "status": "error", "error": "E", "error_data": "ED"})
        assert exc_info.value.error == "E"
        assert exc_info.value.error_data == "ED"
        assert str(exc_info.value) == "DCEngine request error: E"

    def test_absent_consumers_with_error_raises(self, router):
        with pytest.raises(DCERequestError):
            router.route({"status": "error", "error": "E"})

    def test_no_consumers_ok_is_unrouted(self, router, caplog):
        with caplog.at_level(logging.INFO, logger="dce_client"):
            router.route({"consumers": [], "status": "ok", "data": 1})
        assert router.unrouted == 1
        assert "Unrouted message" in caplog.text

    def test_handler_error_does_not_stop_fan_out(self, router, caplog):
        calls = []

        def broken(*args):
            raise RuntimeError("bad handler")

        router.register("X", broken)
        router.register("Y", lambda *a: calls.append("Y"))

        with caplog.at_level(logging.ERROR, logger="dce_client"):
            router.route({"consumers": ["X", "Y"], "data": 1})

        assert calls == ["Y"]
        assert "bad handler" in caplog.text

    @pytest.mark.asyncio
    async def test_async_handler_scheduled(self, router):
        received = []

        async def handler(data, error, error_data):
            received.append(data)

        router.register("X", handler)
        router.route({"consumers": ["X"], "data": "async"})
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert received == ["async"]

    @pytest.mark.asyncio
    async def test_async_handler_error_logged(self, router, caplog):
        async def broken(data, error, error_data):
            raise RuntimeError("async boom")

        router.register("X", broken)
        with caplog.at_level(logging.ERROR, logger="dce_client"):
            router.route({"consumers": ["X"], "data": 1})
            for _ in range(3):
                await asyncio.sleep(0)

        assert "Consumer error for 'X': async boom" in caplog.text
        assert not router._background_tasks
