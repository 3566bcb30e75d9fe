"""Tests for DCE client types."""

import pytest

from dce_client.types import (
    ActionDescriptor,
    ActionKind,
    ConnectionState,
    ConsumerRegistration,
    PendingCall,
)


class TestActionKind:
    def test_values(self):
        assert ActionKind.RPC.value == "rpc"
        assert ActionKind.FIRE.value == "fire"

    @pytest.mark.parametrize(
        "wire, expected",
        [
            ("rpc", ActionKind.RPC),
            ("fire", ActionKind.FIRE),
            ("consumer", ActionKind.FIRE),
            (None, ActionKind.FIRE),
        ],
    )
    def test_from_wire(self, wire, expected):
        assert ActionKind.from_wire(wire) is expected


class TestActionDescriptor:
    def test_segments(self):
        assert ActionDescriptor("billing.invoice.create", ActionKind.RPC).segments == [
            "billing",
            "invoice",
            "create",
        ]

    def test_str(self):
        assert str(ActionDescriptor("a.b", ActionKind.RPC)) == "[RPC] a.b"

    def test_immutable(self):
        descriptor = ActionDescriptor("a", ActionKind.FIRE)
        with pytest.raises(AttributeError):
            descriptor.name = "b"

    def test_equality(self):
        assert ActionDescriptor("a", ActionKind.RPC) == ActionDescriptor("a", ActionKind.RPC)


class TestConnectionState:
    def test_values(self):
        assert [s.value for s in ConnectionState] == ["idle", "connecting", "open", "closed"]


class TestRecords:
    def test_pending_call(self):
        replies = []
        call = PendingCall(request_id=3, action="a.b", completion=replies.append)
        call.completion({"cmd_id": 3})
        assert replies == [{"cmd_id": 3}]

    def test_consumer_registration(self):
        handler = lambda *a: None  # noqa: E731
        registration = ConsumerRegistration("X", handler)
        assert registration.handler is handler
