# =============================================================================
# DCE Python Client -- Type Definitions
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from .errors import DCEServerError

# (data, error, error_data)
ConsumerHandler = Callable[[Any, Any, Any], Any]


class ConnectionState(str, Enum):
    """WebSocket connection lifecycle state.

    Flow: IDLE -> CONNECTING -> OPEN -> CLOSED.  CLOSED is terminal, the
    connection is never recreated.
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class ActionKind(str, Enum):
    """Whether an action expects a correlated reply."""

    RPC = "rpc"
    FIRE = "fire"

    @classmethod
    def from_wire(cls, value: Any) -> ActionKind:
        # Anything the server does not mark as rpc is fire-and-forget.
        if value == cls.RPC.value:
            return cls.RPC
        return cls.FIRE


@dataclass(frozen=True, slots=True)
class ActionDescriptor:
    """A remote action declared in the server manifest.

    Attributes:
        name: Dot-separated qualified name, e.g. ``"billing.invoice.create"``.
        kind: :class:`ActionKind` of the action.
    """

    name: str
    kind: ActionKind

    @property
    def segments(self) -> list[str]:
        return self.name.split(".")

    def __str__(self) -> str:
        return f"[{self.kind.value.upper()}] {self.name}"


@dataclass(frozen=True, slots=True)
class Manifest:
    """Actions and version tag delivered by the server's service message."""

    actions: tuple[ActionDescriptor, ...]
    version: Any = None

    @classmethod
    def from_wire(cls, actions: Any, version: Any = None) -> Manifest:
        """Validate the raw ``data.actions`` list of a service message."""
        if not isinstance(actions, list):
            raise DCEServerError("manifest actions must be a list", actions)

        descriptors = []
        for entry in actions:
            if not isinstance(entry, dict):
                raise DCEServerError("manifest entry must be an object", entry)
            name = entry.get("name")
            if not isinstance(name, str) or not all(name.split(".")):
                raise DCEServerError(f"invalid action name {name!r}", entry)
            descriptors.append(
                ActionDescriptor(name=name, kind=ActionKind.from_wire(entry.get("type")))
            )
        return cls(actions=tuple(descriptors), version=version)


@dataclass(slots=True)
class PendingCall:
    """An RPC call waiting for the reply that carries its ``cmd_id``."""

    request_id: int
    action: str
    completion: Callable[[dict[str, Any]], None]


@dataclass(frozen=True, slots=True)
class ConsumerRegistration:
    """A named handler that receives push messages addressed to it."""

    name: str
    handler: ConsumerHandler
