# =============================================================================
# DCE Python Client -- Error Types
# =============================================================================

from __future__ import annotations

from typing import Any


class DCEError(Exception):
    """Base exception for all DCE client errors."""


class DCEClientError(DCEError):
    """Malformed local input (unset endpoint, undecodable frame, bad registration)."""

    def __init__(self, error: str) -> None:
        self.error = error
        super().__init__(f"DCEngine client error: {error}")


class DCEServerError(DCEError):
    """Service-level failure reported by the server during the manifest exchange."""

    def __init__(self, error: Any, error_data: Any = None) -> None:
        self.error = error
        self.error_data = error_data
        super().__init__(f"DCEngine server error: {error}")


class DCERequestError(DCEError):
    """Push message with no consumers that reports status ``"error"``."""

    def __init__(self, error: Any, error_data: Any = None) -> None:
        self.error = error
        self.error_data = error_data
        super().__init__(f"DCEngine request error: {error}")


class DCECallError(DCEError):
    """RPC reply with status ``"error"``."""

    def __init__(self, error: Any, error_data: Any = None) -> None:
        self.error = error
        self.error_data = error_data
        super().__init__(f"DCEngine call error: {error}")


class DCEActionNotImplemented(DCEError):
    """No action is installed at the requested path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"{path} not implemented.")


class DCEConnectionError(DCEError):
    """Connection-related errors (failed to open, closed, already used)."""


class DCETimeoutError(DCEConnectionError):
    """The WebSocket handshake did not complete in time."""
