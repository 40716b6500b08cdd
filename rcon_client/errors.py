"""Exception hierarchy raised by the RCON client."""

from __future__ import annotations


class RconError(RuntimeError):
    """Base class for every failure reported by the RCON client."""

    def __init__(self, message: str):
        super().__init__(message)
        self.suppressed: list[BaseException] = []


class RconConnectionError(RconError):
    """Raised when the socket cannot be opened, read, written or closed."""

    def __init__(self, message: str, expected: int | None = None, received: int | None = None):
        super().__init__(message)
        self.expected = expected
        self.received = received


class AuthFailureError(RconError):
    """Raised when the server rejects the RCON password."""

    def __init__(self, message: str = "Authentication failure"):
        super().__init__(message)


class ProtocolError(RconError):
    """Raised when a response frame is malformed or out of sync with the request."""


class ShortReadError(RconConnectionError, ProtocolError):
    """Raised when the server closes the stream in the middle of a frame."""

    def __init__(self, expected: int, received: int):
        super().__init__(f"Expected {expected} bytes but received {received}", expected=expected, received=received)
