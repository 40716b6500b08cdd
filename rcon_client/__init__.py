from .connection import DEFAULT_PORT, RconClient, SessionState
from .errors import AuthFailureError, ProtocolError, RconConnectionError, RconError, ShortReadError

__all__ = [
    "DEFAULT_PORT",
    "AuthFailureError",
    "ProtocolError",
    "RconClient",
    "RconConnectionError",
    "RconError",
    "SessionState",
    "ShortReadError",
]
