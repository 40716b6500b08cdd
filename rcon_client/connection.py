"""Network client for RCON-enabled game servers."""

from __future__ import annotations

import logging
import socket
from enum import Enum

from .errors import AuthFailureError, ProtocolError, RconConnectionError, RconError, ShortReadError
from .protocol import AUTH_FAILURE_ID, FrameType, encode_frame, read_frame


logger = logging.getLogger(__name__)

DEFAULT_PORT = 25575
DEFAULT_TIMEOUT = 10.0


class SessionState(Enum):
    UNOPENED = "unopened"
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    READY = "ready"
    CLOSED = "closed"


class RconClient:
    """Blocking RCON session over a single TCP connection.

    Use :meth:`open` to connect and authenticate in one step, then
    :meth:`send_command` for each command and :meth:`close` when done. Commands
    are strictly sequential: each request is answered before the next is sent.
    The client does no locking, so callers sharing one instance between threads
    must serialize access themselves.

    A broken connection is never re-established. After any I/O or protocol
    failure the session is closed and a new one has to be opened.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = DEFAULT_PORT, timeout: float | None = DEFAULT_TIMEOUT):
        self.host = host
        self.port = port
        self.timeout = timeout
        self._sock: socket.socket | None = None
        self._request_id = 1
        self._state = SessionState.UNOPENED

    @classmethod
    def open(cls, host: str, port: int, password: str, timeout: float | None = DEFAULT_TIMEOUT) -> "RconClient":
        """Connect to ``host:port`` and authenticate with ``password``.

        Raises :class:`RconConnectionError` if the connection cannot be made and
        :class:`AuthFailureError` if the password is rejected. The socket is
        closed before any handshake error propagates.
        """
        client = cls(host, port, timeout)
        client.connect(password)
        return client

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is SessionState.READY

    @property
    def last_request_id(self) -> int:
        return self._request_id - 1

    def connect(self, password: str) -> None:
        if self._state is not SessionState.UNOPENED:
            raise RuntimeError(f"Client cannot connect from state {self._state.value}")

        self._state = SessionState.CONNECTING
        try:
            self._sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        except OSError as exc:
            self._state = SessionState.CLOSED
            raise RconConnectionError(f"Failed to open socket to {self.host}:{self.port}") from exc
        logger.info("Connected to %s:%s", self.host, self.port)

        self._state = SessionState.AUTHENTICATING
        try:
            self._exchange(FrameType.AUTH, password)
        except BaseException as exc:
            self._close_after(exc)
            raise
        self._state = SessionState.READY
        logger.info("Authenticated to %s:%s", self.host, self.port)

    def send_command(self, command: str) -> str:
        """Send ``command`` and return the server's response text.

        Many commands succeed with an empty response, so ``""`` is a normal
        return value.
        """
        if self._state is not SessionState.READY:
            raise RuntimeError(f"Client is not ready (state: {self._state.value})")
        try:
            return self._exchange(FrameType.COMMAND, command)
        except RconError as exc:
            self._close_after(exc)
            raise

    def close(self) -> None:
        sock, self._sock = self._sock, None
        self._state = SessionState.CLOSED
        if sock is None:
            return
        try:
            sock.close()
        except OSError as exc:
            raise RconConnectionError("Failed to close socket") from exc
        logger.info("Disconnected from %s:%s", self.host, self.port)

    def __enter__(self) -> "RconClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc is None:
            self.close()
        else:
            self._close_after(exc)

    def _next_request_id(self) -> int:
        request_id = self._request_id
        self._request_id += 1
        return request_id

    def _exchange(self, frame_type: FrameType, payload: str) -> str:
        request_id = self._next_request_id()
        packet = encode_frame(request_id, frame_type, payload)
        self._write(packet)
        logger.debug("Sent frame id=%d type=%d size=%d", request_id, frame_type, len(packet))

        response = read_frame(self._read_exact)
        logger.debug(
            "Received frame id=%d type=%d payload=%d chars",
            response.request_id,
            response.type,
            len(response.payload),
        )
        if response.request_id == AUTH_FAILURE_ID:
            raise AuthFailureError()
        if response.request_id != request_id:
            raise ProtocolError(f"Sent request id {request_id} but received {response.request_id}")
        return response.payload

    def _write(self, data: bytes) -> None:
        if self._sock is None:
            raise RconConnectionError("Client is not connected")
        try:
            self._sock.sendall(data)
        except OSError as exc:
            raise RconConnectionError(f"Failed to write {len(data)} bytes", expected=len(data)) from exc

    def _read_exact(self, size: int) -> bytes:
        if self._sock is None:
            raise RconConnectionError("Client is not connected")

        data = b""
        while len(data) < size:
            try:
                chunk = self._sock.recv(size - len(data))
            except OSError as exc:
                raise RconConnectionError(
                    f"Failed to read {size} bytes", expected=size, received=len(data)
                ) from exc
            if not chunk:
                raise ShortReadError(expected=size, received=len(data))
            data += chunk
        return data

    def _close_after(self, exc: BaseException) -> None:
        """Close the socket after ``exc``, attaching any close failure to ``exc``."""
        logger.debug("Closing session after failure: %s", exc)
        try:
            self.close()
        except RconConnectionError as close_exc:
            logger.warning("Error closing socket after failure: %s", close_exc)
            exc.add_note(f"Closing the socket also failed: {close_exc}")
            if isinstance(exc, RconError):
                exc.suppressed.append(close_exc)
