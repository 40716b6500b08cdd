"""Minimal threaded RCON server used for integration tests and local experiments."""

import logging
import socketserver
import threading
from dataclasses import dataclass, field

from rcon_client.errors import ProtocolError, ShortReadError
from rcon_client.protocol import AUTH_FAILURE_ID, Frame, FrameType, encode_frame, read_frame

from . import auth
from .config import ServerConfig


logger = logging.getLogger(__name__)

UNKNOWN_COMMAND = "Unknown command. Try /help for a list of commands"


@dataclass
class ConnectionRecord:
    """What the server observed on one client connection."""

    peer: tuple
    request_ids: list[int] = field(default_factory=list)
    commands: list[str] = field(default_factory=list)
    authenticated: bool = False
    closed: threading.Event = field(default_factory=threading.Event)


class RconRequestHandler(socketserver.StreamRequestHandler):
    server: "RconTCPServer"

    def setup(self) -> None:
        super().setup()
        self.record = self.server.track(self.client_address)

    def handle(self) -> None:
        while True:
            try:
                frame = read_frame(self._read_exact)
            except ShortReadError:
                logger.info("Client %s disconnected", self.client_address)
                return
            except ProtocolError as exc:
                logger.warning("Dropping client %s: %s", self.client_address, exc)
                return
            except OSError as exc:
                logger.info("Connection to %s failed: %s", self.client_address, exc)
                return

            self.record.request_ids.append(frame.request_id)
            self.wfile.write(self.server.respond(self.record, frame))

    def finish(self) -> None:
        try:
            super().finish()
        finally:
            self.record.closed.set()

    def _read_exact(self, size: int) -> bytes:
        data = self.rfile.read(size)
        if len(data) != size:
            raise ShortReadError(expected=size, received=len(data))
        return data


class RconTCPServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, config: ServerConfig):
        self.config = config
        self.connections: list[ConnectionRecord] = []
        self._connections_lock = threading.Lock()
        super().__init__((config.host, config.port), RconRequestHandler)

    def track(self, peer) -> ConnectionRecord:
        record = ConnectionRecord(peer=peer)
        with self._connections_lock:
            self.connections.append(record)
        logger.info("Client %s connected", peer)
        return record

    def respond(self, record: ConnectionRecord, frame: Frame) -> bytes:
        if frame.type == FrameType.AUTH:
            if auth.check_password(frame.payload, self.config.password):
                record.authenticated = True
                logger.info("Client %s authenticated", record.peer)
                return encode_frame(frame.request_id, FrameType.AUTH_RESPONSE, "")
            logger.info("Client %s sent a wrong password", record.peer)
            return encode_frame(AUTH_FAILURE_ID, FrameType.AUTH_RESPONSE, "")

        if not record.authenticated:
            return encode_frame(AUTH_FAILURE_ID, FrameType.RESPONSE_VALUE, "")
        if frame.type != FrameType.COMMAND:
            return encode_frame(frame.request_id, FrameType.RESPONSE_VALUE, f"Unknown request {frame.type:x}")

        record.commands.append(frame.payload)
        return encode_frame(frame.request_id, FrameType.RESPONSE_VALUE, self.dispatch(frame.payload))

    def dispatch(self, command: str) -> str:
        name, _, argument = command.strip().removeprefix("/").partition(" ")
        if name == "say":
            return ""
        if name == "echo":
            return argument
        if name == "list":
            return f"There are 0 of a max of {self.config.max_players} players online: "
        if name == "help":
            return "/echo <message>\n/help\n/list\n/say <message>"
        return UNKNOWN_COMMAND


def run_server(config: ServerConfig) -> None:
    server = RconTCPServer(config)
    print(f"[RCON] Mock server listening on {config.host}:{config.port}")
    with server:
        server.serve_forever()
