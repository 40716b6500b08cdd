from dataclasses import dataclass


@dataclass(frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 25575
    password: str = "changeme"
    max_players: int = 20
