from .app import ConnectionRecord, RconTCPServer, run_server
from .config import ServerConfig

__all__ = ["ConnectionRecord", "RconTCPServer", "ServerConfig", "run_server"]
