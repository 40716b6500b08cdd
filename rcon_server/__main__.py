import argparse
import logging

from .app import run_server
from .config import ServerConfig


def main() -> None:
    parser = argparse.ArgumentParser(description="Mock RCON server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=25575)
    parser.add_argument("--password", default="changeme")
    parser.add_argument("--max-players", type=int, default=20)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = ServerConfig(
        host=args.host,
        port=args.port,
        password=args.password,
        max_players=args.max_players,
    )
    run_server(config)


if __name__ == "__main__":
    main()
