#!/usr/bin/env python3
"""Command-line RCON client: run one-off commands or an interactive terminal."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, TextIO

from .connection import DEFAULT_PORT, RconClient
from .errors import AuthFailureError


EXIT_SUCCESS = 0
EXIT_INVALID_ARGUMENTS = 1
EXIT_AUTH_FAILURE = 2

QUIT_COMMAND = "\\quit"
EMPTY_RESPONSE = "(empty response)"

EXAMPLES = f"""
examples:
  rcon localhost:25575 hunter2 'say Hello, world' 'teleport Notch 0 0 0'
  rcon localhost hunter2 -t

The port can be omitted, the default is {DEFAULT_PORT}.
"-t" enables terminal mode, to enter commands in an interactive terminal.
""".strip()


class UsageError(Exception):
    """Raised for any malformed invocation."""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="rcon",
        description="Send commands to a game server over RCON",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("address", metavar="host[:port]")
    parser.add_argument("password")
    parser.add_argument("commands", nargs="*", metavar="command")
    parser.add_argument("-t", "--terminal", action="store_true", help="read commands interactively from stdin")
    parser.add_argument("-v", "--verbose", action="store_true", help="log protocol traffic to stderr")
    return parser


def parse_address(address: str) -> tuple[str, int]:
    parts = address.split(":")
    if len(parts) > 2 or not parts[0]:
        raise UsageError(f"Invalid address: {address}")
    if len(parts) == 1:
        return parts[0], DEFAULT_PORT

    try:
        port = int(parts[1])
    except ValueError as exc:
        raise UsageError(f"Invalid port: {parts[1]}") from exc
    if not 1 <= port <= 65535:
        raise UsageError(f"Port must be between 1 and 65535, got {port}")
    return parts[0], port


def format_response(response: str) -> str:
    return f"< {response or EMPTY_RESPONSE}"


def run_commands(client: RconClient, commands: Iterable[str], out: TextIO) -> None:
    for command in commands:
        print(f"> {command}", file=out)
        print(format_response(client.send_command(command)), file=out)


def run_terminal(client: RconClient, stdin: TextIO, out: TextIO) -> None:
    print(f'Authenticated. Type "{QUIT_COMMAND}" to quit.', file=out)
    while True:
        out.write("> ")
        out.flush()
        try:
            line = stdin.readline()
        except KeyboardInterrupt:
            print(file=out)
            break

        if not line:
            print(file=out)
            break
        line = line.rstrip("\r\n")
        if line.strip() == QUIT_COMMAND:
            break

        try:
            response = client.send_command(line)
        except KeyboardInterrupt:
            print(file=out)
            break
        print(format_response(response), file=out)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        host, port = parse_address(args.address)
        if args.terminal == bool(args.commands):
            raise UsageError("Pass either -t or at least one command")
    except UsageError as exc:
        print(f"error: {exc}", file=sys.stderr)
        parser.print_help(sys.stdout)
        return EXIT_INVALID_ARGUMENTS

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        client = RconClient.open(host, port, args.password)
    except AuthFailureError:
        print("Authentication failure", file=sys.stderr)
        return EXIT_AUTH_FAILURE

    with client:
        if args.terminal:
            run_terminal(client, sys.stdin, sys.stdout)
        else:
            run_commands(client, args.commands, sys.stdout)
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
