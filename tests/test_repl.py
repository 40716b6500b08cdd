import io
import threading
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import MagicMock, patch

from rcon_client.repl import (
    EXIT_AUTH_FAILURE,
    EXIT_INVALID_ARGUMENTS,
    EXIT_SUCCESS,
    UsageError,
    format_response,
    main,
    parse_address,
)
from rcon_server.app import RconTCPServer
from rcon_server.config import ServerConfig


def run_main(argv, stdin=None):
    stdout, stderr = io.StringIO(), io.StringIO()
    with redirect_stdout(stdout), redirect_stderr(stderr), patch("sys.stdin", stdin or io.StringIO()):
        code = main(argv)
    return code, stdout.getvalue(), stderr.getvalue()


class ArgumentTests(unittest.TestCase):
    def test_parse_address(self):
        self.assertEqual(parse_address("localhost"), ("localhost", 25575))
        self.assertEqual(parse_address("10.0.0.5:12345"), ("10.0.0.5", 12345))

    def test_parse_address_rejects_bad_input(self):
        for address in ("a:b:c", "host:port", "host:0", "host:65536", ":25575"):
            with self.assertRaises(UsageError):
                parse_address(address)

    def test_format_response(self):
        self.assertEqual(format_response(""), "< (empty response)")
        self.assertEqual(format_response("Done"), "< Done")

    def test_usage_errors_exit_with_one(self):
        for argv in (
            [],
            ["localhost"],
            ["localhost", "hunter2"],
            ["localhost", "hunter2", "-t", "list"],
            ["a:b:c", "hunter2", "list"],
            ["localhost:notaport", "hunter2", "list"],
        ):
            code, stdout, stderr = run_main(argv)
            self.assertEqual(code, EXIT_INVALID_ARGUMENTS, argv)
            self.assertIn("usage: rcon", stdout)
            self.assertTrue(stderr.startswith("error: "))


class CliIntegrationTests(unittest.TestCase):
    def setUp(self):
        self.server = RconTCPServer(ServerConfig(host="127.0.0.1", port=0, password="hunter2"))
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        host, port = self.server.server_address
        self.address = f"{host}:{port}"

    def tearDown(self):
        self.server.shutdown()
        self.server.server_close()
        self.thread.join(timeout=2)

    def test_commands_are_sent_in_order(self):
        code, stdout, _ = run_main([self.address, "hunter2", "say hi", "echo hello"])

        self.assertEqual(code, EXIT_SUCCESS)
        self.assertEqual(stdout, "> say hi\n< (empty response)\n> echo hello\n< hello\n")
        self.assertEqual(self.server.connections[0].commands, ["say hi", "echo hello"])

    def test_auth_failure_exits_with_two(self):
        code, stdout, stderr = run_main([self.address, "nope", "say hi"])

        self.assertEqual(code, EXIT_AUTH_FAILURE)
        self.assertEqual(stdout, "")
        self.assertEqual(stderr, "Authentication failure\n")

    def test_terminal_mode_until_quit(self):
        stdin = io.StringIO("echo one\n\nsay hi\n\\quit\necho never\n")
        code, stdout, _ = run_main([self.address, "hunter2", "-t"], stdin=stdin)

        self.assertEqual(code, EXIT_SUCCESS)
        self.assertEqual(
            stdout,
            'Authenticated. Type "\\quit" to quit.\n'
            "> < one\n"
            "> < Unknown command. Try /help for a list of commands\n"
            "> < (empty response)\n"
            "> ",
        )
        self.assertEqual(self.server.connections[0].commands, ["echo one", "", "say hi"])

    def test_terminal_mode_until_end_of_input(self):
        code, stdout, _ = run_main([self.address, "hunter2", "-t"], stdin=io.StringIO("list\n"))

        self.assertEqual(code, EXIT_SUCCESS)
        self.assertTrue(stdout.endswith("< There are 0 of a max of 20 players online: \n> \n"))

    def test_terminal_mode_interrupt(self):
        stdin = MagicMock()
        stdin.readline.side_effect = KeyboardInterrupt
        code, stdout, _ = run_main([self.address, "hunter2", "--terminal"], stdin=stdin)

        self.assertEqual(code, EXIT_SUCCESS)
        self.assertTrue(stdout.endswith("> \n"))
        self.assertTrue(self.server.connections[0].closed.wait(timeout=2))


if __name__ == "__main__":
    unittest.main()
