import unittest
from unittest.mock import MagicMock

from chess_client.commands import create_registry
from chess_client.errors import APIError, UsageError
from chess_client.registry import Command, CommandRegistry

from fakes import captured_output, make_session, session_snapshot


class RegistryDispatchTests(unittest.TestCase):
    def setUp(self):
        self.session = make_session()
        self.registry = CommandRegistry(self.session)
        self.handler = MagicMock()
        self.registry.register(Command(name="move", alias="m", description="Make a move", usage="move <uci>", handler=self.handler))

    def test_name_and_alias_reach_same_handler(self):
        with captured_output():
            self.registry.execute("move e2e4")
            self.registry.execute("m e2e4")
        self.assertEqual(self.handler.call_count, 2)
        first, second = self.handler.call_args_list
        self.assertEqual(first.args, (self.session, ["e2e4"]))
        self.assertEqual(first, second)

    def test_extra_whitespace_is_collapsed(self):
        with captured_output():
            self.registry.execute("  m   e2e4   extra ")
        self.handler.assert_called_once_with(self.session, ["e2e4", "extra"])

    def test_empty_line_is_a_no_op(self):
        with captured_output() as out:
            self.registry.execute("")
            self.registry.execute("   ")
        self.handler.assert_not_called()
        self.assertEqual(out.getvalue(), "")

    def test_unknown_command_prints_and_does_not_mutate(self):
        before = session_snapshot(self.session)
        with captured_output() as out:
            self.registry.execute("castle kingside")
        self.assertIn("Unknown command: castle", out.getvalue())
        self.assertIn("Type 'help' for available commands", out.getvalue())
        self.assertEqual(session_snapshot(self.session), before)
        self.session.client.assert_not_called()
        self.assertEqual(self.session.client.method_calls, [])

    def test_later_registration_wins(self):
        replacement = MagicMock()
        self.registry.register(Command(name="move", alias="m", description="Other", usage="move", handler=replacement))
        with captured_output():
            self.registry.execute("m a1a2")
        replacement.assert_called_once()
        self.handler.assert_not_called()
        self.assertEqual(len(self.registry.commands()), 1)

    def test_verbose_flag_is_pushed_to_client(self):
        self.session.verbose = True
        with captured_output():
            self.registry.execute("m e2e4")
        self.session.client.set_verbose.assert_called_with(True)

    def test_client_errors_are_printed(self):
        self.handler.side_effect = APIError(400, error="illegal move", code="ILLEGAL_MOVE")
        with captured_output() as out:
            self.registry.execute("m e2e5")
        self.assertIn("Error: illegal move", out.getvalue())

    def test_usage_errors_are_printed(self):
        self.handler.side_effect = UsageError("usage: move <uci-move>")
        with captured_output() as out:
            self.registry.execute("m")
        self.assertIn("Error: usage: move <uci-move>", out.getvalue())

    def test_programming_errors_propagate(self):
        self.handler.side_effect = KeyError("boom")
        with captured_output():
            with self.assertRaises(KeyError):
                self.registry.execute("m e2e4")


class BuiltinCommandTests(unittest.TestCase):
    def setUp(self):
        self.session = make_session()
        self.registry = create_registry(self.session)

    def test_every_alias_is_registered(self):
        expected = {
            "new": "n", "join": "j", "move": "m", "computer": "c", "undo": "u", "show": "h",
            "state": "s", "delete": "d", "poll": "p", "register": "r", "login": "l", "logout": "o",
            "whoami": "i", "user": "e", "health": ".", "url": "/", "raw": ":", "help": "?", "exit": "x",
        }
        for name, alias in expected.items():
            self.assertIs(self.registry.lookup(name), self.registry.lookup(alias), name)
            self.assertEqual(self.registry.lookup(name).alias, alias)

    def test_help_lists_groups(self):
        with captured_output() as out:
            self.registry.execute("?")
        text = out.getvalue()
        for heading in ("Game Commands:", "Auth Commands:", "Utility Commands:"):
            self.assertIn(heading, text)
        self.assertIn("[m] move", text)
        self.assertIn("Add '-v' to any command for verbose output", text)

    def test_help_for_one_command(self):
        with captured_output() as out:
            self.registry.execute("help undo")
        text = out.getvalue()
        self.assertIn("Short form: u", text)
        self.assertIn("Usage: undo [count]", text)

    def test_help_for_unknown_topic(self):
        with captured_output() as out:
            self.registry.execute("help fly")
        self.assertIn("Error: unknown command: fly", out.getvalue())

    def test_exit_says_goodbye(self):
        with captured_output() as out:
            self.registry.execute("x")
        self.assertIn("Goodbye!", out.getvalue())


if __name__ == "__main__":
    unittest.main()
