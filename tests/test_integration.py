"""End-to-end runs of the client against the in-memory dev server over real HTTP."""
import threading
import unittest

from werkzeug.serving import make_server

from chess_client import outcome, reconcile
from chess_client.api_types import COMPUTER, WHITE, CreateGameRequest, PlayerConfig
from chess_client.devserver import create_app
from chess_client.errors import APIError
from chess_client.session import Session
from chess_client.transport import APIClient

from fakes import captured_output


class DevServerTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.server = make_server("127.0.0.1", 0, create_app(think_s=0.05, wait_s=0.3), threaded=True)
        cls.thread = threading.Thread(target=cls.server.serve_forever, daemon=True)
        cls.thread.start()
        cls.url = f"http://127.0.0.1:{cls.server.server_port}"

    @classmethod
    def tearDownClass(cls):
        cls.server.shutdown()
        cls.thread.join(timeout=5)

    def setUp(self):
        out = captured_output()
        self.output = out.__enter__()
        self.addCleanup(out.__exit__, None, None, None)
        self.session = Session(client=self.new_client())

    def new_client(self):
        return APIClient(base_url=self.url, api_prefix="/api/v1", timeout_s=5, long_poll_timeout_s=5)

    def new_game(self, **kw):
        state = self.session.client.create_game(CreateGameRequest(**kw))
        self.session.adopt_game(state)
        return state

    def test_health(self):
        self.assertEqual(self.session.client.health().status, "ok")

    def test_register_login_and_color(self):
        res = self.session.client.register("ann", "pass1234", "ann@example.test")
        self.session.login(res.token, res.user_id, res.username)
        self.assertEqual(self.session.client.me().username, "ann")

        state = self.new_game()
        self.assertEqual(state.players.white.id, res.user_id)
        self.assertEqual(self.session.player_color, WHITE)

        with self.assertRaises(APIError) as ctx:
            self.session.client.login("ann", "wrong")
        self.assertEqual(ctx.exception.status, 401)
        self.assertEqual(ctx.exception.code, "INVALID_CREDENTIALS")

    def test_fools_mate(self):
        self.new_game()
        state = None
        for mv in ("f2f3", "e7e5", "g2g4", "d8h4"):
            state, waited = reconcile.submit_move(self.session, mv)
            self.assertFalse(waited)
        self.assertEqual(state.state, "checkmate")
        self.assertEqual(self.session.last_move_count, 4)
        self.assertEqual(outcome.announce(state).winner, "black")
        self.assertIn("CHECKMATE! Black wins!", self.output.getvalue())

    def test_illegal_move_is_rejected(self):
        self.new_game()
        with self.assertRaises(APIError) as ctx:
            reconcile.submit_move(self.session, "e2e5")
        self.assertEqual(ctx.exception.code, "ILLEGAL_MOVE")
        self.assertEqual(self.session.last_move_count, 0)

    def test_computer_move_is_reconciled(self):
        self.new_game(black=PlayerConfig(kind=COMPUTER, level=1, search_time_ms=100))
        reconcile.submit_move(self.session, "e2e4")
        self.assertTrue(outcome.classify(self.session.snapshot).computer_to_move)

        state, waited = reconcile.trigger_computer_move(self.session, interval_s=0.02, max_attempts=50)
        self.assertTrue(waited)
        self.assertEqual(state.move_count, 2)
        self.assertEqual(state.last_move.color, "black")
        self.assertEqual(self.session.snapshot, state)

    def test_long_poll_timeout_and_update(self):
        game = self.new_game()
        result = reconcile.long_poll(self.session)
        self.assertFalse(result.updated)
        self.assertEqual(self.session.last_move_count, 0)

        opponent = self.new_client()
        timer = threading.Timer(0.05, opponent.make_move, args=(game.id, "d2d4"))
        timer.start()
        self.addCleanup(timer.cancel)
        result = reconcile.long_poll(self.session)
        timer.join()
        if not result.updated:
            # the opponent's move can land after the wait budget on a slow machine
            result = reconcile.long_poll(self.session)
        self.assertTrue(result.updated)
        self.assertEqual(self.session.snapshot.moves, ("d2d4",))

    def test_join_unknown_game(self):
        with self.assertRaises(APIError) as ctx:
            self.session.client.get_game("does-not-exist")
        self.assertTrue(ctx.exception.is_not_found)
        self.assertIsNone(self.session.current_game)

    def test_undo_and_delete(self):
        game = self.new_game()
        for mv in ("e2e4", "e7e5", "g1f3"):
            reconcile.submit_move(self.session, mv)
        state = self.session.client.undo_moves(game.id, 2)
        self.session.adopt_game(state)
        self.assertEqual(self.session.last_move_count, 1)
        with self.assertRaises(APIError) as ctx:
            self.session.client.undo_moves(game.id, 5)
        self.assertEqual(ctx.exception.code, "NO_MOVES")

        self.session.client.delete_game(game.id)
        with self.assertRaises(APIError):
            self.session.client.get_game(game.id)

    def test_board_view(self):
        game = self.new_game()
        board = self.session.client.get_board(game.id)
        lines = board.board.split("\n")
        self.assertEqual(len(lines), 10)
        self.assertTrue(lines[1].startswith("8 r n b q k b n r"))


if __name__ == "__main__":
    unittest.main()
