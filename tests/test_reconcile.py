import unittest
from unittest.mock import MagicMock

from chess_client import reconcile
from chess_client.errors import APIError, ReconcileTimeout, TransportError, UsageError

from fakes import game, make_session, player, session_snapshot

CPU = player("cpu", kind=2, level=5, search_time=100)


def pending(**kw):
    return game(state="pending", **kw)


class BoundedPollTests(unittest.TestCase):
    def setUp(self):
        self.session = make_session()
        self.session.login("tok", "u-white", "ann")
        self.session.adopt_game(game(game_id="g1", black=CPU))
        self.client = self.session.client
        self.sleep = MagicMock()

    def poll(self, **kw):
        kw.setdefault("interval_s", 0.2)
        kw.setdefault("max_attempts", 50)
        return reconcile.await_computer_move(self.session, "g1", sleep=self.sleep, **kw)

    def test_settles_after_a_few_pending_responses(self):
        done = game(game_id="g1", moves=["e2e4", "e7e5"], turn="w", black=CPU)
        self.client.get_game.side_effect = [pending(game_id="g1")] * 3 + [done]
        state = self.poll()
        self.assertIs(state, done)
        self.assertEqual(self.client.get_game.call_count, 4)
        self.assertEqual(self.sleep.call_count, 4)
        self.sleep.assert_called_with(0.2)
        self.assertIs(self.session.snapshot, done)
        self.assertEqual(self.session.last_move_count, 2)

    def test_settles_on_the_last_attempt(self):
        done = game(game_id="g1", moves=["e2e4", "e7e5"], black=CPU)
        self.client.get_game.side_effect = [pending(game_id="g1")] * 49 + [done]
        self.assertIs(self.poll(), done)
        self.assertEqual(self.client.get_game.call_count, 50)

    def test_always_pending_times_out_without_touching_session(self):
        self.client.get_game.return_value = pending(game_id="g1", moves=["e2e4"])
        before = session_snapshot(self.session)
        with self.assertRaises(ReconcileTimeout) as ctx:
            self.poll()
        self.assertEqual(self.client.get_game.call_count, 50)
        self.assertEqual(ctx.exception.attempts, 50)
        self.assertIn("may still complete", str(ctx.exception))
        self.assertEqual(session_snapshot(self.session), before)

    def test_failed_attempts_count_against_the_ceiling(self):
        done = game(game_id="g1", moves=["e2e4", "e7e5"], black=CPU)
        self.client.get_game.side_effect = [
            TransportError("connection failed"),
            APIError(503, error="busy"),
            done,
        ]
        self.assertIs(self.poll(), done)
        self.assertEqual(self.client.get_game.call_count, 3)

        self.client.get_game.reset_mock()
        self.client.get_game.side_effect = TransportError("connection failed")
        with self.assertRaises(ReconcileTimeout) as ctx:
            self.poll(max_attempts=5)
        self.assertEqual(self.client.get_game.call_count, 5)
        self.assertIsInstance(ctx.exception.last_error, TransportError)

    def test_deleted_game_stops_polling_and_clears_context(self):
        self.client.get_game.side_effect = [pending(game_id="g1"), APIError(404, error="game not found")]
        with self.assertRaises(APIError):
            self.poll()
        self.assertEqual(self.client.get_game.call_count, 2)
        self.assertIsNone(self.session.current_game)
        self.assertIsNone(self.session.snapshot)

    def test_ceiling_must_be_positive(self):
        with self.assertRaises(ValueError):
            self.poll(max_attempts=0)


class MoveSubmissionTests(unittest.TestCase):
    def setUp(self):
        self.session = make_session()
        self.session.adopt_game(game(game_id="g1", black=CPU))
        self.client = self.session.client
        self.sleep = MagicMock()

    def test_immediate_state_is_adopted(self):
        after = game(game_id="g1", moves=["e2e4"], turn="b", black=CPU)
        self.client.make_move.return_value = after
        state, waited = reconcile.submit_move(self.session, "e2e4", sleep=self.sleep)
        self.assertFalse(waited)
        self.assertIs(self.session.snapshot, after)
        self.client.make_move.assert_called_once_with("g1", "e2e4")
        self.client.get_game.assert_not_called()

    def test_pending_reply_is_never_adopted(self):
        self.client.make_move.return_value = pending(game_id="g1", moves=["e2e4"], turn="b", black=CPU)
        seen = []

        def fetch(game_id):
            # the pending answer must not have leaked into the session
            seen.append(self.session.last_move_count)
            return game(game_id="g1", moves=["e2e4", "e7e5"], black=CPU)

        self.client.get_game.side_effect = fetch
        on_pending = MagicMock()
        state, waited = reconcile.submit_move(self.session, "e2e4", on_pending=on_pending,
                                              interval_s=0.0, max_attempts=3, sleep=self.sleep)
        self.assertTrue(waited)
        on_pending.assert_called_once_with()
        self.assertEqual(seen, [0])
        self.assertEqual(self.session.last_move_count, 2)
        self.assertEqual(state.moves, ("e2e4", "e7e5"))

    def test_trigger_uses_the_computer_endpoint(self):
        self.client.trigger_computer_move.return_value = pending(game_id="g1")
        self.client.get_game.return_value = game(game_id="g1", moves=["d2d4"], turn="b")
        state, waited = reconcile.trigger_computer_move(self.session, interval_s=0.0, max_attempts=2, sleep=self.sleep)
        self.assertTrue(waited)
        self.client.trigger_computer_move.assert_called_once_with("g1")
        self.client.make_move.assert_not_called()
        self.assertEqual(self.session.last_move_count, 1)

    def test_no_current_game(self):
        self.session.clear_game()
        with self.assertRaises(UsageError):
            reconcile.submit_move(self.session, "e2e4")
        self.client.make_move.assert_not_called()


class LongPollTests(unittest.TestCase):
    def setUp(self):
        self.session = make_session()
        self.session.adopt_game(game(game_id="g1", moves=["e2e4", "e7e5"]))
        self.client = self.session.client

    def test_new_moves_are_adopted(self):
        newer = game(game_id="g1", moves=["e2e4", "e7e5", "g1f3"], turn="b")
        self.client.wait_for_game.return_value = newer
        result = reconcile.long_poll(self.session)
        self.client.wait_for_game.assert_called_once_with("g1", 2)
        self.assertTrue(result.updated)
        self.assertEqual(result.baseline, 2)
        self.assertEqual(self.session.last_move_count, 3)
        self.assertIs(self.session.snapshot, newer)

    def test_timeout_leaves_session_alone(self):
        before = session_snapshot(self.session)
        self.client.wait_for_game.return_value = game(game_id="g1", moves=["e2e4", "e7e5"])
        result = reconcile.long_poll(self.session)
        self.assertFalse(result.updated)
        self.assertEqual(session_snapshot(self.session), before)

    def test_requires_a_game(self):
        self.session.clear_game()
        with self.assertRaises(UsageError) as ctx:
            reconcile.long_poll(self.session)
        self.assertEqual(str(ctx.exception), reconcile.NO_GAME_MESSAGE)


if __name__ == "__main__":
    unittest.main()
