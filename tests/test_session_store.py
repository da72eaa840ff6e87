import threading
import unittest

from ludo_inca.exceptions import SessionExistsError, SessionNotFoundError
from ludo_inca.session import SessionStore, TurnTimer
from ludo_inca.types import Color, Player

from tests.fakes import FakeTimer, place, started_session


def make_player(player_id, color=Color.RED):
    return Player(player_id=player_id, name=player_id.title(), color=color)


class TestSessionStore(unittest.TestCase):
    def setUp(self):
        self.store = SessionStore()

    def test_create_and_get(self):
        session = self.store.create_session("r1")
        self.assertIs(self.store.get_session("r1"), session)
        self.assertIn("r1", self.store)
        self.assertFalse(session.started)
        self.assertIsNone(session.last_dice_roll)

    def test_duplicate_session_refused(self):
        session = self.store.create_session("r1")
        with self.assertRaises(SessionExistsError):
            self.store.create_session("r1")
        self.assertIs(self.store.get_session("r1"), session)

    def test_get_or_create_returns_existing(self):
        session = self.store.get_or_create("r1")
        self.assertIs(self.store.get_or_create("r1"), session)
        self.assertEqual(len(self.store), 1)

    def test_get_or_create_from_many_threads(self):
        barrier = threading.Barrier(8)
        results = []

        def worker():
            barrier.wait(timeout=5)
            results.append(self.store.get_or_create("r1"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)
        self.assertEqual(len(results), 8)
        self.assertEqual(len({id(s) for s in results}), 1)
        self.assertIs(self.store.get_session("r1"), results[0])

    def test_require_missing_session(self):
        with self.assertRaises(SessionNotFoundError):
            self.store.require("missing")
        with self.assertRaises(KeyError):
            self.store.require("missing")

    def test_add_player_allocates_four_home_tokens(self):
        self.store.create_session("r1")
        session = self.store.add_player("r1", make_player("a"))
        tokens = session.tokens["a"]
        self.assertEqual(len(tokens), 4)
        self.assertTrue(all(t.position == -1 for t in tokens))
        self.assertEqual(len({t.token_id for t in tokens}), 4)

    def test_add_player_is_idempotent(self):
        self.store.create_session("r1")
        session = self.store.add_player("r1", make_player("a"))
        ids = [t.token_id for t in session.tokens["a"]]
        self.store.add_player("r1", make_player("a"))
        self.assertEqual(len(session.players), 1)
        self.assertEqual([t.token_id for t in session.tokens["a"]], ids)

    def test_add_player_to_missing_session(self):
        with self.assertRaises(SessionNotFoundError):
            self.store.add_player("nope", make_player("a"))

    def test_lobby_session_kept_when_empty(self):
        self.store.create_session("r1")
        self.store.add_player("r1", make_player("a"))
        result = self.store.remove_player("r1", "a")
        self.assertIsNotNone(result)
        self.assertIn("r1", self.store)
        self.assertEqual(result.players, [])

    def test_started_session_deleted_when_empty(self):
        store, session = started_session("a", room_id="r1")
        timer = FakeTimer(30, lambda: None)
        session.turn_timer = TurnTimer(generation=1, timer=timer)
        self.assertIsNone(store.remove_player("r1", "a"))
        self.assertNotIn("r1", store)
        self.assertTrue(timer.cancelled)

    def test_delete_session(self):
        self.store.create_session("r1")
        self.assertTrue(self.store.delete_session("r1"))
        self.assertFalse(self.store.delete_session("r1"))
        self.assertIsNone(self.store.get_session("r1"))

    def test_remove_from_missing_session(self):
        self.assertIsNone(self.store.remove_player("nope", "a"))


class TestTurnIndexOnRemoval(unittest.TestCase):
    def test_removing_earlier_seat_keeps_current_player(self):
        store, session = started_session("a", "b", "c", room_id="r1")
        session.current_player_index = 2
        store.remove_player("r1", "a")
        self.assertEqual(session.current_player.player_id, "c")

    def test_removing_current_player_passes_seat(self):
        store, session = started_session("a", "b", "c", room_id="r1")
        session.current_player_index = 1
        session.move_pending = True
        store.remove_player("r1", "b")
        self.assertEqual(session.current_player.player_id, "c")
        self.assertFalse(session.move_pending)

    def test_removing_last_seat_wraps(self):
        store, session = started_session("a", "b", "c", room_id="r1")
        session.current_player_index = 2
        store.remove_player("r1", "c")
        self.assertEqual(session.current_player_index, 0)
        self.assertEqual(session.current_player.player_id, "a")

    def test_removed_players_tokens_are_dropped(self):
        store, session = started_session("a", "b", room_id="r1")
        store.remove_player("r1", "b")
        self.assertNotIn("b", session.tokens)


class TestGameSession(unittest.TestCase):
    def test_begin_resets_board(self):
        store, session = started_session("a", "b")
        place(session, "a", 10, 57)
        session.current_player_index = 1
        session.last_dice_roll = 4
        session.finished = True
        session.begin()
        self.assertTrue(all(t.position == -1 for t in session.tokens["a"]))
        self.assertEqual(session.current_player_index, 0)
        self.assertIsNone(session.last_dice_roll)
        self.assertFalse(session.finished)
        self.assertTrue(session.started)

    def test_exactly_one_player_owns_the_turn(self):
        store, session = started_session("a", "b", "c")
        for index in range(3):
            session.current_player_index = index
            owners = [p for p in session.players if session.is_turn(p.player_id)]
            self.assertEqual(len(owners), 1)

    def test_find_token(self):
        store, session = started_session("a", "b")
        token = session.tokens["a"][2]
        self.assertIs(session.find_token("a", token.token_id), token)
        self.assertIsNone(session.find_token("b", token.token_id))


if __name__ == "__main__":
    unittest.main()
