import unittest

from ludo_inca import board
from ludo_inca.engine import GameEngine
from ludo_inca.types import CapturedToken

from tests.fakes import ScriptedDice, place, started_session


class TestCaptures(unittest.TestCase):
    def setUp(self):
        self.store, self.session = started_session("a", "b", "c")
        self.engine = GameEngine(rng=ScriptedDice())

    def move(self, player_id, token_index, steps):
        token = self.session.tokens[player_id][token_index]
        self.session.last_dice_roll = steps
        return self.engine.move_token(self.session, player_id, token.token_id, steps)

    def test_capture_sends_opponent_home(self):
        place(self.session, "b", 10)
        place(self.session, "a", 6)
        victim = self.session.tokens["b"][0]
        res = self.move("a", 0, 4)
        self.assertTrue(res.success)
        self.assertEqual(res.captured_tokens, [CapturedToken("b", victim.token_id)])
        self.assertEqual(victim.position, -1)
        self.assertEqual(self.session.tokens["a"][0].position, 10)

    def test_no_capture_on_safe_square(self):
        place(self.session, "b", 8)
        place(self.session, "a", 5)
        res = self.move("a", 0, 3)
        self.assertTrue(res.success)
        self.assertEqual(res.captured_tokens, [])
        self.assertEqual(self.session.tokens["b"][0].position, 8)
        self.assertEqual(self.session.tokens["a"][0].position, 8)

    def test_own_tokens_never_captured(self):
        place(self.session, "a", 6, 10)
        res = self.move("a", 0, 4)
        self.assertTrue(res.success)
        self.assertEqual(res.captured_tokens, [])
        self.assertEqual(self.session.tokens["a"][1].position, 10)

    def test_all_opponents_on_square_captured(self):
        place(self.session, "b", 20, 20)
        place(self.session, "c", 20)
        place(self.session, "a", 17)
        res = self.move("a", 0, 3)
        self.assertEqual(len(res.captured_tokens), 3)
        self.assertEqual(self.session.tokens["b"][0].position, -1)
        self.assertEqual(self.session.tokens["b"][1].position, -1)
        self.assertEqual(self.session.tokens["c"][0].position, -1)

    def test_no_capture_in_final_path(self):
        place(self.session, "b", 53)
        place(self.session, "a", 50)
        res = self.move("a", 0, 3)
        self.assertTrue(res.success)
        self.assertEqual(res.captured_tokens, [])
        self.assertEqual(self.session.tokens["b"][0].position, 53)

    def test_entry_square_is_safe_so_entering_cannot_capture(self):
        # 0 is in the safe set, so the capture check on entry always finds nothing
        self.assertIn(0, board.SAFE_SQUARES)
        place(self.session, "b", 0)
        res = self.move("a", 0, 6)
        self.assertTrue(res.success)
        self.assertEqual(res.captured_tokens, [])
        self.assertEqual(self.session.tokens["b"][0].position, 0)


class TestWins(unittest.TestCase):
    def setUp(self):
        self.store, self.session = started_session("a", "b")
        self.engine = GameEngine(rng=ScriptedDice())

    def test_last_token_home_wins(self):
        place(self.session, "a", 57, 57, 57, 55)
        last = self.session.tokens["a"][3]
        self.session.last_dice_roll = 2
        res = self.engine.move_token(self.session, "a", last.token_id, 2)
        self.assertTrue(res.success)
        self.assertTrue(res.has_won)
        self.assertTrue(self.session.finished)
        self.assertEqual(self.session.winner_id, "a")

    def test_reaching_goal_with_tokens_left_is_not_a_win(self):
        place(self.session, "a", 57, 57, 55)
        token = self.session.tokens["a"][2]
        self.session.last_dice_roll = 2
        res = self.engine.move_token(self.session, "a", token.token_id, 2)
        self.assertTrue(res.reached_end)
        self.assertFalse(res.has_won)
        self.assertFalse(self.session.finished)
        self.assertIsNone(self.session.winner_id)

    def test_has_won(self):
        self.assertFalse(GameEngine.has_won(self.session, "a"))
        place(self.session, "a", 57, 57, 57, 57)
        self.assertTrue(GameEngine.has_won(self.session, "a"))


if __name__ == "__main__":
    unittest.main()
