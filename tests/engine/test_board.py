import unittest

from ludo_inca import board
from ludo_inca.types import Color


class TestBoardTopology(unittest.TestCase):
    def test_constants(self):
        self.assertEqual(board.PERIMETER_LENGTH, 52)
        self.assertEqual(board.FINAL_PATH_START, 52)
        self.assertEqual(board.GOAL, 57)
        self.assertEqual(board.HOME, -1)

    def test_eight_safe_squares_on_perimeter(self):
        self.assertEqual(len(board.SAFE_SQUARES), 8)
        for square in board.SAFE_SQUARES:
            self.assertTrue(board.is_perimeter(square))

    def test_entry_square_is_safe(self):
        self.assertTrue(board.is_safe_square(board.ENTRY))

    def test_region_predicates(self):
        self.assertTrue(board.is_home(-1))
        self.assertTrue(board.is_perimeter(0))
        self.assertTrue(board.is_perimeter(51))
        self.assertFalse(board.is_perimeter(52))
        self.assertTrue(board.is_final_path(52))
        self.assertTrue(board.is_final_path(57))
        self.assertFalse(board.is_final_path(51))
        self.assertTrue(board.is_goal(57))
        self.assertFalse(board.is_safe_square(10))

    def test_board_square_uses_color_offset(self):
        self.assertEqual(board.board_square(Color.RED, 5), 5)
        self.assertEqual(board.board_square(Color.GREEN, 5), 18)
        self.assertEqual(board.board_square(Color.YELLOW, 20), (39 + 20) % 52)

    def test_board_square_off_perimeter(self):
        self.assertIsNone(board.board_square(Color.RED, -1))
        self.assertIsNone(board.board_square(Color.BLUE, 54))
        self.assertIsNone(board.board_square(Color.BLUE, 57))


if __name__ == "__main__":
    unittest.main()
