"""
Board topology for the cross-and-circle race board.
Static geometry only: every color shares one position numbering, so a
token's position is directly comparable with any opponent's.

Positions:
    -1       home (not yet entered)
    0..51    perimeter
    52..56   final path
    57       goal
"""

from typing import FrozenSet

from .config import config
from .types import Color

HOME = config.HOME_POSITION
ENTRY = config.ENTRY_POSITION
PERIMETER_LENGTH = config.PERIMETER_LENGTH
PERIMETER_END = PERIMETER_LENGTH - 1
FINAL_PATH_START = config.FINAL_PATH_START
FINAL_PATH_END = config.FINAL_PATH_END
GOAL = FINAL_PATH_END

SAFE_SQUARES: FrozenSet[int] = frozenset(config.SAFE_SQUARES)
ENTRY_OFFSETS = {
    color: offset for color, offset in zip(Color.seating_order(), config.ENTRY_OFFSETS)
}


def is_home(position: int) -> bool:
    return position == HOME


def is_perimeter(position: int) -> bool:
    return ENTRY <= position <= PERIMETER_END


def is_final_path(position: int) -> bool:
    """True for the final path cells including the goal (52..57)."""
    return FINAL_PATH_START <= position <= FINAL_PATH_END


def is_goal(position: int) -> bool:
    return position == GOAL


def is_safe_square(position: int) -> bool:
    """Captures never happen on a safe square; off-perimeter cells are never capture sites."""
    return position in SAFE_SQUARES


def board_square(color: Color, position: int) -> int | None:
    """Map a perimeter position to the drawn board square for ``color``.

    Returns None for home, final path and goal positions, which are
    drawn in the color's own lanes rather than on the shared ring.
    """
    if not is_perimeter(position):
        return None
    return (ENTRY_OFFSETS[color] + position) % PERIMETER_LENGTH
