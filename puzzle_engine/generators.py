"""Inserts generators used by grid autogeneration.

A generator maps the grid coordinates of a cell to the insert placed on its
right side and on its bottom side. The neighbouring cell receives the
complement, so interior edges always interlock whatever the generator returns.
"""

import random
from typing import Callable, Optional

from .structure import Insert

InsertsGenerator = Callable[[int, int], Insert]


def flipflop(row: int, col: int) -> Insert:
    """Alternate tabs and slots like a checkerboard."""
    return Insert.TAB if (row + col) % 2 == 0 else Insert.SLOT


def two_and_two(row: int, col: int) -> Insert:
    """Alternate tabs and slots every two cells."""
    return Insert.TAB if ((row + col) // 2) % 2 == 0 else Insert.SLOT


def fixed(row: int, col: int) -> Insert:
    """Always place a tab."""
    return Insert.TAB


def random_generator(rng: Optional[random.Random] = None) -> InsertsGenerator:
    """Build a generator picking tabs or slots at random.

    The choice for a cell is memoized so that asking twice for the same
    coordinates yields the same insert.

    Args:
        rng: Random source. A fresh unseeded one is used if None.
    """
    source = rng or random.Random()
    chosen: dict[tuple[int, int], Insert] = {}

    def generate(row: int, col: int) -> Insert:
        if (row, col) not in chosen:
            chosen[(row, col)] = source.choice((Insert.TAB, Insert.SLOT))
        return chosen[(row, col)]

    return generate
