"""Shared fixtures: hand-built levels with known blocking structure."""

import pytest

from ropefill.schemas import LevelData
from ropefill.services.rope_logic import derive_rope


def make_level(map_x, map_y, paths):
    return LevelData(
        MapX=map_x,
        MapY=map_y,
        Rope=tuple(derive_rope(path, map_x) for path in paths),
    )


class ConstantSource:
    """Random source that always returns the same value."""

    def __init__(self, value):
        self.value = value

    def next(self):
        return self.value, self


@pytest.fixture
def chain_level():
    """
    4x4 level with a blocking chain C -> A -> B.

    C [0,1]    pulls left, out of the grid (movable)
    A [5,9,13] pulls down onto C's cell 1 (pos 1, weight 1)
    B [6,7,11] pulls left onto A's head 5 (pos 0, weight 3)
    """
    return make_level(4, 4, [[0, 1], [5, 9, 13], [6, 7, 11]])


@pytest.fixture
def deadlock_level():
    """Two ropes pulling into each other's head; nothing can move."""
    return make_level(4, 4, [[5, 4], [6, 7]])


@pytest.fixture
def open_level():
    """Two vertical ropes on the bottom edge, both pulled out of the grid."""
    return make_level(4, 4, [[0, 4], [3, 7]])


@pytest.fixture
def free_ahead_level():
    """Two ropes pulled down into free cells."""
    return make_level(4, 4, [[4, 8], [7, 11]])
