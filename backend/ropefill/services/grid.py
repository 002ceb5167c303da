"""
Rope Puzzle - Grid / Direction model

Cell index i = y * map_x + x, origin at the bottom-left corner, y grows upward.
"""

from enum import IntEnum
from typing import List, Optional, Tuple


# ============================================
# DIRECTION
# ============================================

class Direction(IntEnum):
    """Level-format direction codes."""
    INVALID = 0
    UP = 1
    DOWN = 2
    RIGHT = 3
    LEFT = 4


DIRECTION_VECTORS = {
    Direction.UP: (0, 1),
    Direction.DOWN: (0, -1),
    Direction.RIGHT: (1, 0),
    Direction.LEFT: (-1, 0),
}

OPPOSITES = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.RIGHT: Direction.LEFT,
    Direction.LEFT: Direction.RIGHT,
}


def opposite(direction: Direction) -> Direction:
    """UP <-> DOWN, RIGHT <-> LEFT, anything else -> INVALID."""
    return OPPOSITES.get(direction, Direction.INVALID)


# ============================================
# COORDINATES
# ============================================

def index_to_xy(index: int, map_x: int) -> Tuple[int, int]:
    return index % map_x, index // map_x


def xy_to_index(x: int, y: int, map_x: int) -> int:
    return y * map_x + x


def in_bounds(x: int, y: int, map_x: int, map_y: int) -> bool:
    return 0 <= x < map_x and 0 <= y < map_y


def direction_between(from_index: int, to_index: int, map_x: int) -> Direction:
    """
    Direction of a single orthogonal step from -> to.

    Works on coordinates, so index deltas of +-1 across a row boundary are
    never reported as adjacent.
    """
    if map_x <= 0:
        return Direction.INVALID
    x1, y1 = index_to_xy(from_index, map_x)
    x2, y2 = index_to_xy(to_index, map_x)
    delta = (x2 - x1, y2 - y1)
    for direction, vector in DIRECTION_VECTORS.items():
        if vector == delta:
            return direction
    return Direction.INVALID


def is_adjacent(from_index: int, to_index: int, map_x: int) -> bool:
    return direction_between(from_index, to_index, map_x) != Direction.INVALID


def step(index: int, direction: int, map_x: int, map_y: int) -> Optional[int]:
    """Cell one step from index in direction, None when it leaves the grid."""
    vector = DIRECTION_VECTORS.get(direction)
    if vector is None or map_x <= 0:
        return None
    x, y = index_to_xy(index, map_x)
    nx, ny = x + vector[0], y + vector[1]
    if not in_bounds(nx, ny, map_x, map_y):
        return None
    return xy_to_index(nx, ny, map_x)


def neighbors(index: int, map_x: int, map_y: int) -> List[int]:
    """In-bounds orthogonal neighbours in the order up, down, right, left."""
    result = []
    for direction in (Direction.UP, Direction.DOWN, Direction.RIGHT, Direction.LEFT):
        cell = step(index, direction, map_x, map_y)
        if cell is not None:
            result.append(cell)
    return result
