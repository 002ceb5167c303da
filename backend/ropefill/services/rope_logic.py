"""
Rope Puzzle - Rope field derivation

D / H / BendCount are always derived from the cell sequence through
derive_rope(); generation and the reversal repair both go through it.
"""

from typing import Sequence

from ..schemas import RopeData
from .grid import Direction, direction_between, opposite


def calculate_head(path: Sequence[int]) -> int:
    """H = Index[0], or 0 for an empty path."""
    return path[0] if path else 0


def calculate_head_direction(path: Sequence[int], map_x: int) -> Direction:
    """
    D = pull direction of the head.

    Opposite of the first segment Index[0] -> Index[1]; INVALID when the
    path is shorter than 2 cells or the first step is not adjacent.
    """
    if len(path) < 2:
        return Direction.INVALID
    first_segment = direction_between(path[0], path[1], map_x)
    return opposite(first_segment)


def calculate_bend_count(path: Sequence[int], map_x: int) -> int:
    """Direction changes, counted from the second segment on."""
    if len(path) < 3:
        return 0

    bends = 0
    last_direction = direction_between(path[0], path[1], map_x)
    for i in range(2, len(path)):
        current = direction_between(path[i - 1], path[i], map_x)
        if current != last_direction:
            bends += 1
        last_direction = current
    return bends


def derive_rope(path: Sequence[int], map_x: int, color_idx: int = -1) -> RopeData:
    """Build a RopeData with all derived fields filled."""
    return RopeData(
        D=int(calculate_head_direction(path, map_x)),
        H=calculate_head(path),
        Index=tuple(path),
        BendCount=calculate_bend_count(path, map_x),
        ColorIdx=color_idx,
    )


def reverse_rope(rope: RopeData, map_x: int) -> RopeData:
    """Swap head and tail; fields re-derived, color kept."""
    return derive_rope(tuple(reversed(rope.index)), map_x, color_idx=rope.color_idx)
