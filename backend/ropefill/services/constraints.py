"""
Rope Puzzle - Rope constraints

Step checks used while a rope grows, a whole-path validator for finished
ropes, and the movability rule shared with the difficulty scorer.
"""

from typing import Collection, List, Optional, Sequence

from ..schemas import AutoFillConfig, RopeData
from .grid import (
    Direction,
    direction_between,
    index_to_xy,
    in_bounds,
    is_adjacent,
    neighbors,
    opposite,
    step,
    xy_to_index,
)


# ============================================
# STEP CHECKS (growth)
# ============================================

def is_uturn(previous: Optional[Direction], candidate: Direction) -> bool:
    """Candidate step goes straight back along the previous one."""
    if previous is None or previous == Direction.INVALID:
        return False
    return candidate == opposite(previous)


def breaks_head(path: Sequence[int], candidate: int, map_x: int) -> bool:
    """
    Candidate would land next to Index[0] somewhere other than Index[1].

    Once the first segment is fixed the head must keep exactly one body
    neighbour, otherwise D stops being a meaningful pull direction.
    """
    if len(path) < 2:
        return False
    return candidate != path[1] and is_adjacent(path[0], candidate, map_x)


def forms_2x2_loop(
    current: int,
    candidate: int,
    occupied: Collection[int],
    map_x: int,
    map_y: int,
) -> bool:
    """
    Adding the edge current -> candidate closes a 2x2 loop.

    The corners are the cell pairs flanking the edge on both sides. The step
    is a loop only when both pairs lie inside the grid and all four corners
    are already taken (by this path or another rope); an edge along the
    border or a rope running beside a single neighbour is accepted.
    """
    cx, cy = index_to_xy(current, map_x)
    nx, ny = index_to_xy(candidate, map_x)
    dx, dy = nx - cx, ny - cy
    if abs(dx) + abs(dy) != 1:
        return False

    # perpendicular offsets to the edge
    sides = [(0, 1), (0, -1)] if dy == 0 else [(1, 0), (-1, 0)]
    corners = []
    for ox, oy in sides:
        a = (cx + ox, cy + oy)
        b = (nx + ox, ny + oy)
        if in_bounds(*a, map_x, map_y) and in_bounds(*b, map_x, map_y):
            corners.append(xy_to_index(*a, map_x))
            corners.append(xy_to_index(*b, map_x))

    return len(corners) == 4 and all(corner in occupied for corner in corners)


# ============================================
# PATH VALIDATION (finished rope)
# ============================================

def validate_path(
    path: Sequence[int],
    map_x: int,
    map_y: int,
    config: AutoFillConfig,
) -> List[str]:
    """Returns violated rules for a finished rope path (empty = valid)."""
    errors: List[str] = []
    total = map_x * map_y

    if len(path) < 2:
        errors.append("path shorter than 2 cells")
        return errors

    if any(not 0 <= cell < total for cell in path):
        errors.append("path leaves the grid")
        return errors

    if len(set(path)) != len(path):
        errors.append("path repeats a cell")

    directions = []
    for i in range(1, len(path)):
        direction = direction_between(path[i - 1], path[i], map_x)
        if direction == Direction.INVALID:
            errors.append(f"cells {i - 1} and {i} are not adjacent")
            return errors
        directions.append(direction)

    if config.forbid_uturn:
        for prev_dir, next_dir in zip(directions, directions[1:]):
            if is_uturn(prev_dir, next_dir):
                errors.append("U-turn")
                break

    if config.forbid_head_turn:
        for i in range(2, len(path)):
            if is_adjacent(path[0], path[i], map_x):
                errors.append("head turn")
                break

    # replays the growth check against the path's own earlier cells
    if config.forbid_2x2_loop:
        for i in range(1, len(path)):
            if forms_2x2_loop(path[i - 1], path[i], set(path[:i]), map_x, map_y):
                errors.append("2x2 loop")
                break

    return errors


# ============================================
# MOVABILITY
# ============================================

def head_next_cell(rope: RopeData, map_x: int, map_y: int) -> Optional[int]:
    """
    Cell in front of the head, None when pulling leaves the grid.

    Ropes without a valid pull (fewer than 2 cells, D outside 1..4) also
    return None; callers check has_pull_direction() first.
    """
    if not rope.index:
        return None
    return step(rope.index[0], rope.direction, map_x, map_y)


def has_pull_direction(rope: RopeData) -> bool:
    return len(rope.index) >= 2 and 1 <= rope.direction <= 4


def is_movable(rope: RopeData, occupied: Collection[int], map_x: int, map_y: int) -> bool:
    """Next cell is off-grid or free."""
    if not has_pull_direction(rope):
        return False
    target = head_next_cell(rope, map_x, map_y)
    return target is None or target not in occupied


def occupied_cells(ropes: Sequence[RopeData]) -> set:
    return {cell for rope in ropes for cell in rope.index}


def has_movable_rope(ropes: Sequence[RopeData], map_x: int, map_y: int) -> bool:
    occupied = occupied_cells(ropes)
    return any(is_movable(rope, occupied, map_x, map_y) for rope in ropes)


def free_neighbor_count(cell: int, free: Collection[int], map_x: int, map_y: int) -> int:
    """Neighbours of cell that are still free (used to rank start cells)."""
    return sum(1 for n in neighbors(cell, map_x, map_y) if n in free)
