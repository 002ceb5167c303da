"""
Rope Puzzle - Auto-Fill Generator

Fills the eligible cells of a grid with ropes by weighted random growth.

Rules:
1. Start cells with the fewest free neighbours go first (less fragmentation)
2. Straight steps are favoured by corridor_bias, turns by turn_chance
3. Each rope gets a bend budget Ktarget sampled from [kMin, kMax]
4. U-turns, head turns and closed 2x2 blocks are rejected while growing
5. Ropes shorter than minLen are dropped and their start marked as failed
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..config import settings
from ..schemas import AutoFillConfig, FillResult, LevelData, RopeData
from .constraints import (
    breaks_head,
    forms_2x2_loop,
    free_neighbor_count,
    has_movable_rope,
    is_uturn,
    occupied_cells,
    validate_path,
)
from .grid import Direction, direction_between, neighbors
from .rng import RandomSource, draw_choice, draw_int, draw_weighted, make_source
from .rope_logic import derive_rope, reverse_rope

logger = logging.getLogger(__name__)


# ============================================
# STATE
# ============================================

@dataclass
class FillState:
    """State of one generation pass."""
    map_x: int
    map_y: int
    eligible: Set[int]
    unused: Set[int]
    source: RandomSource
    occupied: Set[int] = field(default_factory=set)
    failed_starts: Set[int] = field(default_factory=set)
    free_counts: Dict[int, int] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        map_x: int,
        map_y: int,
        cells: Iterable[int],
        source: RandomSource,
        occupied: Iterable[int] = (),
    ) -> "FillState":
        """occupied: cells of ropes already on the level, never reused."""
        eligible = set(cells)
        taken = set(occupied)
        state = cls(
            map_x=map_x,
            map_y=map_y,
            eligible=eligible,
            unused=eligible - taken,
            source=source,
            occupied=taken,
        )
        state.free_counts = {
            cell: free_neighbor_count(cell, state.unused, map_x, map_y) for cell in state.unused
        }
        return state

    def mark_used(self, cells: Iterable[int]):
        for cell in cells:
            self.unused.discard(cell)
            self.occupied.add(cell)
            self.free_counts.pop(cell, None)
            for n in neighbors(cell, self.map_x, self.map_y):
                if n in self.free_counts:
                    self.free_counts[n] -= 1


@dataclass
class GrowthState:
    """State of one rope attempt."""
    path: List[int]
    taken: Set[int]
    k_target: int
    turns: int = 0
    current_dir: Optional[Direction] = None

    @property
    def current(self) -> int:
        return self.path[-1]


# ============================================
# START CELL
# ============================================

def pick_start(state: FillState) -> Optional[int]:
    """
    Unused, not-yet-failed cell with the fewest free neighbours.

    Ties are broken uniformly at random. None when every unused cell has
    already failed as a start.
    """
    best = math.inf
    tied: List[int] = []
    for cell in state.unused:
        if cell in state.failed_starts:
            continue
        count = state.free_counts.get(cell, 0)
        if count < best:
            best = count
            tied = [cell]
        elif count == best:
            tied.append(cell)

    if not tied:
        return None

    tied.sort()
    start, state.source = draw_choice(state.source, tied)
    return start


# ============================================
# GROWTH
# ============================================

def candidate_cells(growth: GrowthState, state: FillState, config: AutoFillConfig) -> List[int]:
    """Neighbours the rope may legally step into next."""
    current = growth.current
    previous = growth.path[-2] if len(growth.path) >= 2 else None
    result = []

    for cell in neighbors(current, state.map_x, state.map_y):
        if cell not in state.eligible or cell in growth.taken:
            continue
        if cell == previous:
            continue
        if config.forbid_2x2_loop and forms_2x2_loop(current, cell, growth.taken, state.map_x, state.map_y):
            continue
        if config.forbid_uturn and is_uturn(growth.current_dir, direction_between(current, cell, state.map_x)):
            continue
        if config.forbid_head_turn and breaks_head(growth.path, cell, state.map_x):
            continue
        result.append(cell)

    return result


def weigh_candidates(
    growth: GrowthState,
    candidates: List[int],
    config: AutoFillConfig,
    map_x: int,
) -> List[Tuple[int, float]]:
    """Positive-weight candidates; turns beyond Ktarget are dropped."""
    weighted = []
    for cell in candidates:
        weight = 1.0
        direction = direction_between(growth.current, cell, map_x)
        if growth.current_dir is not None:
            if direction == growth.current_dir:
                weight += config.corridor_bias
            elif growth.turns < growth.k_target:
                weight += config.turn_chance
            else:
                weight = 0.0
        if weight > 0:
            weighted.append((cell, weight))
    return weighted


def grow_rope(start: int, state: FillState, config: AutoFillConfig) -> List[int]:
    """Random walk from start; returns the path (possibly too short)."""
    k_target, state.source = draw_int(state.source, config.k_min, config.k_max)
    growth = GrowthState(path=[start], taken=state.occupied | {start}, k_target=k_target)
    min_len = max(config.min_len, 2)

    while len(growth.path) < config.max_len:
        candidates = candidate_cells(growth, state, config)
        weighted = weigh_candidates(growth, candidates, config, state.map_x)
        if not weighted:
            break

        cells = [cell for cell, _ in weighted]
        weights = [weight for _, weight in weighted]
        nxt, state.source = draw_weighted(state.source, cells, weights)

        direction = direction_between(growth.current, nxt, state.map_x)
        if growth.current_dir is not None and direction != growth.current_dir:
            growth.turns += 1
        growth.current_dir = direction
        growth.path.append(nxt)
        growth.taken.add(nxt)

        if min_len <= len(growth.path) < config.max_len:
            roll, state.source = state.source.next()
            if roll < settings.AUTOFILL_EARLY_STOP_CHANCE:
                break

    return growth.path


# ============================================
# MOVABILITY REPAIR
# ============================================

def repair_movability(
    ropes: List[RopeData],
    map_x: int,
    map_y: int,
    config: AutoFillConfig,
    source: RandomSource,
    max_attempts: int,
) -> Tuple[List[RopeData], bool, RandomSource]:
    """
    Reverse a random subset of ropes until at least one can move.

    Only ropes whose reversed path still passes validate_path() are
    candidates. Returns (ropes, fixed, source); the input list is returned
    untouched when no attempt succeeds.
    """
    if not ropes:
        return ropes, False, source
    if has_movable_rope(ropes, map_x, map_y):
        return ropes, True, source

    reversible = [
        i for i, rope in enumerate(ropes)
        if not validate_path(tuple(reversed(rope.index)), map_x, map_y, config)
    ]
    if not reversible:
        return ropes, False, source

    to_reverse_count = min(math.ceil(len(reversible) / 2), 5)
    for _ in range(max_attempts):
        # sample without replacement
        pool = list(reversible)
        chosen: Set[int] = set()
        for _ in range(to_reverse_count):
            pick, source = draw_choice(source, pool)
            pool.remove(pick)
            chosen.add(pick)

        candidate = [
            reverse_rope(rope, map_x) if i in chosen else rope
            for i, rope in enumerate(ropes)
        ]
        if has_movable_rope(candidate, map_x, map_y):
            return candidate, True, source

    return ropes, False, source


# ============================================
# MAIN
# ============================================

def autofill_ropes(
    map_x: int,
    map_y: int,
    mask: Optional[Iterable[int]],
    config: AutoFillConfig,
    source: Optional[RandomSource] = None,
    existing_ropes: Sequence[RopeData] = (),
) -> FillResult:
    """
    One generation pass over the eligible cells.

    Args:
        mask: eligible cell indices; empty or None means the whole grid
        source: random source override (defaults to config.seed)
        existing_ropes: ropes already on the level. Unless
            config.overwrite_existing is set their cells are left alone and
            they lead the returned rope list.

    Returns:
        FillResult with the ropes (disjoint, fields derived) and warnings
    """
    result = FillResult()
    if map_x <= 0 or map_y <= 0:
        result.warnings.append("Grid has zero size, nothing to fill")
        return result

    kept = [] if config.overwrite_existing else list(existing_ropes)

    total = map_x * map_y
    mask = list(mask or [])
    cells = [c for c in mask if 0 <= c < total] if mask else range(total)

    if source is None:
        source = make_source(config.seed)
    state = FillState.create(map_x, map_y, cells, source, occupied_cells(kept))
    if not state.eligible:
        result.ropes = kept
        result.warnings.append("No eligible cells inside the grid")
        return result

    max_ropes = config.max_ropes if config.max_ropes is not None else math.inf
    budget = len(state.unused) * settings.AUTOFILL_ATTEMPTS_PER_CELL
    min_len = max(config.min_len, 2)
    attempts = 0
    created: List[RopeData] = []

    while state.unused and len(created) < max_ropes and attempts < budget:
        attempts += 1

        start = pick_start(state)
        if start is None:
            break

        path = grow_rope(start, state, config)
        if len(path) < min_len:
            state.failed_starts.add(start)
            continue

        created.append(derive_rope(path, map_x))
        state.mark_used(path)

    result.ropes = kept + created

    if config.ensure_at_least_one_movable and result.ropes:
        ropes, fixed, state.source = repair_movability(
            result.ropes, map_x, map_y, config, state.source, settings.AUTOFILL_REPAIR_ATTEMPTS
        )
        result.ropes = ropes
        if not fixed:
            result.warnings.append("No movable rope after generation; reversal repair failed")

    if config.min_ropes is not None and len(result.ropes) < config.min_ropes:
        result.warnings.append(
            f"Generated {len(result.ropes)} ropes, fewer than minRopes={config.min_ropes}"
        )

    covered = len(occupied_cells(result.ropes) & state.eligible)
    eligible = len(state.eligible)
    result.warnings.append(f"Coverage: {covered / eligible * 100:.1f}% ({covered}/{eligible})")

    logger.debug(
        f"Auto-fill {map_x}x{map_y}: new ropes={len(created)}, kept={len(kept)}, "
        f"attempts={attempts}, failed_starts={len(state.failed_starts)}, "
        f"coverage={covered}/{eligible}"
    )
    return result


def generate_level(
    map_x: int,
    map_y: int,
    mask: Optional[Iterable[int]],
    config: AutoFillConfig,
    source: Optional[RandomSource] = None,
    existing_ropes: Sequence[RopeData] = (),
) -> LevelData:
    """autofill_ropes() wrapped into a LevelData."""
    fill = autofill_ropes(map_x, map_y, mask, config, source, existing_ropes)
    return LevelData(MapX=map_x, MapY=map_y, Rope=tuple(fill.ropes))
