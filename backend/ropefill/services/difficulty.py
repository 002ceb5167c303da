"""
Rope Puzzle - Difficulty Score (two-channel model)

Pure function of the level, nothing is cached or mutated.

Blocking graph:
    rope A is blocked when the cell in front of its head belongs to rope B
    at position pos; clearing it costs len(B) - pos, stored as the reverse
    edge B -> A. A multi-source Dijkstra from every movable rope gives the
    cost of freeing each rope.

Score = 100 * max(BreakDifficulty, CognitiveDifficulty), clamped to [0, 100].
"""

import heapq
import math
from dataclasses import dataclass
from typing import Dict, List, Set, Tuple

from ..schemas import DifficultyDiagnostics, LevelData
from .constraints import has_pull_direction, head_next_cell

# Shortest-path ceiling; also the value used when no key rope is reachable
DIST_CEILING = 25
KEY_SET_SIZE = 2


# ============================================
# NORMALIZATION
# ============================================

def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def log_norm(x: float, xmax: float) -> float:
    """clamp01(ln(1 + x) / ln(1 + xmax))"""
    if xmax <= 0:
        return 0.0
    return clamp01(math.log(1 + max(0.0, x)) / math.log(1 + xmax))


# ============================================
# BLOCKING GRAPH
# ============================================

@dataclass
class BlockingGraph:
    """Adjacency lists indexed by rope id."""
    movable: List[int]
    free_ahead: List[int]
    out_of_bounds: List[int]
    reverse_edges: List[List[Tuple[int, int]]]  # B -> [(A, weight)]


def build_blocking_graph(level: LevelData) -> BlockingGraph:
    map_x, map_y = level.map_x, level.map_y
    ropes = level.ropes

    # cell -> (rope_id, position inside the rope)
    cell_owner: Dict[int, Tuple[int, int]] = {}
    for rope_id, rope in enumerate(ropes):
        for pos, cell in enumerate(rope.index):
            cell_owner[cell] = (rope_id, pos)

    movable: List[int] = []
    free_ahead: List[int] = []
    out_of_bounds: List[int] = []
    reverse_edges: List[List[Tuple[int, int]]] = [[] for _ in ropes]

    for rope_id, rope in enumerate(ropes):
        if not has_pull_direction(rope):
            continue
        target = head_next_cell(rope, map_x, map_y)
        if target is None:
            movable.append(rope_id)
            out_of_bounds.append(rope_id)
            continue
        owner = cell_owner.get(target)
        if owner is None:
            movable.append(rope_id)
            free_ahead.append(rope_id)
            continue
        blocker, pos = owner
        reverse_edges[blocker].append((rope_id, len(ropes[blocker].index) - pos))

    return BlockingGraph(movable, free_ahead, out_of_bounds, reverse_edges)


def shortest_unlock_distances(graph: BlockingGraph, rope_count: int) -> List[float]:
    """Multi-source Dijkstra over the reverse edges, sources at distance 0."""
    dist = [math.inf] * rope_count
    heap: List[Tuple[float, int]] = []
    for rope_id in graph.movable:
        dist[rope_id] = 0
        heap.append((0, rope_id))
    heapq.heapify(heap)

    while heap:
        d, current = heapq.heappop(heap)
        if d > dist[current]:
            continue
        for to, weight in graph.reverse_edges[current]:
            nd = d + weight
            if nd < dist[to]:
                dist[to] = nd
                heapq.heappush(heap, (nd, to))

    return dist


def key_set(level: LevelData) -> List[int]:
    """Ids of the (up to) two longest ropes; ties keep level order."""
    by_len = sorted(range(len(level.ropes)), key=lambda i: -len(level.ropes[i].index))
    return by_len[:KEY_SET_SIZE]


# ============================================
# SCORE
# ============================================

def compute_difficulty(level: LevelData) -> DifficultyDiagnostics:
    """
    Scores a level.

    Returns:
        DifficultyDiagnostics; the empty level (or a zero-size board) scores 0
    """
    board_size = level.map_x * level.map_y
    n = len(level.ropes)

    if board_size == 0 or n == 0:
        return DifficultyDiagnostics(EmptyRatio=0 if board_size == 0 else 1)

    lengths = [len(rope.index) for rope in level.ropes]
    occupied: Set[int] = {cell for rope in level.ropes for cell in rope.index}
    density = len(occupied) / board_size
    empty_ratio = 1 - density
    avg_len = sum(lengths) / n
    max_len = max(lengths)
    avg_bends = sum(rope.bend_count for rope in level.ropes) / n

    graph = build_blocking_graph(level)
    initial_movable = len(graph.movable)
    free_ahead_ratio = len(graph.free_ahead) / n
    oob_ratio = len(graph.out_of_bounds) / n

    dist = shortest_unlock_distances(graph, n)
    keys = key_set(level)
    reachable = [dist[k] for k in keys if dist[k] != math.inf]
    if reachable:
        key_lock_depth = min(reachable)
        first_break_steps = key_lock_depth + 1
    else:
        key_lock_depth = DIST_CEILING
        first_break_steps = DIST_CEILING

    n_first = log_norm(first_break_steps, DIST_CEILING)
    n_lock = log_norm(key_lock_depth, DIST_CEILING)
    n_count = clamp01(n / 60)
    n_avg = clamp01(avg_len / 15)
    n_max = clamp01(max_len / 80)
    n_bend = clamp01(avg_bends / 15)
    n_density = clamp01(density / 0.95)
    inv_movable = clamp01((1 / max(1, initial_movable)) / 0.25)
    branch = clamp01(empty_ratio / 0.45) * clamp01(free_ahead_ratio / 0.45)
    n_oob = clamp01(oob_ratio / 0.6)

    break_difficulty = clamp01(
        0.4 * n_first + 0.25 * n_lock + 0.2 * inv_movable + 0.15 * branch - 0.05 * n_oob
    )
    cognitive_difficulty = clamp01(
        0.35 * n_density
        + 0.2 * n_count
        + 0.15 * n_avg
        + 0.1 * n_bend
        + 0.1 * n_max
        + 0.1 * (1 - empty_ratio)
    )
    score = 100 * clamp01(max(break_difficulty, cognitive_difficulty))

    return DifficultyDiagnostics(
        DifficultyScore=score,
        BreakDifficulty=break_difficulty,
        CognitiveDifficulty=cognitive_difficulty,
        FirstBreakSteps=first_break_steps,
        KeyLockDepth=key_lock_depth,
        InitialMovableCount=initial_movable,
        Density=density,
        EmptyRatio=empty_ratio,
        FreeAheadRatio=free_ahead_ratio,
        OOBRatio=oob_ratio,
        N=n,
        AvgLen=avg_len,
        MaxLen=max_len,
        AvgBends=avg_bends,
        KeySet=tuple(keys),
    )


def compute_first_break_steps(level: LevelData) -> int:
    """min(dist + 1) over the key ropes, -1 when none is reachable or the level is empty."""
    if level.map_x == 0 or level.map_y == 0 or not level.ropes:
        return -1
    graph = build_blocking_graph(level)
    dist = shortest_unlock_distances(graph, len(level.ropes))
    reachable = [dist[k] + 1 for k in key_set(level) if dist[k] != math.inf]
    return int(min(reachable)) if reachable else -1
