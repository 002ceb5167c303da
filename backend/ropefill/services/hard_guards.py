"""
Rope Puzzle - Hard Guards

High-churn structure checks on top of compute_difficulty() diagnostics.
Each violation is fatal for AutoTune, independently of the score.
"""

from typing import List, Optional

from ..config import settings
from ..schemas import DifficultyDiagnostics, LevelData
from .difficulty import compute_difficulty


def check_hard_guards(
    level: LevelData,
    diagnostics: Optional[DifficultyDiagnostics] = None,
) -> List[str]:
    """
    Returns violation reasons (empty list = pass). The empty level passes.

    Pass already computed diagnostics to avoid scoring the level twice.
    """
    errors: List[str] = []
    if not level.ropes:
        return errors

    diag = diagnostics if diagnostics is not None else compute_difficulty(level)

    # G1 nothing can move at the start
    if diag.initial_movable_count < 1:
        errors.append("High churn: no rope can move at the start")

    # G2 key rope breaks out too late
    if diag.first_break_steps > settings.GUARD_FIRST_BREAK_THRESHOLD:
        errors.append(
            f"High churn: first break needs {diag.first_break_steps:g} steps "
            f"(> {settings.GUARD_FIRST_BREAK_THRESHOLD})"
        )

    # G3 key rope locked too deep
    if diag.key_lock_depth > settings.GUARD_KEY_LOCK_THRESHOLD:
        errors.append(
            f"High churn: key lock chain depth {diag.key_lock_depth:g} "
            f"(> {settings.GUARD_KEY_LOCK_THRESHOLD})"
        )

    # G4 too few openings for the rope count
    required = 2 if diag.n <= settings.GUARD_SMALL_LEVEL_ROPES else 1
    if diag.initial_movable_count < required:
        errors.append(
            f"High churn: only {diag.initial_movable_count} movable rope(s) for {diag.n} ropes"
        )

    # G5 too many free branches at the start
    if diag.free_ahead_ratio > settings.GUARD_FREE_AHEAD_THRESHOLD:
        errors.append(
            f"High churn: too many open branches at the start "
            f"(free-ahead ratio {diag.free_ahead_ratio:.2f} > {settings.GUARD_FREE_AHEAD_THRESHOLD})"
        )

    return errors
