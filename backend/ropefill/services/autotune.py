"""
Rope Puzzle - AutoTune

Regenerates a level with adjusted config until the difficulty score lands
in [targetScoreMin, targetScoreMax] and the hard guards pass.

Attempt loop:
    empty result       -> easier
    guard violation    -> easier
    score in range     -> success
    score too high     -> easier
    score too low      -> harder
Budget exhausted -> failure result carrying the last generated level.
"""

import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence

from ..config import settings
from ..schemas import (
    AutoFillConfig,
    DifficultyDiagnostics,
    LevelData,
    RopeData,
    TuneResult,
    TuneStatus,
)
from .autofill import autofill_ropes
from .difficulty import compute_difficulty
from .hard_guards import check_hard_guards
from .rng import make_source

logger = logging.getLogger(__name__)

EXCEEDED_MAX_ATTEMPTS = "AutoTune exceeded max attempts"

# (config, attempt number starting at 1) -> ropes
GenerateOnce = Callable[[AutoFillConfig, int], List[RopeData]]


class TuneDirection(Enum):
    EASIER = "easier"
    HARDER = "harder"


# ============================================
# CONFIG ADJUSTMENT
# ============================================

def adjust_config(config: AutoFillConfig, direction: TuneDirection) -> AutoFillConfig:
    """
    Returns a new config one notch easier or harder.

    kMax moves by 1, maxLen by 2, maxRopes by 1 (only when set). maxLen never
    drops below 2, the shortest rope. Paired lower bounds are clamped so
    kMin <= kMax and minLen <= maxLen hold.
    """
    k_min, k_max = config.k_min, config.k_max
    min_len, max_len = config.min_len, config.max_len
    min_ropes, max_ropes = config.min_ropes, config.max_ropes

    if direction is TuneDirection.EASIER:
        k_max = max(k_min, k_max - 1)
        max_len = max(min_len, 2, max_len - 2)
        if max_ropes is not None and max_ropes > 0:
            max_ropes = max(1, max_ropes - 1)
    else:
        k_max = min(k_max + 1, settings.TUNE_K_MAX_CEILING)
        max_len = min(max_len + 2, settings.TUNE_MAX_LEN_CEILING)
        if max_ropes is not None:
            max_ropes += 1

    if min_ropes is not None and max_ropes is not None and max_ropes < min_ropes:
        min_ropes = max_ropes
    k_min = min(k_min, k_max)
    min_len = min(min_len, max_len)

    return config.model_copy(update={
        "k_min": k_min,
        "k_max": k_max,
        "min_len": min_len,
        "max_len": max_len,
        "min_ropes": min_ropes,
        "max_ropes": max_ropes,
    })


# ============================================
# SEARCH LOOP
# ============================================

def make_generate_once(
    map_x: int,
    map_y: int,
    mask: Optional[Iterable[int]] = None,
    existing_ropes: Sequence[RopeData] = (),
) -> GenerateOnce:
    """
    Default generator: one auto-fill pass per attempt, around existing_ropes.

    With a seed, attempt k uses seed + (k - 1) so attempts are independent
    yet reproducible.
    """
    cells = list(mask or [])

    def generate_once(config: AutoFillConfig, attempt: int) -> List[RopeData]:
        seed = None if config.seed is None else config.seed + attempt - 1
        return autofill_ropes(map_x, map_y, cells, config, make_source(seed), existing_ropes).ropes

    return generate_once


def autotune_generate(
    level_base: LevelData,
    config: AutoFillConfig,
    generate_once: Optional[GenerateOnce] = None,
    mask: Optional[Iterable[int]] = None,
) -> TuneResult:
    """
    Runs the attempt loop, at most config.max_tune_attempts times.

    Args:
        level_base: grid size and the ropes already placed; the default
            generator fills around them unless config.overwrite_existing is set
        generate_once: rope generator override, defaults to auto-fill over mask

    Returns:
        TuneResult; on failure `reason` is set and attempts == max_tune_attempts
    """
    if generate_once is None:
        generate_once = make_generate_once(level_base.map_x, level_base.map_y, mask, level_base.ropes)

    target_min = config.target_score_min
    target_max = config.target_score_max
    max_attempts = config.max_tune_attempts

    cfg = config
    last_ropes: List[RopeData] = []
    last_diag: Optional[DifficultyDiagnostics] = None
    last_guard_errors: List[str] = []

    for attempt in range(1, max_attempts + 1):
        ropes = list(generate_once(cfg, attempt))

        if not ropes:
            logger.debug(f"AutoTune #{attempt}: no ropes, loosening")
            cfg = adjust_config(cfg, TuneDirection.EASIER)
            continue

        level = level_base.model_copy(update={"ropes": tuple(ropes)})
        diag = compute_difficulty(level)
        last_ropes = ropes
        last_diag = diag
        score = diag.difficulty_score

        if cfg.hard_guards_enabled:
            guard_errors = check_hard_guards(level, diag)
            last_guard_errors = guard_errors
            if guard_errors:
                logger.debug(f"AutoTune #{attempt}: score={score:.1f}, guards failed: {guard_errors[0]}")
                cfg = adjust_config(cfg, TuneDirection.EASIER)
                continue

        if target_min <= score <= target_max:
            logger.info(f"AutoTune converged after {attempt} attempt(s): score={score:.1f}")
            return TuneResult(
                ropes=ropes,
                finalConfig=cfg,
                score=score,
                diagnostics=diag,
                attempts=attempt,
            )

        direction = TuneDirection.EASIER if score > target_max else TuneDirection.HARDER
        logger.debug(
            f"AutoTune #{attempt}: score={score:.1f} outside [{target_min:g}, {target_max:g}], "
            f"going {direction.value}"
        )
        cfg = adjust_config(cfg, direction)

    if last_diag is None:
        last_diag = compute_difficulty(level_base.model_copy(update={"ropes": tuple(last_ropes)}))

    logger.warning(
        f"AutoTune did not converge in {max_attempts} attempts "
        f"(last score={last_diag.difficulty_score:.1f})"
    )
    return TuneResult(
        ropes=last_ropes,
        finalConfig=cfg,
        score=last_diag.difficulty_score,
        diagnostics=last_diag,
        attempts=max_attempts,
        reason=EXCEEDED_MAX_ATTEMPTS,
        guardErrors=last_guard_errors or None,
    )


# ============================================
# STATUS
# ============================================

def summarize_result(result: TuneResult) -> TuneStatus:
    """Success / fail status with a readable message."""
    target_min = result.final_config.target_score_min
    target_max = result.final_config.target_score_max

    if result.reason:
        if result.reason == EXCEEDED_MAX_ATTEMPTS:
            message = (
                f"AutoTune did not converge: {result.attempts} attempts, "
                f"score never reached [{target_min:g}, {target_max:g}]"
            )
        else:
            message = result.reason
        status = "fail"
    else:
        message = f"Score {result.score:.1f} within [{target_min:g}, {target_max:g}]"
        status = "success"

    return TuneStatus(
        status=status,
        score=result.score,
        targetMin=target_min,
        targetMax=target_max,
        attempts=result.attempts,
        message=message,
        guardErrors=result.guard_errors,
    )
