"""
Rope Puzzle Auto-Fill - Pydantic Schemas

All validation schemas in one file. JSON keys follow the level format
(MapX / Rope / Index ...) and the editor config format (minLen / kMax ...),
Python attributes are snake_case.
"""

from typing import List, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .config import settings


# ============================================
# CONFIG
# ============================================

class AutoFillConfig(BaseModel):
    """Generation + AutoTune parameters. Immutable: use model_copy(update=...)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    min_len: int = Field(2, alias="minLen", ge=1)
    max_len: int = Field(25, alias="maxLen", ge=1)
    k_min: int = Field(0, alias="kMin", ge=0)
    k_max: int = Field(3, alias="kMax", ge=0)
    forbid_uturn: bool = Field(True, alias="forbidUturn")
    forbid_head_turn: bool = Field(True, alias="forbidHeadTurn")
    forbid_2x2_loop: bool = Field(True, alias="forbid2x2Loop")
    ensure_at_least_one_movable: bool = Field(True, alias="ensureAtLeastOneMovable")
    overwrite_existing: bool = Field(False, alias="overwriteExisting")
    min_ropes: Optional[int] = Field(None, alias="minRopes", ge=0)
    max_ropes: Optional[int] = Field(None, alias="maxRopes", ge=0)
    seed: Optional[int] = None

    # Growth weights
    turn_chance: float = Field(
        default_factory=lambda: settings.AUTOFILL_TURN_CHANCE, alias="turnChance", ge=0, le=1
    )
    corridor_bias: float = Field(
        default_factory=lambda: settings.AUTOFILL_CORRIDOR_BIAS, alias="corridorBias", ge=0, le=1
    )

    # AutoTune only
    target_score_min: float = Field(
        default_factory=lambda: settings.TUNE_TARGET_SCORE_MIN, alias="targetScoreMin", ge=0, le=100
    )
    target_score_max: float = Field(
        default_factory=lambda: settings.TUNE_TARGET_SCORE_MAX, alias="targetScoreMax", ge=0, le=100
    )
    max_tune_attempts: int = Field(
        default_factory=lambda: settings.TUNE_MAX_ATTEMPTS, alias="maxTuneAttempts", ge=1
    )
    hard_guards_enabled: bool = Field(True, alias="hardGuardsEnabled")

    @model_validator(mode="after")
    def check_bounds(self) -> "AutoFillConfig":
        if self.min_len > self.max_len:
            raise ValueError(f"minLen ({self.min_len}) must be <= maxLen ({self.max_len})")
        if self.k_min > self.k_max:
            raise ValueError(f"kMin ({self.k_min}) must be <= kMax ({self.k_max})")
        if (
            self.min_ropes is not None
            and self.max_ropes is not None
            and self.min_ropes > self.max_ropes
        ):
            raise ValueError(f"minRopes ({self.min_ropes}) must be <= maxRopes ({self.max_ropes})")
        if self.target_score_min > self.target_score_max:
            raise ValueError(
                f"targetScoreMin ({self.target_score_min}) must be <= targetScoreMax ({self.target_score_max})"
            )
        return self


# ============================================
# LEVEL
# ============================================

class RopeData(BaseModel):
    """One placed rope. Head is Index[0], D is its pull direction."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    direction: int = Field(0, alias="D", ge=0, le=4)
    head: int = Field(0, alias="H")
    index: Tuple[int, ...] = Field((), alias="Index")
    bend_count: int = Field(0, alias="BendCount", ge=0)
    color_idx: int = Field(-1, alias="ColorIdx")


class LevelData(BaseModel):
    """Final level JSON: MapX, MapY and the Rope list."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    map_x: int = Field(..., alias="MapX", ge=0)
    map_y: int = Field(..., alias="MapY", ge=0)
    ropes: Tuple[RopeData, ...] = Field((), alias="Rope")


# ============================================
# DIFFICULTY
# ============================================

class DifficultyDiagnostics(BaseModel):
    """Result of scoring one level."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    difficulty_score: float = Field(0, alias="DifficultyScore", ge=0, le=100)
    break_difficulty: float = Field(0, alias="BreakDifficulty")
    cognitive_difficulty: float = Field(0, alias="CognitiveDifficulty")
    first_break_steps: float = Field(0, alias="FirstBreakSteps")
    key_lock_depth: float = Field(0, alias="KeyLockDepth")
    initial_movable_count: int = Field(0, alias="InitialMovableCount")
    density: float = Field(0, alias="Density")
    empty_ratio: float = Field(0, alias="EmptyRatio")
    free_ahead_ratio: float = Field(0, alias="FreeAheadRatio")
    oob_ratio: float = Field(0, alias="OOBRatio")
    n: int = Field(0, alias="N")
    avg_len: float = Field(0, alias="AvgLen")
    max_len: int = Field(0, alias="MaxLen")
    avg_bends: float = Field(0, alias="AvgBends")
    key_set: Tuple[int, ...] = Field((), alias="KeySet")


# ============================================
# AUTO-FILL / AUTOTUNE RESULTS
# ============================================

class FillResult(BaseModel):
    """Output of one generation pass."""

    ropes: List[RopeData] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class TuneResult(BaseModel):
    """AutoTune outcome. `reason` is set only on failure."""

    model_config = ConfigDict(populate_by_name=True)

    ropes: List[RopeData] = Field(default_factory=list)
    final_config: AutoFillConfig = Field(..., alias="finalConfig")
    score: float
    diagnostics: DifficultyDiagnostics
    attempts: int
    reason: Optional[str] = None
    guard_errors: Optional[List[str]] = Field(None, alias="guardErrors")

    @property
    def succeeded(self) -> bool:
        return self.reason is None


class TuneStatus(BaseModel):
    """Display state derived from a TuneResult."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["success", "fail"]
    score: float
    target_min: float = Field(..., alias="targetMin")
    target_max: float = Field(..., alias="targetMax")
    attempts: int
    message: str
    guard_errors: Optional[List[str]] = Field(None, alias="guardErrors")


# ============================================
# API
# ============================================

class AutoFillRequest(BaseModel):
    """
    Grid + eligible cells + config. Empty mask means the whole grid.

    existingRopes are the ropes already placed in the editor; they are kept
    and filled around unless config.overwriteExisting is set.
    """

    model_config = ConfigDict(populate_by_name=True)

    map_x: int = Field(..., alias="MapX", ge=1)
    map_y: int = Field(..., alias="MapY", ge=1)
    mask: List[int] = Field(default_factory=list, alias="maskIndices")
    existing_ropes: List[RopeData] = Field(default_factory=list, alias="existingRopes")
    config: AutoFillConfig = Field(default_factory=AutoFillConfig)

    @model_validator(mode="after")
    def check_grid(self) -> "AutoFillRequest":
        limit = settings.MAX_GRID_SIZE
        if self.map_x > limit or self.map_y > limit:
            raise ValueError(f"grid must be at most {limit}x{limit}")
        total = self.map_x * self.map_y
        for cell in self.mask:
            if not 0 <= cell < total:
                raise ValueError(f"mask cell {cell} outside grid of {total} cells")
        seen = set()
        for number, rope in enumerate(self.existing_ropes, start=1):
            for cell in rope.index:
                if not 0 <= cell < total:
                    raise ValueError(f"existing rope #{number}: cell {cell} outside grid of {total} cells")
                if cell in seen:
                    raise ValueError(f"existing rope #{number}: cell {cell} is used twice")
                seen.add(cell)
        return self


class AutoFillResponse(BaseModel):
    ropes: List[RopeData]
    warnings: List[str] = Field(default_factory=list)


class GuardResponse(BaseModel):
    passed: bool
    errors: List[str] = Field(default_factory=list)
    diagnostics: DifficultyDiagnostics


class AutoTuneResponse(BaseModel):
    result: TuneResult
    status: TuneStatus
