"""
Rope Puzzle Auto-Fill - Levels API

Endpoints are plain `def`: generation and scoring are CPU-bound and run
in FastAPI's threadpool.
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from ..middleware.security import GENERATE_RATE_LIMIT, limiter, validate_json_size
from ..schemas import (
    AutoFillRequest,
    AutoFillResponse,
    AutoTuneResponse,
    DifficultyDiagnostics,
    GuardResponse,
    LevelData,
)
from ..services.autofill import autofill_ropes
from ..services.autotune import autotune_generate, summarize_result
from ..services.difficulty import compute_difficulty
from ..services.hard_guards import check_hard_guards


router = APIRouter(
    prefix="/levels",
    tags=["levels"],
    dependencies=[Depends(validate_json_size)],
)


def _ensure_cells_in_grid(level: LevelData):
    total = level.map_x * level.map_y
    for number, rope in enumerate(level.ropes, start=1):
        for cell in rope.index:
            if not 0 <= cell < total:
                raise HTTPException(
                    status_code=422,
                    detail=f"Rope #{number}: cell {cell} outside {level.map_x}x{level.map_y} grid",
                )


# ============================================
# GENERATION
# ============================================

@router.post("/autofill", response_model=AutoFillResponse)
@limiter.limit(GENERATE_RATE_LIMIT)
def autofill(request: Request, body: AutoFillRequest):
    """One auto-fill pass, no scoring."""
    fill = autofill_ropes(
        body.map_x, body.map_y, body.mask, body.config, existing_ropes=body.existing_ropes
    )
    return AutoFillResponse(ropes=fill.ropes, warnings=fill.warnings)


@router.post("/autotune", response_model=AutoTuneResponse, response_model_exclude_none=True)
@limiter.limit(GENERATE_RATE_LIMIT)
def autotune(request: Request, body: AutoFillRequest):
    """Generate + score + retune until the target range is hit or attempts run out."""
    level_base = LevelData(MapX=body.map_x, MapY=body.map_y, Rope=tuple(body.existing_ropes))
    result = autotune_generate(level_base, body.config, mask=body.mask)
    return AutoTuneResponse(result=result, status=summarize_result(result))


# ============================================
# SCORING
# ============================================

@router.post("/difficulty", response_model=DifficultyDiagnostics)
def difficulty(body: LevelData):
    """Difficulty diagnostics of a finished level."""
    _ensure_cells_in_grid(body)
    return compute_difficulty(body)


@router.post("/guards", response_model=GuardResponse)
def guards(body: LevelData):
    """Hard-guard check of a finished level."""
    _ensure_cells_in_grid(body)
    diag = compute_difficulty(body)
    errors = check_hard_guards(body, diag)
    return GuardResponse(passed=not errors, errors=errors, diagnostics=diag)
