"""Test the AutoTune search loop."""

import pytest

from conftest import make_level
from ropefill.schemas import AutoFillConfig, LevelData
from ropefill.services.autotune import (
    EXCEEDED_MAX_ATTEMPTS,
    TuneDirection,
    adjust_config,
    autotune_generate,
    make_generate_once,
    summarize_result,
)
from ropefill.services.rope_logic import derive_rope

BASE = LevelData(MapX=4, MapY=4)


def fixed_generator(level, calls=None):
    """Generator that returns the same ropes every attempt and records configs."""

    def generate_once(config, attempt):
        if calls is not None:
            calls.append((config, attempt))
        return list(level.ropes)

    return generate_once


class TestAdjustConfig:
    """One notch easier or harder."""

    def test_easier(self):
        cfg = AutoFillConfig(kMin=0, kMax=3, minLen=2, maxLen=10, maxRopes=5)
        easier = adjust_config(cfg, TuneDirection.EASIER)
        assert easier.k_max == 2
        assert easier.max_len == 8
        assert easier.max_ropes == 4
        assert cfg.k_max == 3

    def test_harder(self):
        cfg = AutoFillConfig(kMax=3, maxLen=10, maxRopes=5)
        harder = adjust_config(cfg, TuneDirection.HARDER)
        assert harder.k_max == 4
        assert harder.max_len == 12
        assert harder.max_ropes == 6

    def test_easier_respects_lower_bounds(self):
        cfg = AutoFillConfig(kMin=2, kMax=2, minLen=5, maxLen=6, maxRopes=1)
        easier = adjust_config(cfg, TuneDirection.EASIER)
        assert easier.k_max == 2
        assert easier.max_len == 5
        assert easier.max_ropes == 1

    def test_easier_keeps_two_cell_ropes(self):
        cfg = AutoFillConfig(minLen=1, maxLen=3)
        once = adjust_config(cfg, TuneDirection.EASIER)
        twice = adjust_config(once, TuneDirection.EASIER)
        assert once.max_len == 2
        assert twice.max_len == 2
        assert twice.min_len == 1

    def test_harder_caps(self):
        cfg = AutoFillConfig(kMax=15, maxLen=79)
        harder = adjust_config(cfg, TuneDirection.HARDER)
        assert harder.k_max == 15
        assert harder.max_len == 80

    def test_unset_max_ropes_stays_unset(self):
        assert adjust_config(AutoFillConfig(), TuneDirection.EASIER).max_ropes is None
        assert adjust_config(AutoFillConfig(), TuneDirection.HARDER).max_ropes is None

    def test_min_ropes_follows_max_ropes(self):
        cfg = AutoFillConfig(minRopes=4, maxRopes=4)
        easier = adjust_config(cfg, TuneDirection.EASIER)
        assert easier.max_ropes == 3
        assert easier.min_ropes == 3

    def test_zero_max_ropes_unchanged_when_easier(self):
        assert adjust_config(AutoFillConfig(maxRopes=0), TuneDirection.EASIER).max_ropes == 0


class TestAutotuneLoop:
    """State machine driven by fake generators."""

    def test_success_first_attempt(self, open_level):
        cfg = AutoFillConfig(targetScoreMin=20, targetScoreMax=30)
        result = autotune_generate(BASE, cfg, fixed_generator(open_level))
        assert result.succeeded
        assert result.attempts == 1
        assert result.reason is None
        assert result.score == pytest.approx(23.51, abs=0.01)
        assert result.final_config == cfg
        assert result.ropes == list(open_level.ropes)

    def test_score_too_low_goes_harder(self, open_level):
        calls = []
        cfg = AutoFillConfig(kMax=3, maxLen=10, targetScoreMin=50, targetScoreMax=60, maxTuneAttempts=2)
        result = autotune_generate(BASE, cfg, fixed_generator(open_level, calls))
        assert not result.succeeded
        assert [attempt for _, attempt in calls] == [1, 2]
        second = calls[1][0]
        assert second.k_max == 4
        assert second.max_len == 12

    def test_score_too_high_goes_easier(self, open_level):
        calls = []
        cfg = AutoFillConfig(kMax=3, maxLen=10, targetScoreMin=0, targetScoreMax=10, maxTuneAttempts=2)
        autotune_generate(BASE, cfg, fixed_generator(open_level, calls))
        second = calls[1][0]
        assert second.k_max == 2
        assert second.max_len == 8

    def test_guard_failure_goes_easier(self, deadlock_level):
        calls = []
        cfg = AutoFillConfig(kMax=3, maxLen=10, targetScoreMin=0, targetScoreMax=100, maxTuneAttempts=3)
        result = autotune_generate(BASE, cfg, fixed_generator(deadlock_level, calls))
        assert not result.succeeded
        assert result.reason == EXCEEDED_MAX_ATTEMPTS
        assert result.attempts == 3
        assert result.guard_errors and len(result.guard_errors) == 4
        assert calls[1][0].k_max == 2

    def test_guards_disabled_accepts_deadlock(self, deadlock_level):
        cfg = AutoFillConfig(targetScoreMin=80, targetScoreMax=90, hardGuardsEnabled=False)
        result = autotune_generate(BASE, cfg, fixed_generator(deadlock_level))
        assert result.succeeded
        assert result.score == pytest.approx(85.0)

    def test_empty_generation_fails(self):
        cfg = AutoFillConfig(maxTuneAttempts=3)
        result = autotune_generate(BASE, cfg, lambda config, attempt: [])
        assert not result.succeeded
        assert result.ropes == []
        assert result.score == 0
        assert result.attempts == 3
        assert result.guard_errors is None

    def test_failure_keeps_last_level(self, chain_level, open_level):
        levels = [chain_level, open_level]

        def alternate(config, attempt):
            return list(levels[(attempt - 1) % 2].ropes)

        cfg = AutoFillConfig(targetScoreMin=95, targetScoreMax=100, hardGuardsEnabled=False, maxTuneAttempts=3)
        result = autotune_generate(BASE, cfg, alternate)
        assert result.ropes == list(chain_level.ropes)
        assert result.score == pytest.approx(36.029, abs=0.01)


class TestDefaultGenerator:
    """Real auto-fill behind the loop."""

    def test_seeded_attempts_are_reproducible(self):
        cfg = AutoFillConfig(seed=11, maxTuneAttempts=5)
        level = LevelData(MapX=8, MapY=8)
        first = autotune_generate(level, cfg)
        second = autotune_generate(level, cfg)
        assert first.ropes == second.ropes
        assert first.attempts == second.attempts
        assert first.score == second.score

    def test_attempt_seed_offset(self):
        generate_once = make_generate_once(6, 6)
        cfg = AutoFillConfig(seed=20)
        assert generate_once(cfg, 3) == generate_once(AutoFillConfig(seed=22), 1)

    def test_mask_is_passed_through(self):
        mask = list(range(12))
        cfg = AutoFillConfig(seed=3, maxTuneAttempts=2)
        result = autotune_generate(LevelData(MapX=6, MapY=6), cfg, mask=mask)
        for rope in result.ropes:
            assert set(rope.index) <= set(mask)


    def test_fills_around_level_ropes(self):
        # pulled down out of the grid, so the repair pass leaves it alone
        existing = derive_rope([0, 8], 8)
        level = LevelData(MapX=8, MapY=8, Rope=(existing,))
        result = autotune_generate(level, AutoFillConfig(seed=5, maxTuneAttempts=3))
        assert result.ropes[0] == existing
        for rope in result.ropes[1:]:
            assert not {0, 8} & set(rope.index)


class TestSummarizeResult:
    def test_success(self, open_level):
        cfg = AutoFillConfig(targetScoreMin=20, targetScoreMax=30)
        status = summarize_result(autotune_generate(BASE, cfg, fixed_generator(open_level)))
        assert status.status == "success"
        assert status.attempts == 1
        assert status.message == "Score 23.5 within [20, 30]"
        assert status.guard_errors is None

    def test_failure(self, deadlock_level):
        cfg = AutoFillConfig(maxTuneAttempts=2)
        status = summarize_result(autotune_generate(BASE, cfg, fixed_generator(deadlock_level)))
        assert status.status == "fail"
        assert status.message.startswith("AutoTune did not converge: 2 attempts")
        assert status.guard_errors

    def test_serializes_with_aliases(self, open_level):
        cfg = AutoFillConfig(targetScoreMin=20, targetScoreMax=30)
        payload = summarize_result(autotune_generate(BASE, cfg, fixed_generator(open_level))).model_dump(by_alias=True)
        assert payload["targetMin"] == 20
        assert payload["targetMax"] == 30
