"""Test high-churn hard guards."""

from conftest import make_level
from ropefill.schemas import DifficultyDiagnostics, LevelData
from ropefill.services.difficulty import compute_difficulty
from ropefill.services.hard_guards import check_hard_guards


class TestHardGuards:
    """G1..G5 on known levels."""

    def test_empty_level_passes(self):
        assert check_hard_guards(LevelData(MapX=4, MapY=4)) == []

    def test_open_level_passes(self, open_level):
        assert check_hard_guards(open_level) == []

    def test_deadlock_fails_four_ways(self, deadlock_level):
        errors = check_hard_guards(deadlock_level)
        assert len(errors) == 4
        assert all(error.startswith("High churn") for error in errors)
        assert "no rope can move" in errors[0]
        assert "first break needs 25 steps" in errors[1]
        assert "key lock chain depth 25" in errors[2]
        assert "only 0 movable rope(s) for 2 ropes" in errors[3]

    def test_single_opening_on_small_level(self, chain_level):
        errors = check_hard_guards(chain_level)
        assert errors == ["High churn: only 1 movable rope(s) for 3 ropes"]

    def test_free_ahead_branches(self, free_ahead_level):
        errors = check_hard_guards(free_ahead_level)
        assert len(errors) == 1
        assert "too many open branches" in errors[0]

    def test_large_level_needs_one_opening(self):
        # 31 ropes: one movable rope is enough
        diag = DifficultyDiagnostics(InitialMovableCount=1, N=31, FirstBreakSteps=1)
        level = make_level(4, 4, [[0, 4]])
        assert check_hard_guards(level, diag) == []

    def test_uses_given_diagnostics(self, deadlock_level, open_level):
        assert check_hard_guards(deadlock_level, compute_difficulty(open_level)) == []
