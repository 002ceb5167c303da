"""Test growth constraints, path validation and movability."""

from ropefill.schemas import AutoFillConfig
from ropefill.services.constraints import (
    breaks_head,
    forms_2x2_loop,
    has_movable_rope,
    head_next_cell,
    is_movable,
    is_uturn,
    occupied_cells,
    validate_path,
)
from ropefill.services.grid import Direction
from ropefill.services.rope_logic import derive_rope


class TestStepChecks:
    """Checks applied to each candidate step."""

    def test_uturn(self):
        assert is_uturn(Direction.UP, Direction.DOWN)
        assert is_uturn(Direction.LEFT, Direction.RIGHT)
        assert not is_uturn(Direction.UP, Direction.LEFT)
        assert not is_uturn(None, Direction.DOWN)

    def test_head_turn(self):
        # 0=(0,0) 1=(1,0) 6=(1,1) on MapX=5; 5=(0,1) touches the head
        assert breaks_head([0, 1, 6], 5, 5)
        assert not breaks_head([0, 1, 6], 7, 5)
        assert not breaks_head([0], 1, 5)

    def test_2x2_loop_closed(self):
        # 3x3 grid: edge 3 -> 4 with 0, 1 below and 6, 7 above all taken
        assert forms_2x2_loop(3, 4, {0, 1, 3, 6, 7}, 3, 3)

    def test_2x2_loop_vertical_edge(self):
        # edge 1 -> 4 with 0, 3 on the left and 2, 5 on the right taken
        assert forms_2x2_loop(1, 4, {0, 1, 2, 3, 5}, 3, 3)

    def test_running_beside_another_rope(self):
        # 5x5: step 1 -> 6 next to a rope on 0, 5; cells 2, 7 are free
        assert not forms_2x2_loop(1, 6, {0, 1, 5}, 5, 5)

    def test_three_corners_taken(self):
        assert not forms_2x2_loop(3, 4, {0, 1, 3, 6}, 3, 3)

    def test_border_edge_never_closes(self):
        # edge along the bottom row has corners on one side only
        assert not forms_2x2_loop(0, 1, {0, 3, 4}, 3, 3)

    def test_2x2_loop_ignores_non_adjacent(self):
        assert not forms_2x2_loop(0, 8, {1, 3, 4}, 3, 3)


class TestValidatePath:
    """Whole-path validation."""

    config = AutoFillConfig()

    def test_valid_path(self):
        assert validate_path([0, 1, 2], 3, 3, self.config) == []

    def test_too_short(self):
        assert validate_path([0], 3, 3, self.config) == ["path shorter than 2 cells"]

    def test_out_of_grid(self):
        assert validate_path([8, 9], 3, 3, self.config) == ["path leaves the grid"]

    def test_not_adjacent(self):
        assert validate_path([0, 2], 3, 3, self.config) == ["cells 0 and 1 are not adjacent"]

    def test_backtrack(self):
        errors = validate_path([0, 1, 0], 3, 3, self.config)
        assert "path repeats a cell" in errors
        assert "U-turn" in errors

    def test_spiral_closing_a_loop(self):
        # 3x3 spiral ends with 3 -> 4 while 0, 1, 6, 7 are already part of the rope
        errors = validate_path([0, 1, 2, 5, 8, 7, 6, 3, 4], 3, 3, self.config)
        assert "head turn" in errors
        assert "2x2 loop" in errors

    def test_small_square_is_not_a_loop(self):
        # the last step 4 -> 3 has free corners 6, 7 above it
        no_head_rule = AutoFillConfig(forbidHeadTurn=False)
        assert validate_path([0, 1, 4, 3], 3, 3, no_head_rule) == []

    def test_toggles_disable_checks(self):
        relaxed = AutoFillConfig(forbidHeadTurn=False, forbid2x2Loop=False)
        assert validate_path([0, 1, 2, 5, 8, 7, 6, 3, 4], 3, 3, relaxed) == []


class TestMovability:
    """Next cell off-grid or free means movable."""

    def test_head_next_cell(self):
        rope = derive_rope([27, 22, 17], 5)
        assert head_next_cell(rope, 5, 6) is None
        assert head_next_cell(rope, 5, 7) == 32

    def test_off_grid_is_movable(self):
        rope = derive_rope([27, 22, 17], 5)
        assert is_movable(rope, occupied_cells([rope]), 5, 6)

    def test_flip_occupancy_flips_movability(self):
        rope = derive_rope([27, 22, 17], 5)
        blocker = derive_rope([32, 33], 5)
        assert is_movable(rope, occupied_cells([rope]), 5, 7)
        assert not is_movable(rope, occupied_cells([rope, blocker]), 5, 7)

    def test_horizontal_edge_does_not_wrap(self):
        # head 3 at the right edge of a 4-wide grid, pulled right; cell 4 is occupied
        edge = derive_rope([3, 2], 4)
        other = derive_rope([4, 8], 4)
        assert edge.direction == Direction.RIGHT
        assert is_movable(edge, occupied_cells([edge, other]), 4, 4)

    def test_rope_without_pull_is_never_movable(self):
        single = derive_rope([5], 5)
        assert not is_movable(single, set(), 5, 5)

    def test_has_movable_rope(self, deadlock_level, open_level):
        assert not has_movable_rope(deadlock_level.ropes, 4, 4)
        assert has_movable_rope(open_level.ropes, 4, 4)
