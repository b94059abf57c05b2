"""Tests for greedy single-step movement."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from oasis.ai.movement import PathExecutor, StepOutcome, step_candidates
from oasis.core.enums import Zone
from tests.helpers.oasis_world import add_agent, make_ctx


def _mind(ctx, agent):
    return ctx.minds.get(agent.id)


class TestStepCandidates:
    def test_diagonal_first(self):
        assert step_candidates(0, 0, 3, -2) == [(1, -1), (1, 0), (0, -1)]

    def test_straight_line(self):
        assert step_candidates(4, 4, 4, 9) == [(0, 1)]

    def test_already_there(self):
        assert step_candidates(2, 2, 2, 2) == []


class TestPathExecutor:
    def test_one_step_per_tick(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 0, 0)
        mind = _mind(ctx, ada)
        paths = PathExecutor(ctx.grid)
        assert paths.move_toward(ada, mind, 3, 3) is StepOutcome.MOVED
        assert (ada.tile_x, ada.tile_y) == (1, 1)
        assert mind.path_this_tick == [(1, 1)]
        assert mind.memory.visited == {"grass": 1}

    def test_arrived(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 4, 4)
        assert PathExecutor(ctx.grid).move_toward(ada, _mind(ctx, ada), 4, 4) is StepOutcome.ARRIVED

    def test_exhausted_agent_has_no_budget(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 0, 0, energy=5.0)
        mind = _mind(ctx, ada)
        assert PathExecutor(ctx.grid, 5.0).move_toward(ada, mind, 3, 3) is StepOutcome.NO_BUDGET
        assert (ada.tile_x, ada.tile_y) == (0, 0)
        assert mind.path_this_tick is None

    def test_stuck_against_water(self, tmp_path):
        ctx = make_ctx(tmp_path, ["gog", "gog", "gog"])
        ada = add_agent(ctx, "Ada", 0, 1)
        assert PathExecutor(ctx.grid).move_toward(ada, _mind(ctx, ada), 2, 1) is StepOutcome.STUCK
        assert (ada.tile_x, ada.tile_y) == (0, 1)

    def test_falls_back_to_cardinal(self, tmp_path):
        # diagonal (1, 1) is water, east is open
        ctx = make_ctx(tmp_path, ["ggg", "gog", "ggg"])
        ada = add_agent(ctx, "Ada", 0, 0)
        assert PathExecutor(ctx.grid).move_toward(ada, _mind(ctx, ada), 2, 2) is StepOutcome.MOVED
        assert (ada.tile_x, ada.tile_y) == (1, 0)
        assert ada.zone is Zone.COAST

    def test_movement_is_free(self, tmp_path):
        ctx = make_ctx(tmp_path, ["gff"])
        ada = add_agent(ctx, "Ada", 0, 0)
        PathExecutor(ctx.grid).move_toward(ada, _mind(ctx, ada), 2, 0)
        assert ada.zone is Zone.FOREST
        assert ada.energy == 100
