"""Tests for the grid search engine and best-attempt selection."""

import math

import pytest

from arcellipse.config import NumericsConfig
from arcellipse.models import (
    Attempt, Objective, Rejected, RejectReason, SearchRequest, SearchResult,
)
from arcellipse.search.engine import fit_cell, is_searchable, plan_grid, run_search
from arcellipse.search.selection import objective_value, select_best


def _request(**overrides):
    data = dict(radius=700.0, central_angle_deg=20.0, tolerance=0.4)
    data.update(overrides)
    return SearchRequest(**data)


def _attempt(idx, a, b, accepted=True):
    return Attempt(
        id=f"att-{idx}", d=0.0, d1=0.0, d2=0.0,
        a=a, b=b, h=0.0, max_error=0.0, accepted=accepted,
    )


class TestTopLevelValidation:
    """Malformed requests give the empty result, never an exception."""

    @pytest.mark.parametrize("overrides", [
        {"radius": 0.0},
        {"radius": -10.0},
        {"radius": float("nan")},
        {"central_angle_deg": 0.0},
        {"central_angle_deg": 200.0},
        {"tolerance": 0.0},
        {"tolerance": float("inf")},
    ])
    def test_empty_result(self, overrides):
        request = _request(**overrides)

        result = run_search(request)

        assert not is_searchable(request)
        assert result == SearchResult()
        assert result.attempts == []
        assert result.best_attempt is None
        assert result.error_series == []


class TestGridPlan:
    """Tests for step clamping and axis layout."""

    def test_steps_are_clamped(self):
        plan = plan_grid(_request(steps_d=1, steps_d1=100, steps_d2=7, error_sample_steps=2))

        assert len(plan.ds) == 2
        assert len(plan.d1s) == 30
        assert len(plan.d2s) == 7
        assert plan.error_steps == 4

    def test_error_steps_upper_clamp(self):
        assert plan_grid(_request(error_sample_steps=99)).error_steps == 30

    def test_axes_span_tolerance(self):
        plan = plan_grid(_request(steps_d=3))

        assert plan.ds == pytest.approx((-0.4, 0.0, 0.4))

    def test_force_zero_collapses_axes(self):
        plan = plan_grid(_request(force_anchor_p_zero=True, force_anchor_r_zero=True))

        assert plan.d1s == (0.0,)
        assert plan.d2s == (0.0,)
        assert plan.cell_count == len(plan.ds)

    def test_float_steps_are_rounded(self):
        request = _request(steps_d=4.6)

        assert request.steps_d == 5


class TestFitCell:
    """Tests for the per-cell fit."""

    def test_unperturbed_cell_is_the_circle(self):
        from arcellipse.models import ArcSpec

        arc = ArcSpec(radius=700.0, central_angle_deg=20.0)

        ellipse = fit_cell(arc, 0.0, 0.0, 0.0, NumericsConfig())

        assert ellipse.a == pytest.approx(700.0, rel=1e-6)
        assert ellipse.b == pytest.approx(700.0, rel=1e-6)
        assert ellipse.h == pytest.approx(0.0, abs=1e-3)

    def test_inward_quarter_point_is_a_hyperbola(self):
        """Pulling Q inward on a shallow arc flattens the fit past a circle."""
        from arcellipse.models import ArcSpec

        arc = ArcSpec(radius=700.0, central_angle_deg=20.0)

        outcome = fit_cell(arc, -0.4, 0.0, 0.0, NumericsConfig())

        assert isinstance(outcome, Rejected)
        assert outcome.reason == RejectReason.HYPERBOLA


class TestSearchScenarios:
    """End-to-end searches."""

    def test_shallow_arc(self, shallow_arc_request):
        """Large radius, 20 degree arc, both outer anchors on the arc."""
        result = run_search(shallow_arc_request)

        best = result.best_attempt
        assert best is not None
        assert best.accepted
        assert best.a > 0
        assert best.b > 0
        assert best.max_error <= 0.4
        assert best.a < 700.0
        assert result.error_series == best.error_series
        assert len(result.error_series) == 20
        assert best.a == min(att.a for att in result.accepted_attempts)
        for att in result.attempts:
            assert att.d1 == 0.0
            assert att.d2 == 0.0

    def test_zero_offset_cell_recovers_circle(self):
        """An odd step count puts Q on the arc too, which fits the circle itself."""
        request = _request(steps_d=11, force_anchor_p_zero=True, force_anchor_r_zero=True)

        result = run_search(request)

        near_circle = [att for att in result.attempts if abs(att.d) < 1e-9]
        assert len(near_circle) == 1
        att = near_circle[0]
        assert att.accepted
        assert att.a == pytest.approx(700.0, abs=1.0)
        assert att.b == pytest.approx(700.0, abs=1.0)
        assert att.max_error < 1e-3

    def test_semicircle_completes(self):
        """A 180 degree arc runs the whole grid; a solution is optional."""
        request = SearchRequest(radius=100.0, central_angle_deg=180.0, tolerance=0.01)

        result = run_search(request)

        plan = plan_grid(request)
        assert len(result.attempts) + sum(result.skip_counts.values()) == plan.cell_count
        for att in result.attempts:
            assert att.a > 0
            assert att.b > 0
            assert att.accepted == (att.max_error <= 0.01)
            assert len(att.error_series) == plan.error_steps
        if result.best_attempt is None:
            assert result.error_series == []
        else:
            assert result.best_attempt.max_error <= 0.01
            assert result.error_series == result.best_attempt.error_series

    def test_ids_follow_traversal_order(self, small_grid_request):
        result = run_search(small_grid_request)

        assert [att.id for att in result.attempts] == [
            f"att-{i}" for i in range(len(result.attempts))
        ]
        keys = [(att.d, att.d1, att.d2) for att in result.attempts]
        assert keys == sorted(keys)

    def test_acceptance_matches_tolerance(self, small_grid_request):
        """Scored cells are recorded whether or not they pass."""
        result = run_search(small_grid_request)

        for att in result.attempts:
            assert att.accepted == (att.max_error <= small_grid_request.tolerance)
        assert len(result.accepted_attempts) <= len(result.attempts)

    def test_accounting(self, small_grid_request):
        """Every cell is either recorded or counted as skipped."""
        result = run_search(small_grid_request)

        total = len(result.attempts) + sum(result.skip_counts.values())
        assert total == plan_grid(small_grid_request).cell_count
        assert RejectReason.PRUNED.value not in result.skip_counts


class TestDeterminism:
    """Repeated and parallel runs give identical output."""

    def test_idempotent(self, small_grid_request):
        first = run_search(small_grid_request)
        second = run_search(small_grid_request)

        assert first.model_dump() == second.model_dump()

    def test_parallel_matches_sequential(self, small_grid_request):
        sequential = run_search(small_grid_request, workers=1)
        parallel = run_search(small_grid_request, workers=2)

        assert parallel.model_dump() == sequential.model_dump()


class TestPruning:
    """Tests for skipping cells that cannot beat the incumbent."""

    @pytest.mark.parametrize("objective", list(Objective))
    def test_same_best_as_full_sweep(self, objective):
        base = dict(steps_d=10, force_anchor_p_zero=True, force_anchor_r_zero=True,
                    objective=objective)
        full = run_search(_request(**base))
        pruned = run_search(_request(prune_worse_than_best=True, **base))

        assert full.best_attempt is not None
        assert pruned.best_attempt is not None
        assert (pruned.best_attempt.d, pruned.best_attempt.a) == (
            full.best_attempt.d, full.best_attempt.a
        )
        assert len(pruned.attempts) <= len(full.attempts)

        full_keys = {(att.d, att.d1, att.d2) for att in full.attempts}
        assert {(att.d, att.d1, att.d2) for att in pruned.attempts} <= full_keys

    def test_pruned_cells_are_counted(self):
        request = _request(steps_d=10, objective=Objective.MINIMIZE_A_PLUS_B,
                           prune_worse_than_best=True, force_anchor_r_zero=True)

        result = run_search(request)

        total = len(result.attempts) + sum(result.skip_counts.values())
        assert total == plan_grid(request).cell_count


class TestSelection:
    """Tests for objectives and tie-breaking."""

    def test_objective_values(self):
        from arcellipse.models import RigLengths

        rig = RigLengths(l1=3.0, l2=1.0, l3=4.0)

        assert objective_value(Objective.MINIMIZE_A, 10.0, 5.0, rig) == 10.0
        assert objective_value(Objective.MINIMIZE_A_PLUS_B, 10.0, 5.0, rig) == 15.0
        assert objective_value(Objective.MINIMIZE_RIG_LENGTH_SUM, 10.0, 5.0, rig) == 7.0
        assert objective_value("minimize-rig-length-sum", 10.0, 5.0) == math.inf

    def test_objectives_pick_different_attempts(self):
        attempts = [_attempt(0, 10.0, 9.0), _attempt(1, 12.0, 2.0)]

        assert select_best(attempts, Objective.MINIMIZE_A).id == "att-0"
        assert select_best(attempts, Objective.MINIMIZE_A_PLUS_B).id == "att-1"

    def test_first_found_wins_ties(self):
        attempts = [_attempt(0, 5.0, 1.0, accepted=False), _attempt(1, 6.0, 1.0),
                    _attempt(2, 6.0, 1.0)]

        assert select_best(attempts, Objective.MINIMIZE_A).id == "att-1"

    def test_nothing_accepted(self):
        attempts = [_attempt(0, 5.0, 1.0, accepted=False)]

        assert select_best(attempts, Objective.MINIMIZE_A) is None

    @pytest.mark.parametrize("objective", list(Objective))
    def test_best_minimizes_objective(self, shallow_arc_request, objective):
        request = shallow_arc_request.model_copy(update={"objective": objective})

        result = run_search(request)

        best_value = objective_value(objective, result.best_attempt.a, result.best_attempt.b,
                                     result.best_attempt.rig_lengths)
        for att in result.accepted_attempts:
            assert best_value <= objective_value(objective, att.a, att.b, att.rig_lengths)
