"""
Grid search for the ellipse that best approximates a circular arc.

Sweeps radial offsets (d, d1, d2) of the Q, P and R anchors over
[-tolerance, tolerance], fits a conic through each anchor triple, keeps the
real ellipses, scores them against the circle and selects the best accepted
one under the requested objective.

Traversal order is fixed: d outer, d1 middle, d2 inner, each ascending.
Attempt ids and tie-breaking both follow that order.
"""

import math
from collections import Counter
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from functools import partial

from arcellipse.config import (
    MAX_ERROR_SAMPLE_STEPS, MAX_OFFSET_STEPS, MIN_ERROR_SAMPLE_STEPS,
    MIN_OFFSET_STEPS, NumericsConfig, clamp_steps,
)
from arcellipse.geometry.anchors import build_anchor_points, endpoint_x, sample_offsets
from arcellipse.geometry.arc_sampler import is_accepted, sample_errors
from arcellipse.geometry.canonical import to_canonical
from arcellipse.geometry.conic_fit import fit_anchor_conic
from arcellipse.geometry.rig import compute_rig_lengths
from arcellipse.models import (
    ArcSpec, Attempt, Rejected, RejectReason, SearchResult, generate_attempt_id,
)
from arcellipse.search.selection import objective_value, select_best
from arcellipse.tracer import get_tracer, trace


@dataclass(frozen=True)
class GridPlan:
    """Offsets along each grid axis plus the error sample count."""
    ds: tuple
    d1s: tuple
    d2s: tuple
    error_steps: int

    @property
    def cell_count(self):
        return len(self.ds) * len(self.d1s) * len(self.d2s)


def is_searchable(request):
    """Top-level sanity check; anything failing it yields the empty result."""
    r = request.radius
    theta = request.central_angle_deg
    e = request.tolerance
    return (
        math.isfinite(r) and r > 0
        and math.isfinite(theta) and 0 < theta <= 180
        and math.isfinite(e) and e > 0
    )


def plan_grid(request):
    """Clamp the step counts and lay out the offsets for each axis."""
    e = request.tolerance
    n_d = clamp_steps(request.steps_d, MIN_OFFSET_STEPS, MAX_OFFSET_STEPS)
    n_d1 = clamp_steps(request.steps_d1, MIN_OFFSET_STEPS, MAX_OFFSET_STEPS)
    n_d2 = clamp_steps(request.steps_d2, MIN_OFFSET_STEPS, MAX_OFFSET_STEPS)

    return GridPlan(
        ds=tuple(sample_offsets(n_d, e)),
        d1s=tuple(sample_offsets(n_d1, e, force_zero=request.force_anchor_p_zero)),
        d2s=tuple(sample_offsets(n_d2, e, force_zero=request.force_anchor_r_zero)),
        error_steps=clamp_steps(
            request.error_sample_steps, MIN_ERROR_SAMPLE_STEPS, MAX_ERROR_SAMPLE_STEPS
        ),
    )


def fit_cell(arc, d, d1, d2, numerics):
    """
    Anchors, conic fit and canonical form for one grid cell.

    Returns a CanonicalEllipse that is a real ellipse, or Rejected.
    """
    anchors = build_anchor_points(arc, d, d1, d2)

    coeffs = fit_anchor_conic(anchors, numerics.near_singular_eps)
    if isinstance(coeffs, Rejected):
        return coeffs

    ellipse = to_canonical(coeffs, numerics.eps_small)
    if isinstance(ellipse, Rejected):
        return ellipse
    if not ellipse.is_ellipse:
        return Rejected(reason=RejectReason.HYPERBOLA, detail=f"a={ellipse.a:.6g} b={ellipse.b:.6g}")
    return ellipse


def _sweep(arc, request, plan, ds, numerics):
    """
    Evaluate every cell whose d lies in ds, in traversal order.

    The best accepted objective value is carried along as a local
    accumulator; it only matters when pruning is on.

    Returns:
        (list of attempt field dicts without ids, Counter of skip reasons)
    """
    tracer = get_tracer()
    trace_cells = tracer.is_enabled_for("DEBUG")

    prune = request.prune_worse_than_best
    tolerance = request.tolerance
    best_value = math.inf

    records = []
    skips = Counter()

    for d in ds:
        for d1 in plan.d1s:
            for d2 in plan.d2s:
                ellipse = fit_cell(arc, d, d1, d2, numerics)
                if isinstance(ellipse, Rejected):
                    skips[ellipse.reason.value] += 1
                    if trace_cells:
                        tracer.event(f"skip d={d:.4g} d1={d1:.4g} d2={d2:.4g}", level="DEBUG",
                                     outcome=ellipse)
                    continue

                rig = compute_rig_lengths(arc, ellipse.a, ellipse.b, ellipse.h)
                value = objective_value(request.objective, ellipse.a, ellipse.b, rig)

                if prune and value >= best_value:
                    skips[RejectReason.PRUNED.value] += 1
                    continue

                score = sample_errors(ellipse, arc.radius, endpoint_x(arc, d2), plan.error_steps)
                if isinstance(score, Rejected):
                    skips[score.reason.value] += 1
                    if trace_cells:
                        tracer.event(f"skip d={d:.4g} d1={d1:.4g} d2={d2:.4g}", level="DEBUG",
                                     ellipse=ellipse, outcome=score)
                    continue

                accepted = is_accepted(score, tolerance)
                records.append({
                    "d": d,
                    "d1": d1,
                    "d2": d2,
                    "a": ellipse.a,
                    "b": ellipse.b,
                    "h": ellipse.h,
                    "max_error": score.max_error,
                    "accepted": accepted,
                    "error_series": score.samples,
                    "rig_lengths": rig,
                })

                if accepted and value < best_value:
                    best_value = value

    return records, skips


def _sweep_slice(arc, request, plan, numerics, d):
    """Worker entry point: one outer-axis slice of the grid."""
    records, skips = _sweep(arc, request, plan, (d,), numerics)
    return records, dict(skips)


@trace(label="run_search")
def run_search(request, numerics=None, workers=1):
    """
    Run the full grid search for one request.

    Args:
        request: SearchRequest
        numerics: NumericsConfig with the degeneracy thresholds (optional)
        workers: process count; values above 1 evaluate outer-axis slices in
            parallel. Pruning depends on traversal order, so a pruned search
            always runs sequentially.

    Returns:
        SearchResult; empty when the top-level parameters are malformed
    """
    tracer = get_tracer()

    if not is_searchable(request):
        tracer.event(
            "Nothing to search: invalid arc or tolerance",
            level="WARN",
            radius=request.radius,
            angle=request.central_angle_deg,
            tolerance=request.tolerance,
        )
        return SearchResult()

    if numerics is None:
        numerics = NumericsConfig()

    arc = ArcSpec(radius=request.radius, central_angle_deg=request.central_angle_deg)
    plan = plan_grid(request)

    parallel = workers > 1 and not request.prune_worse_than_best and len(plan.ds) > 1

    with tracer.span("grid_sweep", module="engine", cells=plan.cell_count,
                     objective=request.objective, parallel=parallel) as sweep:
        if parallel:
            records, skips = _parallel_sweep(arc, request, plan, numerics, workers)
        else:
            records, skips = _sweep(arc, request, plan, plan.ds, numerics)
        sweep.note(scored=len(records), skipped=sum(skips.values()))

    attempts = [
        Attempt(id=generate_attempt_id(index), **fields)
        for index, fields in enumerate(records)
    ]

    best = select_best(attempts, request.objective)

    accepted_count = sum(1 for att in attempts if att.accepted)
    tracer.event(
        f"Sweep complete: {plan.cell_count} cells, {len(attempts)} attempts, "
        f"{accepted_count} accepted",
        skipped=dict(skips),
    )
    if best is not None:
        tracer.event("Best attempt selected", best=best, rig=best.rig_lengths)

    return SearchResult(
        attempts=attempts,
        best_attempt=best,
        error_series=list(best.error_series) if best is not None else [],
        skip_counts=dict(sorted(skips.items())),
    )


def _parallel_sweep(arc, request, plan, numerics, workers):
    """Evaluate outer-axis slices in worker processes, merged in grid order."""
    evaluate_slice = partial(_sweep_slice, arc, request, plan, numerics)

    records = []
    skips = Counter()
    with ProcessPoolExecutor(max_workers=min(workers, len(plan.ds))) as executor:
        # map() yields in submission order, so the merge is deterministic
        for slice_records, slice_skips in executor.map(evaluate_slice, plan.ds):
            records.extend(slice_records)
            skips.update(slice_skips)

    return records, skips
