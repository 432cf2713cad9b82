"""
Objective values and best-attempt selection.
"""

import math

from arcellipse.models import Objective


def objective_value(objective, a, b, rig_lengths=None):
    """
    Score of a candidate under the configured objective (lower is better).

    Every objective can be scored before error sampling, which is what
    makes pruning possible.
    """
    objective = Objective(objective)
    if objective == Objective.MINIMIZE_A:
        return a
    if objective == Objective.MINIMIZE_A_PLUS_B:
        return a + b
    if rig_lengths is None:
        return math.inf
    return rig_lengths.l1_plus_l3


def attempt_objective(attempt, objective):
    return objective_value(objective, attempt.a, attempt.b, attempt.rig_lengths)


def select_best(attempts, objective):
    """
    Accepted attempt with the lowest objective value.

    Ties go to the earliest attempt in traversal order. Returns None when
    nothing was accepted.
    """
    best = None
    best_value = math.inf
    for attempt in attempts:
        if not attempt.accepted:
            continue
        value = attempt_objective(attempt, objective)
        if best is None or value < best_value:
            best = attempt
            best_value = value
    return best
