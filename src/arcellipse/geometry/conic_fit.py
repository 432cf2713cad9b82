"""
Three-point conic fit for arcellipse.

Solves x^2 = A*y^2 + B*y + C through (0, y1), (x2, y2), (x3, y3). Pinning the
first point to x = 0 gives C = -A*y1^2 - B*y1, which leaves a 2x2 system in
A and B with a closed-form solution.
"""

from arcellipse.errors import DegenerateInputError, NearSingularFitError
from arcellipse.models import ConicCoefficients, Rejected, RejectReason


def fit_conic(y1, x2, y2, x3, y3, near_singular_eps=1e-12):
    """
    Fit the conic through the three points.

    Args:
        y1: y of the pinned point (0, y1)
        x2, y2: second point
        x3, y3: third point
        near_singular_eps: relative threshold on the system determinant

    Returns:
        ConicCoefficients, or Rejected when the y-coordinates repeat or the
        system is numerically singular
    """
    if y1 == y2 or y1 == y3 or y2 == y3:
        return Rejected(
            reason=RejectReason.DUPLICATE_Y,
            detail=f"y1={y1!r} y2={y2!r} y3={y3!r}",
        )

    d = (y1 - y2) * (y1 - y3) * (y2 - y3)
    scale = max(abs(y1), abs(y2), abs(y3), 1.0)
    if abs(d) <= near_singular_eps * scale ** 3:
        return Rejected(reason=RejectReason.NEAR_SINGULAR, detail=f"d={d:.3e}")

    x2sq = x2 * x2
    x3sq = x3 * x3

    a = (x2sq * (y3 - y1) + x3sq * (y1 - y2)) / d
    b = (x2sq * (y1 * y1 - y3 * y3) + x3sq * (y2 * y2 - y1 * y1)) / d
    c = -a * y1 * y1 - b * y1

    return ConicCoefficients(A=a, B=b, C=c)


def solve_conic(y1, x2, y2, x3, y3, near_singular_eps=1e-12):
    """
    Raising form of fit_conic for direct callers.

    Raises:
        DegenerateInputError: y-coordinates are not pairwise distinct
        NearSingularFitError: the determinant is numerically zero
    """
    outcome = fit_conic(y1, x2, y2, x3, y3, near_singular_eps)
    if isinstance(outcome, Rejected):
        if outcome.reason == RejectReason.DUPLICATE_Y:
            raise DegenerateInputError(f"Require y1, y2, y3 all distinct ({outcome.detail})")
        raise NearSingularFitError(f"Conic system is near singular ({outcome.detail})")
    return outcome


def fit_anchor_conic(anchors, near_singular_eps=1e-12):
    """Fit the conic through a (P, Q, R) anchor triple."""
    p, q, end = anchors
    return fit_conic(p.y, q.x, q.y, end.x, end.y, near_singular_eps)


def conic_residuals(coeffs, points):
    """Residual x^2 - (A*y^2 + B*y + C) for each (x, y) point."""
    return [
        x * x - (coeffs.A * y * y + coeffs.B * y + coeffs.C)
        for x, y in points
    ]
