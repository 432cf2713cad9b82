"""
Canonical form of a fitted conic.

Turns (A, B, C) into semi-axes a (along x), b (along y) and the center
height h, and reports whether the conic is a real ellipse.
"""

import math

from arcellipse.errors import InvalidFitError
from arcellipse.models import (
    CanonicalEllipse, ConicCoefficients, Orientation, Rejected, RejectReason,
)


def to_canonical(coeffs, eps=1e-12):
    """
    Convert conic coefficients to canonical (a, b, h).

    A hyperbola still comes back as a CanonicalEllipse, with orientation '-';
    rejecting it is up to the caller.

    Returns:
        CanonicalEllipse, or Rejected for degenerate fits
    """
    A, B, C = coeffs.A, coeffs.B, coeffs.C

    if abs(A) < eps:
        return Rejected(reason=RejectReason.A_TOO_SMALL, detail=f"A={A:.3e}")

    # x^2 = A*(y - h)^2 + K, so x^2/K + (y - h)^2/(-K/A) = 1
    h = -B / (2 * A)
    k = C - (B * B) / (4 * A)
    if abs(k) < eps:
        return Rejected(reason=RejectReason.DEGENERATE_A2, detail=f"a2={k:.3e}")

    denom_y = -k / A
    if abs(denom_y) < eps:
        return Rejected(reason=RejectReason.DEGENERATE_DENOM_Y, detail=f"denomY={denom_y:.3e}")

    # real ellipse iff A < 0 and K > 0; A > 0 with K < 0 also gives a
    # positive denom_y but is a hyperbola opening along y
    if A < 0 and k > 0:
        orientation = Orientation.POSITIVE
    else:
        orientation = Orientation.NEGATIVE

    return CanonicalEllipse(
        a=math.sqrt(abs(k)),
        b=math.sqrt(abs(denom_y)),
        h=h,
        orientation=orientation,
    )


def require_ellipse(coeffs, eps=1e-12):
    """
    Raising form of to_canonical that also rejects hyperbolas.

    Raises:
        InvalidFitError: degenerate conic or hyperbola
    """
    outcome = to_canonical(coeffs, eps)
    if isinstance(outcome, Rejected):
        raise InvalidFitError(outcome.reason, outcome.detail)
    if not outcome.is_ellipse:
        raise InvalidFitError(RejectReason.HYPERBOLA, "y denominator is negative")
    return outcome


def conic_from_ellipse(a, b, h):
    """Forward map: coefficients of the ellipse x^2/a^2 + (y-h)^2/b^2 = 1."""
    ratio = (a * a) / (b * b)
    return ConicCoefficients(A=-ratio, B=2 * ratio * h, C=a * a - ratio * h * h)
