"""
Radial error evaluation of a candidate ellipse against the target circle.

The ellipse (a, b, h) is centered on the y-axis at height h; the circle of
radius R is centered at the origin. Only the half-span from the arc endpoint
up to the top (parameter t0 .. pi/2) is sampled, the other half follows by
symmetry (see mirror_series).
"""

import math

import numpy as np

from arcellipse.models import ArcScore, ErrorSample, Rejected, RejectReason


def parameter_range(ellipse, x_end):
    """
    Ellipse parameter interval (t0, t1) matching the arc endpoints.

    Args:
        ellipse: CanonicalEllipse
        x_end: x-coordinate of the arc endpoint

    Returns:
        (t0, t1) tuple, or Rejected when the endpoint lies outside the
        ellipse's x-extent or does not land on the upper lobe
    """
    ratio = x_end / ellipse.a
    if abs(ratio) > 1:
        return Rejected(reason=RejectReason.ENDPOINT_OUTSIDE, detail=f"ratio={ratio:.6f}")

    t0 = math.acos(min(max(ratio, -1.0), 1.0))
    t1 = math.pi - t0
    if not (t0 < math.pi / 2 < t1):
        return Rejected(
            reason=RejectReason.PARAMETER_ORDER,
            detail=f"t0={t0:.6f} t1={t1:.6f}",
        )
    return t0, t1


def sample_errors(ellipse, radius, x_end, steps):
    """
    Sample the signed radial error over [t0, pi/2].

    Args:
        ellipse: CanonicalEllipse
        radius: target circle radius R
        x_end: x-coordinate of the arc endpoint
        steps: number of evenly spaced samples (including both ends)

    Returns:
        ArcScore, or Rejected from parameter_range
    """
    t_range = parameter_range(ellipse, x_end)
    if isinstance(t_range, Rejected):
        return t_range
    t0, t1 = t_range

    ts = np.linspace(t0, math.pi / 2, steps)
    xs = ellipse.a * np.cos(ts)
    ys = ellipse.b * np.sin(ts) + ellipse.h
    rho = np.hypot(xs, ys)
    errors = rho - radius
    bearings = np.degrees(np.arctan2(ys, xs))

    samples = [
        ErrorSample(angle_deg=float(bearing), param_deg=float(math.degrees(t)), error=float(err))
        for bearing, t, err in zip(bearings, ts, errors)
    ]

    return ArcScore(
        t0=t0,
        t1=t1,
        max_error=float(np.max(np.abs(errors))),
        samples=samples,
    )


def is_accepted(score, tolerance):
    """An attempt is accepted when its worst radial error is within tolerance."""
    return score.max_error <= tolerance


def mirror_series(samples):
    """
    Full-span error curve from the sampled half.

    Reflects the half-curve about the 90 degree bearing; the shared sample
    at the top appears once.
    """
    if not samples:
        return []

    reflected = [
        ErrorSample(
            angle_deg=180.0 - s.angle_deg,
            param_deg=180.0 - s.param_deg,
            error=s.error,
        )
        for s in reversed(samples)
    ]
    return list(samples) + reflected[1:]
