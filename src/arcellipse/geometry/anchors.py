"""
Anchor point construction for the conic fit.

Three anchors sit on or near the arc: P at the top (bearing 90), Q at the
quarter point and the R-point at the arc endpoint. Each one is pushed off
the circle radially by its own grid offset.
"""

import math

import numpy as np

from arcellipse.models import AnchorPoint


def sample_offsets(n, tolerance, force_zero=False):
    """
    Evenly spaced radial offsets over [-tolerance, tolerance].

    Returns the singleton [0.0] when the axis is forced onto the arc.
    """
    if force_zero:
        return [0.0]
    return [float(v) for v in np.linspace(-tolerance, tolerance, n)]


def build_anchor_points(arc, d, d1, d2):
    """
    Build the P, Q and R anchors for one grid cell.

    Args:
        arc: ArcSpec
        d: radial offset of the quarter point Q
        d1: radial offset of the top point P
        d2: radial offset of the endpoint R

    Returns:
        (P, Q, R) AnchorPoint tuple; P always has x == 0
    """
    r = arc.radius
    quarter = arc.half_angle_rad / 2

    p = AnchorPoint(name="P", bearing_deg=90.0, offset=d1, x=0.0, y=r + d1)
    q = _polar_anchor("Q", r + d, math.pi / 2 - quarter, d)
    end = _polar_anchor("R", r + d2, math.pi / 2 - arc.half_angle_rad, d2)
    return p, q, end


def _polar_anchor(name, rho, bearing, offset):
    return AnchorPoint(
        name=name,
        bearing_deg=math.degrees(bearing),
        offset=offset,
        x=rho * math.cos(bearing),
        y=rho * math.sin(bearing),
    )


def endpoint_x(arc, d2):
    """x-coordinate of the (perturbed) arc endpoint."""
    return (arc.radius + d2) * math.cos(math.pi / 2 - arc.half_angle_rad)


def chord_from_angle(radius, central_angle_deg):
    """Chord length of an arc: 2R*sin(theta/2)."""
    return 2 * radius * math.sin(math.radians(central_angle_deg) / 2)


def angle_from_chord(radius, chord):
    """
    Central angle in degrees for a chord of the given length.

    Raises ValueError when the chord does not fit in the circle.
    """
    if radius <= 0:
        raise ValueError(f"radius must be positive, got {radius}")
    ratio = chord / (2 * radius)
    if abs(ratio) > 1:
        raise ValueError(f"chord {chord} exceeds the diameter {2 * radius}")
    return min(math.degrees(math.asin(ratio)) * 2, 180.0)
