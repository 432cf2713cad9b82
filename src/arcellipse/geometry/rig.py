"""
Trammel rig lengths for a candidate ellipse.

An Archimedean trammel draws the ellipse with a rod whose arm is a - b long.
With the ellipse center at (0, h) and the chord midpoint at (0, R*cos(theta/2)):

    L1: chord midpoint to ellipse center
    L2: horizontal slider travel at the arc endpoint, arm * cos(t0)
    L3: vertical slider travel, the arm itself
"""

import math

from arcellipse.models import RigLengths


def compute_rig_lengths(arc, a, b, h):
    """
    Rig lengths for ellipse (a, b, h) drawing the given arc.

    t0 is taken at the unperturbed chord end, R*sin(theta/2), clamped onto
    the ellipse's x-extent.
    """
    arm = max(a - b, 0.0)
    ratio = min(max(arc.radius * math.sin(arc.half_angle_rad) / a, -1.0), 1.0)
    t0 = math.acos(ratio)

    return RigLengths(
        l1=abs(h - arc.chord_mid_y),
        l2=arm * math.cos(t0),
        l3=arm,
    )
