"""
Exception types for the arc-to-ellipse search.

The grid sweep itself never raises these; per-cell failures travel as
``Rejected`` values. They are raised by the direct-call helpers only.
"""


class ArcEllipseError(Exception):
    """Base class for all arcellipse errors."""


class DegenerateInputError(ArcEllipseError):
    """Three fit points do not have pairwise distinct y-coordinates."""


class NearSingularFitError(ArcEllipseError):
    """The conic system determinant is numerically zero."""


class InvalidFitError(ArcEllipseError):
    """The fitted conic is not a usable real ellipse."""

    def __init__(self, reason, detail=""):
        self.reason = reason
        self.detail = detail
        message = f"{reason.value}: {detail}" if detail else reason.value
        super().__init__(message)
