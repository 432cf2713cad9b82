"""
Pydantic data models for the arc-to-ellipse search.

Every record flowing between the fitter, canonicalizer, sampler and search
engine is one of these validated models. Per-cell failures are modelled as
``Rejected`` values rather than exceptions so the sweep can branch on them.
"""

import math
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Objective(str, Enum):
    """Selection objective for the best accepted attempt."""
    MINIMIZE_A = "minimize-a"
    MINIMIZE_A_PLUS_B = "minimize-a-plus-b"
    MINIMIZE_RIG_LENGTH_SUM = "minimize-rig-length-sum"


class Orientation(str, Enum):
    """Sign of the y-axis denominator: '+' real ellipse, '-' hyperbola."""
    POSITIVE = "+"
    NEGATIVE = "-"


class RejectReason(str, Enum):
    """Why a single grid cell produced no attempt."""
    DUPLICATE_Y = "duplicate_y"
    NEAR_SINGULAR = "near_singular"
    A_TOO_SMALL = "a_too_small"
    DEGENERATE_A2 = "degenerate_a2"
    DEGENERATE_DENOM_Y = "degenerate_denom_y"
    HYPERBOLA = "hyperbola"
    ENDPOINT_OUTSIDE = "endpoint_outside"
    PARAMETER_ORDER = "parameter_order"
    PRUNED = "pruned"


class Rejected(BaseModel):
    """Failure variant returned by the per-cell fitting steps."""
    reason: RejectReason
    detail: str = ""

    model_config = ConfigDict(extra="forbid", frozen=True)


class ArcSpec(BaseModel):
    """A circular arc of radius R spanning a central angle, symmetric about 90 degrees."""
    radius: float = Field(..., gt=0)
    central_angle_deg: float = Field(..., gt=0, le=180)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("radius", "central_angle_deg")
    @classmethod
    def _finite(cls, value):
        if not math.isfinite(value):
            raise ValueError("must be finite")
        return value

    @classmethod
    def from_chord(cls, radius, chord):
        """Build an arc from its chord length instead of its angle."""
        from arcellipse.geometry.anchors import angle_from_chord
        return cls(radius=radius, central_angle_deg=angle_from_chord(radius, chord))

    @property
    def half_angle_rad(self):
        return math.radians(self.central_angle_deg) / 2

    @property
    def chord(self):
        return 2 * self.radius * math.sin(self.half_angle_rad)

    @property
    def sagitta(self):
        return self.radius * (1 - math.cos(self.half_angle_rad))

    @property
    def chord_mid_y(self):
        """Height of the chord midpoint above the circle center."""
        return self.radius * math.cos(self.half_angle_rad)


class AnchorPoint(BaseModel):
    """A fit point placed at a perturbed radius along a fixed bearing."""
    name: str
    bearing_deg: float
    offset: float
    x: float
    y: float

    model_config = ConfigDict(extra="forbid", frozen=True)


class ConicCoefficients(BaseModel):
    """Coefficients of x^2 = A*y^2 + B*y + C."""
    A: float
    B: float
    C: float

    model_config = ConfigDict(extra="forbid", frozen=True)


class CanonicalEllipse(BaseModel):
    """Axis-aligned conic centered on the y-axis at height h."""
    a: float = Field(..., gt=0)
    b: float = Field(..., gt=0)
    h: float
    orientation: Orientation = Orientation.POSITIVE

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def is_ellipse(self):
        return self.orientation == Orientation.POSITIVE


class ErrorSample(BaseModel):
    """One point of an attempt's radial error curve."""
    angle_deg: float  # polar bearing of the ellipse point
    param_deg: float  # ellipse parameter t
    error: float  # signed radial error, rho - R

    model_config = ConfigDict(extra="forbid", frozen=True)


class ArcScore(BaseModel):
    """Success variant of the arc sampler."""
    t0: float
    t1: float
    max_error: float
    samples: List[ErrorSample] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)


class RigLengths(BaseModel):
    """Trammel rod segment lengths derived from a candidate ellipse."""
    l1: float
    l2: float
    l3: float

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def l1_plus_l3(self):
        return self.l1 + self.l3


class Attempt(BaseModel):
    """One evaluated candidate ellipse from the grid sweep."""
    id: str
    d: float
    d1: float
    d2: float
    a: float
    b: float
    h: float
    max_error: float
    accepted: bool
    error_series: List[ErrorSample] = Field(default_factory=list)
    rig_lengths: Optional[RigLengths] = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class SearchRequest(BaseModel):
    """
    Configuration record for one search.

    Top-level numbers are plain floats: malformed values
    reach the engine, which answers them with an empty result.
    """
    radius: float
    central_angle_deg: float
    tolerance: float
    steps_d: int = 10
    steps_d1: int = 10
    steps_d2: int = 10
    error_sample_steps: int = 10
    prune_worse_than_best: bool = False
    force_anchor_p_zero: bool = False
    force_anchor_r_zero: bool = False
    objective: Objective = Objective.MINIMIZE_A_PLUS_B

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("steps_d", "steps_d1", "steps_d2", "error_sample_steps", mode="before")
    @classmethod
    def _round_steps(cls, value):
        if isinstance(value, float) and math.isfinite(value):
            return int(round(value))
        return value


class SearchResult(BaseModel):
    """Full output of one search invocation."""
    attempts: List[Attempt] = Field(default_factory=list)
    best_attempt: Optional[Attempt] = None
    error_series: List[ErrorSample] = Field(default_factory=list)
    skip_counts: Dict[str, int] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")

    @property
    def accepted_attempts(self):
        return [att for att in self.attempts if att.accepted]

    @property
    def has_solution(self):
        return self.best_attempt is not None


def generate_attempt_id(index):
    """Attempt ids follow grid traversal order over recorded attempts."""
    return f"att-{index}"
