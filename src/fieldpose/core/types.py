"""Core data types and structures.

Positions are in meters and angles in radians unless a name says otherwise.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto

import numpy as np

TWO_PI = 2.0 * math.pi


def normalize(angle: float) -> float:
    """Reduce an angle in radians to the range (-pi, pi].

    Angles already inside the range are returned untouched. Non-finite input
    yields NaN rather than raising.
    """
    if -math.pi < angle <= math.pi:
        return angle
    if not math.isfinite(angle):
        return math.nan
    angle -= math.floor(angle / TWO_PI) * TWO_PI
    return angle - TWO_PI if angle > math.pi else angle


@dataclass(frozen=True, slots=True)
class Position:
    """A point on the field plane."""

    x: float
    y: float

    def __str__(self) -> str:
        return f"({self.x:.3f}, {self.y:.3f})"

    def distance(self, other: Position) -> float:
        """Euclidean distance to another position."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def bearing(self, other: Position) -> float:
        """Angle in radians from this position to another, measured from the +x axis."""
        return math.atan2(other.y - self.y, other.x - self.x)

    def bearing_degrees(self, other: Position) -> float:
        """Angle in degrees from this position to another, measured from the +x axis."""
        return math.degrees(self.bearing(other))

    def rotate(self, angle: float) -> Position:
        """Rotate about the origin by an angle in radians (counter-clockwise)."""
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        return Position(cos_a * self.x - sin_a * self.y, sin_a * self.x + cos_a * self.y)

    def translate(self, other: Position) -> Position:
        """Shift by the coordinates of another position."""
        return Position(self.x + other.x, self.y + other.y)


@dataclass(frozen=True, slots=True)
class Pose(Position):
    """A position with a heading.

    The yaw is normalized to (-pi, pi] on construction, so poses whose
    headings differ by whole turns compare equal.
    """

    yaw: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "yaw", normalize(self.yaw))

    @classmethod
    def from_degrees(cls, x: float, y: float, yaw_degrees: float) -> Pose:
        """Create a pose whose heading is given in degrees."""
        return cls(x, y, math.radians(yaw_degrees))

    @classmethod
    def at(cls, position: Position, yaw: float) -> Pose:
        """Create a pose at an existing position."""
        return cls(position.x, position.y, yaw)

    def __str__(self) -> str:
        return f"({self.x:.3f}, {self.y:.3f}, {self.yaw_degrees:.1f} degrees)"

    @property
    def position(self) -> Position:
        """The translation part of this pose."""
        return Position(self.x, self.y)

    @property
    def yaw_degrees(self) -> float:
        """Heading in degrees, in (-180, 180]."""
        return math.degrees(self.yaw)

    def add(self, other: Pose) -> Pose:
        """Compose with a pose expressed relative to this one.

        The operand's translation is rotated by the combined heading before the
        translations and headings are summed.
        """
        heading = self.yaw + other.yaw
        offset = other.rotate(heading)
        return Pose(self.x + offset.x, self.y + offset.y, heading)

    def move(self, distance: float) -> Pose:
        """Project forward along the current heading."""
        return Pose(
            self.x + distance * math.cos(self.yaw),
            self.y + distance * math.sin(self.yaw),
            self.yaw,
        )

    def has_nan(self) -> bool:
        """Check whether any coordinate or the heading is NaN."""
        return math.isnan(self.x) or math.isnan(self.y) or math.isnan(self.yaw)

    def is_finite(self) -> bool:
        """Check whether every coordinate and the heading is a finite number."""
        # Infinite yaw is already NaN after normalization
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.yaw)


ORIGIN = Pose(0.0, 0.0, 0.0)


def average(*poses: Pose) -> Pose | None:
    """Average poses, taking the mean heading along the shorter arcs.

    Headings are unwrapped relative to the first pose before summing and the
    mean is normalized once at the end, so 179 and -179 degrees average to
    180 degrees rather than 0.

    Args:
        poses: Poses to average

    Returns:
        Mean pose, or None if no poses were given
    """
    if not poses:
        return None

    reference = poses[0].yaw
    xs = np.array([p.x for p in poses], dtype=np.float64)
    ys = np.array([p.y for p in poses], dtype=np.float64)
    yaws = np.array([reference + normalize(p.yaw - reference) for p in poses], dtype=np.float64)

    return Pose(float(xs.mean()), float(ys.mean()), float(yaws.mean()))


@dataclass(frozen=True, slots=True)
class PoseError:
    """Signed per-axis difference between a sample and a reference pose.

    Unlike Pose, the yaw component is kept as computed, so a heading
    disagreement of more than half a turn stays visible.
    """

    x: float
    y: float
    yaw: float

    def __str__(self) -> str:
        return f"({self.x:.3f}, {self.y:.3f}, {math.degrees(self.yaw):.1f} degrees)"


class EstimatorState(Enum):
    """Whether an estimator currently holds an estimate."""

    UNINITIALIZED = auto()
    TRACKING = auto()


@dataclass(frozen=True, slots=True)
class EstimatorStats:
    """Diagnostics snapshot of a pose estimator.

    Attributes:
        estimated_pose: Current estimate (None while uninitialized)
        samples: Number of non-empty samples received
        sample_failures: Number of empty samples received
        outliers: Number of samples rejected
        sampling_rate: Non-empty samples per second
        sampling_failure_rate: Empty samples per second
        largest_inconsistency: Largest per-axis sample error seen
    """

    estimated_pose: Pose | None
    samples: int
    sample_failures: int
    outliers: int
    sampling_rate: float
    sampling_failure_rate: float
    largest_inconsistency: PoseError

    @property
    def state(self) -> EstimatorState:
        """Estimator state at the time of the snapshot."""
        if self.estimated_pose is None:
            return EstimatorState.UNINITIALIZED
        return EstimatorState.TRACKING

    @property
    def outlier_ratio(self) -> float:
        """Fraction of non-empty samples that were rejected."""
        if self.samples == 0:
            return 0.0
        return self.outliers / self.samples
