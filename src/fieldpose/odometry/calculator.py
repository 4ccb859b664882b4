"""Motion calculators deriving pose updates from relative-motion sensors.

A calculator reads cumulative sensor values (encoder distances, gyro heading)
through plain callables, so hardware wrappers stay outside this package.
Each calculator keeps its own baseline readings and reports the pose reached
from ``previous`` by the motion observed since its last poll.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from typing import Protocol, runtime_checkable

import numpy as np

from fieldpose.core.config import DriveSettings
from fieldpose.core.exceptions import EstimatorConfigError, MotionSourceError
from fieldpose.core.logging import get_logger
from fieldpose.core.types import Pose, Position, normalize

logger = get_logger(__name__)

Reading = Callable[[], float]
ModuleReading = Callable[[], tuple[float, float]]


@runtime_checkable
class MotionCalculator(Protocol):
    """Anything that can extrapolate a pose from relative motion."""

    def pose(self, previous: Pose | None) -> Pose | None:
        """Return the pose reached from ``previous`` since the last poll.

        Returns None until two readings are available to differentiate, and
        when ``previous`` is None (the baseline is still refreshed).
        """
        ...


def advance(previous: Pose, forward: float, lateral: float, rotation: float) -> Pose:
    """Apply a robot-frame displacement using midpoint heading integration.

    Args:
        previous: Starting pose
        forward: Displacement along the robot heading (m)
        lateral: Displacement to the robot's left (m)
        rotation: Heading change (rad)

    Returns:
        Pose after the motion
    """
    heading = previous.yaw + rotation / 2
    offset = Position(forward, lateral).rotate(heading)
    return Pose(previous.x + offset.x, previous.y + offset.y, previous.yaw + rotation)


def _read(source: Callable[[], float], name: str) -> float:
    try:
        return float(source())
    except Exception as e:
        raise MotionSourceError(f"Failed to read {name}: {e}") from e


class DifferentialDriveCalculator:
    """Odometry for a two-sided (west coast / tank) drivetrain.

    Distance travelled is the mean of the left and right wheel displacements.
    The heading change comes from the gyro when one is given, otherwise from
    the wheel displacement difference over the track width.
    """

    def __init__(
        self,
        left: Reading,
        right: Reading,
        yaw: Reading | None = None,
        track_width: float = 0.6,
    ) -> None:
        """Initialize with sensor sources.

        Args:
            left: Cumulative left wheel distance in meters (positive forward)
            right: Cumulative right wheel distance in meters (positive forward)
            yaw: Cumulative gyro heading in radians (counter-clockwise)
            track_width: Distance between left and right wheels in meters

        Raises:
            EstimatorConfigError: If track_width is not positive
        """
        if not track_width > 0:
            raise EstimatorConfigError(f"Track width must be positive, got {track_width}")

        self.left = left
        self.right = right
        self.yaw = yaw
        self.track_width = track_width
        self._baseline: tuple[float, float, float] | None = None

    @classmethod
    def from_settings(
        cls,
        left: Reading,
        right: Reading,
        yaw: Reading | None = None,
        settings: DriveSettings | None = None,
    ) -> DifferentialDriveCalculator:
        """Create a calculator using the configured track width."""
        settings = settings or DriveSettings()
        return cls(left, right, yaw, track_width=settings.track_width_m)

    def __repr__(self) -> str:
        gyro = "gyro" if self.yaw is not None else "encoders"
        return f"DifferentialDriveCalculator(track_width={self.track_width}, heading={gyro})"

    @property
    def has_baseline(self) -> bool:
        """Check if a previous reading is cached."""
        return self._baseline is not None

    def reset(self) -> None:
        """Forget the cached readings."""
        self._baseline = None

    def pose(self, previous: Pose | None) -> Pose | None:
        """Extrapolate ``previous`` by the wheel and gyro motion since the last poll.

        Raises:
            MotionSourceError: If a sensor source fails
        """
        left = _read(self.left, "left encoder")
        right = _read(self.right, "right encoder")
        heading = _read(self.yaw, "gyro") if self.yaw is not None else 0.0

        if not (math.isfinite(left) and math.isfinite(right) and math.isfinite(heading)):
            logger.debug("Ignoring non-finite drive readings (%s, %s, %s)", left, right, heading)
            return None

        # Swap in the new baseline
        baseline, self._baseline = self._baseline, (left, right, heading)
        if baseline is None or previous is None:
            return None

        left_delta = left - baseline[0]
        right_delta = right - baseline[1]
        # Gyro heading if available, otherwise wheel difference
        if self.yaw is not None:
            rotation = normalize(heading - baseline[2])
        else:
            rotation = (right_delta - left_delta) / self.track_width

        return advance(previous, (left_delta + right_delta) / 2, 0.0, rotation)


class SwerveDriveCalculator:
    """Odometry for a swerve drivetrain with a gyro.

    Each module source reports its cumulative drive distance (m) and its
    current steering angle relative to the chassis (rad). The chassis
    displacement is the mean of the module displacement vectors, which
    cancels the rotational component for a symmetric module layout.
    """

    def __init__(self, modules: Sequence[ModuleReading], yaw: Reading) -> None:
        """Initialize with module and gyro sources.

        Args:
            modules: One reading source per swerve module
            yaw: Cumulative gyro heading in radians (counter-clockwise)

        Raises:
            EstimatorConfigError: If no modules are given
        """
        if not modules:
            raise EstimatorConfigError("Swerve odometry needs at least one module")

        self.modules = list(modules)
        self.yaw = yaw
        self._baseline: tuple[np.ndarray, float] | None = None

    def __repr__(self) -> str:
        return f"SwerveDriveCalculator(modules={len(self.modules)})"

    @property
    def has_baseline(self) -> bool:
        """Check if a previous reading is cached."""
        return self._baseline is not None

    def reset(self) -> None:
        """Forget the cached readings."""
        self._baseline = None

    def pose(self, previous: Pose | None) -> Pose | None:
        """Extrapolate ``previous`` by the module and gyro motion since the last poll.

        Raises:
            MotionSourceError: If a sensor source fails
        """
        readings = np.empty((len(self.modules), 2), dtype=np.float64)
        for i, module in enumerate(self.modules):
            try:
                distance, angle = module()
                readings[i] = (distance, angle)
            except Exception as e:
                raise MotionSourceError(f"Failed to read swerve module {i}: {e}") from e
        heading = _read(self.yaw, "gyro")

        if not (np.all(np.isfinite(readings)) and math.isfinite(heading)):
            logger.debug("Ignoring non-finite swerve readings")
            return None

        distances = readings[:, 0]
        angles = readings[:, 1]
        baseline, self._baseline = self._baseline, (distances.copy(), heading)
        if baseline is None or previous is None:
            return None

        # Mean module displacement in the robot frame
        travelled = distances - baseline[0]
        forward = float(np.mean(travelled * np.cos(angles)))
        lateral = float(np.mean(travelled * np.sin(angles)))
        rotation = normalize(heading - baseline[1])

        return advance(previous, forward, lateral, rotation)
