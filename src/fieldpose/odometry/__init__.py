"""Relative-motion odometry: calculators fed by encoder and gyro readings."""

from fieldpose.odometry.calculator import (
    DifferentialDriveCalculator,
    MotionCalculator,
    SwerveDriveCalculator,
    advance,
)

__all__ = [
    "MotionCalculator",
    "DifferentialDriveCalculator",
    "SwerveDriveCalculator",
    "advance",
]
