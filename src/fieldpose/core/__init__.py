"""Core infrastructure: config, types, exceptions, and logging."""

from fieldpose.core.config import Settings, get_settings
from fieldpose.core.exceptions import (
    EstimatorConfigError,
    FieldPoseError,
    MotionSourceError,
    ReferenceMapError,
    SampleFormatError,
)
from fieldpose.core.logging import get_logger, setup_logging
from fieldpose.core.types import (
    ORIGIN,
    EstimatorState,
    EstimatorStats,
    Pose,
    PoseError,
    Position,
    average,
    normalize,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Types
    "Position",
    "Pose",
    "PoseError",
    "ORIGIN",
    "EstimatorState",
    "EstimatorStats",
    "average",
    "normalize",
    # Exceptions
    "FieldPoseError",
    "ReferenceMapError",
    "MotionSourceError",
    "SampleFormatError",
    "EstimatorConfigError",
    # Logging
    "setup_logging",
    "get_logger",
]
