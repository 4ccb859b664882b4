"""fieldpose: 2D robot pose estimation fusing vision samples with odometry."""

from fieldpose.core.types import Pose, PoseError, Position, average, normalize
from fieldpose.estimation.estimator import (
    PoseEstimator,
    basic_estimator,
    create_estimator,
    tolerant_estimator,
    weighted_estimator,
)
from fieldpose.pipeline.localizer import LocalizationPipeline
from fieldpose.vision.reference_map import ReferenceMap

__version__ = "0.1.0"

__all__ = [
    "Position",
    "Pose",
    "PoseError",
    "average",
    "normalize",
    "PoseEstimator",
    "basic_estimator",
    "tolerant_estimator",
    "weighted_estimator",
    "create_estimator",
    "LocalizationPipeline",
    "ReferenceMap",
]
