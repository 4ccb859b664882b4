"""Pose estimation: outlier rejection, reset policies and sample fusion.

This module contains NO I/O operations. Estimators operate on Pose values
and motion calculators handed to them by the caller.
"""

from fieldpose.estimation.errors import PoseErrorTracker, pose_error
from fieldpose.estimation.estimator import (
    PoseEstimator,
    basic_estimator,
    create_estimator,
    tolerant_estimator,
    weighted_estimator,
)
from fieldpose.estimation.fusion import FusionStrategy, ReplaceFusion, WeightedFusion, weighted_sum
from fieldpose.estimation.rejection import NeverReset, RejectionPolicy, ResetAfterRejections

__all__ = [
    "PoseEstimator",
    "basic_estimator",
    "tolerant_estimator",
    "weighted_estimator",
    "create_estimator",
    "PoseErrorTracker",
    "pose_error",
    "FusionStrategy",
    "ReplaceFusion",
    "WeightedFusion",
    "weighted_sum",
    "RejectionPolicy",
    "NeverReset",
    "ResetAfterRejections",
]
