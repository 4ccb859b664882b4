"""Tracking of discrepancies between pose samples and estimates.

This module is pure logic with NO I/O.
"""

from __future__ import annotations

from fieldpose.core.types import Pose, PoseError


def pose_error(pose: Pose | None, reference: Pose | None) -> PoseError | None:
    """Compute the signed per-axis difference ``pose - reference``.

    The yaw difference is not normalized.

    Args:
        pose: Sample pose
        reference: Pose to compare against

    Returns:
        PoseError, or None if either pose is missing
    """
    if pose is None or reference is None:
        return None
    return PoseError(pose.x - reference.x, pose.y - reference.y, pose.yaw - reference.yaw)


def _larger(e1: float, e2: float) -> float:
    """Return the error with the larger magnitude, keeping its sign."""
    return e1 if abs(e1) > abs(e2) else e2


class PoseErrorTracker:
    """Keeps the largest signed error observed on each axis.

    Magnitudes per axis never decrease over the tracker's lifetime (until
    reset). NaN components never replace a stored value.
    """

    def __init__(self) -> None:
        self._largest = PoseError(0.0, 0.0, 0.0)

    @property
    def largest_pose_error(self) -> PoseError:
        """Largest error seen on each axis."""
        return self._largest

    def update(self, pose: Pose | None, reference: Pose | None) -> PoseError | None:
        """Fold the error between two poses into the running maxima.

        Args:
            pose: Sample pose
            reference: Pose to compare against

        Returns:
            The error that was folded in, or None if either pose was missing
        """
        error = pose_error(pose, reference)
        if error is not None:
            self._largest = PoseError(
                _larger(error.x, self._largest.x),
                _larger(error.y, self._largest.y),
                _larger(error.yaw, self._largest.yaw),
            )
        return error

    def reset(self) -> None:
        """Forget all recorded errors."""
        self._largest = PoseError(0.0, 0.0, 0.0)
