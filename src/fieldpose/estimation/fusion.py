"""Strategies for folding an accepted sample into the current estimate.

This module is pure logic with NO I/O.
"""

from __future__ import annotations

import math
from typing import Protocol

from fieldpose.core.exceptions import EstimatorConfigError
from fieldpose.core.types import Pose


class FusionStrategy(Protocol):
    """Combines an accepted sample with the prior estimate."""

    def fuse(self, sample: Pose, prior: Pose | None) -> Pose:
        """Return the new estimate."""
        ...


class ReplaceFusion:
    """Take every accepted sample as the new estimate."""

    def fuse(self, sample: Pose, prior: Pose | None) -> Pose:
        return sample

    def __repr__(self) -> str:
        return "ReplaceFusion()"


def weighted_sum(p1: Pose | None, w1: float, p2: Pose | None, w2: float) -> Pose | None:
    """Blend two poses with the given weights.

    Headings are moved onto the same turn before blending: when they differ
    by more than pi, the smaller one is shifted up by a full turn. The blended
    heading therefore never jumps by more than the true angular gap.

    Args:
        p1: First pose
        w1: Weight of the first pose
        p2: Second pose
        w2: Weight of the second pose

    Returns:
        The blend, the other pose if one is None, or None if both are
    """
    if p1 is None:
        return p2
    if p2 is None:
        return p1
    return _blend(p1, w1, p2, w2)


def _blend(p1: Pose, w1: float, p2: Pose, w2: float) -> Pose:
    # Move both headings onto the same turn
    a1 = p1.yaw
    a2 = p2.yaw
    if a1 > a2 + math.pi:
        a2 += 2 * math.pi
    elif a2 > a1 + math.pi:
        a1 += 2 * math.pi

    return Pose(p1.x * w1 + p2.x * w2, p1.y * w1 + p2.y * w2, a1 * w1 + a2 * w2)


class WeightedFusion:
    """Exponential moving average of samples.

    Each accepted sample contributes ``weight`` and the prior estimate
    ``1 - weight``.
    """

    def __init__(self, weight: float) -> None:
        """Initialize with the sample weight.

        Args:
            weight: Weight of each sample, strictly between 0 and 1

        Raises:
            EstimatorConfigError: If weight is outside (0, 1)
        """
        if not 0.0 < weight < 1.0:
            raise EstimatorConfigError(f"Sample weight must be in (0, 1), got {weight}")
        self.weight = weight

    def fuse(self, sample: Pose, prior: Pose | None) -> Pose:
        if prior is None:
            return sample
        return _blend(sample, self.weight, prior, 1.0 - self.weight)

    def __repr__(self) -> str:
        return f"WeightedFusion(weight={self.weight})"
