"""Pose estimator fusing absolute samples with odometry extrapolation.

This module is pure logic with NO I/O. Sample sources and motion sensors are
reached only through the values and calculators handed to it.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from fieldpose.core.config import EstimatorSettings
from fieldpose.core.exceptions import EstimatorConfigError, MotionSourceError
from fieldpose.core.logging import get_logger
from fieldpose.core.types import EstimatorState, EstimatorStats, Pose, PoseError, average
from fieldpose.estimation.errors import PoseErrorTracker, pose_error
from fieldpose.estimation.fusion import FusionStrategy, ReplaceFusion, WeightedFusion
from fieldpose.estimation.rejection import NeverReset, RejectionPolicy, ResetAfterRejections

if TYPE_CHECKING:
    from fieldpose.odometry.calculator import MotionCalculator

logger = get_logger(__name__)


class PoseEstimator:
    """Maintains a best-estimate pose from intermittent absolute samples.

    Behavior is assembled from two strategies:
    - fusion: how an accepted sample is folded into the estimate
      (ReplaceFusion or WeightedFusion)
    - rejection: whether a run of rejected samples resets the estimate
      (NeverReset or ResetAfterRejections)

    States:
        UNINITIALIZED: no estimate; the next valid sample is accepted as is
        TRACKING: samples further than ``distance_threshold`` from the
            estimate in x or y are rejected as outliers

    ``update`` and ``periodic`` may be called from different threads; all
    state changes happen under one re-entrant lock.
    """

    def __init__(
        self,
        distance_threshold: float,
        fusion: FusionStrategy | None = None,
        rejection: RejectionPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the estimator.

        Args:
            distance_threshold: Largest tolerated x or y disagreement (m)
            fusion: Fusion strategy (replace if None)
            rejection: Rejection policy (never reset if None)
            clock: Seconds source used for sampling rates

        Raises:
            EstimatorConfigError: If distance_threshold is not positive
        """
        if not distance_threshold > 0:
            raise EstimatorConfigError(
                f"Distance threshold must be positive, got {distance_threshold}"
            )

        self.distance_threshold = distance_threshold
        self.fusion: FusionStrategy = fusion or ReplaceFusion()
        self.rejection: RejectionPolicy = rejection or NeverReset()

        self._clock = clock
        self._start_time = clock()
        self._lock = threading.RLock()

        self._estimate: Pose | None = None
        self._error_tracker = PoseErrorTracker()
        self._calculators: list[MotionCalculator] = []

        self._samples = 0
        self._sample_failures = 0
        self._outliers = 0

    def __repr__(self) -> str:
        return (
            f"PoseEstimator(distance_threshold={self.distance_threshold}, "
            f"fusion={self.fusion!r}, rejection={self.rejection!r})"
        )

    @property
    def estimated_pose(self) -> Pose | None:
        """Current estimate, or None if there is no reliable estimate yet."""
        return self._estimate

    @property
    def state(self) -> EstimatorState:
        """Whether the estimator currently holds an estimate."""
        if self._estimate is None:
            return EstimatorState.UNINITIALIZED
        return EstimatorState.TRACKING

    @property
    def samples(self) -> int:
        """Number of non-empty samples received."""
        return self._samples

    @property
    def sample_failures(self) -> int:
        """Number of empty samples (no detection) received."""
        return self._sample_failures

    @property
    def outliers(self) -> int:
        """Number of samples rejected as outliers."""
        return self._outliers

    @property
    def largest_pose_inconsistency(self) -> PoseError:
        """Largest per-axis difference between accepted samples and the estimate."""
        return self._error_tracker.largest_pose_error

    @property
    def calculators(self) -> tuple[MotionCalculator, ...]:
        """Registered motion calculators, in polling order."""
        return tuple(self._calculators)

    def add(self, *calculators: MotionCalculator) -> None:
        """Register motion calculators polled by ``periodic``.

        Args:
            calculators: Calculators to append
        """
        with self._lock:
            self._calculators.extend(calculators)
        logger.debug("Registered %d motion calculator(s)", len(calculators))

    def update(self, sample: Pose | None) -> bool:
        """Process a sample from the absolute pose source.

        Args:
            sample: Sample pose, or None if the source detected nothing

        Returns:
            False if the sample was rejected as an outlier, True otherwise
        """
        with self._lock:
            # Count every call, detected or not
            if sample is None:
                self._sample_failures += 1
            else:
                self._samples += 1

            # Screen before fusing; a reset may happen here
            if self._screen(sample):
                self._outliers += 1
                return False

            if sample is not None:
                self._fuse(sample)
            return True

    def is_outlier(self, sample: Pose | None) -> bool:
        """Check whether a sample disagrees with the estimate.

        A sample with a NaN or infinite component is always an outlier.
        Otherwise, with no sample or no estimate nothing is an outlier. The
        heading is not considered.

        Args:
            sample: Sample pose

        Returns:
            True if the sample should be rejected
        """
        if sample is None:
            return False
        if not sample.is_finite():
            return True

        with self._lock:
            error = pose_error(sample, self._estimate)
        if error is None:
            return False
        return abs(error.x) > self.distance_threshold or abs(error.y) > self.distance_threshold

    def periodic(self) -> Pose | None:
        """Extrapolate the estimate with the registered motion calculators.

        Call once per control cycle. Every calculator is polled with the
        current estimate; the estimate becomes the average of the poses they
        return. Calculators still warming up return None and are left out; if
        none returns a pose the estimate is unchanged. Without an estimate the
        calculators are still polled so their baselines stay current.

        Returns:
            The estimate after extrapolation
        """
        with self._lock:
            if not self._calculators:
                return self._estimate

            # Poll every calculator, even without an estimate
            previous = self._estimate
            poses: list[Pose] = []
            for calculator in self._calculators:
                try:
                    pose = calculator.pose(previous)
                except MotionSourceError as e:
                    logger.warning("Skipping %r this cycle: %s", calculator, e)
                    continue
                if pose is not None:
                    poses.append(pose)

            # Nothing to extrapolate from or with
            if previous is None or not poses:
                return self._estimate

            extrapolated = average(*poses)
            if extrapolated is None or not extrapolated.is_finite():
                logger.warning("Discarding invalid odometry extrapolation %s", extrapolated)
                return self._estimate

            self._estimate = extrapolated
            return self._estimate

    def reset(self) -> None:
        """Drop the estimate so the next valid sample is accepted as is.

        Counters and the error tracker are kept.
        """
        with self._lock:
            self._estimate = None
            self.rejection.reset()
        logger.debug("Pose estimate reset (outliers so far: %d)", self._outliers)

    def sampling_rate(self) -> float:
        """Non-empty samples per second since construction."""
        elapsed = self._clock() - self._start_time
        return self._samples / elapsed if elapsed > 0 else 0.0

    def sampling_failure_rate(self) -> float:
        """Empty samples per second since construction."""
        elapsed = self._clock() - self._start_time
        return self._sample_failures / elapsed if elapsed > 0 else 0.0

    def stats(self) -> EstimatorStats:
        """Take a consistent snapshot of the estimator diagnostics."""
        with self._lock:
            return EstimatorStats(
                estimated_pose=self._estimate,
                samples=self._samples,
                sample_failures=self._sample_failures,
                outliers=self._outliers,
                sampling_rate=self.sampling_rate(),
                sampling_failure_rate=self.sampling_failure_rate(),
                largest_inconsistency=self.largest_pose_inconsistency,
            )

    def _screen(self, sample: Pose | None) -> bool:
        """Run the outlier check and report the outcome to the rejection policy."""
        if self.is_outlier(sample):
            if self.rejection.rejected():
                logger.info("Too many consecutive rejections, resetting (%r)", self.rejection)
                self.reset()
            return True

        # Only agreement with an existing estimate ends a rejection run
        if sample is not None and self._estimate is not None:
            self.rejection.accepted()
        return False

    def _fuse(self, sample: Pose) -> None:
        """Fold an accepted sample into the estimate."""
        # Record disagreement against the prior estimate
        self._error_tracker.update(sample, self._estimate)
        fused = self.fusion.fuse(sample, self._estimate)

        if not fused.is_finite():
            logger.warning("Fused estimate %s is invalid, resetting", fused)
            self.reset()
            return

        self._estimate = fused


def basic_estimator(distance_threshold: float) -> PoseEstimator:
    """Estimator that replaces its estimate with each accepted sample."""
    return PoseEstimator(distance_threshold)


def tolerant_estimator(distance_threshold: float, rejection_limit: int) -> PoseEstimator:
    """Replacing estimator that resets after ``rejection_limit + 1`` rejections in a row."""
    return PoseEstimator(distance_threshold, rejection=ResetAfterRejections(rejection_limit))


def weighted_estimator(
    distance_threshold: float,
    rejection_limit: int,
    weight: float,
) -> PoseEstimator:
    """Resetting estimator that blends samples into its estimate with ``weight``."""
    return PoseEstimator(
        distance_threshold,
        fusion=WeightedFusion(weight),
        rejection=ResetAfterRejections(rejection_limit),
    )


def create_estimator(
    settings: EstimatorSettings | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> PoseEstimator:
    """Build an estimator from settings.

    Args:
        settings: Estimator settings (uses defaults if None)
        clock: Seconds source used for sampling rates

    Returns:
        Configured PoseEstimator
    """
    settings = settings or EstimatorSettings()

    fusion: FusionStrategy
    if settings.fusion == "weighted":
        fusion = WeightedFusion(settings.weight)
    else:
        fusion = ReplaceFusion()

    rejection: RejectionPolicy
    if settings.reset_on_rejections:
        rejection = ResetAfterRejections(settings.rejection_limit)
    else:
        rejection = NeverReset()

    estimator = PoseEstimator(
        settings.distance_threshold, fusion=fusion, rejection=rejection, clock=clock
    )
    logger.info("Created %r", estimator)
    return estimator
