"""Localization pipeline orchestration."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TYPE_CHECKING

from fieldpose.core.config import Settings, get_settings
from fieldpose.core.exceptions import SampleFormatError
from fieldpose.core.logging import get_logger
from fieldpose.core.types import EstimatorStats, Pose, Position, normalize
from fieldpose.estimation.estimator import PoseEstimator, create_estimator
from fieldpose.vision.reference_map import ReferenceMap
from fieldpose.vision.samples import sample_from_botpose

if TYPE_CHECKING:
    from fieldpose.odometry.calculator import MotionCalculator

logger = get_logger(__name__)


class LocalizationPipeline:
    """Wires vision samples, odometry and the landmark map to one estimator.

    Coordinates:
    - Vision record conversion
    - Outlier rejection and fusion (via PoseEstimator)
    - Odometry extrapolation once per control cycle
    - Target bearing and distance for turn/drive commands

    The pipeline owns its estimator; pass the pipeline (or the estimator)
    explicitly to whatever needs the robot pose.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        estimator: PoseEstimator | None = None,
        reference_map: ReferenceMap | None = None,
    ) -> None:
        """Initialize pipeline components.

        Args:
            settings: Application settings (uses defaults if None)
            estimator: Estimator to use (built from settings if None)
            reference_map: Landmark map (loaded from settings if None)
        """
        self.settings = settings or get_settings()
        self.estimator = estimator or create_estimator(self.settings.estimator)

        # Landmark map from settings, or empty
        if reference_map is None:
            map_path = self.settings.vision.reference_map_path
            reference_map = ReferenceMap.load(map_path) if map_path else ReferenceMap()
        self.reference_map = reference_map

        self._malformed_samples = 0

    @property
    def estimated_pose(self) -> Pose | None:
        """Current pose estimate."""
        return self.estimator.estimated_pose

    @property
    def malformed_samples(self) -> int:
        """Number of vision records that could not be converted."""
        return self._malformed_samples

    def add_calculator(self, *calculators: MotionCalculator) -> None:
        """Register motion calculators with the estimator."""
        self.estimator.add(*calculators)

    def on_sample(self, sample: Pose | None) -> bool:
        """Feed an already converted vision sample.

        Args:
            sample: Pose sample, or None if nothing was detected

        Returns:
            False if the sample was rejected as an outlier
        """
        return self.estimator.update(sample)

    def on_botpose(self, values: Sequence[float] | None) -> bool:
        """Feed a raw Limelight botpose record.

        A malformed record is logged and counted as a missing sample.

        Args:
            values: Raw botpose array

        Returns:
            False if the sample was rejected as an outlier
        """
        try:
            sample = sample_from_botpose(
                values,
                offset_x=self.settings.vision.field_offset_x,
                offset_y=self.settings.vision.field_offset_y,
            )
        except SampleFormatError as e:
            self._malformed_samples += 1
            logger.warning("Dropping vision record: %s", e)
            sample = None

        return self.estimator.update(sample)

    def periodic(self) -> Pose | None:
        """Run once per control cycle to extrapolate with odometry.

        Returns:
            Pose estimate after extrapolation
        """
        return self.estimator.periodic()

    def stats(self) -> EstimatorStats:
        """Get estimator diagnostics."""
        return self.estimator.stats()

    def distance_to(self, target: Position) -> float | None:
        """Distance from the estimated position to a target.

        Args:
            target: Target position

        Returns:
            Distance in meters, or None without an estimate
        """
        pose = self.estimator.estimated_pose
        if pose is None:
            return None
        return pose.distance(target)

    def turn_angle_to(self, target: Position) -> float | None:
        """Counter-clockwise rotation needed to face a target.

        Args:
            target: Target position

        Returns:
            Angle in degrees within (-180, 180], or None without an estimate
        """
        pose = self.estimator.estimated_pose
        if pose is None:
            return None
        return math.degrees(normalize(pose.bearing(target) - pose.yaw))

    def landmark(self, tag_id: int) -> Pose | None:
        """Pose of a landmark from the reference map."""
        return self.reference_map.pose(tag_id)

    def distance_to_landmark(self, tag_id: int) -> float | None:
        """Distance to a landmark, or None if unknown or without an estimate."""
        landmark = self.reference_map.pose(tag_id)
        if landmark is None:
            return None
        return self.distance_to(landmark)

    def turn_angle_to_landmark(self, tag_id: int) -> float | None:
        """Rotation in degrees to face a landmark, or None if unknown or without an estimate."""
        landmark = self.reference_map.pose(tag_id)
        if landmark is None:
            return None
        return self.turn_angle_to(landmark)

    def log_status(self) -> None:
        """Log a one-line diagnostics summary."""
        stats = self.estimator.stats()
        logger.info(
            "pose=%s samples=%d (%.1f/s) failures=%d (%.1f/s) outliers=%d largest error=%s",
            stats.estimated_pose,
            stats.samples,
            stats.sampling_rate,
            stats.sample_failures,
            stats.sampling_failure_rate,
            stats.outliers,
            stats.largest_inconsistency,
        )
