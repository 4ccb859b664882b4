"""Landmark (AprilTag) reference map loading.

The map file is a Limelight-style ``.fmap`` JSON document:

    {"fiducials": [{"id": 1, "transform": [r00, r01, r02, tx,
                                           r10, r11, r12, ty,
                                           r20, r21, r22, tz, ...]}, ...]}

Only the first 12 transform values (a row-major 3x4 rigid transform) are used.
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Iterator, Mapping, Sequence
from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fieldpose.core.exceptions import ReferenceMapError
from fieldpose.core.logging import get_logger
from fieldpose.core.types import Pose

logger = get_logger(__name__)

TRANSFORM_SIZE = 12


class FiducialRecord(BaseModel):
    """One landmark entry of a map file."""

    model_config = ConfigDict(extra="ignore")

    id: int
    transform: list[float] = Field(min_length=TRANSFORM_SIZE)


def transform_matrix(transform: Sequence[float] | NDArray[np.float64]) -> NDArray[np.float64]:
    """Shape the first 12 values of a transform into a 3x4 matrix.

    Args:
        transform: Row-major transform values (at least 12)

    Returns:
        3x4 array: rotation in columns 0-2, translation in column 3

    Raises:
        ReferenceMapError: If there are too few or non-finite values
    """
    try:
        values = np.asarray(transform, dtype=np.float64).ravel()
    except (TypeError, ValueError) as e:
        raise ReferenceMapError(f"Transform is not numeric: {e}") from e

    if values.size < TRANSFORM_SIZE:
        raise ReferenceMapError(
            f"Transform needs {TRANSFORM_SIZE} values, got {values.size}"
        )

    matrix = values[:TRANSFORM_SIZE].reshape(3, 4)
    if not np.all(np.isfinite(matrix)):
        raise ReferenceMapError("Transform contains non-finite values")
    return matrix


def transform_to_pose(transform: Sequence[float] | NDArray[np.float64]) -> Pose:
    """Project a 3D landmark transform onto the field plane.

    The yaw is taken from the rotation's effect on the x-axis with its sign
    flipped to match the estimator's heading convention.

    Args:
        transform: Row-major 3x4 transform (or its first 12 values)

    Returns:
        2D pose of the landmark

    Raises:
        ReferenceMapError: If the transform is malformed
    """
    matrix = transform_matrix(transform)
    # Heading of the rotated x-axis, sign flipped
    yaw = -math.atan2(matrix[0, 1], matrix[0, 0])
    return Pose(float(matrix[0, 3]), float(matrix[1, 3]), yaw)


class ReferenceMap(Mapping[int, Pose]):
    """Read-only mapping from landmark ID to its field pose."""

    def __init__(
        self,
        poses: Mapping[int, Pose] | None = None,
        transforms: Mapping[int, NDArray[np.float64]] | None = None,
        source: Path | None = None,
        error: str | None = None,
    ) -> None:
        """Initialize from already converted landmarks.

        Args:
            poses: Landmark poses by ID
            transforms: Raw 3x4 transforms by ID
            source: File the map was read from
            error: Reason the file could not be read, if it could not
        """
        self._poses = dict(poses or {})
        self._transforms = dict(transforms or {})
        self.source = source
        self.error = error

    def __getitem__(self, tag_id: int) -> Pose:
        return self._poses[tag_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._poses)

    def __len__(self) -> int:
        return len(self._poses)

    def __repr__(self) -> str:
        return f"ReferenceMap(landmarks={len(self)}, source={self.source})"

    @property
    def ok(self) -> bool:
        """Check if the map source was read without a file-level error."""
        return self.error is None

    def pose(self, tag_id: int) -> Pose | None:
        """Get a landmark pose, or None for unknown IDs."""
        return self._poses.get(tag_id)

    def transform(self, tag_id: int) -> NDArray[np.float64] | None:
        """Get a copy of a landmark's 3x4 transform, or None for unknown IDs."""
        matrix = self._transforms.get(tag_id)
        return None if matrix is None else matrix.copy()

    @classmethod
    def from_records(
        cls,
        records: Iterable[Any],
        source: Path | None = None,
    ) -> ReferenceMap:
        """Build a map from raw landmark records.

        Malformed records are skipped with a warning. When an ID repeats, the
        last record wins.

        Args:
            records: Objects shaped like ``{"id": int, "transform": [...]}``
            source: File the records came from (for logging)

        Returns:
            ReferenceMap of the well-formed records
        """
        poses: dict[int, Pose] = {}
        transforms: dict[int, NDArray[np.float64]] = {}

        for index, entry in enumerate(records):
            try:
                record = FiducialRecord.model_validate(entry)
                matrix = transform_matrix(record.transform)
            except (ValidationError, ReferenceMapError) as e:
                logger.warning("Skipping landmark record %d: %s", index, e)
                continue

            # Last record wins
            if record.id in poses:
                logger.warning("Landmark %d listed more than once, keeping the last", record.id)

            poses[record.id] = transform_to_pose(matrix)
            transforms[record.id] = matrix

        return cls(poses, transforms, source=source)

    @classmethod
    def load(cls, path: str | Path) -> ReferenceMap:
        """Load a map file.

        Never raises: if the file cannot be read or parsed, the result is an
        empty map whose ``error`` holds the reason.

        Args:
            path: Map file path (JSON)

        Returns:
            Loaded ReferenceMap
        """
        path = Path(path)

        try:
            with open(path) as f:
                document = json.load(f)
            records = _fiducials(document)
        except (OSError, ValueError, ReferenceMapError) as e:
            logger.error("Failed to load reference map %s: %s", path, e)
            return cls(source=path, error=str(e))

        reference_map = cls.from_records(records, source=path)
        logger.info("%d landmarks read from %s", len(reference_map), path)
        return reference_map


def _fiducials(document: Any) -> list[Any]:
    """Extract the landmark list from a parsed map document."""
    if not isinstance(document, dict):
        raise ReferenceMapError("Map document is not a JSON object")

    fiducials = document.get("fiducials", [])
    if not isinstance(fiducials, list):
        raise ReferenceMapError("'fiducials' is not a list")
    return fiducials
