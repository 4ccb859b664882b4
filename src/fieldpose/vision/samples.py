"""Conversion of raw vision records into pose samples."""

from __future__ import annotations

from collections.abc import Sequence

from fieldpose.core.exceptions import SampleFormatError
from fieldpose.core.types import Pose

BOTPOSE_MIN_LENGTH = 6

# Limelight botpose is centred on the field; these shift it to a corner origin
DEFAULT_FIELD_OFFSET_X = 8.27
DEFAULT_FIELD_OFFSET_Y = 4.1


def sample_from_botpose(
    values: Sequence[float] | None,
    offset_x: float = DEFAULT_FIELD_OFFSET_X,
    offset_y: float = DEFAULT_FIELD_OFFSET_Y,
) -> Pose | None:
    """Convert a Limelight ``botpose`` array into a field pose sample.

    The array is ``[x, y, z, roll, pitch, yaw_degrees, ...]``. An empty or
    all-zero array means no target was in view.

    Args:
        values: Raw botpose values
        offset_x: Added to x to move the origin (m)
        offset_y: Added to y to move the origin (m)

    Returns:
        Pose sample, or None if nothing was detected

    Raises:
        SampleFormatError: If the array is too short or not numeric
    """
    if values is None or len(values) == 0:
        return None

    if len(values) < BOTPOSE_MIN_LENGTH:
        raise SampleFormatError(
            f"botpose needs at least {BOTPOSE_MIN_LENGTH} values, got {len(values)}"
        )

    try:
        head = [float(v) for v in values[:BOTPOSE_MIN_LENGTH]]
    except (TypeError, ValueError) as e:
        raise SampleFormatError(f"botpose is not numeric: {e}") from e

    if not any(head):
        return None

    return Pose.from_degrees(head[0] + offset_x, head[1] + offset_y, head[5])
