"""Vision inputs: landmark reference map and pose sample conversion."""

from fieldpose.vision.reference_map import ReferenceMap, transform_to_pose
from fieldpose.vision.samples import sample_from_botpose

__all__ = [
    "ReferenceMap",
    "transform_to_pose",
    "sample_from_botpose",
]
