#!/usr/bin/env python3
"""Print the 2D landmark poses of a reference map file as JSON lines."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from fieldpose.core.config import get_settings
from fieldpose.core.logging import setup_logging
from fieldpose.vision.reference_map import ReferenceMap


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Dump landmark poses from a map file")
    parser.add_argument(
        "map",
        type=Path,
        nargs="?",
        help="Map file (default: VISION_REFERENCE_MAP_PATH)",
    )

    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.logging.level, settings.logging.file)

    path = args.map or settings.vision.reference_map_path
    if path is None:
        parser.error("no map file given and VISION_REFERENCE_MAP_PATH is not set")

    reference_map = ReferenceMap.load(path)
    if not reference_map.ok:
        return 1

    for tag_id in sorted(reference_map):
        pose = reference_map[tag_id]
        print(
            json.dumps(
                {
                    "id": tag_id,
                    "pose": [round(pose.x, 3), round(pose.y, 3), round(pose.yaw_degrees, 1)],
                }
            )
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
