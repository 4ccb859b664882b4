#!/usr/bin/env python3
"""Replay a recorded sensor log through the localization pipeline.

Each CSV row is one control cycle with the columns:

    x, y, yaw_deg          vision sample (leave x empty when nothing was seen)
    left, right, gyro      cumulative wheel distances (m) and gyro heading (rad)

The odometry columns are optional. Estimates are printed, or written to a CSV
file with --output.
"""

from __future__ import annotations

import argparse
import csv
import sys
from dataclasses import dataclass
from pathlib import Path

from fieldpose.core.config import get_settings
from fieldpose.core.logging import get_logger, setup_logging
from fieldpose.core.types import Pose
from fieldpose.estimation.estimator import create_estimator
from fieldpose.odometry.calculator import DifferentialDriveCalculator
from fieldpose.pipeline.localizer import LocalizationPipeline

logger = get_logger(__name__)


@dataclass
class LogRow:
    """One control cycle of recorded input."""

    sample: Pose | None
    left: float | None
    right: float | None
    gyro: float | None


class LogClock:
    """Clock advanced by one control period per replayed cycle."""

    def __init__(self, period: float) -> None:
        self.period = period
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def tick(self) -> None:
        self.now += self.period


def _optional_float(value: str | None) -> float | None:
    if value is None or value.strip() == "":
        return None
    return float(value)


def load_log(path: Path) -> list[LogRow]:
    """Read a replay log.

    Args:
        path: CSV file with a header row

    Returns:
        Parsed rows in file order
    """
    rows: list[LogRow] = []

    with open(path, newline="") as f:
        for record in csv.DictReader(f):
            x = _optional_float(record.get("x"))
            y = _optional_float(record.get("y"))
            yaw = _optional_float(record.get("yaw_deg"))
            sample = None
            if x is not None and y is not None:
                sample = Pose.from_degrees(x, y, yaw or 0.0)

            rows.append(
                LogRow(
                    sample=sample,
                    left=_optional_float(record.get("left")),
                    right=_optional_float(record.get("right")),
                    gyro=_optional_float(record.get("gyro")),
                )
            )

    logger.info("Loaded %d cycles from %s", len(rows), path)
    return rows


def replay(
    rows: list[LogRow],
    pipeline: LocalizationPipeline,
    clock: LogClock | None = None,
) -> list[Pose | None]:
    """Feed every row to the pipeline, one control cycle per row.

    Args:
        rows: Recorded cycles
        pipeline: Pipeline to drive
        clock: Clock of the pipeline's estimator, ticked after each cycle

    Returns:
        Estimate after each cycle
    """
    current: dict[str, float] = {}

    has_odometry = any(r.left is not None and r.right is not None for r in rows)
    if has_odometry:
        has_gyro = any(r.gyro is not None for r in rows)
        pipeline.add_calculator(
            DifferentialDriveCalculator.from_settings(
                left=lambda: current.get("left", float("nan")),
                right=lambda: current.get("right", float("nan")),
                yaw=(lambda: current.get("gyro", float("nan"))) if has_gyro else None,
                settings=pipeline.settings.drive,
            )
        )

    estimates: list[Pose | None] = []
    for row in rows:
        for name in ("left", "right", "gyro"):
            value = getattr(row, name)
            if value is None:
                current.pop(name, None)
            else:
                current[name] = value

        pipeline.on_sample(row.sample)
        estimates.append(pipeline.periodic())
        if clock is not None:
            clock.tick()

    return estimates


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Replay a sensor log through the pose estimator")
    parser.add_argument("log", type=Path, help="Path to replay CSV")
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Output CSV for estimates",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        help="Override outlier distance threshold (m)",
    )

    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.logging.level, settings.logging.file)

    if args.threshold is not None:
        settings = settings.model_copy(
            update={
                "estimator": settings.estimator.model_copy(
                    update={"distance_threshold": args.threshold}
                )
            }
        )

    if not args.log.exists():
        logger.error("Log file not found: %s", args.log)
        return 1

    clock = LogClock(settings.drive.control_period_s)
    pipeline = LocalizationPipeline(
        settings,
        estimator=create_estimator(settings.estimator, clock=clock),
    )
    estimates = replay(load_log(args.log), pipeline, clock)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with open(args.output, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["cycle", "x", "y", "yaw_deg"])
            for i, pose in enumerate(estimates):
                if pose is None:
                    writer.writerow([i, "", "", ""])
                else:
                    writer.writerow([i, pose.x, pose.y, pose.yaw_degrees])
        logger.info("Estimates saved to %s", args.output)
    else:
        for i, pose in enumerate(estimates):
            print(f"{i:5d}  {pose if pose is not None else '-'}")

    pipeline.log_status()
    return 0


if __name__ == "__main__":
    sys.exit(main())
