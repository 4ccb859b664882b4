"""Pytest fixtures for fieldpose tests."""

from __future__ import annotations

import json
import math
from collections.abc import Callable
from pathlib import Path

import pytest

from fieldpose.core.config import DriveSettings, EstimatorSettings, Settings, VisionSettings
from fieldpose.core.exceptions import MotionSourceError
from fieldpose.core.types import ORIGIN, Pose


class FakeClock:
    """Manually advanced seconds source."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedCalculator:
    """Motion calculator returning a fixed script of results.

    Each script entry is a Pose, None (still warming up) or an exception
    to raise. The last entry repeats once the script runs out.
    """

    def __init__(self, *script: Pose | Exception | None) -> None:
        self.script = list(script) or [None]
        self.calls: list[Pose | None] = []

    def pose(self, previous: Pose | None) -> Pose | None:
        self.calls.append(previous)
        index = min(len(self.calls) - 1, len(self.script) - 1)
        result = self.script[index]
        if isinstance(result, Exception):
            raise result
        return result


class SensorState:
    """Mutable sensor values read by odometry calculators."""

    def __init__(self) -> None:
        self.left = 0.0
        self.right = 0.0
        self.gyro = 0.0

    def read_left(self) -> float:
        return self.left

    def read_right(self) -> float:
        return self.right

    def read_gyro(self) -> float:
        return self.gyro


def _transform(x: float, y: float, yaw: float = 0.0, z: float = 0.0) -> list[float]:
    """Build a row-major 3x4 transform rotated about the vertical axis."""
    c = math.cos(yaw)
    s = math.sin(yaw)
    return [c, -s, 0.0, x, s, c, 0.0, y, 0.0, 0.0, 1.0, z]


@pytest.fixture
def clock() -> FakeClock:
    """Create a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def sensors() -> SensorState:
    """Create zeroed drive sensors."""
    return SensorState()


@pytest.fixture
def origin() -> Pose:
    """Create a pose at the field origin facing +x."""
    return ORIGIN


@pytest.fixture
def make_calculator() -> Callable[..., ScriptedCalculator]:
    """Factory for calculators following a fixed script of results."""
    return ScriptedCalculator


@pytest.fixture
def make_transform() -> Callable[..., list[float]]:
    """Factory for row-major 3x4 landmark transforms."""
    return _transform


@pytest.fixture
def failing_calculator() -> ScriptedCalculator:
    """Create a calculator whose sensor always fails."""
    return ScriptedCalculator(MotionSourceError("gyro disconnected"))


@pytest.fixture
def estimator_settings() -> EstimatorSettings:
    """Create estimator settings for testing."""
    return EstimatorSettings(
        distance_threshold=1.0,
        rejection_limit=2,
        weight=0.1,
        fusion="weighted",
        reset_on_rejections=True,
    )


@pytest.fixture
def drive_settings() -> DriveSettings:
    """Create drive settings with a wider track."""
    return DriveSettings(track_width_m=0.75)


@pytest.fixture
def settings(estimator_settings: EstimatorSettings) -> Settings:
    """Create application settings without a map file."""
    return Settings(
        estimator=estimator_settings,
        vision=VisionSettings(reference_map_path=None),
    )


@pytest.fixture
def map_records() -> list[dict]:
    """Create well-formed landmark records."""
    return [
        {"id": 1, "transform": _transform(2.0, 3.0, z=0.5), "size": 165.1},
        {"id": 2, "transform": _transform(5.0, 1.0, yaw=1.0)},
        {"id": 7, "transform": _transform(-4.0, 0.5, yaw=-2.5) + [0.0, 0.0, 0.0, 1.0]},
    ]


@pytest.fixture
def map_file(tmp_path: Path, map_records: list[dict]) -> Path:
    """Write a map file holding the well-formed records."""
    path = tmp_path / "field.fmap"
    path.write_text(json.dumps({"fiducials": map_records, "type": "frc"}))
    return path
