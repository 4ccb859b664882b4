"""Tests for the reference map and vision sample conversion."""

from __future__ import annotations

import json
import math
from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest

from fieldpose.core.exceptions import ReferenceMapError, SampleFormatError
from fieldpose.core.types import Pose
from fieldpose.vision.reference_map import ReferenceMap, transform_matrix, transform_to_pose
from fieldpose.vision.samples import sample_from_botpose

TransformFactory = Callable[..., list[float]]


class TestTransforms:
    """Tests for landmark transform conversion."""

    def test_translation_only(self, make_transform: TransformFactory) -> None:
        """An unrotated transform should give its translation and zero yaw."""
        pose = transform_to_pose(make_transform(2.0, 3.0, z=0.5))

        assert pose == Pose(2.0, 3.0, 0.0)

    @pytest.mark.parametrize("yaw", [0.5, -1.0, 2.5, math.pi])
    def test_rotation_about_vertical(self, yaw: float, make_transform: TransformFactory) -> None:
        """Yaw should be recovered from the rotation."""
        pose = transform_to_pose(make_transform(1.0, 1.0, yaw=yaw))

        assert math.cos(pose.yaw) == pytest.approx(math.cos(yaw))
        assert math.sin(pose.yaw) == pytest.approx(math.sin(yaw))

    def test_accepts_four_by_four(self, make_transform: TransformFactory) -> None:
        """Extra trailing values should be ignored."""
        matrix = transform_matrix(make_transform(1.0, 2.0) + [0.0, 0.0, 0.0, 1.0])

        assert matrix.shape == (3, 4)
        assert matrix[1, 3] == 2.0

    def test_too_short(self) -> None:
        """Fewer than 12 values should be rejected."""
        with pytest.raises(ReferenceMapError):
            transform_matrix([1.0, 0.0, 0.0])

    def test_non_finite(self, make_transform: TransformFactory) -> None:
        """NaN values should be rejected."""
        values = make_transform(1.0, 2.0)
        values[3] = math.nan

        with pytest.raises(ReferenceMapError):
            transform_matrix(values)

    def test_non_numeric(self) -> None:
        """Non-numeric values should be rejected."""
        with pytest.raises(ReferenceMapError):
            transform_matrix(["a"] * 12)  # type: ignore[list-item]


class TestReferenceMap:
    """Tests for reference map loading."""

    def test_load(self, map_file: Path) -> None:
        """Every well-formed record should be loaded."""
        reference_map = ReferenceMap.load(map_file)

        assert reference_map.ok
        assert len(reference_map) == 3
        assert sorted(reference_map) == [1, 2, 7]
        assert reference_map[1] == Pose(2.0, 3.0, 0.0)
        assert reference_map.pose(2).yaw == pytest.approx(1.0)
        assert reference_map.source == map_file

    def test_unknown_id(self, map_file: Path) -> None:
        """Unknown IDs should give None from pose() and KeyError from indexing."""
        reference_map = ReferenceMap.load(map_file)

        assert reference_map.pose(99) is None
        assert reference_map.transform(99) is None
        assert 99 not in reference_map
        with pytest.raises(KeyError):
            reference_map[99]

    def test_transform_is_copy(self, map_file: Path) -> None:
        """Returned transforms should not alias the map's data."""
        reference_map = ReferenceMap.load(map_file)
        matrix = reference_map.transform(1)

        assert matrix is not None
        matrix[0, 3] = 100.0
        assert reference_map.transform(1)[0, 3] == 2.0
        assert reference_map[1].x == 2.0

    def test_skips_malformed_records(
        self, tmp_path: Path, map_records: list[dict], make_transform: TransformFactory
    ) -> None:
        """Bad records should be skipped and the rest kept."""
        records = map_records + [
            {"transform": make_transform(0.0, 0.0)},
            {"id": 10, "transform": [1.0, 2.0]},
            {"id": 11, "transform": ["x"] * 12},
            {"id": 12},
            "not a record",
        ]
        path = tmp_path / "partial.fmap"
        path.write_text(json.dumps({"fiducials": records}))

        reference_map = ReferenceMap.load(path)

        assert reference_map.ok
        assert len(reference_map) == 3

    def test_duplicate_ids_last_wins(self, make_transform: TransformFactory) -> None:
        """A repeated ID should keep the last record."""
        reference_map = ReferenceMap.from_records(
            [
                {"id": 4, "transform": make_transform(1.0, 1.0)},
                {"id": 4, "transform": make_transform(6.0, 2.0)},
            ]
        )

        assert len(reference_map) == 1
        assert reference_map[4] == Pose(6.0, 2.0, 0.0)

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file should give an empty map with the error recorded."""
        reference_map = ReferenceMap.load(tmp_path / "nope.fmap")

        assert not reference_map.ok
        assert reference_map.error
        assert len(reference_map) == 0

    def test_invalid_json(self, tmp_path: Path) -> None:
        """Unparseable content should give an empty map."""
        path = tmp_path / "broken.fmap"
        path.write_text("{not json")

        reference_map = ReferenceMap.load(path)

        assert not reference_map.ok
        assert len(reference_map) == 0

    def test_wrong_document_shape(self, tmp_path: Path) -> None:
        """A document that is not an object with a fiducials list is an error."""
        path = tmp_path / "list.fmap"
        path.write_text(json.dumps([1, 2, 3]))
        other = tmp_path / "dict.fmap"
        other.write_text(json.dumps({"fiducials": {"id": 1}}))

        assert not ReferenceMap.load(path).ok
        assert not ReferenceMap.load(other).ok

    def test_no_fiducials(self, tmp_path: Path) -> None:
        """A document without landmarks is a valid empty map."""
        path = tmp_path / "empty.fmap"
        path.write_text(json.dumps({"type": "frc"}))

        reference_map = ReferenceMap.load(path)

        assert reference_map.ok
        assert len(reference_map) == 0

    def test_from_records_numpy(self, make_transform: TransformFactory) -> None:
        """Transforms given as numpy arrays should be accepted."""
        reference_map = ReferenceMap.from_records(
            [{"id": 3, "transform": np.array(make_transform(1.5, -2.0)).tolist()}]
        )

        assert reference_map[3] == Pose(1.5, -2.0, 0.0)


class TestBotposeSamples:
    """Tests for botpose conversion."""

    def test_converts_with_offsets(self) -> None:
        """Field-centred coordinates should be shifted to the corner origin."""
        sample = sample_from_botpose([1.0, 2.0, 0.0, 0.0, 0.0, 90.0])

        assert sample is not None
        assert sample.x == pytest.approx(9.27)
        assert sample.y == pytest.approx(6.1)
        assert sample.yaw == pytest.approx(math.pi / 2)

    def test_custom_offsets(self) -> None:
        """Offsets should be configurable."""
        sample = sample_from_botpose([1.0, 2.0, 0.5, 0.0, 0.0, 0.0, 35.0], 0.0, 0.0)

        assert sample == Pose(1.0, 2.0, 0.0)

    @pytest.mark.parametrize("values", [None, [], [0.0] * 6, [0.0] * 7])
    def test_no_detection(self, values: list[float] | None) -> None:
        """Empty or all-zero arrays mean nothing was seen."""
        assert sample_from_botpose(values) is None

    def test_too_short(self) -> None:
        """Truncated arrays should be rejected."""
        with pytest.raises(SampleFormatError):
            sample_from_botpose([1.0, 2.0, 3.0])

    def test_non_numeric(self) -> None:
        """Non-numeric arrays should be rejected."""
        with pytest.raises(SampleFormatError):
            sample_from_botpose([1.0, "x", 0.0, 0.0, 0.0, 0.0])  # type: ignore[list-item]
