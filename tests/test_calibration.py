"""Scale calibration and reference markers."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from photo_to_cad.calibration import (
    ReferencePointSet,
    ScaleCalibrator,
    calibrate_from_points,
    to_meters,
)
from photo_to_cad.errors import UnsupportedConfigurationError
from photo_to_cad.geometry_models import Point


class TestCalibrateFromPoints:
    def test_hundred_pixels_over_ten_centimeters(self):
        result = calibrate_from_points([Point(x=0, y=0), Point(x=100, y=0)], 0.1)
        assert result.pixels_per_unit == pytest.approx(1000.0)
        assert result.pixel_distance == pytest.approx(100.0)
        assert result.method == "reference_points"

    def test_same_distance_in_millimeters(self):
        result = calibrate_from_points([Point(x=0, y=0), Point(x=60, y=80)], 100, unit="mm")
        assert result.pixels_per_unit == pytest.approx(1000.0)

    def test_needs_two_points(self):
        assert calibrate_from_points([Point(x=1, y=1)], 1.0) is None

    def test_coincident_points(self):
        assert calibrate_from_points([Point(x=5, y=5), Point(x=5, y=5)], 1.0) is None

    @pytest.mark.parametrize("distance", [0, -2.5])
    def test_non_positive_distance(self, distance):
        assert calibrate_from_points([Point(x=0, y=0), Point(x=10, y=0)], distance) is None

    def test_extra_points_ignored(self):
        points = [Point(x=0, y=0), Point(x=10, y=0), Point(x=500, y=500)]
        assert calibrate_from_points(points, 1.0).pixels_per_unit == pytest.approx(10.0)

    def test_unknown_unit(self):
        with pytest.raises(UnsupportedConfigurationError):
            to_meters(1.0, "furlong")


class TestScaleCalibrator:
    def test_uncalibrated_by_default(self):
        calibrator = ScaleCalibrator()
        assert not calibrator.is_calibrated
        assert calibrator.effective_scale == 1.0
        assert calibrator.units == "pixels"

    def test_zero_scale_is_uncalibrated(self):
        assert not ScaleCalibrator(scale=0).is_calibrated

    def test_configured_scale(self):
        calibrator = ScaleCalibrator(scale=200)
        assert calibrator.units == "meters"
        assert calibrator.pixels_to_units(50) == pytest.approx(0.25)

    def test_calibrate_consumes_points(self):
        calibrator = ScaleCalibrator()
        calibrator.add_point(0, 0)
        calibrator.add_point(100, 0)
        calibrator.calibrate(0.1)
        assert calibrator.pixels_per_unit == pytest.approx(1000.0)
        assert calibrator.calibration_points == []

    def test_recalibration_replaces_scale(self):
        calibrator = ScaleCalibrator(scale=500)
        calibrator.add_point(0, 0)
        calibrator.add_point(100, 0)
        calibrator.calibrate(0.1)
        calibrator.add_point(0, 0)
        calibrator.add_point(0, 30)
        calibrator.calibrate(1.0)
        assert calibrator.pixels_per_unit == pytest.approx(30.0)
        assert calibrator.last_result.pixel_distance == pytest.approx(30.0)

    def test_failed_calibration_keeps_scale(self):
        calibrator = ScaleCalibrator(scale=250)
        calibrator.add_point(3, 3)
        assert calibrator.calibrate(1.0) is None
        assert calibrator.pixels_per_unit == 250

    def test_only_last_two_points_kept(self):
        calibrator = ScaleCalibrator()
        for x in (0, 10, 40):
            calibrator.add_point(x, 0)
        assert [(p.x, p.id) for p in calibrator.calibration_points] == [(10, 0), (40, 1)]

    def test_reset(self):
        calibrator = ScaleCalibrator(scale=10)
        calibrator.add_point(1, 1)
        calibrator.reset()
        assert not calibrator.is_calibrated
        assert calibrator.calibration_points == []


class TestReferencePointSet:
    def test_ids_in_insertion_order(self):
        points = ReferencePointSet()
        assert [points.add(i, i).id for i in range(3)] == [0, 1, 2]
        assert len(points) == 3

    def test_ids_not_reused_after_removal(self):
        points = ReferencePointSet()
        points.add(0, 0)
        points.add(1, 1)
        assert points.remove(1)
        assert points.add(2, 2).id == 2

    def test_remove_missing(self):
        assert not ReferencePointSet().remove(4)

    def test_renumber(self):
        points = ReferencePointSet()
        for i in range(3):
            points.add(i, 0)
        points.remove(0)
        points.renumber()
        assert [p.id for p in points] == [0, 1]
        assert points.add(9, 9).id == 2

    def test_clear_restarts_ids(self):
        points = ReferencePointSet()
        points.add(0, 0)
        points.clear()
        assert len(points) == 0
        assert points.add(1, 1).id == 0

    def test_negative_id_rejected(self):
        from photo_to_cad.geometry_models import ReferencePoint

        with pytest.raises(ValidationError):
            ReferencePoint(x=0, y=0, id=-1)
