"""
Scale Calibration Module for photo-to-CAD conversion.

Provides pixel-to-meter calibration using:
1. Two user-marked points with a known real distance between them
2. A configured pixels-per-meter scale

Also keeps the user's general-purpose reference markers.
"""

import logging
import math
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from .errors import UnsupportedConfigurationError
from .geometry_models import Point, ReferencePoint

logger = logging.getLogger(__name__)

# Meters per unit; the calibrated scale is always pixels per meter
UNIT_TO_METERS = {
    "mm": 0.001,
    "cm": 0.01,
    "m": 1.0,
    "in": 0.0254,
    "ft": 0.3048,
}

CALIBRATED_UNITS = "meters"
UNCALIBRATED_UNITS = "pixels"


class CalibrationResult(BaseModel):
    """Result of scale calibration."""
    pixels_per_unit: float = Field(..., gt=0.0, description="Pixels per meter")
    pixel_distance: float = Field(..., gt=0.0, description="Distance between the calibration points")
    real_distance_m: float = Field(..., gt=0.0, description="Known distance in meters")
    method: str = Field(..., description="Calibration method used")


def to_meters(value: float, unit: str) -> float:
    """Convert a length in ``unit`` to meters."""
    try:
        return value * UNIT_TO_METERS[unit]
    except KeyError:
        raise UnsupportedConfigurationError(
            f"Unsupported unit {unit!r}; expected one of {sorted(UNIT_TO_METERS)}"
        ) from None


def calibrate_from_points(
    points: Sequence[Point],
    known_distance: float,
    unit: str = "m",
) -> Optional[CalibrationResult]:
    """
    Derive pixels-per-meter from two points a known distance apart.

    Uses the first two points; extra points are ignored.

    Args:
        points: Calibration points in pixel space
        known_distance: Real distance between the points
        unit: Unit of ``known_distance`` (mm, cm, m, in, ft)

    Returns:
        CalibrationResult, or None when fewer than 2 points are given,
        the known distance is not positive or the points coincide
    """
    real_distance_m = to_meters(known_distance, unit)

    if len(points) < 2:
        logger.warning("Calibration needs 2 points, got %d", len(points))
        return None
    if len(points) > 2:
        logger.warning("Calibration uses the first 2 of %d points", len(points))
    if real_distance_m <= 0:
        logger.warning("Calibration distance must be positive, got %s %s", known_distance, unit)
        return None

    p1, p2 = points[0], points[1]
    pixel_distance = math.hypot(p2.x - p1.x, p2.y - p1.y)
    if pixel_distance <= 0:
        logger.warning("Calibration points coincide; scale left unchanged")
        return None

    return CalibrationResult(
        pixels_per_unit=pixel_distance / real_distance_m,
        pixel_distance=pixel_distance,
        real_distance_m=real_distance_m,
        method="reference_points",
    )


class ScaleCalibrator:
    """
    Holds the active scale for a session.

    Calibration points are collected with ``add_point`` and consumed by
    ``calibrate``; each successful calibration replaces the previous scale
    outright. A scale of 0 or None means uncalibrated (pixel units).
    """

    def __init__(self, scale: Optional[float] = None):
        self.pixels_per_unit: Optional[float] = None
        self.last_result: Optional[CalibrationResult] = None
        self.calibration_points: list[ReferencePoint] = []
        self.from_settings(scale)

    def from_settings(self, scale: Optional[float]) -> None:
        """Use a configured pixels-per-meter value; 0 or None clears it."""
        self.pixels_per_unit = scale if scale and scale > 0 else None
        self.last_result = None

    def add_point(self, x: float, y: float) -> ReferencePoint:
        """Mark a calibration point; only the latest two are kept."""
        point = ReferencePoint(x=x, y=y, id=len(self.calibration_points))
        self.calibration_points.append(point)
        if len(self.calibration_points) > 2:
            self.calibration_points = [
                ReferencePoint(x=p.x, y=p.y, id=i)
                for i, p in enumerate(self.calibration_points[-2:])
            ]
            point = self.calibration_points[-1]
        return point

    def calibrate(self, known_distance: float, unit: str = "m") -> Optional[CalibrationResult]:
        """
        Calibrate from the two marked points and consume them.

        On failure the previous scale is kept and None is returned.
        """
        result = calibrate_from_points(self.calibration_points, known_distance, unit)
        if result is None:
            return None

        self.pixels_per_unit = result.pixels_per_unit
        self.last_result = result
        self.calibration_points = []
        logger.info(
            "Calibrated %.2f px over %.4f m -> %.4f px/m",
            result.pixel_distance, result.real_distance_m, result.pixels_per_unit,
        )
        return result

    @property
    def is_calibrated(self) -> bool:
        return self.pixels_per_unit is not None

    @property
    def effective_scale(self) -> float:
        """Divisor applied to pixel coordinates (1.0 when uncalibrated)."""
        return self.pixels_per_unit if self.pixels_per_unit else 1.0

    @property
    def units(self) -> str:
        return CALIBRATED_UNITS if self.is_calibrated else UNCALIBRATED_UNITS

    def pixels_to_units(self, distance_px: float) -> float:
        return distance_px / self.effective_scale

    def reset(self) -> None:
        self.pixels_per_unit = None
        self.last_result = None
        self.calibration_points = []


class ReferencePointSet:
    """
    General-purpose reference markers.

    Ids come from a counter starting at 0 and are never reused after a
    removal; ``renumber`` makes them dense again when the caller wants that.
    """

    def __init__(self):
        self._points: list[ReferencePoint] = []
        self._next_id = 0

    def add(self, x: float, y: float) -> ReferencePoint:
        point = ReferencePoint(x=x, y=y, id=self._next_id)
        self._next_id += 1
        self._points.append(point)
        return point

    def remove(self, point_id: int) -> bool:
        """Remove the point with ``point_id``; returns whether one was found."""
        before = len(self._points)
        self._points = [p for p in self._points if p.id != point_id]
        return len(self._points) != before

    def clear(self) -> None:
        self._points = []
        self._next_id = 0

    def renumber(self) -> None:
        """Reassign dense ids 0..n-1 in insertion order."""
        self._points = [ReferencePoint(x=p.x, y=p.y, id=i) for i, p in enumerate(self._points)]
        self._next_id = len(self._points)

    @property
    def points(self) -> list[ReferencePoint]:
        return list(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self):
        return iter(list(self._points))
