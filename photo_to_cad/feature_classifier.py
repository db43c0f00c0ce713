"""
Rule-based labeling of traced lines.

Each trace is summarized by its chord (first-to-last point distance),
its orientation and its centroid, then mapped to a FeatureKind with a
fixed confidence. Thresholds are fractions of the canvas size:

    long horizontal  chord > 0.3 * width
    long vertical    chord > 0.4 * height
    medium           chord > 0.2 * min(width, height)

Vertical position bands: top < 30% of height, bottom > 70%.
"""

import logging
import math
from dataclasses import dataclass
from typing import Union

from .config import MIN_FEATURE_CHORD_PX, MIN_FEATURE_POINTS
from .errors import InvalidBufferError, UnsupportedConfigurationError
from .geometry_models import ConversionMode, Feature, FeatureKind

logger = logging.getLogger(__name__)

HORIZONTAL_LENGTH_RATIO = 0.3
VERTICAL_LENGTH_RATIO = 0.4
MEDIUM_LENGTH_RATIO = 0.2
TOP_BAND = 0.3
BOTTOM_BAND = 0.7

DETECTION_METHOD = "edge_trace"


@dataclass
class TraceSummary:
    """Geometric signals of one trace."""
    length: float
    is_horizontal: bool
    is_vertical: bool
    avg_x: float
    avg_y: float

    @property
    def orientation(self) -> str:
        if self.is_horizontal:
            return "horizontal"
        if self.is_vertical:
            return "vertical"
        return "diagonal"


def summarize_trace(feature: Feature) -> TraceSummary:
    """Chord length, orientation and centroid of a trace."""
    first, last = feature.endpoints
    dx = abs(last.x - first.x)
    dy = abs(last.y - first.y)
    count = len(feature.points)
    return TraceSummary(
        length=math.hypot(dx, dy),
        is_horizontal=dx > dy,
        is_vertical=dy > dx,
        avg_x=sum(p.x for p in feature.points) / count,
        avg_y=sum(p.y for p in feature.points) / count,
    )


def is_significant(feature: Feature) -> bool:
    """Whether a trace survives the point-count and chord-length pre-filter."""
    if len(feature.points) < MIN_FEATURE_POINTS:
        return False
    first, last = feature.endpoints
    return math.hypot(last.x - first.x, last.y - first.y) >= MIN_FEATURE_CHORD_PX


def _label_yacht(s: TraceSummary, width: float, height: float) -> tuple[FeatureKind, float]:
    if s.is_horizontal and s.length > width * HORIZONTAL_LENGTH_RATIO:
        if s.avg_y > height * BOTTOM_BAND:
            return FeatureKind.WATERLINE, 0.9
        if s.avg_y < height * TOP_BAND:
            return FeatureKind.DECK_EDGE, 0.8
        return FeatureKind.HULL_PROFILE, 0.85
    if s.is_vertical and s.length > height * VERTICAL_LENGTH_RATIO:
        return FeatureKind.MAST, 0.8
    if s.length > min(width, height) * MEDIUM_LENGTH_RATIO:
        return FeatureKind.HULL_PROFILE, 0.75
    return FeatureKind.DECK_EDGE, 0.6


def _label_component(s: TraceSummary, width: float, height: float) -> tuple[FeatureKind, float]:
    # Interior and general objects share one mapping
    if s.is_horizontal and s.length > width * HORIZONTAL_LENGTH_RATIO:
        if s.avg_y < height * TOP_BAND:
            return FeatureKind.DECK_EDGE, 0.8
        if s.avg_y > height * BOTTOM_BAND:
            return FeatureKind.WATERLINE, 0.8
        return FeatureKind.HULL_PROFILE, 0.7
    if s.is_vertical and s.length > height * VERTICAL_LENGTH_RATIO:
        return FeatureKind.MAST, 0.8
    if s.length > min(width, height) * MEDIUM_LENGTH_RATIO:
        return FeatureKind.CABIN, 0.7
    return FeatureKind.KEEL, 0.6


def classify_feature(
    feature: Feature,
    canvas_width: int,
    canvas_height: int,
    mode: ConversionMode,
) -> Feature:
    """Label a single (already pre-filtered) trace."""
    summary = summarize_trace(feature)
    if mode == ConversionMode.YACHT:
        kind, confidence = _label_yacht(summary, canvas_width, canvas_height)
    else:
        kind, confidence = _label_component(summary, canvas_width, canvas_height)

    metadata = dict(feature.metadata)
    metadata.update({
        "length": f"{summary.length:.1f}px",
        "orientation": summary.orientation,
        "position": (
            f"{summary.avg_x / canvas_width * 100:.0f}%, "
            f"{summary.avg_y / canvas_height * 100:.0f}%"
        ),
        "detection_method": DETECTION_METHOD,
        "point_count": len(feature.points),
    })

    return Feature(
        kind=kind,
        points=list(feature.points),
        confidence=min(1.0, max(0.0, confidence)),
        metadata=metadata,
    )


def classify_features(
    features: list[Feature],
    canvas_width: int,
    canvas_height: int,
    mode: Union[ConversionMode, str] = ConversionMode.YACHT,
) -> list[Feature]:
    """
    Filter short traces and assign a kind and confidence to the rest.

    Args:
        features: Raw traces from the line tracer
        canvas_width: Canvas width in pixels
        canvas_height: Canvas height in pixels
        mode: Conversion mode selecting the label mapping

    Returns:
        New labeled features, in input order

    Raises:
        InvalidBufferError: if the canvas size is not positive
    """
    if not features:
        return []
    if canvas_width <= 0 or canvas_height <= 0:
        raise InvalidBufferError(f"Canvas size must be positive, got {canvas_width}x{canvas_height}")

    try:
        mode = ConversionMode(mode)
    except ValueError:
        raise UnsupportedConfigurationError(f"Unsupported conversion mode: {mode!r}") from None

    labeled = [
        classify_feature(feature, canvas_width, canvas_height, mode)
        for feature in features
        if is_significant(feature)
    ]

    counts: dict[str, int] = {}
    for feature in labeled:
        counts[feature.kind_name] = counts.get(feature.kind_name, 0) + 1
    logger.info(
        "Classified %d of %d trace(s) in %s mode: %s",
        len(labeled), len(features), mode.value, counts,
    )
    return labeled
