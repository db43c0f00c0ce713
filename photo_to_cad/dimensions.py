"""
Coarse size estimation from labeled features.

The feature with the largest bounding-box span is taken as the primary
reference and its pixel span is bucketed into a per-mode size tier.
Tiers are lookup tables of nominal dimensions, not computed proportions.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from .errors import UnsupportedConfigurationError
from .geometry_models import ConversionMode, DimensionEstimate, Feature

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SizeTier:
    """Nominal dimensions for spans below ``max_span_px``."""
    max_span_px: float
    kind: str
    width: float
    height: float
    depth: float


# Yacht: width = length overall, height = air draft, depth = beam (meters)
YACHT_TIERS = (
    SizeTier(150, "small yacht", 7.5, 10.0, 2.5),
    SizeTier(300, "medium yacht", 12.0, 16.0, 3.8),
    SizeTier(450, "large yacht", 20.0, 24.0, 5.2),
    SizeTier(float("inf"), "superyacht", 30.0, 32.0, 7.0),
)

# Interior components (centimeters)
INTERIOR_TIERS = (
    SizeTier(80, "small fitting", 15.0, 10.0, 5.0),
    SizeTier(160, "drawer or door panel", 45.0, 60.0, 2.0),
    SizeTier(280, "cabinet", 80.0, 90.0, 45.0),
    SizeTier(float("inf"), "seating or furniture", 180.0, 80.0, 70.0),
)

# General objects (meters)
GENERAL_TIERS = (
    SizeTier(100, "small object", 0.3, 0.3, 0.2),
    SizeTier(250, "medium object", 1.0, 1.0, 0.5),
    SizeTier(float("inf"), "large object", 3.0, 2.5, 1.5),
)

SIZE_PROFILES = {
    ConversionMode.YACHT: (YACHT_TIERS, "m", 0.6),
    ConversionMode.INTERIOR: (INTERIOR_TIERS, "cm", 0.5),
    ConversionMode.GENERAL: (GENERAL_TIERS, "m", 0.5),
}


def select_primary_feature(features: list[Feature]) -> Optional[Feature]:
    """Feature with the largest bounding-box span (first one wins ties)."""
    primary = None
    for feature in features:
        if primary is None or feature.bounding_span > primary.bounding_span:
            primary = feature
    return primary


def lookup_tier(span: float, tiers: tuple[SizeTier, ...]) -> SizeTier:
    for tier in tiers:
        if span < tier.max_span_px:
            return tier
    return tiers[-1]


def estimate_dimensions(
    features: list[Feature],
    mode: Union[ConversionMode, str] = ConversionMode.YACHT,
) -> DimensionEstimate:
    """
    Estimate real-world dimensions of the dominant object.

    Args:
        features: Labeled features
        mode: Conversion mode selecting the size profile

    Returns:
        DimensionEstimate; zeroed with kind "unknown" for empty input
    """
    try:
        mode = ConversionMode(mode)
    except ValueError:
        raise UnsupportedConfigurationError(f"Unsupported conversion mode: {mode!r}") from None

    primary = select_primary_feature(features)
    if primary is None:
        return DimensionEstimate.empty()

    tiers, unit, default_confidence = SIZE_PROFILES[mode]
    span = primary.bounding_span
    tier = lookup_tier(span, tiers)
    confidence = primary.confidence if primary.confidence > 0 else default_confidence

    logger.debug(
        "Primary %s span %.1fpx -> %s (%s mode)",
        primary.kind_name, span, tier.kind, mode.value,
    )
    return DimensionEstimate(
        width=tier.width,
        height=tier.height,
        depth=tier.depth,
        kind=tier.kind,
        confidence=confidence,
        unit=unit,
    )
