"""
End-to-end photo-to-CAD pipeline.

    RGBA buffer -> grayscale -> edges -> raw traces -> labeled features
                -> dimension estimate -> serialized CAD text

Each call is independent: every stage allocates fresh buffers and no state
is kept between runs.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .cad_generation import generate_cad_output
from .dimensions import estimate_dimensions
from .edge_detection import detect_edges
from .feature_classifier import classify_features
from .geometry_models import DimensionEstimate, Feature, ProcessingSettings, ReferencePoint
from .image_processor import to_grayscale, validate_buffer
from .line_tracer import extract_lines_from_edges

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Intermediate buffers and final output of one pipeline run."""
    grayscale: np.ndarray
    edges: np.ndarray
    raw_features: list[Feature]
    features: list[Feature]
    estimate: DimensionEstimate
    output: str


def run_pipeline(
    image: np.ndarray,
    settings: ProcessingSettings,
    reference_points: Sequence[ReferencePoint] = (),
    original_size: Optional[tuple[int, int]] = None,
    timestamp: Optional[str] = None,
) -> PipelineResult:
    """
    Convert an RGBA canvas buffer into CAD text.

    Args:
        image: RGBA pixel buffer of the canvas
        settings: Processing settings for this run
        reference_points: User markers in pixel space
        original_size: (width, height) of the source image before fitting
        timestamp: Override the JSON timestamp

    Returns:
        PipelineResult with every intermediate stage

    Raises:
        InvalidBufferError: if ``image`` is not a valid RGBA buffer
    """
    validate_buffer(image)
    height, width = image.shape[:2]
    start = time.time()

    gray = to_grayscale(image)
    edges = detect_edges(gray, settings.edge_method, settings.threshold)
    raw_features = extract_lines_from_edges(
        edges,
        min_line_length=settings.min_line_length,
        sort_points=settings.sort_points,
    )
    features = classify_features(raw_features, width, height, settings.conversion_mode)
    estimate = estimate_dimensions(features, settings.conversion_mode)
    output = generate_cad_output(
        features,
        settings.output_format,
        settings.scale,
        reference_points,
        width,
        height,
        estimate=estimate,
        original_size=original_size,
        timestamp=timestamp,
    )

    logger.info(
        "Pipeline %dx%d: %d trace(s) -> %d feature(s), %s, %s output in %.2fs",
        width, height, len(raw_features), len(features),
        estimate.kind, settings.output_format.value, time.time() - start,
    )
    return PipelineResult(
        grayscale=gray,
        edges=edges,
        raw_features=raw_features,
        features=features,
        estimate=estimate,
        output=output,
    )
