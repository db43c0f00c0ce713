"""
Text serialization of labeled features.

Three formats:
- DXF: minimal ENTITIES-only drawing exchange text, one value per line
- SVG: canvas-sized vector markup with a dimension overlay
- JSON: the structured CADOutput record (the only lossless format)

Coordinates are divided by the scale (pixels per meter). A missing, zero
or negative scale means uncalibrated: coordinates pass through as pixels.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence, Union

from .calibration import CALIBRATED_UNITS, UNCALIBRATED_UNITS
from .config import GENERATOR_TAG, SVG_FEATURE_STYLES
from .errors import UnsupportedConfigurationError
from .geometry_models import (
    CADMetadata,
    CADOutput,
    DimensionEstimate,
    Feature,
    ImageInfo,
    ImageSize,
    OutputFormat,
    Point,
    ReferencePoint,
)

logger = logging.getLogger(__name__)

DIMENSION_LAYER = "DIMENSIONS"
SVG_TEXT_OFFSETS = (25, 45, 65, 85, 105)


def resolve_scale(scale: Optional[float]) -> tuple[float, str]:
    """Divisor and unit label for a configured scale."""
    if scale is None or scale <= 0:
        return 1.0, UNCALIBRATED_UNITS
    return float(scale), CALIBRATED_UNITS


def _fmt(value: float) -> str:
    """Fixed 3-decimal coordinate; adding 0.0 folds -0.0 into 0.0."""
    return f"{value + 0.0:.3f}"


def _svg_num(value: float) -> str:
    """Shortest number text: 20.0 -> "20", 20.5 -> "20.5"."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _timestamp_now() -> str:
    """UTC ISO-8601 timestamp with milliseconds and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# DXF
# ---------------------------------------------------------------------------

def _dxf_polyline(feature: Feature, index: int, scale: float) -> list[str]:
    layer = feature.layer_name
    lines = ["0", "POLYLINE", "8", layer, "62", str(index + 1), "70", "1"]
    for point in feature.points:
        lines += ["0", "VERTEX", "8", layer, "10", _fmt(point.x / scale), "20", _fmt(point.y / scale)]
    lines += ["0", "SEQEND"]
    return lines


def _dxf_line(feature: Feature, index: int, scale: float) -> list[str]:
    # A single-point feature degenerates to a zero-length line
    p1, p2 = feature.endpoints
    return [
        "0", "LINE",
        "8", feature.layer_name,
        "62", str(index + 1),
        "10", _fmt(p1.x / scale),
        "20", _fmt(p1.y / scale),
        "11", _fmt(p2.x / scale),
        "21", _fmt(p2.y / scale),
    ]


def _dxf_text(text: str, x: float, y: float, height: float) -> list[str]:
    return [
        "0", "TEXT",
        "8", DIMENSION_LAYER,
        "10", _fmt(x),
        "20", _fmt(y),
        "40", _fmt(height),
        "1", text,
    ]


def generate_dxf(
    features: Sequence[Feature],
    scale: Optional[float],
    estimate: Optional[DimensionEstimate] = None,
    canvas_width: int = 0,
) -> str:
    """
    Render features as DXF entity text.

    HullProfile and DeckEdge features become closed POLYLINEs with one
    VERTEX per point; other kinds become a LINE from the first to the last
    point. Two TEXT annotations with the size estimate and its confidence
    close the ENTITIES section.
    """
    divisor, units = resolve_scale(scale)
    estimate = estimate or DimensionEstimate.empty()

    lines = ["0", "SECTION", "2", "ENTITIES"]
    for index, feature in enumerate(features):
        if feature.is_polyline:
            lines += _dxf_polyline(feature, index, divisor)
        else:
            lines += _dxf_line(feature, index, divisor)

    # Annotations sit just below the origin, sized relative to the drawing width
    text_height = max(canvas_width / divisor * 0.025, 0.001) if canvas_width else 2.5
    lines += _dxf_text(
        f"SIZE: {estimate.width:.2f} x {estimate.height:.2f} x {estimate.depth:.2f} "
        f"{estimate.unit} ({estimate.kind})",
        0.0, -1.5 * text_height, text_height,
    )
    lines += _dxf_text(
        f"CONFIDENCE: {estimate.confidence * 100:.0f}%",
        0.0, -3.0 * text_height, text_height,
    )

    lines += ["0", "ENDSEC", "0", "EOF"]
    logger.debug("DXF: %d feature(s), units=%s", len(features), units)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# SVG
# ---------------------------------------------------------------------------

def generate_svg(
    features: Sequence[Feature],
    canvas_width: int,
    canvas_height: int,
    estimate: Optional[DimensionEstimate] = None,
) -> str:
    """
    Render features as SVG markup sized to the canvas.

    Coordinates stay in canvas pixels so the drawing overlays the image.
    """
    estimate = estimate or DimensionEstimate.empty()

    styles = "\n".join(f"      .{kind} {{ {style} }}" for kind, style in SVG_FEATURE_STYLES.items())
    parts = [
        f'<svg width="{canvas_width}" height="{canvas_height}" xmlns="http://www.w3.org/2000/svg">',
        "  <defs>",
        "    <style>",
        styles,
        "      .unclassified { stroke: #000000; stroke-width: 1; fill: none; }",
        "      .dimension-text { font-family: Arial, sans-serif; font-size: 14px; fill: #333333; }",
        "    </style>",
        "  </defs>",
    ]

    for feature in features:
        if feature.is_polyline:
            first = feature.points[0]
            path = f"M {_svg_num(first.x)} {_svg_num(first.y)}"
            for point in feature.points[1:]:
                path += f" L {_svg_num(point.x)} {_svg_num(point.y)}"
            parts.append(f'  <path d="{path}" class="{feature.kind_name}" />')
        else:
            p1, p2 = feature.endpoints
            parts.append(
                f'  <line x1="{_svg_num(p1.x)}" y1="{_svg_num(p1.y)}" '
                f'x2="{_svg_num(p2.x)}" y2="{_svg_num(p2.y)}" class="{feature.kind_name}" />'
            )

    width_cm, height_cm, depth_cm = estimate.in_centimeters()
    overlay = (
        f"Type: {estimate.kind}",
        f"Width: {width_cm:.1f} cm",
        f"Height: {height_cm:.1f} cm",
        f"Depth: {depth_cm:.1f} cm",
        f"Confidence: {estimate.confidence * 100:.0f}%",
    )
    parts.append('  <g class="dimensions">')
    for y, text in zip(SVG_TEXT_OFFSETS, overlay):
        parts.append(f'    <text x="10" y="{y}" class="dimension-text">{text}</text>')
    parts.append("  </g>")

    parts.append("</svg>")
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def _rescale(point: Point, scale: float) -> tuple[float, float]:
    return round(point.x / scale, 3), round(point.y / scale, 3)


def build_cad_output(
    features: Sequence[Feature],
    scale: Optional[float],
    reference_points: Sequence[ReferencePoint],
    canvas_width: int,
    canvas_height: int,
    original_size: Optional[tuple[int, int]] = None,
    timestamp: Optional[str] = None,
) -> CADOutput:
    """Build the structured record with coordinates in output units."""
    divisor, units = resolve_scale(scale)

    scaled_features = []
    for feature in features:
        points = [Point(x=x, y=y) for x, y in (_rescale(p, divisor) for p in feature.points)]
        scaled_features.append(feature.model_copy(update={"points": points}))

    scaled_refs = []
    for ref in reference_points:
        x, y = _rescale(ref, divisor)
        scaled_refs.append(ReferencePoint(x=x, y=y, id=ref.id))

    original = None
    if original_size is not None:
        original = ImageSize(width=original_size[0], height=original_size[1])

    return CADOutput(
        metadata=CADMetadata(
            generator=GENERATOR_TAG,
            scale=divisor,
            units=units,
            timestamp=timestamp or _timestamp_now(),
            image_info=ImageInfo(
                width=canvas_width,
                height=canvas_height,
                original_dimensions=original,
            ),
        ),
        features=scaled_features,
        reference_points=scaled_refs,
    )


def dump_cad_output(cad_output: CADOutput) -> str:
    """Serialize a CADOutput record as indented JSON."""
    data = cad_output.model_dump(mode="json", by_alias=True, exclude_none=True)
    # Keep an explicit null kind for unclassified traces
    for feature, source in zip(data["features"], cad_output.features):
        feature.setdefault("type", source.kind.value if source.kind else None)
    return json.dumps(data, indent=2)


def generate_json(
    features: Sequence[Feature],
    scale: Optional[float],
    reference_points: Sequence[ReferencePoint],
    canvas_width: int,
    canvas_height: int,
    original_size: Optional[tuple[int, int]] = None,
    timestamp: Optional[str] = None,
) -> str:
    """Render the structured JSON record."""
    cad_output = build_cad_output(
        features, scale, reference_points, canvas_width, canvas_height,
        original_size=original_size, timestamp=timestamp,
    )
    return dump_cad_output(cad_output)


def load_cad_output(text: str) -> CADOutput:
    """
    Parse JSON produced by ``generate_json``.

    Raises:
        pydantic.ValidationError: if the document does not match the schema
    """
    return CADOutput.model_validate_json(text)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def generate_cad_output(
    features: Sequence[Feature],
    output_format: Union[OutputFormat, str],
    scale: Optional[float],
    reference_points: Sequence[ReferencePoint],
    canvas_width: int,
    canvas_height: int,
    estimate: Optional[DimensionEstimate] = None,
    original_size: Optional[tuple[int, int]] = None,
    timestamp: Optional[str] = None,
) -> str:
    """
    Serialize features in the requested format.

    Args:
        features: Labeled features in pixel space
        output_format: dxf, svg or json
        scale: Pixels per meter (None/0 = uncalibrated)
        reference_points: User markers in pixel space (JSON only)
        canvas_width: Canvas width in pixels
        canvas_height: Canvas height in pixels
        estimate: Dimension estimate for the DXF/SVG annotations
        original_size: (width, height) of the source image, JSON only
        timestamp: Override the JSON timestamp

    Raises:
        UnsupportedConfigurationError: for an unknown format
    """
    try:
        output_format = OutputFormat(output_format)
    except ValueError:
        raise UnsupportedConfigurationError(f"Unsupported output format: {output_format!r}") from None

    if output_format == OutputFormat.DXF:
        return generate_dxf(features, scale, estimate=estimate, canvas_width=canvas_width)
    if output_format == OutputFormat.SVG:
        return generate_svg(features, canvas_width, canvas_height, estimate=estimate)
    return generate_json(
        features, scale, reference_points, canvas_width, canvas_height,
        original_size=original_size, timestamp=timestamp,
    )
