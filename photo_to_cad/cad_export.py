"""
Enhanced CAD export from a structured CADOutput record.

Unlike the plain-text serializers in cad_generation, this module writes a
complete DXF document with ezdxf (header, layer table, units) and a
bounds-fitted SVG drawing with optional grid, labels and dimensions.
"""

import io
import logging
import math
from dataclasses import dataclass
from typing import Literal, Optional

import ezdxf
from ezdxf.layouts import Modelspace

from .calibration import CALIBRATED_UNITS
from .config import FEATURE_COLORS, LAYER_COLORS
from .errors import UnsupportedConfigurationError
from .geometry_models import CADOutput, Feature, Point

logger = logging.getLogger(__name__)

ExportUnits = Literal["mm", "inches", "feet", "meters"]

# Millimeters per export unit
UNIT_IN_MM = {
    "mm": 1.0,
    "inches": 25.4,
    "feet": 304.8,
    "meters": 1000.0,
}

# $INSUNITS codes
INSUNITS = {
    "mm": 4,
    "inches": 1,
    "feet": 2,
    "meters": 6,
}

METADATA_LAYER = "METADATA"
UNCLASSIFIED_COLOR = 7

SVG_PADDING = 50
EMPTY_BOUNDS = (0.0, 100.0, 0.0, 100.0)


@dataclass
class DXFExportOptions:
    scale: float = 1.0
    units: ExportUnits = "mm"
    layers_by_feature_type: bool = True
    include_metadata: bool = True


@dataclass
class SVGExportOptions:
    scale: float = 1.0
    stroke_width: float = 2.0
    include_grid: bool = False
    include_dimensions: bool = False
    color_by_feature_type: bool = True


def calculate_scale_factor(cad_output: CADOutput, options: DXFExportOptions) -> float:
    """
    Multiplier from record coordinates to export units.

    Calibrated records are in meters and get a true unit conversion.
    Pixel records have no physical size, so only the user scale applies.
    """
    if options.units not in UNIT_IN_MM:
        raise UnsupportedConfigurationError(f"Unsupported export units: {options.units!r}")
    if cad_output.metadata.units != CALIBRATED_UNITS:
        return options.scale
    return options.scale * UNIT_IN_MM["meters"] / UNIT_IN_MM[options.units]


def calculate_bounds(features: list[Feature]) -> tuple[float, float, float, float]:
    """(min_x, max_x, min_y, max_y) over all points; 0..100 when empty."""
    if not features:
        return EMPTY_BOUNDS
    xs = [p.x for f in features for p in f.points]
    ys = [p.y for f in features for p in f.points]
    return min(xs), max(xs), min(ys), max(ys)


# ---------------------------------------------------------------------------
# DXF
# ---------------------------------------------------------------------------

def _setup_layers(doc, features: list[Feature]) -> None:
    for feature in features:
        layer = feature.layer_name
        if layer not in doc.layers:
            color = LAYER_COLORS.get(layer, UNCLASSIFIED_COLOR)
            doc.layers.add(layer, color=color)


def _add_feature(msp: Modelspace, feature: Feature, layer: str, factor: float) -> None:
    # Y is flipped: image Y grows downward, CAD Y grows upward
    points = [(p.x * factor, -p.y * factor) for p in feature.points]
    if feature.is_polyline:
        msp.add_lwpolyline(points, close=True, dxfattribs={"layer": layer})
        return
    for start, end in zip(points, points[1:]):
        msp.add_line(start, end, dxfattribs={"layer": layer})


def _add_metadata(msp: Modelspace, cad_output: CADOutput, options: DXFExportOptions) -> None:
    lines = (
        f"Generated: {cad_output.metadata.timestamp}",
        f"Scale: {cad_output.metadata.scale:g}",
        f"Units: {options.units}",
    )
    y = 10.0
    for content in lines:
        text = msp.add_text(content, dxfattribs={"layer": METADATA_LAYER, "height": 2.5})
        text.set_placement((10.0, y))
        y += 5.0


def export_to_dxf(cad_output: CADOutput, options: Optional[DXFExportOptions] = None) -> str:
    """
    Write the record as a DXF R2010 document.

    Args:
        cad_output: Structured record (coordinates in its own units)
        options: Unit, scale, layer and metadata options

    Returns:
        DXF document text
    """
    options = options or DXFExportOptions()
    factor = calculate_scale_factor(cad_output, options)

    doc = ezdxf.new("R2010")
    doc.header["$INSUNITS"] = INSUNITS[options.units]
    msp = doc.modelspace()

    features = cad_output.features
    if options.layers_by_feature_type:
        _setup_layers(doc, features)

    for feature in features:
        layer = feature.layer_name if options.layers_by_feature_type else "0"
        _add_feature(msp, feature, layer, factor)

    if options.include_metadata:
        if METADATA_LAYER not in doc.layers:
            doc.layers.add(METADATA_LAYER, color=UNCLASSIFIED_COLOR)
        _add_metadata(msp, cad_output, options)

    stream = io.StringIO()
    doc.write(stream)
    logger.info(
        "Exported %d feature(s) to DXF in %s (factor %.4f)",
        len(features), options.units, factor,
    )
    return stream.getvalue()


# ---------------------------------------------------------------------------
# SVG
# ---------------------------------------------------------------------------

def _n(value: float) -> str:
    return f"{value:.2f}"


def _svg_path(points: list[tuple[float, float]], color: str, stroke_width: float, closed: bool = False) -> str:
    data = f"M {_n(points[0][0])} {_n(points[0][1])}"
    for x, y in points[1:]:
        data += f" L {_n(x)} {_n(y)}"
    if closed:
        data += " Z"
    return (
        f'<path d="{data}" fill="none" stroke="{color}" stroke-width="{stroke_width:g}" '
        f'stroke-linecap="round" stroke-linejoin="round" />'
    )


def _svg_text(text: str, x: float, y: float, font_size: int, color: str) -> str:
    return (
        f'<text x="{_n(x)}" y="{_n(y)}" font-family="Arial, sans-serif" '
        f'font-size="{font_size}" fill="{color}">{text}</text>'
    )


def _svg_grid(width: float, height: float, spacing: float) -> list[str]:
    lines = []
    x = 0.0
    while x <= width:
        lines.append(f'<line x1="{_n(x)}" y1="0" x2="{_n(x)}" y2="{_n(height)}" stroke="#e0e0e0" stroke-width="0.5" />')
        x += spacing
    y = 0.0
    while y <= height:
        lines.append(f'<line x1="0" y1="{_n(y)}" x2="{_n(width)}" y2="{_n(y)}" stroke="#e0e0e0" stroke-width="0.5" />')
        y += spacing
    return lines


def _svg_dimension(start: tuple[float, float], end: tuple[float, float], offset: float = 30.0) -> list[str]:
    """Dimension line offset perpendicular to a segment, with extension lines and length text."""
    color = "#666666"
    distance = math.hypot(end[0] - start[0], end[1] - start[1])
    angle = math.atan2(end[1] - start[1], end[0] - start[0]) + math.pi / 2
    ox, oy = math.cos(angle) * offset, math.sin(angle) * offset

    dim_start = (start[0] + ox, start[1] + oy)
    dim_end = (end[0] + ox, end[1] + oy)
    mid = ((start[0] + end[0]) / 2 + ox, (start[1] + end[1]) / 2 + oy)
    return [
        _svg_path([dim_start, dim_end], color, 1),
        _svg_path([start, dim_start], color, 0.5),
        _svg_path([end, dim_end], color, 0.5),
        _svg_text(f"{distance:.1f}", mid[0], mid[1], 10, color),
    ]


def export_to_enhanced_svg(cad_output: CADOutput, options: Optional[SVGExportOptions] = None) -> str:
    """
    Draw the record as an SVG fitted to the feature bounds.

    The drawing is offset so the bounds start at the padding and is sized
    to the scaled bounds plus padding on every side.
    """
    options = options or SVGExportOptions()
    features = cad_output.features
    min_x, max_x, min_y, max_y = calculate_bounds(features)
    width = (max_x - min_x) * options.scale + 2 * SVG_PADDING
    height = (max_y - min_y) * options.scale + 2 * SVG_PADDING

    def place(point: Point) -> tuple[float, float]:
        return (
            (point.x - min_x) * options.scale + SVG_PADDING,
            (point.y - min_y) * options.scale + SVG_PADDING,
        )

    elements: list[str] = []
    if options.include_grid and options.scale > 0:
        elements += _svg_grid(width, height, options.scale * 10)

    for feature in features:
        placed = [place(p) for p in feature.points]
        color = "#000000"
        if options.color_by_feature_type:
            color = FEATURE_COLORS.get(feature.kind_name, "#000000")

        if len(placed) >= 2:
            elements.append(_svg_path(placed, color, options.stroke_width, closed=feature.is_polyline))
        label_x, label_y = placed[0]
        elements.append(_svg_text(feature.kind_name.replace("_", " "), label_x + 5, label_y - 5, 10, color))

    if options.include_dimensions:
        for feature in features:
            if len(feature.points) >= 2:
                elements += _svg_dimension(place(feature.points[0]), place(feature.points[1]))

    body = "\n  ".join(elements)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{_n(width)}" height="{_n(height)}" '
        f'viewBox="0 0 {_n(width)} {_n(height)}">\n'
        f"  {body}\n"
        "</svg>"
    )
