"""
Connected-edge tracing over a binary edge buffer.

Each 8-connected component of "on" pixels (R > 128) becomes one raw
Feature whose points are in depth-first discovery order. That order is
not a geometric path: a thick or branching component zig-zags. Callers
that need a walkable path can opt in to ``sort_points``, which changes
the output shape.
"""

import logging

import numpy as np

from .config import DEFAULT_MIN_LINE_LENGTH, RAW_TRACE_CONFIDENCE
from .geometry_models import Feature, Point
from .image_processor import validate_buffer

logger = logging.getLogger(__name__)

ON_THRESHOLD = 128

# Neighbour offsets in push order; the stack pops the last one first
NEIGHBOUR_OFFSETS = [
    (dx, dy)
    for dy in (-1, 0, 1)
    for dx in (-1, 0, 1)
    if not (dx == 0 and dy == 0)
]


def _trace_component(
    on: list[list[bool]],
    visited: list[list[bool]],
    start_x: int,
    start_y: int,
) -> list[tuple[int, int]]:
    """Depth-first flood trace from one on-pixel, marking pixels visited when popped."""
    height = len(on)
    width = len(on[0])
    points: list[tuple[int, int]] = []
    stack = [(start_x, start_y)]

    while stack:
        x, y = stack.pop()
        if visited[y][x]:
            continue
        visited[y][x] = True

        if not on[y][x]:
            continue
        points.append((x, y))

        for dx, dy in NEIGHBOUR_OFFSETS:
            nx = x + dx
            ny = y + dy
            if 0 <= nx < width and 0 <= ny < height and not visited[ny][nx] and on[ny][nx]:
                stack.append((nx, ny))

    return points


def order_points(points: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """
    Greedy nearest-neighbour ordering starting from the first point.

    Ties go to the earliest remaining point in discovery order.
    """
    if len(points) < 3:
        return list(points)

    remaining = np.array(points[1:], dtype=np.float64)
    alive = np.ones(len(remaining), dtype=bool)
    ordered = [points[0]]
    current = np.array(points[0], dtype=np.float64)

    for _ in range(len(remaining)):
        deltas = remaining - current
        distances = np.einsum("ij,ij->i", deltas, deltas)
        distances[~alive] = np.inf
        nearest = int(np.argmin(distances))
        alive[nearest] = False
        current = remaining[nearest]
        ordered.append(points[nearest + 1])

    return ordered


def extract_lines_from_edges(
    edges: np.ndarray,
    min_line_length: int = DEFAULT_MIN_LINE_LENGTH,
    sort_points: bool = False,
) -> list[Feature]:
    """
    Trace connected edge pixels into raw features.

    Pixels are scanned in raster order; every unvisited on-pixel seeds an
    8-connected depth-first trace. Components with fewer than
    ``min_line_length`` pixels are dropped entirely.

    Args:
        edges: Binary edge buffer (see edge_detection.detect_edges)
        min_line_length: Minimum number of pixels per trace
        sort_points: Reorder each trace into a nearest-neighbour path

    Returns:
        Unclassified features (kind None, confidence 0.8) in discovery order
    """
    validate_buffer(edges)
    on_mask = edges[..., 0] > ON_THRESHOLD
    height, width = on_mask.shape
    if height == 0 or width == 0:
        return []

    on = on_mask.tolist()
    visited = [[False] * width for _ in range(height)]

    features: list[Feature] = []
    discarded = 0

    # argwhere yields (row, col) pairs in raster order
    for y, x in np.argwhere(on_mask).tolist():
        if visited[y][x]:
            continue

        trace = _trace_component(on, visited, x, y)
        if len(trace) < min_line_length:
            discarded += 1
            continue

        if sort_points:
            trace = order_points(trace)

        features.append(
            Feature(
                points=[Point(x=float(px), y=float(py)) for px, py in trace],
                confidence=RAW_TRACE_CONFIDENCE,
            )
        )

    logger.info(
        "Traced %d line(s) from %dx%d edge buffer (%d short trace(s) discarded)",
        len(features), width, height, discarded,
    )
    return features
