"""Shared fixtures for photo-to-CAD tests.

Buffers are built directly as numpy arrays so tests run without image
files on disk.
"""
from __future__ import annotations

import numpy as np
import pytest

from photo_to_cad.geometry_models import Feature, FeatureKind, Point


def rgba(height: int, width: int, value: int = 0, alpha: int = 255) -> np.ndarray:
    buffer = np.full((height, width, 4), value, dtype=np.uint8)
    buffer[..., 3] = alpha
    return buffer


def feature(points, kind=None, confidence=0.8, **metadata) -> Feature:
    return Feature(
        kind=kind,
        points=[Point(x=x, y=y) for x, y in points],
        confidence=confidence,
        metadata=metadata,
    )


@pytest.fixture()
def black_image():
    return rgba(100, 100)


@pytest.fixture()
def line_image():
    """100x100 black image with a white horizontal line at y=50, x=20..70."""
    buffer = rgba(100, 100)
    buffer[50, 20:71, :3] = 255
    return buffer


@pytest.fixture()
def checkerboard():
    """20x20 image of four 10x10 tiles, black top-left."""
    buffer = rgba(20, 20)
    buffer[:10, 10:, :3] = 255
    buffer[10:, :10, :3] = 255
    return buffer


@pytest.fixture()
def labeled_features():
    return [
        feature([(100, 200), (200, 210), (300, 200)], kind=FeatureKind.HULL_PROFILE, confidence=0.85),
        feature([(250, 50), (250, 150), (250, 250)], kind=FeatureKind.MAST, confidence=0.8),
        feature([(20, 380), (480, 380)], kind=FeatureKind.WATERLINE, confidence=0.9),
    ]
