"""Size-tier dimension estimation."""
from __future__ import annotations

import pytest

from photo_to_cad.dimensions import estimate_dimensions, select_primary_feature
from photo_to_cad.errors import UnsupportedConfigurationError
from photo_to_cad.geometry_models import FeatureKind

from conftest import feature


def _span(length: float, confidence: float = 0.8, kind=FeatureKind.HULL_PROFILE):
    return feature([(0, 0), (length / 2, 5), (length, 0)], kind=kind, confidence=confidence)


class TestEmpty:
    def test_zeroed_estimate(self):
        estimate = estimate_dimensions([])
        assert estimate.kind == "unknown"
        assert estimate.confidence == 0
        assert (estimate.width, estimate.height, estimate.depth) == (0, 0, 0)


class TestYachtTiers:
    @pytest.mark.parametrize(
        "span, kind, width",
        [
            (100, "small yacht", 7.5),
            (149, "small yacht", 7.5),
            (150, "medium yacht", 12.0),
            (299, "medium yacht", 12.0),
            (300, "large yacht", 20.0),
            (450, "superyacht", 30.0),
        ],
    )
    def test_breakpoints(self, span, kind, width):
        estimate = estimate_dimensions([_span(span)], "yacht")
        assert estimate.kind == kind
        assert estimate.width == width
        assert estimate.unit == "m"

    def test_medium_yacht_dimensions(self):
        estimate = estimate_dimensions([_span(200)], "yacht")
        assert (estimate.width, estimate.height, estimate.depth) == (12.0, 16.0, 3.8)


class TestOtherModes:
    def test_interior_in_centimeters(self):
        estimate = estimate_dimensions([_span(100)], "interior")
        assert estimate.kind == "drawer or door panel"
        assert estimate.unit == "cm"
        assert estimate.in_centimeters() == (45.0, 60.0, 2.0)

    def test_general_large_object(self):
        estimate = estimate_dimensions([_span(400)], "general")
        assert estimate.kind == "large object"
        assert estimate.in_centimeters() == pytest.approx((300.0, 250.0, 150.0))

    def test_unknown_mode(self):
        with pytest.raises(UnsupportedConfigurationError):
            estimate_dimensions([_span(100)], "aircraft")


class TestPrimaryFeature:
    def test_largest_span_wins(self):
        small, large = _span(50), _span(250)
        assert select_primary_feature([small, large]) is large

    def test_first_wins_ties(self):
        first, second = _span(100), _span(100)
        assert select_primary_feature([first, second]) is first

    def test_vertical_span_counts(self):
        tall = feature([(0, 0), (0, 320), (5, 160)], kind=FeatureKind.MAST)
        assert estimate_dimensions([_span(100), tall], "yacht").kind == "large yacht"

    def test_confidence_inherited(self):
        assert estimate_dimensions([_span(200, confidence=0.85)]).confidence == 0.85

    def test_confidence_defaulted_when_zero(self):
        assert estimate_dimensions([_span(200, confidence=0.0)], "yacht").confidence == 0.6
        assert estimate_dimensions([_span(200, confidence=0.0)], "interior").confidence == 0.5
