"""Rule-based labeling of traces."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from photo_to_cad.errors import InvalidBufferError, UnsupportedConfigurationError
from photo_to_cad.feature_classifier import classify_features, is_significant, summarize_trace
from photo_to_cad.geometry_models import FeatureKind

from conftest import feature

WIDTH, HEIGHT = 500, 400


def _horizontal(y: float, x0: float = 100, x1: float = 300):
    return feature([(x, y) for x in range(int(x0), int(x1) + 1, 10)])


def _vertical(x: float, y0: float, y1: float):
    return feature([(x, y) for y in range(int(y0), int(y1) + 1, 10)])


def _classify_one(trace, mode="yacht"):
    labeled = classify_features([trace], WIDTH, HEIGHT, mode)
    assert len(labeled) == 1
    return labeled[0]


class TestFeatureRecord:
    def test_frozen(self):
        trace = _horizontal(50)
        with pytest.raises(ValidationError):
            trace.confidence = 0.1

    def test_classification_leaves_trace_unlabeled(self):
        trace = _horizontal(0.9 * HEIGHT)
        labeled = _classify_one(trace)
        assert trace.kind is None
        assert labeled.kind == FeatureKind.WATERLINE


class TestYachtMode:
    def test_low_long_horizontal_is_waterline(self):
        labeled = _classify_one(_horizontal(0.9 * HEIGHT))
        assert labeled.kind == FeatureKind.WATERLINE
        assert labeled.confidence == 0.9

    def test_high_long_horizontal_is_deck_edge(self):
        labeled = _classify_one(_horizontal(50))
        assert labeled.kind == FeatureKind.DECK_EDGE
        assert labeled.confidence == 0.8

    def test_mid_long_horizontal_is_hull_profile(self):
        labeled = _classify_one(_horizontal(200))
        assert labeled.kind == FeatureKind.HULL_PROFILE
        assert labeled.confidence == 0.85

    def test_long_vertical_is_mast(self):
        labeled = _classify_one(_vertical(250, 50, 250))
        assert labeled.kind == FeatureKind.MAST
        assert labeled.confidence == 0.8

    def test_medium_diagonal_is_hull_profile(self):
        labeled = _classify_one(feature([(0, 0), (50, 50), (100, 100)]))
        assert labeled.kind == FeatureKind.HULL_PROFILE
        assert labeled.confidence == 0.75
        assert labeled.metadata["orientation"] == "diagonal"

    def test_short_trace_is_deck_edge(self):
        labeled = _classify_one(feature([(10, 200), (20, 200), (40, 200)]))
        assert labeled.kind == FeatureKind.DECK_EDGE
        assert labeled.confidence == 0.6


class TestComponentModes:
    @pytest.mark.parametrize("mode", ["interior", "general"])
    def test_top_horizontal_is_deck_edge(self, mode):
        assert _classify_one(_horizontal(50), mode).kind == FeatureKind.DECK_EDGE

    @pytest.mark.parametrize("mode", ["interior", "general"])
    def test_bottom_horizontal_is_waterline(self, mode):
        labeled = _classify_one(_horizontal(380), mode)
        assert labeled.kind == FeatureKind.WATERLINE
        assert labeled.confidence == 0.8

    def test_mid_horizontal_is_hull_profile(self):
        labeled = _classify_one(_horizontal(200), "interior")
        assert labeled.kind == FeatureKind.HULL_PROFILE
        assert labeled.confidence == 0.7

    def test_medium_trace_is_cabin(self):
        labeled = _classify_one(feature([(0, 0), (50, 50), (100, 100)]), "interior")
        assert labeled.kind == FeatureKind.CABIN
        assert labeled.confidence == 0.7

    def test_short_trace_is_keel(self):
        labeled = _classify_one(feature([(10, 200), (20, 200), (40, 200)]), "general")
        assert labeled.kind == FeatureKind.KEEL
        assert labeled.confidence == 0.6


class TestMetadata:
    def test_waterline_metadata(self):
        labeled = _classify_one(_horizontal(360))
        assert labeled.metadata == {
            "length": "200.0px",
            "orientation": "horizontal",
            "position": "40%, 90%",
            "detection_method": "edge_trace",
            "point_count": 21,
        }

    def test_points_are_kept(self):
        trace = _vertical(100, 10, 300)
        assert _classify_one(trace).points == trace.points

    def test_input_not_modified(self):
        trace = _horizontal(200)
        classify_features([trace], WIDTH, HEIGHT)
        assert trace.kind is None
        assert trace.metadata == {}


class TestFiltering:
    def test_empty_input(self):
        assert classify_features([], WIDTH, HEIGHT) == []

    def test_fewer_than_three_points_dropped(self):
        assert not is_significant(feature([(0, 0), (100, 0)]))

    def test_short_chord_dropped(self):
        # A closed loop has a tiny chord even with many points
        loop = feature([(10, 10), (40, 10), (40, 40), (10, 40), (10, 15)])
        assert classify_features([loop], WIDTH, HEIGHT) == []

    def test_output_keeps_input_order(self):
        traces = [_horizontal(380), _vertical(250, 50, 250), _horizontal(50)]
        kinds = [f.kind for f in classify_features(traces, WIDTH, HEIGHT)]
        assert kinds == [FeatureKind.WATERLINE, FeatureKind.MAST, FeatureKind.DECK_EDGE]


class TestSummary:
    def test_exact_diagonal_is_neither_orientation(self):
        summary = summarize_trace(feature([(0, 0), (30, 30)]))
        assert not summary.is_horizontal
        assert not summary.is_vertical
        assert summary.orientation == "diagonal"

    def test_centroid(self):
        summary = summarize_trace(feature([(0, 0), (10, 0), (20, 30)]))
        assert summary.avg_x == pytest.approx(10.0)
        assert summary.avg_y == pytest.approx(10.0)


class TestErrors:
    def test_non_positive_canvas(self):
        with pytest.raises(InvalidBufferError):
            classify_features([_horizontal(10)], 0, HEIGHT)

    def test_unknown_mode(self):
        with pytest.raises(UnsupportedConfigurationError):
            classify_features([_horizontal(10)], WIDTH, HEIGHT, "spaceship")
