"""
Pydantic models for geometry representation.

These models define:
1. Points, reference points and labeled features flowing through the pipeline
2. Processing settings supplied by the host for one run
3. Dimension estimates derived from the labeled features
4. The structured JSON document (CADOutput) written by the serializer

Coordinate system: pixel space of the processed canvas
- (0, 0) = top-left corner
- X increases left to right, Y increases top to bottom
"""

from enum import Enum
from typing import Annotated, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from . import config


class FeatureKind(str, Enum):
    """Semantic labels assigned by the feature classifier."""
    HULL_PROFILE = "hull_profile"
    WATERLINE = "waterline"
    MAST = "mast"
    DECK_EDGE = "deck_edge"
    CABIN = "cabin"
    KEEL = "keel"

    @property
    def layer_name(self) -> str:
        return self.value.upper()


# Kinds written as multi-vertex polylines rather than endpoint lines
POLYLINE_KINDS = (FeatureKind.HULL_PROFILE, FeatureKind.DECK_EDGE)


class EdgeMethod(str, Enum):
    CANNY = "canny"
    SOBEL = "sobel"
    LAPLACIAN = "laplacian"


class OutputFormat(str, Enum):
    DXF = "dxf"
    SVG = "svg"
    JSON = "json"


class ConversionMode(str, Enum):
    YACHT = "yacht"
    INTERIOR = "interior"
    GENERAL = "general"


MetadataValue = Union[str, int, float]


class Point(BaseModel):
    """2D point in pixel space."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class ReferencePoint(Point):
    """Point marked by the user, numbered in insertion order."""
    id: Annotated[int, Field(ge=0)]


class Feature(BaseModel):
    """
    A traced polyline, optionally labeled with a semantic kind.

    Raw traces from the line tracer carry ``kind=None``; the classifier
    produces a new Feature with the kind set. Points keep the tracer's
    discovery order.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: Optional[FeatureKind] = Field(default=None, alias="type")
    points: list[Point] = Field(..., min_length=1)
    confidence: Annotated[float, Field(ge=0.0, le=1.0)] = config.RAW_TRACE_CONFIDENCE
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)

    @property
    def kind_name(self) -> str:
        return self.kind.value if self.kind else "unclassified"

    @property
    def layer_name(self) -> str:
        return self.kind_name.upper()

    @property
    def is_polyline(self) -> bool:
        """Whether this feature is written as a multi-vertex polyline."""
        return self.kind is None or self.kind in POLYLINE_KINDS

    @property
    def endpoints(self) -> tuple[Point, Point]:
        """First and last point (identical for a single-point feature)."""
        return self.points[0], self.points[-1]

    @property
    def bounding_span(self) -> float:
        """Largest side of the axis-aligned bounding box of the points."""
        xs = [p.x for p in self.points]
        ys = [p.y for p in self.points]
        return max(max(xs) - min(xs), max(ys) - min(ys))


class ProcessingSettings(BaseModel):
    """Settings for one pipeline run. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    edge_method: EdgeMethod = EdgeMethod.CANNY
    threshold: Annotated[float, Field(ge=0.0)] = 100.0
    scale: Annotated[float, Field(ge=0.0, description="Pixels per real-world unit, 0 = uncalibrated")] = 100.0
    output_format: OutputFormat = OutputFormat.DXF
    conversion_mode: ConversionMode = ConversionMode.INTERIOR
    min_line_length: Annotated[int, Field(ge=1)] = 10
    sort_points: bool = Field(
        default=False, description="Reorder traces into nearest-neighbour paths (changes output shape)"
    )

    @classmethod
    def from_config(cls, **overrides) -> "ProcessingSettings":
        """Build settings from the configured defaults, applying overrides."""
        values = {
            "edge_method": config.DEFAULT_EDGE_METHOD,
            "threshold": config.DEFAULT_THRESHOLD,
            "scale": config.DEFAULT_SCALE,
            "output_format": config.DEFAULT_OUTPUT_FORMAT,
            "conversion_mode": config.DEFAULT_CONVERSION_MODE,
            "min_line_length": config.DEFAULT_MIN_LINE_LENGTH,
        }
        values.update(overrides)
        return cls(**values)


class DimensionEstimate(BaseModel):
    """Coarse real-world size of the dominant feature."""
    model_config = ConfigDict(frozen=True)

    width: float = 0.0
    height: float = 0.0
    depth: float = 0.0
    kind: str = "unknown"
    confidence: Annotated[float, Field(ge=0.0, le=1.0)] = 0.0
    unit: str = "m"

    @classmethod
    def empty(cls) -> "DimensionEstimate":
        return cls()

    def in_centimeters(self) -> tuple[float, float, float]:
        """Width, height and depth converted to centimeters."""
        factor = 100.0 if self.unit == "m" else 1.0
        return self.width * factor, self.height * factor, self.depth * factor


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ImageSize(_CamelModel):
    width: int
    height: int


class ImageInfo(_CamelModel):
    width: int
    height: int
    original_dimensions: Optional[ImageSize] = None


class CADMetadata(_CamelModel):
    generator: str = config.GENERATOR_TAG
    scale: float
    units: str
    timestamp: str
    image_info: ImageInfo


class CADOutput(_CamelModel):
    """
    Structured record written by the JSON serializer.

    Feature and reference point coordinates are in output units
    (pixel coordinates divided by ``metadata.scale``).
    """
    metadata: CADMetadata
    features: list[Feature] = Field(default_factory=list)
    reference_points: list[ReferencePoint] = Field(default_factory=list)

    @property
    def feature_counts(self) -> dict[str, int]:
        """Count features by kind."""
        counts: dict[str, int] = {}
        for feature in self.features:
            counts[feature.kind_name] = counts.get(feature.kind_name, 0) + 1
        return counts

    def to_pixel_features(self) -> list[Feature]:
        """Features converted back to pixel space using the recorded scale."""
        factor = self.metadata.scale if self.metadata.scale > 0 else 1.0
        return [
            feature.model_copy(update={
                "points": [Point(x=p.x * factor, y=p.y * factor) for p in feature.points]
            })
            for feature in self.features
        ]

    def to_pixel_reference_points(self) -> list[ReferencePoint]:
        factor = self.metadata.scale if self.metadata.scale > 0 else 1.0
        return [
            ReferencePoint(x=p.x * factor, y=p.y * factor, id=p.id)
            for p in self.reference_points
        ]
