"""
Photo-to-CAD conversion core.

Turns an RGBA photo buffer into labeled vector features and serializes
them as DXF, SVG or JSON:

    from photo_to_cad import ProcessingSettings, run_pipeline
"""

from .calibration import CalibrationResult, ReferencePointSet, ScaleCalibrator, calibrate_from_points
from .cad_export import DXFExportOptions, SVGExportOptions, export_to_dxf, export_to_enhanced_svg
from .cad_generation import generate_cad_output, load_cad_output
from .dimensions import estimate_dimensions
from .edge_detection import apply_edge_detection, detect_edges
from .errors import InvalidBufferError, PhotoToCADError, UnsupportedConfigurationError
from .feature_classifier import classify_features
from .geometry_models import (
    CADOutput,
    ConversionMode,
    DimensionEstimate,
    EdgeMethod,
    Feature,
    FeatureKind,
    OutputFormat,
    Point,
    ProcessingSettings,
    ReferencePoint,
)
from .image_processor import ImageProcessor, LoadedImage, to_grayscale
from .line_tracer import extract_lines_from_edges
from .pipeline import PipelineResult, run_pipeline

__all__ = [
    "CADOutput",
    "CalibrationResult",
    "ConversionMode",
    "DXFExportOptions",
    "DimensionEstimate",
    "EdgeMethod",
    "Feature",
    "FeatureKind",
    "ImageProcessor",
    "InvalidBufferError",
    "LoadedImage",
    "OutputFormat",
    "PhotoToCADError",
    "PipelineResult",
    "Point",
    "ProcessingSettings",
    "ReferencePoint",
    "ReferencePointSet",
    "SVGExportOptions",
    "ScaleCalibrator",
    "UnsupportedConfigurationError",
    "apply_edge_detection",
    "calibrate_from_points",
    "classify_features",
    "detect_edges",
    "estimate_dimensions",
    "export_to_dxf",
    "export_to_enhanced_svg",
    "extract_lines_from_edges",
    "generate_cad_output",
    "load_cad_output",
    "run_pipeline",
    "to_grayscale",
]
