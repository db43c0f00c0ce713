"""
Configuration and constants for the Photo-to-CAD converter.

Contains:
- Processing defaults (overridable through environment / .env)
- Canvas and upload limits
- DXF layer and SVG style definitions per feature kind
"""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Processing defaults
DEFAULT_EDGE_METHOD = os.environ.get("PHOTO_TO_CAD_EDGE_METHOD", "canny")
DEFAULT_THRESHOLD = float(os.environ.get("PHOTO_TO_CAD_THRESHOLD", "100"))
DEFAULT_SCALE = float(os.environ.get("PHOTO_TO_CAD_SCALE", "100"))  # px per meter
DEFAULT_OUTPUT_FORMAT = os.environ.get("PHOTO_TO_CAD_OUTPUT_FORMAT", "dxf")
DEFAULT_CONVERSION_MODE = os.environ.get("PHOTO_TO_CAD_CONVERSION_MODE", "interior")
DEFAULT_MIN_LINE_LENGTH = int(os.environ.get("PHOTO_TO_CAD_MIN_LINE_LENGTH", "10"))

LOG_LEVEL = os.environ.get("PHOTO_TO_CAD_LOG_LEVEL", "INFO")

# File handling
SUPPORTED_IMAGE_TYPES = ["png", "jpg", "jpeg", "webp"]
MAX_FILE_SIZE_MB = 10

# Images are fitted into this box before processing (canvas size)
CANVAS_MAX_WIDTH = 500
CANVAS_MAX_HEIGHT = 400

GENERATOR_TAG = "Yacht Photo to CAD Converter v2.0"

# Tracer output before classification
RAW_TRACE_CONFIDENCE = 0.8

# Classifier pre-filter
MIN_FEATURE_POINTS = 3
MIN_FEATURE_CHORD_PX = 20

# DXF layer colors per feature kind (AutoCAD Color Index)
LAYER_COLORS = {
    "HULL_PROFILE": 1,   # Red
    "WATERLINE": 2,      # Yellow
    "MAST": 3,           # Green
    "DECK_EDGE": 4,      # Cyan
    "CABIN": 5,          # Blue
    "KEEL": 6,           # Magenta
}

# Stroke styles used by the canvas-sized SVG output
SVG_FEATURE_STYLES = {
    "hull_profile": "stroke: #2c5aa0; stroke-width: 2; fill: none;",
    "waterline": "stroke: #4a90e2; stroke-width: 3;",
    "mast": "stroke: #8b4513; stroke-width: 4;",
    "deck_edge": "stroke: #d2b48c; stroke-width: 2; fill: none;",
    "cabin": "stroke: #8fbc8f; stroke-width: 2; fill: none;",
    "keel": "stroke: #2f4f4f; stroke-width: 3;",
}

# Colors used by the enhanced (bounds-fitted) SVG export
FEATURE_COLORS = {
    "hull_profile": "#2563eb",  # Blue
    "waterline": "#06b6d4",     # Cyan
    "mast": "#dc2626",          # Red
    "deck_edge": "#ea580c",     # Orange
    "cabin": "#16a34a",         # Green
    "keel": "#7c3aed",          # Purple
}
