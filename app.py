"""
Photo to CAD Converter - Streamlit Application

Converts photos of yachts, interiors and general objects into DXF, SVG or
JSON line drawings using edge detection, connected-edge tracing and
rule-based feature labeling.
"""

import logging

import streamlit as st
from pydantic import ValidationError

from photo_to_cad import config
from photo_to_cad.cad_export import DXFExportOptions, SVGExportOptions, export_to_dxf, export_to_enhanced_svg
from photo_to_cad.cad_generation import build_cad_output
from photo_to_cad.calibration import UNIT_TO_METERS, ReferencePointSet, ScaleCalibrator
from photo_to_cad.errors import PhotoToCADError
from photo_to_cad.geometry_models import (
    ConversionMode,
    EdgeMethod,
    OutputFormat,
    ProcessingSettings,
)
from photo_to_cad.image_processor import ImageProcessor
from photo_to_cad.pipeline import run_pipeline

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

MIME_TYPES = {
    OutputFormat.DXF: "application/dxf",
    OutputFormat.SVG: "image/svg+xml",
    OutputFormat.JSON: "application/json",
}


def _calibrator() -> ScaleCalibrator:
    if "calibrator" not in st.session_state:
        st.session_state["calibrator"] = ScaleCalibrator()
    return st.session_state["calibrator"]


def _markers() -> ReferencePointSet:
    if "markers" not in st.session_state:
        st.session_state["markers"] = ReferencePointSet()
    return st.session_state["markers"]


def render_reference_points(width: int, height: int) -> None:
    """Reference markers carried into the JSON output."""
    markers = _markers()
    with st.expander("Reference Points"):
        col1, col2 = st.columns(2)
        with col1:
            x = st.number_input("Marker X (px)", min_value=0, max_value=width - 1, value=0)
        with col2:
            y = st.number_input("Marker Y (px)", min_value=0, max_value=height - 1, value=0)

        if st.button("Add reference point"):
            point = markers.add(float(x), float(y))
            st.write(f"Marker {point.id}: ({point.x:.0f}, {point.y:.0f})")

        for point in markers:
            st.caption(f"Marker {point.id}: ({point.x:.0f}, {point.y:.0f})")

        if len(markers):
            marker_id = st.selectbox("Marker", [p.id for p in markers])
            if st.button("Remove marker"):
                markers.remove(marker_id)
            if st.button("Clear markers"):
                markers.clear()


def render_calibration(width: int, height: int) -> None:
    """Two-point calibration against a known real distance."""
    calibrator = _calibrator()
    with st.expander("Scale Calibration"):
        col1, col2 = st.columns(2)
        with col1:
            x = st.number_input("Point X (px)", min_value=0, max_value=width - 1, value=0)
        with col2:
            y = st.number_input("Point Y (px)", min_value=0, max_value=height - 1, value=0)

        if st.button("Add calibration point"):
            point = calibrator.add_point(float(x), float(y))
            st.write(f"Point {point.id}: ({point.x:.0f}, {point.y:.0f})")

        for point in calibrator.calibration_points:
            st.caption(f"Point {point.id}: ({point.x:.0f}, {point.y:.0f})")

        distance = st.number_input("Known distance", min_value=0.0, value=1.0)
        unit = st.selectbox("Unit", list(UNIT_TO_METERS), index=list(UNIT_TO_METERS).index("m"))

        if st.button("Calibrate"):
            result = calibrator.calibrate(distance, unit)
            if result is None:
                st.warning("Mark two distinct points and enter a positive distance.")
            else:
                st.success(f"Scale: {result.pixels_per_unit:.2f} px/m")

        if calibrator.is_calibrated:
            st.caption(f"Active scale: {calibrator.pixels_per_unit:.2f} px/m")


def main():
    st.set_page_config(page_title="Photo to CAD", layout="wide")
    st.title("Photo to CAD Converter")

    # Sidebar
    with st.sidebar:
        st.header("Settings")

        defaults = ProcessingSettings.from_config()

        mode = st.selectbox(
            "Conversion Mode",
            [m.value for m in ConversionMode],
            index=[m.value for m in ConversionMode].index(defaults.conversion_mode.value),
        )
        edge_method = st.selectbox(
            "Edge Detection",
            [m.value for m in EdgeMethod],
            index=[m.value for m in EdgeMethod].index(defaults.edge_method.value),
            help="Canny currently runs the Sobel operator",
        )
        threshold = st.slider("Threshold", min_value=10, max_value=255, value=int(defaults.threshold))
        min_line_length = st.number_input("Min line length (px)", min_value=1, value=defaults.min_line_length)

        st.divider()

        st.subheader("Output")
        output_format = st.selectbox(
            "Format",
            [f.value for f in OutputFormat],
            index=[f.value for f in OutputFormat].index(defaults.output_format.value),
        )
        scale = st.number_input(
            "Scale (px per meter)",
            min_value=0.0,
            value=defaults.scale,
            help="0 leaves coordinates in pixels",
        )
        sort_points = st.checkbox("Order trace points into paths", value=False)

    # Main area
    uploaded = st.file_uploader("Upload photo", type=config.SUPPORTED_IMAGE_TYPES)

    if not uploaded:
        st.info("Upload an image to get started.")
        return

    if uploaded.size > config.MAX_FILE_SIZE_MB * 1024 * 1024:
        st.error(f"File exceeds {config.MAX_FILE_SIZE_MB} MB")
        return

    try:
        loaded = ImageProcessor.load_from_upload(uploaded)
    except (OSError, PhotoToCADError) as e:
        st.error(f"Failed to load image: {e}")
        return

    render_calibration(loaded.width, loaded.height)
    render_reference_points(loaded.width, loaded.height)
    calibrator = _calibrator()
    if calibrator.is_calibrated:
        scale = calibrator.pixels_per_unit

    try:
        settings = ProcessingSettings(
            edge_method=edge_method,
            threshold=threshold,
            scale=scale,
            output_format=output_format,
            conversion_mode=mode,
            min_line_length=min_line_length,
            sort_points=sort_points,
        )
    except ValidationError as e:
        st.error(f"Invalid settings: {e}")
        return

    if st.button("Convert", type="primary"):
        with st.spinner("Processing..."):
            try:
                result = run_pipeline(
                    loaded.buffer,
                    settings,
                    reference_points=_markers().points,
                    original_size=(loaded.original_width, loaded.original_height),
                )
            except PhotoToCADError as e:
                st.error(f"Conversion failed: {e}")
                return
        st.session_state["result"] = result
        st.session_state["settings"] = settings
        st.success(f"Detected {len(result.features)} feature(s)")

    # Display columns
    col1, col2 = st.columns(2)

    with col1:
        st.subheader("Original Image")
        st.image(ImageProcessor.to_image(loaded.buffer), use_container_width=True)
        st.caption(
            f"{loaded.original_width} x {loaded.original_height} px "
            f"(canvas {loaded.width} x {loaded.height})"
        )

    if "result" not in st.session_state:
        return

    result = st.session_state["result"]
    settings = st.session_state["settings"]

    with col2:
        st.subheader("Edges")
        st.image(ImageProcessor.to_image(result.edges), use_container_width=True)
        st.download_button(
            "Download edge map (PNG)",
            data=ImageProcessor.to_bytes(ImageProcessor.to_image(result.edges)),
            file_name="edges.png",
            mime="image/png",
        )

    st.divider()

    col_a, col_b = st.columns(2)

    with col_a:
        st.subheader("Detected Features")
        if result.features:
            for feature in result.features:
                st.write(
                    f"- {feature.kind_name}: {len(feature.points)} pts "
                    f"({feature.confidence:.0%})"
                )
        else:
            st.warning("No features detected")

        estimate = result.estimate
        with st.expander("Estimated Dimensions", expanded=True):
            st.write(f"**Type:** {estimate.kind}")
            st.write(
                f"**Size:** {estimate.width:g} x {estimate.height:g} x {estimate.depth:g} {estimate.unit}"
            )
            st.write(f"**Confidence:** {estimate.confidence:.0%}")

        with st.expander("Output"):
            st.code(result.output)

    with col_b:
        st.subheader("Download")

        st.download_button(
            f"Download {settings.output_format.value.upper()}",
            data=result.output,
            file_name=f"output.{settings.output_format.value}",
            mime=MIME_TYPES[settings.output_format],
        )

        cad_output = build_cad_output(
            result.features, settings.scale, _markers().points, loaded.width, loaded.height,
            original_size=(loaded.original_width, loaded.original_height),
        )

        units = st.selectbox("Export units", ["mm", "inches", "feet", "meters"])
        st.download_button(
            "Download enhanced DXF",
            data=export_to_dxf(cad_output, DXFExportOptions(units=units)),
            file_name="cad-export.dxf",
            mime="application/dxf",
        )
        st.download_button(
            "Download enhanced SVG",
            data=export_to_enhanced_svg(
                cad_output,
                SVGExportOptions(scale=settings.scale if settings.scale > 0 else 1.0, include_grid=True),
            ),
            file_name="cad-export.svg",
            mime="image/svg+xml",
        )


if __name__ == "__main__":
    main()
