from __future__ import annotations

import json
import logging
from pathlib import Path

import numpy as np
import zarr

from alarmcam.events import DetectionEvent
from alarmcam.parameters import DetectorParameters
from alarmcam.trace import BOOL_FIELDS, FLOAT_FIELDS, INT_FIELDS, SignalTrace

logger = logging.getLogger(__name__)


def save_trace_to_zarr(
    trace: SignalTrace,
    output_path: str | Path,
    fps: float,
    params: DetectorParameters | None = None,
) -> None:
    """
    Save a signal trace to zarr format.

    All arrays have shape (n_ticks,) along a shared "tick" dimension.

    Args:
        trace: SignalTrace collected during a run
        output_path: Path to save zarr store
        fps: Source frame rate
        params: Detector parameters used for the run, stored as JSON
    """
    output_path = str(output_path)
    logger.info("Saving signal trace to %s", output_path)

    # v2 format for xarray compatibility
    root = zarr.open_group(output_path, mode="w", zarr_format=2)

    root.attrs["fps"] = float(fps)
    root.attrs["n_ticks"] = trace.n_ticks
    if params is not None:
        root.attrs["parameters"] = params.to_json()

    for name in FLOAT_FIELDS + INT_FIELDS:
        arr = root.create_array(name, data=getattr(trace, name))
        arr.attrs["_ARRAY_DIMENSIONS"] = ["tick"]
    for name in BOOL_FIELDS:
        # stored as uint8, bool arrays do not round-trip through every reader
        arr = root.create_array(name, data=getattr(trace, name).astype(np.uint8))
        arr.attrs["_ARRAY_DIMENSIONS"] = ["tick"]

    logger.info("Saved %d ticks to %s", trace.n_ticks, output_path)


def load_trace_from_zarr(zarr_path: str | Path) -> SignalTrace:
    """Load a SignalTrace written by save_trace_to_zarr."""
    root = zarr.open_group(str(zarr_path), mode="r")
    columns: dict[str, np.ndarray] = {}
    for name in FLOAT_FIELDS:
        columns[name] = np.asarray(root[name][:], dtype=np.float64)
    for name in INT_FIELDS:
        columns[name] = np.asarray(root[name][:], dtype=np.int32)
    for name in BOOL_FIELDS:
        columns[name] = np.asarray(root[name][:]).astype(bool)
    return SignalTrace(**columns)


def load_parameters_from_zarr(zarr_path: str | Path) -> DetectorParameters | None:
    """Detector parameters stored with a trace, if any."""
    root = zarr.open_group(str(zarr_path), mode="r")
    params_json = root.attrs.get("parameters")
    if params_json is None:
        return None
    return DetectorParameters.from_json(params_json)


def read_trace_fps(zarr_path: str | Path) -> float:
    root = zarr.open_group(str(zarr_path), mode="r")
    fps = root.attrs.get("fps")
    try:
        return float(fps)
    except (TypeError, ValueError):
        return 0.0


def save_detections(
    events: list[DetectionEvent],
    output_dir: str | Path,
    *,
    save_images: bool = True,
) -> Path:
    """
    Write detections.json and, optionally, the PNG evidence of every event.

    Images are written as <id>_<kind>.png; only bytes handles are written.

    Returns:
        Path of the JSON file
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if save_images:
        image_dir = output_dir / "evidence"
        image_dir.mkdir(exist_ok=True)
        for event in events:
            for kind, image in (
                ("before", event.before_image),
                ("after", event.after_image),
                ("background", event.background_image),
                ("marked", event.marked_image),
            ):
                if isinstance(image, bytes) and image:
                    (image_dir / f"{event.id}_{kind}.png").write_bytes(image)

    json_path = output_dir / "detections.json"
    json_path.write_text(json.dumps([e.to_dict() for e in events], indent=2))
    logger.info("Saved %d detections to %s", len(events), json_path)
    return json_path
