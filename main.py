from alarmcam.driver import run_detection
from alarmcam.logger_config import setup_logger
from alarmcam.parameters import DetectorParameters
from alarmcam.save_results import save_detections, save_trace_to_zarr
from alarmcam.analysis.signal_analysis import save_signal_plot


if __name__ == "__main__":
    video_path = "./videos/doorway_night.mp4"

    save_base_path = "./saved_detections"
    zarr_path = f"{save_base_path}/signal_trace.zarr"

    setup_logger("alarmcam")

    params = DetectorParameters(
        target_fps=10,
        confirm_frames=2,
        pause_duration_ms=3000,
    )

    print("Running detection...")
    run = run_detection(video_path, params, max_frames=3000)

    save_detections(run.events, save_base_path)
    save_trace_to_zarr(run.trace, zarr_path, run.fps, params)
    save_signal_plot(run.trace, output_path=f"{save_base_path}/signal_trace.png", show=False)

    print(f"{len(run.events)} detections in {run.frames_read} frames")
