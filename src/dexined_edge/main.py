import argparse
import logging
import sys
import time

import cv2

from dexined_edge.display import INPUT_WINDOW, OUTPUT_WINDOW, Display, NullDisplay
from dexined_edge.errors import ModelLoadError, PostprocessError, SourceOpenError
from dexined_edge.models import BACKENDS, PROVIDER_CHOICES, load_detector
from dexined_edge.timer import FPSTimer, StageTimer
from dexined_edge.video_source import VideoSource

log = logging.getLogger(__name__)

MODEL_PATH = "edge_detection_dexined_2024sep.onnx"
QUIT_KEYS = (27, ord("q"))  # Esc, q
SHOW_CHOICES = ("fused", "average")

ABOUT = "This sample demonstrates edge detection with the DexiNed network.\n"


def build_parser():
    parser = argparse.ArgumentParser(
        prog="dexined-edge",
        description=ABOUT,
        add_help=False,
    )
    parser.add_argument("-h", "--help", action="store_true", help="Print help message")
    parser.add_argument(
        "-i", "--input",
        default=None,
        help="Path to input image or video file, or a camera index. "
             "Skip this argument to capture frames from camera 0."
    )
    parser.add_argument("--model", default=MODEL_PATH, help="Path to the DexiNed .onnx model file")
    parser.add_argument("--backend", default="onnx", choices=BACKENDS, help="Inference backend")
    parser.add_argument(
        "--provider",
        default="auto",
        choices=PROVIDER_CHOICES,
        help="ONNX Runtime execution provider (onnx backend only)"
    )
    parser.add_argument(
        "--device-id",
        type=int,
        default=0,
        help="GPU index for the dml provider (onnx backend only)"
    )
    parser.add_argument(
        "--show",
        default="fused",
        choices=SHOW_CHOICES,
        help="Edge map to display: the fused stage or the average of all stages"
    )
    parser.add_argument(
        "--fused-index",
        type=int,
        default=-1,
        help="Network output used as the fused map (Python index, -1 = last)"
    )
    parser.add_argument("--max-frames", type=int, default=0, help="Stop after N frames (0 = whole stream)")
    parser.add_argument("--warmup", type=int, default=30, help="Frames to ignore in timing stats")
    parser.add_argument(
        "--timing-interval",
        type=int,
        default=120,
        help="Frames between timing reports (0 disables reports)"
    )
    parser.add_argument(
        "--stage-timing",
        action="store_true",
        help="Report preprocess/run/postprocess timing breakdown"
    )
    parser.add_argument("--fps-overlay", action="store_true", help="Draw FPS onto the output window")
    parser.add_argument("--no-display", action="store_true", help="Disable cv2.imshow for pure throughput testing")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostic log level"
    )
    return parser


def setup_logging(level):
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )


def draw_fps(edge_map, fps):
    out = cv2.cvtColor(edge_map, cv2.COLOR_GRAY2BGR)
    cv2.putText(
        out,
        f"FPS: {fps:.2f}",
        (20, 40),
        cv2.FONT_HERSHEY_SIMPLEX,
        1.0,
        (0, 255, 0),
        2
    )
    return out


def run(source, detector, display, show="fused", max_frames=0, warmup=30,
        timing_interval=120, stage_timing=False, fps_overlay=False):
    """
    Capture -> detect -> display until end of stream, a quit key or
    max_frames. Returns the number of frames read from the source.
    """
    if show not in SHOW_CHOICES:
        raise ValueError(f"show must be one of: {list(SHOW_CHOICES)}")

    fps_timer = FPSTimer()
    stats = StageTimer(warmup=warmup, stage_timing=stage_timing)
    frame_idx = 0

    while True:
        t0 = time.perf_counter()
        ret, frame = source.read()
        t1 = time.perf_counter()
        if not ret:
            display.wait_any_key()
            break

        frame_idx += 1
        try:
            if stage_timing:
                maps, pre_t, run_t, post_t = detector.process_timed(frame)
            else:
                maps = detector.process(frame)
                pre_t = run_t = post_t = 0.0
        except PostprocessError as exc:
            log.warning("Skipping frame %d: %s", frame_idx, exc)
            maps = None
        t2 = time.perf_counter()

        display.show(INPUT_WINDOW, frame)
        if maps is not None:
            edge_map = maps.fused if show == "fused" else maps.averaged
            fps = fps_timer.update()
            if fps_overlay:
                edge_map = draw_fps(edge_map, fps)
            display.show(OUTPUT_WINDOW, edge_map)
        # Pumps the window event loop even when the frame was skipped
        key = display.poll_key(1)
        t3 = time.perf_counter()

        if maps is not None:
            timing = {"decode": (t1 - t0) * 1000.0, "infer": (t2 - t1) * 1000.0, "render": (t3 - t2) * 1000.0}
            if stage_timing:
                timing.update(pre=pre_t, run=run_t, post=post_t)
            recorded = stats.add((t3 - t0) * 1000.0, **timing)
            if recorded and timing_interval > 0 and stats.frames % timing_interval == 0:
                print(stats.report())

        if key in QUIT_KEYS:
            log.info("Quit key pressed after %d frames", frame_idx)
            break
        if max_frames > 0 and frame_idx >= max_frames:
            break

    if timing_interval > 0 and stats.frames > 0 and stats.frames % timing_interval != 0:
        print(stats.report())

    return frame_idx


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.help:
        print(ABOUT)
        parser.print_help()
        return -1

    setup_logging(args.log_level)

    try:
        detector = load_detector(
            args.model,
            backend=args.backend,
            provider=args.provider,
            device_id=args.device_id,
            fused_index=args.fused_index,
        )
    except ModelLoadError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    n_outputs = len(detector.output_names)
    if not -n_outputs <= args.fused_index < n_outputs:
        print(
            f"Error: --fused-index {args.fused_index} out of range, model has {n_outputs} outputs",
            file=sys.stderr,
        )
        return 1

    try:
        source = VideoSource(args.input)
    except (SourceOpenError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    display_cls = NullDisplay if args.no_display else Display
    with source:
        try:
            display = display_cls()
        except cv2.error as exc:
            # e.g. opencv-python-headless has no GUI backend
            print(f"Error: cannot open display windows: {exc}", file=sys.stderr)
            return 1

        with display:
            run(
                source,
                detector,
                display,
                show=args.show,
                max_frames=args.max_frames,
                warmup=args.warmup,
                timing_interval=args.timing_interval,
                stage_timing=args.stage_timing,
                fps_overlay=args.fps_overlay,
            )

    return 0


if __name__ == "__main__":
    sys.exit(main())
