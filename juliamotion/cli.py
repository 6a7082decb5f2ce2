from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, Optional

from juliamotion.config import describe_config, load_config, normalise_config
from juliamotion.errors import JuliaMotionError
from juliamotion.pipeline import render_video
from juliamotion.renderers.smoothing import DEFAULT_SMOOTHING
from juliamotion.util.logging_setup import configure_root_logging, get_logger, shutdown_logging
from juliamotion.util.manifest import build_manifest, git_commit, utc_iso, write_manifest
from juliamotion.video.opencv_writer import encode_with_opencv

# CLI dest -> config key; flags left unset fall back to the config file.
_RENDER_KEYS = [
    "image_width", "image_height", "frames", "plane_width", "path", "output", "iterations",
    "fractal_progress_interval", "video_progress_interval", "time_base", "path_tolerance",
    "smoothing", "mandelbrot", "center", "workers", "window", "frames_dir", "fourcc", "show_label",
]


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="juliamotion", description="Render a video of a Julia set whose parameter follows a path.")
    p.add_argument("--config", type=str, default=None, help="Path to a config JSON; command line flags override it.")
    p.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log level.")
    p.add_argument("--log-file", type=str, default="render.log", help="Log file path (rotating). Set empty to disable file logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("render", help="Render the video.")
    r.add_argument("-w", "--image-width", type=int, default=None, help="Width of the video in pixels.")
    r.add_argument("-H", "--image-height", type=int, default=None, help="Height of the video in pixels.")
    r.add_argument("-f", "--frames", type=int, default=None, help="Number of frames; determines the video's length.")
    r.add_argument("-W", "--plane-width", type=float, default=None, help="Width of the area of the complex plane covered by the video.")
    r.add_argument("-p", "--path", type=str, default=None,
                   help="Path on the complex plane for the Julia parameter to follow, in SVG path syntax.")
    r.add_argument("-o", "--output", type=str, default=None, help="Output video file.")
    r.add_argument("-i", "--iterations", type=int, default=None,
                   help="Iterations before a pixel is considered inside the set (default 100).")
    r.add_argument("--fractal-progress-interval", type=int, default=None, metavar="MILLISECONDS",
                   help="How often to report progress of the frame currently being rendered (default 1000, 0 disables).")
    r.add_argument("--video-progress-interval", type=int, default=None, metavar="MILLISECONDS",
                   help="How often to report progress of the whole video (default 1000, 0 disables).")
    r.add_argument("-t", "--time-base", type=str, default=None, metavar="FRACTION",
                   help="Seconds between frames as N/D (default 1/30).")
    r.add_argument("--path-tolerance", type=float, default=None, help="Tolerance for approximating curves in the path (default 0.01).")
    r.add_argument("--smoothing", type=str, default=None, help=f"Smoothing strategy (default {DEFAULT_SMOOTHING}).")
    r.add_argument("-m", "--mandelbrot", action="store_true", default=None,
                   help="Render a crosshair tracing the path over the Mandelbrot set instead of the Julia set.")
    r.add_argument("--no-label", dest="show_label", action="store_false", default=None,
                   help="Do not print the parameter value beside the Mandelbrot crosshair.")
    r.add_argument("--center", type=str, default=None, metavar="RE,IM", help="Center of the view (default 0,0).")
    r.add_argument("--workers", type=int, default=None, help="Render threads (default: CPU count).")
    r.add_argument("--window", type=int, default=None, help="Frames rendered ahead of the next one written (default: workers).")
    r.add_argument("--frames-dir", type=str, default=None, help="Write PNG frames here instead of a video.")
    r.add_argument("--fourcc", type=str, default=None, help="Video codec FourCC (default mp4v).")
    r.add_argument("--progress-bar", action="store_true", help="Show a tqdm progress bar instead of log lines.")
    r.add_argument("--manifest", type=str, default="artifacts/run.json", help="Run manifest path. Set empty to skip.")

    e = sub.add_parser("encode", help="Encode a directory of PNG frames into a video using OpenCV.")
    e.add_argument("--input-dir", type=str, default="frames", help="Frames directory.")
    e.add_argument("--output", type=str, default="output.mp4", help="Output video file.")
    e.add_argument("--fps", type=float, default=30.0, help="Frames per second.")
    e.add_argument("--fourcc", type=str, default="mp4v", help="Video codec FourCC.")

    return p


def _render_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    return {k: getattr(args, k) for k in _RENDER_KEYS if getattr(args, k) is not None}


def main(argv: Optional[list] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    log_file = args.log_file if args.log_file and args.log_file.strip() else None
    configure_root_logging(level=log_level, console=True, log_file=log_file)
    logger = get_logger()

    try:
        if args.cmd == "render":
            started = utc_iso()
            cfg = load_config(args.config)
            cfg.update(_render_overrides(args))
            job, render = normalise_config(cfg)

            result = render_video(job=job, render=render, progress_bar=args.progress_bar)

            if args.manifest:
                manifest = build_manifest(started_utc=started, config=describe_config(job, render),
                                          result=result, commit=git_commit())
                write_manifest(args.manifest, manifest)
                logger.info("Run manifest written: %s", args.manifest)
            return 0

        if args.cmd == "encode":
            encode_with_opencv(input_dir=args.input_dir, output_file=args.output, fps=args.fps, fourcc=args.fourcc)
            return 0

        raise RuntimeError("Unknown command.")
    except JuliaMotionError as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 1
    finally:
        shutdown_logging()


if __name__ == "__main__":
    sys.exit(main())
