#!/usr/bin/env python3
"""
Depth OCR: market-depth screen recordings to a time series

Samples frames from a screen recording of an order-book display, crops the
header band, runs Tesseract on each frame and parses the depth ladder and
session statistics into output.json and output.csv.

Usage:
    python -m depth_ocr.depth_ocr --input resource.mp4 --out_dir out
    python -m depth_ocr.depth_ocr --input frames/ --out_dir out --numeric_policy strict
"""

import argparse
import sys
from pathlib import Path

from depth_ocr.core import (
    DepthOCRPipeline,
    FrameExtractionError,
    NumericPolicy,
    PipelineConfig,
)
from depth_ocr.core.utils import (
    DEFAULT_FPS, DEFAULT_LANG, DEFAULT_TESSERACT_CONFIG, DEFAULT_TOP_CROP
)
from depth_ocr.core.video import SAMPLER_BACKENDS


# =============================================================================
# CLI Interface
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Depth OCR: order-book screen recordings to JSON/CSV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sample a recording at 5 fps and parse every frame
  depth-ocr --input resource.mp4 --out_dir out

  # Re-run OCR on frames sampled earlier
  depth-ocr --input frames/ --out_dir out

  # Fail frames with malformed numbers instead of recording NaN
  depth-ocr --input resource.mp4 --numeric_policy strict
        """
    )

    parser.add_argument(
        "--input", "-i", default="resource.mp4",
        help="Path to video file or folder of integer-named frames (default: resource.mp4)"
    )
    parser.add_argument(
        "--out_dir", "-o", default=".",
        help="Directory for output.json and output.csv (default: .)"
    )
    parser.add_argument(
        "--work_dir", default=".",
        help="Directory holding the frames/ and cropped/ working folders (default: .)"
    )
    parser.add_argument(
        "--fps", type=float, default=DEFAULT_FPS,
        help=f"Frames sampled per second of source video (default: {DEFAULT_FPS})"
    )
    parser.add_argument(
        "--top_crop", type=int, default=DEFAULT_TOP_CROP,
        help=f"Header band height removed from each frame, in pixels (default: {DEFAULT_TOP_CROP})"
    )
    parser.add_argument(
        "--sampler", choices=SAMPLER_BACKENDS, default="ffmpeg",
        help="Frame sampling backend (default: ffmpeg)"
    )
    parser.add_argument(
        "--lang", "-l", default=DEFAULT_LANG,
        help=f"Tesseract language (default: {DEFAULT_LANG})"
    )
    parser.add_argument(
        "--tesseract_config", default=DEFAULT_TESSERACT_CONFIG,
        help=f"Extra Tesseract options (default: '{DEFAULT_TESSERACT_CONFIG}')"
    )
    parser.add_argument(
        "--numeric_policy", choices=[p.value for p in NumericPolicy],
        default=NumericPolicy.LENIENT.value,
        help="lenient: malformed numbers become NaN; strict: drop the frame (default: lenient)"
    )
    parser.add_argument(
        "--no_crops", action="store_true",
        help="Do not save cropped frames to the work directory"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Verbose output"
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input path does not exist: {args.input}")
        return 1
    if args.fps <= 0:
        print("Error: --fps must be > 0")
        return 1

    config = PipelineConfig(
        fps=args.fps,
        top_crop=args.top_crop,
        work_dir=args.work_dir,
        sampler=args.sampler,
        lang=args.lang,
        tesseract_config=args.tesseract_config,
        numeric_policy=NumericPolicy(args.numeric_policy),
        keep_crops=not args.no_crops,
        verbose=args.verbose,
    )

    print(f"[Depth OCR] Input: {args.input}")
    print(f"[Depth OCR] Output: {args.out_dir}")
    print(f"[Depth OCR] Sampling: {config.fps} fps ({config.sampler})")
    print()

    pipeline = DepthOCRPipeline(config)
    try:
        result = pipeline.process(args.input, args.out_dir)
    except FrameExtractionError as e:
        print(f"[Depth OCR] Frame extraction failed: {e}")
        return 1

    print("\n" + "="*60)
    print("DEPTH OCR RESULT")
    print("="*60)
    print(f"Frames processed: {result.frames_processed}")
    print(f"Snapshots parsed: {result.frames_parsed}")
    print(f"Frames failed: {result.frames_failed}")
    print(f"Ladder rows: {sum(len(s.order_book) for s in result.snapshots)}")
    print("-"*60)
    print(f"JSON: {result.json_path}")
    print(f"CSV:  {result.csv_path}")
    print("="*60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
