"""
Video processing for Depth OCR.

Contains the frame sampler (ffmpeg or OpenCV) and the main pipeline that
takes a screen recording through cropping, OCR and parsing into the
output timeline.
"""

import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

import cv2
from tqdm import tqdm

from .utils import (
    FrameRecord, PipelineConfig, PipelineResult, Snapshot,
    FrameExtractionError, PreprocessingError, RecognitionError, SnapshotParseError,
    FRAME_EXTENSION, frame_index, list_frames, reset_directory
)
from .preprocessing import ImagePreprocessor
from .recognition import OCREngine
from .parsing import SnapshotParser
from .aggregation import TimelineAggregator


VIDEO_EXTENSIONS = {'.mp4', '.avi', '.mov', '.mkv', '.webm'}
SAMPLER_BACKENDS = ("ffmpeg", "opencv")


class FrameSampler:
    """Samples a video into 1-based, integer-named frame images."""

    def __init__(
        self,
        backend: str = "ffmpeg",
        ffmpeg_bin: str = "ffmpeg",
        extension: str = FRAME_EXTENSION
    ):
        if backend not in SAMPLER_BACKENDS:
            raise ValueError(f"Unknown sampler backend: {backend}")
        self.backend = backend
        self.ffmpeg_bin = ffmpeg_bin
        self.extension = extension

    def extract(self, video_path: Path, frames_dir: Path, fps: float) -> List[Path]:
        """
        Extract frames from a video.

        Args:
            video_path: Input video file
            frames_dir: Directory that receives 1.png, 2.png, ...
            fps: Sampling rate applied to the source video

        Returns:
            Frame paths in ascending numeric order

        Raises:
            FrameExtractionError: if sampling fails or yields no frames
        """
        if fps <= 0:
            raise ValueError("fps must be > 0")

        video_path = Path(video_path).resolve()
        if not video_path.is_file():
            raise FrameExtractionError(f"Input video not found: {video_path}")

        frames_dir = Path(frames_dir)
        frames_dir.mkdir(parents=True, exist_ok=True)

        if self.backend == "ffmpeg":
            self._extract_ffmpeg(video_path, frames_dir, fps)
        else:
            self._extract_opencv(video_path, frames_dir, fps)

        frames = list_frames(frames_dir, self.extension)
        if not frames:
            raise FrameExtractionError(f"No frames were extracted from {video_path}")

        print(f"[Sampler] Frame extraction completed: {len(frames)} frames")
        return frames

    def _extract_ffmpeg(self, video_path: Path, frames_dir: Path, fps: float):
        cmd = [
            self.ffmpeg_bin,
            "-hide_banner",
            "-loglevel", "error",
            "-y",
            "-i", str(video_path),
            "-vf", f"fps={fps}",
            str(frames_dir / f"%d{self.extension}"),
        ]
        try:
            completed = subprocess.run(cmd, capture_output=True, text=True, errors="replace")
        except FileNotFoundError as e:
            raise FrameExtractionError(f"ffmpeg not found: {self.ffmpeg_bin}") from e

        if completed.returncode != 0:
            print(f"[Sampler] stderr: {completed.stderr.strip()}")
            raise FrameExtractionError(f"FFmpeg process exited with code {completed.returncode}")

    def _extract_opencv(self, video_path: Path, frames_dir: Path, fps: float):
        cap = cv2.VideoCapture(str(video_path))
        if not cap.isOpened():
            raise FrameExtractionError(f"Could not open video: {video_path}")

        try:
            source_fps = float(cap.get(cv2.CAP_PROP_FPS) or 0.0)
            step = max(1, int(round(source_fps / fps))) if source_fps > 0 else 1

            source_idx = 0
            written = 0
            while True:
                ret, frame = cap.read()
                if not ret:
                    break
                if source_idx % step == 0:
                    written += 1
                    cv2.imwrite(str(frames_dir / f"{written}{self.extension}"), frame)
                source_idx += 1
        finally:
            cap.release()


class DepthOCRPipeline:
    """Main pipeline: video -> frames -> crop -> OCR -> snapshots -> JSON/CSV."""

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        sampler: Optional[FrameSampler] = None,
        preprocessor: Optional[ImagePreprocessor] = None,
        ocr_engine: Optional[OCREngine] = None,
        parser: Optional[SnapshotParser] = None,
        aggregator: Optional[TimelineAggregator] = None
    ):
        self.config = config or PipelineConfig()

        # Initialize components
        self.sampler = sampler or FrameSampler(backend=self.config.sampler)
        self.preprocessor = preprocessor or ImagePreprocessor(top_crop=self.config.top_crop)
        self.ocr_engine = ocr_engine or OCREngine(
            lang=self.config.lang, config=self.config.tesseract_config
        )
        self.parser = parser or SnapshotParser(numeric_policy=self.config.numeric_policy)
        self.aggregator = aggregator or TimelineAggregator()

    def process(self, input_path: str, out_dir: str) -> PipelineResult:
        """
        Process a video or a folder of integer-named frames.

        Args:
            input_path: Path to video file or folder of frames
            out_dir: Directory for output.json and output.csv

        Returns:
            PipelineResult with the parsed timeline and per-frame outcomes

        Raises:
            FrameExtractionError: if frames cannot be sampled from the video
        """
        input_path = Path(input_path)
        frames = self._load_frames(input_path)
        print(f"[Pipeline] Loaded {len(frames)} frames")

        save_crops = self.config.keep_crops
        if save_crops and _is_within(input_path, self.config.cropped_dir):
            # Re-running on saved crops: leave the input frames untouched
            print(f"[Pipeline] Input is inside {self.config.cropped_dir}; cropped frames will not be saved")
            save_crops = False
        if save_crops:
            reset_directory(self.config.cropped_dir)

        result = PipelineResult()
        for frame_path in tqdm(frames, desc="Processing frames"):
            record, snapshot = self._process_frame(frame_path, save_crops)
            result.frames.append(record)
            if snapshot is not None:
                result.snapshots.append(snapshot)

        print(
            f"[Pipeline] Parsed {result.frames_parsed}/{result.frames_processed} frames "
            f"({result.frames_failed} failed)"
        )

        json_path, csv_path = self.aggregator.save(result.snapshots, Path(out_dir))
        result.json_path = str(json_path)
        result.csv_path = str(csv_path)
        return result

    def _load_frames(self, input_path: Path) -> List[Path]:
        if input_path.is_dir():
            return list_frames(input_path, self.sampler.extension)

        frames_dir = reset_directory(self.config.frames_dir)
        return self.sampler.extract(input_path, frames_dir, self.config.fps)

    def _process_frame(self, frame_path: Path, save_crops: bool) -> Tuple[FrameRecord, Optional[Snapshot]]:
        """Crop, recognize and parse a single frame."""
        idx = frame_index(frame_path)

        try:
            if save_crops:
                cropped = self.preprocessor.crop_file(
                    frame_path, self.config.cropped_dir / frame_path.name
                )
            else:
                cropped = self.preprocessor.crop_top(self.preprocessor.load(frame_path))

            text = self.ocr_engine.recognize(self.preprocessor.prepare_for_ocr(cropped))
            snapshot = self.parser.parse(text)

        except (PreprocessingError, RecognitionError, SnapshotParseError) as e:
            print(f"[Pipeline] Error processing {frame_path.name}: {e}")
            return FrameRecord(idx, str(frame_path), "failed", str(e)), None

        if snapshot is None:
            if self.config.verbose:
                print(f"[Parser] {frame_path.name}: not a depth view, skipped")
            return FrameRecord(idx, str(frame_path), "rejected"), None

        return FrameRecord(idx, str(frame_path), "parsed"), snapshot


def _is_within(path: Path, directory: Path) -> bool:
    """True when path is directory itself or lies inside it."""
    path = Path(path).resolve()
    directory = Path(directory).resolve()
    return path == directory or directory in path.parents
