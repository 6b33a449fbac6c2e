"""
Utility functions and data classes for Depth OCR.

Contains shared data structures, configuration defaults, the error hierarchy,
and file I/O helpers.
"""

import math
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, Union


Number = Union[int, float]


# =============================================================================
# Configuration Defaults
# =============================================================================

DEFAULT_FPS = 5
DEFAULT_TOP_CROP = 150  # Height of the header band removed from every frame
DEFAULT_LANG = "eng"
DEFAULT_TESSERACT_CONFIG = "--psm 6"
FRAME_EXTENSION = ".png"
ORDERS_MARKER = "ORDERS"

JSON_OUTPUT_NAME = "output.json"
CSV_OUTPUT_NAME = "output.csv"


class NumericPolicy(Enum):
    """How malformed numeric OCR tokens are handled."""
    LENIENT = "lenient"  # Leading-prefix parse, NaN when nothing is numeric
    STRICT = "strict"  # Raise SnapshotParseError


@dataclass
class PipelineConfig:
    """Settings for a full video -> timeline run."""
    fps: float = DEFAULT_FPS
    top_crop: int = DEFAULT_TOP_CROP
    work_dir: str = "."
    sampler: str = "ffmpeg"
    lang: str = DEFAULT_LANG
    tesseract_config: str = DEFAULT_TESSERACT_CONFIG
    numeric_policy: NumericPolicy = NumericPolicy.LENIENT
    keep_crops: bool = True
    verbose: bool = False

    @property
    def frames_dir(self) -> Path:
        return Path(self.work_dir) / "frames"

    @property
    def cropped_dir(self) -> Path:
        return Path(self.work_dir) / "cropped"


# =============================================================================
# Errors
# =============================================================================

class DepthOCRError(Exception):
    """Base class for pipeline errors."""


class FrameExtractionError(DepthOCRError):
    """Frames could not be sampled from the input video. Aborts the run."""


class PreprocessingError(DepthOCRError):
    """A single frame could not be read or cropped."""


class RecognitionError(DepthOCRError):
    """The OCR engine failed on a single frame."""


class SnapshotParseError(DepthOCRError, ValueError):
    """OCR text looked like a depth ladder but could not be parsed."""


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class PriceLevel:
    """One row of the depth ladder."""
    bid_price: float
    bid_orders: Number
    bid_quantity: Number
    ask_price: float
    ask_orders: Number
    ask_quantity: Number

    def to_dict(self) -> dict:
        return {
            "bidPrice": _json_number(self.bid_price),
            "bidOrders": _json_number(self.bid_orders),
            "bidQuantity": _json_number(self.bid_quantity),
            "askPrice": _json_number(self.ask_price),
            "askOrders": _json_number(self.ask_orders),
            "askQuantity": _json_number(self.ask_quantity),
        }


@dataclass(frozen=True)
class Snapshot:
    """A parsed frame: the ladder, its totals, and the session statistics."""
    order_book: Tuple[PriceLevel, ...]
    bid_total: Number
    ask_total: Number
    open: Optional[Number] = None
    high: Optional[Number] = None
    low: Optional[Number] = None
    prev_close: Optional[Number] = None
    volume: Optional[Number] = None
    avg_price: Optional[Number] = None
    lower_circuit: Optional[Number] = None
    upper_circuit: Optional[Number] = None
    ltq: Optional[Number] = None
    ltt: Optional[str] = None

    def to_dict(self) -> dict:
        """Serialized form. Footer fields that were never read are left out."""
        record = {
            "orderBook": [level.to_dict() for level in self.order_book],
            "bidTotal": _json_number(self.bid_total),
            "askTotal": _json_number(self.ask_total),
            "open": _json_number(self.open),
            "high": _json_number(self.high),
            "low": _json_number(self.low),
            "prevClose": _json_number(self.prev_close),
            "volume": _json_number(self.volume),
            "avgPrice": _json_number(self.avg_price),
            "lowerCircuit": _json_number(self.lower_circuit),
            "upperCircuit": _json_number(self.upper_circuit),
            "ltq": _json_number(self.ltq),
            "ltt": self.ltt,
        }
        return {
            key: value for key, value in record.items()
            if value is not None or key not in _FOOTER_KEYS
        }


@dataclass
class FrameRecord:
    """Outcome of processing a single frame."""
    frame_index: int
    frame_path: str
    status: str  # "parsed", "rejected" or "failed"
    error: Optional[str] = None


@dataclass
class PipelineResult:
    """Final results of a run."""
    snapshots: List[Snapshot] = field(default_factory=list)
    frames: List[FrameRecord] = field(default_factory=list)
    json_path: Optional[str] = None
    csv_path: Optional[str] = None

    @property
    def frames_processed(self) -> int:
        return len(self.frames)

    @property
    def frames_parsed(self) -> int:
        return sum(1 for f in self.frames if f.status == "parsed")

    @property
    def frames_failed(self) -> int:
        return sum(1 for f in self.frames if f.status == "failed")


_FOOTER_KEYS = {
    "open", "high", "low", "prevClose", "volume", "avgPrice",
    "lowerCircuit", "upperCircuit", "ltq", "ltt",
}


def _json_number(value):
    if isinstance(value, float):
        # NaN is not valid JSON
        if math.isnan(value):
            return None
        if value.is_integer():
            return int(value)
    return value


# =============================================================================
# File I/O Utilities
# =============================================================================

def frame_index(path: Path) -> int:
    """Integer index encoded in a frame file name ("12.png" -> 12)."""
    return int(Path(path).stem)


def list_frames(folder: Path, extension: str = FRAME_EXTENSION) -> List[Path]:
    """
    List integer-named frames in a folder.

    Frames are ordered numerically, so "10.png" comes after "2.png".
    Files whose stem is not an integer are ignored.
    """
    folder = Path(folder)
    frames = [
        f for f in folder.iterdir()
        if f.is_file() and f.suffix.lower() == extension and f.stem.isdigit()
    ]
    return sorted(frames, key=frame_index)


def reset_directory(directory: Path) -> Path:
    """Empty a working directory, creating it if it does not exist."""
    directory = Path(directory)
    if not directory.exists():
        print(f"[Pipeline] Directory {directory} does not exist. Creating it.")
        directory.mkdir(parents=True)
        return directory

    for entry in directory.iterdir():
        if entry.is_dir():
            shutil.rmtree(entry)
        else:
            entry.unlink()
    print(f"[Pipeline] All files deleted in {directory}")
    return directory
