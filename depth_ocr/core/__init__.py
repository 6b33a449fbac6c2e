"""
Core module for Depth OCR.

This package contains modular components for turning a screen recording of a
market-depth display into a timeline:
- utils: Data classes, configuration, errors, and file I/O
- preprocessing: Header-band cropping
- recognition: Tesseract OCR wrapper
- parsing: OCR text -> Snapshot
- aggregation: Snapshots -> JSON and CSV
- video: Frame sampling and the main pipeline
"""

# Data classes and configuration
from .utils import (
    PriceLevel,
    Snapshot,
    FrameRecord,
    PipelineResult,
    PipelineConfig,
    NumericPolicy,
)

# Errors
from .utils import (
    DepthOCRError,
    FrameExtractionError,
    PreprocessingError,
    RecognitionError,
    SnapshotParseError,
)

# File I/O utilities
from .utils import list_frames, reset_directory

# Preprocessing
from .preprocessing import ImagePreprocessor

# Recognition
from .recognition import OCREngine

# Parsing
from .parsing import (
    SnapshotParser,
    FooterRule,
    FOOTER_RULES,
    add_decimal_from_end,
    parse_snapshot,
)

# Aggregation
from .aggregation import TimelineAggregator, CSV_HEADER

# Main pipeline
from .video import FrameSampler, DepthOCRPipeline


__all__ = [
    # Data classes
    "PriceLevel",
    "Snapshot",
    "FrameRecord",
    "PipelineResult",
    "PipelineConfig",
    "NumericPolicy",
    # Errors
    "DepthOCRError",
    "FrameExtractionError",
    "PreprocessingError",
    "RecognitionError",
    "SnapshotParseError",
    # File I/O
    "list_frames",
    "reset_directory",
    # Preprocessing
    "ImagePreprocessor",
    # Recognition
    "OCREngine",
    # Parsing
    "SnapshotParser",
    "FooterRule",
    "FOOTER_RULES",
    "add_decimal_from_end",
    "parse_snapshot",
    # Aggregation
    "TimelineAggregator",
    "CSV_HEADER",
    # Pipeline
    "FrameSampler",
    "DepthOCRPipeline",
]
