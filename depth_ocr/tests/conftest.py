"""
Pytest configuration and shared fixtures for Depth OCR tests.

This module provides:
- Sample OCR texts for depth-ladder frames
- Snapshot builders for aggregation tests
- A fake OCR engine and frame-folder fixtures for pipeline tests

Usage:
    pytest depth_ocr/tests/ -v
    pytest depth_ocr/tests/test_parsing.py -v
"""

import sys
from pathlib import Path
from typing import Dict, List

import cv2
import numpy as np
import pytest

# Add repository root for imports
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from depth_ocr.core.utils import PriceLevel, Snapshot, RecognitionError


# =============================================================================
# Sample OCR Texts
# =============================================================================

SCENARIO_TEXT = (
    "ORDERS\n"
    "10050 2 100 10060 3 150\n"
    "Total 2,500 Total 3,000\n"
    "Open 100.00 High 110.00\n"
    "Volume 5000 Avg. price 105.00\n"
)

FULL_FRAME_TEXT = """BID ORDERS QTY OFFER ORDERS QTY
10050 2 100 10060 3 150
10045 5 420 10065 1 75
10040 1 75 10070 4 300
Total 12,500 Total 13,250
Open 100.00 High 110.00
Low 95.50 Prev. Close 99.75
Volume 5000 Avg. price 105.00
LTQ 25 LTT 2024-01-1509:15:32
Lower circuit 90.00 Upper circuit 110.00
"""


@pytest.fixture
def scenario_text() -> str:
    return SCENARIO_TEXT


@pytest.fixture
def full_frame_text() -> str:
    return FULL_FRAME_TEXT


# =============================================================================
# Snapshot Builders
# =============================================================================

def make_level(bid_price: float, ask_price: float = None) -> PriceLevel:
    """Ladder row with fixed counts; prices identify the row in assertions."""
    return PriceLevel(
        bid_price=bid_price,
        bid_orders=1,
        bid_quantity=10,
        ask_price=ask_price if ask_price is not None else bid_price + 0.1,
        ask_orders=2,
        ask_quantity=20,
    )


def make_snapshot(bid_prices: List[float], ltt: str = "2024-01-15 09:15:32") -> Snapshot:
    return Snapshot(
        order_book=tuple(make_level(p) for p in bid_prices),
        bid_total=100,
        ask_total=200,
        open=100.0,
        high=110.0,
        low=95.5,
        prev_close=99.75,
        volume=5000.0,
        avg_price=105.0,
        lower_circuit=90.0,
        upper_circuit=110.0,
        ltq=25.0,
        ltt=ltt,
    )


@pytest.fixture
def snapshot_factory():
    return make_snapshot


# =============================================================================
# Pipeline Fixtures
# =============================================================================

class FakeOCREngine:
    """
    Stands in for Tesseract.

    Frames are written as solid images whose pixel value equals the frame
    index, so the engine can tell which frame it received after cropping.
    """

    def __init__(self, texts: Dict[int, object]):
        self.texts = texts
        self.calls: List[int] = []

    def recognize(self, image: np.ndarray) -> str:
        idx = int(image.flat[0])
        self.calls.append(idx)
        text = self.texts[idx]
        if isinstance(text, Exception):
            raise text
        return text


def write_frame(folder: Path, idx: int, height: int = 200, width: int = 40) -> Path:
    path = folder / f"{idx}.png"
    cv2.imwrite(str(path), np.full((height, width, 3), idx, dtype=np.uint8))
    return path


@pytest.fixture
def frame_folder(tmp_path):
    """Folder with frames 1, 2, 3, 4 and 10 (lexicographic order would differ)."""
    folder = tmp_path / "frames_in"
    folder.mkdir()
    for idx in (1, 2, 3, 4, 10):
        write_frame(folder, idx)
    return folder


@pytest.fixture
def fake_engine_texts() -> Dict[int, object]:
    return {
        1: SCENARIO_TEXT,
        2: "SOMETHING ELSE\nnot a depth view\n",
        3: RecognitionError("Tesseract error: boom"),
        4: "ORDERS\n10050 2 100 10060 3 150\n",  # totals line missing
        10: FULL_FRAME_TEXT,
    }


@pytest.fixture
def fake_engine(fake_engine_texts) -> FakeOCREngine:
    return FakeOCREngine(fake_engine_texts)
