"""
OCR recognition engine for Depth OCR.

Wraps Tesseract (through pytesseract) to turn one cropped frame into a
block of text.
"""

from pathlib import Path

import cv2
import numpy as np

from .utils import RecognitionError, DEFAULT_LANG, DEFAULT_TESSERACT_CONFIG


class OCREngine:
    """Wrapper for the Tesseract OCR engine."""

    def __init__(
        self,
        lang: str = DEFAULT_LANG,
        config: str = DEFAULT_TESSERACT_CONFIG
    ):
        self.lang = lang
        self.config = config
        self.engine = None
        self._initialize_engine()

    def _initialize_engine(self):
        """Initialize Tesseract."""
        try:
            import pytesseract
        except ImportError:
            raise RuntimeError("No OCR engine available. Install pytesseract.")
        self.engine = pytesseract
        print(f"[OCR] Initialized Tesseract (lang={self.lang}, config={self.config!r})")

    def recognize(self, image: np.ndarray) -> str:
        """
        Recognize the text block of one frame.

        Raises:
            RecognitionError: if the image is empty or Tesseract fails
        """
        if image is None or image.size == 0:
            raise RecognitionError("Empty image")

        try:
            return self.engine.image_to_string(image, lang=self.lang, config=self.config)
        except Exception as e:
            raise RecognitionError(f"Tesseract error: {e}") from e

    def recognize_file(self, image_path: Path) -> str:
        image = cv2.imread(str(image_path))
        if image is None:
            raise RecognitionError(f"Could not load image: {image_path}")
        return self.recognize(image)
