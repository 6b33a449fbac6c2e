"""
Image preprocessing functions for Depth OCR.

Removes the fixed header band above the depth ladder and prepares frames
for Tesseract.
"""

from pathlib import Path

import cv2
import numpy as np

from .utils import PreprocessingError, DEFAULT_TOP_CROP


class ImagePreprocessor:
    """Crops the header band off screen-recorded depth frames."""

    def __init__(self, top_crop: int = DEFAULT_TOP_CROP):
        if top_crop < 0:
            raise ValueError("top_crop must be >= 0")
        self.top_crop = top_crop

    def crop_top(self, image: np.ndarray) -> np.ndarray:
        """
        Remove top_crop pixels from the top of the image.

        The result keeps the full width and is max(1, height - top_crop)
        pixels high.
        """
        if image is None or image.ndim < 2 or image.shape[0] == 0 or image.shape[1] == 0:
            raise PreprocessingError("Unable to get image dimensions")

        height = image.shape[0]
        top = min(self.top_crop, height - 1)
        return image[top:].copy()

    def prepare_for_ocr(self, image: np.ndarray) -> np.ndarray:
        """Grayscale conversion ahead of recognition."""
        if len(image.shape) == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        return image

    def load(self, image_path: Path) -> np.ndarray:
        image = cv2.imread(str(image_path))
        if image is None:
            raise PreprocessingError(f"Could not load image: {image_path}")
        return image

    def crop_file(self, input_path: Path, output_path: Path) -> np.ndarray:
        """Read, crop and write one frame. Returns the cropped image."""
        cropped = self.crop_top(self.load(input_path))

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        if not cv2.imwrite(str(output_path), cropped):
            raise PreprocessingError(f"Could not write image: {output_path}")
        return cropped
