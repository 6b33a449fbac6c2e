"""Depth OCR: screen recordings of a market-depth display to a time series."""

__version__ = "0.1.0"
