"""Marker import: turn loosely structured location rows into map markers."""

__version__ = "0.1.0"
