"""Rigid offset calibration between two tracking systems."""

__version__ = "0.1.0"
