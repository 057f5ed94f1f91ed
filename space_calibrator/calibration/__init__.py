"""Calibration algorithms over paired pose samples."""
