"""Calibration state machine and its external seams."""
