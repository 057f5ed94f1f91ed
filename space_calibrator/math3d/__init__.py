"""Rotation and quaternion helpers."""
