"""Compliance posture scoring and gap-analysis engine."""

__version__ = "1.0.0"
