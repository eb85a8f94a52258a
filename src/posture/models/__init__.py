"""Data models for the posture engine."""
