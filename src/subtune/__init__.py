"""Subtune - terminal client for Subsonic-compatible music servers."""

__version__ = "0.3.0"
