"""Rendering components for the blessed UI."""

from .pages import calculate_layout, render

__all__ = ["calculate_layout", "render"]
