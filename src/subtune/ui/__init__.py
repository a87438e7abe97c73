"""Blessed terminal UI for Subtune."""
