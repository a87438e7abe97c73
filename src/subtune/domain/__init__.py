"""Domain layer - catalog, library models and playback."""
