"""Command-line interface for global-marks."""
