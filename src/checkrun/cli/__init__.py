"""Command-line interface for checkrun."""
