"""Internal helpers: configuration, errors, logging, and shared types."""
