"""Execution engine: the shared-iterations run session."""
