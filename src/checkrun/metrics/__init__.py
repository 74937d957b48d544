"""Run metrics: result models, collection, and export."""
