"""Scenario DSL: decorators, iteration context, checks, and HTTP client."""
