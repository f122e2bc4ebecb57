"""Adapters that translate third-party tool output into diffcov models."""
