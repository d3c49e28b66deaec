"""Steward — resilient execution and notification control for a personal automation assistant."""

__version__ = "0.1.0"
