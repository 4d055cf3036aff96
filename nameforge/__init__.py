"""Procedural name generation for fictional cultures."""

__version__ = "0.1.0"
