"""Command-line interface for Flute Tuner."""

from .main import main

__all__ = ["main"]
