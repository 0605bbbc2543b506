"""Shelfwise - personal book tracking with reading progress and statistics."""

__version__ = "0.1.0"
