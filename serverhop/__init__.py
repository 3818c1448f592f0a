"""Discover and hop between servers of a game place."""

__version__ = "0.1.0"
