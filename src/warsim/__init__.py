"""Warsim: turn-based siege and war simulation engine."""

__version__ = "0.1.0"
