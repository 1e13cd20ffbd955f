"""Roster - a personal people registry."""

__version__ = "0.1.0"
