"""Tutor matching and booking conversation service."""

__version__ = "0.1.0"
