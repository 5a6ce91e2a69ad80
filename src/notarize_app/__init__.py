"""Notarize, staple and verify signed macOS applications."""

__version__ = "0.1.0"
