# src/tandem/models/__init__.py
"""Data models for tandem."""

from .settlement import Settlement

__all__ = ["Settlement"]
