# src/tandem/config/__init__.py
"""Configuration package for tandem."""

from .config import SchedulerConfig, SystemConfig, TandemConfig, config

__all__ = ["TandemConfig", "SchedulerConfig", "SystemConfig", "config"]
