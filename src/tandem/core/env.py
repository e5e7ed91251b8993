# src/tandem/core/env.py
"""Environment configuration utilities."""

from __future__ import annotations

import os

from dotenv import load_dotenv

from ..config import TandemConfig, config


def load_env(
    dotenv_path: str | os.PathLike[str] | None = None,
    *,
    reload_config: bool = False,
) -> TandemConfig:
    """Load variables from a ``.env`` file into ``os.environ``.

    Variables already set in the environment win. The module-level
    ``config`` is built at import time; pass ``reload_config=True`` to get a
    configuration rebuilt from the updated environment.
    """
    load_dotenv(dotenv_path)
    if reload_config:
        return TandemConfig.load()
    return config


def get_config() -> TandemConfig:
    """Get the global configuration instance."""
    return config


__all__ = ["load_env", "get_config"]
