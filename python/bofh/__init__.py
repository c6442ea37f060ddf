"""bofh - interactive command-line client for bofhd."""

from __future__ import annotations

__version__ = "0.1.0"

from .cli import main

__all__ = ["main", "__version__"]
