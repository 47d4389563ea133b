"""J.A.R.V.I.S. voice assistant client."""

from __future__ import annotations

from typing import Any

__all__ = ["main"]


def main(*args: Any, **kwargs: Any) -> Any:
    """Entry point for the command line (lazy import)."""
    from .cli import cli

    return cli(*args, **kwargs)
