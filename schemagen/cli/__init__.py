"""Command-line interface for schemagen."""

from .commands import app, run

__all__ = ["app", "run"]
