"""Command line interface for ratewatch."""

from .main import app, create_app, run

__all__ = ["app", "create_app", "run"]
