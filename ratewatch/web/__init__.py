"""ratewatch web API."""

from ratewatch.web.app import create_app

__all__ = ["create_app"]
