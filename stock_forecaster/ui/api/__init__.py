"""HTTP API for the stock forecaster."""

from .app import create_app

__all__ = ["create_app"]
