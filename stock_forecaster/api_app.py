"""Convenience wrapper for launching the Stock Forecaster FastAPI service."""

from __future__ import annotations

import logging
from typing import Any

import uvicorn

LOGGER = logging.getLogger(__name__)


def run_api(host: str = "127.0.0.1", port: int = 8000, **uvicorn_options: Any) -> None:
    """Start the FastAPI application using uvicorn."""

    LOGGER.info("Starting API server on http://%s:%s", host, port)
    uvicorn.run(
        "stock_forecaster.ui.api.app:create_app",
        host=host,
        port=port,
        factory=True,
        **uvicorn_options,
    )


__all__ = ["run_api"]
