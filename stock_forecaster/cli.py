"""Command line entry point for the stock forecaster."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

import pandas as pd

from stock_forecaster.api_app import run_api
from stock_forecaster.app import RunResult, StockForecasterApplication
from stock_forecaster.core import PricePoint, history_from_frame
from stock_forecaster.providers import ProviderError


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Train a small neural network on a price history and forecast ahead.",
    )
    parser.add_argument(
        "--mode",
        choices=["forecast", "api"],
        default="forecast",
        help="What to run (default: %(default)s).",
    )
    parser.add_argument(
        "--symbol",
        default=os.getenv("STOCK_FORECASTER_DEFAULT_SYMBOL", "AAPL"),
        help="Ticker symbol to fetch when no --csv file is given.",
    )
    parser.add_argument(
        "--csv",
        type=Path,
        help="Read the history from a CSV file with Date, Close and optional Volume columns.",
    )
    parser.add_argument("--days", type=int, help="Number of calendar days to forecast.")
    parser.add_argument("--seed", type=int, help="Seed for weight initialisation and shuffling.")
    parser.add_argument("--max-epochs", type=int, help="Upper bound on training epochs.")
    parser.add_argument("--window-length", type=int, help="Number of trailing prices per sample.")
    parser.add_argument("--api-key", help="Twelve Data API key (defaults to the environment).")
    parser.add_argument("--host", default="127.0.0.1", help="API host for --mode api.")
    parser.add_argument("--port", type=int, default=8000, help="API port for --mode api.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ...).",
    )
    return parser.parse_args(argv)


def _load_csv_history(path: Path) -> list[PricePoint]:
    frame = pd.read_csv(path)
    frame = frame.rename(columns={column: column.strip().title() for column in frame.columns})
    if "Close" not in frame.columns and "Price" in frame.columns:
        frame = frame.rename(columns={"Price": "Close"})
    return history_from_frame(frame)


def _run_forecast(app: StockForecasterApplication, args: argparse.Namespace) -> RunResult:
    if args.csv is not None:
        history = _load_csv_history(args.csv)
        logging.info("Loaded %s price points from %s", len(history), args.csv)
        return app.forecast_history(history, args.days, symbol=args.symbol)

    async def _runner() -> RunResult:
        try:
            return await app.forecast(args.symbol, args.days)
        finally:
            await app.aclose()

    return asyncio.run(_runner())


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    if args.mode == "api":
        run_api(host=args.host, port=args.port)
        return 0

    overrides: dict[str, Any] = {
        "seed": args.seed,
        "max_epochs": args.max_epochs,
        "window_length": args.window_length,
        "api_key": args.api_key,
        "default_symbol": args.symbol,
    }

    try:
        app = StockForecasterApplication.from_environment(**overrides)
        result = _run_forecast(app, args)
    except (ValueError, ProviderError, OSError) as exc:
        logging.error("Forecast failed: %s", exc)
        print(json.dumps({"status": "error", "message": str(exc)}), file=sys.stderr)
        return 1

    output = {"status": result.status, **result.payload}
    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
