#!/usr/bin/env python3
"""Example script for running correlation pair selection."""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
import pandas as pd
from loguru import logger

from src.data import DataFrameHistoryProvider, Resolution, Security
from src.engine import PearsonCorrelationPairEngine
from src.utils.logging import setup_logging


def generate_sample_data(n_days: int = 120) -> pd.DataFrame:
    """
    Generate sample prices for a small multi-exchange universe.

    SPY and IVV share a common factor; EWJ trades in Tokyo and is
    mostly independent; GLD is pure noise.

    Returns:
        Long-format DataFrame with symbol, end_time, price, time_zone
    """
    np.random.seed(42)

    dates = pd.bdate_range("2023-01-02", periods=n_days)
    market = np.random.randn(n_days) * 0.01

    returns = {
        "SPY": market + np.random.randn(n_days) * 0.002,
        "IVV": market + np.random.randn(n_days) * 0.002,
        "EWJ": 0.3 * market + np.random.randn(n_days) * 0.01,
        "GLD": np.random.randn(n_days) * 0.008,
    }
    zones = {
        "SPY": "America/New_York",
        "IVV": "America/New_York",
        "EWJ": "Asia/Tokyo",
        "GLD": "America/New_York",
    }
    closes = {"America/New_York": "16:00", "Asia/Tokyo": "15:00"}

    rows = []
    for symbol, rets in returns.items():
        prices = 100 * np.cumprod(1 + rets)
        close = closes[zones[symbol]]
        for date, price in zip(dates, prices):
            rows.append(
                {
                    "symbol": symbol,
                    "end_time": pd.Timestamp(f"{date.date()} {close}"),
                    "price": price,
                    "time_zone": zones[symbol],
                }
            )

    return pd.DataFrame(rows)


def main():
    """Run example pair selection."""
    setup_logging(log_level="INFO", log_file="logs/example.log")

    logger.info("Generating sample data...")
    frame = generate_sample_data()
    provider = DataFrameHistoryProvider(frame)

    engine = PearsonCorrelationPairEngine(
        history_provider=provider,
        lookback=60,
        resolution=Resolution.DAILY,
        minimum_correlation=0.5,
    )

    securities = [
        Security(symbol, time_zone) for symbol, time_zone in provider.time_zones().items()
    ]
    result = engine.on_universe_changed(added=securities)

    print("\n" + "=" * 50)
    print("SELECTION RESULT")
    print("=" * 50)
    for key, value in result.to_dict().items():
        print(f"{key:>22}: {value}")

    print("\nCandidate pairs passing the test:")
    for pair in engine.candidate_pairs():
        if engine.evaluate(pair):
            print(f"  {pair[0]} / {pair[1]}")

    # Dropping one leg forces a new selection
    result = engine.on_universe_changed(removed=["IVV"])
    print(f"\nAfter removing IVV: {result.outcome.value}, best pair {engine.best_pair}")


if __name__ == "__main__":
    main()
