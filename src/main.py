"""Command line entry point: run one pair selection cycle over a CSV history."""

import argparse
import sys

from loguru import logger

from .config import Config
from .data import DataFrameHistoryProvider, Resolution, Security
from .engine import PearsonCorrelationPairEngine
from .utils.logging import add_file_sinks, setup_logging


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Pearson Correlation Pair Selector",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--history",
        type=str,
        required=True,
        help="CSV with columns symbol,end_time,price[,time_zone]",
    )

    parser.add_argument(
        "--config",
        type=str,
        default="config.yaml",
        help="Path to configuration file",
    )

    parser.add_argument(
        "--lookback",
        type=int,
        default=None,
        help="Bars per symbol (overrides config)",
    )

    parser.add_argument(
        "--resolution",
        type=str,
        default=None,
        choices=[r.value for r in Resolution],
        help="Bar resolution (overrides config)",
    )

    parser.add_argument(
        "--minimum-correlation",
        type=float,
        default=None,
        help="Minimum correlation for a tradable pair (overrides config)",
    )

    parser.add_argument(
        "--default-time-zone",
        type=str,
        default="America/New_York",
        help="Exchange time zone for rows without one",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(log_level=args.log_level)

    config = Config(args.config)
    add_file_sinks(
        config.get("logging.file", "logs/pair_selector.log"),
        log_level=args.log_level,
    )

    if args.lookback is not None:
        config.set("selection.lookback", args.lookback)
    if args.resolution is not None:
        config.set("selection.resolution", args.resolution)
    if args.minimum_correlation is not None:
        config.set("selection.minimum_correlation", args.minimum_correlation)

    try:
        provider = DataFrameHistoryProvider.from_csv(
            args.history, default_time_zone=args.default_time_zone
        )
    except (OSError, ValueError) as e:
        logger.error(f"Cannot read history from {args.history}: {e}")
        return 2

    try:
        engine = PearsonCorrelationPairEngine.from_config(config, provider)
    except (TypeError, ValueError) as e:
        logger.error(f"Invalid selection settings in {args.config}: {e}")
        return 2

    securities = [
        Security(symbol=symbol, time_zone=time_zone)
        for symbol, time_zone in provider.time_zones().items()
    ]

    result = engine.on_universe_changed(added=securities)

    print("\nPair Selection:")
    print(f"  Symbols: {', '.join(engine.tracked_symbols)}")
    print(f"  Outcome: {result.outcome.value}")
    print(f"  Aligned: {result.aligned_symbols} symbols x {result.aligned_length} bars")
    if result.best_pair:
        print(f"  Best Pair: {result.best_pair}")
    else:
        print("  Best Pair: none")

    return 0


if __name__ == "__main__":
    sys.exit(main())
