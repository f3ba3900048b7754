"""Historical price feeds consumed by the selection engine."""

from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Protocol, Sequence, Union

import pandas as pd
from loguru import logger

from .models import PriceObservation, PriceSlice, Resolution, to_utc

REQUIRED_COLUMNS = ("symbol", "end_time", "price")


class HistoryProvider(Protocol):
    """Anything that can return recent price slices for a set of symbols."""

    def history(
        self,
        symbols: Sequence[str],
        lookback: int,
        resolution: Resolution,
    ) -> List[PriceSlice]:
        ...


class DataFrameHistoryProvider:
    """
    Serve price slices from a long-format DataFrame.

    Expected columns: symbol, end_time, price and optionally time_zone.
    The frame is assumed to already be sampled at the requested resolution.
    """

    def __init__(
        self,
        frame: pd.DataFrame,
        default_time_zone: str = "America/New_York",
    ):
        """
        Initialize provider.

        Args:
            frame: Long-format price history
            default_time_zone: Zone used for rows without a time_zone value
        """
        missing = [col for col in REQUIRED_COLUMNS if col not in frame.columns]
        if missing:
            raise ValueError(f"History frame is missing columns: {missing}")

        frame = frame.copy()
        frame["end_time"] = pd.to_datetime(frame["end_time"])
        if "time_zone" not in frame.columns:
            frame["time_zone"] = default_time_zone
        else:
            frame["time_zone"] = frame["time_zone"].fillna(default_time_zone)

        self._frame = frame
        self.default_time_zone = default_time_zone

    @classmethod
    def from_csv(
        cls,
        path: Union[str, Path],
        default_time_zone: str = "America/New_York",
    ) -> "DataFrameHistoryProvider":
        """Load history from a CSV file."""
        frame = pd.read_csv(path)
        logger.info(f"Loaded {len(frame)} price rows from {path}")
        return cls(frame, default_time_zone=default_time_zone)

    @property
    def symbols(self) -> List[str]:
        """Symbols available in the feed, in first-seen order."""
        return list(dict.fromkeys(self._frame["symbol"]))

    def time_zones(self) -> Dict[str, str]:
        """Exchange time zone per symbol (first value seen)."""
        zones = self._frame.drop_duplicates("symbol")
        return dict(zip(zones["symbol"], zones["time_zone"]))

    def history(
        self,
        symbols: Sequence[str],
        lookback: int,
        resolution: Resolution,
    ) -> List[PriceSlice]:
        """
        Get the last `lookback` bars per symbol, grouped into slices.

        Bars that end at the same UTC instant share a slice.

        Args:
            symbols: Symbols to include
            lookback: Bars per symbol
            resolution: Requested resolution (informational)

        Returns:
            Chronologically ordered list of PriceSlice
        """
        frame = self._frame[self._frame["symbol"].isin(list(symbols))]
        frame = frame.sort_values("end_time", kind="stable")
        frame = frame.groupby("symbol", sort=False).tail(lookback)

        grouped: Dict[pd.Timestamp, List[PriceObservation]] = defaultdict(list)
        for symbol, end_time, price, time_zone in zip(
            frame["symbol"], frame["end_time"], frame["price"], frame["time_zone"]
        ):
            key = to_utc(end_time, time_zone)
            grouped[key].append(
                PriceObservation(
                    symbol=symbol,
                    end_time=end_time.to_pydatetime(),
                    price=float(price),
                )
            )

        slices = [
            PriceSlice(time=key.to_pydatetime(), observations=grouped[key])
            for key in sorted(grouped)
        ]

        logger.debug(
            f"History for {len(symbols)} symbols ({resolution.value}, "
            f"lookback={lookback}): {len(slices)} slices"
        )
        return slices
