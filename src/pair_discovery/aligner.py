"""Align raw price history into equal-length log-return vectors."""

from collections import OrderedDict, defaultdict
from typing import Dict, Iterator, List, Mapping, Sequence

import numpy as np
import pandas as pd
from loguru import logger

from ..data.models import PriceObservation, PriceSlice, Resolution, Security, to_utc


class AlignedSeries(Mapping[str, np.ndarray]):
    """Ordered mapping of symbol to log-return vector of a common length."""

    def __init__(self, vectors: "OrderedDict[str, np.ndarray]"):
        lengths = {len(v) for v in vectors.values()}
        if len(lengths) > 1:
            raise ValueError(f"Aligned vectors have unequal lengths: {sorted(lengths)}")
        self._vectors = vectors

    def __getitem__(self, symbol: str) -> np.ndarray:
        return self._vectors[symbol]

    def __iter__(self) -> Iterator[str]:
        return iter(self._vectors)

    def __len__(self) -> int:
        return len(self._vectors)

    @property
    def symbols(self) -> List[str]:
        """Symbols in column order."""
        return list(self._vectors)

    @property
    def length(self) -> int:
        """Common vector length (0 when empty)."""
        for vector in self._vectors.values():
            return len(vector)
        return 0

    def __repr__(self) -> str:
        return f"AlignedSeries({len(self)} symbols x {self.length})"


def log_return_vector(prices: Sequence[float]) -> np.ndarray:
    """
    Convert prices to log returns of the same length.

    diff[i] = log(p[i]) - log(p[i-1]) for i >= 1. Index 0 has no
    predecessor and is padded with diff[1], so the output keeps the
    input length. Callers rely on this padding for compatibility.

    Args:
        prices: At least two strictly positive prices

    Returns:
        Log-return vector with len(prices) elements
    """
    log_prices = np.log(np.asarray(prices, dtype=float))
    returns = np.empty_like(log_prices)
    returns[1:] = np.diff(log_prices)
    returns[0] = returns[1]
    return returns


class PriceSeriesAligner:
    """
    Build per-symbol log-return vectors over the instants where every
    tracked symbol has a price.

    Symbols sharing one exchange time zone use the fast path: any slice
    missing a symbol is dropped. Mixed time zones use the cross-section
    path: bar end times are converted to UTC (truncated to the date for
    daily bars) and only instants reported by every symbol are kept.
    """

    MIN_OBSERVATIONS = 2

    def align(
        self,
        securities: Sequence[Security],
        resolution: Resolution,
        slices: Sequence[PriceSlice],
    ) -> AlignedSeries:
        """
        Align price history for the tracked securities.

        Args:
            securities: Tracked securities, in column order
            resolution: Sampling resolution of the slices
            slices: Chronologically ordered price slices

        Returns:
            AlignedSeries (empty when no common window exists)
        """
        time_zones = {sec.symbol: sec.time_zone for sec in securities}
        if not time_zones:
            return AlignedSeries(OrderedDict())

        if len(set(time_zones.values())) == 1:
            prices = self._fast_path(time_zones, slices)
        else:
            prices = self._cross_section_path(time_zones, resolution, slices)

        vectors: "OrderedDict[str, np.ndarray]" = OrderedDict()
        for symbol in time_zones:
            series = prices.get(symbol, [])
            if len(series) < self.MIN_OBSERVATIONS:
                continue
            values = np.asarray(series, dtype=float)
            if not np.all(np.isfinite(values) & (values > 0)):
                logger.warning(f"Dropping {symbol}: non-positive or non-finite prices")
                continue
            vectors[symbol] = log_return_vector(values)

        aligned = AlignedSeries(vectors)
        logger.debug(f"Aligned {aligned!r} from {len(slices)} slices")
        return aligned

    def _tracked(
        self,
        time_zones: Mapping[str, str],
        data: PriceSlice,
    ) -> List[PriceObservation]:
        return [obs for obs in data if obs.symbol in time_zones]

    @staticmethod
    def _is_complete(observations: Sequence[PriceObservation], expected: int) -> bool:
        # One report per symbol, every symbol present
        return (
            len(observations) == expected
            and len({obs.symbol for obs in observations}) == expected
        )

    def _fast_path(
        self,
        time_zones: Mapping[str, str],
        slices: Sequence[PriceSlice],
    ) -> Dict[str, List[float]]:
        expected = len(time_zones)
        prices: Dict[str, List[float]] = defaultdict(list)
        kept = 0

        for data in slices:
            observations = self._tracked(time_zones, data)
            if not self._is_complete(observations, expected):
                continue
            kept += 1
            for obs in observations:
                prices[obs.symbol].append(obs.price)

        logger.debug(f"Single time zone: kept {kept}/{len(slices)} complete slices")
        return prices

    def _cross_section_path(
        self,
        time_zones: Mapping[str, str],
        resolution: Resolution,
        slices: Sequence[PriceSlice],
    ) -> Dict[str, List[float]]:
        expected = len(time_zones)
        sections: Dict[pd.Timestamp, List[PriceObservation]] = defaultdict(list)

        for data in slices:
            for obs in self._tracked(time_zones, data):
                instant = to_utc(obs.end_time, time_zones[obs.symbol])
                if resolution.is_daily:
                    instant = instant.normalize()
                sections[instant].append(obs)

        prices: Dict[str, List[float]] = defaultdict(list)
        kept = 0
        for instant in sorted(sections):
            section = sections[instant]
            if not self._is_complete(section, expected):
                continue
            kept += 1
            for obs in section:
                prices[obs.symbol].append(obs.price)

        logger.debug(
            f"Multiple time zones: kept {kept}/{len(sections)} complete cross-sections"
        )
        return prices
