"""Data layer modules for the pair selector."""

from .history import DataFrameHistoryProvider, HistoryProvider
from .models import (
    BestPair,
    PriceObservation,
    PriceSlice,
    Resolution,
    Security,
    is_valid_time_zone,
)

__all__ = [
    "BestPair",
    "DataFrameHistoryProvider",
    "HistoryProvider",
    "PriceObservation",
    "PriceSlice",
    "Resolution",
    "Security",
    "is_valid_time_zone",
]
