"""Core data types for price history and pair selection."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterator, List, Tuple, Union

import pandas as pd


class Resolution(Enum):
    """Sampling interval of historical bars."""

    TICK = "tick"
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAILY = "daily"

    @property
    def is_daily(self) -> bool:
        """Whether bars are sampled once per calendar day."""
        return self is Resolution.DAILY

    @classmethod
    def parse(cls, value: Union[str, "Resolution"]) -> "Resolution":
        """
        Parse a resolution from a config value.

        Args:
            value: Resolution member or its name (case-insensitive, "day" allowed)

        Returns:
            Resolution member
        """
        if isinstance(value, Resolution):
            return value

        name = str(value).strip().lower()
        if name == "day":
            name = "daily"

        try:
            return cls(name)
        except ValueError:
            raise ValueError(
                f"Unknown resolution '{value}', expected one of "
                f"{[r.value for r in cls]}"
            ) from None


@dataclass(frozen=True)
class Security:
    """A tracked instrument and the time zone of its exchange."""

    symbol: str
    time_zone: str = "America/New_York"


@dataclass(frozen=True)
class PriceObservation:
    """A single bar's closing price."""

    symbol: str
    end_time: datetime  # Exchange-local wall time
    price: float


@dataclass
class PriceSlice:
    """All observations sampled at the same instant."""

    time: datetime
    observations: List[PriceObservation] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.observations)

    def __iter__(self) -> Iterator[PriceObservation]:
        return iter(self.observations)


@dataclass(frozen=True)
class BestPair:
    """The most correlated pair found so far."""

    asset1: str
    asset2: str
    correlation: float

    @property
    def pair(self) -> Tuple[str, str]:
        """Ordered (asset1, asset2) tuple."""
        return (self.asset1, self.asset2)

    def __str__(self) -> str:
        """String representation."""
        return f"{self.asset1}/{self.asset2} (r={self.correlation:.4f})"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "asset1": self.asset1,
            "asset2": self.asset2,
            "correlation": self.correlation,
        }


def to_utc(end_time: datetime, time_zone: str) -> pd.Timestamp:
    """
    Convert an exchange-local wall time to a UTC timestamp.

    Ambiguous wall times (DST fall-back) resolve to standard time and
    nonexistent ones (DST spring-forward) shift forward.

    Args:
        end_time: Naive or tz-aware timestamp
        time_zone: IANA zone of the exchange

    Returns:
        tz-aware UTC Timestamp
    """
    ts = pd.Timestamp(end_time)
    if ts.tzinfo is None:
        ts = ts.tz_localize(time_zone, ambiguous=False, nonexistent="shift_forward")
    return ts.tz_convert("UTC")


def is_valid_time_zone(time_zone: str) -> bool:
    """Check that a time zone name resolves to a known IANA zone."""
    if not isinstance(time_zone, str) or not time_zone:
        return False
    try:
        pd.Timestamp("2000-01-01").tz_localize(time_zone)
    except (KeyError, TypeError, ValueError):
        return False
    return True
