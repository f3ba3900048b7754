"""Tests for the DataFrame history provider."""

import pandas as pd
import pytest

from src.data.history import DataFrameHistoryProvider
from src.data.models import Resolution, is_valid_time_zone, to_utc


class TestDataFrameHistoryProvider:
    """Tests for DataFrameHistoryProvider class."""

    @pytest.fixture
    def frame(self):
        """Two New York symbols and one Tokyo symbol over four days."""
        rows = []
        for i, day in enumerate(pd.bdate_range("2023-01-03", periods=4)):
            rows.append(("SPY", f"{day.date()} 16:00", 380.0 + i, "America/New_York"))
            rows.append(("IVV", f"{day.date()} 16:00", 382.0 + i, "America/New_York"))
            rows.append(("EWJ", f"{day.date()} 15:00", 55.0 + i, "Asia/Tokyo"))
        return pd.DataFrame(rows, columns=["symbol", "end_time", "price", "time_zone"])

    @pytest.fixture
    def provider(self, frame):
        """Create a provider instance."""
        return DataFrameHistoryProvider(frame)

    def test_groups_by_utc_instant(self, provider):
        """Test that bars closing at the same UTC instant share a slice."""
        slices = provider.history(["SPY", "IVV", "EWJ"], 4, Resolution.DAILY)

        # New York and Tokyo closes are different instants
        assert len(slices) == 8
        assert sorted(len(s) for s in slices) == [1] * 4 + [2] * 4
        assert [s.time for s in slices] == sorted(s.time for s in slices)

    def test_lookback_limits_bars_per_symbol(self, provider):
        """Test that only the most recent bars are returned."""
        slices = provider.history(["SPY", "IVV"], 2, Resolution.DAILY)

        assert len(slices) == 2
        assert [obs.price for obs in slices[-1]] == [383.0, 385.0]

    def test_filters_symbols(self, provider):
        """Test that unrequested symbols are left out."""
        slices = provider.history(["EWJ"], 10, Resolution.DAILY)

        assert all([obs.symbol for obs in s] == ["EWJ"] for s in slices)
        assert len(slices) == 4

    def test_time_zones_and_symbols(self, provider):
        """Test metadata accessors."""
        assert provider.symbols == ["SPY", "IVV", "EWJ"]
        assert provider.time_zones()["EWJ"] == "Asia/Tokyo"

    def test_default_time_zone(self):
        """Test that rows without a zone use the default."""
        frame = pd.DataFrame(
            {
                "symbol": ["AAA", "AAA"],
                "end_time": ["2023-01-03 16:00", "2023-01-04 16:00"],
                "price": [10.0, 11.0],
            }
        )

        provider = DataFrameHistoryProvider(frame, default_time_zone="Europe/London")

        assert provider.time_zones() == {"AAA": "Europe/London"}

    def test_missing_columns(self):
        """Test that required columns are validated."""
        with pytest.raises(ValueError):
            DataFrameHistoryProvider(pd.DataFrame({"symbol": ["AAA"], "price": [1.0]}))

    def test_from_csv(self, frame, tmp_path):
        """Test loading from CSV."""
        path = tmp_path / "prices.csv"
        frame.to_csv(path, index=False)

        provider = DataFrameHistoryProvider.from_csv(path)

        assert provider.symbols == ["SPY", "IVV", "EWJ"]


class TestToUtc:
    """Tests for exchange-local to UTC conversion."""

    def test_standard_time(self):
        """Test a winter New York close."""
        ts = to_utc(pd.Timestamp("2023-01-03 16:00"), "America/New_York")

        assert ts == pd.Timestamp("2023-01-03 21:00", tz="UTC")

    def test_daylight_time(self):
        """Test a summer New York close."""
        ts = to_utc(pd.Timestamp("2023-07-03 16:00"), "America/New_York")

        assert ts == pd.Timestamp("2023-07-03 20:00", tz="UTC")

    def test_ambiguous_time_resolves(self):
        """Test that a repeated wall time does not raise."""
        ts = to_utc(pd.Timestamp("2023-11-05 01:30"), "America/New_York")

        assert ts == pd.Timestamp("2023-11-05 06:30", tz="UTC")

    def test_aware_input_is_converted(self):
        """Test that tz-aware inputs keep their own zone."""
        ts = to_utc(pd.Timestamp("2023-01-03 16:00", tz="Asia/Tokyo"), "America/New_York")

        assert ts == pd.Timestamp("2023-01-03 07:00", tz="UTC")


class TestIsValidTimeZone:
    """Tests for time zone name validation."""

    @pytest.mark.parametrize("zone", ["America/New_York", "Asia/Tokyo", "UTC"])
    def test_known_zones(self, zone):
        """Test that IANA names are accepted."""
        assert is_valid_time_zone(zone)

    @pytest.mark.parametrize("zone", ["Bad/Zone", "", None])
    def test_unknown_zones(self, zone):
        """Test that unknown or missing names are rejected."""
        assert not is_valid_time_zone(zone)
