"""Tests for the command line entry point."""

import numpy as np
import pandas as pd
import pytest
from loguru import logger

from src.main import main


@pytest.fixture
def history_csv(tmp_path):
    """Write correlated New York and Tokyo prices to CSV."""
    np.random.seed(3)
    n = 40
    dates = pd.bdate_range("2023-01-02", periods=n)
    factor = np.random.randn(n) * 0.01
    series = {
        ("SPY", "America/New_York", "16:00"): factor + np.random.randn(n) * 0.001,
        ("EWJ", "Asia/Tokyo", "15:00"): factor + np.random.randn(n) * 0.001,
        ("GLD", "America/New_York", "16:00"): np.random.randn(n) * 0.01,
    }

    rows = []
    for (symbol, zone, close), returns in series.items():
        prices = 100 * np.exp(np.cumsum(returns))
        for day, price in zip(dates, prices):
            rows.append(
                {
                    "symbol": symbol,
                    "end_time": f"{day.date()} {close}",
                    "price": price,
                    "time_zone": zone,
                }
            )

    path = tmp_path / "prices.csv"
    pd.DataFrame(rows).to_csv(path, index=False)
    return path


class TestMain:
    """Tests for main()."""

    @pytest.fixture(autouse=True)
    def workdir(self, tmp_path, monkeypatch):
        """Run inside a temporary directory so logs stay there."""
        monkeypatch.chdir(tmp_path)

    def test_selects_pair_across_time_zones(self, history_csv, capsys):
        """Test a full run over mixed-exchange history."""
        code = main(["--history", str(history_csv), "--lookback", "40"])

        out = capsys.readouterr().out
        assert code == 0
        assert "Outcome: SELECTED" in out
        assert "SPY/EWJ" in out
        assert "3 symbols x 40 bars" in out

    def test_high_minimum(self, history_csv, capsys):
        """Test that nothing is selected above the observed correlation."""
        code = main(
            [
                "--history",
                str(history_csv),
                "--lookback",
                "40",
                "--minimum-correlation",
                "0.999",
            ]
        )

        out = capsys.readouterr().out
        assert code == 0
        assert "NO_QUALIFYING_PAIR" in out
        assert "Best Pair: none" in out

    def test_missing_history_file(self, tmp_path):
        """Test that an unreadable history file exits with code 2."""
        assert main(["--history", str(tmp_path / "nope.csv")]) == 2

    @pytest.mark.parametrize(
        "selection",
        ["  resolution: weekly\n", "  lookback: 0\n", "  lookback: many\n"],
    )
    def test_invalid_config_exits_with_code_2(self, history_csv, tmp_path, selection):
        """Test that bad selection settings are reported, not raised."""
        config_path = tmp_path / "bad.yaml"
        config_path.write_text("selection:\n" + selection)

        code = main(["--history", str(history_csv), "--config", str(config_path)])

        assert code == 2

    def test_selection_log_written(self, history_csv, tmp_path):
        """Test that the chosen pair lands in the selection log."""
        main(["--history", str(history_csv), "--lookback", "40"])
        logger.remove()

        text = (tmp_path / "logs" / "selections.log").read_text()
        assert "SELECTION: best pair SPY/EWJ" in text
        assert "Logging initialized" not in text
