"""Unit tests for YahooTickSource with yfinance patched out."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

from smart_alerts.adapters.data_feeds.yahoo_feed import YahooTickSource


def make_fast_info(**overrides) -> SimpleNamespace:
    values = {
        "last_price": 151.0,
        "previous_close": 150.0,
        "last_volume": 2_000_000,
        "day_high": 152.0,
        "day_low": 149.0,
        "open": 150.5,
        "three_month_average_volume": 1_000_000,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def patch_ticker(fast_info=None, history=None):
    ticker = MagicMock()
    ticker.fast_info = fast_info
    ticker.history.return_value = history
    return patch("smart_alerts.adapters.data_feeds.yahoo_feed.yf.Ticker", return_value=ticker)


class TestGetTick:
    """Tests for quote polling."""

    async def test_builds_tick(self):
        with patch_ticker(fast_info=make_fast_info()):
            tick = await YahooTickSource().get_tick("aapl")

        assert tick.symbol == "AAPL"
        assert tick.price == 151.0
        assert tick.previous_price == 150.0
        assert tick.change == pytest.approx(1.0)
        assert tick.change_percent == pytest.approx(100 / 150)
        assert tick.volume == 2_000_000
        assert tick.average_volume == 1_000_000

    async def test_nan_fields_become_none(self):
        with patch_ticker(fast_info=make_fast_info(day_high=float("nan"), previous_close=None)):
            tick = await YahooTickSource().get_tick("AAPL")

        assert tick.high is None
        assert tick.change_percent == 0.0

    async def test_missing_price_raises(self):
        with patch_ticker(fast_info=make_fast_info(last_price=None)):
            with pytest.raises(ValueError):
                await YahooTickSource().get_tick("AAPL")

    def test_source_name(self):
        assert YahooTickSource().source_name == "yahoo"


class TestGetBars:
    """Tests for daily history."""

    async def test_builds_bars(self):
        index = pd.to_datetime(["2024-01-02", "2024-01-03", "2024-01-04"])
        frame = pd.DataFrame(
            {
                "Open": [100.0, 101.0, 102.0],
                "High": [101.0, 103.0, 104.0],
                "Low": [99.0, 100.0, 101.0],
                "Close": [100.5, 102.0, 103.0],
                "Volume": [1000, 0, 1500],
            },
            index=index,
        )
        with patch_ticker(history=frame):
            bars = await YahooTickSource().get_bars("aapl", days=2)

        assert [b.close for b in bars] == [102.0, 103.0]
        assert bars[0].symbol == "AAPL"
        assert bars[0].volume == 0.0

    async def test_inconsistent_bar_skipped(self):
        frame = pd.DataFrame(
            {"Open": [100.0, 100.0], "High": [90.0, 101.0], "Low": [95.0, 99.0],
             "Close": [96.0, 100.0], "Volume": [10, 10]},
            index=pd.to_datetime(["2024-01-02", "2024-01-03"]),
        )
        with patch_ticker(history=frame):
            bars = await YahooTickSource().get_bars("AAPL")

        assert len(bars) == 1

    async def test_empty_history_raises(self):
        with patch_ticker(history=pd.DataFrame()):
            with pytest.raises(ValueError):
                await YahooTickSource().get_bars("AAPL")
