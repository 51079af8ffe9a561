"""Yahoo Finance implementation of TickSource and BarSource."""

import asyncio
import logging
import math
from datetime import date, datetime, timedelta

import yfinance as yf

from smart_alerts.domain.interfaces.data_feed import BarSource, TickSource
from smart_alerts.domain.models.market import Bar, PriceTick

logger = logging.getLogger(__name__)


class YahooTickSource(TickSource, BarSource):
    """Polls Yahoo Finance quotes.

    Important limitations:
    - Quotes may be delayed depending on the exchange
    - Bid/ask are not available from the fast quote endpoint
    - Volume is the session volume reported so far
    """

    @property
    def source_name(self) -> str:
        """Return data source name."""
        return "yahoo"

    async def get_tick(self, symbol: str) -> PriceTick:
        """Fetch the latest quote for a symbol.

        Args:
            symbol: Ticker symbol (e.g., 'AAPL')

        Returns:
            PriceTick with change figures relative to the previous close

        Raises:
            ValueError: If Yahoo returns no usable price
        """
        # Run yfinance in thread pool (it's synchronous)
        loop = asyncio.get_running_loop()
        quote = await loop.run_in_executor(None, lambda: self._fetch_quote(symbol))

        if quote is None:
            raise ValueError(f"No quote from Yahoo for {symbol}")

        price = quote["price"]
        previous = quote["previous_close"]
        change = price - previous if previous else 0.0
        change_percent = change / previous * 100 if previous else 0.0

        return PriceTick(
            symbol=symbol,
            price=price,
            previous_price=previous,
            change=change,
            change_percent=change_percent,
            volume=quote["volume"] or 0.0,
            high=quote["high"],
            low=quote["low"],
            open=quote["open"],
            timestamp=datetime.now(),
            average_volume=quote["average_volume"],
        )

    def _fetch_quote(self, symbol: str) -> dict | None:
        """Synchronous quote fetch."""
        try:
            info = yf.Ticker(symbol).fast_info
            price = getattr(info, "last_price", None)
            if not price or price <= 0:
                return None

            return {
                "price": float(price),
                "previous_close": _as_float(getattr(info, "previous_close", None)),
                "volume": _as_float(getattr(info, "last_volume", None)),
                "high": _as_float(getattr(info, "day_high", None)),
                "low": _as_float(getattr(info, "day_low", None)),
                "open": _as_float(getattr(info, "open", None)),
                "average_volume": _as_float(
                    getattr(info, "three_month_average_volume", None)
                ),
            }
        except Exception as e:
            logger.warning(f"Yahoo quote failed for {symbol}: {e}")
            return None

    async def get_bars(self, symbol: str, days: int = 120) -> list[Bar]:
        """Fetch daily OHLCV bars from Yahoo Finance.

        Args:
            symbol: Ticker symbol (e.g., 'AAPL')
            days: Number of trading days of history

        Returns:
            List of Bar objects, oldest first

        Raises:
            ValueError: If Yahoo returns no history
        """
        end = date.today()
        # Add buffer days for weekends/holidays
        start = end - timedelta(days=int(days * 1.5) + 10)

        loop = asyncio.get_running_loop()
        df = await loop.run_in_executor(None, lambda: self._fetch_history(symbol, start, end))

        if df is None or df.empty:
            raise ValueError(f"No data from Yahoo for {symbol}")

        bars: list[Bar] = []
        for idx, row in df.iterrows():
            try:
                bars.append(
                    Bar(
                        symbol=symbol.upper(),
                        timestamp=idx.to_pydatetime() if hasattr(idx, "to_pydatetime") else idx,
                        open=float(row["Open"]),
                        high=float(row["High"]),
                        low=float(row["Low"]),
                        close=float(row["Close"]),
                        volume=float(row["Volume"]) if row["Volume"] > 0 else 0.0,
                    )
                )
            except ValueError:
                # Skip inconsistent bars
                continue

        return bars[-days:] if len(bars) > days else bars

    def _fetch_history(self, symbol: str, start: date, end: date):
        """Synchronous history fetch."""
        ticker = yf.Ticker(symbol)
        return ticker.history(start=start, end=end + timedelta(days=1))  # end is exclusive


def _as_float(value) -> float | None:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number
