"""Tick source interface (port) - defines how quotes reach the engine."""

from abc import ABC, abstractmethod

from smart_alerts.domain.models.market import Bar, PriceTick


class TickSource(ABC):
    """Abstract interface for real-time quote providers.

    This is a port in Clean Architecture - defines what the engine needs
    without specifying where quotes come from.
    """

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return the name of this source (e.g., 'yahoo')."""
        ...

    @abstractmethod
    async def get_tick(self, symbol: str) -> PriceTick:
        """Fetch the latest quote for a symbol.

        Args:
            symbol: Ticker symbol (e.g., 'AAPL')

        Returns:
            The latest PriceTick

        Raises:
            ValueError: If no quote is available for the symbol
        """
        ...


class BarSource(ABC):
    """Abstract interface for historical daily bar providers."""

    @abstractmethod
    async def get_bars(self, symbol: str, days: int = 120) -> list[Bar]:
        """Fetch daily OHLCV bars.

        Args:
            symbol: Ticker symbol
            days: Number of trading days of history

        Returns:
            List of Bar objects, oldest first

        Raises:
            ValueError: If no bars are available for the symbol
        """
        ...
