"""Market data domain models."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field, field_validator


def normalize_symbol(value: str) -> str:
    """Upper-case and strip a ticker symbol, rejecting blanks."""
    symbol = value.strip().upper()
    if not symbol:
        raise ValueError("symbol must not be empty")
    return symbol


Symbol = Annotated[str, AfterValidator(normalize_symbol)]


class PriceTick(BaseModel):
    """A single real-time quote update - immutable, never persisted."""

    model_config = {"frozen": True}

    symbol: Symbol
    price: float = Field(..., gt=0)
    previous_price: float | None = None
    change: float = 0.0
    change_percent: float = 0.0
    volume: float = Field(default=0.0, ge=0)
    high: float | None = None
    low: float | None = None
    open: float | None = None
    bid: float | None = None
    ask: float | None = None
    timestamp: datetime = Field(default_factory=datetime.now)
    # Known only to feeds that report a daily average
    average_volume: float | None = None


class Bar(BaseModel):
    """OHLCV price bar - immutable value object."""

    model_config = {"frozen": True}

    symbol: str
    timestamp: datetime = Field(default_factory=datetime.now)
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @field_validator("high")
    @classmethod
    def high_ge_open(cls, v: float, info) -> float:
        """Validate high >= open."""
        if "open" in info.data and v < info.data["open"]:
            raise ValueError("high must be >= open")
        return v

    @field_validator("low")
    @classmethod
    def low_le_open_high(cls, v: float, info) -> float:
        """Validate low <= open and low <= high."""
        if "open" in info.data and v > info.data["open"]:
            raise ValueError("low must be <= open")
        if "high" in info.data and v > info.data["high"]:
            raise ValueError("high must be >= low")
        return v

    @field_validator("close")
    @classmethod
    def close_within_range(cls, v: float, info) -> float:
        """Validate low <= close <= high."""
        if "high" in info.data and v > info.data["high"]:
            raise ValueError("close must be <= high")
        if "low" in info.data and v < info.data["low"]:
            raise ValueError("close must be >= low")
        return v


class MACDPoint(BaseModel):
    """MACD line, signal line and histogram at one index."""

    model_config = {"frozen": True}

    macd: float | None = None
    signal: float | None = None
    histogram: float | None = None


class BollingerPoint(BaseModel):
    """Bollinger band values at one index."""

    model_config = {"frozen": True}

    upper: float | None = None
    middle: float | None = None
    lower: float | None = None


class StochasticPoint(BaseModel):
    """Stochastic oscillator %K / %D at one index."""

    model_config = {"frozen": True}

    k: float | None = None
    d: float | None = None


class TechnicalSnapshot(BaseModel):
    """Indicator readings a technical rule is evaluated against.

    Any field may be missing; the evaluator applies neutral defaults.
    """

    model_config = {"frozen": True}

    symbol: Symbol | None = None
    price: float | None = None
    rsi: float | None = None
    macd: MACDPoint | None = None
    volume: float | None = None
    average_volume: float | None = None
    support_level: float | None = None
    resistance_level: float | None = None
    timestamp: datetime = Field(default_factory=datetime.now)
