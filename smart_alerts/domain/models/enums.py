"""Domain enumerations for the smart alert engine."""

from enum import Enum


class AlertCategory(str, Enum):
    """Rule family, also the discriminant of the persisted rule union."""

    PRICE = "price"
    TECHNICAL = "technical"
    NEWS = "news"


class NotificationCategory(str, Enum):
    """Category of a delivered notification."""

    PRICE = "price"
    TECHNICAL = "technical"
    NEWS = "news"
    SYSTEM = "system"  # Test notifications


class Priority(str, Enum):
    """Alert priority, ordered low < medium < high < critical."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Ordinal position, usable for sorting and comparison."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.LOW: 0,
    Priority.MEDIUM: 1,
    Priority.HIGH: 2,
    Priority.CRITICAL: 3,
}


class PriceAlertKind(str, Enum):
    """Condition a price rule watches for."""

    ABOVE = "price_above"
    BELOW = "price_below"
    PERCENT_CHANGE = "percent_change"
    VOLUME_SPIKE = "volume_spike"


class ComparisonOperator(str, Enum):
    """Comparison applied by price rules."""

    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    EQUALS = "equals"  # Accepted for compatibility, not evaluated


class TechnicalAlertKind(str, Enum):
    """Indicator condition a technical rule watches for."""

    RSI_OVERBOUGHT = "rsi_overbought"
    RSI_OVERSOLD = "rsi_oversold"
    MACD_CROSSOVER = "macd_crossover"
    SUPPORT_BREAK = "support_break"
    RESISTANCE_BREAK = "resistance_break"
    VOLUME_BREAKOUT = "volume_breakout"


class Sentiment(str, Enum):
    """News sentiment filter."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    ANY = "any"


class Timeframe(str, Enum):
    """Informational evaluation timeframe of a price rule."""

    ONE_MINUTE = "1m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    ONE_HOUR = "1h"
    ONE_DAY = "1d"


class SoundPattern(str, Enum):
    """Named tone sequences played by the audio channel."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def frequencies(self) -> tuple[int, ...]:
        """Tone frequencies in Hz, played in order."""
        return _SOUND_FREQUENCIES[self]


_SOUND_FREQUENCIES = {
    SoundPattern.INFO: (800, 600),
    SoundPattern.SUCCESS: (600, 800),
    SoundPattern.WARNING: (400, 400, 400),
    SoundPattern.ERROR: (300, 300),
    SoundPattern.CRITICAL: (1000, 500, 1000, 500, 1000),
}


class PriceSource(str, Enum):
    """Which bar value an indicator is computed on."""

    OPEN = "open"
    HIGH = "high"
    LOW = "low"
    CLOSE = "close"
    HL2 = "hl2"
    HLC3 = "hlc3"
    OHLC4 = "ohlc4"


class RiskLevel(str, Enum):
    """Coarse risk rating derived from 95% VaR."""

    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"


class SharpeRating(str, Enum):
    """Qualitative Sharpe ratio band."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
