"""Technical indicator calculations.

Every function takes a price series (or OHLCV bars) and returns a list of
the same length, with ``None`` wherever the trailing window is not yet
full. Short input never raises: it yields an all-``None`` series so live
callers can fall back to neutral defaults (e.g. RSI = 50).

Implemented:
- Moving averages: SMA, EMA (SMA-seeded warmup), WMA
- Oscillators: RSI (Wilder), MACD, Stochastic, Williams %R, CCI
- Bands / volume: Bollinger bands, VWAP, OBV, ATR
"""

import math
from collections.abc import Sequence

from smart_alerts.domain.models.enums import PriceSource
from smart_alerts.domain.models.market import (
    Bar,
    BollingerPoint,
    MACDPoint,
    StochasticPoint,
)
from smart_alerts.domain.rules import (
    ATR_PERIOD,
    BOLLINGER_PERIOD,
    BOLLINGER_STD_DEV,
    CCI_CONSTANT,
    CCI_PERIOD,
    MACD_FAST,
    MACD_SIGNAL,
    MACD_SLOW,
    RSI_PERIOD,
    STOCHASTIC_D_PERIOD,
    STOCHASTIC_FLAT,
    STOCHASTIC_K_PERIOD,
    WILLIAMS_FLAT,
    WILLIAMS_PERIOD,
)


# =============================================================================
# MOVING AVERAGES
# =============================================================================


def sma(values: Sequence[float], period: int) -> list[float | None]:
    """Simple moving average over a trailing window.

    Args:
        values: Price series, oldest first
        period: Window length

    Returns:
        List of averages; the first ``period - 1`` entries are None
    """
    result: list[float | None] = []
    for i in range(len(values)):
        if period < 1 or i < period - 1:
            result.append(None)
        else:
            window = values[i - period + 1 : i + 1]
            result.append(sum(window) / period)
    return result


def ema(values: Sequence[float], period: int) -> list[float | None]:
    """Exponential moving average.

    The first value is the raw input; until the window is full each value
    is the running mean of everything seen so far. After that:

        EMA = value × k + previous EMA × (1 - k),  k = 2 / (period + 1)

    Constant input therefore produces the same constant at every index.

    Args:
        values: Price series, oldest first
        period: Smoothing period

    Returns:
        List of EMA values (defined at every index of a non-empty series)
    """
    multiplier = 2 / (period + 1)
    result: list[float | None] = []

    for i, value in enumerate(values):
        if i == 0:
            result.append(value)
        elif i < period - 1:
            result.append(sum(values[: i + 1]) / (i + 1))
        else:
            prev = result[i - 1]
            result.append(value * multiplier + prev * (1 - multiplier))

    return result


def wma(values: Sequence[float], period: int) -> list[float | None]:
    """Linearly weighted moving average (weights 1..period, newest heaviest)."""
    weight_sum = period * (period + 1) / 2
    result: list[float | None] = []
    for i in range(len(values)):
        if period < 1 or i < period - 1:
            result.append(None)
            continue
        window = values[i - period + 1 : i + 1]
        weighted = sum(value * (j + 1) for j, value in enumerate(window))
        result.append(weighted / weight_sum)
    return result


# =============================================================================
# OSCILLATORS
# =============================================================================


def rsi(closes: Sequence[float], period: int = RSI_PERIOD) -> list[float | None]:
    """Relative Strength Index with Wilder's smoothing.

    Average gain / loss are seeded from the first ``period`` price changes
    and then smoothed:

        avg = (avg × (period - 1) + current) / period

    RSI = 100 when the average loss is zero, otherwise
    100 - 100 / (1 + avg_gain / avg_loss).

    Args:
        closes: Closing prices, oldest first
        period: RSI period (default 14)

    Returns:
        List of RSI values; the first ``period + 1`` entries are None,
        and every entry is None when fewer than ``period + 1`` closes exist
    """
    if len(closes) < period + 1:
        return [None] * len(closes)

    changes = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    gains = [c if c > 0 else 0.0 for c in changes]
    losses = [-c if c < 0 else 0.0 for c in changes]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period

    result: list[float | None] = [None] * (period + 1)

    for i in range(period, len(changes)):
        if avg_loss == 0:
            result.append(100.0)
        else:
            rs = avg_gain / avg_loss
            result.append(100 - (100 / (1 + rs)))

        if i < len(changes) - 1:
            avg_gain = (avg_gain * (period - 1) + gains[i]) / period
            avg_loss = (avg_loss * (period - 1) + losses[i]) / period

    return result


def macd(
    closes: Sequence[float],
    fast_period: int = MACD_FAST,
    slow_period: int = MACD_SLOW,
    signal_period: int = MACD_SIGNAL,
) -> list[MACDPoint]:
    """Moving Average Convergence Divergence.

    MACD = EMA(fast) - EMA(slow). The signal line is an EMA computed over
    the defined MACD values only, then mapped back onto the original
    indices. Histogram = MACD - signal where both exist.

    Args:
        closes: Closing prices, oldest first
        fast_period: Fast EMA period (default 12)
        slow_period: Slow EMA period (default 26)
        signal_period: Signal EMA period (default 9)

    Returns:
        One MACDPoint per input price
    """
    fast = ema(closes, fast_period)
    slow = ema(closes, slow_period)

    macd_line: list[float | None] = [
        f - s if f is not None and s is not None else None
        for f, s in zip(fast, slow)
    ]

    defined = [m for m in macd_line if m is not None]
    signal_values = iter(ema(defined, signal_period))
    signal_line = [next(signal_values) if m is not None else None for m in macd_line]

    points = []
    for m, s in zip(macd_line, signal_line):
        histogram = m - s if m is not None and s is not None else None
        points.append(MACDPoint(macd=m, signal=s, histogram=histogram))
    return points


def stochastic(
    bars: Sequence[Bar],
    k_period: int = STOCHASTIC_K_PERIOD,
    d_period: int = STOCHASTIC_D_PERIOD,
) -> list[StochasticPoint]:
    """Stochastic oscillator.

    %K = (close - lowest low) / (highest high - lowest low) × 100 over the
    trailing ``k_period`` bars, 50 when the window is flat.
    %D = SMA(d_period) of the defined %K values, mapped back onto the
    original indices.

    Args:
        bars: OHLC bars, oldest first
        k_period: %K lookback (default 14)
        d_period: %D smoothing (default 3)

    Returns:
        One StochasticPoint per bar
    """
    k_values: list[float | None] = []
    for i in range(len(bars)):
        if i < k_period - 1:
            k_values.append(None)
            continue
        window = bars[i - k_period + 1 : i + 1]
        highest = max(b.high for b in window)
        lowest = min(b.low for b in window)
        if highest == lowest:
            k_values.append(STOCHASTIC_FLAT)
        else:
            k_values.append((bars[i].close - lowest) / (highest - lowest) * 100)

    d_values = iter(sma([k for k in k_values if k is not None], d_period))
    return [
        StochasticPoint(k=k, d=next(d_values) if k is not None else None)
        for k in k_values
    ]


def williams_r(bars: Sequence[Bar], period: int = WILLIAMS_PERIOD) -> list[float | None]:
    """Williams %R, ranging from -100 (at the low) to 0 (at the high).

    Returns -50 for a flat window.
    """
    result: list[float | None] = []
    for i in range(len(bars)):
        if i < period - 1:
            result.append(None)
            continue
        window = bars[i - period + 1 : i + 1]
        highest = max(b.high for b in window)
        lowest = min(b.low for b in window)
        if highest == lowest:
            result.append(WILLIAMS_FLAT)
        else:
            result.append((highest - bars[i].close) / (highest - lowest) * -100)
    return result


def cci(bars: Sequence[Bar], period: int = CCI_PERIOD) -> list[float | None]:
    """Commodity Channel Index.

    CCI = (TP - SMA(TP)) / (0.015 × mean deviation), TP = (H + L + C) / 3.
    Returns 0 when the mean deviation is zero.
    """
    typical = [(b.high + b.low + b.close) / 3 for b in bars]
    averages = sma(typical, period)

    result: list[float | None] = []
    for i, average in enumerate(averages):
        if average is None:
            result.append(None)
            continue
        window = typical[i - period + 1 : i + 1]
        mean_deviation = sum(abs(tp - average) for tp in window) / period
        if mean_deviation == 0:
            result.append(0.0)
        else:
            result.append((typical[i] - average) / (CCI_CONSTANT * mean_deviation))
    return result


# =============================================================================
# BANDS & VOLUME
# =============================================================================


def bollinger_bands(
    closes: Sequence[float],
    period: int = BOLLINGER_PERIOD,
    std_dev: float = BOLLINGER_STD_DEV,
) -> list[BollingerPoint]:
    """Bollinger bands around an SMA.

    Band half-width is the population standard deviation of the trailing
    window (divided by ``period``, not ``period - 1``) times ``std_dev``.

    Args:
        closes: Closing prices, oldest first
        period: SMA / deviation window (default 20)
        std_dev: Deviation multiplier (default 2)

    Returns:
        One BollingerPoint per input price
    """
    middles = sma(closes, period)
    points = []
    for i, middle in enumerate(middles):
        if middle is None:
            points.append(BollingerPoint())
            continue
        window = closes[i - period + 1 : i + 1]
        variance = sum((value - middle) ** 2 for value in window) / period
        width = math.sqrt(variance) * std_dev
        points.append(
            BollingerPoint(upper=middle + width, middle=middle, lower=middle - width)
        )
    return points


def vwap(bars: Sequence[Bar]) -> list[float | None]:
    """Cumulative volume-weighted average of the typical price.

    None while no volume has traded.
    """
    result: list[float | None] = []
    cumulative_pv = 0.0
    cumulative_volume = 0.0
    for bar in bars:
        typical = (bar.high + bar.low + bar.close) / 3
        cumulative_pv += typical * bar.volume
        cumulative_volume += bar.volume
        result.append(cumulative_pv / cumulative_volume if cumulative_volume else None)
    return result


def obv(bars: Sequence[Bar]) -> list[float]:
    """On-balance volume, starting at 0."""
    result: list[float] = []
    total = 0.0
    for i, bar in enumerate(bars):
        if i > 0:
            if bar.close > bars[i - 1].close:
                total += bar.volume
            elif bar.close < bars[i - 1].close:
                total -= bar.volume
        result.append(total)
    return result


def atr(bars: Sequence[Bar], period: int = ATR_PERIOD) -> list[float | None]:
    """Average true range, an EMA of true ranges.

    TR = max(H - L, |H - prev close|, |L - prev close|). The first bar has
    no previous close, so its ATR is None.
    """
    if not bars:
        return []
    true_ranges = [
        max(
            bar.high - bar.low,
            abs(bar.high - prev.close),
            abs(bar.low - prev.close),
        )
        for prev, bar in zip(bars, bars[1:])
    ]
    return [None, *ema(true_ranges, period)]


def price_source(bars: Sequence[Bar], source: PriceSource | str = PriceSource.CLOSE) -> list[float]:
    """Extract the series an indicator should run on.

    Unknown sources fall back to the close.
    """
    try:
        source = PriceSource(source)
    except ValueError:
        source = PriceSource.CLOSE

    if source == PriceSource.OPEN:
        return [b.open for b in bars]
    elif source == PriceSource.HIGH:
        return [b.high for b in bars]
    elif source == PriceSource.LOW:
        return [b.low for b in bars]
    elif source == PriceSource.HL2:
        return [(b.high + b.low) / 2 for b in bars]
    elif source == PriceSource.HLC3:
        return [(b.high + b.low + b.close) / 3 for b in bars]
    elif source == PriceSource.OHLC4:
        return [(b.open + b.high + b.low + b.close) / 4 for b in bars]
    return [b.close for b in bars]


def latest(values: Sequence[float | None]) -> float | None:
    """Most recent defined value of an indicator series."""
    for value in reversed(values):
        if value is not None:
            return value
    return None
