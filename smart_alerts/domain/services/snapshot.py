"""Technical snapshots, support/resistance detection and alert suggestions.

Builds the indicator bundle technical rules are evaluated against from
the bounded price / volume history the store keeps per symbol.
"""

from collections.abc import Sequence

from smart_alerts.domain.models.alert import PriceAlertDraft, format_number
from smart_alerts.domain.models.enums import PriceAlertKind, Priority
from smart_alerts.domain.models.market import PriceTick, TechnicalSnapshot
from smart_alerts.domain.rules import (
    DEFAULT_VOLUME_MULTIPLIER,
    MACD_SLOW,
    RSI_NEUTRAL,
    RSI_PERIOD,
    SUGGESTION_PRICE_OFFSET,
    SUPPORT_RESISTANCE_WINDOW,
)
from smart_alerts.domain.services.indicators import macd


def latest_rsi(prices: Sequence[float], period: int = RSI_PERIOD) -> float:
    """Current Wilder RSI over the whole series.

    Seeds the averages from the first ``period`` changes and smooths every
    later change into them. Falls back to 50 without enough data.

    Args:
        prices: Price history, oldest first
        period: RSI period (default 14)

    Returns:
        RSI in [0, 100]
    """
    if len(prices) < period + 1:
        return RSI_NEUTRAL

    gains = 0.0
    losses = 0.0
    for i in range(1, period + 1):
        change = prices[i] - prices[i - 1]
        if change > 0:
            gains += change
        else:
            losses -= change

    avg_gain = gains / period
    avg_loss = losses / period

    for i in range(period + 1, len(prices)):
        change = prices[i] - prices[i - 1]
        avg_gain = (avg_gain * (period - 1) + max(change, 0.0)) / period
        avg_loss = (avg_loss * (period - 1) + max(-change, 0.0)) / period

    if avg_loss == 0:
        return 100.0
    return 100 - (100 / (1 + avg_gain / avg_loss))


def average_volume(volumes: Sequence[float]) -> float | None:
    """Mean of the given volumes, None when there are none."""
    if not volumes:
        return None
    return sum(volumes) / len(volumes)


def build_snapshot(
    tick: PriceTick,
    prices: Sequence[float],
    volumes: Sequence[float] = (),
    support_level: float | None = None,
    resistance_level: float | None = None,
) -> TechnicalSnapshot:
    """Compute the snapshot for a symbol after a tick was recorded.

    Args:
        tick: The tick just received (its price is the last of ``prices``)
        prices: Price history including the tick, oldest first
        volumes: Volumes of the ticks *before* this one, used as the
            reference average when the tick does not carry one
        support_level: Optional externally supplied support
        resistance_level: Optional externally supplied resistance

    Returns:
        TechnicalSnapshot; MACD is omitted until a full slow-EMA window of
        prices exists
    """
    macd_point = None
    if len(prices) >= MACD_SLOW:
        macd_point = macd(prices)[-1]

    reference_volume = tick.average_volume
    if reference_volume is None:
        reference_volume = average_volume(volumes)

    return TechnicalSnapshot(
        symbol=tick.symbol,
        price=tick.price,
        rsi=latest_rsi(prices),
        macd=macd_point,
        volume=tick.volume,
        average_volume=reference_volume,
        support_level=support_level,
        resistance_level=resistance_level,
        timestamp=tick.timestamp,
    )


def detect_support_resistance(
    prices: Sequence[float],
    window: int = SUPPORT_RESISTANCE_WINDOW,
) -> tuple[list[float], list[float]]:
    """Find local minima (support) and maxima (resistance).

    A point qualifies when every price within ``window`` positions on both
    sides is at least (support) or at most (resistance) as large.

    Args:
        prices: Price history, oldest first
        window: Points compared on each side

    Returns:
        (support levels, resistance levels) in chronological order
    """
    support: list[float] = []
    resistance: list[float] = []

    for i in range(window, len(prices) - window):
        current = prices[i]
        neighbours = [*prices[i - window : i], *prices[i + 1 : i + window + 1]]
        if all(p >= current for p in neighbours):
            support.append(current)
        if all(p <= current for p in neighbours):
            resistance.append(current)

    return support, resistance


def generate_alert_suggestions(
    symbol: str,
    tick: PriceTick,
    snapshot: TechnicalSnapshot,
) -> list[PriceAlertDraft]:
    """Suggest price rules around the current market state.

    - Break of a known support / resistance level (high priority)
    - A 5% move up or down from the current price (medium)
    - A 2x volume spike when an average volume is known (medium)
    """
    suggestions = []

    if snapshot.support_level:
        suggestions.append(
            PriceAlertDraft(
                symbol=symbol,
                kind=PriceAlertKind.BELOW,
                threshold=snapshot.support_level,
                message=f"{symbol} broke below support level at ${format_number(snapshot.support_level)}",
                priority=Priority.HIGH,
            )
        )
    if snapshot.resistance_level:
        suggestions.append(
            PriceAlertDraft(
                symbol=symbol,
                kind=PriceAlertKind.ABOVE,
                threshold=snapshot.resistance_level,
                message=f"{symbol} broke above resistance level at ${format_number(snapshot.resistance_level)}",
                priority=Priority.HIGH,
            )
        )

    suggestions.append(
        PriceAlertDraft(
            symbol=symbol,
            kind=PriceAlertKind.ABOVE,
            threshold=tick.price * (1 + SUGGESTION_PRICE_OFFSET),
            message=f"{symbol} gained 5% or more",
            priority=Priority.MEDIUM,
        )
    )
    suggestions.append(
        PriceAlertDraft(
            symbol=symbol,
            kind=PriceAlertKind.BELOW,
            threshold=tick.price * (1 - SUGGESTION_PRICE_OFFSET),
            message=f"{symbol} dropped 5% or more",
            priority=Priority.MEDIUM,
        )
    )

    if snapshot.average_volume:
        suggestions.append(
            PriceAlertDraft(
                symbol=symbol,
                kind=PriceAlertKind.VOLUME_SPIKE,
                threshold=DEFAULT_VOLUME_MULTIPLIER,
                message=f"{symbol} volume spike detected (2x average)",
                priority=Priority.MEDIUM,
            )
        )

    return suggestions
