"""Alert evaluation - decides whether a rule fires for an observation.

The checks are pure predicates. A True result obliges the caller (the
alert store) to latch the rule exactly once; a rule that is inactive or
already triggered never evaluates True, which is what makes firing
at-most-once per rule instance.

Price rules are evaluated against ticks:
- price_above:    price > threshold
- price_below:    price < threshold
- percent_change: |change %| > threshold (< for a less_than operator)
- volume_spike:   volume / average volume >= threshold

Technical rules are evaluated against indicator snapshots:
- rsi_overbought:  RSI > level (70), RSI defaults to 50
- rsi_oversold:    RSI < level (30), RSI defaults to 50
- macd_crossover:  MACD line above signal (bullish only)
- volume_breakout: volume / average volume >= multiplier (2)
- support_break / resistance_break: fire whenever a positive level is present
"""

from smart_alerts.domain.models.alert import AlertRule, PriceAlert, TechnicalAlert
from smart_alerts.domain.models.enums import (
    ComparisonOperator,
    PriceAlertKind,
    TechnicalAlertKind,
)
from smart_alerts.domain.models.market import PriceTick, TechnicalSnapshot
from smart_alerts.domain.rules import (
    DEFAULT_VOLUME_MULTIPLIER,
    RSI_NEUTRAL,
    RSI_OVERBOUGHT,
    RSI_OVERSOLD,
)


def is_armed(alert: PriceAlert | TechnicalAlert) -> bool:
    """Active and not yet triggered."""
    return alert.active and not alert.triggered


def check_price_alert(
    alert: PriceAlert,
    tick: PriceTick,
    average_volume: float | None = None,
) -> bool:
    """Check a price rule against a tick.

    Args:
        alert: The price rule
        tick: Latest quote
        average_volume: Reference volume for volume_spike rules; falls back
            to the tick's own average volume

    Returns:
        True if the rule should fire now
    """
    if not is_armed(alert) or alert.symbol != tick.symbol:
        return False

    if alert.kind == PriceAlertKind.ABOVE:
        return tick.price > alert.threshold

    elif alert.kind == PriceAlertKind.BELOW:
        return tick.price < alert.threshold

    elif alert.kind == PriceAlertKind.PERCENT_CHANGE:
        move = abs(tick.change_percent)
        if alert.operator == ComparisonOperator.LESS_THAN:
            return move < alert.threshold
        return move > alert.threshold

    elif alert.kind == PriceAlertKind.VOLUME_SPIKE:
        reference = average_volume if average_volume is not None else tick.average_volume
        if not reference or reference <= 0:
            return False
        return tick.volume / reference >= alert.threshold

    return False


def check_technical_alert(alert: TechnicalAlert, snapshot: TechnicalSnapshot) -> bool:
    """Check a technical rule against an indicator snapshot.

    Support and resistance breaks fire whenever the snapshot carries a
    positive level, without comparing it to the price.

    Args:
        alert: The technical rule
        snapshot: Indicator readings for the rule's symbol

    Returns:
        True if the rule should fire now
    """
    if not is_armed(alert):
        return False
    if snapshot.symbol is not None and snapshot.symbol != alert.symbol:
        return False

    params = alert.parameters
    current_rsi = snapshot.rsi if snapshot.rsi is not None else RSI_NEUTRAL

    if alert.kind == TechnicalAlertKind.RSI_OVERBOUGHT:
        level = params.rsi_level if params.rsi_level is not None else RSI_OVERBOUGHT
        return current_rsi > level

    elif alert.kind == TechnicalAlertKind.RSI_OVERSOLD:
        level = params.rsi_level if params.rsi_level is not None else RSI_OVERSOLD
        return current_rsi < level

    elif alert.kind == TechnicalAlertKind.MACD_CROSSOVER:
        point = snapshot.macd
        if point is None or point.macd is None or point.signal is None:
            return False
        return point.macd > point.signal

    elif alert.kind == TechnicalAlertKind.SUPPORT_BREAK:
        return (snapshot.support_level or 0) > 0

    elif alert.kind == TechnicalAlertKind.RESISTANCE_BREAK:
        return (snapshot.resistance_level or 0) > 0

    elif alert.kind == TechnicalAlertKind.VOLUME_BREAKOUT:
        if not snapshot.volume or not snapshot.average_volume:
            return False
        multiplier = params.volume_multiplier or DEFAULT_VOLUME_MULTIPLIER
        return snapshot.volume / snapshot.average_volume >= multiplier

    return False


def evaluate(rule: AlertRule, observation: PriceTick | TechnicalSnapshot) -> bool:
    """Dispatch over the rule union.

    Price rules need a tick, technical rules a snapshot. News rules never
    fire from market data.
    """
    if isinstance(rule, PriceAlert) and isinstance(observation, PriceTick):
        return check_price_alert(rule, observation)
    elif isinstance(rule, TechnicalAlert) and isinstance(observation, TechnicalSnapshot):
        return check_technical_alert(rule, observation)
    return False
