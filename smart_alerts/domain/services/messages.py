"""Notification content: titles, bodies and sound selection."""

from smart_alerts.domain.models.alert import AlertRule, PriceAlert, TechnicalAlert
from smart_alerts.domain.models.enums import PriceAlertKind, Priority, SoundPattern
from smart_alerts.domain.models.market import PriceTick, TechnicalSnapshot
from smart_alerts.domain.models.notification import VisualNotification
from smart_alerts.domain.rules import DEFAULT_DISPLAY_MS, HIGH_PRIORITY_DISPLAY_MS

TEST_NOTIFICATION_TITLE = "🧪 Test Notification"
TEST_NOTIFICATION_BODY = "If you can see this, notifications are working correctly!"
TEST_ALERT_TITLE = "🧪 Test Alert"
TEST_ALERT_MESSAGE = "This is a test alert to verify your notification settings."


def format_volume(volume: float) -> str:
    """Abbreviate a share volume (1.5K, 2.3M, 1.1B)."""
    if volume >= 1e9:
        return f"{volume / 1e9:.1f}B"
    if volume >= 1e6:
        return f"{volume / 1e6:.1f}M"
    if volume >= 1e3:
        return f"{volume / 1e3:.1f}K"
    return f"{volume:g}"


def sound_for_priority(priority: Priority) -> SoundPattern:
    """critical → critical, high → warning, anything else → info."""
    if priority == Priority.CRITICAL:
        return SoundPattern.CRITICAL
    elif priority == Priority.HIGH:
        return SoundPattern.WARNING
    return SoundPattern.INFO


def display_timing(priority: Priority) -> tuple[bool, int | None]:
    """(require_interaction, auto_close_ms) for a priority."""
    if priority == Priority.CRITICAL:
        return True, None
    elif priority == Priority.HIGH:
        return False, HIGH_PRIORITY_DISPLAY_MS
    return False, DEFAULT_DISPLAY_MS


def notification_title(rule: AlertRule) -> str:
    """Title stored on the in-app notification record."""
    if isinstance(rule, PriceAlert):
        return f"{rule.symbol} Price Alert"
    elif isinstance(rule, TechnicalAlert):
        return f"{rule.symbol} Technical Alert"
    return "News Alert"


def indicator_label(rule: TechnicalAlert) -> str:
    """e.g. ``rsi_overbought`` → ``RSI OVERBOUGHT``."""
    return rule.kind.value.replace("_", " ", 1).upper()


def trigger_context(rule: AlertRule, observation: PriceTick | TechnicalSnapshot) -> dict:
    """JSON-safe data attached to a notification."""
    data: dict = {"alert_id": rule.id, "category": rule.category}
    if isinstance(observation, PriceTick):
        data.update(
            symbol=observation.symbol,
            current_price=observation.price,
            change_percent=observation.change_percent,
            volume=observation.volume,
        )
        if isinstance(rule, PriceAlert):
            data["trigger_price"] = rule.threshold
    elif isinstance(observation, TechnicalSnapshot):
        data.update(
            symbol=observation.symbol,
            rsi=observation.rsi,
            volume=observation.volume,
            average_volume=observation.average_volume,
        )
        if observation.macd is not None:
            data["macd"] = observation.macd.model_dump()
    return data


def build_visual(
    rule: AlertRule,
    observation: PriceTick | TechnicalSnapshot,
) -> VisualNotification:
    """Render the OS-level notification for a fired rule.

    Price above/below rules spell out target and current price; other
    price rules show the rule message; technical rules prefix the message
    with the indicator name.
    """
    require_interaction, auto_close = display_timing(rule.priority)
    data = trigger_context(rule, observation)

    if isinstance(rule, PriceAlert) and rule.kind in (
        PriceAlertKind.ABOVE,
        PriceAlertKind.BELOW,
    ):
        above = rule.kind == PriceAlertKind.ABOVE
        price = observation.price if observation.price is not None else rule.threshold
        title = f"{'📈' if above else '📉'} {rule.symbol} Price Alert"
        body = (
            f"{rule.symbol} has {'risen above' if above else 'fallen below'} "
            f"${rule.threshold:.2f}. Current price: ${price:.2f}"
        )
        tag = f"price-alert-{rule.symbol}"
    elif isinstance(rule, PriceAlert):
        title = f"📈 {rule.symbol} Alert"
        body = rule.message
        if rule.kind == PriceAlertKind.VOLUME_SPIKE and isinstance(observation, PriceTick):
            body = f"{rule.message} (volume {format_volume(observation.volume)})"
        tag = f"price-alert-{rule.symbol}"
    elif isinstance(rule, TechnicalAlert):
        indicator = indicator_label(rule)
        title = f"📊 {rule.symbol} Technical Alert"
        body = f"{indicator}: {rule.message}"
        tag = f"technical-alert-{rule.symbol}-{indicator}"
    else:
        symbols = ", ".join(rule.symbols)
        title = f"📰 {symbols + ' ' if symbols else ''}News Alert"
        body = rule.message
        tag = f"news-alert-{symbols or 'general'}"

    return VisualNotification(
        title=title,
        body=body,
        tag=tag,
        priority=rule.priority,
        require_interaction=require_interaction,
        auto_close_ms=auto_close,
        data=data,
    )


def build_test_visual() -> VisualNotification:
    """Visual shown by the settings test action."""
    require_interaction, auto_close = display_timing(Priority.LOW)
    return VisualNotification(
        title=TEST_NOTIFICATION_TITLE,
        body=TEST_NOTIFICATION_BODY,
        tag="test-notification",
        priority=Priority.LOW,
        require_interaction=require_interaction,
        auto_close_ms=auto_close,
    )
