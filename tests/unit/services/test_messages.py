"""Unit tests for notification content."""

import pytest

from smart_alerts.domain.models.alert import (
    NewsAlertDraft,
    PriceAlertDraft,
    TechnicalAlertDraft,
)
from smart_alerts.domain.models.enums import (
    PriceAlertKind,
    Priority,
    SoundPattern,
    TechnicalAlertKind,
)
from smart_alerts.domain.models.market import MACDPoint, TechnicalSnapshot
from smart_alerts.domain.services.messages import (
    build_test_visual,
    build_visual,
    display_timing,
    format_volume,
    indicator_label,
    notification_title,
    sound_for_priority,
    trigger_context,
)
from tests.fakes import make_tick


class TestFormatVolume:
    @pytest.mark.parametrize(
        "volume,expected",
        [(950, "950"), (1500, "1.5K"), (2_300_000, "2.3M"), (1_100_000_000, "1.1B")],
    )
    def test_suffixes(self, volume, expected):
        assert format_volume(volume) == expected


class TestPriorityMapping:
    """Tests for priority-driven sound and timing."""

    @pytest.mark.parametrize(
        "priority,pattern",
        [
            (Priority.CRITICAL, SoundPattern.CRITICAL),
            (Priority.HIGH, SoundPattern.WARNING),
            (Priority.MEDIUM, SoundPattern.INFO),
            (Priority.LOW, SoundPattern.INFO),
        ],
    )
    def test_sound_for_priority(self, priority, pattern):
        assert sound_for_priority(priority) == pattern

    def test_critical_requires_interaction(self):
        assert display_timing(Priority.CRITICAL) == (True, None)

    def test_high_stays_eight_seconds(self):
        assert display_timing(Priority.HIGH) == (False, 8000)

    def test_default_five_seconds(self):
        assert display_timing(Priority.MEDIUM) == (False, 5000)


class TestTitles:
    """Tests for in-app titles."""

    def test_price_title(self):
        rule = PriceAlertDraft(symbol="AAPL", kind=PriceAlertKind.ABOVE, threshold=1).to_alert()
        assert notification_title(rule) == "AAPL Price Alert"

    def test_technical_title(self):
        rule = TechnicalAlertDraft(symbol="AAPL", kind=TechnicalAlertKind.RSI_OVERSOLD).to_alert()
        assert notification_title(rule) == "AAPL Technical Alert"

    def test_news_title(self):
        rule = NewsAlertDraft(keywords=("fda",)).to_alert()
        assert notification_title(rule) == "News Alert"

    def test_indicator_label(self):
        rule = TechnicalAlertDraft(symbol="AAPL", kind=TechnicalAlertKind.MACD_CROSSOVER).to_alert()
        assert indicator_label(rule) == "MACD CROSSOVER"


class TestBuildVisual:
    """Tests for rendered visual notifications."""

    def test_price_above(self):
        rule = PriceAlertDraft(symbol="AAPL", kind=PriceAlertKind.ABOVE, threshold=150).to_alert()
        visual = build_visual(rule, make_tick(price=151.237))

        assert visual.title == "📈 AAPL Price Alert"
        assert visual.body == "AAPL has risen above $150.00. Current price: $151.24"
        assert visual.tag == "price-alert-AAPL"

    def test_price_below(self):
        rule = PriceAlertDraft(symbol="AAPL", kind=PriceAlertKind.BELOW, threshold=100).to_alert()
        visual = build_visual(rule, make_tick(price=99.5))

        assert visual.title == "📉 AAPL Price Alert"
        assert visual.body == "AAPL has fallen below $100.00. Current price: $99.50"

    def test_volume_spike_mentions_volume(self):
        rule = PriceAlertDraft(
            symbol="AAPL", kind=PriceAlertKind.VOLUME_SPIKE, threshold=2
        ).to_alert()
        visual = build_visual(rule, make_tick(volume=2_500_000))

        assert visual.title == "📈 AAPL Alert"
        assert visual.body == f"{rule.message} (volume 2.5M)"

    def test_technical(self):
        rule = TechnicalAlertDraft(symbol="AAPL", kind=TechnicalAlertKind.RSI_OVERBOUGHT).to_alert()
        visual = build_visual(rule, TechnicalSnapshot(symbol="AAPL", rsi=75))

        assert visual.title == "📊 AAPL Technical Alert"
        assert visual.body == "RSI OVERBOUGHT: RSI indicates AAPL may be overbought"
        assert visual.tag == "technical-alert-AAPL-RSI OVERBOUGHT"

    def test_priority_drives_timing(self):
        rule = PriceAlertDraft(
            symbol="AAPL", kind=PriceAlertKind.ABOVE, threshold=1, priority=Priority.CRITICAL
        ).to_alert()
        visual = build_visual(rule, make_tick(price=2))

        assert visual.priority == Priority.CRITICAL
        assert visual.require_interaction is True
        assert visual.auto_close_ms is None

    def test_test_visual(self):
        visual = build_test_visual()
        assert visual.title == "🧪 Test Notification"
        assert visual.body == "If you can see this, notifications are working correctly!"
        assert visual.priority == Priority.LOW


class TestTriggerContext:
    """Tests for notification data."""

    def test_price_context(self):
        rule = PriceAlertDraft(symbol="AAPL", kind=PriceAlertKind.ABOVE, threshold=150).to_alert()
        data = trigger_context(rule, make_tick(price=151, change_percent=1.2))

        assert data["alert_id"] == rule.id
        assert data["current_price"] == 151
        assert data["trigger_price"] == 150
        assert data["change_percent"] == 1.2

    def test_technical_context_includes_macd(self):
        rule = TechnicalAlertDraft(symbol="AAPL", kind=TechnicalAlertKind.MACD_CROSSOVER).to_alert()
        snapshot = TechnicalSnapshot(symbol="AAPL", rsi=55, macd=MACDPoint(macd=1, signal=0.5))
        data = trigger_context(rule, snapshot)

        assert data["rsi"] == 55
        assert data["macd"]["signal"] == 0.5
