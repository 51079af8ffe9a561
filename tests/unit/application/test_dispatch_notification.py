"""Unit tests for NotificationDispatcher."""

import pytest

from smart_alerts.application.commands.dispatch_notification import NotificationDispatcher
from smart_alerts.domain.models.alert import (
    NotificationPreferences,
    PriceAlertDraft,
    TechnicalAlertDraft,
)
from smart_alerts.domain.models.enums import (
    NotificationCategory,
    PriceAlertKind,
    Priority,
    SoundPattern,
    TechnicalAlertKind,
)
from smart_alerts.domain.models.market import TechnicalSnapshot
from smart_alerts.domain.models.state import AlertSettings
from tests.fakes import RecordingDisplay, make_tick


def make_rule(priority=Priority.MEDIUM, browser=True, sound=True):
    """Create a fired price rule."""
    return PriceAlertDraft(
        symbol="AAPL",
        kind=PriceAlertKind.ABOVE,
        threshold=150,
        priority=priority,
        notifications=NotificationPreferences(browser=browser, sound=sound),
    ).to_alert()


@pytest.fixture
def dispatcher(display, sound_player):
    return NotificationDispatcher(display=display, sound_player=sound_player)


class TestDispatch:
    """Tests for dispatching fired rules."""

    async def test_builds_notification(self, dispatcher):
        """The record mirrors the rule."""
        rule = make_rule(priority=Priority.HIGH)
        notification = await dispatcher.dispatch(rule, make_tick(price=151))

        assert notification.alert_id == rule.id
        assert notification.title == "AAPL Price Alert"
        assert notification.message == rule.message
        assert notification.category == NotificationCategory.PRICE
        assert notification.priority == Priority.HIGH
        assert notification.read is False
        assert notification.data["current_price"] == 151

    async def test_technical_category(self, dispatcher):
        rule = TechnicalAlertDraft(symbol="AAPL", kind=TechnicalAlertKind.RSI_OVERSOLD).to_alert()
        notification = await dispatcher.dispatch(rule, TechnicalSnapshot(rsi=20))
        assert notification.category == NotificationCategory.TECHNICAL

    async def test_delivers_on_both_channels(self, dispatcher, display, sound_player):
        await dispatcher.dispatch(make_rule(), make_tick(price=151))

        assert len(display.shown) == 1
        assert sound_player.played == [SoundPattern.INFO]

    async def test_sound_follows_priority(self, dispatcher, sound_player):
        await dispatcher.dispatch(make_rule(priority=Priority.CRITICAL), make_tick(price=151))
        assert sound_player.played == [SoundPattern.CRITICAL]

    async def test_rule_preferences_respected(self, dispatcher, display, sound_player):
        await dispatcher.dispatch(make_rule(browser=False, sound=False), make_tick(price=151))

        assert display.shown == []
        assert sound_player.played == []

    async def test_global_settings_respected(self, dispatcher, display, sound_player):
        dispatcher.configure(AlertSettings(browser_notifications=False, sound_enabled=False))
        await dispatcher.dispatch(make_rule(), make_tick(price=151))

        assert display.shown == []
        assert sound_player.played == []

    async def test_no_channels_still_returns_notification(self):
        notification = await NotificationDispatcher().dispatch(make_rule(), make_tick(price=151))
        assert notification.alert_id.startswith("price_")


class TestPermission:
    """Tests for lazy permission handling."""

    async def test_requested_once(self, dispatcher, display):
        await dispatcher.dispatch(make_rule(), make_tick(price=151))
        await dispatcher.dispatch(make_rule(), make_tick(price=151))

        assert display.permission_requests == 1
        assert len(display.shown) == 2

    async def test_denied_permission_skips_visual(self, sound_player):
        display = RecordingDisplay(granted=False)
        dispatcher = NotificationDispatcher(display=display, sound_player=sound_player)

        await dispatcher.dispatch(make_rule(), make_tick(price=151))
        await dispatcher.dispatch(make_rule(), make_tick(price=151))

        assert display.shown == []
        assert display.permission_requests == 1
        assert len(sound_player.played) == 2


class TestChannelFailures:
    """Tests for failure isolation."""

    async def test_display_failure_does_not_raise(self, sound_player):
        dispatcher = NotificationDispatcher(
            display=RecordingDisplay(fail=True), sound_player=sound_player
        )
        notification = await dispatcher.dispatch(make_rule(), make_tick(price=151))

        assert notification is not None
        assert sound_player.played == [SoundPattern.INFO]


class TestDispatchTest:
    """Tests for the settings test notification."""

    async def test_uses_enabled_channels(self, dispatcher, display, sound_player):
        await dispatcher.dispatch_test()

        assert display.shown[0].title == "🧪 Test Notification"
        assert sound_player.played == [SoundPattern.INFO]

    async def test_disabled_channels_silent(self, dispatcher, display, sound_player):
        dispatcher.configure(AlertSettings(browser_notifications=False, sound_enabled=False))
        await dispatcher.dispatch_test()

        assert display.shown == []
        assert sound_player.played == []
