"""Unit tests for the AlertStore lifecycle manager."""

import pytest
from pydantic import ValidationError

from smart_alerts.application.commands.alert_store import AlertStore, prepend_capped
from smart_alerts.application.commands.dispatch_notification import NotificationDispatcher
from smart_alerts.domain.models.alert import (
    NewsAlertDraft,
    PriceAlertDraft,
    TechnicalAlertDraft,
    TechnicalParameters,
)
from smart_alerts.domain.models.enums import (
    AlertCategory,
    ComparisonOperator,
    NotificationCategory,
    PriceAlertKind,
    Priority,
    TechnicalAlertKind,
)
from smart_alerts.domain.models.market import TechnicalSnapshot
from smart_alerts.domain.models.notification import Notification
from smart_alerts.domain.models.state import AlertSettings, AlertState
from tests.fakes import InMemoryAlertStateRepository, make_tick


def price_draft(symbol="AAPL", kind=PriceAlertKind.ABOVE, threshold=150.0, **kwargs):
    """Create a price rule draft."""
    return PriceAlertDraft(symbol=symbol, kind=kind, threshold=threshold, **kwargs)


def make_notification(alert_id: str) -> Notification:
    return Notification(
        alert_id=alert_id,
        title="t",
        message="m",
        category=NotificationCategory.PRICE,
        priority=Priority.MEDIUM,
    )


@pytest.fixture
def dispatcher(display, sound_player):
    return NotificationDispatcher(display=display, sound_player=sound_player)


@pytest.fixture
async def store(repository, dispatcher):
    store = AlertStore(repository, dispatcher)
    await store.load()
    return store


class TestPriceTriggering:
    """Tests for price rules firing on ticks."""

    async def test_rule_fires_once_above_threshold(self, store):
        """A tick above the threshold fires and latches the rule."""
        rule = await store.create(price_draft(threshold=150))

        fired = await store.on_tick(make_tick(price=151))

        assert len(fired) == 1
        assert fired[0].category == NotificationCategory.PRICE
        assert fired[0].alert_id == rule.id
        latched = store.state.price_alerts[0]
        assert latched.triggered is True
        assert latched.triggered_at is not None

    async def test_rule_silent_below_threshold(self, store):
        await store.create(price_draft(threshold=150))

        fired = await store.on_tick(make_tick(price=149))

        assert fired == []
        assert store.state.price_alerts[0].triggered is False

    async def test_latch_holds_across_ticks(self, store):
        """The same triggering tick twice yields one notification."""
        await store.create(price_draft(threshold=150))

        await store.on_tick(make_tick(price=151))
        await store.on_tick(make_tick(price=151))

        assert len(store.notifications) == 1

    async def test_trigger_metadata_recorded(self, store):
        await store.create(price_draft(threshold=150))
        await store.on_tick(make_tick(price=152, change_percent=1.5))

        metadata = store.state.price_alerts[0].metadata
        assert metadata.current_price == 152
        assert metadata.trigger_price == 150
        assert metadata.percent_change == 1.5

    async def test_every_matching_rule_fires(self, store):
        """No early exit after the first rule."""
        await store.create(price_draft(threshold=140))
        await store.create(price_draft(threshold=145))
        await store.create(price_draft(kind=PriceAlertKind.BELOW, threshold=100))

        fired = await store.on_tick(make_tick(price=150))

        assert len(fired) == 2
        assert [n.alert_id for n in store.notifications] == [
            fired[1].alert_id,
            fired[0].alert_id,
        ]

    async def test_other_symbols_untouched(self, store):
        await store.create(price_draft(symbol="MSFT", threshold=1))
        assert await store.on_tick(make_tick(symbol="AAPL", price=500)) == []

    async def test_inactive_rule_does_not_fire(self, store):
        rule = await store.create(price_draft(threshold=150))
        await store.toggle_active(rule.id, AlertCategory.PRICE)

        assert await store.on_tick(make_tick(price=200)) == []

    async def test_volume_spike_uses_history(self, store):
        """The average is taken over ticks before the current one."""
        await store.create(price_draft(kind=PriceAlertKind.VOLUME_SPIKE, threshold=3))

        await store.on_tick(make_tick(price=100, volume=1000))
        await store.on_tick(make_tick(price=100, volume=1000))
        fired = await store.on_tick(make_tick(price=100, volume=3000))

        assert len(fired) == 1

    async def test_persists_only_when_something_fires(self, store, repository):
        await store.create(price_draft(threshold=150))
        saves = repository.saves

        await store.on_tick(make_tick(price=100))
        assert repository.saves == saves

        await store.on_tick(make_tick(price=151))
        assert repository.saves == saves + 1
        assert repository.state.price_alerts[0].triggered is True


class TestTechnicalTriggering:
    """Tests for technical rules."""

    async def test_rsi_from_tick_history(self, store):
        """A steady climb drives RSI to 100 and fires overbought."""
        await store.create(
            TechnicalAlertDraft(symbol="AAPL", kind=TechnicalAlertKind.RSI_OVERBOUGHT)
        )

        fired = []
        for i in range(16):
            fired.extend(await store.on_tick(make_tick(price=100 + i)))

        assert len(fired) == 1
        assert fired[0].category == NotificationCategory.TECHNICAL
        assert store.state.technical_alerts[0].triggered is True

    async def test_short_history_is_neutral(self, store):
        await store.create(
            TechnicalAlertDraft(symbol="AAPL", kind=TechnicalAlertKind.RSI_OVERBOUGHT)
        )
        for i in range(5):
            assert await store.on_tick(make_tick(price=100 + i)) == []

    async def test_level_breaks_need_a_supplied_level(self, store):
        """Ticks carry no support level, external snapshots do."""
        await store.create(
            TechnicalAlertDraft(symbol="AAPL", kind=TechnicalAlertKind.SUPPORT_BREAK)
        )
        assert await store.on_tick(make_tick(price=50)) == []

        fired = await store.evaluate_snapshot(
            TechnicalSnapshot(symbol="AAPL", support_level=60)
        )
        assert len(fired) == 1

    async def test_evaluate_snapshot_latches(self, store):
        await store.create(
            TechnicalAlertDraft(
                symbol="AAPL",
                kind=TechnicalAlertKind.RSI_OVERSOLD,
                parameters=TechnicalParameters(rsi_level=30),
            )
        )
        snapshot = TechnicalSnapshot(symbol="AAPL", rsi=20)

        assert len(await store.evaluate_snapshot(snapshot)) == 1
        assert await store.evaluate_snapshot(snapshot) == []

    async def test_news_rules_never_fire(self, store):
        await store.create(NewsAlertDraft(keywords=("earnings",), symbols=("AAPL",)))
        assert await store.on_tick(make_tick(price=999)) == []


class TestNotificationCap:
    """Tests for the capped notification list."""

    async def test_oldest_evicted(self, store):
        """Cap of two keeps the two newest."""
        await store.update_settings(max_notifications=2)
        for threshold in (140, 141, 142):
            await store.create(price_draft(threshold=threshold))

        fired = await store.on_tick(make_tick(price=150))

        assert len(fired) == 3
        assert len(store.notifications) == 2
        assert [n.id for n in store.notifications] == [fired[2].id, fired[1].id]

    async def test_lowering_cap_truncates(self, store):
        for threshold in (140, 141, 142):
            await store.create(price_draft(threshold=threshold))
        await store.on_tick(make_tick(price=150))

        await store.update_settings(max_notifications=1)

        assert len(store.notifications) == 1

    def test_prepend_capped_order(self):
        existing = [make_notification("old")]
        new = [make_notification("a"), make_notification("b")]

        result = prepend_capped(existing, new, 2)

        assert [n.alert_id for n in result] == ["b", "a"]


class TestRuleManagement:
    """Tests for create, update, toggle, delete and clear."""

    async def test_create_persists(self, store, repository):
        rule = await store.create(price_draft())
        assert repository.state.price_alerts == [rule]

    async def test_toggle_twice_restores(self, store):
        rule = await store.create(price_draft())

        await store.toggle_active(rule.id, AlertCategory.PRICE)
        assert store.state.price_alerts[0].active is False
        await store.toggle_active(rule.id, AlertCategory.PRICE)
        assert store.state.price_alerts[0] == rule

    async def test_toggle_unknown_id(self, store):
        assert await store.toggle_active("missing", AlertCategory.PRICE) is None

    async def test_toggle_news_rule(self, store):
        rule = await store.create(NewsAlertDraft(keywords=("fda",)))
        toggled = await store.toggle_active(rule.id, AlertCategory.NEWS)
        assert toggled.active is False

    async def test_delete(self, store):
        rule = await store.create(price_draft())

        assert await store.delete(rule.id, AlertCategory.PRICE) is True
        assert store.state.price_alerts == []
        assert await store.delete(rule.id, AlertCategory.PRICE) is False

    async def test_delete_keeps_notifications(self, store):
        rule = await store.create(price_draft(threshold=1))
        await store.on_tick(make_tick(price=2))

        await store.delete(rule.id, AlertCategory.PRICE)

        assert len(store.notifications) == 1

    async def test_update_merges_fields(self, store):
        rule = await store.create(price_draft(threshold=150))

        updated = await store.update(rule.id, threshold=160, message="New target")

        assert updated.threshold == 160
        assert updated.message == "New target"
        assert updated.id == rule.id
        assert store.state.price_alerts[0] == updated

    async def test_update_ignores_identity(self, store):
        rule = await store.create(price_draft())
        updated = await store.update(rule.id, id="other", created_at=None)

        assert updated.id == rule.id
        assert updated.created_at == rule.created_at

    async def test_update_cannot_rearm_triggered_rule(self, store, display):
        """Only delete or clear_triggered reset the latch."""
        rule = await store.create(price_draft(threshold=150))
        await store.on_tick(make_tick(price=151))
        latched = store.state.price_alerts[0]

        updated = await store.update(
            rule.id, triggered=False, triggered_at=None, metadata=None, threshold=140
        )
        fired = await store.on_tick(make_tick(price=151))

        assert fired == []
        assert updated.threshold == 140
        assert updated.triggered is True
        assert updated.triggered_at == latched.triggered_at
        assert updated.metadata == latched.metadata
        assert len(store.notifications) == 1
        assert len(display.shown) == 1

    async def test_update_kind_rederives_operator(self, store):
        rule = await store.create(price_draft(kind=PriceAlertKind.ABOVE))
        updated = await store.update(rule.id, kind=PriceAlertKind.BELOW)
        assert updated.operator == ComparisonOperator.LESS_THAN

    async def test_update_invalid_value_rejected(self, store):
        rule = await store.create(price_draft())
        with pytest.raises(ValidationError):
            await store.update(rule.id, threshold="not a number")
        assert store.state.price_alerts[0] == rule

    async def test_update_unknown_id(self, store):
        assert await store.update("missing", threshold=1) is None

    async def test_clear_triggered(self, store):
        await store.create(price_draft(threshold=100))
        keep = await store.create(price_draft(threshold=500))
        await store.create(
            TechnicalAlertDraft(symbol="AAPL", kind=TechnicalAlertKind.SUPPORT_BREAK)
        )
        news = await store.create(NewsAlertDraft(keywords=("fda",)))
        await store.on_tick(make_tick(price=150))
        await store.evaluate_snapshot(TechnicalSnapshot(symbol="AAPL", support_level=1))

        removed = await store.clear_triggered()

        assert removed == 2
        assert store.state.price_alerts == [keep]
        assert store.state.technical_alerts == []
        assert store.state.news_alerts == [news]
        assert len(store.notifications) == 2

    async def test_rules_for_symbol(self, store):
        await store.create(price_draft(symbol="AAPL"))
        await store.create(price_draft(symbol="MSFT"))
        await store.create(NewsAlertDraft(symbols=("aapl",)))

        assert len(store.rules_for("aapl")) == 2


class TestNotifications:
    """Tests for notification list operations."""

    async def test_mark_read(self, store):
        await store.create(price_draft(threshold=1))
        fired = await store.on_tick(make_tick(price=2))
        assert store.unread_count == 1

        assert await store.mark_notification_read(fired[0].id) is True
        assert store.unread_count == 0

    async def test_mark_read_unknown(self, store):
        assert await store.mark_notification_read("missing") is False

    async def test_clear_all(self, store):
        await store.create(price_draft(threshold=1))
        await store.on_tick(make_tick(price=2))

        await store.clear_all_notifications()

        assert store.notifications == []
        assert store.unread_count == 0

    async def test_test_notification(self, store, display, sound_player):
        notification = await store.send_test_notification()

        assert notification.title == "🧪 Test Alert"
        assert notification.message == "This is a test alert to verify your notification settings."
        assert notification.category == NotificationCategory.SYSTEM
        assert notification.priority == Priority.LOW
        assert store.notifications[0] == notification
        assert len(display.shown) == 1
        assert len(sound_player.played) == 1

    async def test_test_notification_respects_cap(self, store):
        await store.update_settings(max_notifications=1)
        await store.send_test_notification()
        await store.send_test_notification()

        assert len(store.notifications) == 1


class TestSettings:
    """Tests for settings changes."""

    async def test_disabling_sound_applies_immediately(self, store, sound_player):
        await store.update_settings(sound_enabled=False)
        await store.create(price_draft(threshold=1))

        await store.on_tick(make_tick(price=2))

        assert sound_player.played == []

    async def test_invalid_cap_rejected(self, store):
        with pytest.raises(ValidationError):
            await store.update_settings(max_notifications=0)
        assert store.settings.max_notifications == 50

    async def test_settings_persisted(self, store, repository):
        await store.update_settings(browser_notifications=False)
        assert repository.state.settings.browser_notifications is False


class TestPersistence:
    """Tests for load and save behavior."""

    async def test_load_restores_state(self, dispatcher):
        rule = price_draft().to_alert()
        repository = InMemoryAlertStateRepository(
            AlertState(price_alerts=[rule], settings=AlertSettings(sound_enabled=False))
        )
        store = AlertStore(repository, dispatcher)

        state = await store.load()

        assert state.price_alerts == [rule]
        assert dispatcher.settings.sound_enabled is False

    async def test_corrupt_state_falls_back_to_empty(self, dispatcher):
        repository = InMemoryAlertStateRepository()
        repository.fail_loads = True
        store = AlertStore(repository, dispatcher)

        state = await store.load()

        assert state == AlertState()

    async def test_failed_save_keeps_memory_state(self, store, repository):
        repository.fail_saves = True

        rule = await store.create(price_draft())

        assert store.state.price_alerts == [rule]
        assert repository.state is None

    async def test_next_save_writes_everything(self, store, repository):
        repository.fail_saves = True
        first = await store.create(price_draft(threshold=1))
        repository.fail_saves = False

        second = await store.create(price_draft(threshold=2))

        assert repository.state.price_alerts == [first, second]


class TestSuggestions:
    """Tests for suggestions from recorded ticks."""

    async def test_no_tick_no_suggestions(self, store):
        assert store.suggest_alerts("AAPL") == []

    async def test_suggestions_from_last_tick(self, store):
        await store.on_tick(make_tick(price=100))

        drafts = store.suggest_alerts("aapl")

        assert drafts[0].threshold == pytest.approx(105)
        assert store.price_history("AAPL") == [100]
