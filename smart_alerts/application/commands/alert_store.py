"""Alert store - owns rules, notifications and settings.

The store is the single writer of the AlertState aggregate. Every mutating
operation runs under one asyncio lock, replaces the in-memory state with a
new immutable snapshot and then writes the whole aggregate to the
repository. Ticks are therefore processed strictly one after another,
which keeps the trigger latch at-most-once even when persistence is slow.
"""

import asyncio
import logging
from collections import defaultdict, deque
from datetime import datetime

from smart_alerts.application.commands.dispatch_notification import NotificationDispatcher
from smart_alerts.domain.interfaces.repositories import AlertStateRepository
from smart_alerts.domain.models.alert import (
    AlertDraft,
    AlertRule,
    PriceAlert,
    PriceAlertDraft,
    TechnicalAlert,
    TriggerMetadata,
)
from smart_alerts.domain.models.enums import AlertCategory, NotificationCategory, Priority
from smart_alerts.domain.models.market import PriceTick, TechnicalSnapshot
from smart_alerts.domain.models.notification import Notification
from smart_alerts.domain.models.state import AlertSettings, AlertState
from smart_alerts.domain.rules import PRICE_HISTORY_SIZE
from smart_alerts.domain.services.evaluator import check_price_alert, check_technical_alert
from smart_alerts.domain.services.messages import TEST_ALERT_MESSAGE, TEST_ALERT_TITLE
from smart_alerts.domain.services.snapshot import (
    build_snapshot,
    detect_support_resistance,
    generate_alert_suggestions,
)

logger = logging.getLogger(__name__)

# Identity and trigger latch; only firing, delete or clear_triggered touch these
_IMMUTABLE_FIELDS = frozenset(
    {"id", "category", "created_at", "triggered", "triggered_at", "metadata"}
)


def prepend_capped(
    notifications: list[Notification],
    new: list[Notification],
    limit: int,
) -> list[Notification]:
    """Prepend notifications one at a time, newest first, keeping ``limit``.

    Args:
        notifications: Existing list, newest first
        new: Notifications in the order they were created
        limit: Maximum list length

    Returns:
        New list; the oldest entries are evicted beyond ``limit``
    """
    result = list(notifications)
    for notification in new:
        result = [notification, *result[: limit - 1]]
    return result[:limit]


class AlertStore:
    """Command that manages the alert lifecycle.

    Rules move active → triggered → cleared. A triggered price or
    technical rule never fires again until it is deleted or removed by
    ``clear_triggered``; news rules only toggle active.
    """

    def __init__(
        self,
        repository: AlertStateRepository,
        dispatcher: NotificationDispatcher | None = None,
        history_size: int = PRICE_HISTORY_SIZE,
    ) -> None:
        """Initialize the store with an empty aggregate.

        Call ``load`` before use to restore persisted state.

        Args:
            repository: Persistence for the aggregate
            dispatcher: Notification delivery (a channel-less one by default)
            history_size: Ticks kept per symbol for indicator snapshots
        """
        self._repository = repository
        self._dispatcher = dispatcher or NotificationDispatcher()
        self._state = AlertState()
        self._lock = asyncio.Lock()
        self._prices: dict[str, deque[float]] = defaultdict(
            lambda: deque(maxlen=history_size)
        )
        self._volumes: dict[str, deque[float]] = defaultdict(
            lambda: deque(maxlen=history_size)
        )
        self._last_ticks: dict[str, PriceTick] = {}

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    @property
    def state(self) -> AlertState:
        """Latest consistent snapshot of the aggregate."""
        return self._state

    @property
    def settings(self) -> AlertSettings:
        return self._state.settings

    @property
    def notifications(self) -> list[Notification]:
        """Notifications, newest first."""
        return self._state.notifications

    @property
    def unread_count(self) -> int:
        return self._state.unread_count

    def rules_for(self, symbol: str) -> list[AlertRule]:
        """Every rule watching a symbol, including news rules listing it."""
        symbol = symbol.upper()
        rules: list[AlertRule] = [
            r for r in self._state.price_alerts if r.symbol == symbol
        ]
        rules.extend(r for r in self._state.technical_alerts if r.symbol == symbol)
        rules.extend(r for r in self._state.news_alerts if symbol in r.symbols)
        return rules

    def price_history(self, symbol: str) -> list[float]:
        """Recorded prices for a symbol, oldest first."""
        return list(self._prices.get(symbol.upper(), ()))

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def load(self) -> AlertState:
        """Restore the persisted aggregate.

        Missing or unreadable state is logged and replaced by an empty
        default aggregate; loading never fails.

        Returns:
            The state now held by the store
        """
        async with self._lock:
            try:
                stored = await self._repository.load()
            except Exception:
                logger.exception("Stored alert state is unreadable, starting empty")
                stored = None

            self._state = stored if stored is not None else AlertState()
            self._dispatcher.configure(self._state.settings)

        logger.info(
            f"Loaded {len(self._state.all_rules())} alerts and "
            f"{len(self._state.notifications)} notifications"
        )
        return self._state

    async def create(self, draft: AlertDraft) -> AlertRule:
        """Create a rule from a draft.

        Args:
            draft: Price, technical or news draft

        Returns:
            The new rule with a fresh id, untriggered
        """
        rule = draft.to_alert()
        category = AlertCategory(rule.category)

        async with self._lock:
            rules = [*self._state.rules(category), rule]
            await self._commit(self._state.with_rules(category, rules))

        logger.info(f"Created {category.value} alert {rule.id}: {rule.message}")
        return rule

    async def update(self, rule_id: str, **changes) -> AlertRule | None:
        """Shallow-merge changes into a rule found in any list.

        Identity fields (id, category, created_at) and the trigger latch
        (triggered, triggered_at, metadata) are ignored. Changing a price
        rule's kind without an operator re-derives the operator.

        Args:
            rule_id: Rule to update
            **changes: Field values to replace

        Returns:
            The updated rule, or None if no rule has that id

        Raises:
            pydantic.ValidationError: If the merged rule is invalid
        """
        async with self._lock:
            existing = self._state.find_rule(rule_id)
            if existing is None:
                return None

            changes = {k: v for k, v in changes.items() if k not in _IMMUTABLE_FIELDS}
            data = existing.model_dump()
            if isinstance(existing, PriceAlert) and "kind" in changes and "operator" not in changes:
                data.pop("operator")
            data.update(changes)
            updated = type(existing).model_validate(data)

            await self._commit(self._replace_rule(self._state, updated))
            return updated

    async def toggle_active(self, rule_id: str, category: AlertCategory) -> AlertRule | None:
        """Flip a rule's active flag.

        Returns:
            The toggled rule, or None if no rule with that id exists
        """
        async with self._lock:
            rule = self._find(rule_id, category)
            if rule is None:
                return None

            toggled = rule.model_copy(update={"active": not rule.active})
            await self._commit(self._replace_rule(self._state, toggled))
            return toggled

    async def delete(self, rule_id: str, category: AlertCategory) -> bool:
        """Delete a rule.

        Returns:
            True if a rule was removed, False for an unknown id
        """
        async with self._lock:
            rules = self._state.rules(category)
            remaining = [r for r in rules if r.id != rule_id]
            if len(remaining) == len(rules):
                return False
            await self._commit(self._state.with_rules(category, remaining))

        logger.info(f"Deleted {category.value} alert {rule_id}")
        return True

    async def clear_triggered(self) -> int:
        """Remove every triggered price and technical rule.

        News rules and notifications are untouched.

        Returns:
            Number of rules removed
        """
        async with self._lock:
            price = [r for r in self._state.price_alerts if not r.triggered]
            technical = [r for r in self._state.technical_alerts if not r.triggered]
            removed = (
                len(self._state.price_alerts) - len(price)
                + len(self._state.technical_alerts) - len(technical)
            )
            if removed:
                await self._commit(
                    self._state.model_copy(
                        update={"price_alerts": price, "technical_alerts": technical}
                    )
                )
        return removed

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    async def on_tick(self, tick: PriceTick) -> list[Notification]:
        """Record a tick and evaluate every rule for its symbol.

        Price rules see the tick; technical rules see a snapshot computed
        from the recorded history. Every rule that fires is latched and
        dispatched, with no early exit.

        Args:
            tick: Latest quote

        Returns:
            Notifications created for this tick, oldest first
        """
        async with self._lock:
            prior_volumes = list(self._volumes[tick.symbol])
            self._record(tick)

            state = self._state
            has_rules = any(
                r.symbol == tick.symbol
                for r in (*state.price_alerts, *state.technical_alerts)
            )
            if not has_rules:
                return []

            snapshot = build_snapshot(
                tick, list(self._prices[tick.symbol]), prior_volumes
            )
            now = datetime.now()
            fired: list[Notification] = []

            price_alerts = list(state.price_alerts)
            for i, alert in enumerate(price_alerts):
                if not check_price_alert(alert, tick, snapshot.average_volume):
                    continue
                latched = alert.model_copy(
                    update={
                        "triggered": True,
                        "triggered_at": now,
                        "metadata": TriggerMetadata(
                            current_price=tick.price,
                            trigger_price=alert.threshold,
                            percent_change=tick.change_percent,
                        ),
                    }
                )
                price_alerts[i] = latched
                fired.append(await self._fire(latched, tick))

            technical_alerts, technical_fired = await self._evaluate_technical(
                state.technical_alerts, snapshot, now
            )
            fired.extend(technical_fired)

            if fired:
                await self._commit(
                    state.model_copy(
                        update={
                            "price_alerts": price_alerts,
                            "technical_alerts": technical_alerts,
                            "notifications": prepend_capped(
                                state.notifications, fired, state.settings.max_notifications
                            ),
                        }
                    )
                )
            return fired

    async def evaluate_snapshot(self, snapshot: TechnicalSnapshot) -> list[Notification]:
        """Evaluate technical rules against an externally computed snapshot.

        A snapshot without a symbol is checked against every technical rule.

        Returns:
            Notifications created, oldest first
        """
        async with self._lock:
            state = self._state
            technical_alerts, fired = await self._evaluate_technical(
                state.technical_alerts, snapshot, datetime.now()
            )
            if fired:
                await self._commit(
                    state.model_copy(
                        update={
                            "technical_alerts": technical_alerts,
                            "notifications": prepend_capped(
                                state.notifications, fired, state.settings.max_notifications
                            ),
                        }
                    )
                )
            return fired

    def suggest_alerts(self, symbol: str) -> list[PriceAlertDraft]:
        """Suggest price rules from the latest tick and recorded history.

        The most recent detected support / resistance levels feed the
        break suggestions.

        Returns:
            Draft rules, empty when no tick has been seen for the symbol
        """
        symbol = symbol.upper()
        tick = self._last_ticks.get(symbol)
        if tick is None:
            return []

        prices = list(self._prices[symbol])
        support, resistance = detect_support_resistance(prices)
        snapshot = build_snapshot(
            tick,
            prices,
            list(self._volumes[symbol])[:-1],
            support_level=support[-1] if support else None,
            resistance_level=resistance[-1] if resistance else None,
        )
        return generate_alert_suggestions(symbol, tick, snapshot)

    # -------------------------------------------------------------------------
    # Notifications & settings
    # -------------------------------------------------------------------------

    async def mark_notification_read(self, notification_id: str) -> bool:
        """Mark one notification read.

        Returns:
            True if the notification exists
        """
        async with self._lock:
            notifications = list(self._state.notifications)
            for i, notification in enumerate(notifications):
                if notification.id == notification_id:
                    notifications[i] = notification.model_copy(update={"read": True})
                    await self._commit(
                        self._state.model_copy(update={"notifications": notifications})
                    )
                    return True
            return False

    async def clear_all_notifications(self) -> None:
        """Remove every notification."""
        async with self._lock:
            await self._commit(self._state.model_copy(update={"notifications": []}))

    async def send_test_notification(self) -> Notification:
        """Deliver a test notification and record it in the list.

        Returns:
            The system notification that was added
        """
        async with self._lock:
            await self._dispatcher.dispatch_test()
            notification = Notification(
                alert_id="test",
                title=TEST_ALERT_TITLE,
                message=TEST_ALERT_MESSAGE,
                category=NotificationCategory.SYSTEM,
                priority=Priority.LOW,
            )
            await self._commit(
                self._state.model_copy(
                    update={
                        "notifications": prepend_capped(
                            self._state.notifications,
                            [notification],
                            self._state.settings.max_notifications,
                        )
                    }
                )
            )
            return notification

    async def update_settings(self, **changes) -> AlertSettings:
        """Shallow-merge settings and apply them to the dispatcher at once.

        Lowering ``max_notifications`` trims the list immediately.

        Returns:
            The merged settings

        Raises:
            pydantic.ValidationError: If a value is invalid
        """
        async with self._lock:
            settings = AlertSettings.model_validate(
                {**self._state.settings.model_dump(), **changes}
            )
            self._dispatcher.configure(settings)
            await self._commit(
                self._state.model_copy(
                    update={
                        "settings": settings,
                        "notifications": self._state.notifications[: settings.max_notifications],
                    }
                )
            )
            return settings

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _evaluate_technical(
        self,
        alerts: list[TechnicalAlert],
        snapshot: TechnicalSnapshot,
        now: datetime,
    ) -> tuple[list[TechnicalAlert], list[Notification]]:
        updated = list(alerts)
        fired: list[Notification] = []
        for i, alert in enumerate(updated):
            if not check_technical_alert(alert, snapshot):
                continue
            latched = alert.model_copy(update={"triggered": True, "triggered_at": now})
            updated[i] = latched
            fired.append(await self._fire(latched, snapshot))
        return updated, fired

    async def _fire(
        self,
        rule: PriceAlert | TechnicalAlert,
        observation: PriceTick | TechnicalSnapshot,
    ) -> Notification:
        logger.info(f"Alert triggered: {rule.symbol} {rule.kind.value} ({rule.id})")
        return await self._dispatcher.dispatch(rule, observation)

    def _record(self, tick: PriceTick) -> None:
        self._prices[tick.symbol].append(tick.price)
        self._volumes[tick.symbol].append(tick.volume)
        self._last_ticks[tick.symbol] = tick

    def _find(self, rule_id: str, category: AlertCategory) -> AlertRule | None:
        for rule in self._state.rules(category):
            if rule.id == rule_id:
                return rule
        return None

    @staticmethod
    def _replace_rule(state: AlertState, rule: AlertRule) -> AlertState:
        category = AlertCategory(rule.category)
        rules = [rule if r.id == rule.id else r for r in state.rules(category)]
        return state.with_rules(category, rules)

    async def _commit(self, state: AlertState) -> None:
        """Swap in the new state, then persist it.

        A failed write is logged; the state stays in memory and the next
        mutation writes the full aggregate again.
        """
        self._state = state
        try:
            await self._repository.save(state)
        except Exception:
            logger.exception("Failed to persist alert state")
