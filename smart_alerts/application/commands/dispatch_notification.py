"""Notification dispatch command.

Builds the in-app Notification record for a fired rule and delivers it
over the visual and audio channels. A channel is used only when both the
rule's own preference and the global setting allow it.

Deduplication is not done here: the store's trigger latch guarantees a
rule is dispatched at most once.
"""

import logging

from smart_alerts.domain.interfaces.notifier import NotificationDisplay, SoundPlayer
from smart_alerts.domain.models.alert import AlertRule
from smart_alerts.domain.models.enums import NotificationCategory, SoundPattern
from smart_alerts.domain.models.market import PriceTick, TechnicalSnapshot
from smart_alerts.domain.models.notification import Notification, VisualNotification
from smart_alerts.domain.models.state import AlertSettings
from smart_alerts.domain.services.messages import (
    build_test_visual,
    build_visual,
    notification_title,
    sound_for_priority,
    trigger_context,
)

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Command that renders and delivers notifications.

    Channel failures are logged and never reach the caller, so a broken
    webhook or audio device cannot interrupt tick processing.
    """

    def __init__(
        self,
        display: NotificationDisplay | None = None,
        sound_player: SoundPlayer | None = None,
        settings: AlertSettings | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            display: Visual channel (None disables it)
            sound_player: Audio channel (None disables it)
            settings: Initial global toggles
        """
        self._display = display
        self._sound_player = sound_player
        self._settings = settings or AlertSettings()
        self._permission_requested = False

    @property
    def settings(self) -> AlertSettings:
        """Global toggles currently in effect."""
        return self._settings

    def configure(self, settings: AlertSettings) -> None:
        """Apply new global toggles immediately."""
        self._settings = settings

    async def dispatch(
        self,
        rule: AlertRule,
        observation: PriceTick | TechnicalSnapshot,
    ) -> Notification:
        """Build the notification for a fired rule and deliver it.

        Args:
            rule: The rule that fired (already latched by the store)
            observation: Tick or snapshot that made it fire

        Returns:
            Notification to prepend to the store's list
        """
        notification = Notification(
            alert_id=rule.id,
            title=notification_title(rule),
            message=rule.message,
            category=NotificationCategory(rule.category),
            priority=rule.priority,
            data=trigger_context(rule, observation),
        )

        if rule.notifications.browser and self._settings.browser_notifications:
            await self._show(build_visual(rule, observation))

        if rule.notifications.sound and self._settings.sound_enabled:
            self._play(sound_for_priority(rule.priority))

        return notification

    async def dispatch_test(self) -> None:
        """Deliver the settings test notification on every enabled channel."""
        if self._settings.browser_notifications:
            await self._show(build_test_visual())
        if self._settings.sound_enabled:
            self._play(SoundPattern.INFO)

    async def _has_permission(self) -> bool:
        """Check visual permission, requesting it lazily the first time."""
        if self._display is None:
            return False
        if self._display.has_permission:
            return True
        if self._permission_requested:
            return False

        self._permission_requested = True
        try:
            granted = await self._display.request_permission()
        except Exception:
            logger.exception("Notification permission request failed")
            return False

        if not granted:
            logger.info("Notification permission denied; visual alerts disabled")
        return granted

    async def _show(self, visual: VisualNotification) -> None:
        if not await self._has_permission():
            return
        try:
            await self._display.show(visual)
        except Exception as e:
            logger.warning(f"Visual notification failed: {e}")

    def _play(self, pattern: SoundPattern) -> None:
        if self._sound_player is None:
            return
        try:
            self._sound_player.play(pattern)
        except Exception as e:
            logger.warning(f"Alert sound failed: {e}")
