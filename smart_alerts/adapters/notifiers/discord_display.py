"""Discord webhook implementation of NotificationDisplay."""

import logging

from smart_alerts.domain.interfaces.notifier import NotificationDisplay
from smart_alerts.domain.models.notification import VisualNotification
from smart_alerts.infrastructure.discord import send_discord_notification

logger = logging.getLogger(__name__)


class DiscordNotificationDisplay(NotificationDisplay):
    """Shows alert notifications in a Discord channel.

    Permission is granted once a webhook URL is configured; without one
    the display stays silent.
    """

    def __init__(self, webhook_url: str = ""):
        self._webhook_url = webhook_url
        self._granted = False

    @property
    def has_permission(self) -> bool:
        return self._granted

    async def request_permission(self) -> bool:
        """Grant permission when a webhook is configured."""
        self._granted = bool(self._webhook_url)
        return self._granted

    async def show(self, notification: VisualNotification) -> None:
        """Post the notification to the webhook."""
        sent = await send_discord_notification(notification, webhook_url=self._webhook_url)
        if not sent:
            logger.warning(f"Discord did not accept notification '{notification.title}'")
