"""Notification channel interfaces (ports)."""

from abc import ABC, abstractmethod

from smart_alerts.domain.models.enums import SoundPattern
from smart_alerts.domain.models.notification import VisualNotification


class NotificationDisplay(ABC):
    """Visual channel - an OS notification center, webhook or toast list.

    Showing anything requires permission, which is asked for at most once.
    """

    @property
    @abstractmethod
    def has_permission(self) -> bool:
        """Whether the channel may currently show notifications."""
        ...

    @abstractmethod
    async def request_permission(self) -> bool:
        """Ask for permission to show notifications.

        Returns:
            True if permission is granted
        """
        ...

    @abstractmethod
    async def show(self, notification: VisualNotification) -> None:
        """Display a notification."""
        ...


class SoundPlayer(ABC):
    """Audio channel. Fire-and-forget; failures are never surfaced."""

    @abstractmethod
    def play(self, pattern: SoundPattern) -> None:
        """Play the tone sequence for a pattern."""
        ...
