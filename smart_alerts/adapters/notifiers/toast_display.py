"""In-memory toast list implementation of NotificationDisplay."""

from collections import deque

from smart_alerts.domain.interfaces.notifier import NotificationDisplay
from smart_alerts.domain.models.notification import VisualNotification

DEFAULT_MAX_TOASTS = 5


class ToastNotificationDisplay(NotificationDisplay):
    """Keeps the most recent visual notifications for a UI layer to render.

    Args:
        max_toasts: Toasts kept, oldest dropped first
        grant_permission: Answer given to the permission request
    """

    def __init__(self, max_toasts: int = DEFAULT_MAX_TOASTS, grant_permission: bool = True):
        self._toasts: deque[VisualNotification] = deque(maxlen=max_toasts)
        self._grant = grant_permission
        self._granted = False
        self.permission_requests = 0

    @property
    def has_permission(self) -> bool:
        return self._granted

    @property
    def toasts(self) -> list[VisualNotification]:
        """Visible toasts, newest first."""
        return list(reversed(self._toasts))

    async def request_permission(self) -> bool:
        self.permission_requests += 1
        self._granted = self._grant
        return self._granted

    async def show(self, notification: VisualNotification) -> None:
        self._toasts.append(notification)

    def dismiss(self, tag: str) -> None:
        """Remove every toast with a tag."""
        kept = [t for t in self._toasts if t.tag != tag]
        self._toasts.clear()
        self._toasts.extend(kept)
