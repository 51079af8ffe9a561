"""Repository interfaces (ports) for alert state persistence."""

from abc import ABC, abstractmethod

from smart_alerts.domain.models.state import AlertState


class AlertStateRepository(ABC):
    """Repository interface for the alert aggregate.

    The whole AlertState (rules, notifications, settings) is read and
    written as a single document under one logical key, so a save always
    replaces what was stored before.
    """

    @abstractmethod
    async def load(self) -> AlertState | None:
        """Load the stored aggregate.

        Returns:
            The stored AlertState, or None if nothing has been saved yet

        Raises:
            Any backend or validation error for unreadable state; the
            caller decides how to recover
        """
        ...

    @abstractmethod
    async def save(self, state: AlertState) -> None:
        """Replace the stored aggregate.

        Args:
            state: Complete aggregate to persist
        """
        ...
