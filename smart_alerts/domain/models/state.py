"""Persisted alert aggregate and global notification settings."""

from pydantic import BaseModel, Field

from smart_alerts.domain.models.alert import (
    AlertRule,
    NewsAlert,
    PriceAlert,
    TechnicalAlert,
)
from smart_alerts.domain.models.enums import AlertCategory
from smart_alerts.domain.models.notification import Notification
from smart_alerts.domain.rules import DEFAULT_MAX_NOTIFICATIONS


class AlertSettings(BaseModel):
    """Global notification toggles and list cap."""

    model_config = {"frozen": True}

    browser_notifications: bool = True
    sound_enabled: bool = True
    email_notifications: bool = False  # Reserved
    max_notifications: int = Field(default=DEFAULT_MAX_NOTIFICATIONS, ge=1)


class AlertState(BaseModel):
    """Everything the store persists, loaded and saved as one document.

    Notifications are kept newest first.
    """

    model_config = {"frozen": True}

    price_alerts: list[PriceAlert] = Field(default_factory=list)
    technical_alerts: list[TechnicalAlert] = Field(default_factory=list)
    news_alerts: list[NewsAlert] = Field(default_factory=list)
    notifications: list[Notification] = Field(default_factory=list)
    settings: AlertSettings = Field(default_factory=AlertSettings)

    def rules(self, category: AlertCategory) -> list[AlertRule]:
        """Rules of one category."""
        if category == AlertCategory.PRICE:
            return self.price_alerts
        elif category == AlertCategory.TECHNICAL:
            return self.technical_alerts
        return self.news_alerts

    def all_rules(self) -> list[AlertRule]:
        """Every rule across the three lists."""
        return [*self.price_alerts, *self.technical_alerts, *self.news_alerts]

    def find_rule(self, rule_id: str) -> AlertRule | None:
        """Look up a rule by id in any list."""
        for rule in self.all_rules():
            if rule.id == rule_id:
                return rule
        return None

    def with_rules(self, category: AlertCategory, rules: list[AlertRule]) -> "AlertState":
        """Copy with one rule list replaced."""
        field = f"{category.value}_alerts"
        return self.model_copy(update={field: list(rules)})

    @property
    def unread_count(self) -> int:
        """Notifications not yet marked read."""
        return sum(1 for n in self.notifications if not n.read)
