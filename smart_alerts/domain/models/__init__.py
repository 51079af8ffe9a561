"""Domain models for the smart alert engine."""

from smart_alerts.domain.models.alert import (
    AlertDraft,
    AlertRule,
    NewsAlert,
    NewsAlertDraft,
    NotificationPreferences,
    PriceAlert,
    PriceAlertDraft,
    TechnicalAlert,
    TechnicalAlertDraft,
    TechnicalParameters,
    TriggerMetadata,
)
from smart_alerts.domain.models.enums import (
    AlertCategory,
    ComparisonOperator,
    NotificationCategory,
    PriceAlertKind,
    PriceSource,
    Priority,
    RiskLevel,
    Sentiment,
    SharpeRating,
    SoundPattern,
    TechnicalAlertKind,
    Timeframe,
)
from smart_alerts.domain.models.market import (
    Bar,
    BollingerPoint,
    MACDPoint,
    PriceTick,
    StochasticPoint,
    TechnicalSnapshot,
)
from smart_alerts.domain.models.notification import Notification, VisualNotification
from smart_alerts.domain.models.state import AlertSettings, AlertState

__all__ = [
    # Enums
    "AlertCategory",
    "NotificationCategory",
    "Priority",
    "PriceAlertKind",
    "ComparisonOperator",
    "TechnicalAlertKind",
    "Sentiment",
    "Timeframe",
    "SoundPattern",
    "PriceSource",
    "RiskLevel",
    "SharpeRating",
    # Market data
    "PriceTick",
    "Bar",
    "MACDPoint",
    "BollingerPoint",
    "StochasticPoint",
    "TechnicalSnapshot",
    # Rules
    "AlertRule",
    "PriceAlert",
    "TechnicalAlert",
    "NewsAlert",
    "NotificationPreferences",
    "TechnicalParameters",
    "TriggerMetadata",
    # Drafts
    "AlertDraft",
    "PriceAlertDraft",
    "TechnicalAlertDraft",
    "NewsAlertDraft",
    # Notifications & state
    "Notification",
    "VisualNotification",
    "AlertSettings",
    "AlertState",
]
