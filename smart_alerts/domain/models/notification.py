"""Notification models produced when rules fire."""

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from smart_alerts.domain.models.enums import NotificationCategory, Priority


class Notification(BaseModel):
    """A delivered notification, kept in the capped in-app list.

    Only ``read`` ever changes after creation.
    """

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: f"notif_{uuid4().hex[:12]}")
    alert_id: str
    title: str
    message: str
    category: NotificationCategory
    priority: Priority
    timestamp: datetime = Field(default_factory=datetime.now)
    read: bool = False
    data: dict | None = None


class VisualNotification(BaseModel):
    """Content handed to the visual (OS / webhook) channel."""

    model_config = {"frozen": True}

    title: str
    body: str
    tag: str
    priority: Priority = Priority.MEDIUM
    require_interaction: bool = False
    auto_close_ms: int | None = None
    data: dict | None = None
