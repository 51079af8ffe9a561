"""Discord webhook delivery for smart alert notifications."""

import logging

import httpx

from smart_alerts.domain.models.enums import Priority
from smart_alerts.domain.models.notification import VisualNotification
from smart_alerts.infrastructure.config import get_settings

logger = logging.getLogger(__name__)

PRIORITY_COLORS = {
    Priority.LOW: 0x95A5A6,  # Grey
    Priority.MEDIUM: 0x3498DB,  # Blue
    Priority.HIGH: 0xF39C12,  # Orange
    Priority.CRITICAL: 0xE74C3C,  # Red
}


def get_webhook_url() -> str:
    """Get the Discord webhook URL from settings."""
    return get_settings().discord_webhook_url


def build_embed(notification: VisualNotification) -> dict:
    """Render a visual notification as a Discord embed.

    Args:
        notification: Title, body and trigger data to render

    Returns:
        Embed dict for the webhook payload
    """
    embed = {
        "title": notification.title,
        "description": notification.body,
        "color": PRIORITY_COLORS.get(notification.priority, PRIORITY_COLORS[Priority.MEDIUM]),
        "fields": [
            {"name": "Priority", "value": notification.priority.value.title(), "inline": True},
        ],
        "footer": {"text": notification.tag},
    }

    data = notification.data or {}
    if data.get("current_price") is not None:
        embed["fields"].append(
            {"name": "Price", "value": f"${float(data['current_price']):.2f}", "inline": True}
        )
    if data.get("trigger_price") is not None:
        embed["fields"].append(
            {"name": "Target", "value": f"${float(data['trigger_price']):.2f}", "inline": True}
        )
    if data.get("rsi") is not None:
        embed["fields"].append(
            {"name": "RSI", "value": f"{float(data['rsi']):.1f}", "inline": True}
        )

    return embed


async def send_discord_notification(
    notification: VisualNotification,
    webhook_url: str | None = None,
) -> bool:
    """Post a notification to a Discord webhook.

    Args:
        notification: Content to send
        webhook_url: Override for the configured webhook

    Returns:
        True if sent successfully, False otherwise
    """
    webhook_url = webhook_url or get_webhook_url()
    if not webhook_url:
        return False

    payload = {"embeds": [build_embed(notification)]}

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                webhook_url,
                json=payload,
                timeout=10.0,
            )
            return response.status_code == 204
    except httpx.HTTPError as e:
        logger.warning(f"Discord notification failed: {e}")
        return False
