"""Unit tests for the notification channel adapters."""

import io
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from smart_alerts.adapters.notifiers.discord_display import DiscordNotificationDisplay
from smart_alerts.adapters.notifiers.terminal_sound import BELL, TerminalBellPlayer
from smart_alerts.adapters.notifiers.toast_display import ToastNotificationDisplay
from smart_alerts.domain.models.enums import Priority, SoundPattern
from smart_alerts.domain.models.notification import VisualNotification
from smart_alerts.infrastructure.discord import (
    PRIORITY_COLORS,
    build_embed,
    send_discord_notification,
)

WEBHOOK = "https://discord.example/api/webhooks/1/abc"


def make_visual(tag: str = "price-alert-AAPL", priority: Priority = Priority.HIGH,
                data: dict | None = None) -> VisualNotification:
    return VisualNotification(
        title="📈 AAPL Price Alert",
        body="AAPL has risen above $150.00. Current price: $151.00",
        tag=tag,
        priority=priority,
        data=data,
    )


def mock_client(status_code: int = 204, error: Exception | None = None) -> MagicMock:
    """Patchable stand-in for httpx.AsyncClient."""
    client = MagicMock()
    if error is not None:
        client.post = AsyncMock(side_effect=error)
    else:
        client.post = AsyncMock(return_value=MagicMock(status_code=status_code))
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=client)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    return factory


class TestDiscordEmbed:
    """Tests for embed rendering."""

    def test_priority_color(self):
        embed = build_embed(make_visual(priority=Priority.CRITICAL))
        assert embed["color"] == PRIORITY_COLORS[Priority.CRITICAL]
        assert embed["footer"]["text"] == "price-alert-AAPL"

    def test_price_fields(self):
        embed = build_embed(make_visual(data={"current_price": 151, "trigger_price": 150}))
        names = [f["name"] for f in embed["fields"]]
        assert names == ["Priority", "Price", "Target"]
        assert embed["fields"][1]["value"] == "$151.00"


class TestSendDiscordNotification:
    """Tests for webhook delivery."""

    async def test_no_webhook_returns_false(self, monkeypatch):
        monkeypatch.setenv("DISCORD_WEBHOOK_URL", "")
        assert await send_discord_notification(make_visual()) is False

    async def test_posts_embed(self):
        factory = mock_client(204)
        with patch("smart_alerts.infrastructure.discord.httpx.AsyncClient", factory):
            sent = await send_discord_notification(make_visual(), webhook_url=WEBHOOK)

        assert sent is True
        client = factory.return_value.__aenter__.return_value
        url = client.post.call_args.args[0]
        payload = client.post.call_args.kwargs["json"]
        assert url == WEBHOOK
        assert payload["embeds"][0]["title"] == "📈 AAPL Price Alert"

    async def test_rejected_status(self):
        with patch("smart_alerts.infrastructure.discord.httpx.AsyncClient", mock_client(400)):
            assert await send_discord_notification(make_visual(), webhook_url=WEBHOOK) is False

    async def test_http_error_logged_not_raised(self):
        factory = mock_client(error=httpx.ConnectError("refused"))
        with patch("smart_alerts.infrastructure.discord.httpx.AsyncClient", factory):
            assert await send_discord_notification(make_visual(), webhook_url=WEBHOOK) is False


class TestDiscordDisplay:
    """Tests for the Discord visual channel."""

    async def test_permission_needs_webhook(self):
        assert await DiscordNotificationDisplay("").request_permission() is False
        display = DiscordNotificationDisplay(WEBHOOK)
        assert display.has_permission is False
        assert await display.request_permission() is True
        assert display.has_permission is True

    async def test_show_posts(self):
        factory = mock_client(204)
        with patch("smart_alerts.infrastructure.discord.httpx.AsyncClient", factory):
            await DiscordNotificationDisplay(WEBHOOK).show(make_visual())

        client = factory.return_value.__aenter__.return_value
        assert client.post.await_count == 1


class TestToastDisplay:
    """Tests for the in-memory toast display."""

    async def test_newest_first_and_bounded(self):
        display = ToastNotificationDisplay(max_toasts=2)
        for tag in ("a", "b", "c"):
            await display.show(make_visual(tag=tag))

        assert [t.tag for t in display.toasts] == ["c", "b"]

    async def test_dismiss_by_tag(self):
        display = ToastNotificationDisplay()
        await display.show(make_visual(tag="a"))
        await display.show(make_visual(tag="b"))

        display.dismiss("a")

        assert [t.tag for t in display.toasts] == ["b"]

    async def test_permission_answer(self):
        display = ToastNotificationDisplay(grant_permission=False)
        assert await display.request_permission() is False
        assert display.permission_requests == 1


class TestTerminalBell:
    """Tests for the terminal bell player."""

    @pytest.mark.parametrize(
        "pattern,rings",
        [(SoundPattern.INFO, 2), (SoundPattern.WARNING, 3), (SoundPattern.CRITICAL, 5)],
    )
    def test_one_ring_per_tone(self, pattern, rings):
        stream = io.StringIO()
        TerminalBellPlayer(stream).play(pattern)
        assert stream.getvalue() == BELL * rings

    def test_closed_stream_does_not_raise(self):
        stream = io.StringIO()
        stream.close()
        TerminalBellPlayer(stream).play(SoundPattern.INFO)
