#!/usr/bin/env python3
"""Create and manage smart alerts from the command line.

Usage:
    python scripts/manage_alerts.py price AAPL price_above 200 [--priority high]
    python scripts/manage_alerts.py technical AAPL rsi_oversold [--rsi-level 25]
    python scripts/manage_alerts.py news --keywords earnings,guidance --symbols AAPL
    python scripts/manage_alerts.py toggle <alert_id>
    python scripts/manage_alerts.py delete <alert_id>
    python scripts/manage_alerts.py clear-triggered
    python scripts/manage_alerts.py read <notification_id>
    python scripts/manage_alerts.py clear-notifications
    python scripts/manage_alerts.py settings [--sound on|off] [--visual on|off] [--max N]
    python scripts/manage_alerts.py test
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError

from smart_alerts.adapters.notifiers.discord_display import DiscordNotificationDisplay
from smart_alerts.adapters.notifiers.terminal_sound import TerminalBellPlayer
from smart_alerts.adapters.repositories.factory import build_repository
from smart_alerts.application.commands.alert_store import AlertStore
from smart_alerts.application.commands.dispatch_notification import NotificationDispatcher
from smart_alerts.domain.models.alert import (
    NewsAlertDraft,
    NotificationPreferences,
    PriceAlertDraft,
    TechnicalAlertDraft,
    TechnicalParameters,
)
from smart_alerts.domain.models.enums import (
    AlertCategory,
    PriceAlertKind,
    Priority,
    Sentiment,
    TechnicalAlertKind,
)
from smart_alerts.domain.rules import MAX_NOTIFICATIONS_CHOICES
from smart_alerts.infrastructure.config import get_settings
from smart_alerts.infrastructure.database import close_pool

logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s | %(levelname)-8s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def _on_off(value: str | None) -> bool | None:
    if value is None:
        return None
    return value == 'on'


def _split(value: str) -> tuple[str, ...]:
    return tuple(part for part in value.split(',') if part.strip())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Manage smart alerts')
    sub = parser.add_subparsers(dest='command', required=True)

    def add_common(p: argparse.ArgumentParser):
        p.add_argument('--message', default='', help='Custom alert message')
        p.add_argument('--priority', choices=[p.value for p in Priority], default='medium')
        p.add_argument('--no-sound', action='store_true', help='Disable sound for this alert')
        p.add_argument('--no-visual', action='store_true', help='Disable visual notification')

    price = sub.add_parser('price', help='Create a price alert')
    price.add_argument('symbol')
    price.add_argument('kind', choices=[k.value for k in PriceAlertKind])
    price.add_argument('threshold', type=float)
    add_common(price)

    technical = sub.add_parser('technical', help='Create a technical alert')
    technical.add_argument('symbol')
    technical.add_argument('kind', choices=[k.value for k in TechnicalAlertKind])
    technical.add_argument('--rsi-level', type=float, default=None)
    technical.add_argument('--volume-multiplier', type=float, default=None)
    add_common(technical)

    news = sub.add_parser('news', help='Create a news alert')
    news.add_argument('--keywords', default='', help='Comma separated keywords')
    news.add_argument('--symbols', default='', help='Comma separated symbols')
    news.add_argument('--sentiment', choices=[s.value for s in Sentiment], default='any')
    add_common(news)

    for name, help_text in (('toggle', 'Pause or resume an alert'), ('delete', 'Delete an alert')):
        p = sub.add_parser(name, help=help_text)
        p.add_argument('alert_id')

    sub.add_parser('clear-triggered', help='Remove triggered price and technical alerts')

    read = sub.add_parser('read', help='Mark a notification read')
    read.add_argument('notification_id')

    sub.add_parser('clear-notifications', help='Remove every notification')

    settings = sub.add_parser('settings', help='Change notification settings')
    settings.add_argument('--sound', choices=['on', 'off'])
    settings.add_argument('--visual', choices=['on', 'off'])
    settings.add_argument('--max', type=int, choices=MAX_NOTIFICATIONS_CHOICES)

    sub.add_parser('test', help='Send a test notification')
    return parser


def _preferences(args) -> NotificationPreferences:
    return NotificationPreferences(browser=not args.no_visual, sound=not args.no_sound)


async def run_command(store: AlertStore, args) -> int:
    """Execute one subcommand against a loaded store."""
    if args.command == 'price':
        rule = await store.create(PriceAlertDraft(
            symbol=args.symbol,
            kind=args.kind,
            threshold=args.threshold,
            message=args.message,
            priority=args.priority,
            notifications=_preferences(args),
        ))
        print(f'Created {rule.id}: {rule.message}')

    elif args.command == 'technical':
        rule = await store.create(TechnicalAlertDraft(
            symbol=args.symbol,
            kind=args.kind,
            parameters=TechnicalParameters(
                rsi_level=args.rsi_level,
                volume_multiplier=args.volume_multiplier,
            ),
            message=args.message,
            priority=args.priority,
            notifications=_preferences(args),
        ))
        print(f'Created {rule.id}: {rule.message}')

    elif args.command == 'news':
        rule = await store.create(NewsAlertDraft(
            keywords=_split(args.keywords),
            symbols=_split(args.symbols),
            sentiment=args.sentiment,
            message=args.message,
            priority=args.priority,
            notifications=_preferences(args),
        ))
        print(f'Created {rule.id}: {rule.message}')

    elif args.command in ('toggle', 'delete'):
        rule = store.state.find_rule(args.alert_id)
        if rule is None:
            print(f'No alert with id {args.alert_id}')
            return 1
        category = AlertCategory(rule.category)
        if args.command == 'toggle':
            toggled = await store.toggle_active(rule.id, category)
            print(f'{toggled.id} is now {"active" if toggled.active else "paused"}')
        else:
            await store.delete(rule.id, category)
            print(f'Deleted {rule.id}')

    elif args.command == 'clear-triggered':
        removed = await store.clear_triggered()
        print(f'Removed {removed} triggered alerts')

    elif args.command == 'read':
        if not await store.mark_notification_read(args.notification_id):
            print(f'No notification with id {args.notification_id}')
            return 1
        print(f'{store.unread_count} unread notifications')

    elif args.command == 'clear-notifications':
        await store.clear_all_notifications()
        print('Notifications cleared')

    elif args.command == 'settings':
        changes = {
            'sound_enabled': _on_off(args.sound),
            'browser_notifications': _on_off(args.visual),
            'max_notifications': args.max,
        }
        updated = await store.update_settings(**{k: v for k, v in changes.items() if v is not None})
        print(f'Settings: {updated.model_dump()}')

    elif args.command == 'test':
        notification = await store.send_test_notification()
        print(f'{notification.title}: {notification.message}')

    return 0


async def main():
    args = build_parser().parse_args()
    settings = get_settings()

    dispatcher = NotificationDispatcher(
        display=DiscordNotificationDisplay(settings.discord_webhook_url),
        sound_player=TerminalBellPlayer(),
    )
    store = AlertStore(build_repository(settings), dispatcher)

    try:
        await store.load()
        return await run_command(store, args)
    except ValidationError as e:
        logger.error(f"Invalid alert: {e}")
        return 1
    finally:
        await close_pool()


if __name__ == '__main__':
    sys.exit(asyncio.run(main()))
