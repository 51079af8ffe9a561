#!/usr/bin/env python3
"""Status dashboard for Smart Alerts.

Shows:
- Price, technical and news alerts with their trigger state
- Recent notifications and the unread count
- Global notification settings

Usage:
    python scripts/status.py [--notifications N] [--all]
"""

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from smart_alerts.adapters.repositories.factory import build_repository
from smart_alerts.application.commands.alert_store import AlertStore
from smart_alerts.domain.models.state import AlertState
from smart_alerts.infrastructure.config import get_settings
from smart_alerts.infrastructure.database import close_pool


def print_header(title: str):
    """Print a section header."""
    print()
    print('=' * 70)
    print(f' {title}')
    print('=' * 70)


def _when(moment: datetime | None) -> str:
    return moment.strftime('%Y-%m-%d %H:%M') if moment else '-'


def show_price_alerts(state: AlertState):
    """Show price alerts."""
    print_header(f'PRICE ALERTS ({len(state.price_alerts)})')
    if not state.price_alerts:
        print('  No price alerts')
        return

    print(f'  {"Symbol":<8} {"Kind":<16} {"Threshold":>10} {"State":<10} {"Triggered":<16} Id')
    print('  ' + '-' * 76)
    for alert in state.price_alerts:
        status = 'TRIGGERED' if alert.triggered else ('active' if alert.active else 'paused')
        print(
            f'  {alert.symbol:<8} {alert.kind.value:<16} {alert.threshold:>10.2f} '
            f'{status:<10} {_when(alert.triggered_at):<16} {alert.id}'
        )


def show_technical_alerts(state: AlertState):
    """Show technical alerts."""
    print_header(f'TECHNICAL ALERTS ({len(state.technical_alerts)})')
    if not state.technical_alerts:
        print('  No technical alerts')
        return

    for alert in state.technical_alerts:
        status = 'TRIGGERED' if alert.triggered else ('active' if alert.active else 'paused')
        print(
            f'  {alert.symbol:<8} {alert.kind.value:<18} {status:<10} '
            f'{_when(alert.triggered_at):<16} {alert.id}'
        )


def show_news_alerts(state: AlertState):
    """Show news alerts."""
    print_header(f'NEWS ALERTS ({len(state.news_alerts)})')
    if not state.news_alerts:
        print('  No news alerts')
        return

    for alert in state.news_alerts:
        status = 'active' if alert.active else 'paused'
        print(f'  [{status}] {alert.message}')
        print(f'      sentiment={alert.sentiment.value}  id={alert.id}')


def show_notifications(state: AlertState, limit: int | None):
    """Show notifications, newest first."""
    print_header(f'NOTIFICATIONS ({state.unread_count} unread of {len(state.notifications)})')
    notifications = state.notifications if limit is None else state.notifications[:limit]
    if not notifications:
        print('  No notifications')
        return

    for n in notifications:
        marker = ' ' if n.read else '*'
        print(f'  {marker} {n.timestamp.strftime("%m-%d %H:%M:%S")} [{n.priority.value:<8}] {n.title}')
        print(f'      {n.message}')


def show_settings(state: AlertState):
    """Show global notification settings."""
    print_header('SETTINGS')
    settings = state.settings
    print(f'  Visual notifications: {"on" if settings.browser_notifications else "off"}')
    print(f'  Sound:                {"on" if settings.sound_enabled else "off"}')
    print(f'  Max notifications:    {settings.max_notifications}')


async def main():
    parser = argparse.ArgumentParser(description='Smart Alerts status dashboard')
    parser.add_argument('--notifications', type=int, default=10,
                        help='Number of notifications to show')
    parser.add_argument('--all', action='store_true', help='Show every notification')
    args = parser.parse_args()

    settings = get_settings()

    print()
    print('=' * 70)
    print(f' SMART ALERTS STATUS - {datetime.now().strftime("%Y-%m-%d %H:%M:%S")}')
    print('=' * 70)
    print(f'  Storage: {settings.storage_backend} ({settings.storage_key})')

    try:
        store = AlertStore(build_repository(settings))
        state = await store.load()
    finally:
        await close_pool()

    show_price_alerts(state)
    show_technical_alerts(state)
    show_news_alerts(state)
    show_notifications(state, None if args.all else args.notifications)
    show_settings(state)


if __name__ == '__main__':
    asyncio.run(main())
