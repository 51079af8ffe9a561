#!/usr/bin/env python3
"""Smart alert runner.

Polls quotes for the watchlist and evaluates every active alert on each
tick. Fired alerts are delivered to Discord (when DISCORD_WEBHOOK_URL is
set) and rung on the terminal bell, and are kept in the notification list.

Usage:
    python scripts/run_alerts.py [--once] [--interval SECONDS] [--symbols AAPL,MSFT]

Options:
    --once          Poll every symbol once and exit (for cron)
    --interval N    Seconds between polls (default: TICK_INTERVAL_SECONDS)
    --symbols LIST  Comma separated watchlist (default: WATCHLIST)
    --max-cycles N  Stop after N polling cycles
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables from the project .env, whatever the cwd
load_dotenv(Path(__file__).parent.parent / ".env")

from smart_alerts.adapters.data_feeds.yahoo_feed import YahooTickSource
from smart_alerts.adapters.notifiers.discord_display import DiscordNotificationDisplay
from smart_alerts.adapters.notifiers.terminal_sound import TerminalBellPlayer
from smart_alerts.adapters.repositories.factory import build_repository
from smart_alerts.application.commands.alert_store import AlertStore
from smart_alerts.application.commands.dispatch_notification import NotificationDispatcher
from smart_alerts.application.workflows.ticker import TickCycleResult, Ticker
from smart_alerts.infrastructure.config import get_settings
from smart_alerts.infrastructure.database import close_pool

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s | %(levelname)-8s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def log_cycle(result: TickCycleResult) -> None:
    """Summarize a polling cycle."""
    for notification in result.notifications:
        logger.info(f"  🚨 {notification.title}: {notification.message}")
    for error in result.errors:
        logger.warning(f"  {error}")
    logger.info(
        f"[Cycle {result.cycle_number}] {result.symbols_polled} symbols, "
        f"{len(result.notifications)} alerts fired"
    )


async def main():
    parser = argparse.ArgumentParser(description='Run smart stock alerts')
    parser.add_argument('--once', action='store_true', help='Poll once and exit')
    parser.add_argument('--interval', type=float, default=settings.tick_interval_seconds,
                        help='Seconds between polls')
    parser.add_argument('--symbols', default=settings.watchlist, help='Comma separated watchlist')
    parser.add_argument('--max-cycles', type=int, default=None, help='Stop after N cycles')
    args = parser.parse_args()

    symbols = [s.strip().upper() for s in args.symbols.split(',') if s.strip()]
    if not symbols:
        logger.error("No symbols to watch")
        return 1

    logger.info("Starting Smart Alerts")
    logger.info(f"Watching: {', '.join(symbols)}")
    logger.info(f"Mode: {'Single poll' if args.once else f'Continuous (every {args.interval}s)'}")

    dispatcher = NotificationDispatcher(
        display=DiscordNotificationDisplay(settings.discord_webhook_url),
        sound_player=TerminalBellPlayer(),
    )
    store = AlertStore(
        build_repository(settings),
        dispatcher,
        history_size=settings.price_history_size,
    )
    state = await store.load()

    active = [r for r in state.all_rules() if r.active]
    logger.info(f"{len(active)} active alerts, {state.unread_count} unread notifications")

    ticker = Ticker(YahooTickSource(), store, symbols, interval_seconds=args.interval)

    try:
        result = await ticker.start(
            max_cycles=1 if args.once else args.max_cycles,
            on_cycle_complete=log_cycle,
        )
        logger.info(
            f"Stopped after {result.cycles_completed} cycles, "
            f"{result.total_notifications} alerts fired"
        )
        for error in result.errors:
            logger.error(error)
    except KeyboardInterrupt:
        logger.info("\nAlerts stopped by user")
    finally:
        await close_pool()

    return 0


if __name__ == '__main__':
    sys.exit(asyncio.run(main()))
