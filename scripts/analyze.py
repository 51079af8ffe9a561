#!/usr/bin/env python3
"""Indicator and risk report for a symbol.

Fetches daily bars from Yahoo Finance and prints the latest indicator
readings, risk metrics against a benchmark and suggested price alerts.

Usage:
    python scripts/analyze.py AAPL [--days 120] [--benchmark SPY] [--source close]
    python scripts/analyze.py AAPL --create-suggestions
"""

import argparse
import asyncio
import logging
import math
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from smart_alerts.adapters.data_feeds.yahoo_feed import YahooTickSource
from smart_alerts.adapters.repositories.factory import build_repository
from smart_alerts.application.commands.alert_store import AlertStore
from smart_alerts.domain.models.enums import PriceSource
from smart_alerts.domain.models.market import Bar, PriceTick
from smart_alerts.domain.services import indicators, risk
from smart_alerts.domain.services.snapshot import (
    build_snapshot,
    detect_support_resistance,
    generate_alert_suggestions,
)
from smart_alerts.infrastructure.config import get_settings
from smart_alerts.infrastructure.database import close_pool

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def print_header(title: str):
    """Print a section header."""
    print()
    print('=' * 70)
    print(f' {title}')
    print('=' * 70)


def _fmt(value: float | None, digits: int = 2) -> str:
    if value is None:
        return 'n/a'
    if math.isinf(value):
        return 'inf'
    return f'{value:,.{digits}f}'


def show_indicators(bars: list[Bar], source: PriceSource):
    """Print the latest value of every indicator."""
    print_header(f'INDICATORS ({source.value})')
    prices = indicators.price_source(bars, source)

    macd_point = indicators.macd(prices)[-1]
    bands = indicators.bollinger_bands(prices)[-1]
    stoch = indicators.stochastic(bars)[-1]

    rows = [
        ('SMA 20', indicators.latest(indicators.sma(prices, 20))),
        ('EMA 20', indicators.latest(indicators.ema(prices, 20))),
        ('WMA 20', indicators.latest(indicators.wma(prices, 20))),
        ('RSI 14', indicators.latest(indicators.rsi(prices))),
        ('MACD', macd_point.macd),
        ('MACD signal', macd_point.signal),
        ('MACD histogram', macd_point.histogram),
        ('Bollinger upper', bands.upper),
        ('Bollinger lower', bands.lower),
        ('Stochastic %K', stoch.k),
        ('Stochastic %D', stoch.d),
        ('Williams %R', indicators.latest(indicators.williams_r(bars))),
        ('CCI 20', indicators.latest(indicators.cci(bars))),
        ('ATR 14', indicators.latest(indicators.atr(bars))),
        ('VWAP', indicators.latest(indicators.vwap(bars))),
        ('OBV', indicators.latest(indicators.obv(bars))),
    ]
    for name, value in rows:
        print(f'  {name:<18} {_fmt(value):>16}')


def show_risk(bars: list[Bar], benchmark: list[Bar], risk_free_rate: float):
    """Print risk metrics against the benchmark."""
    print_header('RISK')
    market_returns = risk.returns([b.close for b in benchmark]) if benchmark else []
    quant = risk.calculate_risk_metrics(
        [b.close for b in bars],
        market_returns,
        risk_free_rate,
    )
    metrics = quant.risk_metrics

    print(f'  VaR 95%:            {metrics.var_95:.2%}  ({metrics.risk_level.value} risk)')
    print(f'  VaR 99%:            {metrics.var_99:.2%}')
    print(f'  Sharpe ratio:       {_fmt(metrics.sharpe_ratio)}  ({metrics.sharpe_rating.value})')
    print(f'  Sortino ratio:      {_fmt(metrics.sortino_ratio)}')
    print(f'  Calmar ratio:       {_fmt(metrics.calmar_ratio)}')
    print(f'  Max drawdown:       {metrics.max_drawdown:.2%}')
    print(f'  Volatility (ann.):  {metrics.volatility:.2%}')
    print(f'  Beta:               {_fmt(metrics.beta)}')
    print(f'  Information ratio:  {_fmt(metrics.information_ratio)}')
    if market_returns:
        print(f'  Correlation:        {_fmt(risk.correlation(quant.returns, market_returns))}')
    if quant.rolling_volatility:
        print(f'  Rolling vol (30d):  {quant.rolling_volatility[-1]:.2%}')
    print(f'  Cumulative return:  {quant.cumulative_returns[-1]:.2%}')


async def main():
    parser = argparse.ArgumentParser(description='Indicator and risk report')
    parser.add_argument('symbol')
    parser.add_argument('--days', type=int, default=120, help='Trading days of history')
    parser.add_argument('--benchmark', default='SPY', help='Benchmark symbol for beta')
    parser.add_argument('--source', choices=[s.value for s in PriceSource], default='close')
    parser.add_argument('--create-suggestions', action='store_true',
                        help='Create the suggested alerts')
    args = parser.parse_args()

    settings = get_settings()
    symbol = args.symbol.upper()
    feed = YahooTickSource()

    try:
        bars = await feed.get_bars(symbol, args.days)
    except ValueError as e:
        logger.error(str(e))
        return 1

    try:
        benchmark = await feed.get_bars(args.benchmark, args.days)
    except ValueError as e:
        logger.warning(f"Benchmark unavailable: {e}")
        benchmark = []

    last = bars[-1]
    previous = bars[-2].close if len(bars) > 1 else None
    change = last.close - previous if previous else 0.0
    tick = PriceTick(
        symbol=symbol,
        price=last.close,
        previous_price=previous,
        change=change,
        change_percent=change / previous * 100 if previous else 0.0,
        volume=last.volume,
        high=last.high,
        low=last.low,
        open=last.open,
        timestamp=last.timestamp,
    )

    print_header(f'{symbol} - {len(bars)} bars to {last.timestamp:%Y-%m-%d}')
    print(f'  Close: ${last.close:,.2f}  ({tick.change_percent:+.2f}%)')

    show_indicators(bars, PriceSource(args.source))
    show_risk(bars, benchmark, settings.risk_free_rate)

    closes = [b.close for b in bars]
    support, resistance = detect_support_resistance(closes)
    snapshot = build_snapshot(
        tick,
        closes,
        [b.volume for b in bars[:-1]],
        support_level=support[-1] if support else None,
        resistance_level=resistance[-1] if resistance else None,
    )

    print_header('SUGGESTED ALERTS')
    print(f'  Support: {_fmt(snapshot.support_level)}  Resistance: {_fmt(snapshot.resistance_level)}')
    suggestions = generate_alert_suggestions(symbol, tick, snapshot)
    for draft in suggestions:
        print(f'  [{draft.priority.value:<6}] {draft.kind.value:<14} {draft.threshold:>10.2f}  {draft.message}')

    if args.create_suggestions:
        try:
            store = AlertStore(build_repository(settings))
            await store.load()
            for draft in suggestions:
                rule = await store.create(draft)
                print(f'  Created {rule.id}')
        finally:
            await close_pool()

    return 0


if __name__ == '__main__':
    sys.exit(asyncio.run(main()))
