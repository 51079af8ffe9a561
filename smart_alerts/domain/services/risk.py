"""Quantitative risk analytics over price and return series.

Returns are simple per-period returns. Annualization assumes 252 trading
days; the annual risk-free rate is converted to a per-period rate by
dividing by 252.

Ratios whose denominator is exactly zero return ``math.inf`` when the
numerator is positive and 0 otherwise. ``inf`` is kept (never clamped) so
that it rates above any finite ratio.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from smart_alerts.domain.models.enums import RiskLevel, SharpeRating
from smart_alerts.domain.rules import (
    DEFAULT_RISK_FREE_RATE,
    ROLLING_VOLATILITY_WINDOW,
    SHARPE_EXCELLENT,
    SHARPE_FAIR,
    SHARPE_GOOD,
    TRADING_DAYS_PER_YEAR,
    VAR_CONFIDENCE,
    VAR_CONFIDENCE_99,
    VAR_LOW_RISK,
    VAR_MODERATE_RISK,
)

ANNUALIZATION = math.sqrt(TRADING_DAYS_PER_YEAR)


@dataclass(frozen=True)
class DrawdownResult:
    """Maximum drawdown plus the per-point drawdown series."""

    max_drawdown: float
    series: list[float] = field(default_factory=list)


@dataclass(frozen=True)
class RiskMetrics:
    """Headline risk figures for one price series or portfolio."""

    var_95: float = 0.0
    var_99: float = 0.0
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0
    beta: float = 1.0
    volatility: float = 0.0
    information_ratio: float = 0.0
    sortino_ratio: float = 0.0
    calmar_ratio: float = 0.0

    @property
    def risk_level(self) -> RiskLevel:
        """Coarse risk rating from the 95% VaR."""
        return risk_level(self.var_95)

    @property
    def sharpe_rating(self) -> SharpeRating:
        """Qualitative Sharpe band."""
        return sharpe_rating(self.sharpe_ratio)


@dataclass(frozen=True)
class QuantitativeMetrics:
    """Series behind the headline metrics, for charting and reports."""

    returns: list[float]
    cumulative_returns: list[float]
    rolling_volatility: list[float]
    drawdown_series: list[float]
    risk_metrics: RiskMetrics


@dataclass(frozen=True)
class PortfolioPosition:
    """A portfolio holding: its weight and its return series."""

    weight: float
    returns: Sequence[float]


# =============================================================================
# HELPERS
# =============================================================================


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def _std(values: Sequence[float]) -> float:
    """Sample standard deviation (n - 1); 0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    mean = _mean(values)
    variance = sum((v - mean) ** 2 for v in values) / (len(values) - 1)
    return math.sqrt(variance)


def _guarded_ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return math.inf if numerator > 0 else 0.0
    return (numerator * ANNUALIZATION) / (denominator * ANNUALIZATION)


# =============================================================================
# RETURNS
# =============================================================================


def returns(prices: Sequence[float]) -> list[float]:
    """Simple period returns; empty for fewer than two prices.

    A period whose previous price is not positive has a return of 0.
    """
    return [
        (prices[i] - prices[i - 1]) / prices[i - 1] if prices[i - 1] > 0 else 0.0
        for i in range(1, len(prices))
    ]


def log_returns(prices: Sequence[float]) -> list[float]:
    """Natural-log period returns, 0 where either price is not positive."""
    return [
        math.log(prices[i] / prices[i - 1]) if prices[i] > 0 and prices[i - 1] > 0 else 0.0
        for i in range(1, len(prices))
    ]


def cumulative_returns(period_returns: Sequence[float]) -> list[float]:
    """Running sum of returns, starting at 0 (one longer than the input)."""
    result = [0.0]
    total = 0.0
    for r in period_returns:
        total += r
        result.append(total)
    return result


# =============================================================================
# TAIL RISK
# =============================================================================


def value_at_risk(period_returns: Sequence[float], confidence: float = VAR_CONFIDENCE) -> float:
    """Historical-simulation Value at Risk.

    Sorts returns ascending and takes the absolute value of the return at
    index floor((1 - confidence) × n).

    Args:
        period_returns: Period returns
        confidence: Confidence level (0.95 → 5th percentile loss)

    Returns:
        Non-negative loss fraction, 0 for empty input
    """
    if not period_returns:
        return 0.0
    ordered = sorted(period_returns)
    index = max(0, math.floor((1 - confidence) * len(ordered)))
    if index >= len(ordered):
        return 0.0
    return abs(ordered[index])


def expected_shortfall(
    period_returns: Sequence[float], confidence: float = VAR_CONFIDENCE
) -> float:
    """Conditional VaR: mean of the returns at or below the VaR cutoff."""
    if not period_returns:
        return 0.0
    ordered = sorted(period_returns)
    cutoff = math.floor((1 - confidence) * len(ordered))
    tail = ordered[: cutoff + 1]
    return abs(_mean(tail))


def max_drawdown(prices: Sequence[float]) -> DrawdownResult:
    """Largest peak-to-trough decline.

    The series starts at 0 and holds (peak - price) / peak for every later
    price, where peak is the running maximum. Drawdown is 0 while the
    peak is not positive.
    """
    if not prices:
        return DrawdownResult(max_drawdown=0.0, series=[])

    peak = prices[0]
    worst = 0.0
    series = [0.0]
    for price in prices[1:]:
        peak = max(peak, price)
        drawdown = (peak - price) / peak if peak > 0 else 0.0
        series.append(drawdown)
        worst = max(worst, drawdown)
    return DrawdownResult(max_drawdown=worst, series=series)


# =============================================================================
# RISK-ADJUSTED RATIOS
# =============================================================================


def sharpe_ratio(
    period_returns: Sequence[float], risk_free_rate: float = DEFAULT_RISK_FREE_RATE
) -> float:
    """Sharpe ratio of excess returns over their sample deviation.

    Args:
        period_returns: Period returns
        risk_free_rate: Annual risk-free rate (default 2.5%)

    Returns:
        Ratio; inf when deviation is 0 and mean excess > 0, else 0 in that case
    """
    if not period_returns:
        return 0.0
    per_period_rf = risk_free_rate / TRADING_DAYS_PER_YEAR
    excess = [r - per_period_rf for r in period_returns]
    return _guarded_ratio(_mean(excess), _std(excess))


def sortino_ratio(
    period_returns: Sequence[float], risk_free_rate: float = DEFAULT_RISK_FREE_RATE
) -> float:
    """Sortino ratio: mean excess return over downside deviation.

    Downside deviation is the root mean square of the negative excess
    returns only.
    """
    if not period_returns:
        return 0.0
    per_period_rf = risk_free_rate / TRADING_DAYS_PER_YEAR
    excess = [r - per_period_rf for r in period_returns]
    mean_excess = _mean(excess)

    negative = [r for r in excess if r < 0]
    if not negative:
        return math.inf if mean_excess > 0 else 0.0

    downside = math.sqrt(sum(r * r for r in negative) / len(negative))
    return _guarded_ratio(mean_excess, downside)


def beta(stock_returns: Sequence[float], market_returns: Sequence[float]) -> float:
    """Covariance with the market over market variance (1 when undefined)."""
    n = min(len(stock_returns), len(market_returns))
    if n < 2:
        return 1.0

    stock = list(stock_returns)[-n:]
    market = list(market_returns)[-n:]
    stock_mean = _mean(stock)
    market_mean = _mean(market)

    covariance = sum((s - stock_mean) * (m - market_mean) for s, m in zip(stock, market))
    market_variance = sum((m - market_mean) ** 2 for m in market)
    if market_variance == 0:
        return 1.0
    return covariance / market_variance


def information_ratio(
    stock_returns: Sequence[float], benchmark_returns: Sequence[float]
) -> float:
    """Mean active return over tracking error."""
    n = min(len(stock_returns), len(benchmark_returns))
    if n == 0:
        return 0.0
    active = [
        s - b for s, b in zip(list(stock_returns)[-n:], list(benchmark_returns)[-n:])
    ]
    return _guarded_ratio(_mean(active), _std(active))


def calmar_ratio(period_returns: Sequence[float], drawdown: float) -> float:
    """Annualized mean return over maximum drawdown (0 without a drawdown)."""
    if drawdown == 0 or not period_returns:
        return 0.0
    return _mean(period_returns) * TRADING_DAYS_PER_YEAR / drawdown


# =============================================================================
# VOLATILITY & CORRELATION
# =============================================================================


def annualized_volatility(period_returns: Sequence[float]) -> float:
    """Sample deviation of returns scaled by sqrt(252)."""
    return _std(period_returns) * ANNUALIZATION


def rolling_volatility(
    period_returns: Sequence[float], window: int = ROLLING_VOLATILITY_WINDOW
) -> list[float]:
    """Annualized volatility of each full trailing window.

    The output only covers complete windows, so it is
    ``len(returns) - window + 1`` long.
    """
    return [
        annualized_volatility(period_returns[i - window + 1 : i + 1])
        for i in range(window - 1, len(period_returns))
    ]


def correlation(first: Sequence[float], second: Sequence[float]) -> float:
    """Pearson correlation of the overlapping tails (0 when undefined)."""
    n = min(len(first), len(second))
    if n == 0:
        return 0.0
    a = list(first)[-n:]
    b = list(second)[-n:]
    mean_a = _mean(a)
    mean_b = _mean(b)

    covariance = sum((x - mean_a) * (y - mean_b) for x, y in zip(a, b))
    variance_a = sum((x - mean_a) ** 2 for x in a)
    variance_b = sum((y - mean_b) ** 2 for y in b)
    denominator = math.sqrt(variance_a * variance_b)
    return covariance / denominator if denominator else 0.0


# =============================================================================
# AGGREGATES
# =============================================================================


def calculate_risk_metrics(
    prices: Sequence[float],
    market_returns: Sequence[float] = (),
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> QuantitativeMetrics:
    """Compute every metric for one price series.

    Beta defaults to 1 and the information ratio to 0 when no market
    returns are supplied.

    Args:
        prices: Price series, oldest first
        market_returns: Optional benchmark returns
        risk_free_rate: Annual risk-free rate

    Returns:
        QuantitativeMetrics with series and headline RiskMetrics
    """
    period_returns = returns(prices)
    drawdown = max_drawdown(prices)

    metrics = RiskMetrics(
        var_95=value_at_risk(period_returns, VAR_CONFIDENCE),
        var_99=value_at_risk(period_returns, VAR_CONFIDENCE_99),
        sharpe_ratio=sharpe_ratio(period_returns, risk_free_rate),
        max_drawdown=drawdown.max_drawdown,
        beta=beta(period_returns, market_returns) if market_returns else 1.0,
        volatility=annualized_volatility(period_returns),
        information_ratio=(
            information_ratio(period_returns, market_returns) if market_returns else 0.0
        ),
        sortino_ratio=sortino_ratio(period_returns, risk_free_rate),
        calmar_ratio=calmar_ratio(period_returns, drawdown.max_drawdown),
    )

    return QuantitativeMetrics(
        returns=period_returns,
        cumulative_returns=cumulative_returns(period_returns),
        rolling_volatility=rolling_volatility(period_returns),
        drawdown_series=drawdown.series,
        risk_metrics=metrics,
    )


def portfolio_risk(positions: Sequence[PortfolioPosition]) -> RiskMetrics:
    """Risk metrics of a weighted portfolio.

    Per-period portfolio returns are the weight-normalized average of the
    positions that have a return for that period. They are compounded from
    100 into a price path and measured like a single series.
    """
    if not positions:
        return RiskMetrics()

    length = max(len(p.returns) for p in positions)
    portfolio_returns = []
    for i in range(length):
        weighted = 0.0
        total_weight = 0.0
        for position in positions:
            if i < len(position.returns):
                weighted += position.weight * position.returns[i]
                total_weight += position.weight
        if total_weight > 0:
            portfolio_returns.append(weighted / total_weight)

    prices = [100.0]
    for r in portfolio_returns:
        prices.append(prices[-1] * (1 + r))

    return calculate_risk_metrics(prices).risk_metrics


# =============================================================================
# RATINGS
# =============================================================================


def risk_level(var_95: float) -> RiskLevel:
    """Low below 2% VaR, Moderate below 5%, High otherwise."""
    if var_95 < VAR_LOW_RISK:
        return RiskLevel.LOW
    elif var_95 < VAR_MODERATE_RISK:
        return RiskLevel.MODERATE
    return RiskLevel.HIGH


def sharpe_rating(ratio: float) -> SharpeRating:
    """Excellent above 2, Good above 1, Fair above 0.5, else Poor."""
    if ratio > SHARPE_EXCELLENT:
        return SharpeRating.EXCELLENT
    elif ratio > SHARPE_GOOD:
        return SharpeRating.GOOD
    elif ratio > SHARPE_FAIR:
        return SharpeRating.FAIR
    return SharpeRating.POOR
