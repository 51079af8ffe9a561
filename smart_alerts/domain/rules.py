"""Smart alert rules and indicator defaults.

This module defines the engine's constants, making the thresholds the
evaluator and indicator library fall back on explicit and testable.
"""

from typing import Final

# =============================================================================
# INDICATOR PERIODS
# =============================================================================

# Wilder RSI
RSI_PERIOD: Final[int] = 14
RSI_OVERBOUGHT: Final[float] = 70.0
RSI_OVERSOLD: Final[float] = 30.0
RSI_NEUTRAL: Final[float] = 50.0  # Used when RSI is undefined

# MACD (fast EMA, slow EMA, signal EMA)
MACD_FAST: Final[int] = 12
MACD_SLOW: Final[int] = 26
MACD_SIGNAL: Final[int] = 9

# Bollinger bands
BOLLINGER_PERIOD: Final[int] = 20
BOLLINGER_STD_DEV: Final[float] = 2.0

# Stochastic oscillator
STOCHASTIC_K_PERIOD: Final[int] = 14
STOCHASTIC_D_PERIOD: Final[int] = 3
STOCHASTIC_FLAT: Final[float] = 50.0  # %K when highest high == lowest low

# Williams %R
WILLIAMS_PERIOD: Final[int] = 14
WILLIAMS_FLAT: Final[float] = -50.0

# Average true range / commodity channel index
ATR_PERIOD: Final[int] = 14
CCI_PERIOD: Final[int] = 20
CCI_CONSTANT: Final[float] = 0.015


# =============================================================================
# RISK ANALYTICS
# =============================================================================

TRADING_DAYS_PER_YEAR: Final[int] = 252
DEFAULT_RISK_FREE_RATE: Final[float] = 0.025  # 2.5% annual
VAR_CONFIDENCE: Final[float] = 0.95
VAR_CONFIDENCE_99: Final[float] = 0.99
ROLLING_VOLATILITY_WINDOW: Final[int] = 30

# Risk level by 95% VaR
VAR_LOW_RISK: Final[float] = 0.02
VAR_MODERATE_RISK: Final[float] = 0.05

# Sharpe ratio rating bands
SHARPE_EXCELLENT: Final[float] = 2.0
SHARPE_GOOD: Final[float] = 1.0
SHARPE_FAIR: Final[float] = 0.5


# =============================================================================
# ALERT EVALUATION
# =============================================================================

# volume / average volume needed for a volume breakout
DEFAULT_VOLUME_MULTIPLIER: Final[float] = 2.0

# Per-symbol tick history kept by the store
PRICE_HISTORY_SIZE: Final[int] = 100

# Support / resistance detection
SUPPORT_RESISTANCE_WINDOW: Final[int] = 20

# Suggested price alerts sit this far from the current price
SUGGESTION_PRICE_OFFSET: Final[float] = 0.05  # 5%


# =============================================================================
# NOTIFICATIONS
# =============================================================================

DEFAULT_MAX_NOTIFICATIONS: Final[int] = 50
MAX_NOTIFICATIONS_CHOICES: Final[tuple[int, ...]] = (25, 50, 100, 200)

# Visual auto-close delays (critical notifications stay until dismissed)
HIGH_PRIORITY_DISPLAY_MS: Final[int] = 8000
DEFAULT_DISPLAY_MS: Final[int] = 5000

# Tone sequencing
TONE_DURATION_MS: Final[int] = 200
TONE_GAP_MS: Final[int] = 100

# Persisted aggregate key
DEFAULT_STORAGE_KEY: Final[str] = "smartAlerts"
