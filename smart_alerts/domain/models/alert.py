"""Alert rule models: price, technical and news rules plus their drafts.

Rules are immutable; the store replaces a rule with ``model_copy`` when it
is toggled, updated or triggered. The three variants form the ``AlertRule``
union, discriminated on ``category``.
"""

from abc import abstractmethod
from datetime import datetime
from typing import Annotated, Literal
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from smart_alerts.domain.models.enums import (
    AlertCategory,
    ComparisonOperator,
    Priority,
    PriceAlertKind,
    Sentiment,
    TechnicalAlertKind,
    Timeframe,
)
from smart_alerts.domain.models.market import Symbol, normalize_symbol


def new_alert_id(category: AlertCategory) -> str:
    """Generate a rule id prefixed by its category (e.g. ``price_3f2a...``)."""
    return f"{category.value}_{uuid4().hex[:12]}"


def format_number(value: float) -> str:
    """Render a threshold the way a user typed it (200, not 200.0)."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def default_operator(kind: PriceAlertKind) -> ComparisonOperator:
    """Operator implied by a price rule kind."""
    if kind == PriceAlertKind.BELOW:
        return ComparisonOperator.LESS_THAN
    return ComparisonOperator.GREATER_THAN


class NotificationPreferences(BaseModel):
    """Per-rule delivery channels."""

    model_config = {"frozen": True}

    browser: bool = True
    sound: bool = True
    email: bool = False  # Reserved, never delivered


class TriggerMetadata(BaseModel):
    """Prices recorded when a price rule fires."""

    model_config = {"frozen": True}

    current_price: float
    trigger_price: float
    percent_change: float


class TechnicalParameters(BaseModel):
    """Optional thresholds for technical rules."""

    model_config = {"frozen": True}

    rsi_level: float | None = None
    support_level: float | None = None
    resistance_level: float | None = None
    volume_multiplier: float | None = None


class AlertRuleBase(BaseModel):
    """Fields shared by every rule variant."""

    model_config = {"frozen": True}

    id: str
    active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)
    message: str = ""
    priority: Priority = Priority.MEDIUM


class PriceAlert(AlertRuleBase):
    """Fires once when a tick crosses a price, move or volume threshold."""

    category: Literal["price"] = "price"
    symbol: Symbol
    kind: PriceAlertKind
    threshold: float
    operator: ComparisonOperator = Field(default=None, validate_default=True)
    timeframe: Timeframe | None = None
    triggered: bool = False
    triggered_at: datetime | None = None
    metadata: TriggerMetadata | None = None

    @field_validator("operator", mode="before")
    @classmethod
    def operator_from_kind(cls, v, info):
        """Fill the operator implied by the kind when none is given."""
        if v is None and "kind" in info.data:
            return default_operator(info.data["kind"])
        return v


class TechnicalAlert(AlertRuleBase):
    """Fires once when an indicator condition holds for a snapshot."""

    category: Literal["technical"] = "technical"
    symbol: Symbol
    kind: TechnicalAlertKind
    parameters: TechnicalParameters = Field(default_factory=TechnicalParameters)
    triggered: bool = False
    triggered_at: datetime | None = None


class NewsAlert(AlertRuleBase):
    """Keyword / symbol / sentiment filter for news. Has no trigger latch."""

    category: Literal["news"] = "news"
    keywords: tuple[str, ...] = ()
    symbols: tuple[str, ...] = ()
    sentiment: Sentiment = Sentiment.ANY

    @field_validator("keywords")
    @classmethod
    def drop_blank_keywords(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Strip keywords and drop empty entries."""
        return tuple(k.strip() for k in v if k.strip())

    @field_validator("symbols")
    @classmethod
    def normalize_symbols(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Upper-case symbols and drop empty entries."""
        return tuple(normalize_symbol(s) for s in v if s.strip())


AlertRule = Annotated[
    PriceAlert | TechnicalAlert | NewsAlert,
    Field(discriminator="category"),
]


# =============================================================================
# DRAFTS - user supplied part of a rule
# =============================================================================


class DraftBase(BaseModel):
    """Fields a user may set on any new rule.

    Concrete drafts supply ``default_message``.
    """

    active: bool = True
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)
    message: str = ""
    priority: Priority = Priority.MEDIUM

    def _envelope(self, category: AlertCategory) -> dict:
        return {
            "id": new_alert_id(category),
            "created_at": datetime.now(),
            "active": self.active,
            "notifications": self.notifications,
            "message": self.message.strip() or self.default_message(),
            "priority": self.priority,
        }

    @abstractmethod
    def default_message(self) -> str:
        """Message used when the user leaves ``message`` blank."""


class PriceAlertDraft(DraftBase):
    """Request to create a price rule."""

    symbol: Symbol
    kind: PriceAlertKind
    threshold: float
    operator: ComparisonOperator | None = None
    timeframe: Timeframe | None = None

    def default_message(self) -> str:
        """Describe the condition, e.g. ``AAPL has risen above 200``."""
        value = format_number(self.threshold)
        if self.kind == PriceAlertKind.ABOVE:
            return f"{self.symbol} has risen above {value}"
        elif self.kind == PriceAlertKind.BELOW:
            return f"{self.symbol} has fallen below {value}"
        elif self.kind == PriceAlertKind.PERCENT_CHANGE:
            return f"{self.symbol} has changed by {value}%"
        return f"{self.symbol} has volume spike detected at {value}x"

    def to_alert(self) -> PriceAlert:
        """Build an untriggered PriceAlert with a fresh id."""
        return PriceAlert(
            **self._envelope(AlertCategory.PRICE),
            symbol=self.symbol,
            kind=self.kind,
            threshold=self.threshold,
            operator=self.operator,
            timeframe=self.timeframe,
        )


_TECHNICAL_MESSAGES = {
    TechnicalAlertKind.RSI_OVERBOUGHT: "RSI indicates {symbol} may be overbought",
    TechnicalAlertKind.RSI_OVERSOLD: "RSI indicates {symbol} may be oversold",
    TechnicalAlertKind.MACD_CROSSOVER: "MACD bullish crossover detected for {symbol}",
    TechnicalAlertKind.SUPPORT_BREAK: "{symbol} broke below support level",
    TechnicalAlertKind.RESISTANCE_BREAK: "{symbol} broke above resistance level",
    TechnicalAlertKind.VOLUME_BREAKOUT: "Volume spike detected for {symbol}",
}


class TechnicalAlertDraft(DraftBase):
    """Request to create a technical rule."""

    symbol: Symbol
    kind: TechnicalAlertKind
    parameters: TechnicalParameters = Field(default_factory=TechnicalParameters)

    def default_message(self) -> str:
        template = _TECHNICAL_MESSAGES.get(
            self.kind, "Technical signal detected for {symbol}"
        )
        return template.format(symbol=self.symbol)

    def to_alert(self) -> TechnicalAlert:
        """Build an untriggered TechnicalAlert with a fresh id."""
        return TechnicalAlert(
            **self._envelope(AlertCategory.TECHNICAL),
            symbol=self.symbol,
            kind=self.kind,
            parameters=self.parameters,
        )


class NewsAlertDraft(DraftBase):
    """Request to create a news rule."""

    keywords: tuple[str, ...] = ()
    symbols: tuple[str, ...] = ()
    sentiment: Sentiment = Sentiment.ANY

    @field_validator("keywords")
    @classmethod
    def drop_blank_keywords(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Strip keywords and drop empty entries."""
        return tuple(k.strip() for k in v if k.strip())

    @field_validator("symbols")
    @classmethod
    def normalize_symbols(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Upper-case symbols and drop empty entries."""
        return tuple(normalize_symbol(s) for s in v if s.strip())

    def default_message(self) -> str:
        return (
            f"News alert for {', '.join(self.symbols)} "
            f"with keywords: {', '.join(self.keywords)}"
        )

    def to_alert(self) -> NewsAlert:
        """Build a NewsAlert with a fresh id."""
        return NewsAlert(
            **self._envelope(AlertCategory.NEWS),
            keywords=self.keywords,
            symbols=self.symbols,
            sentiment=self.sentiment,
        )


AlertDraft = PriceAlertDraft | TechnicalAlertDraft | NewsAlertDraft
