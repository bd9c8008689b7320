"""Engine layer enumerations.

Centralized location for all enums used in the engine layer.
"""

from enum import Enum


class MetricFlag(Enum):
    """Degenerate-input markers attached to LayerMetrics.

    A flagged metric carries a documented fallback value instead of
    NaN/Infinity; the flag tells the caller the number is not a real measurement.
    """

    ZERO_VOLATILITY = "zero_volatility"  # stdev(r) == 0, Sharpe reported as 0
    NO_DOWNSIDE = "no_downside"  # downside deviation == 0, Sortino reported as 0
    ZERO_DRAWDOWN = "zero_drawdown"  # max drawdown == 0, Calmar reported as 0
    DRAWDOWN_UNRECOVERED = "drawdown_unrecovered"  # duration is a lower bound
    NO_LOSSES = "no_losses"  # profit factor is the +inf sentinel (or 0 with no wins)
    NON_POSITIVE_EQUITY = "non_positive_equity"  # equity <= 0 seen, some returns dropped
    SKIPPED_RECORDS = "skipped_records"  # malformed trades were ignored


class CorrelationFlag(Enum):
    """Markers attached to CorrelationMatrix."""

    INSUFFICIENT_AMPS = "insufficient_amps"  # fewer than two amps
    INSUFFICIENT_OVERLAP = "insufficient_overlap"  # some pairs lack common history
    ZERO_VARIANCE = "zero_variance"  # some series are constant


class CorrelationStrength(Enum):
    """Pairwise correlation strength by absolute value."""

    HIGH = "high"  # |r| >= 0.7
    MEDIUM = "medium"  # 0.4 <= |r| < 0.7
    LOW = "low"  # |r| < 0.4


class RecommendationType(Enum):
    """Recommendation type."""

    WARNING = "warning"
    SUGGESTION = "suggestion"
    INSIGHT = "insight"


class Impact(Enum):
    """Recommendation impact, ordered high > medium > low."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort rank (0 = most important)."""
        return {Impact.HIGH: 0, Impact.MEDIUM: 1, Impact.LOW: 2}[self]


class RecommendationCategory(Enum):
    """Area a recommendation addresses."""

    PERFORMANCE = "performance"
    RISK = "risk"
    DIVERSIFICATION = "diversification"
    EFFICIENCY = "efficiency"
    CONFIGURATION = "configuration"
