"""Layer-level metric models.

Derived views over a layer's trade and equity history. These are pure data
containers; values are computed by MetricsEngine (src.analytics.metrics_engine).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from src.engine.models.enums import MetricFlag


def json_float(value: float | None) -> float | str | None:
    """Map the +inf sentinel to a JSON-safe string."""
    if value is not None and math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return value


@dataclass(frozen=True)
class DrawdownPeriod:
    """A peak-to-recovery drawdown episode.

    Attributes:
        peak_date: Last day at the running peak before the decline.
        trough_date: Day of the lowest equity within the episode.
        recovery_date: First day equity got back to the peak (None if unrecovered).
        drawdown: Signed depth, (trough - peak) / peak, always <= 0.
        duration_days: Calendar days from peak to recovery (or to the last
            observation when unrecovered, in which case it is a lower bound).
    """

    peak_date: date
    trough_date: date
    recovery_date: date | None
    peak_value: float
    trough_value: float
    drawdown: float
    duration_days: int

    @property
    def recovered(self) -> bool:
        return self.recovery_date is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "peak_date": self.peak_date.isoformat(),
            "trough_date": self.trough_date.isoformat(),
            "recovery_date": self.recovery_date.isoformat() if self.recovery_date else None,
            "peak_value": self.peak_value,
            "trough_value": self.trough_value,
            "drawdown": self.drawdown,
            "duration_days": self.duration_days,
            "recovered": self.recovered,
        }


@dataclass(frozen=True)
class InsufficientData:
    """Explicit "not enough data" result.

    Returned instead of a LayerMetrics snapshot so callers render a clear
    empty state rather than misleading zeros.
    """

    reasons: tuple[str, ...]
    total_trades: int = 0
    daily_points: int = 0
    skipped_records: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "insufficient_data",
            "reasons": list(self.reasons),
            "total_trades": self.total_trades,
            "daily_points": self.daily_points,
            "skipped_records": self.skipped_records,
        }


@dataclass(frozen=True)
class LayerMetrics:
    """Risk/return snapshot of a layer.

    Sign conventions:
    - Returns, drawdowns, VaR and CVaR are signed decimals (losses negative).
    - avg_loss and gross_loss are negative amounts; avg_win and gross_profit positive.
    - current_streak > 0 counts consecutive wins, < 0 consecutive losses.
    """

    # ========== 区间信息 ==========
    start_date: date
    end_date: date
    trading_days: int  # daily closes after resampling

    # ========== 收益指标 ==========
    total_return: float
    annualized_return: float
    total_pnl: float

    # ========== 风险调整收益 ==========
    sharpe_ratio: float
    sortino_ratio: float
    calmar_ratio: float

    # ========== 风险指标 ==========
    max_drawdown: float
    current_drawdown: float
    max_drawdown_duration: int  # days
    max_drawdown_recovered: bool
    volatility: float  # annualized
    downside_volatility: float  # annualized
    ulcer_index: float

    # ========== 尾部风险 ==========
    value_at_risk_95: float
    value_at_risk_99: float
    conditional_var_95: float
    conditional_var_99: float

    # ========== 交易指标 ==========
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    avg_win: float
    avg_loss: float
    gross_profit: float
    gross_loss: float
    profit_factor: float  # math.inf when there are wins and no losses
    expectancy: float
    largest_win: float
    largest_loss: float
    avg_holding_period_hours: float

    # ========== 连胜/连败 ==========
    current_streak: int
    longest_win_streak: int
    longest_loss_streak: int
    avg_win_streak: float
    avg_loss_streak: float

    # ========== 月度统计 ==========
    profitable_months: int
    total_months: int
    monthly_win_rate: float

    # ========== 诊断 ==========
    skipped_records: int = 0
    flags: frozenset[MetricFlag] = field(default_factory=frozenset)
    drawdown_periods: tuple[DrawdownPeriod, ...] = ()

    def has_flag(self, flag: MetricFlag) -> bool:
        return flag in self.flags

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dict."""
        return {
            "status": "ok",
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "trading_days": self.trading_days,
            "total_return": self.total_return,
            "annualized_return": self.annualized_return,
            "total_pnl": self.total_pnl,
            "sharpe_ratio": self.sharpe_ratio,
            "sortino_ratio": self.sortino_ratio,
            "calmar_ratio": self.calmar_ratio,
            "max_drawdown": self.max_drawdown,
            "current_drawdown": self.current_drawdown,
            "max_drawdown_duration": self.max_drawdown_duration,
            "max_drawdown_recovered": self.max_drawdown_recovered,
            "volatility": self.volatility,
            "downside_volatility": self.downside_volatility,
            "ulcer_index": self.ulcer_index,
            "value_at_risk_95": self.value_at_risk_95,
            "value_at_risk_99": self.value_at_risk_99,
            "conditional_var_95": self.conditional_var_95,
            "conditional_var_99": self.conditional_var_99,
            "total_trades": self.total_trades,
            "winning_trades": self.winning_trades,
            "losing_trades": self.losing_trades,
            "win_rate": self.win_rate,
            "avg_win": self.avg_win,
            "avg_loss": self.avg_loss,
            "gross_profit": self.gross_profit,
            "gross_loss": self.gross_loss,
            "profit_factor": json_float(self.profit_factor),
            "expectancy": self.expectancy,
            "largest_win": self.largest_win,
            "largest_loss": self.largest_loss,
            "avg_holding_period_hours": self.avg_holding_period_hours,
            "current_streak": self.current_streak,
            "longest_win_streak": self.longest_win_streak,
            "longest_loss_streak": self.longest_loss_streak,
            "avg_win_streak": self.avg_win_streak,
            "avg_loss_streak": self.avg_loss_streak,
            "profitable_months": self.profitable_months,
            "total_months": self.total_months,
            "monthly_win_rate": self.monthly_win_rate,
            "skipped_records": self.skipped_records,
            "flags": sorted(f.value for f in self.flags),
            "drawdown_periods": [p.to_dict() for p in self.drawdown_periods],
        }

    def summary(self) -> str:
        """Human-readable summary."""
        pf = "inf" if math.isinf(self.profit_factor) else f"{self.profit_factor:.2f}"
        lines = [
            f"=== Layer Metrics: {self.start_date} to {self.end_date} ({self.trading_days} days) ===",
            "--- Returns ---",
            f"  Total Return:      {self.total_return:.2%}",
            f"  Annualized Return: {self.annualized_return:.2%}",
            f"  Total P&L:         ${self.total_pnl:,.2f}",
            "--- Risk ---",
            f"  Max Drawdown:      {self.max_drawdown:.2%} ({self.max_drawdown_duration} days"
            f"{'' if self.max_drawdown_recovered else ', unrecovered'})",
            f"  Current Drawdown:  {self.current_drawdown:.2%}",
            f"  Volatility:        {self.volatility:.2%}",
            f"  VaR 95/99:         {self.value_at_risk_95:.2%} / {self.value_at_risk_99:.2%}",
            "--- Risk-Adjusted ---",
            f"  Sharpe:  {self.sharpe_ratio:.2f}",
            f"  Sortino: {self.sortino_ratio:.2f}",
            f"  Calmar:  {self.calmar_ratio:.2f}",
            "--- Trading ---",
            f"  Trades:        {self.total_trades} ({self.winning_trades}W / {self.losing_trades}L)",
            f"  Win Rate:      {self.win_rate:.1%}",
            f"  Profit Factor: {pf}",
            f"  Streak:        {self.current_streak:+d}",
        ]
        return "\n".join(lines)
