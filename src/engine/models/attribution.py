"""Per-amp attribution and inter-amp correlation models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.engine.models.enums import CorrelationFlag, CorrelationStrength


@dataclass(frozen=True)
class AmpAttribution:
    """Contribution of a single amp to its layer.

    Attributes:
        total_pnl: Sum of net P&L (realized - fees) of the amp's trades.
        win_rate: Winning trades / trades executed (0-1).
        execution_rate: Trades executed / signals generated (fraction).
            None when the signal count is unknown or zero.
        contribution_score: Policy-weighted blend of P&L share and
            risk-adjusted share, 0-100.
        sharpe_ratio: Per-trade Sharpe (mean / stdev of net P&L, not annualized).
    """

    amp_id: str
    amp_name: str
    total_pnl: float
    win_rate: float
    trades_executed: int
    execution_rate: float | None
    contribution_score: float

    percentage_of_total_pnl: float = 0.0
    percentage_of_trades: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    sharpe_ratio: float = 0.0
    signals_generated: int | None = None
    best_trade: float = 0.0
    worst_trade: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "amp_id": self.amp_id,
            "amp_name": self.amp_name,
            "total_pnl": self.total_pnl,
            "win_rate": self.win_rate,
            "trades_executed": self.trades_executed,
            "execution_rate": self.execution_rate,
            "contribution_score": self.contribution_score,
            "percentage_of_total_pnl": self.percentage_of_total_pnl,
            "percentage_of_trades": self.percentage_of_trades,
            "avg_win": self.avg_win,
            "avg_loss": self.avg_loss,
            "sharpe_ratio": self.sharpe_ratio,
            "signals_generated": self.signals_generated,
            "best_trade": self.best_trade,
            "worst_trade": self.worst_trade,
        }


@dataclass(frozen=True)
class CorrelationPair:
    """Correlation of one amp pair (upper triangle entry)."""

    amp_a: str
    amp_b: str
    correlation: float
    observations: int
    strength: CorrelationStrength
    valid: bool = True  # False when overlap too short or a series is constant

    def to_dict(self) -> dict[str, Any]:
        return {
            "amp_a": self.amp_a,
            "amp_b": self.amp_b,
            "correlation": self.correlation,
            "observations": self.observations,
            "strength": self.strength.value,
            "valid": self.valid,
        }


@dataclass(frozen=True)
class CorrelationMatrix:
    """Pairwise Pearson correlation of amps' daily returns.

    The matrix is symmetric with an exact 1.0 diagonal. Invalid pairs hold 0.0
    and are excluded from average_correlation.
    """

    amp_ids: tuple[str, ...]
    matrix: tuple[tuple[float, ...], ...]
    average_correlation: float | None
    max_correlation: float | None
    diversification_score: float
    pairs: tuple[CorrelationPair, ...] = ()
    flags: frozenset[CorrelationFlag] = field(default_factory=frozenset)

    @property
    def amp_count(self) -> int:
        return len(self.amp_ids)

    def has_flag(self, flag: CorrelationFlag) -> bool:
        return flag in self.flags

    def get(self, amp_a: str, amp_b: str) -> float:
        """Correlation between two amps by id."""
        i = self.amp_ids.index(amp_a)
        j = self.amp_ids.index(amp_b)
        return self.matrix[i][j]

    def to_dict(self) -> dict[str, Any]:
        return {
            "amp_ids": list(self.amp_ids),
            "matrix": [list(row) for row in self.matrix],
            "average_correlation": self.average_correlation,
            "max_correlation": self.max_correlation,
            "diversification_score": self.diversification_score,
            "pairs": [p.to_dict() for p in self.pairs],
            "flags": sorted(f.value for f in self.flags),
        }
