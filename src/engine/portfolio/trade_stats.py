"""Trade-level statistics.

Win/loss partition, profit factor and streaks over a chronological list of
net trade P&L values. A trade with exactly zero P&L is neither a win nor a
loss: it counts toward the total only and does not touch streaks.
"""

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class WinLossStats:
    """Win/loss partition of trade P&L.

    gross_loss and avg_loss are negative (sum/mean of losing trades).
    """

    total_trades: int
    winning_trades: int
    losing_trades: int
    gross_profit: float
    gross_loss: float
    avg_win: float
    avg_loss: float
    largest_win: float
    largest_loss: float

    @property
    def win_rate(self) -> float:
        if self.total_trades == 0:
            return 0.0
        return self.winning_trades / self.total_trades

    @property
    def net_pnl(self) -> float:
        return self.gross_profit + self.gross_loss


@dataclass(frozen=True)
class StreakStats:
    """Consecutive win/loss run lengths."""

    current_streak: int  # +n wins / -n losses ending at the latest trade
    longest_win_streak: int
    longest_loss_streak: int
    avg_win_streak: float
    avg_loss_streak: float


def calc_win_loss_stats(pnls: Sequence[float]) -> WinLossStats:
    """Partition trade P&L into wins and losses.

    Example:
        >>> stats = calc_win_loss_stats([100, -50, 0, 200])
        >>> stats.winning_trades, stats.losing_trades, stats.total_trades
        (2, 1, 4)
    """
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]

    return WinLossStats(
        total_trades=len(pnls),
        winning_trades=len(wins),
        losing_trades=len(losses),
        gross_profit=float(sum(wins)),
        gross_loss=float(sum(losses)),
        avg_win=float(sum(wins) / len(wins)) if wins else 0.0,
        avg_loss=float(sum(losses) / len(losses)) if losses else 0.0,
        largest_win=float(max(wins)) if wins else 0.0,
        largest_loss=float(min(losses)) if losses else 0.0,
    )


def calc_profit_factor(pnls: Sequence[float]) -> float:
    """Calculate profit factor.

    Profit Factor = Gross Profit / |Gross Loss|

    Returns:
        Profit factor. math.inf when there are wins but no losses,
        0.0 when there are neither.

    Example:
        >>> calc_profit_factor([100] * 10 + [-50] * 5)
        4.0
    """
    gross_profit = sum(p for p in pnls if p > 0)
    gross_loss = sum(-p for p in pnls if p < 0)

    if gross_loss == 0:
        return math.inf if gross_profit > 0 else 0.0

    return gross_profit / gross_loss


def calc_expectancy(win_rate: float, avg_win: float, avg_loss: float) -> float:
    """Expected P&L per trade.

    Formula: E = win_rate * avg_win - (1 - win_rate) * |avg_loss|

    Example:
        >>> calc_expectancy(0.6, 100, -50)
        40.0
    """
    return win_rate * avg_win - (1 - win_rate) * abs(avg_loss)


def calc_streaks(pnls: Sequence[float]) -> StreakStats:
    """Single chronological pass over trade P&L.

    Example:
        >>> s = calc_streaks([1, 1, -1, 0, -1, -1, 1])
        >>> s.current_streak, s.longest_win_streak, s.longest_loss_streak
        (1, 2, 3)
    """
    current = 0
    longest_win = 0
    longest_loss = 0
    win_runs: list[int] = []
    loss_runs: list[int] = []

    for pnl in pnls:
        if pnl > 0:
            if current < 0:
                loss_runs.append(-current)
                current = 0
            current += 1
            longest_win = max(longest_win, current)
        elif pnl < 0:
            if current > 0:
                win_runs.append(current)
                current = 0
            current -= 1
            longest_loss = max(longest_loss, -current)

    # 收尾: 当前连胜/连败也计入平均
    if current > 0:
        win_runs.append(current)
    elif current < 0:
        loss_runs.append(-current)

    return StreakStats(
        current_streak=current,
        longest_win_streak=longest_win,
        longest_loss_streak=longest_loss,
        avg_win_streak=float(np.mean(win_runs)) if win_runs else 0.0,
        avg_loss_streak=float(np.mean(loss_runs)) if loss_runs else 0.0,
    )


def calc_trade_sharpe(pnls: Sequence[float]) -> float:
    """Per-trade Sharpe: mean / stdev of trade P&L (not annualized).

    Returns 0.0 with fewer than 2 trades or constant P&L.
    """
    if len(pnls) < 2:
        return 0.0
    arr = np.asarray(pnls, dtype=float)
    std_dev = float(np.std(arr, ddof=1))
    if std_dev < 1e-12:
        return 0.0
    return float(np.mean(arr)) / std_dev
