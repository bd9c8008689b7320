"""Portfolio return calculations.

Portfolio-level module for return time-series analysis. Functions return
None for degenerate inputs (zero variance, too few observations); callers
decide the fallback value and flag it.
"""

import math
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from src.data.models.ledger import EquityPoint

# Below this a standard deviation is treated as zero (float noise on constant series)
EPSILON = 1e-12


def resample_daily_closes(points: Iterable[EquityPoint]) -> pd.Series:
    """Resample an equity curve to one value per calendar day.

    Uses the last observation of each day. Days without observations are
    dropped, not forward-filled. Input order does not matter; duplicate
    timestamps keep the later point.

    Args:
        points: Equity observations (irregular sampling allowed).

    Returns:
        Float series indexed by normalized daily Timestamps, ascending.

    Example:
        >>> pts = [EquityPoint(datetime(2024, 1, 1, 10), 100.0),
        ...        EquityPoint(datetime(2024, 1, 1, 16), 101.0),
        ...        EquityPoint(datetime(2024, 1, 2, 16), 102.0)]
        >>> resample_daily_closes(pts).tolist()
        [101.0, 102.0]
    """
    points = list(points)
    if not points:
        return pd.Series(dtype=float)

    series = pd.Series(
        [float(p.equity_value) for p in points],
        index=pd.DatetimeIndex([p.timestamp for p in points]),
        dtype=float,
    )
    series = series[~series.index.duplicated(keep="last")].sort_index()
    return series.resample("D").last().dropna()


def calc_daily_returns(closes: pd.Series) -> pd.Series:
    """Simple returns r_t = (E_t - E_{t-1}) / E_{t-1}.

    Returns where the previous close is not positive are dropped.

    Args:
        closes: Daily closes (ascending index).

    Returns:
        Return series indexed by the later day of each pair.
    """
    if len(closes) < 2:
        return pd.Series(dtype=float)

    prev = closes.shift(1)
    returns = (closes - prev) / prev
    valid = prev > 0
    return returns[valid].astype(float)


def calc_total_return(equity_curve: Sequence[float]) -> float | None:
    """Total return from first to last equity value.

    Returns:
        Total return as a decimal, None if fewer than 2 points or a
        non-positive starting value.
    """
    if equity_curve is None or len(equity_curve) < 2:
        return None
    first = equity_curve[0]
    if first <= 0:
        return None
    return equity_curve[-1] / first - 1


def calc_annualized_return(
    first_value: float,
    last_value: float,
    n_periods: int,
    periods_per_year: int = 252,
) -> float | None:
    """Annualized return (E_last / E_first) ** (periods_per_year / N) - 1.

    Args:
        first_value: Starting equity.
        last_value: Ending equity.
        n_periods: Number of return periods between the two values.
        periods_per_year: 252 for daily.

    Returns:
        Annualized return as a decimal.
        Returns None for non-positive equity, zero periods or overflow
        (very short windows with extreme growth).

    Example:
        >>> round(calc_annualized_return(100.0, 110.0, 252), 4)
        0.1
    """
    if n_periods <= 0 or first_value <= 0 or last_value < 0:
        return None

    growth = last_value / first_value
    if growth == 0:
        return -1.0
    try:
        return growth ** (periods_per_year / n_periods) - 1
    except OverflowError:
        return None


def calc_volatility(
    returns: Sequence[float],
    periods_per_year: int = 252,
) -> float:
    """Annualized volatility stdev(r) * sqrt(periods_per_year).

    Sample standard deviation (ddof=1). Fewer than 2 returns give 0.0.
    """
    if returns is None or len(returns) < 2:
        return 0.0
    std_dev = float(np.std(np.asarray(returns, dtype=float), ddof=1))
    if std_dev < EPSILON:
        return 0.0
    return std_dev * math.sqrt(periods_per_year)


def calc_sharpe_ratio(
    returns: Sequence[float],
    risk_free_rate: float = 0.0,
    periods_per_year: int = 252,
) -> float | None:
    """Calculate annualized Sharpe ratio.

    Formula: Sharpe = mean(r - rf) / stdev(r) * sqrt(periods_per_year)

    Args:
        returns: List of periodic returns (as decimals).
        risk_free_rate: Risk-free rate per period (as decimal).
        periods_per_year: Number of periods in a year (252 for daily).

    Returns:
        Annualized Sharpe ratio.
        Returns None if fewer than 2 returns or zero volatility.

    Example:
        >>> returns = [0.001, 0.002, -0.001, 0.003, 0.001]
        >>> calc_sharpe_ratio(returns) > 0
        True
    """
    if returns is None or len(returns) < 2:
        return None

    returns_array = np.asarray(returns, dtype=float)
    std_dev = float(np.std(returns_array, ddof=1))
    if std_dev < EPSILON:
        return None

    mean_excess = float(np.mean(returns_array - risk_free_rate))
    return mean_excess / std_dev * math.sqrt(periods_per_year)


def calc_downside_deviation(
    returns: Sequence[float],
    risk_free_rate: float = 0.0,
) -> float:
    """Per-period downside deviation sqrt(mean(min(r - rf, 0)^2)).

    The mean runs over all periods, not only the losing ones.
    """
    if returns is None or len(returns) == 0:
        return 0.0
    excess = np.asarray(returns, dtype=float) - risk_free_rate
    downside = np.minimum(excess, 0.0)
    return float(np.sqrt(np.mean(downside ** 2)))


def calc_sortino_ratio(
    returns: Sequence[float],
    risk_free_rate: float = 0.0,
    periods_per_year: int = 252,
) -> float | None:
    """Calculate annualized Sortino ratio.

    Like Sharpe but the denominator is the downside deviation.

    Returns:
        Annualized Sortino ratio.
        Returns None if fewer than 2 returns or no downside.
    """
    if returns is None or len(returns) < 2:
        return None

    downside_dev = calc_downside_deviation(returns, risk_free_rate)
    if downside_dev < EPSILON:
        return None

    mean_excess = float(np.mean(np.asarray(returns, dtype=float) - risk_free_rate))
    return mean_excess / downside_dev * math.sqrt(periods_per_year)


def calc_calmar_ratio(
    annualized_return: float | None,
    max_drawdown: float | None,
) -> float | None:
    """Calculate Calmar ratio.

    Calmar Ratio = Annualized Return / |Max Drawdown|

    Args:
        annualized_return: Annualized return as decimal.
        max_drawdown: Maximum drawdown (signed or unsigned, magnitude is used).

    Returns:
        Calmar ratio. Higher is better.
        Returns None if max_drawdown is zero or an input is missing.
    """
    if annualized_return is None or max_drawdown is None:
        return None

    if abs(max_drawdown) < EPSILON:
        return None

    return annualized_return / abs(max_drawdown)


def calc_var(
    returns: Sequence[float],
    confidence: float = 0.95,
) -> float | None:
    """Calculate Value at Risk (VaR) using historical simulation.

    The (1 - confidence) percentile of returns, linearly interpolated between
    order statistics.

    Args:
        returns: List of periodic returns (as decimals).
        confidence: Confidence level (e.g., 0.95 for 95% VaR).

    Returns:
        VaR as a signed return (typically negative: a loss).
        Returns None if no returns.
    """
    if returns is None or len(returns) == 0:
        return None

    return float(np.percentile(np.asarray(returns, dtype=float), (1 - confidence) * 100))


def calc_cvar(
    returns: Sequence[float],
    confidence: float = 0.95,
) -> float | None:
    """Calculate Conditional Value at Risk (CVaR / Expected Shortfall).

    Mean of all returns at or below the VaR threshold.

    Returns:
        CVaR as a signed return (<= VaR).
        Returns None if no returns.
    """
    var_threshold = calc_var(returns, confidence)
    if var_threshold is None:
        return None

    returns_array = np.asarray(returns, dtype=float)
    tail_returns = returns_array[returns_array <= var_threshold]

    if len(tail_returns) == 0:
        return var_threshold

    return float(np.mean(tail_returns))


def calc_monthly_returns(closes: pd.Series) -> pd.Series:
    """Month-over-month returns from daily closes.

    Each month is measured from the previous month's last close (the first
    month from its own first close).

    Returns:
        Series indexed by monthly Period.
    """
    if len(closes) < 2:
        return pd.Series(dtype=float)

    month_keys = closes.index.to_period("M")
    month_end = closes.groupby(month_keys).last()
    month_start = closes.groupby(month_keys).first()

    base = month_end.shift(1)
    base.iloc[0] = month_start.iloc[0]
    valid = base > 0
    return ((month_end - base) / base)[valid].astype(float)


def calc_ulcer_index(equity_curve: Sequence[float]) -> float:
    """Ulcer Index: RMS of percentage drawdowns from the running peak.

    Returns:
        Ulcer index in percent points (0 for a non-decreasing curve).
    """
    if equity_curve is None or len(equity_curve) == 0:
        return 0.0

    values = np.asarray(equity_curve, dtype=float)
    peaks = np.maximum.accumulate(values)
    with np.errstate(divide="ignore", invalid="ignore"):
        pct = np.where(peaks > 0, (peaks - values) / peaks * 100.0, 0.0)
    return float(np.sqrt(np.mean(pct ** 2)))
