"""Drawdown calculations.

All drawdowns are signed: d_t = (E_t - P_t) / P_t <= 0, where P_t is the
running peak. A non-decreasing curve has every drawdown equal to 0.
"""

from datetime import date
from typing import Sequence

from src.engine.models.metrics import DrawdownPeriod


def calc_drawdown_series(equity_curve: Sequence[float]) -> list[float]:
    """Calculate drawdown series from an equity curve.

    Args:
        equity_curve: List of portfolio values (oldest to newest).

    Returns:
        List of signed drawdowns at each point (0 at new highs).
        Points where the running peak is not positive report 0.

    Example:
        >>> calc_drawdown_series([100, 120, 90, 130])
        [0.0, 0.0, -0.25, 0.0]
    """
    if equity_curve is None or len(equity_curve) == 0:
        return []

    drawdowns = []
    peak = equity_curve[0]

    for value in equity_curve:
        if value > peak:
            peak = value
        if peak > 0:
            drawdowns.append(min((value - peak) / peak, 0.0))
        else:
            drawdowns.append(0.0)

    return drawdowns


def calc_max_drawdown(equity_curve: Sequence[float]) -> float | None:
    """Calculate maximum drawdown from an equity curve.

    Returns:
        Most negative drawdown (e.g., -0.20 for a 20% decline).
        Returns 0.0 if equity never declines, None if no data.

    Example:
        >>> round(calc_max_drawdown([100, 110, 105, 120, 100, 130]), 4)
        -0.1667
    """
    drawdowns = calc_drawdown_series(equity_curve)
    if not drawdowns:
        return None
    return min(drawdowns)


def calc_drawdown_periods(
    dates: Sequence[date],
    equity_curve: Sequence[float],
) -> list[DrawdownPeriod]:
    """Split an equity curve into peak-to-recovery drawdown episodes.

    The peak date is the last day equity stood at the running peak before
    declining (ties move it forward). An episode ends on the first day equity
    gets back to that peak. An episode still open at the end has
    recovery_date None and duration measured to the last observation.

    Args:
        dates: Observation dates (ascending, same length as equity_curve).
        equity_curve: Equity values.

    Returns:
        Episodes in chronological order.
    """
    if len(dates) != len(equity_curve):
        raise ValueError("dates and equity_curve must have the same length")
    if not equity_curve:
        return []

    periods: list[DrawdownPeriod] = []
    peak_value = equity_curve[0]
    peak_date = dates[0]
    in_drawdown = False
    trough_value = peak_value
    trough_date = peak_date

    for day, value in zip(dates, equity_curve):
        if value >= peak_value:
            if in_drawdown:
                periods.append(_make_period(
                    peak_date, trough_date, day, peak_value, trough_value,
                ))
                in_drawdown = False
            peak_value = value
            peak_date = day
            trough_value = value
            trough_date = day
        else:
            in_drawdown = True
            if value < trough_value:
                trough_value = value
                trough_date = day

    # 未恢复的回撤
    if in_drawdown:
        periods.append(_make_period(
            peak_date, trough_date, None, peak_value, trough_value,
            end_date=dates[-1],
        ))

    return periods


def _make_period(
    peak_date: date,
    trough_date: date,
    recovery_date: date | None,
    peak_value: float,
    trough_value: float,
    end_date: date | None = None,
) -> DrawdownPeriod:
    last = recovery_date or end_date or trough_date
    depth = (trough_value - peak_value) / peak_value if peak_value > 0 else 0.0
    return DrawdownPeriod(
        peak_date=peak_date,
        trough_date=trough_date,
        recovery_date=recovery_date,
        peak_value=peak_value,
        trough_value=trough_value,
        drawdown=min(depth, 0.0),
        duration_days=(last - peak_date).days,
    )


def find_max_drawdown_period(periods: Sequence[DrawdownPeriod]) -> DrawdownPeriod | None:
    """Episode with the deepest drawdown (earliest wins ties)."""
    if not periods:
        return None
    return min(periods, key=lambda p: p.drawdown)
