"""Inter-strategy correlation calculations.

Correlation is measured on RETURN series, never on equity levels: equity
curves are non-stationary and trend together spuriously.
"""

from typing import Sequence

import numpy as np
import pandas as pd

from src.engine.models.enums import CorrelationStrength


def align_series(
    a: pd.Series | Sequence[float],
    b: pd.Series | Sequence[float],
) -> tuple[np.ndarray, np.ndarray]:
    """Align two return series on their common observations.

    Date-indexed Series are joined on the index intersection (NaN rows
    dropped). Plain sequences are assumed to share a calendar and are
    aligned by position on their common tail.
    """
    if isinstance(a, pd.Series) and isinstance(b, pd.Series):
        joined = pd.concat([a, b], axis=1, join="inner").dropna()
        return joined.iloc[:, 0].to_numpy(dtype=float), joined.iloc[:, 1].to_numpy(dtype=float)

    x = np.asarray(a, dtype=float)
    y = np.asarray(b, dtype=float)
    n = min(len(x), len(y))
    x, y = x[len(x) - n:], y[len(y) - n:]
    mask = ~(np.isnan(x) | np.isnan(y))
    return x[mask], y[mask]


def calc_pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float | None:
    """Pearson correlation coefficient of two equal-length series.

    Returns:
        Correlation clipped to [-1, 1].
        Returns None with fewer than 2 points or a constant series.

    Example:
        >>> calc_pearson_correlation([1, 2, 3], [2, 4, 6])
        1.0
    """
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    if len(x_arr) != len(y_arr):
        raise ValueError("series must have equal length")
    if len(x_arr) < 2:
        return None

    dx = x_arr - x_arr.mean()
    dy = y_arr - y_arr.mean()
    denom = float(np.sqrt(np.sum(dx * dx) * np.sum(dy * dy)))
    if denom < 1e-15:
        return None

    corr = float(np.sum(dx * dy)) / denom
    return float(np.clip(corr, -1.0, 1.0))


def classify_correlation(
    correlation: float,
    high_threshold: float = 0.7,
    medium_threshold: float = 0.4,
) -> CorrelationStrength:
    """Classify correlation strength by absolute value."""
    abs_corr = abs(correlation)
    if abs_corr >= high_threshold:
        return CorrelationStrength.HIGH
    if abs_corr >= medium_threshold:
        return CorrelationStrength.MEDIUM
    return CorrelationStrength.LOW


def calc_diversification_score(average_correlation: float | None) -> float:
    """Diversification score clip(100 * (1 - avg), 0, 100).

    Fully correlated amps (avg = 1) score 0. Independence scores 100 and
    negative correlation is capped at 100. No measurable correlation
    (None) scores 100 by convention.

    Example:
        >>> calc_diversification_score(0.25)
        75.0
    """
    if average_correlation is None:
        return 100.0
    return float(np.clip(100.0 * (1.0 - average_correlation), 0.0, 100.0))
