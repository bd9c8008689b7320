"""Portfolio-level calculations for risk and return analysis.

This module provides calculations at the layer (portfolio) level:
- Return analysis (daily resampling, Sharpe, Sortino, Calmar, VaR/CVaR)
- Drawdown analysis (signed drawdown series, drawdown episodes)
- Trade statistics (win/loss partition, profit factor, streaks)
- Correlation (Pearson on return series, diversification score)
"""

from src.engine.portfolio.correlation import (
    align_series,
    calc_diversification_score,
    calc_pearson_correlation,
    classify_correlation,
)
from src.engine.portfolio.drawdown import (
    calc_drawdown_periods,
    calc_drawdown_series,
    calc_max_drawdown,
    find_max_drawdown_period,
)
from src.engine.portfolio.returns import (
    calc_annualized_return,
    calc_calmar_ratio,
    calc_cvar,
    calc_daily_returns,
    calc_downside_deviation,
    calc_monthly_returns,
    calc_sharpe_ratio,
    calc_sortino_ratio,
    calc_total_return,
    calc_ulcer_index,
    calc_var,
    calc_volatility,
    resample_daily_closes,
)
from src.engine.portfolio.trade_stats import (
    StreakStats,
    WinLossStats,
    calc_expectancy,
    calc_profit_factor,
    calc_streaks,
    calc_trade_sharpe,
    calc_win_loss_stats,
)

__all__ = [
    # Return analysis
    "resample_daily_closes",
    "calc_daily_returns",
    "calc_total_return",
    "calc_annualized_return",
    "calc_volatility",
    "calc_sharpe_ratio",
    "calc_downside_deviation",
    "calc_sortino_ratio",
    "calc_calmar_ratio",
    "calc_var",
    "calc_cvar",
    "calc_monthly_returns",
    "calc_ulcer_index",
    # Drawdown
    "calc_drawdown_series",
    "calc_max_drawdown",
    "calc_drawdown_periods",
    "find_max_drawdown_period",
    # Trade statistics
    "WinLossStats",
    "StreakStats",
    "calc_win_loss_stats",
    "calc_profit_factor",
    "calc_expectancy",
    "calc_streaks",
    "calc_trade_sharpe",
    # Correlation
    "align_series",
    "calc_pearson_correlation",
    "classify_correlation",
    "calc_diversification_score",
]
