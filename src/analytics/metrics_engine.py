"""
Layer Metrics Engine - 层级绩效指标引擎

从已平仓交易和权益曲线计算层（组合）的风险收益快照：
- 收益：总收益、年化收益、总盈亏
- 风险调整收益：Sharpe / Sortino / Calmar
- 风险：最大回撤（含持续天数）、当前回撤、波动率、Ulcer 指数
- 尾部风险：VaR / CVaR (95/99)
- 交易统计：胜率、盈亏比、期望、连胜连败
- 月度统计

退化输入（零波动、无回撤、无亏损）不抛异常，返回文档化的回退值并打上 MetricFlag。
数据不足时返回 InsufficientData。

Usage:
    engine = MetricsEngine()
    result = engine.compute(trades, equity_curve)
    if isinstance(result, InsufficientData):
        ...
"""

import logging
import math
from typing import Iterable

import numpy as np

from src.business.config.analytics_config import MetricsSettings
from src.data.models.ledger import EquityPoint, Trade
from src.engine.models.enums import MetricFlag
from src.engine.models.metrics import InsufficientData, LayerMetrics
from src.engine.portfolio.drawdown import (
    calc_drawdown_periods,
    calc_drawdown_series,
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
    calc_expectancy,
    calc_profit_factor,
    calc_streaks,
    calc_win_loss_stats,
)

logger = logging.getLogger(__name__)


def _or_zero(value: float | None) -> float:
    return 0.0 if value is None else value


class MetricsEngine:
    """层级绩效指标引擎

    相同输入产生完全相同的结果：不读取时钟，不持有可变状态。
    """

    def __init__(self, settings: MetricsSettings | None = None) -> None:
        self._settings = settings or MetricsSettings()

    @property
    def settings(self) -> MetricsSettings:
        return self._settings

    def compute(
        self,
        trades: Iterable[Trade],
        equity_curve: Iterable[EquityPoint],
        skipped_records: int = 0,
    ) -> LayerMetrics | InsufficientData:
        """计算层级绩效快照

        Args:
            trades: 层内所有交易（可乱序，未平仓交易会被跳过并计数）
            equity_curve: 层级权益曲线（可不规则采样）
            skipped_records: 上游解析阶段已丢弃的记录数

        Returns:
            LayerMetrics，或数据不足时的 InsufficientData
        """
        trades = list(trades)
        closed = sorted(
            (t for t in trades if t.is_closed),
            key=lambda t: (t.exit_time, t.trade_id),
        )
        skipped = skipped_records + (len(trades) - len(closed))
        if len(trades) != len(closed):
            logger.warning(f"Skipping {len(trades) - len(closed)} trades without exit time/price")

        closes = resample_daily_closes(equity_curve)

        # 1. 数据充足性检查
        reasons = []
        if len(closed) < self._settings.min_trades:
            reasons.append(
                f"need at least {self._settings.min_trades} closed trades, got {len(closed)}"
            )
        if len(closes) < self._settings.min_daily_points:
            reasons.append(
                f"need at least {self._settings.min_daily_points} daily equity points, got {len(closes)}"
            )
        if reasons:
            logger.debug(f"Insufficient data: {'; '.join(reasons)}")
            return InsufficientData(
                reasons=tuple(reasons),
                total_trades=len(closed),
                daily_points=len(closes),
                skipped_records=skipped,
            )

        flags: set[MetricFlag] = set()
        if skipped:
            flags.add(MetricFlag.SKIPPED_RECORDS)

        ppy = self._settings.periods_per_year
        rf_daily = self._settings.rf_daily

        # 2. 日收益
        returns = calc_daily_returns(closes)
        if len(returns) < len(closes) - 1:
            flags.add(MetricFlag.NON_POSITIVE_EQUITY)
        r = returns.to_numpy(dtype=float)

        values = closes.to_numpy(dtype=float).tolist()
        dates = [ts.date() for ts in closes.index]

        # 3. 收益与风险调整收益
        total_return = calc_total_return(values)
        annualized_return = calc_annualized_return(values[0], values[-1], len(values) - 1, ppy)
        if min(values) <= 0:
            flags.add(MetricFlag.NON_POSITIVE_EQUITY)

        volatility = calc_volatility(r, ppy)
        sharpe = calc_sharpe_ratio(r, rf_daily, ppy)
        if sharpe is None:
            flags.add(MetricFlag.ZERO_VOLATILITY)
        sortino = calc_sortino_ratio(r, rf_daily, ppy)
        if sortino is None:
            flags.add(MetricFlag.NO_DOWNSIDE)
        downside_volatility = calc_downside_deviation(r, rf_daily) * math.sqrt(ppy)

        # 4. 回撤
        drawdowns = calc_drawdown_series(values)
        max_drawdown = min(drawdowns)
        current_drawdown = drawdowns[-1]
        periods = calc_drawdown_periods(dates, values)
        worst = find_max_drawdown_period(periods)
        if worst is None:
            max_dd_duration, max_dd_recovered = 0, True
        else:
            max_dd_duration, max_dd_recovered = worst.duration_days, worst.recovered
            if not worst.recovered:
                flags.add(MetricFlag.DRAWDOWN_UNRECOVERED)

        calmar = calc_calmar_ratio(_or_zero(annualized_return), max_drawdown)
        if calmar is None:
            flags.add(MetricFlag.ZERO_DRAWDOWN)

        # 5. 交易统计
        pnls = [t.net_pnl for t in closed]
        wl = calc_win_loss_stats(pnls)
        profit_factor = calc_profit_factor(pnls)
        if wl.losing_trades == 0:
            flags.add(MetricFlag.NO_LOSSES)
        streaks = calc_streaks(pnls)
        holding_hours = [t.holding_period_hours for t in closed]

        # 6. 月度统计
        monthly = calc_monthly_returns(closes)
        profitable_months = int((monthly > 0).sum())
        total_months = len(monthly)

        metrics = LayerMetrics(
            start_date=dates[0],
            end_date=dates[-1],
            trading_days=len(values),
            total_return=_or_zero(total_return),
            annualized_return=_or_zero(annualized_return),
            total_pnl=wl.net_pnl,
            sharpe_ratio=_or_zero(sharpe),
            sortino_ratio=_or_zero(sortino),
            calmar_ratio=_or_zero(calmar),
            max_drawdown=max_drawdown,
            current_drawdown=current_drawdown,
            max_drawdown_duration=max_dd_duration,
            max_drawdown_recovered=max_dd_recovered,
            volatility=volatility,
            downside_volatility=downside_volatility,
            ulcer_index=calc_ulcer_index(values),
            value_at_risk_95=_or_zero(calc_var(r, 0.95)),
            value_at_risk_99=_or_zero(calc_var(r, 0.99)),
            conditional_var_95=_or_zero(calc_cvar(r, 0.95)),
            conditional_var_99=_or_zero(calc_cvar(r, 0.99)),
            total_trades=wl.total_trades,
            winning_trades=wl.winning_trades,
            losing_trades=wl.losing_trades,
            win_rate=wl.win_rate,
            avg_win=wl.avg_win,
            avg_loss=wl.avg_loss,
            gross_profit=wl.gross_profit,
            gross_loss=wl.gross_loss,
            profit_factor=profit_factor,
            expectancy=calc_expectancy(wl.win_rate, wl.avg_win, wl.avg_loss),
            largest_win=wl.largest_win,
            largest_loss=wl.largest_loss,
            avg_holding_period_hours=float(np.mean(holding_hours)),
            current_streak=streaks.current_streak,
            longest_win_streak=streaks.longest_win_streak,
            longest_loss_streak=streaks.longest_loss_streak,
            avg_win_streak=streaks.avg_win_streak,
            avg_loss_streak=streaks.avg_loss_streak,
            profitable_months=profitable_months,
            total_months=total_months,
            monthly_win_rate=profitable_months / total_months if total_months else 0.0,
            skipped_records=skipped,
            flags=frozenset(flags),
            drawdown_periods=tuple(periods),
        )

        logger.debug(
            f"Computed layer metrics: {metrics.total_trades} trades, "
            f"{metrics.trading_days} days, sharpe={metrics.sharpe_ratio:.2f}, "
            f"max_dd={metrics.max_drawdown:.2%}"
        )
        return metrics
