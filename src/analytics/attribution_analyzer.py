"""
Attribution Analyzer - 策略归因与相关性分析

- attribute: 按 amp 汇总盈亏、胜率、执行率，并按 ContributionPolicy 计算贡献度
- daily_returns_by_amp: 各 amp 权益曲线 → 日收益序列（与 MetricsEngine 相同的重采样）
- correlate: amp 日收益两两 Pearson 相关、平均相关与分散化评分
"""

import logging
from collections import defaultdict
from typing import Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from src.business.config.analytics_config import ContributionPolicy, CorrelationSettings
from src.data.models.ledger import AmpMeta, EquityPoint, Trade
from src.engine.models.attribution import AmpAttribution, CorrelationMatrix, CorrelationPair
from src.engine.models.enums import CorrelationFlag
from src.engine.portfolio.correlation import (
    align_series,
    calc_diversification_score,
    calc_pearson_correlation,
    classify_correlation,
)
from src.engine.portfolio.returns import calc_daily_returns, resample_daily_closes
from src.engine.portfolio.trade_stats import calc_trade_sharpe, calc_win_loss_stats

logger = logging.getLogger(__name__)


def _positive_shares(values: Mapping[str, float]) -> dict[str, float]:
    """每个值的正部 / 全部正部之和；没有正值时全部为 0"""
    positive = {k: max(v, 0.0) for k, v in values.items()}
    total = sum(positive.values())
    if total <= 0:
        return {k: 0.0 for k in values}
    return {k: v / total for k, v in positive.items()}


class AttributionAnalyzer:
    """策略归因分析器

    Usage:
        analyzer = AttributionAnalyzer()
        attributions = analyzer.attribute(trades, roster)
        matrix = analyzer.correlate(analyzer.daily_returns_by_amp(amp_equity))
    """

    def __init__(
        self,
        policy: ContributionPolicy | None = None,
        correlation_settings: CorrelationSettings | None = None,
    ) -> None:
        self._policy = policy or ContributionPolicy()
        self._corr = correlation_settings or CorrelationSettings()

    # ------------------------------------------------------------------
    # Attribution
    # ------------------------------------------------------------------

    def attribute(
        self,
        trades: Iterable[Trade],
        amp_roster: Sequence[AmpMeta],
    ) -> list[AmpAttribution]:
        """按 amp 归因

        Args:
            trades: 层内交易（未平仓交易忽略）
            amp_roster: amp 名册（无交易的 amp 也会出现在结果中）

        Returns:
            按 contribution_score 降序、amp_id 升序排列的归因列表
        """
        roster = {meta.amp_id: meta for meta in amp_roster}

        pnls_by_amp: dict[str, list[float]] = defaultdict(list)
        for trade in sorted(
            (t for t in trades if t.is_closed),
            key=lambda t: (t.exit_time, t.trade_id),
        ):
            pnls_by_amp[trade.amp_id].append(trade.net_pnl)

        for amp_id in pnls_by_amp:
            if amp_id not in roster:
                logger.warning(f"Trades from amp {amp_id} not in roster, attributing under its id")
                roster[amp_id] = AmpMeta(amp_id=amp_id, amp_name=amp_id)

        total_trades = sum(len(p) for p in pnls_by_amp.values())
        layer_pnl = sum(sum(p) for p in pnls_by_amp.values())

        amp_pnl = {amp_id: float(sum(pnls_by_amp.get(amp_id, []))) for amp_id in roster}
        amp_sharpe = {amp_id: calc_trade_sharpe(pnls_by_amp.get(amp_id, [])) for amp_id in roster}
        pnl_shares = _positive_shares(amp_pnl)
        risk_shares = _positive_shares(amp_sharpe)

        results = []
        for amp_id, meta in roster.items():
            pnls = pnls_by_amp.get(amp_id, [])
            stats = calc_win_loss_stats(pnls)
            signals = meta.signals_generated
            execution_rate = len(pnls) / signals if signals else None

            results.append(AmpAttribution(
                amp_id=amp_id,
                amp_name=meta.amp_name,
                total_pnl=amp_pnl[amp_id],
                win_rate=stats.win_rate,
                trades_executed=len(pnls),
                execution_rate=execution_rate,
                contribution_score=self._policy.score(pnl_shares[amp_id], risk_shares[amp_id]),
                percentage_of_total_pnl=amp_pnl[amp_id] / layer_pnl * 100 if layer_pnl else 0.0,
                percentage_of_trades=len(pnls) / total_trades * 100 if total_trades else 0.0,
                avg_win=stats.avg_win,
                avg_loss=stats.avg_loss,
                sharpe_ratio=amp_sharpe[amp_id],
                signals_generated=signals,
                best_trade=float(max(pnls)) if pnls else 0.0,
                worst_trade=float(min(pnls)) if pnls else 0.0,
            ))

        results.sort(key=lambda a: (-a.contribution_score, a.amp_id))
        logger.debug(f"Attributed {total_trades} trades across {len(results)} amps")
        return results

    # ------------------------------------------------------------------
    # Correlation
    # ------------------------------------------------------------------

    @staticmethod
    def daily_returns_by_amp(
        amp_equity: Mapping[str, Iterable[EquityPoint]],
    ) -> dict[str, pd.Series]:
        """各 amp 的日收益序列（按日期索引）"""
        return {
            amp_id: calc_daily_returns(resample_daily_closes(points))
            for amp_id, points in amp_equity.items()
        }

    def correlate(
        self,
        amp_return_series: Mapping[str, pd.Series | Sequence[float]],
    ) -> CorrelationMatrix:
        """amp 日收益两两相关性

        Series 按日期交集对齐；普通序列按尾部位置对齐。
        共同观测少于 min_overlap 或序列恒定的配对记为 0，并且不计入平均相关。

        Args:
            amp_return_series: amp_id → 日收益序列

        Returns:
            CorrelationMatrix（对称，对角线恒为 1）
        """
        amp_ids = tuple(amp_return_series.keys())
        n = len(amp_ids)
        flags: set[CorrelationFlag] = set()

        if n < 2:
            return CorrelationMatrix(
                amp_ids=amp_ids,
                matrix=tuple(tuple(1.0 for _ in amp_ids) for _ in amp_ids),
                average_correlation=None,
                max_correlation=None,
                diversification_score=100.0,
                flags=frozenset({CorrelationFlag.INSUFFICIENT_AMPS}),
            )

        matrix = np.eye(n)
        pairs = []
        valid_values = []
        for i in range(n):
            for j in range(i + 1, n):
                x, y = align_series(amp_return_series[amp_ids[i]], amp_return_series[amp_ids[j]])
                observations = len(x)

                corr = None
                if observations < self._corr.min_overlap:
                    flags.add(CorrelationFlag.INSUFFICIENT_OVERLAP)
                else:
                    corr = calc_pearson_correlation(x, y)
                    if corr is None:
                        flags.add(CorrelationFlag.ZERO_VARIANCE)

                value = 0.0 if corr is None else corr
                matrix[i, j] = matrix[j, i] = value
                if corr is not None:
                    valid_values.append(corr)
                pairs.append(CorrelationPair(
                    amp_a=amp_ids[i],
                    amp_b=amp_ids[j],
                    correlation=value,
                    observations=observations,
                    strength=classify_correlation(
                        value, self._corr.high_threshold, self._corr.medium_threshold
                    ),
                    valid=corr is not None,
                ))

        if valid_values:
            average = float(np.mean(valid_values))
            maximum = float(max(valid_values))
        else:
            average = maximum = None
            flags.add(CorrelationFlag.INSUFFICIENT_OVERLAP)
            logger.debug(f"No valid correlation pairs among {n} amps")

        return CorrelationMatrix(
            amp_ids=amp_ids,
            matrix=tuple(tuple(float(v) for v in row) for row in matrix),
            average_correlation=average,
            max_correlation=maximum,
            diversification_score=calc_diversification_score(average),
            pairs=tuple(pairs),
            flags=frozenset(flags),
        )
