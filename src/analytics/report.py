"""
Report Assembler - 层级分析报告编排

从 TradeLedgerAccessor 读取一个层的快照，并行计算：
- MetricsEngine: 层级绩效指标
- AttributionAnalyzer: amp 归因 + 相关性矩阵

两者都完成后再由 Recommender 生成优化建议（fan-out / fan-in）。

Usage:
    from src.analytics import ReportAssembler

    assembler = ReportAssembler(ledger, AnalyticsConfig.load(), cache=SnapshotCache())
    report = assembler.assemble("layer-1")
    payload = report.to_dict()
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Sequence

from src.analytics.attribution_analyzer import AttributionAnalyzer
from src.analytics.cache import SnapshotCache
from src.analytics.metrics_engine import MetricsEngine
from src.business.config.analytics_config import AnalyticsConfig
from src.business.recommendation.recommender import Recommender
from src.data.ledger import TradeLedgerAccessor, skipped_records_of
from src.data.models.ledger import AmpMeta, EquityPoint, Trade
from src.engine.models.attribution import AmpAttribution, CorrelationMatrix
from src.engine.models.metrics import InsufficientData, LayerMetrics
from src.engine.models.recommendation import OptimizationRecommendation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayerReport:
    """层级分析快照（纯数据，可直接序列化传输）"""

    layer_id: str
    latest_trade_id: str | None
    metrics: LayerMetrics | InsufficientData
    attributions: tuple[AmpAttribution, ...]
    correlation: CorrelationMatrix
    recommendations: tuple[OptimizationRecommendation, ...]

    @property
    def has_metrics(self) -> bool:
        return isinstance(self.metrics, LayerMetrics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "layer_id": self.layer_id,
            "latest_trade_id": self.latest_trade_id,
            "metrics": self.metrics.to_dict(),
            "attributions": [a.to_dict() for a in self.attributions],
            "correlation": self.correlation.to_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


def latest_trade_id(trades: Sequence[Trade]) -> str | None:
    """最近一笔交易的 id（按平仓时间，未平仓按开仓时间）"""
    if not trades:
        return None
    latest = max(trades, key=lambda t: (t.exit_time or t.entry_time, t.trade_id))
    return latest.trade_id


class ReportAssembler:
    """层级报告编排器

    自身不持有可变状态（除可选的外部缓存），多个层可并发调用 assemble。
    账本访问异常直接向上抛出；数据不足不会抛异常，而是体现在报告中。
    """

    def __init__(
        self,
        ledger: TradeLedgerAccessor,
        config: AnalyticsConfig | None = None,
        cache: SnapshotCache | None = None,
        max_workers: int = 2,
    ) -> None:
        self._ledger = ledger
        self._config = config or AnalyticsConfig()
        self._cache = cache
        self._max_workers = max_workers

        self._metrics_engine = MetricsEngine(self._config.metrics)
        self._analyzer = AttributionAnalyzer(
            policy=self._config.contribution,
            correlation_settings=self._config.correlation,
        )
        self._recommender = Recommender(self._config.recommender)

    def assemble(self, layer_id: str, force_refresh: bool = False) -> LayerReport:
        """生成层级报告

        Args:
            layer_id: 层标识
            force_refresh: 忽略缓存重新计算

        Returns:
            LayerReport
        """
        trades = self._ledger.get_trades(layer_id)
        latest_id = latest_trade_id(trades)

        if self._cache is None:
            return self._build(layer_id, trades, latest_id)
        return self._cache.get_or_compute(
            layer_id,
            latest_id,
            lambda: self._build(layer_id, trades, latest_id),
            force_refresh=force_refresh,
        )

    def _build(
        self,
        layer_id: str,
        trades: list[Trade],
        latest_id: str | None,
    ) -> LayerReport:
        equity = self._ledger.get_layer_equity(layer_id)
        amp_equity = self._ledger.get_amp_equity(layer_id)
        roster = self._ledger.get_amp_roster(layer_id)
        skipped = skipped_records_of(self._ledger, layer_id)

        logger.info(
            f"Assembling report for layer {layer_id}: {len(trades)} trades, "
            f"{len(roster)} amps, latest trade {latest_id}"
        )

        # fan-out: 指标与归因互不依赖
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            metrics_future = executor.submit(
                self._metrics_engine.compute, trades, equity, skipped
            )
            attribution_future = executor.submit(
                self._attribute, trades, roster, amp_equity
            )
            # fan-in
            metrics = metrics_future.result()
            attributions, correlation = attribution_future.result()

        recommendations = self._recommender.recommend(metrics, attributions, correlation)

        if isinstance(metrics, InsufficientData):
            logger.info(f"Layer {layer_id}: insufficient data ({'; '.join(metrics.reasons)})")

        return LayerReport(
            layer_id=layer_id,
            latest_trade_id=latest_id,
            metrics=metrics,
            attributions=tuple(attributions),
            correlation=correlation,
            recommendations=tuple(recommendations),
        )

    def _attribute(
        self,
        trades: list[Trade],
        roster: list[AmpMeta],
        amp_equity: dict[str, list[EquityPoint]],
    ) -> tuple[list[AmpAttribution], CorrelationMatrix]:
        attributions = self._analyzer.attribute(trades, roster)
        correlation = self._analyzer.correlate(self._analyzer.daily_returns_by_amp(amp_equity))
        return attributions, correlation
