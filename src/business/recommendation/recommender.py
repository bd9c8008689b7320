"""
Recommender - 优化建议生成器

对 LayerMetrics + AmpAttribution + CorrelationMatrix 逐条评估规则表，
收集所有命中规则，按 影响 (high > medium > low) → 严重度（降序）→ 表内顺序 排序。

不做截断：只展示前 N 条是展示层的职责。
单条规则求值异常只记录日志并跳过，不会中断整份报告。
"""

import logging
from typing import Sequence

from src.business.config.analytics_config import RecommenderThresholds
from src.business.recommendation.rules import DEFAULT_RULES, Rule, RuleContext
from src.engine.models.attribution import AmpAttribution, CorrelationMatrix
from src.engine.models.metrics import InsufficientData, LayerMetrics
from src.engine.models.recommendation import OptimizationRecommendation

logger = logging.getLogger(__name__)


class Recommender:
    """规则驱动的优化建议生成器

    Usage:
        recommender = Recommender(config.recommender)
        recs = recommender.recommend(metrics, attributions, correlation)
    """

    def __init__(
        self,
        thresholds: RecommenderThresholds | None = None,
        rules: Sequence[Rule] = DEFAULT_RULES,
    ) -> None:
        self._thresholds = thresholds or RecommenderThresholds()
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def recommend(
        self,
        metrics: LayerMetrics | InsufficientData,
        attribution: Sequence[AmpAttribution],
        correlation: CorrelationMatrix | None,
    ) -> list[OptimizationRecommendation]:
        """生成排序后的优化建议

        Args:
            metrics: 层级指标（或 InsufficientData，此时仅评估不依赖指标的规则）
            attribution: amp 归因列表
            correlation: amp 相关性矩阵

        Returns:
            全部命中的建议（已排序）
        """
        ctx = RuleContext(
            metrics=metrics if isinstance(metrics, LayerMetrics) else None,
            attributions=tuple(attribution),
            correlation=correlation,
            thresholds=self._thresholds,
            insufficient=metrics if isinstance(metrics, InsufficientData) else None,
        )

        matched: list[tuple[int, OptimizationRecommendation]] = []
        for order, rule in enumerate(self._rules):
            if rule.requires_metrics and ctx.metrics is None:
                continue
            rec = self._evaluate(rule, ctx)
            if rec is not None:
                matched.append((order, rec))

        matched.sort(key=lambda item: (item[1].impact.rank, -item[1].severity, item[0]))
        recommendations = [rec for _, rec in matched]

        logger.debug(
            f"Recommender: {len(recommendations)}/{len(self._rules)} rules matched "
            f"({', '.join(r.rule_id for r in recommendations)})"
        )
        return recommendations

    @staticmethod
    def _evaluate(rule: Rule, ctx: RuleContext) -> OptimizationRecommendation | None:
        """评估单条规则，未命中或异常时返回 None"""
        try:
            if not rule.predicate(ctx):
                return None
            return OptimizationRecommendation(
                type=rule.type,
                category=rule.category,
                title=rule.title,
                description=rule.describe(ctx),
                impact=rule.impact,
                action_items=rule.actions(ctx),
                rule_id=rule.rule_id,
                severity=float(rule.severity(ctx)),
            )
        except Exception as e:
            logger.warning(f"Rule {rule.rule_id} failed, skipped: {e}")
            return None
