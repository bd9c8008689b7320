"""
Recommendation Rules - 推荐规则表

每条规则是一个 Rule：谓词判断是否命中，describe 生成描述，severity 给出
超出阈值的幅度（同一影响级别内的次级排序键）。新增建议只需在 DEFAULT_RULES
中追加一条 Rule，无需修改 Recommender。

规则分类：
- performance: 胜率、Sharpe、盈亏比
- risk: 最大回撤、当前回撤、波动率
- diversification: 平均相关性、分散化评分
- efficiency: 执行率、低贡献 amp、盈亏集中度
- configuration: 连败、交易样本不足
"""

from dataclasses import dataclass, field
from typing import Callable

from src.business.config.analytics_config import RecommenderThresholds
from src.engine.models.attribution import AmpAttribution, CorrelationMatrix
from src.engine.models.enums import (
    Impact,
    MetricFlag,
    RecommendationCategory,
    RecommendationType,
)
from src.engine.models.metrics import InsufficientData, LayerMetrics


@dataclass(frozen=True)
class RuleContext:
    """规则求值上下文

    metrics 为 None 表示指标引擎返回了 InsufficientData（见 insufficient）。
    """

    metrics: LayerMetrics | None
    attributions: tuple[AmpAttribution, ...]
    correlation: CorrelationMatrix | None
    thresholds: RecommenderThresholds = field(default_factory=RecommenderThresholds)
    insufficient: InsufficientData | None = None

    def low_execution_amps(self) -> list[AmpAttribution]:
        limit = self.thresholds.min_execution_rate
        return [
            a for a in self.attributions
            if a.execution_rate is not None and a.execution_rate < limit
        ]

    def underperforming_amps(self) -> list[AmpAttribution]:
        """贡献度低于平均份额一定比例的 amp

        贡献度是全层份额，N 个同样优秀的 amp 各得约 100 / N，
        因此阈值相对平均份额而非固定分数。
        """
        if not self.attributions:
            return []
        t = self.thresholds
        limit = t.underperforming_ratio * 100.0 / len(self.attributions)
        return [
            a for a in self.attributions
            if a.contribution_score < limit
            and a.trades_executed > t.underperforming_min_trades
        ]

    def top_amp(self) -> AmpAttribution | None:
        """盈亏占比最高的 amp（层总盈亏为正时才有意义）"""
        if len(self.attributions) < 2:
            return None
        if sum(a.total_pnl for a in self.attributions) <= 0:
            return None
        return max(self.attributions, key=lambda a: (a.percentage_of_total_pnl, a.amp_id))


def _no_severity(ctx: RuleContext) -> float:
    return 0.0


@dataclass(frozen=True)
class Rule:
    """声明式推荐规则

    Attributes:
        rule_id: 规则标识
        predicate: 是否命中
        describe: 命中时的描述文本
        action_items: 建议操作（有序）；可为可调用对象以生成动态条目
        severity: 超出阈值的幅度，越大越靠前
        requires_metrics: 为 True 时 metrics 缺失（数据不足）直接跳过
    """

    rule_id: str
    category: RecommendationCategory
    type: RecommendationType
    impact: Impact
    title: str
    predicate: Callable[[RuleContext], bool]
    describe: Callable[[RuleContext], str]
    action_items: tuple[str, ...] | Callable[[RuleContext], tuple[str, ...]] = ()
    severity: Callable[[RuleContext], float] = _no_severity
    requires_metrics: bool = True

    def actions(self, ctx: RuleContext) -> tuple[str, ...]:
        if callable(self.action_items):
            return tuple(self.action_items(ctx))
        return self.action_items


# ============================================================
# Risk
# ============================================================

EXCESSIVE_DRAWDOWN = Rule(
    rule_id="excessive_drawdown",
    category=RecommendationCategory.RISK,
    type=RecommendationType.WARNING,
    impact=Impact.HIGH,
    title="Excessive Drawdown Detected",
    predicate=lambda ctx: ctx.metrics.max_drawdown < ctx.thresholds.max_drawdown_limit,
    describe=lambda ctx: (
        f"Maximum drawdown of {ctx.metrics.max_drawdown:.1%} exceeds the "
        f"{ctx.thresholds.max_drawdown_limit:.0%} threshold"
        + ("" if ctx.metrics.max_drawdown_recovered else " and has not yet recovered")
        + "."
    ),
    action_items=(
        "Reduce overall capital allocation to this layer",
        "Implement daily loss limits to prevent compounding losses",
        "Consider adding protective amps (e.g., hedging strategies)",
        "Review correlation between amps - highly correlated amps amplify drawdowns",
    ),
    severity=lambda ctx: ctx.thresholds.max_drawdown_limit - ctx.metrics.max_drawdown,
)

CURRENT_DRAWDOWN = Rule(
    rule_id="current_drawdown",
    category=RecommendationCategory.RISK,
    type=RecommendationType.WARNING,
    impact=Impact.HIGH,
    title="Currently in Drawdown",
    predicate=lambda ctx: ctx.metrics.current_drawdown < ctx.thresholds.current_drawdown_limit,
    describe=lambda ctx: f"Layer is currently down {abs(ctx.metrics.current_drawdown):.1%} from its peak.",
    action_items=(
        "Consider reducing trading activity until performance stabilizes",
        "Review recent trades to identify what went wrong",
        "Temporarily disable amps that are contributing to losses",
    ),
    severity=lambda ctx: ctx.thresholds.current_drawdown_limit - ctx.metrics.current_drawdown,
)

HIGH_VOLATILITY = Rule(
    rule_id="high_volatility",
    category=RecommendationCategory.RISK,
    type=RecommendationType.WARNING,
    impact=Impact.MEDIUM,
    title="High Volatility Observed",
    predicate=lambda ctx: ctx.metrics.volatility > ctx.thresholds.high_volatility,
    describe=lambda ctx: (
        f"Annualized volatility of {ctx.metrics.volatility:.1%} indicates significant equity swings."
    ),
    action_items=(
        "Reduce position sizes across all amps",
        "Add lower-volatility amps to balance the portfolio",
        "Consider using volatility-adjusted position sizing",
    ),
    severity=lambda ctx: ctx.metrics.volatility - ctx.thresholds.high_volatility,
)

# ============================================================
# Performance
# ============================================================

LOW_WIN_RATE = Rule(
    rule_id="low_win_rate",
    category=RecommendationCategory.PERFORMANCE,
    type=RecommendationType.SUGGESTION,
    impact=Impact.MEDIUM,
    title="Low Win Rate Detected",
    predicate=lambda ctx: (
        ctx.metrics.win_rate < ctx.thresholds.low_win_rate
        and ctx.metrics.total_trades >= ctx.thresholds.min_trades_for_win_rate
    ),
    describe=lambda ctx: (
        f"Win rate of {ctx.metrics.win_rate:.1%} over {ctx.metrics.total_trades} trades is below "
        f"the {ctx.thresholds.low_win_rate:.0%} threshold. The strategy mix may need refinement."
    ),
    action_items=(
        "Review amp priorities - higher performing amps should have higher priority",
        "Consider adjusting confidence thresholds to filter out low-quality signals",
        "Analyze losing trades to identify common patterns",
    ),
    severity=lambda ctx: ctx.thresholds.low_win_rate - ctx.metrics.win_rate,
)

WEAK_SHARPE = Rule(
    rule_id="weak_sharpe",
    category=RecommendationCategory.PERFORMANCE,
    type=RecommendationType.SUGGESTION,
    impact=Impact.MEDIUM,
    title="Risk-Adjusted Returns Can Be Improved",
    predicate=lambda ctx: (
        ctx.metrics.sharpe_ratio < ctx.thresholds.weak_sharpe
        and ctx.metrics.total_trades > ctx.thresholds.min_trades_for_ratios
        and not ctx.metrics.has_flag(MetricFlag.ZERO_VOLATILITY)
    ),
    describe=lambda ctx: (
        f"Sharpe ratio of {ctx.metrics.sharpe_ratio:.2f} indicates room for improvement "
        "in risk-adjusted returns."
    ),
    action_items=(
        "Reduce position sizes to lower volatility",
        "Implement tighter stop losses to reduce large losses",
        "Consider adding mean-reversion amps to smooth returns",
    ),
    severity=lambda ctx: ctx.thresholds.weak_sharpe - ctx.metrics.sharpe_ratio,
)

LOW_PROFIT_FACTOR = Rule(
    rule_id="low_profit_factor",
    category=RecommendationCategory.PERFORMANCE,
    type=RecommendationType.SUGGESTION,
    impact=Impact.MEDIUM,
    title="Profit Factor Below Optimal",
    predicate=lambda ctx: (
        ctx.metrics.losing_trades > 0
        and ctx.metrics.profit_factor < ctx.thresholds.min_profit_factor
        and ctx.metrics.total_trades > ctx.thresholds.min_trades_for_ratios
    ),
    describe=lambda ctx: (
        f"Profit factor of {ctx.metrics.profit_factor:.2f} suggests wins are not "
        "sufficiently larger than losses."
    ),
    action_items=(
        "Let winning trades run longer by adjusting take-profit levels",
        "Cut losing trades faster with tighter stop losses",
        "Review and disable underperforming amps",
    ),
    severity=lambda ctx: ctx.thresholds.min_profit_factor - ctx.metrics.profit_factor,
)

STRONG_SHARPE = Rule(
    rule_id="strong_sharpe",
    category=RecommendationCategory.PERFORMANCE,
    type=RecommendationType.INSIGHT,
    impact=Impact.LOW,
    title="Strong Risk-Adjusted Performance",
    predicate=lambda ctx: ctx.metrics.sharpe_ratio > ctx.thresholds.strong_sharpe,
    describe=lambda ctx: (
        f"Sharpe ratio of {ctx.metrics.sharpe_ratio:.2f} is above {ctx.thresholds.strong_sharpe:.1f}. "
        "The current configuration is producing strong risk-adjusted returns."
    ),
    action_items=(
        "Keep the current amp configuration",
        "Consider gradually scaling capital allocation to this layer",
        "Monitor for regime changes that could erode the edge",
    ),
    severity=lambda ctx: ctx.metrics.sharpe_ratio - ctx.thresholds.strong_sharpe,
)

# ============================================================
# Diversification
# ============================================================

HIGH_CORRELATION = Rule(
    rule_id="high_correlation",
    category=RecommendationCategory.DIVERSIFICATION,
    type=RecommendationType.WARNING,
    impact=Impact.HIGH,
    title="High Correlation Between Amps",
    predicate=lambda ctx: (
        ctx.correlation is not None
        and ctx.correlation.average_correlation is not None
        and ctx.correlation.average_correlation > ctx.thresholds.high_correlation
    ),
    describe=lambda ctx: (
        f"Average correlation of {ctx.correlation.average_correlation:.1%} suggests the amps are "
        "too similar. Diversification benefits are limited."
    ),
    action_items=(
        "Add amps with different strategies (e.g., if you have momentum amps, add mean-reversion)",
        "Consider different timeframes - mix intraday with swing trading amps",
        "Look for amps that trade different asset classes or sectors",
    ),
    severity=lambda ctx: ctx.correlation.average_correlation - ctx.thresholds.high_correlation,
    requires_metrics=False,
)

LOW_DIVERSIFICATION = Rule(
    rule_id="low_diversification",
    category=RecommendationCategory.DIVERSIFICATION,
    type=RecommendationType.SUGGESTION,
    impact=Impact.MEDIUM,
    title="Diversification Can Be Improved",
    predicate=lambda ctx: (
        ctx.correlation is not None
        and ctx.correlation.diversification_score < ctx.thresholds.min_diversification
    ),
    describe=lambda ctx: (
        f"Diversification score of {ctx.correlation.diversification_score:.0f}/100 suggests "
        "opportunities to reduce correlation between amps."
    ),
    action_items=(
        "Review amp categories - ensure mix of momentum, mean-reversion, and breakout strategies",
        "Consider adding counter-cyclical amps that profit in different market conditions",
        "Adjust capital allocation to favor less correlated amps",
    ),
    severity=lambda ctx: (
        ctx.thresholds.min_diversification - ctx.correlation.diversification_score
    ) / 100.0,
    requires_metrics=False,
)

# ============================================================
# Efficiency
# ============================================================

LOW_EXECUTION_RATE = Rule(
    rule_id="low_execution_rate",
    category=RecommendationCategory.EFFICIENCY,
    type=RecommendationType.WARNING,
    impact=Impact.MEDIUM,
    title="Low Signal Execution Rate",
    predicate=lambda ctx: bool(ctx.low_execution_amps()),
    describe=lambda ctx: (
        f"{len(ctx.low_execution_amps())} amp(s) have execution rates below "
        f"{ctx.thresholds.min_execution_rate:.0%}, indicating many signals are being rejected: "
        + ", ".join(a.amp_name for a in ctx.low_execution_amps())
        + "."
    ),
    action_items=(
        "Review conflict resolution strategy - may be too aggressive",
        "Check if capital allocation is sufficient for all amps",
        "Verify position limits are not blocking trades",
    ),
    severity=lambda ctx: ctx.thresholds.min_execution_rate - min(
        a.execution_rate for a in ctx.low_execution_amps()
    ),
    requires_metrics=False,
)

UNDERPERFORMING_AMPS = Rule(
    rule_id="underperforming_amps",
    category=RecommendationCategory.EFFICIENCY,
    type=RecommendationType.SUGGESTION,
    impact=Impact.MEDIUM,
    title="Underperforming Amps Detected",
    predicate=lambda ctx: bool(ctx.underperforming_amps()),
    describe=lambda ctx: (
        f"{len(ctx.underperforming_amps())} amp(s) contribute less than "
        f"{ctx.thresholds.underperforming_ratio:.0%} of an equal share of the layer, "
        "dragging down overall performance."
    ),
    action_items=lambda ctx: (
        "Consider disabling: " + ", ".join(a.amp_name for a in ctx.underperforming_amps()),
        "Review settings for underperforming amps",
        "Analyze if these amps need different market conditions to perform",
    ),
    severity=lambda ctx: float(len(ctx.underperforming_amps())),
    requires_metrics=False,
)

PNL_CONCENTRATION = Rule(
    rule_id="pnl_concentration",
    category=RecommendationCategory.EFFICIENCY,
    type=RecommendationType.INSIGHT,
    impact=Impact.MEDIUM,
    title="Performance Concentrated in One Amp",
    predicate=lambda ctx: (
        ctx.top_amp() is not None
        and ctx.top_amp().percentage_of_total_pnl > ctx.thresholds.concentration_pct
    ),
    describe=lambda ctx: (
        f"{ctx.top_amp().amp_name} contributes {ctx.top_amp().percentage_of_total_pnl:.1f}% of "
        "total P&L. Over-reliance on a single amp increases risk."
    ),
    action_items=(
        "Increase capital allocation to other performing amps",
        "Add more amps to distribute risk",
        "Monitor the top amp closely for performance degradation",
    ),
    severity=lambda ctx: (
        ctx.top_amp().percentage_of_total_pnl - ctx.thresholds.concentration_pct
    ) / 100.0,
    requires_metrics=False,
)

# ============================================================
# Configuration
# ============================================================

LOSING_STREAK = Rule(
    rule_id="losing_streak",
    category=RecommendationCategory.CONFIGURATION,
    type=RecommendationType.WARNING,
    impact=Impact.MEDIUM,
    title="Extended Losing Streak",
    predicate=lambda ctx: ctx.metrics.current_streak <= -ctx.thresholds.losing_streak,
    describe=lambda ctx: (
        f"Currently on a {abs(ctx.metrics.current_streak)}-trade losing streak. "
        "Consider pausing to reassess."
    ),
    action_items=(
        "Temporarily deactivate layer to prevent further losses",
        "Review recent market conditions - may not suit current strategy",
        "Consider reducing position sizes when reactivating",
    ),
    severity=lambda ctx: float(-ctx.metrics.current_streak),
)

LIMITED_HISTORY = Rule(
    rule_id="limited_history",
    category=RecommendationCategory.CONFIGURATION,
    type=RecommendationType.INSIGHT,
    impact=Impact.LOW,
    title="Limited Trading History",
    predicate=lambda ctx: ctx.metrics.total_trades < ctx.thresholds.min_history_trades,
    describe=lambda ctx: (
        f"With only {ctx.metrics.total_trades} trades, performance metrics may not be "
        "statistically significant yet."
    ),
    action_items=(
        "Continue running layer to gather more performance data",
        "Avoid making major changes based on limited data",
        "Monitor performance closely as sample size grows",
    ),
)

INSUFFICIENT_DATA = Rule(
    rule_id="insufficient_data",
    category=RecommendationCategory.CONFIGURATION,
    type=RecommendationType.INSIGHT,
    impact=Impact.LOW,
    title="Not Enough Data for Performance Metrics",
    predicate=lambda ctx: ctx.insufficient is not None,
    describe=lambda ctx: (
        "Layer metrics could not be computed: " + "; ".join(ctx.insufficient.reasons) + "."
    ),
    action_items=(
        "Continue running layer to gather more performance data",
        "Check that the equity curve is being recorded daily",
    ),
    requires_metrics=False,
)


# 表内顺序即同影响、同严重度时的排序
DEFAULT_RULES: tuple[Rule, ...] = (
    EXCESSIVE_DRAWDOWN,
    CURRENT_DRAWDOWN,
    HIGH_CORRELATION,
    LOW_WIN_RATE,
    WEAK_SHARPE,
    LOW_PROFIT_FACTOR,
    HIGH_VOLATILITY,
    LOW_DIVERSIFICATION,
    LOW_EXECUTION_RATE,
    UNDERPERFORMING_AMPS,
    PNL_CONCENTRATION,
    LOSING_STREAK,
    STRONG_SHARPE,
    LIMITED_HISTORY,
    INSUFFICIENT_DATA,
)
