"""
Analytics Configuration - 分析引擎配置管理

加载和管理层级绩效分析的配置参数。所有阈值均为可配置策略，
YAML 缺省时回退到 dataclass 默认值。

## 推荐规则阈值参考

| 规则                   | 条件                                    | 类型       | 影响   |
|------------------------|-----------------------------------------|------------|--------|
| excessive_drawdown     | max_drawdown < -0.20                    | warning    | high   |
| low_win_rate           | win_rate < 0.40 且 total_trades ≥ 20    | suggestion | medium |
| low_diversification    | diversification_score < 50              | suggestion | medium |
| strong_sharpe          | sharpe_ratio > 2.0                      | insight    | low    |
| low_execution_rate     | 任一 amp execution_rate < 0.5           | warning    | medium |
| weak_sharpe            | sharpe_ratio < 1.0 且 total_trades > 10 | suggestion | medium |
| low_profit_factor      | profit_factor < 1.5 且 total_trades > 10| suggestion | medium |
| high_volatility        | volatility > 0.40                       | warning    | medium |
| current_drawdown       | current_drawdown < -0.10                | warning    | high   |
| high_correlation       | average_correlation > 0.7               | warning    | high   |
| underperforming_amps   | contribution < 0.5 × (100 / amp 数) 且 trades > 5 | suggestion | medium |
| pnl_concentration      | 单一 amp 占总盈亏 > 70%                 | warning    | medium |
| losing_streak          | current_streak ≤ -4                     | warning    | medium |
| limited_history        | total_trades < 20                       | insight    | low    |

## 贡献度评分

contribution = pnl_weight * pnl_share + risk_weight * risk_share，裁剪到 [0, 100]。
share 为该 amp 正值 / 全层正值之和（亏损 amp 计 0）。
"""

import logging
import math
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from src.business.config.config_utils import ConfigError, as_float, as_int, merge_overrides

logger = logging.getLogger(__name__)


@dataclass
class MetricsSettings:
    """MetricsEngine 参数

    Attributes:
        periods_per_year: 年化因子（日频 252）
        risk_free_rate: 年化无风险利率（小数）
        min_trades: 计算所需最少已平仓交易数
        min_daily_points: 计算所需最少日收盘点数
    """

    periods_per_year: int = 252
    risk_free_rate: float = 0.0
    min_trades: int = 2
    min_daily_points: int = 2

    @property
    def rf_daily(self) -> float:
        """年化无风险利率折算为每期利率: (1 + rf)^(1/N) - 1"""
        return (1 + self.risk_free_rate) ** (1 / self.periods_per_year) - 1

    def validate(self) -> None:
        if self.periods_per_year <= 0:
            raise ConfigError("metrics.periods_per_year must be positive")
        if self.risk_free_rate <= -1:
            raise ConfigError("metrics.risk_free_rate must be greater than -1")
        if self.min_trades < 2:
            raise ConfigError("metrics.min_trades must be at least 2")
        if self.min_daily_points < 2:
            raise ConfigError("metrics.min_daily_points must be at least 2")


@dataclass
class CorrelationSettings:
    """相关性分析参数

    Attributes:
        min_overlap: 一对 amp 共同日收益的最少观测数
        high_threshold: |r| ≥ 该值为强相关
        medium_threshold: |r| ≥ 该值为中等相关
    """

    min_overlap: int = 10
    high_threshold: float = 0.7
    medium_threshold: float = 0.4

    def validate(self) -> None:
        if self.min_overlap < 2:
            raise ConfigError("correlation.min_overlap must be at least 2")
        if not 0 <= self.medium_threshold <= self.high_threshold <= 1:
            raise ConfigError(
                "correlation thresholds must satisfy 0 <= medium <= high <= 1"
            )


@dataclass
class ContributionPolicy:
    """贡献度评分策略（线性加权）

    Attributes:
        pnl_weight: 盈亏占比的权重
        risk_weight: 风险调整收益占比的权重
    """

    pnl_weight: float = 50.0
    risk_weight: float = 50.0

    def score(self, pnl_share: float, risk_share: float) -> float:
        """加权并裁剪到 [0, 100]

        Args:
            pnl_share: 盈亏占比 (0-1)
            risk_share: 风险调整收益占比 (0-1)
        """
        raw = self.pnl_weight * pnl_share + self.risk_weight * risk_share
        return min(max(raw, 0.0), 100.0)

    def validate(self) -> None:
        if self.pnl_weight < 0 or self.risk_weight < 0:
            raise ConfigError("contribution weights must be non-negative")
        if self.pnl_weight == 0 and self.risk_weight == 0:
            raise ConfigError("contribution weights must not both be zero")


@dataclass
class RecommenderThresholds:
    """推荐规则阈值（回撤类为带符号小数）"""

    # 风险
    max_drawdown_limit: float = -0.20
    current_drawdown_limit: float = -0.10
    high_volatility: float = 0.40
    losing_streak: int = 4

    # 绩效
    low_win_rate: float = 0.40
    min_trades_for_win_rate: int = 20
    weak_sharpe: float = 1.0
    strong_sharpe: float = 2.0
    min_profit_factor: float = 1.5
    min_trades_for_ratios: int = 10

    # 分散化
    min_diversification: float = 50.0
    high_correlation: float = 0.7
    concentration_pct: float = 70.0

    # 效率
    min_execution_rate: float = 0.5
    underperforming_ratio: float = 0.5  # 相对平均份额 100 / amp 数
    underperforming_min_trades: int = 5

    # 配置
    min_history_trades: int = 20

    def validate(self) -> None:
        if self.max_drawdown_limit > 0 or self.current_drawdown_limit > 0:
            raise ConfigError("recommender drawdown limits are signed and must be <= 0")
        if not 0 <= self.low_win_rate <= 1:
            raise ConfigError("recommender.low_win_rate must be within [0, 1]")
        if not 0 <= self.min_diversification <= 100:
            raise ConfigError("recommender.min_diversification must be within [0, 100]")
        if self.losing_streak < 1:
            raise ConfigError("recommender.losing_streak must be at least 1")
        if not 0 <= self.underperforming_ratio <= 1:
            raise ConfigError("recommender.underperforming_ratio must be within [0, 1]")


def _parse_section(section: str, cls: type, data: Any) -> Any:
    """按 dataclass 默认值的类型解析一个配置段"""
    default = cls()
    if data is None:
        return default
    if not isinstance(data, dict):
        raise ConfigError(f"{section}: expected mapping, got {type(data).__name__}")

    known = {f.name for f in fields(cls)}
    for key in data:
        if key not in known:
            logger.warning(f"Unknown config key ignored: {section}.{key}")

    values: dict[str, Any] = {}
    for f in fields(cls):
        if f.name not in data:
            continue
        raw = data[f.name]
        if isinstance(getattr(default, f.name), int):
            values[f.name] = as_int(section, f.name, raw)
        else:
            values[f.name] = as_float(section, f.name, raw)
        if isinstance(values[f.name], float) and not math.isfinite(values[f.name]):
            raise ConfigError(f"{section}.{f.name}: must be finite")
    return replace(default, **values)


@dataclass
class AnalyticsConfig:
    """分析引擎配置"""

    metrics: MetricsSettings = field(default_factory=MetricsSettings)
    correlation: CorrelationSettings = field(default_factory=CorrelationSettings)
    contribution: ContributionPolicy = field(default_factory=ContributionPolicy)
    recommender: RecommenderThresholds = field(default_factory=RecommenderThresholds)

    def validate(self) -> "AnalyticsConfig":
        """校验所有配置段，非法时抛出 ConfigError"""
        self.metrics.validate()
        self.correlation.validate()
        self.contribution.validate()
        self.recommender.validate()
        return self

    @classmethod
    def from_yaml(cls, path: str | Path) -> "AnalyticsConfig":
        """从 YAML 文件加载配置"""
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        logger.debug(f"Loaded analytics config from {path}")
        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalyticsConfig":
        """从字典创建配置"""
        if not isinstance(data, dict):
            raise ConfigError(f"config root: expected mapping, got {type(data).__name__}")

        config = cls(
            metrics=_parse_section("metrics", MetricsSettings, data.get("metrics")),
            correlation=_parse_section("correlation", CorrelationSettings, data.get("correlation")),
            contribution=_parse_section("contribution", ContributionPolicy, data.get("contribution")),
            recommender=_parse_section("recommender", RecommenderThresholds, data.get("recommender")),
        )
        return config.validate()

    def to_dict(self) -> dict[str, Any]:
        return {
            "metrics": asdict(self.metrics),
            "correlation": asdict(self.correlation),
            "contribution": asdict(self.contribution),
            "recommender": asdict(self.recommender),
        }

    def with_overrides(self, overrides: dict[str, Any]) -> "AnalyticsConfig":
        """返回合并覆盖后的新配置（不修改当前实例）"""
        return AnalyticsConfig.from_dict(merge_overrides(self.to_dict(), overrides))

    @classmethod
    def load(cls, path: str | Path | None = None) -> "AnalyticsConfig":
        """加载默认配置

        Args:
            path: 配置文件路径，默认 config/analytics/analytics.yaml
        """
        if path is None:
            config_dir = (
                Path(__file__).parent.parent.parent.parent / "config" / "analytics"
            )
            path = config_dir / "analytics.yaml"
        config_file = Path(path)
        if config_file.exists():
            return cls.from_yaml(config_file)
        logger.debug(f"Config file not found, using defaults: {config_file}")
        return cls()
