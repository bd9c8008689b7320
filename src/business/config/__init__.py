"""
Configuration Management - 配置管理

加载和管理分析引擎配置：
- AnalyticsConfig: 分析引擎配置（指标、相关性、贡献度、推荐阈值）
- ConfigError: 配置非法
"""

from src.business.config.analytics_config import (
    AnalyticsConfig,
    ContributionPolicy,
    CorrelationSettings,
    MetricsSettings,
    RecommenderThresholds,
)
from src.business.config.config_utils import ConfigError, merge_overrides

__all__ = [
    "AnalyticsConfig",
    "MetricsSettings",
    "CorrelationSettings",
    "ContributionPolicy",
    "RecommenderThresholds",
    "ConfigError",
    "merge_overrides",
]
