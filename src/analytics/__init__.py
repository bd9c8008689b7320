"""
Analytics Layer - 层级绩效分析

组合引擎层的纯计算函数，输出面向展示层的分析快照：
- MetricsEngine: 层级风险收益指标
- AttributionAnalyzer: amp 归因与相关性
- ReportAssembler: 并行编排，产出 LayerReport
- SnapshotCache: 按 (layer_id, latest_trade_id) 的外部快照缓存
"""

from src.analytics.attribution_analyzer import AttributionAnalyzer
from src.analytics.cache import CacheInfo, SnapshotCache
from src.analytics.metrics_engine import MetricsEngine
from src.analytics.report import LayerReport, ReportAssembler

__all__ = [
    "MetricsEngine",
    "AttributionAnalyzer",
    "ReportAssembler",
    "LayerReport",
    "SnapshotCache",
    "CacheInfo",
]
