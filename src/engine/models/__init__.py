"""Engine layer data models.

Result models produced by the analytics engine. All of them are derived
views: immutable, recomputed from ledger data on each request.

Models:
    LayerMetrics: Layer risk/return snapshot
    InsufficientData: Explicit "not enough data" result
    DrawdownPeriod: Peak-to-recovery drawdown episode
    AmpAttribution: Per-amp contribution
    CorrelationPair: Correlation of an amp pair
    CorrelationMatrix: Inter-amp correlation and diversification score
    OptimizationRecommendation: Ranked recommendation

Enums:
    MetricFlag: Degenerate-input markers for LayerMetrics
    CorrelationFlag: Markers for CorrelationMatrix
    CorrelationStrength: high / medium / low
    RecommendationType: warning / suggestion / insight
    Impact: high / medium / low
    RecommendationCategory: performance / risk / diversification / efficiency / configuration
"""

from src.engine.models.attribution import AmpAttribution, CorrelationMatrix, CorrelationPair
from src.engine.models.enums import (
    CorrelationFlag,
    CorrelationStrength,
    Impact,
    MetricFlag,
    RecommendationCategory,
    RecommendationType,
)
from src.engine.models.metrics import DrawdownPeriod, InsufficientData, LayerMetrics
from src.engine.models.recommendation import OptimizationRecommendation

__all__ = [
    # Metrics
    "LayerMetrics",
    "InsufficientData",
    "DrawdownPeriod",
    # Attribution
    "AmpAttribution",
    "CorrelationPair",
    "CorrelationMatrix",
    # Recommendations
    "OptimizationRecommendation",
    # Enums
    "MetricFlag",
    "CorrelationFlag",
    "CorrelationStrength",
    "RecommendationType",
    "Impact",
    "RecommendationCategory",
]
