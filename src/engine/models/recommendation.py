"""Optimization recommendation model."""

from dataclasses import dataclass
from typing import Any

from src.engine.models.enums import Impact, RecommendationCategory, RecommendationType


@dataclass(frozen=True)
class OptimizationRecommendation:
    """A ranked, human-readable recommendation for a layer.

    Attributes:
        rule_id: Identifier of the rule that produced it.
        severity: Rule-specific magnitude past threshold, used as the
            secondary sort key within an impact level.
        action_items: Ordered list of suggested actions.
    """

    type: RecommendationType
    category: RecommendationCategory
    title: str
    description: str
    impact: Impact
    action_items: tuple[str, ...]
    rule_id: str = ""
    severity: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "category": self.category.value,
            "title": self.title,
            "description": self.description,
            "impact": self.impact.value,
            "action_items": list(self.action_items),
            "rule_id": self.rule_id,
            "severity": self.severity,
        }
