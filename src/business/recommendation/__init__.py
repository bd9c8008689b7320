"""
Recommendation - 优化建议

- Recommender: 规则驱动的建议生成器
- Rule / RuleContext: 声明式规则与求值上下文
- DEFAULT_RULES: 默认规则表
"""

from src.business.recommendation.recommender import Recommender
from src.business.recommendation.rules import DEFAULT_RULES, Rule, RuleContext

__all__ = ["Recommender", "Rule", "RuleContext", "DEFAULT_RULES"]
