"""Calculation Engine Layer.

This module provides the quantitative building blocks of layer analytics.
It processes ledger records from the data layer and outputs metrics for the
analytics and business layers.

Architecture:
- models/: Result models (LayerMetrics, AmpAttribution, CorrelationMatrix,
  OptimizationRecommendation) and enums

- portfolio/: Layer-level calculations
    - returns: Daily resampling, returns, Sharpe/Sortino/Calmar, VaR/CVaR
    - drawdown: Signed drawdown series and drawdown episodes
    - trade_stats: Win/loss partition, profit factor, streaks
    - correlation: Pearson correlation and diversification score

All functions are pure: no I/O, no clock, no shared state.
"""
