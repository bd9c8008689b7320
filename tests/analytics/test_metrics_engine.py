"""Tests for MetricsEngine."""

import math
import random
from datetime import date, datetime

import numpy as np
import pytest

from src.analytics.metrics_engine import MetricsEngine
from src.business.config.analytics_config import MetricsSettings
from src.data.models.ledger import EquityPoint
from src.engine.models.enums import MetricFlag
from src.engine.models.metrics import InsufficientData, LayerMetrics


@pytest.fixture
def engine():
    return MetricsEngine()


class TestTradeStatistics:
    """Win/loss statistics through the engine."""

    def test_scenario_ten_wins_five_losses(self, engine, scenario_a_trades, rising_equity):
        """Test 10 x $100 wins and 5 x $50 losses, no fees."""
        metrics = engine.compute(scenario_a_trades, rising_equity)

        assert isinstance(metrics, LayerMetrics)
        assert metrics.total_trades == 15
        assert metrics.winning_trades == 10
        assert metrics.losing_trades == 5
        assert metrics.win_rate == pytest.approx(0.667, abs=1e-3)
        assert metrics.avg_win == 100
        assert metrics.avg_loss == -50
        assert metrics.profit_factor == 4.0
        assert metrics.total_pnl == 750
        assert metrics.expectancy == pytest.approx(50.0)
        assert metrics.avg_holding_period_hours == pytest.approx(4.0)

    def test_fees_are_subtracted(self, engine, make_trade, rising_equity):
        """Test that a trade whose fees cancel its P&L is neither win nor loss."""
        trades = [make_trade(100, fees=100, day=0), make_trade(50, day=1), make_trade(-20, day=2)]
        metrics = engine.compute(trades, rising_equity)

        assert metrics.total_trades == 3
        assert metrics.winning_trades == 1
        assert metrics.losing_trades == 1
        assert metrics.total_pnl == pytest.approx(30.0)

    def test_no_losses_flagged(self, engine, make_trade, rising_equity):
        """Test the +inf profit factor sentinel."""
        metrics = engine.compute([make_trade(100, day=0), make_trade(50, day=1)], rising_equity)

        assert math.isinf(metrics.profit_factor)
        assert metrics.has_flag(MetricFlag.NO_LOSSES)
        assert metrics.to_dict()["profit_factor"] == "Infinity"

    def test_trades_sorted_by_exit(self, engine, make_trade, rising_equity):
        """Test that streaks follow exit time, not input order."""
        trades = [make_trade(-10, day=2), make_trade(5, day=1), make_trade(5, day=0)]
        metrics = engine.compute(trades, rising_equity)

        assert metrics.current_streak == -1
        assert metrics.longest_win_streak == 2

    def test_open_trades_skipped(self, engine, scenario_a_trades, make_trade, rising_equity):
        """Test that trades without exit are counted as skipped records."""
        trades = scenario_a_trades + [make_trade(999, closed=False), make_trade(-999, closed=False)]
        metrics = engine.compute(trades, rising_equity, skipped_records=1)

        assert metrics.total_trades == 15
        assert metrics.skipped_records == 3
        assert metrics.has_flag(MetricFlag.SKIPPED_RECORDS)


class TestEquityMetrics:
    """Return, risk and drawdown metrics through the engine."""

    def test_drawdown_with_recovery(self, engine, make_trade, make_equity):
        """Test flat 10 days at 100k, drop to 80k, back at 100k 5 days after the peak."""
        equity = make_equity([100_000.0] * 10 + [80_000.0, 85_000.0, 90_000.0, 95_000.0, 100_000.0])
        metrics = engine.compute([make_trade(10), make_trade(-5, day=1)], equity)

        assert metrics.max_drawdown == pytest.approx(-0.20)
        assert metrics.max_drawdown_duration == 5
        assert metrics.max_drawdown_recovered
        assert not metrics.has_flag(MetricFlag.DRAWDOWN_UNRECOVERED)
        assert metrics.current_drawdown == 0.0

    def test_unrecovered_drawdown_flagged(self, engine, make_trade, make_equity):
        """Test that an open drawdown is a flagged lower bound."""
        equity = make_equity([100.0, 110.0, 90.0, 95.0])
        metrics = engine.compute([make_trade(10), make_trade(-5, day=1)], equity)

        assert metrics.max_drawdown == pytest.approx(-20 / 110)
        assert metrics.current_drawdown == pytest.approx(-15 / 110)
        assert metrics.max_drawdown_duration == 2
        assert not metrics.max_drawdown_recovered
        assert metrics.has_flag(MetricFlag.DRAWDOWN_UNRECOVERED)

    def test_sharpe_matches_daily_returns(self, engine, scenario_a_trades, rising_equity):
        """Test Sharpe against returns computed directly from the daily curve."""
        values = np.array([p.equity_value for p in rising_equity])
        returns = np.diff(values) / values[:-1]
        expected = returns.mean() / returns.std(ddof=1) * math.sqrt(252)

        metrics = engine.compute(scenario_a_trades, rising_equity)

        assert metrics.sharpe_ratio == pytest.approx(expected)
        assert metrics.volatility == pytest.approx(returns.std(ddof=1) * math.sqrt(252))
        assert metrics.trading_days == 20
        assert metrics.total_return == pytest.approx(values[-1] / values[0] - 1)

    def test_tail_risk_signed(self, engine, scenario_a_trades, rising_equity):
        """Test VaR/CVaR sign convention."""
        metrics = engine.compute(scenario_a_trades, rising_equity)

        assert metrics.value_at_risk_95 < 0
        assert metrics.value_at_risk_99 <= metrics.value_at_risk_95
        assert metrics.conditional_var_95 <= metrics.value_at_risk_95
        assert metrics.conditional_var_99 <= metrics.value_at_risk_99

    def test_flat_equity_fallbacks(self, engine, make_trade, make_equity):
        """Test documented fallbacks for zero volatility and no drawdown."""
        metrics = engine.compute(
            [make_trade(10), make_trade(-5, day=1)], make_equity([100_000.0] * 5)
        )

        assert metrics.sharpe_ratio == 0.0
        assert metrics.sortino_ratio == 0.0
        assert metrics.calmar_ratio == 0.0
        assert metrics.max_drawdown == 0.0
        assert metrics.has_flag(MetricFlag.ZERO_VOLATILITY)
        assert metrics.has_flag(MetricFlag.NO_DOWNSIDE)
        assert metrics.has_flag(MetricFlag.ZERO_DRAWDOWN)

    def test_risk_free_rate_lowers_sharpe(self, scenario_a_trades, rising_equity):
        """Test that a configured risk-free rate is applied per day."""
        base = MetricsEngine().compute(scenario_a_trades, rising_equity)
        with_rf = MetricsEngine(MetricsSettings(risk_free_rate=0.05)).compute(
            scenario_a_trades, rising_equity
        )
        assert with_rf.sharpe_ratio < base.sharpe_ratio

    def test_monthly_stats(self, engine, make_trade, make_equity):
        """Test monthly win rate across a month boundary."""
        equity = make_equity([100.0, 110.0, 105.0], start=date(2024, 1, 30))
        metrics = engine.compute([make_trade(10), make_trade(-5, day=1)], equity)

        assert metrics.total_months == 2
        assert metrics.profitable_months == 1
        assert metrics.monthly_win_rate == 0.5


class TestInsufficientData:
    """Failure semantics."""

    def test_single_trade(self, engine, make_trade, rising_equity):
        """Test that exactly one trade yields InsufficientData, not zeros."""
        result = engine.compute([make_trade(100)], rising_equity)

        assert isinstance(result, InsufficientData)
        assert result.total_trades == 1
        assert len(result.reasons) == 1
        assert "closed trades" in result.reasons[0]

    def test_single_daily_point(self, engine, scenario_a_trades, make_equity):
        """Test that intraday points on one day count as one daily close."""
        equity = [
            EquityPoint(datetime(2024, 1, 2, h), 100_000.0 + h) for h in (10, 12, 16)
        ]
        result = engine.compute(scenario_a_trades, equity)

        assert isinstance(result, InsufficientData)
        assert result.daily_points == 1

    def test_lists_every_reason(self, engine):
        """Test that all insufficiency reasons are reported."""
        result = engine.compute([], [])
        assert isinstance(result, InsufficientData)
        assert len(result.reasons) == 2

    def test_open_trades_do_not_count(self, engine, make_trade, rising_equity):
        """Test that unclosed trades do not satisfy the minimum."""
        result = engine.compute([make_trade(5), make_trade(5, closed=False)], rising_equity)
        assert isinstance(result, InsufficientData)
        assert result.skipped_records == 1


class TestProperties:
    """Invariants that hold for any valid input."""

    def test_invariants(self, engine, make_trade, make_equity):
        """Test sign, range and partition invariants on random data."""
        rng = random.Random(42)
        for _ in range(20):
            trades = [
                make_trade(round(rng.uniform(-200, 200), 2), day=d)
                for d in range(rng.randint(2, 40))
            ]
            values = [100_000.0]
            for _ in range(rng.randint(2, 60)):
                values.append(values[-1] * (1 + rng.gauss(0, 0.02)))
            metrics = engine.compute(trades, make_equity(values))

            assert metrics.max_drawdown <= 0
            assert metrics.current_drawdown <= 0
            assert metrics.max_drawdown <= metrics.current_drawdown
            assert 0 <= metrics.win_rate <= 1
            assert metrics.winning_trades + metrics.losing_trades <= metrics.total_trades
            assert metrics.gross_profit + metrics.gross_loss == pytest.approx(metrics.total_pnl)
            for value in (metrics.sharpe_ratio, metrics.sortino_ratio, metrics.calmar_ratio,
                          metrics.volatility, metrics.value_at_risk_95):
                assert math.isfinite(value)

    def test_non_decreasing_curve_has_no_drawdown(self, engine, scenario_a_trades, make_equity):
        """Test that drawdowns are 0 for a non-decreasing curve."""
        metrics = engine.compute(scenario_a_trades, make_equity([100, 100, 101, 103, 103, 110]))
        assert metrics.max_drawdown == 0.0
        assert metrics.current_drawdown == 0.0
        assert metrics.drawdown_periods == ()

    def test_idempotent(self, engine, scenario_a_trades, rising_equity):
        """Test that identical inputs give identical results."""
        first = engine.compute(scenario_a_trades, rising_equity)
        second = engine.compute(scenario_a_trades, rising_equity)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_input_order_irrelevant(self, engine, scenario_a_trades, rising_equity):
        """Test that shuffled inputs give the same result."""
        rng = random.Random(3)
        trades = scenario_a_trades[:]
        equity = rising_equity[:]
        rng.shuffle(trades)
        rng.shuffle(equity)
        assert engine.compute(trades, equity) == engine.compute(scenario_a_trades, rising_equity)
