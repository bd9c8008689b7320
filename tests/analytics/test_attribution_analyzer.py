"""Tests for AttributionAnalyzer."""

import numpy as np
import pandas as pd
import pytest

from src.analytics.attribution_analyzer import AttributionAnalyzer
from src.business.config.analytics_config import ContributionPolicy, CorrelationSettings
from src.engine.models.enums import CorrelationFlag, CorrelationStrength

RETURNS = [0.01, -0.02, 0.015, 0.005, -0.01, 0.02, -0.005, 0.0, 0.012, -0.007, 0.003, 0.008]


def _series(values, start="2024-01-01"):
    return pd.Series(values, index=pd.date_range(start, periods=len(values)), dtype=float)


@pytest.fixture
def analyzer():
    return AttributionAnalyzer()


@pytest.fixture
def layer_trades(make_trade):
    return [
        make_trade(100, amp_id="amp-a", day=0),
        make_trade(100, amp_id="amp-a", day=1),
        make_trade(-50, amp_id="amp-a", day=2),
        make_trade(50, amp_id="amp-b", day=3),
        make_trade(-100, amp_id="amp-b", day=4),
        make_trade(10, amp_id="amp-x", day=5),
    ]


class TestAttribute:
    """Tests for per-amp attribution."""

    def test_grouping_and_order(self, analyzer, layer_trades, roster):
        """Test grouping, unknown amps and sort order."""
        result = analyzer.attribute(layer_trades, roster)
        assert [a.amp_id for a in result] == ["amp-a", "amp-x", "amp-b", "amp-c"]

        by_id = {a.amp_id: a for a in result}
        assert by_id["amp-a"].total_pnl == 150
        assert by_id["amp-a"].trades_executed == 3
        assert by_id["amp-a"].win_rate == pytest.approx(2 / 3)
        assert by_id["amp-a"].best_trade == 100
        assert by_id["amp-a"].worst_trade == -50
        assert by_id["amp-b"].total_pnl == -50
        assert by_id["amp-x"].amp_name == "amp-x"
        assert by_id["amp-c"].trades_executed == 0
        assert by_id["amp-c"].win_rate == 0.0

    def test_execution_rate(self, analyzer, layer_trades, roster):
        """Test executed / signals, None when unknown or zero."""
        by_id = {a.amp_id: a for a in analyzer.attribute(layer_trades, roster)}
        assert by_id["amp-a"].execution_rate == pytest.approx(3 / 20)
        assert by_id["amp-b"].execution_rate is None
        assert by_id["amp-c"].execution_rate is None

    def test_contribution_score(self, analyzer, layer_trades, roster):
        """Test the default 50/50 blend of positive P&L and Sharpe shares."""
        by_id = {a.amp_id: a for a in analyzer.attribute(layer_trades, roster)}
        # P&L share 150/160, Sharpe share 1.0 (only amp-a has positive Sharpe)
        assert by_id["amp-a"].contribution_score == pytest.approx(50 * 150 / 160 + 50)
        assert by_id["amp-x"].contribution_score == pytest.approx(50 * 10 / 160)
        assert by_id["amp-b"].contribution_score == 0.0
        assert all(0 <= a.contribution_score <= 100 for a in by_id.values())

    def test_custom_policy(self, layer_trades, roster):
        """Test that the weighting is a configurable policy."""
        analyzer = AttributionAnalyzer(policy=ContributionPolicy(pnl_weight=100, risk_weight=0))
        by_id = {a.amp_id: a for a in analyzer.attribute(layer_trades, roster)}
        assert by_id["amp-a"].contribution_score == pytest.approx(93.75)

    def test_percentages(self, analyzer, layer_trades, roster):
        """Test shares of layer P&L and trade count."""
        by_id = {a.amp_id: a for a in analyzer.attribute(layer_trades, roster)}
        assert by_id["amp-a"].percentage_of_trades == pytest.approx(50.0)
        assert by_id["amp-a"].percentage_of_total_pnl == pytest.approx(150 / 110 * 100)

    def test_fees_use_net_pnl(self, analyzer, make_trade, roster):
        """Test that fees are subtracted."""
        result = analyzer.attribute([make_trade(100, amp_id="amp-a", fees=5)], roster)
        assert next(a for a in result if a.amp_id == "amp-a").total_pnl == 95

    def test_open_trades_ignored(self, analyzer, make_trade, roster):
        """Test that unclosed trades are not attributed."""
        result = analyzer.attribute([make_trade(100, amp_id="amp-a", closed=False)], roster)
        assert next(a for a in result if a.amp_id == "amp-a").trades_executed == 0


class TestCorrelate:
    """Tests for the correlation matrix."""

    def test_identical_series(self, analyzer):
        """Test that identical returns give correlation 1 and score 0."""
        matrix = analyzer.correlate({"a": _series(RETURNS), "b": _series(RETURNS)})

        assert matrix.get("a", "b") == pytest.approx(1.0)
        assert matrix.average_correlation == pytest.approx(1.0)
        assert matrix.diversification_score == pytest.approx(0.0)
        assert matrix.pairs[0].strength == CorrelationStrength.HIGH

    def test_opposite_series(self, analyzer):
        """Test that inverse returns give correlation -1 and a clipped score of 100."""
        inverse = [-r for r in RETURNS]
        matrix = analyzer.correlate({"a": _series(RETURNS), "b": _series(inverse)})

        assert matrix.get("a", "b") == pytest.approx(-1.0)
        assert matrix.diversification_score == 100.0

    def test_single_amp(self, analyzer):
        """Test the 1x1 identity with an explicit flag."""
        matrix = analyzer.correlate({"a": _series(RETURNS)})

        assert matrix.matrix == ((1.0,),)
        assert matrix.average_correlation is None
        assert matrix.diversification_score == 100.0
        assert matrix.has_flag(CorrelationFlag.INSUFFICIENT_AMPS)

    def test_no_amps(self, analyzer):
        """Test an empty layer."""
        matrix = analyzer.correlate({})
        assert matrix.matrix == ()
        assert matrix.has_flag(CorrelationFlag.INSUFFICIENT_AMPS)

    def test_short_overlap_excluded(self, analyzer):
        """Test that pairs below the minimum overlap hold 0 and are excluded."""
        a = _series(RETURNS)
        b = _series(RETURNS, start="2024-01-06")  # 7 common days
        matrix = analyzer.correlate({"a": a, "b": b})

        assert matrix.get("a", "b") == 0.0
        assert matrix.pairs[0].observations == 7
        assert not matrix.pairs[0].valid
        assert matrix.average_correlation is None
        assert matrix.diversification_score == 100.0
        assert matrix.has_flag(CorrelationFlag.INSUFFICIENT_OVERLAP)

    def test_configurable_overlap(self):
        """Test a lower minimum overlap."""
        analyzer = AttributionAnalyzer(correlation_settings=CorrelationSettings(min_overlap=5))
        a = _series(RETURNS)
        b = _series(RETURNS, start="2024-01-06")
        matrix = analyzer.correlate({"a": a, "b": b})
        assert matrix.pairs[0].valid

    def test_constant_series(self, analyzer):
        """Test that a zero-variance series is flagged, not NaN."""
        matrix = analyzer.correlate({"a": _series(RETURNS), "b": _series([0.0] * len(RETURNS))})

        assert matrix.get("a", "b") == 0.0
        assert matrix.has_flag(CorrelationFlag.ZERO_VARIANCE)
        assert matrix.average_correlation is None

    def test_plain_sequences(self, analyzer):
        """Test positional alignment of plain sequences."""
        matrix = analyzer.correlate({"a": RETURNS, "b": [2 * r for r in RETURNS]})
        assert matrix.get("a", "b") == pytest.approx(1.0)

    def test_matrix_properties(self, analyzer):
        """Test symmetry, unit diagonal and bounds on random data."""
        rng = np.random.default_rng(11)
        base = rng.normal(0, 0.01, 60)
        series = {
            f"amp-{i}": _series(base * rng.uniform(-1, 1) + rng.normal(0, 0.01, 60))
            for i in range(5)
        }
        matrix = analyzer.correlate(series)
        m = np.array(matrix.matrix)

        assert np.array_equal(m, m.T)
        assert np.all(np.diag(m) == 1.0)
        assert np.all((m >= -1) & (m <= 1))
        assert 0 <= matrix.diversification_score <= 100
        assert len(matrix.pairs) == 10
        assert matrix.max_correlation >= matrix.average_correlation

    def test_average_uses_upper_triangle(self, analyzer):
        """Test the signed mean of distinct pairs."""
        inverse = [-r for r in RETURNS]
        matrix = analyzer.correlate({
            "a": _series(RETURNS),
            "b": _series(RETURNS),
            "c": _series(inverse),
        })
        # pairs: ab = 1, ac = -1, bc = -1
        assert matrix.average_correlation == pytest.approx(-1 / 3)
        assert matrix.diversification_score == 100.0

    def test_daily_returns_by_amp(self, analyzer, make_equity):
        """Test building return series from amp equity curves."""
        equity = make_equity([100.0, 110.0, 99.0])
        series = analyzer.daily_returns_by_amp({"a": equity})
        assert series["a"].tolist() == pytest.approx([0.10, -0.10])

    def test_correlate_from_equity(self, analyzer, make_equity):
        """Test correlation of amps with proportional equity curves."""
        values = [100.0 * (1 + 0.01 * ((i * 7) % 5 - 2)) for i in range(15)]
        returns = analyzer.daily_returns_by_amp({
            "a": make_equity(values),
            "b": make_equity([2 * v for v in values]),
        })
        matrix = analyzer.correlate(returns)
        assert matrix.get("a", "b") == pytest.approx(1.0)
