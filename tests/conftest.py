"""
Pytest fixtures for layer analytics tests.

Provides synthetic trades, equity curves and result models so every
component can be tested without a real ledger.
"""

import itertools
from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest

from src.data.models.ledger import AmpMeta, EquityPoint, Trade, TradeSide
from src.engine.models.attribution import AmpAttribution
from src.engine.models.metrics import LayerMetrics

BASE_TIME = datetime(2024, 1, 2, 9, 30)


# ============================================================================
# Ledger record factories
# ============================================================================


@pytest.fixture
def make_trade():
    """Factory for closed trades.

    Trade N opens on BASE_TIME + day and closes 4 hours later.
    """
    counter = itertools.count(1)

    def _make(
        pnl: float,
        amp_id: str = "amp-1",
        day: int = 0,
        fees: float = 0.0,
        closed: bool = True,
        trade_id: str | None = None,
        layer_id: str = "layer-1",
    ) -> Trade:
        n = next(counter)
        entry = BASE_TIME + timedelta(days=day)
        return Trade(
            trade_id=trade_id or f"t-{n:04d}",
            amp_id=amp_id,
            layer_id=layer_id,
            symbol="SPY",
            side=TradeSide.LONG,
            entry_time=entry,
            exit_time=entry + timedelta(hours=4) if closed else None,
            entry_price=100.0,
            exit_price=101.0 if closed else None,
            quantity=10,
            realized_pnl=pnl,
            fees=fees,
        )

    return _make


@pytest.fixture
def make_equity():
    """Factory for daily equity curves (one point per calendar day at 16:00)."""

    def _make(values: list[float], start: date = date(2024, 1, 2)) -> list[EquityPoint]:
        return [
            EquityPoint(
                timestamp=datetime.combine(start + timedelta(days=i), datetime.min.time())
                + timedelta(hours=16),
                equity_value=float(v),
            )
            for i, v in enumerate(values)
        ]

    return _make


@pytest.fixture
def scenario_a_trades(make_trade):
    """10 winning trades of $100 and 5 losing trades of $50, interleaved."""
    pnls = [100, 100, -50, 100, 100, -50, 100, 100, -50, 100, 100, -50, 100, -50, 100]
    return [make_trade(pnl, day=i) for i, pnl in enumerate(pnls)]


@pytest.fixture
def rising_equity(make_equity):
    """20 days of gently rising equity with small dips."""
    values = [100_000.0]
    for i in range(1, 20):
        step = 600.0 if i % 4 else -300.0
        values.append(values[-1] + step)
    return make_equity(values)


@pytest.fixture
def roster():
    return [
        AmpMeta(amp_id="amp-a", amp_name="Momentum", signals_generated=20),
        AmpMeta(amp_id="amp-b", amp_name="Mean Reversion"),
        AmpMeta(amp_id="amp-c", amp_name="Breakout", signals_generated=0),
    ]


# ============================================================================
# Result model factories
# ============================================================================


HEALTHY_METRICS = LayerMetrics(
    start_date=date(2024, 1, 2),
    end_date=date(2024, 6, 28),
    trading_days=120,
    total_return=0.12,
    annualized_return=0.26,
    total_pnl=12_000.0,
    sharpe_ratio=1.5,
    sortino_ratio=2.1,
    calmar_ratio=5.2,
    max_drawdown=-0.05,
    current_drawdown=0.0,
    max_drawdown_duration=9,
    max_drawdown_recovered=True,
    volatility=0.15,
    downside_volatility=0.09,
    ulcer_index=1.2,
    value_at_risk_95=-0.012,
    value_at_risk_99=-0.02,
    conditional_var_95=-0.016,
    conditional_var_99=-0.022,
    total_trades=50,
    winning_trades=28,
    losing_trades=22,
    win_rate=0.56,
    avg_win=800.0,
    avg_loss=-470.0,
    gross_profit=22_400.0,
    gross_loss=-10_340.0,
    profit_factor=2.17,
    expectancy=241.2,
    largest_win=2_000.0,
    largest_loss=-1_100.0,
    avg_holding_period_hours=30.0,
    current_streak=1,
    longest_win_streak=5,
    longest_loss_streak=3,
    avg_win_streak=2.1,
    avg_loss_streak=1.7,
    profitable_months=4,
    total_months=6,
    monthly_win_rate=4 / 6,
)


@pytest.fixture
def make_metrics():
    """Factory for LayerMetrics: a healthy baseline with overrides."""

    def _make(**overrides) -> LayerMetrics:
        return replace(HEALTHY_METRICS, **overrides)

    return _make


@pytest.fixture
def make_attribution():
    """Factory for AmpAttribution with neutral defaults."""

    def _make(amp_id: str, **overrides) -> AmpAttribution:
        values = dict(
            amp_id=amp_id,
            amp_name=amp_id.upper(),
            total_pnl=1_000.0,
            win_rate=0.55,
            trades_executed=10,
            execution_rate=0.8,
            contribution_score=50.0,
            percentage_of_total_pnl=50.0,
        )
        values.update(overrides)
        return AmpAttribution(**values)

    return _make
