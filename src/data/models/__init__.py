"""Data models for ledger records."""

from src.data.models.ledger import (
    AmpMeta,
    EquityPoint,
    MalformedRecordError,
    ParsedTrades,
    Trade,
    TradeSide,
    parse_equity_curve,
    parse_roster,
    parse_trades,
)

__all__ = [
    "AmpMeta",
    "EquityPoint",
    "MalformedRecordError",
    "ParsedTrades",
    "Trade",
    "TradeSide",
    "parse_equity_curve",
    "parse_roster",
    "parse_trades",
]
