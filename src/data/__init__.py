"""Data layer: ledger boundary types and accessors."""

from src.data.ledger import InMemoryLedger, SkippedRecordsReporter, TradeLedgerAccessor
from src.data.models import (
    AmpMeta,
    EquityPoint,
    MalformedRecordError,
    Trade,
    TradeSide,
)

__all__ = [
    "AmpMeta",
    "EquityPoint",
    "InMemoryLedger",
    "MalformedRecordError",
    "SkippedRecordsReporter",
    "Trade",
    "TradeLedgerAccessor",
    "TradeSide",
]
