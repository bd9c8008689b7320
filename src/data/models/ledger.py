"""Trade ledger data models.

Strict value types for records supplied by the external trade ledger.
Loosely-typed ledger payloads are parsed once here; everything downstream
works with these frozen dataclasses.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

logger = logging.getLogger(__name__)


class MalformedRecordError(ValueError):
    """Raised when a ledger record cannot be parsed into a value type."""


class TradeSide(Enum):
    """Trade direction."""

    LONG = "long"
    SHORT = "short"

    @classmethod
    def parse(cls, value: Any) -> "TradeSide":
        """Parse broker-style side labels (buy/sell/long/short)."""
        if isinstance(value, TradeSide):
            return value
        text = str(value).strip().lower()
        if text in ("long", "buy", "b"):
            return cls.LONG
        if text in ("short", "sell", "s"):
            return cls.SHORT
        raise MalformedRecordError(f"Unknown trade side: {value!r}")


def _pick(data: dict[str, Any], *keys: str) -> Any:
    """Return the first present key (ledger payloads mix camelCase and snake_case)."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _parse_time(value: Any, name: str) -> datetime | None:
    """Parse a ledger timestamp into a naive UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    if isinstance(value, (int, float)):
        # Epoch milliseconds
        try:
            return _to_naive_utc(datetime.fromtimestamp(value / 1000.0, tz=timezone.utc))
        except (ValueError, OverflowError, OSError) as e:
            raise MalformedRecordError(f"Invalid {name}: {value!r}") from e
    try:
        return _to_naive_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError as e:
        raise MalformedRecordError(f"Invalid {name}: {value!r}") from e


def _parse_float(value: Any, name: str, required: bool = True) -> float | None:
    if value is None or value == "":
        if required:
            raise MalformedRecordError(f"Missing {name}")
        return None
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise MalformedRecordError(f"Invalid {name}: {value!r}") from e
    if not math.isfinite(number):
        raise MalformedRecordError(f"Non-finite {name}: {value!r}")
    return number


@dataclass(frozen=True)
class Trade:
    """A trade as recorded by the ledger.

    Closed trades carry exit_time and exit_price. Records missing either are
    kept as values but skipped by the analytics (counted as skipped records).

    Attributes:
        trade_id: Ledger identifier (used as cache key component).
        amp_id: Strategy (amp) that generated the trade.
        layer_id: Layer (portfolio) the amp belongs to.
        realized_pnl: Gross realized P&L in account currency.
        fees: Commissions and fees, subtracted to get net P&L.
    """

    trade_id: str
    amp_id: str
    layer_id: str
    symbol: str
    side: TradeSide
    entry_time: datetime
    exit_time: datetime | None
    entry_price: float
    exit_price: float | None
    quantity: float
    realized_pnl: float
    fees: float = 0.0

    @property
    def is_closed(self) -> bool:
        return self.exit_time is not None and self.exit_price is not None

    @property
    def net_pnl(self) -> float:
        """Realized P&L after fees."""
        return self.realized_pnl - self.fees

    @property
    def holding_period_hours(self) -> float | None:
        if self.exit_time is None:
            return None
        return (self.exit_time - self.entry_time).total_seconds() / 3600.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "trade_id": self.trade_id,
            "amp_id": self.amp_id,
            "layer_id": self.layer_id,
            "symbol": self.symbol,
            "side": self.side.value,
            "entry_time": self.entry_time.isoformat(),
            "exit_time": self.exit_time.isoformat() if self.exit_time else None,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "quantity": self.quantity,
            "realized_pnl": self.realized_pnl,
            "fees": self.fees,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Trade":
        """Parse a ledger record.

        Accepts snake_case or camelCase keys, ISO-8601 strings (with "Z")
        or epoch milliseconds for times, and numeric strings for amounts.

        Raises:
            MalformedRecordError: If a required field is missing or invalid.
        """
        trade_id = _pick(data, "trade_id", "tradeId", "id")
        amp_id = _pick(data, "amp_id", "ampId")
        if trade_id is None or amp_id is None:
            raise MalformedRecordError("Trade record requires trade_id and amp_id")

        entry_time = _parse_time(_pick(data, "entry_time", "entryTime"), "entry_time")
        if entry_time is None:
            raise MalformedRecordError(f"Trade {trade_id} missing entry_time")

        return cls(
            trade_id=str(trade_id),
            amp_id=str(amp_id),
            layer_id=str(_pick(data, "layer_id", "layerId") or ""),
            symbol=str(_pick(data, "symbol") or ""),
            side=TradeSide.parse(_pick(data, "side") or "long"),
            entry_time=entry_time,
            exit_time=_parse_time(_pick(data, "exit_time", "exitTime"), "exit_time"),
            entry_price=_parse_float(_pick(data, "entry_price", "entryPrice"), "entry_price"),
            exit_price=_parse_float(
                _pick(data, "exit_price", "exitPrice"), "exit_price", required=False
            ),
            quantity=_parse_float(_pick(data, "quantity", "qty"), "quantity"),
            realized_pnl=_parse_float(
                _pick(data, "realized_pnl", "realizedPnL", "pnl"), "realized_pnl"
            ),
            fees=_parse_float(_pick(data, "fees", "commission"), "fees", required=False) or 0.0,
        )


@dataclass(frozen=True)
class EquityPoint:
    """Mark-to-market equity observation."""

    timestamp: datetime
    equity_value: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "equity_value": self.equity_value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EquityPoint":
        timestamp = _parse_time(_pick(data, "timestamp", "date", "time"), "timestamp")
        if timestamp is None:
            raise MalformedRecordError("Equity point missing timestamp")
        value = _parse_float(
            _pick(data, "equity_value", "equityValue", "equity", "value"), "equity_value"
        )
        return cls(timestamp=timestamp, equity_value=value)


@dataclass(frozen=True)
class AmpMeta:
    """Roster entry for an amp in a layer.

    signals_generated is supplied by the signal coordinator; None when unknown.
    """

    amp_id: str
    amp_name: str
    signals_generated: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AmpMeta":
        amp_id = _pick(data, "amp_id", "ampId", "id")
        if amp_id is None:
            raise MalformedRecordError("Amp roster entry missing amp_id")
        signals = _parse_float(
            _pick(data, "signals_generated", "signalsGenerated"), "signals_generated", required=False
        )
        if signals is not None and (signals < 0 or not signals.is_integer()):
            raise MalformedRecordError(f"Invalid signals_generated for amp {amp_id}: {signals!r}")
        return cls(
            amp_id=str(amp_id),
            amp_name=str(_pick(data, "amp_name", "ampName", "name") or amp_id),
            signals_generated=int(signals) if signals is not None else None,
        )


@dataclass
class ParsedTrades:
    """Result of parsing a batch of ledger records."""

    trades: list[Trade]
    skipped: int = 0


def parse_trades(records: Iterable[dict[str, Any]]) -> ParsedTrades:
    """Parse ledger records, skipping (and counting) malformed ones."""
    trades: list[Trade] = []
    skipped = 0
    for record in records:
        try:
            trades.append(Trade.from_dict(record))
        except MalformedRecordError as e:
            skipped += 1
            logger.warning(f"Skipping malformed trade record: {e}")
    return ParsedTrades(trades=trades, skipped=skipped)


def parse_equity_curve(records: Iterable[dict[str, Any]]) -> list[EquityPoint]:
    """Parse equity records, dropping malformed points."""
    points: list[EquityPoint] = []
    for record in records:
        try:
            points.append(EquityPoint.from_dict(record))
        except MalformedRecordError as e:
            logger.warning(f"Skipping malformed equity point: {e}")
    return points


def parse_roster(records: Iterable[dict[str, Any]]) -> list[AmpMeta]:
    """Parse roster entries, dropping malformed ones."""
    roster: list[AmpMeta] = []
    for record in records:
        try:
            roster.append(AmpMeta.from_dict(record))
        except MalformedRecordError as e:
            logger.warning(f"Skipping malformed roster entry: {e}")
    return roster
