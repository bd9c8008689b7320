"""Trade ledger accessors.

The ledger itself (persistence, ownership of trade records) lives outside this
package. Analytics components talk to it only through TradeLedgerAccessor.
"""

import logging
from typing import Any, Protocol, runtime_checkable

from src.data.models.ledger import (
    AmpMeta,
    EquityPoint,
    Trade,
    parse_equity_curve,
    parse_roster,
    parse_trades,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class TradeLedgerAccessor(Protocol):
    """Trade ledger protocol.

    Any object implementing these methods can feed the ReportAssembler.
    """

    def get_trades(self, layer_id: str) -> list[Trade]:
        """Trades of a layer, across all of its amps."""
        ...

    def get_layer_equity(self, layer_id: str) -> list[EquityPoint]:
        """Layer-level mark-to-market equity series."""
        ...

    def get_amp_equity(self, layer_id: str) -> dict[str, list[EquityPoint]]:
        """Per-amp equity series (amp_id -> points)."""
        ...

    def get_amp_roster(self, layer_id: str) -> list[AmpMeta]:
        """Amps in the layer, with names and signal counts."""
        ...


@runtime_checkable
class SkippedRecordsReporter(Protocol):
    """Optional ledger capability: count of records dropped while parsing.

    Accessors that parse raw payloads implement it so the count reaches
    LayerMetrics.skipped_records. Accessors without it report 0.
    """

    def skipped_records(self, layer_id: str) -> int:
        ...


def skipped_records_of(ledger: TradeLedgerAccessor, layer_id: str) -> int:
    """Skipped record count of a layer, 0 when the ledger does not report it."""
    if isinstance(ledger, SkippedRecordsReporter):
        return ledger.skipped_records(layer_id)
    return 0


class InMemoryLedger:
    """Dict-backed ledger snapshot.

    Used when the caller already holds the layer's records in memory
    (e.g. fetched from the hosted backend in one request).

    Usage:
        ledger = InMemoryLedger()
        ledger.add_layer("layer-1", trades, equity, amp_equity, roster)
        report = ReportAssembler(ledger).assemble("layer-1")
    """

    def __init__(self) -> None:
        self._trades: dict[str, list[Trade]] = {}
        self._layer_equity: dict[str, list[EquityPoint]] = {}
        self._amp_equity: dict[str, dict[str, list[EquityPoint]]] = {}
        self._rosters: dict[str, list[AmpMeta]] = {}
        self._skipped: dict[str, int] = {}

    def add_layer(
        self,
        layer_id: str,
        trades: list[Trade],
        layer_equity: list[EquityPoint],
        amp_equity: dict[str, list[EquityPoint]] | None = None,
        roster: list[AmpMeta] | None = None,
    ) -> None:
        self._trades[layer_id] = list(trades)
        self._layer_equity[layer_id] = list(layer_equity)
        self._amp_equity[layer_id] = dict(amp_equity or {})
        self._rosters[layer_id] = list(roster or [])

    def get_trades(self, layer_id: str) -> list[Trade]:
        return list(self._trades.get(layer_id, []))

    def get_layer_equity(self, layer_id: str) -> list[EquityPoint]:
        return list(self._layer_equity.get(layer_id, []))

    def get_amp_equity(self, layer_id: str) -> dict[str, list[EquityPoint]]:
        return dict(self._amp_equity.get(layer_id, {}))

    def get_amp_roster(self, layer_id: str) -> list[AmpMeta]:
        return list(self._rosters.get(layer_id, []))

    def skipped_records(self, layer_id: str) -> int:
        """Records dropped while parsing the layer's payload."""
        return self._skipped.get(layer_id, 0)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "InMemoryLedger":
        """Build a ledger from a JSON-like payload.

        Expected shape:
            {
                "layers": {
                    "<layer_id>": {
                        "trades": [...],
                        "equity": [...],
                        "amp_equity": {"<amp_id>": [...]},
                        "amps": [...],
                    }
                }
            }
        """
        ledger = cls()
        for layer_id, layer_data in payload.get("layers", {}).items():
            parsed = parse_trades(layer_data.get("trades", []))
            amp_equity = {
                amp_id: parse_equity_curve(points)
                for amp_id, points in layer_data.get("amp_equity", {}).items()
            }
            roster = parse_roster(layer_data.get("amps", []))
            ledger.add_layer(
                layer_id,
                trades=parsed.trades,
                layer_equity=parse_equity_curve(layer_data.get("equity", [])),
                amp_equity=amp_equity,
                roster=roster,
            )
            ledger._skipped[layer_id] = parsed.skipped
            if parsed.skipped:
                logger.info(f"Layer {layer_id}: {parsed.skipped} malformed trade records skipped")
        return ledger
