"""Immutable symbol, payline and outcome tables plus the engine configuration bundle."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
from typing import Optional

from .errors import ConfigurationError, NoOutcomesAvailable
from .models import BoardConfig, Outcome, PaylinePattern, Symbol, SymbolId

logger = logging.getLogger(__name__)


class SymbolCatalog:
    """Ordered, read-only collection of symbol definitions."""

    def __init__(self, symbols: Iterable[Symbol]) -> None:
        self._symbols: tuple[Symbol, ...] = tuple(symbols)
        if not self._symbols:
            raise ConfigurationError("Symbol catalog must contain at least one symbol")
        self._by_id: dict[SymbolId, Symbol] = {}
        for symbol in self._symbols:
            if symbol.id in self._by_id:
                raise ConfigurationError("Duplicate symbol id", {"symbol_id": symbol.id})
            self._by_id[symbol.id] = symbol

        paying_scatters = [s for s in self._symbols if s.is_scatter and s.scatter is not None]
        self._scatter: Optional[Symbol] = paying_scatters[0] if paying_scatters else None
        if len(paying_scatters) > 1:
            logger.warning(
                "Catalog has %d scatter payout symbols; only '%s' is scored",
                len(paying_scatters),
                paying_scatters[0].id,
            )

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols)

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, symbol_id: object) -> bool:
        return symbol_id in self._by_id

    def __repr__(self) -> str:
        return f"SymbolCatalog({[s.id for s in self._symbols]!r})"

    @property
    def symbols(self) -> tuple[Symbol, ...]:
        return self._symbols

    @property
    def ids(self) -> tuple[SymbolId, ...]:
        return tuple(s.id for s in self._symbols)

    @property
    def scatter_symbol(self) -> Optional[Symbol]:
        """Return the first symbol carrying a scatter payout, the only one ever scored."""

        return self._scatter

    def get(self, symbol_id: SymbolId) -> Optional[Symbol]:
        return self._by_id.get(symbol_id)

    def payout(self, symbol_id: SymbolId, count: int) -> float:
        """Return the line payout for ``count`` matching cells of ``symbol_id``."""

        symbol = self._by_id.get(symbol_id)
        if symbol is None:
            return 0.0
        return symbol.payouts.for_count(count)

    def total_appearance_weight(self) -> float:
        return sum(s.appearance_weight for s in self._symbols)

    def draw_symbol(self, rng: random.Random) -> SymbolId:
        """Draw a symbol by appearance weight.

        Reel animation uses this draw. Pool construction must not, see
        :class:`slot_core.sampler.BoardSampler`.
        """

        remaining = rng.random() * self.total_appearance_weight()
        for symbol in self._symbols:
            remaining -= symbol.appearance_weight
            if remaining <= 0:
                return symbol.id
        return self._symbols[-1].id

    def with_symbol(self, symbol: Symbol) -> SymbolCatalog:
        """Return a catalog with ``symbol`` replacing the entry of the same id, or appended."""

        if symbol.id in self._by_id:
            return SymbolCatalog(symbol if s.id == symbol.id else s for s in self._symbols)
        return SymbolCatalog((*self._symbols, symbol))

    def without_symbol(self, symbol_id: SymbolId) -> SymbolCatalog:
        if symbol_id not in self._by_id:
            raise ConfigurationError("Unknown symbol id", {"symbol_id": symbol_id})
        return SymbolCatalog(s for s in self._symbols if s.id != symbol_id)


def middle_row_pattern(pattern_id: int, board: BoardConfig) -> PaylinePattern:
    """Return the straight middle-row line used to pad a payline table."""

    row = (board.rows - 1) // 2
    return PaylinePattern(pattern_id, tuple((col, row) for col in range(board.cols)))


class PaylineTable:
    def __init__(self, patterns: Iterable[PaylinePattern]) -> None:
        self._patterns: tuple[PaylinePattern, ...] = tuple(patterns)

    def __iter__(self) -> Iterator[PaylinePattern]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __getitem__(self, index: int) -> PaylinePattern:
        return self._patterns[index]

    @property
    def count(self) -> int:
        return len(self._patterns)

    @property
    def patterns(self) -> tuple[PaylinePattern, ...]:
        return self._patterns

    def with_count(self, count: int, board: Optional[BoardConfig] = None) -> PaylineTable:
        """Truncate to ``count`` lines, or pad with middle-row lines.

        Parameters
        ----------
        count:
            Number of lines the new table holds.
        board:
            Board shape used for padding patterns (defaults to 5x3).

        Raises
        ------
        ConfigurationError
            If ``count`` is below 1.
        """

        if count < 1:
            raise ConfigurationError("Line count must be at least 1", {"count": count})
        if count <= len(self._patterns):
            return PaylineTable(self._patterns[:count])
        shape = board or BoardConfig()
        next_id = max((p.id for p in self._patterns), default=0) + 1
        padding = [
            middle_row_pattern(next_id + offset, shape)
            for offset in range(count - len(self._patterns))
        ]
        return PaylineTable((*self._patterns, *padding))


@dataclass(frozen=True)
class OutcomeProbability:
    outcome_id: str
    name: str
    probability: float


class OutcomeTable:
    """Outcome buckets in table order, drawn by cumulative weight."""

    def __init__(self, outcomes: Iterable[Outcome]) -> None:
        self._outcomes: tuple[Outcome, ...] = tuple(outcomes)
        self._by_id: dict[str, Outcome] = {}
        for outcome in self._outcomes:
            if outcome.id in self._by_id:
                raise ConfigurationError("Duplicate outcome id", {"outcome_id": outcome.id})
            self._by_id[outcome.id] = outcome

    def __iter__(self) -> Iterator[Outcome]:
        return iter(self._outcomes)

    def __len__(self) -> int:
        return len(self._outcomes)

    @property
    def outcomes(self) -> tuple[Outcome, ...]:
        return self._outcomes

    def get(self, outcome_id: str) -> Optional[Outcome]:
        return self._by_id.get(outcome_id)

    def total_weight(self) -> float:
        return sum(o.weight for o in self._outcomes)

    def draw_weighted(self, rng: random.Random) -> Outcome:
        """Draw an outcome with probability ``weight / total_weight``.

        Raises
        ------
        NoOutcomesAvailable
            If the table is empty or every weight is zero.
        """

        total = self.total_weight()
        if not self._outcomes or total <= 0:
            raise NoOutcomesAvailable(details={"outcomes": len(self._outcomes)})
        remaining = rng.random() * total
        fallback = self._outcomes[-1]
        for outcome in self._outcomes:
            if outcome.weight <= 0:
                continue
            fallback = outcome
            remaining -= outcome.weight
            if remaining <= 0:
                return outcome
        return fallback

    def probability(self, outcome_id: str) -> float:
        """Return the draw probability of ``outcome_id`` in percent (0 when unknown)."""

        outcome = self._by_id.get(outcome_id)
        total = self.total_weight()
        if outcome is None or total <= 0:
            return 0.0
        return outcome.weight / total * 100

    def probabilities(self) -> list[OutcomeProbability]:
        total = self.total_weight()
        return [
            OutcomeProbability(
                outcome_id=o.id,
                name=o.name,
                probability=(o.weight / total * 100) if total > 0 else 0.0,
            )
            for o in self._outcomes
        ]

    def with_outcome(self, outcome: Outcome) -> OutcomeTable:
        if outcome.id in self._by_id:
            return OutcomeTable(outcome if o.id == outcome.id else o for o in self._outcomes)
        return OutcomeTable((*self._outcomes, outcome))

    def without_outcome(self, outcome_id: str) -> OutcomeTable:
        if outcome_id not in self._by_id:
            raise ConfigurationError("Unknown outcome id", {"outcome_id": outcome_id})
        return OutcomeTable(o for o in self._outcomes if o.id != outcome_id)


@dataclass(frozen=True)
class EngineConfig:
    """Caller-owned snapshot of every table the engine reads."""

    board: BoardConfig
    symbols: SymbolCatalog
    paylines: PaylineTable
    outcomes: OutcomeTable

    def with_board(self, board: BoardConfig) -> EngineConfig:
        return replace(self, board=board)

    def with_symbols(self, symbols: SymbolCatalog | Sequence[Symbol]) -> EngineConfig:
        catalog = symbols if isinstance(symbols, SymbolCatalog) else SymbolCatalog(symbols)
        return replace(self, symbols=catalog)

    def with_paylines(self, paylines: PaylineTable | Sequence[PaylinePattern]) -> EngineConfig:
        table = paylines if isinstance(paylines, PaylineTable) else PaylineTable(paylines)
        return replace(self, paylines=table)

    def with_outcomes(self, outcomes: OutcomeTable | Sequence[Outcome]) -> EngineConfig:
        table = outcomes if isinstance(outcomes, OutcomeTable) else OutcomeTable(outcomes)
        return replace(self, outcomes=table)
