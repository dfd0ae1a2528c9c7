"""Dataclasses shared across the catalog, scoring, pool and RTP modules."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .errors import ConfigurationError

SymbolId = str
Cell = tuple[int, int]


class SymbolKind(str, Enum):
    """Behaviour variant of a symbol, resolved once when the catalog is loaded."""

    NORMAL = "normal"
    WILD = "wild"
    SCATTER = "scatter"


class SymbolCategory(str, Enum):
    HIGH = "high"
    LOW = "low"
    SPECIAL = "special"


class CoverageStatus(str, Enum):
    """Share of random boards landing in an outcome range."""

    OK = "ok"
    LOW = "low"
    NONE = "none"


@dataclass(frozen=True)
class PayoutTiers:
    """Line payout multipliers for runs of three, four and five symbols."""

    match3: float = 0.0
    match4: float = 0.0
    match5: float = 0.0

    def for_count(self, count: int) -> float:
        """Return the tier for ``count`` matching cells (runs above five reuse the top tier)."""

        if count < 3:
            return 0.0
        if count == 3:
            return self.match3
        if count == 4:
            return self.match4
        return self.match5


@dataclass(frozen=True)
class WildConfig:
    can_replace_normal: bool = True
    can_replace_special: bool = False


@dataclass(frozen=True)
class ScatterPayout:
    """Position-independent payout table keyed by the scatter count on the board."""

    min_count: int
    payout_by_count: Mapping[int, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.min_count < 1:
            raise ConfigurationError(
                "Scatter min_count must be at least 1", {"min_count": self.min_count}
            )
        normalized = {int(count): float(value) for count, value in self.payout_by_count.items()}
        object.__setattr__(self, "payout_by_count", normalized)

    def payout_for(self, count: int) -> float:
        """Return the payout for an exact count, 0 below ``min_count`` or without a tier."""

        if count < self.min_count:
            return 0.0
        return self.payout_by_count.get(count, 0.0)


@dataclass(frozen=True)
class Symbol:
    """Symbol definition: payout tiers, cosmetic weight and wild/scatter behaviour."""

    id: SymbolId
    name: str
    kind: SymbolKind = SymbolKind.NORMAL
    category: SymbolCategory = SymbolCategory.LOW
    payouts: PayoutTiers = field(default_factory=PayoutTiers)
    appearance_weight: float = 1.0
    wild: Optional[WildConfig] = None
    scatter: Optional[ScatterPayout] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ConfigurationError("Symbol id must be a non-empty string")
        if self.appearance_weight <= 0:
            raise ConfigurationError(
                "Symbol appearance weight must be positive",
                {"symbol_id": self.id, "appearance_weight": self.appearance_weight},
            )
        if self.kind is SymbolKind.WILD and self.wild is None:
            object.__setattr__(self, "wild", WildConfig())
        if self.kind is not SymbolKind.WILD and self.wild is not None:
            raise ConfigurationError(
                "Only wild symbols may carry a wild configuration", {"symbol_id": self.id}
            )
        if self.kind is not SymbolKind.SCATTER and self.scatter is not None:
            raise ConfigurationError(
                "Only scatter symbols may carry a scatter payout", {"symbol_id": self.id}
            )

    @property
    def is_wild(self) -> bool:
        return self.kind is SymbolKind.WILD

    @property
    def is_scatter(self) -> bool:
        return self.kind is SymbolKind.SCATTER

    def can_substitute(self, target: Symbol) -> bool:
        """Return True when this wild may stand in for ``target`` within a line run."""

        if self.wild is None or target.is_wild or target.is_scatter:
            return False
        if target.category is SymbolCategory.SPECIAL:
            return self.wild.can_replace_special
        return self.wild.can_replace_normal


@dataclass(frozen=True)
class PaylinePattern:
    """Ordered ``(column, row)`` cells checked left to right."""

    id: int
    cells: tuple[Cell, ...]

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "cells", tuple((int(col), int(row)) for col, row in self.cells)
        )


@dataclass(frozen=True)
class MultiplierRange:
    min: float
    max: float

    def __post_init__(self) -> None:
        if self.min < 0 or self.max < 0:
            raise ConfigurationError(
                "Multiplier range bounds must be non-negative",
                {"min": self.min, "max": self.max},
            )
        if self.min > self.max:
            raise ConfigurationError(
                "Multiplier range min must not exceed max", {"min": self.min, "max": self.max}
            )

    def contains(self, score: float) -> bool:
        return self.min <= score <= self.max

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2


@dataclass(frozen=True)
class Outcome:
    """Named multiplier bucket with a draw weight."""

    id: str
    name: str
    multiplier_range: MultiplierRange
    weight: float

    def __post_init__(self) -> None:
        if self.weight < 0:
            raise ConfigurationError(
                "Outcome weight must be non-negative",
                {"outcome_id": self.id, "weight": self.weight},
            )


@dataclass(frozen=True)
class BoardConfig:
    cols: int = 5
    rows: int = 3

    def __post_init__(self) -> None:
        if self.cols < 3 or self.rows < 1:
            raise ConfigurationError(
                "Board needs at least 3 columns and 1 row",
                {"cols": self.cols, "rows": self.rows},
            )

    @property
    def cell_count(self) -> int:
        return self.cols * self.rows


@dataclass(frozen=True)
class Board:
    """Grid of symbol ids stored column-major as ``reels[col][row]``."""

    reels: tuple[tuple[SymbolId, ...], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "reels", tuple(tuple(reel) for reel in self.reels))

    @classmethod
    def from_reels(cls, reels: Sequence[Sequence[SymbolId]]) -> Board:
        return cls(tuple(tuple(reel) for reel in reels))

    @property
    def cols(self) -> int:
        return len(self.reels)

    @property
    def rows(self) -> int:
        return len(self.reels[0]) if self.reels else 0

    def contains_cell(self, col: int, row: int) -> bool:
        return 0 <= col < self.cols and 0 <= row < len(self.reels[col])

    def symbol_at(self, col: int, row: int) -> SymbolId:
        return self.reels[col][row]

    def symbols(self) -> Iterator[SymbolId]:
        for reel in self.reels:
            yield from reel

    def to_lists(self) -> list[list[SymbolId]]:
        return [list(reel) for reel in self.reels]


@dataclass(frozen=True)
class LineWin:
    """Winning run on one payline, with the cell path used for highlighting."""

    line_id: int
    symbol_id: SymbolId
    count: int
    payout: float
    positions: tuple[Cell, ...]
    wild_positions: tuple[Cell, ...] = ()

    @property
    def has_wild(self) -> bool:
        return bool(self.wild_positions)


@dataclass(frozen=True)
class WinBreakdown:
    """Result of evaluating one board against the paylines and scatter table."""

    line_wins: tuple[LineWin, ...]
    line_score: float
    scatter_payout: float
    total_score: float
    best_line: Optional[LineWin] = None
    scatter_symbol_id: Optional[SymbolId] = None
    scatter_count: int = 0
    feature_triggered: bool = False

    @property
    def is_win(self) -> bool:
        return self.total_score > 0


@dataclass(frozen=True)
class SettlementMeta:
    """Cash settlement of a spin: evaluation scaled by bet and multiplier."""

    outcome_id: str
    win: float
    line_win: float
    scatter_win: float
    base_bet: float
    multiplier: float
    winning_lines: tuple[LineWin, ...]
    best_line: Optional[LineWin]
    scatter_count: int
    feature_triggered: bool


@dataclass(frozen=True)
class PoolStatus:
    outcome_id: str
    outcome_name: str
    generated: int
    cap: int

    @property
    def is_full(self) -> bool:
        return self.generated >= self.cap


@dataclass(frozen=True)
class RTPBreakdown:
    """Return-to-player split, in percent, plus scatter trigger figures."""

    line_rtp: float
    scatter_rtp: float
    total_rtp: float
    trigger_probability: float = 0.0
    expected_count: float = 0.0
    avg_per_unit: float = 0.0
