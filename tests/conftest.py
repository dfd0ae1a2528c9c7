import random
from collections.abc import Sequence
from dataclasses import replace

import pytest

from slot_core import (
    Board,
    BoardConfig,
    EngineConfig,
    MultiplierRange,
    Outcome,
    OutcomeTable,
    PaylinePattern,
    PaylineTable,
    PayoutTiers,
    ScatterPayout,
    Symbol,
    SymbolCatalog,
    SymbolCategory,
    SymbolKind,
    default_config,
)

SEVEN = Symbol("X", "Seven", category=SymbolCategory.HIGH, payouts=PayoutTiers(5, 10, 20))
BAR = Symbol("Y", "Bar", payouts=PayoutTiers(3, 6, 12))
WILD = Symbol("W", "Wild", kind=SymbolKind.WILD)
SCATTER = Symbol(
    "S",
    "Scatter",
    kind=SymbolKind.SCATTER,
    category=SymbolCategory.SPECIAL,
    scatter=ScatterPayout(min_count=3, payout_by_count={3: 5, 4: 20, 5: 100}),
)

MIDDLE_ROW = PaylinePattern(1, ((0, 1), (1, 1), (2, 1), (3, 1), (4, 1)))


def board_from_rows(rows: Sequence[Sequence[str]]) -> Board:
    """Build a column-major board from rows written top to bottom."""

    return Board.from_reels([[row[col] for row in rows] for col in range(len(rows[0]))])


@pytest.fixture
def rng():
    return random.Random(20240611)


@pytest.fixture(scope="module")
def small_symbols():
    return SymbolCatalog([SEVEN, BAR, WILD, SCATTER])


@pytest.fixture(scope="module")
def middle_line():
    return PaylineTable([MIDDLE_ROW])


@pytest.fixture(scope="module")
def small_config(small_symbols, middle_line):
    return EngineConfig(
        board=BoardConfig(5, 3),
        symbols=small_symbols,
        paylines=middle_line,
        outcomes=OutcomeTable(
            [
                Outcome("lose", "Lose", MultiplierRange(0, 0), 70),
                Outcome("win", "Win", MultiplierRange(1, 1000), 30),
            ]
        ),
    )


@pytest.fixture(scope="module")
def scenario_config():
    """Loss/5x split on the default tables with a 5/20/100 scatter."""

    base = default_config()
    scatter = base.symbols.scatter_symbol
    symbols = base.symbols.with_symbol(
        replace(scatter, scatter=ScatterPayout(3, {3: 5, 4: 20, 5: 100}))
    )
    return base.with_symbols(symbols).with_outcomes(
        [
            Outcome("LOSS", "Loss", MultiplierRange(0, 0), 90),
            Outcome("WIN", "Win", MultiplierRange(5, 5), 10),
        ]
    )
