import logging
import math
import random

import pytest

from conftest import SCATTER, SEVEN, WILD
from slot_core import (
    DEFAULT_PAYLINES,
    ConfigurationError,
    MultiplierRange,
    NoOutcomesAvailable,
    Outcome,
    OutcomeTable,
    PaylineTable,
    ScatterPayout,
    Symbol,
    SymbolCatalog,
    SymbolKind,
)


def make_table(**weights):
    return OutcomeTable(
        Outcome(outcome_id, outcome_id, MultiplierRange(0, 1), weight)
        for outcome_id, weight in weights.items()
    )


def test_weighted_draw_matches_weights(rng):
    table = make_table(A=90, B=10)
    draws = 20000

    hits = sum(1 for _ in range(draws) if table.draw_weighted(rng).id == "A")

    tolerance = 5 * math.sqrt(0.9 * 0.1 / draws)
    assert hits / draws == pytest.approx(0.9, abs=tolerance)


def test_zero_weight_outcomes_are_never_drawn(rng):
    table = make_table(A=0, B=1, C=0)

    assert {table.draw_weighted(rng).id for _ in range(500)} == {"B"}


@pytest.mark.parametrize("weights", [{}, {"A": 0, "B": 0}])
def test_draw_without_positive_weight_raises(weights, rng):
    with pytest.raises(NoOutcomesAvailable):
        make_table(**weights).draw_weighted(rng)


def test_probabilities_are_percentages():
    table = make_table(A=90, B=10)

    assert table.probability("A") == pytest.approx(90.0)
    assert table.probability("missing") == 0.0
    assert [(p.outcome_id, p.probability) for p in table.probabilities()] == [
        ("A", pytest.approx(90.0)),
        ("B", pytest.approx(10.0)),
    ]


def test_outcome_table_edits_return_new_tables():
    table = make_table(A=90, B=10)

    replaced = table.with_outcome(Outcome("B", "B", MultiplierRange(2, 3), 30))
    extended = table.with_outcome(Outcome("C", "C", MultiplierRange(0, 0), 5))
    trimmed = table.without_outcome("A")

    assert table.get("B").weight == 10
    assert replaced.get("B").weight == 30
    assert [o.id for o in extended] == ["A", "B", "C"]
    assert [o.id for o in trimmed] == ["B"]
    with pytest.raises(ConfigurationError):
        table.without_outcome("missing")


def test_duplicate_outcome_ids_are_rejected():
    with pytest.raises(ConfigurationError):
        OutcomeTable([Outcome("A", "A", MultiplierRange(0, 0), 1)] * 2)


def test_symbol_catalog_rejects_empty_and_duplicates():
    with pytest.raises(ConfigurationError):
        SymbolCatalog([])
    with pytest.raises(ConfigurationError):
        SymbolCatalog([SEVEN, SEVEN])


def test_first_paying_scatter_wins(caplog):
    second = Symbol(
        "S2", "Moon", kind=SymbolKind.SCATTER, scatter=ScatterPayout(3, {3: 50})
    )
    with caplog.at_level(logging.WARNING, logger="slot_core.catalog"):
        catalog = SymbolCatalog([SEVEN, SCATTER, second])

    assert catalog.scatter_symbol is SCATTER
    assert "only 'S' is scored" in caplog.text


def test_catalog_lookup_and_payout(small_symbols):
    assert "X" in small_symbols
    assert small_symbols.ids == ("X", "Y", "W", "S")
    assert small_symbols.payout("X", 4) == 10
    assert small_symbols.payout("X", 2) == 0
    assert small_symbols.payout("missing", 5) == 0
    assert small_symbols.without_symbol("W").ids == ("X", "Y", "S")
    assert len(small_symbols.with_symbol(WILD)) == 4


def test_appearance_draw_follows_weights():
    heavy = Symbol("H", "Heavy", appearance_weight=99)
    light = Symbol("L", "Light", appearance_weight=1)
    catalog = SymbolCatalog([heavy, light])
    rng = random.Random(3)

    draws = [catalog.draw_symbol(rng) for _ in range(5000)]

    assert draws.count("H") / len(draws) == pytest.approx(0.99, abs=0.01)
    assert set(draws) <= {"H", "L"}


def test_payline_count_truncates_and_pads():
    table = PaylineTable(DEFAULT_PAYLINES)

    assert table.with_count(3).count == 3
    padded = table.with_count(22)
    assert padded.count == 22
    assert [p.id for p in padded.patterns[-2:]] == [21, 22]
    assert padded[21].cells == ((0, 1), (1, 1), (2, 1), (3, 1), (4, 1))
    with pytest.raises(ConfigurationError):
        table.with_count(0)