import json

import pytest

from slot_core import (
    BoardConfig,
    ConfigurationError,
    MultiplierRange,
    Outcome,
    PayoutTiers,
    Symbol,
    SymbolKind,
    WildConfig,
    config_from_mapping,
    config_to_mapping,
    default_config,
    load_engine_config,
    save_engine_config,
)
from slot_core.data import symbol_from_mapping


def assert_same_tables(left, right):
    assert left.board == right.board
    assert left.symbols.symbols == right.symbols.symbols
    assert left.paylines.patterns == right.paylines.patterns
    assert left.outcomes.outcomes == right.outcomes.outcomes


def test_default_tables():
    config = default_config()

    assert config.board == BoardConfig(5, 3)
    assert len(config.symbols) == 9
    assert config.paylines.count == 20
    assert [o.id for o in config.outcomes] == ["lose", "small", "medium", "big", "jackpot"]
    assert config.symbols.scatter_symbol.id == "SCATTER"
    assert config.symbols.get("WILD").wild == WildConfig(True, False)


def test_mapping_round_trip_keeps_tables():
    config = default_config()

    assert_same_tables(config_from_mapping(config_to_mapping(config)), config)


def test_save_and_load(tmp_path):
    config = default_config().with_board(BoardConfig(6, 4))
    path = tmp_path / "nested" / "engine.json"

    save_engine_config(config, path)

    assert json.loads(path.read_text(encoding="utf-8"))["boardConfig"] == {"cols": 6, "rows": 4}
    assert_same_tables(load_engine_config(path), config)


def test_missing_file_falls_back_to_defaults(tmp_path):
    assert_same_tables(load_engine_config(tmp_path / "absent.json"), default_config())
    assert_same_tables(load_engine_config(None), default_config())


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_engine_config(path)


def test_missing_sections_use_defaults():
    config = config_from_mapping(
        {"outcomes": [{"id": "only", "multiplierRange": {"min": 0, "max": 3}, "weight": 1}]}
    )

    assert [o.id for o in config.outcomes] == ["only"]
    assert len(config.symbols) == 9
    assert config.paylines.count == 20


def test_snake_case_keys_are_accepted():
    config = config_from_mapping(
        {
            "board": {"cols": 4, "rows": 2},
            "outcomeConfig": [{"id": "a", "multiplier_range": {"min": 1, "max": 2}, "weight": 3}],
            "paylines": [{"cells": [[0, 0], [1, 0], [2, 0], [3, 0]]}],
        }
    )

    assert config.board == BoardConfig(4, 2)
    assert config.outcomes.get("a").multiplier_range == MultiplierRange(1, 2)
    assert config.paylines[0].id == 1
    assert config.paylines[0].cells == ((0, 0), (1, 0), (2, 0), (3, 0))


def test_lines_count_pads_patterns():
    config = config_from_mapping(
        {"linesConfig": {"count": 2, "patterns": [{"id": 0, "positions": [[0, 0], [1, 0], [2, 0]]}]}}
    )

    assert config.paylines.count == 2
    assert config.paylines[1].id == 1


def test_scatter_payout_wins_over_legacy_fields():
    symbol = symbol_from_mapping(
        {
            "id": "S",
            "type": "scatter",
            "category": "special",
            "scatterConfig": {"multiplierValue": 2},
            "fsTriggerConfig": {"count": 3},
            "scatterPayoutConfig": {"minCount": 3, "payoutByCount": {"3": 5, "4": 20}},
        }
    )

    assert symbol.kind is SymbolKind.SCATTER
    assert symbol.scatter.min_count == 3
    assert symbol.scatter.payout_for(3) == 5
    assert symbol.scatter.payout_for(4) == 20
    assert symbol.scatter.payout_for(5) == 0


def test_legacy_only_scatter_has_no_payout():
    symbol = symbol_from_mapping({"id": "S", "type": "scatter", "scatterConfig": {}})

    assert symbol.is_scatter
    assert symbol.scatter is None


@pytest.mark.parametrize(
    "raw",
    [
        {"name": "no id"},
        {"id": "X", "type": "sticky"},
        {"id": "X", "appearanceWeight": "heavy"},
        {"id": "X", "appearanceWeight": 0},
        {"id": "X", "payouts": {"match3": None}},
        {"id": "X", "payouts": [1, 2, 3]},
        {"id": "W", "type": "wild", "wildConfig": ["normal"]},
        {"id": "S", "type": "scatter", "scatterPayoutConfig": {"minCount": "three"}},
        {"id": "S", "type": "scatter", "scatterPayoutConfig": [3, 5]},
    ],
)
def test_malformed_symbols_raise(raw):
    with pytest.raises(ConfigurationError):
        symbol_from_mapping(raw)


def test_malformed_config_sections_raise():
    with pytest.raises(ConfigurationError):
        config_from_mapping({"boardConfig": {"cols": 5}})
    with pytest.raises(ConfigurationError):
        config_from_mapping({"outcomes": [{"id": "a", "weight": 1}]})
    with pytest.raises(ConfigurationError):
        config_from_mapping({"linesConfig": {"patterns": [{"positions": []}]}})
    with pytest.raises(ConfigurationError):
        config_from_mapping([])


@pytest.mark.parametrize(
    "raw",
    [
        {"symbols": [{"id": "X", "payouts": [1, 2, 3]}]},
        {"symbols": "X"},
        {"outcomes": {"id": "a"}},
        {"linesConfig": {"count": "twenty", "patterns": [{"positions": [[0, 0], [1, 0], [2, 0]]}]}},
        {"linesConfig": {"patterns": [{"id": "first", "positions": [[0, 0], [1, 0], [2, 0]]}]}},
        {"linesConfig": {"patterns": [[[0, 0], [1, 0]]]}},
    ],
)
def test_malformed_values_raise_configuration_errors(raw):
    with pytest.raises(ConfigurationError):
        config_from_mapping(raw)


def test_model_validation():
    with pytest.raises(ConfigurationError):
        MultiplierRange(5, 1)
    with pytest.raises(ConfigurationError):
        MultiplierRange(-1, 1)
    with pytest.raises(ConfigurationError):
        Outcome("a", "A", MultiplierRange(0, 1), -1)
    with pytest.raises(ConfigurationError):
        BoardConfig(2, 3)
    with pytest.raises(ConfigurationError):
        Symbol("N", "Normal", wild=WildConfig())
    assert PayoutTiers(1, 2, 3).for_count(7) == 3
    assert PayoutTiers(1, 2, 3).for_count(2) == 0
