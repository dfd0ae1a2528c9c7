"""Engine constants, default tables, and configuration (de)serialisation helpers."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Final

from .catalog import EngineConfig, OutcomeTable, PaylineTable, SymbolCatalog
from .errors import ConfigurationError
from .models import (
    BoardConfig,
    MultiplierRange,
    Outcome,
    PaylinePattern,
    PayoutTiers,
    ScatterPayout,
    Symbol,
    SymbolCategory,
    SymbolKind,
    WildConfig,
)

logger = logging.getLogger(__name__)

ATTEMPT_MULTIPLIER: Final[int] = 100
DEFAULT_POOL_CAP: Final[int] = 100
MAX_POOL_CAP: Final[int] = 1000
DEFAULT_SAMPLE_SIZE: Final[int] = 1000
DEFAULT_HISTOGRAM_BUCKETS: Final[int] = 10
COVERAGE_OK_PERCENT: Final[float] = 5.0
COVERAGE_LOW_PERCENT: Final[float] = 1.0
RTP_TOLERANCE: Final[float] = 0.1
DEFAULT_BUILD_CHUNK_SIZE: Final[int] = 1000
DEFAULT_SIMULATION_CHUNK_SIZE: Final[int] = 100

DEFAULT_BOARD: Final[BoardConfig] = BoardConfig(cols=5, rows=3)

DEFAULT_SYMBOLS: Final[tuple[Symbol, ...]] = (
    Symbol("H1", "Crown", category=SymbolCategory.HIGH,
           payouts=PayoutTiers(50, 100, 200), appearance_weight=10),
    Symbol("H2", "Diamond", category=SymbolCategory.HIGH,
           payouts=PayoutTiers(40, 80, 160), appearance_weight=15),
    Symbol("H3", "Coin", category=SymbolCategory.HIGH,
           payouts=PayoutTiers(30, 60, 120), appearance_weight=20),
    Symbol("L1", "A", payouts=PayoutTiers(10, 20, 40), appearance_weight=30),
    Symbol("L2", "K", payouts=PayoutTiers(8, 16, 32), appearance_weight=35),
    Symbol("L3", "Q", payouts=PayoutTiers(6, 12, 24), appearance_weight=40),
    Symbol("L4", "J", payouts=PayoutTiers(4, 8, 16), appearance_weight=45),
    Symbol(
        "WILD",
        "Wild",
        kind=SymbolKind.WILD,
        category=SymbolCategory.HIGH,
        appearance_weight=5,
        wild=WildConfig(can_replace_normal=True, can_replace_special=False),
    ),
    Symbol(
        "SCATTER",
        "Scatter",
        kind=SymbolKind.SCATTER,
        category=SymbolCategory.HIGH,
        appearance_weight=3,
        scatter=ScatterPayout(min_count=3, payout_by_count={3: 25, 4: 50, 5: 100}),
    ),
)

# Standard 20 lines on a 5-column board, cells are (column, row).
DEFAULT_LINE_CELLS: Final[tuple[tuple[tuple[int, int], ...], ...]] = (
    ((0, 1), (1, 1), (2, 1), (3, 1), (4, 1)),
    ((0, 0), (1, 0), (2, 0), (3, 0), (4, 0)),
    ((0, 2), (1, 2), (2, 2), (3, 2), (4, 2)),
    ((0, 0), (1, 1), (2, 2), (3, 1), (4, 0)),
    ((0, 2), (1, 1), (2, 0), (3, 1), (4, 2)),
    ((0, 0), (1, 0), (2, 1), (3, 2), (4, 2)),
    ((0, 2), (1, 2), (2, 1), (3, 0), (4, 0)),
    ((0, 1), (1, 0), (2, 0), (3, 0), (4, 1)),
    ((0, 1), (1, 2), (2, 2), (3, 2), (4, 1)),
    ((0, 0), (1, 1), (2, 1), (3, 1), (4, 0)),
    ((0, 2), (1, 1), (2, 1), (3, 1), (4, 2)),
    ((0, 1), (1, 0), (2, 1), (3, 2), (4, 1)),
    ((0, 1), (1, 2), (2, 1), (3, 0), (4, 1)),
    ((0, 0), (1, 1), (2, 0), (3, 1), (4, 0)),
    ((0, 2), (1, 1), (2, 2), (3, 1), (4, 2)),
    ((0, 1), (1, 1), (2, 0), (3, 1), (4, 1)),
    ((0, 1), (1, 1), (2, 2), (3, 1), (4, 1)),
    ((0, 0), (1, 0), (2, 1), (3, 0), (4, 0)),
    ((0, 2), (1, 2), (2, 1), (3, 2), (4, 2)),
    ((0, 0), (1, 2), (2, 0), (3, 2), (4, 0)),
)

DEFAULT_PAYLINES: Final[tuple[PaylinePattern, ...]] = tuple(
    PaylinePattern(idx + 1, cells) for idx, cells in enumerate(DEFAULT_LINE_CELLS)
)

DEFAULT_OUTCOMES: Final[tuple[Outcome, ...]] = (
    Outcome("lose", "No win", MultiplierRange(0, 0), 600),
    Outcome("small", "Small win", MultiplierRange(1, 10), 300),
    Outcome("medium", "Medium win", MultiplierRange(11, 50), 80),
    Outcome("big", "Big win", MultiplierRange(51, 200), 18),
    Outcome("jackpot", "Jackpot", MultiplierRange(201, 500), 2),
)


def default_config() -> EngineConfig:
    """Return a fresh configuration built from the default tables."""

    return EngineConfig(
        board=DEFAULT_BOARD,
        symbols=SymbolCatalog(DEFAULT_SYMBOLS),
        paylines=PaylineTable(DEFAULT_PAYLINES),
        outcomes=OutcomeTable(DEFAULT_OUTCOMES),
    )


# ---- Mapping / JSON conversion ----------------------------------------------


def _pick(mapping: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key, accepting camelCase and snake_case spellings."""

    for key in keys:
        if key in mapping:
            return mapping[key]
    return default


def _number(value: Any, field_name: str, owner: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"Field '{field_name}' must be numeric", {"entry": owner, "value": value}
        ) from exc


def _integer(value: Any, field_name: str, owner: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"Field '{field_name}' must be an integer", {"entry": owner, "value": value}
        ) from exc


def _mapping(value: Any, field_name: str, owner: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(
            f"Field '{field_name}' must be an object", {"entry": owner, "value": value}
        )
    return value


def _entries(value: Any, field_name: str) -> Sequence[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise ConfigurationError(f"Section '{field_name}' must be a list", {"value": value})
    return value


def symbol_from_mapping(raw: Mapping[str, Any]) -> Symbol:
    """Parse one symbol entry, resolving legacy scatter fields into a single variant.

    Raises
    ------
    ConfigurationError
        If a required field is missing or malformed.
    """

    if not isinstance(raw, Mapping):
        raise ConfigurationError("Symbol entry must be an object", {"value": raw})
    symbol_id = raw.get("id")
    if not isinstance(symbol_id, str) or not symbol_id:
        raise ConfigurationError("Symbol entry needs a string 'id'", {"value": raw})

    try:
        kind = SymbolKind(raw.get("type", SymbolKind.NORMAL.value))
        category = SymbolCategory(raw.get("category", SymbolCategory.LOW.value))
    except ValueError as exc:
        raise ConfigurationError(str(exc), {"symbol_id": symbol_id}) from exc

    raw_payouts = _mapping(raw.get("payouts") or {}, "payouts", symbol_id)
    payouts = PayoutTiers(
        match3=_number(raw_payouts.get("match3", 0), "payouts.match3", symbol_id),
        match4=_number(raw_payouts.get("match4", 0), "payouts.match4", symbol_id),
        match5=_number(raw_payouts.get("match5", 0), "payouts.match5", symbol_id),
    )
    weight = _number(
        _pick(raw, "appearanceWeight", "appearance_weight", default=1),
        "appearanceWeight",
        symbol_id,
    )

    wild = None
    if kind is SymbolKind.WILD:
        raw_wild = _mapping(
            _pick(raw, "wildConfig", "wild_config", default={}) or {}, "wildConfig", symbol_id
        )
        wild = WildConfig(
            can_replace_normal=bool(
                _pick(raw_wild, "canReplaceNormal", "can_replace_normal", default=True)
            ),
            can_replace_special=bool(
                _pick(raw_wild, "canReplaceSpecial", "can_replace_special", default=False)
            ),
        )

    scatter = None
    if kind is SymbolKind.SCATTER:
        raw_scatter = _pick(raw, "scatterPayoutConfig", "scatter_payout", default=None)
        if raw_scatter is not None:
            raw_scatter = _mapping(raw_scatter, "scatterPayoutConfig", symbol_id)
            if "scatterConfig" in raw or "fsTriggerConfig" in raw:
                logger.debug("Dropping legacy scatter fields on symbol '%s'", symbol_id)
            raw_counts = _pick(raw_scatter, "payoutByCount", "payout_by_count", default={})
            try:
                payout_by_count = {int(k): float(v) for k, v in raw_counts.items()}
            except (AttributeError, TypeError, ValueError) as exc:
                raise ConfigurationError(
                    "Scatter payoutByCount must map counts to numbers",
                    {"symbol_id": symbol_id},
                ) from exc
            scatter = ScatterPayout(
                min_count=_integer(
                    _pick(raw_scatter, "minCount", "min_count", default=3), "minCount", symbol_id
                ),
                payout_by_count=payout_by_count,
            )
        elif "scatterConfig" in raw:
            logger.debug("Symbol '%s' only has legacy scatterConfig; no scatter payout", symbol_id)

    return Symbol(
        id=symbol_id,
        name=str(raw.get("name", symbol_id)),
        kind=kind,
        category=category,
        payouts=payouts,
        appearance_weight=weight,
        wild=wild,
        scatter=scatter,
    )


def outcome_from_mapping(raw: Mapping[str, Any]) -> Outcome:
    if not isinstance(raw, Mapping) or "id" not in raw:
        raise ConfigurationError("Outcome entry needs an 'id'", {"value": raw})
    outcome_id = str(raw["id"])
    raw_range = _pick(raw, "multiplierRange", "multiplier_range", default=None)
    if not isinstance(raw_range, Mapping):
        raise ConfigurationError("Outcome needs a multiplierRange", {"outcome_id": outcome_id})
    multiplier_range = MultiplierRange(
        _number(raw_range.get("min"), "multiplierRange.min", outcome_id),
        _number(raw_range.get("max"), "multiplierRange.max", outcome_id),
    )
    return Outcome(
        id=outcome_id,
        name=str(raw.get("name", outcome_id)),
        multiplier_range=multiplier_range,
        weight=_number(raw.get("weight", 0), "weight", outcome_id),
    )


def payline_from_mapping(raw: Mapping[str, Any], fallback_id: int) -> PaylinePattern:
    raw = _mapping(raw, "patterns", f"line {fallback_id}")
    cells = _pick(raw, "positions", "cells", default=None)
    if not isinstance(cells, Sequence) or not cells:
        raise ConfigurationError("Payline needs a non-empty 'positions' list", {"value": raw})
    try:
        parsed = tuple((int(col), int(row)) for col, row in cells)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError("Payline positions must be [col, row] pairs",
                                 {"value": raw}) from exc
    line_id = _integer(raw.get("id", fallback_id), "id", f"line {fallback_id}")
    return PaylinePattern(line_id, parsed)


def config_from_mapping(raw: Mapping[str, Any]) -> EngineConfig:
    """Build an :class:`EngineConfig` from the designer JSON shape.

    Missing sections fall back to the default tables; malformed sections raise.

    Parameters
    ----------
    raw:
        Mapping with optional ``boardConfig``, ``symbols``, ``outcomes``
        (or ``outcomeConfig``) and ``linesConfig`` sections.

    Returns
    -------
    EngineConfig
        Immutable configuration snapshot.
    """

    if not isinstance(raw, Mapping):
        raise ConfigurationError("Configuration root must be an object")
    base = default_config()

    raw_board = _pick(raw, "boardConfig", "board", default=None)
    board = base.board
    if raw_board is not None:
        try:
            board = BoardConfig(cols=int(raw_board["cols"]), rows=int(raw_board["rows"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigurationError("boardConfig needs integer cols and rows",
                                     {"value": raw_board}) from exc

    raw_symbols = raw.get("symbols")
    symbols = base.symbols
    if raw_symbols is not None:
        symbols = SymbolCatalog(
            symbol_from_mapping(entry) for entry in _entries(raw_symbols, "symbols")
        )

    raw_outcomes = _pick(raw, "outcomes", "outcomeConfig", default=None)
    outcomes = base.outcomes
    if raw_outcomes is not None:
        outcomes = OutcomeTable(
            outcome_from_mapping(entry) for entry in _entries(raw_outcomes, "outcomes")
        )

    raw_lines = _pick(raw, "linesConfig", "paylines", default=None)
    paylines = base.paylines
    if raw_lines is not None:
        patterns = raw_lines.get("patterns", []) if isinstance(raw_lines, Mapping) else raw_lines
        paylines = PaylineTable(
            payline_from_mapping(entry, idx + 1)
            for idx, entry in enumerate(_entries(patterns, "linesConfig.patterns"))
        )
        if isinstance(raw_lines, Mapping) and "count" in raw_lines:
            count = _integer(raw_lines["count"], "linesConfig.count", "linesConfig")
            paylines = paylines.with_count(count, board)

    return EngineConfig(board=board, symbols=symbols, paylines=paylines, outcomes=outcomes)


def symbol_to_mapping(symbol: Symbol) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "id": symbol.id,
        "name": symbol.name,
        "type": symbol.kind.value,
        "category": symbol.category.value,
        "payouts": {
            "match3": symbol.payouts.match3,
            "match4": symbol.payouts.match4,
            "match5": symbol.payouts.match5,
        },
        "appearanceWeight": symbol.appearance_weight,
    }
    if symbol.wild is not None:
        entry["wildConfig"] = {
            "canReplaceNormal": symbol.wild.can_replace_normal,
            "canReplaceSpecial": symbol.wild.can_replace_special,
        }
    if symbol.scatter is not None:
        entry["scatterPayoutConfig"] = {
            "minCount": symbol.scatter.min_count,
            "payoutByCount": {
                str(count): value for count, value in sorted(symbol.scatter.payout_by_count.items())
            },
        }
    return entry


def config_to_mapping(config: EngineConfig) -> dict[str, Any]:
    """Return the JSON-compatible mapping accepted by :func:`config_from_mapping`."""

    return {
        "boardConfig": {"cols": config.board.cols, "rows": config.board.rows},
        "symbols": [symbol_to_mapping(symbol) for symbol in config.symbols],
        "outcomes": [
            {
                "id": outcome.id,
                "name": outcome.name,
                "multiplierRange": {
                    "min": outcome.multiplier_range.min,
                    "max": outcome.multiplier_range.max,
                },
                "weight": outcome.weight,
            }
            for outcome in config.outcomes
        ],
        "linesConfig": {
            "count": config.paylines.count,
            "patterns": [
                {"id": pattern.id, "positions": [list(cell) for cell in pattern.cells]}
                for pattern in config.paylines
            ],
        },
    }


def load_engine_config(path: str | Path | None) -> EngineConfig:
    """Load a configuration file, returning the defaults when it does not exist.

    Raises
    ------
    ConfigurationError
        If the file exists but is not valid JSON or holds invalid tables.
    """

    if not path:
        return default_config()
    config_path = Path(path)
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info("No configuration at %s; using defaults", config_path)
        return default_config()
    try:
        raw_data = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError("Configuration file is not valid JSON",
                                 {"path": str(config_path)}) from exc
    return config_from_mapping(raw_data)


def save_engine_config(config: EngineConfig, path: str | Path) -> None:
    """Persist ``config`` as UTF-8 JSON."""

    config_path = Path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        json.dumps(config_to_mapping(config), ensure_ascii=False, indent=2), encoding="utf-8"
    )
