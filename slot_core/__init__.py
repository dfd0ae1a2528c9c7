"""Slot game mathematics: symbol tables, board pools, spins and RTP analysis."""

from __future__ import annotations

from .api import RTPAnalysisResult, SlotEngine, analyze_configuration
from .catalog import (
    EngineConfig,
    OutcomeProbability,
    OutcomeTable,
    PaylineTable,
    SymbolCatalog,
    middle_row_pattern,
)
from .data import (
    ATTEMPT_MULTIPLIER,
    DEFAULT_BOARD,
    DEFAULT_OUTCOMES,
    DEFAULT_PAYLINES,
    DEFAULT_POOL_CAP,
    DEFAULT_SYMBOLS,
    MAX_POOL_CAP,
    RTP_TOLERANCE,
    config_from_mapping,
    config_to_mapping,
    default_config,
    load_engine_config,
    save_engine_config,
)
from .distribution import (
    HistogramBucket,
    OutcomeCoverage,
    ScoreDistribution,
    build_histogram,
    estimate_score_distribution,
    outcome_coverage,
)
from .errors import (
    ConfigurationError,
    EngineInvariantError,
    NoOutcomesAvailable,
    PoolEmptyForOutcome,
    PoolsNotBuilt,
    RuntimeUnavailableError,
    SlotEngineError,
)
from .models import (
    Board,
    BoardConfig,
    CoverageStatus,
    LineWin,
    MultiplierRange,
    Outcome,
    PaylinePattern,
    PayoutTiers,
    PoolStatus,
    RTPBreakdown,
    ScatterPayout,
    SettlementMeta,
    Symbol,
    SymbolCategory,
    SymbolKind,
    WildConfig,
    WinBreakdown,
)
from .pools import BuildResult, BuildWarning, PoolBuilder, PoolSet, build_pools
from .rtp import (
    PoolRTPReport,
    RTPComparison,
    SimulationStats,
    actual_pool_rtp,
    actual_rtp_from_stats,
    additional_stats,
    compare_rtp,
    format_rtp_breakdown,
    theoretical_breakdown,
)
from .sampler import BoardSampler, sample_board
from .scoring import PayoutEvaluator, evaluate
from .simulation import (
    SimulationResult,
    SimulationStatistics,
    SpinRecord,
    calculate_statistics,
    records_frame,
    simulate_many,
)
from .spin import SpinExecutor, SpinResult, settle

__all__ = [
    "ATTEMPT_MULTIPLIER",
    "Board",
    "BoardConfig",
    "BoardSampler",
    "BuildResult",
    "BuildWarning",
    "ConfigurationError",
    "CoverageStatus",
    "DEFAULT_BOARD",
    "DEFAULT_OUTCOMES",
    "DEFAULT_PAYLINES",
    "DEFAULT_POOL_CAP",
    "DEFAULT_SYMBOLS",
    "EngineConfig",
    "EngineInvariantError",
    "HistogramBucket",
    "LineWin",
    "MAX_POOL_CAP",
    "MultiplierRange",
    "NoOutcomesAvailable",
    "Outcome",
    "OutcomeCoverage",
    "OutcomeProbability",
    "OutcomeTable",
    "PaylinePattern",
    "PaylineTable",
    "PayoutEvaluator",
    "PayoutTiers",
    "PoolBuilder",
    "PoolEmptyForOutcome",
    "PoolRTPReport",
    "PoolSet",
    "PoolStatus",
    "PoolsNotBuilt",
    "RTPAnalysisResult",
    "RTPBreakdown",
    "RTPComparison",
    "RTP_TOLERANCE",
    "RuntimeUnavailableError",
    "ScatterPayout",
    "ScoreDistribution",
    "SettlementMeta",
    "SimulationResult",
    "SimulationStatistics",
    "SimulationStats",
    "SlotEngine",
    "SlotEngineError",
    "SpinExecutor",
    "SpinRecord",
    "SpinResult",
    "Symbol",
    "SymbolCatalog",
    "SymbolCategory",
    "SymbolKind",
    "WildConfig",
    "WinBreakdown",
    "actual_pool_rtp",
    "actual_rtp_from_stats",
    "additional_stats",
    "analyze_configuration",
    "build_histogram",
    "build_pools",
    "calculate_statistics",
    "compare_rtp",
    "config_from_mapping",
    "config_to_mapping",
    "default_config",
    "estimate_score_distribution",
    "evaluate",
    "format_rtp_breakdown",
    "load_engine_config",
    "middle_row_pattern",
    "outcome_coverage",
    "records_frame",
    "sample_board",
    "save_engine_config",
    "settle",
    "simulate_many",
    "theoretical_breakdown",
]
