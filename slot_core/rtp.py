"""Theoretical and empirical return-to-player calculations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .catalog import EngineConfig, OutcomeTable, SymbolCatalog
from .data import RTP_TOLERANCE
from .errors import EngineInvariantError
from .models import BoardConfig, RTPBreakdown, SettlementMeta, SymbolId, WinBreakdown
from .pools import PoolSet
from .scoring import PayoutEvaluator

logger = logging.getLogger(__name__)


# ---- Binomial helpers --------------------------------------------------------


def binomial_coefficient(n: int, k: int) -> float:
    """Return C(n, k) with a running product instead of factorials."""

    if k < 0 or k > n:
        return 0.0
    k = min(k, n - k)
    result = 1.0
    for i in range(k):
        result = result * (n - i) / (i + 1)
    return result


def binomial_probability(n: int, k: int, p: float) -> float:
    """Return P(X = k) for X ~ Binomial(n, p)."""

    return binomial_coefficient(n, k) * p**k * (1.0 - p) ** (n - k)


def binomial_tail(n: int, k: int, p: float) -> float:
    """Return P(X >= k) for X ~ Binomial(n, p)."""

    if k <= 0:
        return 1.0
    return sum(binomial_probability(n, j, p) for j in range(k, n + 1))


def cell_probability(symbols: SymbolCatalog, symbol_id: SymbolId, weighted: bool = False) -> float:
    """Return the chance that one cell shows ``symbol_id``.

    Boards are sampled uniformly by index, so the default is ``1 / len(symbols)``.
    ``weighted=True`` uses appearance weights instead (reel-strip view).
    """

    symbol = symbols.get(symbol_id)
    if symbol is None:
        return 0.0
    if not weighted:
        return 1.0 / len(symbols)
    total = symbols.total_appearance_weight()
    return symbol.appearance_weight / total if total > 0 else 0.0


# ---- Theoretical path --------------------------------------------------------


def theoretical_line_rtp(outcomes: OutcomeTable) -> float:
    """Weighted average of bucket midpoints, in percent."""

    total_weight = outcomes.total_weight()
    if total_weight <= 0:
        return 0.0
    weighted_sum = 0.0
    for outcome in outcomes:
        probability = outcome.weight / total_weight
        weighted_sum += probability * outcome.multiplier_range.midpoint
    return weighted_sum * 100


def scatter_rtp_contribution(
    symbols: SymbolCatalog, board: BoardConfig, weighted: bool = False
) -> float:
    """Expected scatter payout of an unconditioned random board, in percent."""

    scatter = symbols.scatter_symbol
    if scatter is None or scatter.scatter is None:
        return 0.0
    config = scatter.scatter
    p = cell_probability(symbols, scatter.id, weighted=weighted)
    cells = board.cell_count
    contribution = 0.0
    for count in range(config.min_count, cells + 1):
        contribution += binomial_probability(cells, count, p) * config.payout_for(count)
    return contribution * 100


def scatter_trigger_probability(
    symbols: SymbolCatalog, board: BoardConfig, weighted: bool = False
) -> float:
    """Return P(scatter count >= min_count) on an unconditioned random board."""

    scatter = symbols.scatter_symbol
    if scatter is None or scatter.scatter is None:
        return 0.0
    p = cell_probability(symbols, scatter.id, weighted=weighted)
    return binomial_tail(board.cell_count, scatter.scatter.min_count, p)


def theoretical_breakdown(config: EngineConfig, weighted: bool = False) -> RTPBreakdown:
    """Closed-form RTP of a configuration.

    Pools are filled on the total board score, so the weighted bucket
    midpoint already prices scatter wins: it is both ``line_rtp`` and
    ``total_rtp``. ``scatter_rtp`` is the binomial scatter share of an
    unconditioned board, kept for reference and not added to the total.
    """

    bucket_rtp = theoretical_line_rtp(config.outcomes)
    scatter = config.symbols.scatter_symbol
    expected_count = 0.0
    if scatter is not None and scatter.scatter is not None:
        p = cell_probability(config.symbols, scatter.id, weighted=weighted)
        expected_count = config.board.cell_count * p
    return RTPBreakdown(
        line_rtp=bucket_rtp,
        scatter_rtp=scatter_rtp_contribution(config.symbols, config.board, weighted),
        total_rtp=bucket_rtp,
        trigger_probability=scatter_trigger_probability(config.symbols, config.board, weighted),
        expected_count=expected_count,
        avg_per_unit=bucket_rtp / 100,
    )


# ---- Empirical path: pools ---------------------------------------------------


@dataclass(frozen=True)
class OutcomeContribution:
    outcome_id: str
    outcome_name: str
    weight: float
    probability: float
    avg_score: float
    avg_line_score: float
    avg_scatter_score: float
    contribution: float
    board_count: int


@dataclass(frozen=True)
class PoolRTPReport:
    breakdown: RTPBreakdown
    outcome_details: list[OutcomeContribution]


def _pool_breakdowns(
    pools: PoolSet, outcome_id: str, evaluator: Optional[PayoutEvaluator]
) -> tuple[WinBreakdown, ...]:
    if evaluator is None:
        return pools.breakdowns_for(outcome_id)
    return tuple(evaluator.evaluate(board) for board in pools.boards_for(outcome_id))


def actual_pool_rtp(pools: PoolSet, config: Optional[EngineConfig] = None) -> PoolRTPReport:
    """Derive RTP from the boards actually stored in ``pools``.

    Parameters
    ----------
    pools:
        Published pool generation.
    config:
        Configuration to score the boards with. Defaults to the configuration
        the pools were built from; passing the live configuration exposes
        drift between stored boards and current payout rules.

    Raises
    ------
    EngineInvariantError
        If a pooled board scores outside its own bucket under the build configuration.
    """

    scoring_config = config or pools.config
    evaluator = None
    if scoring_config is not pools.config:
        evaluator = PayoutEvaluator(scoring_config.paylines, scoring_config.symbols)

    outcomes = scoring_config.outcomes
    total_weight = outcomes.total_weight()
    details: list[OutcomeContribution] = []
    line_rtp = scatter_rtp = 0.0
    weighted_triggers = weighted_counts = 0.0

    for outcome in outcomes:
        breakdowns = _pool_breakdowns(pools, outcome.id, evaluator)
        probability = outcome.weight / total_weight if total_weight > 0 else 0.0
        if breakdowns:
            totals = np.fromiter((b.total_score for b in breakdowns), dtype=float)
            if evaluator is None:
                bucket = outcome.multiplier_range
                outside = np.flatnonzero((totals < bucket.min) | (totals > bucket.max))
                if outside.size:
                    index = int(outside[0])
                    raise EngineInvariantError(
                        "Pooled board scores outside its bucket",
                        {
                            "outcome_id": outcome.id,
                            "score": float(totals[index]),
                            "board": pools.boards_for(outcome.id)[index].to_lists(),
                        },
                    )
            avg_score = float(totals.mean())
            avg_line = float(np.mean([b.line_score for b in breakdowns]))
            avg_scatter = float(np.mean([b.scatter_payout for b in breakdowns]))
            weighted_triggers += probability * float(
                np.mean([b.feature_triggered for b in breakdowns])
            )
            weighted_counts += probability * float(np.mean([b.scatter_count for b in breakdowns]))
        else:
            avg_score = outcome.multiplier_range.midpoint
            avg_line = avg_score
            avg_scatter = 0.0

        line_rtp += probability * avg_line * 100
        scatter_rtp += probability * avg_scatter * 100
        details.append(
            OutcomeContribution(
                outcome_id=outcome.id,
                outcome_name=outcome.name,
                weight=outcome.weight,
                probability=probability * 100,
                avg_score=avg_score,
                avg_line_score=avg_line,
                avg_scatter_score=avg_scatter,
                contribution=probability * avg_score * 100,
                board_count=len(breakdowns),
            )
        )

    total_rtp = line_rtp + scatter_rtp
    return PoolRTPReport(
        breakdown=RTPBreakdown(
            line_rtp=line_rtp,
            scatter_rtp=scatter_rtp,
            total_rtp=total_rtp,
            trigger_probability=weighted_triggers,
            expected_count=weighted_counts,
            avg_per_unit=total_rtp / 100,
        ),
        outcome_details=details,
    )


# ---- Empirical path: recorded spins ------------------------------------------


@dataclass
class SimulationStats:
    """Running totals over settled spins."""

    total_spins: int = 0
    total_bet: float = 0.0
    total_win: float = 0.0
    line_win: float = 0.0
    scatter_win: float = 0.0
    hit_count: int = 0
    max_win: float = 0.0
    trigger_count: int = 0
    scatter_symbols: int = 0

    def add(self, meta: SettlementMeta) -> None:
        self.total_spins += 1
        self.total_bet += meta.base_bet
        self.total_win += meta.win
        self.line_win += meta.line_win
        self.scatter_win += meta.scatter_win
        if meta.win > 0:
            self.hit_count += 1
        self.max_win = max(self.max_win, meta.win)
        if meta.feature_triggered:
            self.trigger_count += 1
        self.scatter_symbols += meta.scatter_count


def actual_rtp_from_stats(stats: SimulationStats) -> RTPBreakdown:
    line_rtp = stats.line_win / stats.total_bet * 100 if stats.total_bet > 0 else 0.0
    scatter_rtp = stats.scatter_win / stats.total_bet * 100 if stats.total_bet > 0 else 0.0
    spins = stats.total_spins
    return RTPBreakdown(
        line_rtp=line_rtp,
        scatter_rtp=scatter_rtp,
        total_rtp=line_rtp + scatter_rtp,
        trigger_probability=stats.trigger_count / spins if spins else 0.0,
        expected_count=stats.scatter_symbols / spins if spins else 0.0,
        avg_per_unit=stats.total_win / stats.total_bet if stats.total_bet > 0 else 0.0,
    )


@dataclass(frozen=True)
class AdditionalStats:
    hit_rate: float
    avg_win: float
    volatility: str


def additional_stats(stats: SimulationStats) -> AdditionalStats:
    """Return hit rate (percent), average winning amount and a volatility label."""

    hit_rate = stats.hit_count / stats.total_spins * 100 if stats.total_spins > 0 else 0.0
    avg_win = stats.total_win / stats.hit_count if stats.hit_count > 0 else 0.0
    if hit_rate > 35:
        volatility = "low"
    elif hit_rate > 25:
        volatility = "medium"
    else:
        volatility = "high"
    return AdditionalStats(hit_rate=hit_rate, avg_win=avg_win, volatility=volatility)


# ---- Consistency check -------------------------------------------------------


@dataclass(frozen=True)
class RTPComparison:
    theoretical_rtp: float
    actual_rtp: float
    tolerance: float

    @property
    def discrepancy(self) -> float:
        return self.theoretical_rtp - self.actual_rtp

    @property
    def within_tolerance(self) -> bool:
        return abs(self.discrepancy) <= self.tolerance


def compare_rtp(
    theoretical: RTPBreakdown,
    actual: RTPBreakdown,
    tolerance: float = RTP_TOLERANCE,
) -> RTPComparison:
    """Compare total RTPs; a gap beyond ``tolerance`` points signals a modelling defect."""

    comparison = RTPComparison(
        theoretical_rtp=theoretical.total_rtp,
        actual_rtp=actual.total_rtp,
        tolerance=tolerance,
    )
    if not comparison.within_tolerance:
        logger.warning(
            "RTP discrepancy %.4f points (theoretical %.4f%%, actual %.4f%%)",
            comparison.discrepancy,
            comparison.theoretical_rtp,
            comparison.actual_rtp,
        )
    return comparison


def format_rtp_breakdown(breakdown: RTPBreakdown, scatter_in_total: bool = True) -> str:
    """Render a breakdown; theoretical breakdowns pass ``scatter_in_total=False``."""

    scatter_label = "Scatter RTP"
    if not scatter_in_total:
        scatter_label = "Scatter RTP (unconditioned, not in total)"
    return "\n".join(
        (
            f"Line RTP: {breakdown.line_rtp:.2f}%",
            f"{scatter_label}: {breakdown.scatter_rtp:.2f}%",
            f"Total RTP: {breakdown.total_rtp:.2f}%",
        )
    )
