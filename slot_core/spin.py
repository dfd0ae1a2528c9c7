"""Single spin execution: draw an outcome, draw a pooled board, settle it."""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Optional

from .errors import ConfigurationError, PoolEmptyForOutcome, PoolsNotBuilt
from .models import Board, Outcome, SettlementMeta, WinBreakdown
from .pools import PoolBuilder, PoolSet
from .scoring import PayoutEvaluator


@dataclass(frozen=True)
class SpinResult:
    """Everything the presentation and reporting layers need about one spin."""

    outcome: Outcome
    board: Board
    breakdown: WinBreakdown
    meta: SettlementMeta
    generation: int

    @property
    def outcome_id(self) -> str:
        return self.outcome.id

    @property
    def win(self) -> float:
        return self.meta.win


def settle(
    breakdown: WinBreakdown,
    outcome_id: str,
    base_bet: float = 1.0,
    multiplier: float = 1.0,
) -> SettlementMeta:
    """Scale an evaluation into cash wins for ``base_bet`` and ``multiplier``."""

    factor = base_bet * multiplier
    winning_lines = tuple(replace(win, payout=win.payout * factor) for win in breakdown.line_wins)
    best_line = None
    if breakdown.best_line is not None:
        best_line = replace(breakdown.best_line, payout=breakdown.best_line.payout * factor)
    return SettlementMeta(
        outcome_id=outcome_id,
        win=breakdown.total_score * factor,
        line_win=breakdown.line_score * factor,
        scatter_win=breakdown.scatter_payout * factor,
        base_bet=base_bet,
        multiplier=multiplier,
        winning_lines=winning_lines,
        best_line=best_line,
        scatter_count=breakdown.scatter_count,
        feature_triggered=breakdown.feature_triggered,
    )


class SpinExecutor:
    """Serve spins from the pools currently published by a :class:`PoolBuilder`.

    Each spin reads one pool generation and evaluates with that generation's
    tables, so a concurrent rebuild never mixes configurations.
    """

    def __init__(self, pool_builder: PoolBuilder, rng: Optional[random.Random] = None) -> None:
        self._pool_builder = pool_builder
        self._rng = rng or random.Random()
        self._evaluators: dict[int, PayoutEvaluator] = {}

    @property
    def pools(self) -> PoolSet:
        """The generation currently published by the builder."""

        return self._pool_builder.pools

    def is_ready(self) -> bool:
        return self._pool_builder.pools.is_ready()

    def _evaluator_for(self, pools: PoolSet) -> PayoutEvaluator:
        evaluator = self._evaluators.get(pools.generation)
        if evaluator is None:
            self._evaluators = {
                pools.generation: PayoutEvaluator(pools.config.paylines, pools.config.symbols)
            }
            evaluator = self._evaluators[pools.generation]
        return evaluator

    def spin(
        self,
        base_bet: float = 1.0,
        multiplier: float = 1.0,
        pools: Optional[PoolSet] = None,
    ) -> SpinResult:
        """Execute one spin.

        ``pools`` pins the spin to a generation taken earlier; by default the
        currently published one is used.

        Raises
        ------
        ConfigurationError
            If ``base_bet`` is not positive.
        PoolsNotBuilt
            If no pool holds a board.
        PoolEmptyForOutcome
            If the drawn outcome's pool is empty.
        """

        if base_bet <= 0:
            raise ConfigurationError("Base bet must be positive", {"base_bet": base_bet})
        if pools is None:
            pools = self._pool_builder.pools
        if not pools.is_ready():
            raise PoolsNotBuilt()

        outcome = pools.config.outcomes.draw_weighted(self._rng)
        board = pools.draw_board(outcome.id, self._rng)
        if board is None:
            raise PoolEmptyForOutcome(outcome.id, outcome.name)

        breakdown = self._evaluator_for(pools).evaluate(board)
        return SpinResult(
            outcome=outcome,
            board=board,
            breakdown=breakdown,
            meta=settle(breakdown, outcome.id, base_bet, multiplier),
            generation=pools.generation,
        )
