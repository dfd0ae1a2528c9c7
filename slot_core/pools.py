"""Rejection-sampled board pools, one slice per outcome bucket."""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Optional

from .catalog import EngineConfig
from .data import ATTEMPT_MULTIPLIER, DEFAULT_BUILD_CHUNK_SIZE, DEFAULT_POOL_CAP, MAX_POOL_CAP
from .errors import ConfigurationError
from .models import Board, Outcome, PoolStatus, WinBreakdown
from .sampler import BoardSampler
from .scoring import PayoutEvaluator

logger = logging.getLogger(__name__)

ProgressFn = Callable[[int, int], None]


@dataclass(frozen=True)
class PoolSet:
    """One immutable generation of pools.

    Boards of every outcome live in one arena; ``slices`` maps an outcome id
    to its ``[start, stop)`` range. A new build publishes a new ``PoolSet``
    so readers never observe a half-built generation.
    """

    config: EngineConfig
    boards: tuple[Board, ...]
    breakdowns: tuple[WinBreakdown, ...]
    slices: Mapping[str, tuple[int, int]]
    cap: int
    generation: int = 0

    @classmethod
    def empty(cls, config: EngineConfig, cap: int, generation: int = 0) -> PoolSet:
        return cls(config=config, boards=(), breakdowns=(), slices={}, cap=cap,
                   generation=generation)

    def size(self, outcome_id: str) -> int:
        start, stop = self.slices.get(outcome_id, (0, 0))
        return stop - start

    def boards_for(self, outcome_id: str) -> tuple[Board, ...]:
        start, stop = self.slices.get(outcome_id, (0, 0))
        return self.boards[start:stop]

    def breakdowns_for(self, outcome_id: str) -> tuple[WinBreakdown, ...]:
        start, stop = self.slices.get(outcome_id, (0, 0))
        return self.breakdowns[start:stop]

    def is_ready(self) -> bool:
        """Return True when at least one outcome has a board."""

        return any(stop > start for start, stop in self.slices.values())

    def draw_board(self, outcome_id: str, rng: random.Random) -> Optional[Board]:
        start, stop = self.slices.get(outcome_id, (0, 0))
        if stop <= start:
            return None
        return self.boards[start + rng.randrange(stop - start)]

    def status(self) -> list[PoolStatus]:
        return [
            PoolStatus(
                outcome_id=outcome.id,
                outcome_name=outcome.name,
                generated=self.size(outcome.id),
                cap=self.cap,
            )
            for outcome in self.config.outcomes
        ]


@dataclass(frozen=True)
class BuildWarning:
    """Sampling shortfall for one bucket; reported, never raised."""

    outcome_id: str
    outcome_name: str
    generated: int
    target: int
    attempts_exhausted: bool

    @property
    def severity(self) -> str:
        return "error" if self.generated == 0 else "warning"

    @property
    def message(self) -> str:
        if self.generated == 0:
            return (
                f"'{self.outcome_name}' could not generate any board; "
                "check that the multiplier range is reachable"
            )
        if self.attempts_exhausted:
            return (
                f"'{self.outcome_name}' hit the attempt limit, "
                f"generated {self.generated}/{self.target} boards"
            )
        return (
            f"'{self.outcome_name}' generated only {self.generated}/{self.target} boards; "
            "widen the range or adjust symbol payouts"
        )


@dataclass
class BuildResult:
    pools: PoolSet
    statuses: list[PoolStatus]
    warnings: list[BuildWarning] = field(default_factory=list)
    attempts: dict[str, int] = field(default_factory=dict)
    aborted: bool = False

    @property
    def success(self) -> bool:
        return not self.aborted and not self.warnings

    @property
    def errors(self) -> list[str]:
        return [warning.message for warning in self.warnings]


def validate_cap(cap: int) -> int:
    if not 1 <= cap <= MAX_POOL_CAP:
        raise ConfigurationError(
            f"Pool cap must be between 1 and {MAX_POOL_CAP}", {"cap": cap}
        )
    return cap


class PoolBuilder:
    """Build and publish pools for every outcome of a configuration.

    Parameters
    ----------
    config:
        Configuration snapshot the pools are generated from.
    rng:
        Random source shared by the sampler; defaults to a freshly seeded one.
    default_cap:
        Target board count per bucket when :meth:`build` gets no cap.
    chunk_size:
        Attempts between progress callbacks and abort checks.
    """

    def __init__(
        self,
        config: EngineConfig,
        rng: Optional[random.Random] = None,
        default_cap: int = DEFAULT_POOL_CAP,
        chunk_size: int = DEFAULT_BUILD_CHUNK_SIZE,
    ) -> None:
        self._config = config
        self._rng = rng or random.Random()
        self._default_cap = validate_cap(default_cap)
        self._chunk_size = max(1, chunk_size)
        self._publish_lock = threading.Lock()
        self._abort = threading.Event()
        self._generation = 0
        self._pools = PoolSet.empty(config, self._default_cap)

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def pools(self) -> PoolSet:
        """Return the currently published generation."""

        return self._pools

    @property
    def default_cap(self) -> int:
        return self._default_cap

    @default_cap.setter
    def default_cap(self, cap: int) -> None:
        self._default_cap = validate_cap(cap)

    def set_config(self, config: EngineConfig) -> None:
        """Swap in a new configuration and drop pools built from the old one."""

        self._config = config
        self.clear()

    def clear(self) -> None:
        self._publish(PoolSet.empty(self._config, self._default_cap, self._next_generation()))

    def abort(self) -> None:
        """Ask a running :meth:`build` to stop at the next chunk boundary."""

        self._abort.set()

    def status(self) -> list[PoolStatus]:
        return self._pools.status()

    def is_ready(self) -> bool:
        return self._pools.is_ready()

    def draw_board(self, outcome_id: str, rng: Optional[random.Random] = None) -> Optional[Board]:
        return self._pools.draw_board(outcome_id, rng or self._rng)

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _publish(self, pools: PoolSet) -> None:
        with self._publish_lock:
            self._pools = pools

    def _fill_bucket(
        self,
        outcome: Outcome,
        target: int,
        sampler: BoardSampler,
        evaluator: PayoutEvaluator,
        on_chunk: Callable[[int], bool],
    ) -> tuple[list[Board], list[WinBreakdown], int]:
        boards: list[Board] = []
        breakdowns: list[WinBreakdown] = []
        attempts = 0
        max_attempts = target * ATTEMPT_MULTIPLIER
        rng = self._rng
        bucket = outcome.multiplier_range
        while len(boards) < target and attempts < max_attempts:
            chunk_end = min(attempts + self._chunk_size, max_attempts)
            while len(boards) < target and attempts < chunk_end:
                board = sampler.sample(rng)
                breakdown = evaluator.evaluate(board)
                attempts += 1
                if bucket.contains(breakdown.total_score):
                    boards.append(board)
                    breakdowns.append(breakdown)
            if not on_chunk(attempts):
                break
        return boards, breakdowns, attempts

    def build(
        self,
        cap: Optional[int] = None,
        progress: Optional[ProgressFn] = None,
        abort: Optional[threading.Event] = None,
    ) -> BuildResult:
        """Rebuild every pool and publish the new generation atomically.

        Each bucket draws at most ``cap * ATTEMPT_MULTIPLIER`` boards and keeps
        those whose total score lies inside its multiplier range. Buckets that
        fall short are reported in :attr:`BuildResult.warnings`.

        Parameters
        ----------
        cap:
            Target boards per bucket, ``1..MAX_POOL_CAP``.
        progress:
            Called as ``progress(attempts_done, attempt_budget)`` between chunks.
        abort:
            Extra cancellation flag checked between chunks, alongside :meth:`abort`.

        Returns
        -------
        BuildResult
            Statuses and warnings; ``aborted`` builds keep the previous pools.
        """

        target = validate_cap(cap if cap is not None else self._default_cap)
        config = self._config
        sampler = BoardSampler(config.symbols, config.board)
        evaluator = PayoutEvaluator(config.paylines, config.symbols)
        outcomes = config.outcomes.outcomes
        budget = len(outcomes) * target * ATTEMPT_MULTIPLIER
        self._abort.clear()

        arena_boards: list[Board] = []
        arena_breakdowns: list[WinBreakdown] = []
        slices: dict[str, tuple[int, int]] = {}
        warnings: list[BuildWarning] = []
        attempts_by_outcome: dict[str, int] = {}
        spent = 0
        aborted = False

        for outcome in outcomes:
            def on_chunk(attempts: int, offset: int = spent) -> bool:
                if progress is not None:
                    progress(offset + attempts, budget)
                return not (self._abort.is_set() or (abort is not None and abort.is_set()))

            boards, breakdowns, attempts = self._fill_bucket(
                outcome, target, sampler, evaluator, on_chunk
            )
            spent += target * ATTEMPT_MULTIPLIER
            if self._abort.is_set() or (abort is not None and abort.is_set()):
                aborted = True
                break

            start = len(arena_boards)
            arena_boards.extend(boards)
            arena_breakdowns.extend(breakdowns)
            slices[outcome.id] = (start, len(arena_boards))
            attempts_by_outcome[outcome.id] = attempts

            generated = len(boards)
            if generated < target:
                warning = BuildWarning(
                    outcome_id=outcome.id,
                    outcome_name=outcome.name,
                    generated=generated,
                    target=target,
                    attempts_exhausted=attempts >= target * ATTEMPT_MULTIPLIER,
                )
                warnings.append(warning)
                logger.warning("Pool shortfall: %s", warning.message)

        if aborted:
            logger.info("Pool build aborted; keeping generation %d", self._pools.generation)
            current = self._pools
            return BuildResult(
                pools=current,
                statuses=current.status(),
                warnings=warnings,
                attempts=attempts_by_outcome,
                aborted=True,
            )

        pools = PoolSet(
            config=config,
            boards=tuple(arena_boards),
            breakdowns=tuple(arena_breakdowns),
            slices=slices,
            cap=target,
            generation=self._next_generation(),
        )
        self._publish(pools)
        logger.info(
            "Built generation %d: %d boards across %d outcomes (%d shortfalls)",
            pools.generation,
            len(arena_boards),
            len(outcomes),
            len(warnings),
        )
        return BuildResult(
            pools=pools,
            statuses=pools.status(),
            warnings=warnings,
            attempts=attempts_by_outcome,
        )


def build_pools(
    config: EngineConfig,
    target_count: int = DEFAULT_POOL_CAP,
    rng: Optional[random.Random] = None,
) -> BuildResult:
    """One-shot build without keeping a :class:`PoolBuilder` around."""

    return PoolBuilder(config, rng=rng, default_cap=target_count).build()
