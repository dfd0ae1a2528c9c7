"""High-level entry points used by UI and reporting callers."""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass
from time import perf_counter
from typing import Optional

from .catalog import EngineConfig
from .data import DEFAULT_POOL_CAP, DEFAULT_SAMPLE_SIZE, RTP_TOLERANCE, default_config
from .distribution import (
    OutcomeCoverage,
    ScoreDistribution,
    estimate_score_distribution,
    outcome_coverage,
)
from .models import PoolStatus, RTPBreakdown
from .pools import BuildResult, PoolBuilder, ProgressFn
from .rtp import (
    PoolRTPReport,
    RTPComparison,
    actual_pool_rtp,
    compare_rtp,
    theoretical_breakdown,
)
from .simulation import SimulationResult, simulate_many
from .spin import SpinExecutor, SpinResult

logger = logging.getLogger(__name__)


class SlotEngine:
    """Caller-owned bundle of a configuration, its pools and a seeded RNG.

    Parameters
    ----------
    config:
        Tables to run; the defaults when omitted.
    seed:
        Seed for every random draw; ``None`` picks a fresh seed.
    default_cap:
        Boards per outcome pool when :meth:`build_pools` gets no cap.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        seed: Optional[int] = None,
        default_cap: int = DEFAULT_POOL_CAP,
    ) -> None:
        self.rng = random.Random(seed)
        self.pool_builder = PoolBuilder(config or default_config(), rng=self.rng,
                                        default_cap=default_cap)
        self.executor = SpinExecutor(self.pool_builder, rng=self.rng)

    @property
    def config(self) -> EngineConfig:
        return self.pool_builder.config

    def set_config(self, config: EngineConfig) -> None:
        """Replace the configuration; pools must be rebuilt before the next spin."""

        self.pool_builder.set_config(config)

    def build_pools(
        self,
        cap: Optional[int] = None,
        progress: Optional[ProgressFn] = None,
        abort: Optional[threading.Event] = None,
    ) -> BuildResult:
        return self.pool_builder.build(cap, progress=progress, abort=abort)

    def pool_status(self) -> list[PoolStatus]:
        return self.pool_builder.status()

    def is_ready(self) -> bool:
        return self.executor.is_ready()

    def spin(self, base_bet: float = 1.0, multiplier: float = 1.0) -> SpinResult:
        return self.executor.spin(base_bet, multiplier)

    def theoretical_rtp(self) -> RTPBreakdown:
        return theoretical_breakdown(self.config)

    def actual_rtp(self) -> PoolRTPReport:
        """RTP realised by the published pools, scored with their own tables."""

        return actual_pool_rtp(self.pool_builder.pools)

    def score_distribution(self, sample_size: int = DEFAULT_SAMPLE_SIZE) -> ScoreDistribution:
        return estimate_score_distribution(self.config, sample_size, rng=self.rng)

    def coverage(self, sample_size: int = DEFAULT_SAMPLE_SIZE) -> list[OutcomeCoverage]:
        return outcome_coverage(self.score_distribution(sample_size), self.config.outcomes)

    def simulate(
        self,
        spins: int,
        base_bet: float = 1.0,
        progress: Optional[ProgressFn] = None,
        abort: Optional[threading.Event] = None,
    ) -> SimulationResult:
        return simulate_many(
            self.executor,
            spins=spins,
            base_bet=base_bet,
            progress=progress,
            abort=abort,
        )


@dataclass
class RTPAnalysisResult:
    """Bundle of every RTP view of one configuration."""

    engine: SlotEngine
    build: BuildResult
    theoretical: RTPBreakdown
    actual: PoolRTPReport
    comparison: RTPComparison
    distribution: Optional[ScoreDistribution]
    coverage: list[OutcomeCoverage]
    simulation: Optional[SimulationResult]
    compute_seconds: float


def analyze_configuration(
    config: Optional[EngineConfig] = None,
    pool_target: int = DEFAULT_POOL_CAP,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    simulation_spins: int = 0,
    base_bet: float = 1.0,
    seed: Optional[int] = None,
    tolerance: float = RTP_TOLERANCE,
) -> RTPAnalysisResult:
    """Build pools and cross-check theoretical against realised RTP.

    Parameters
    ----------
    config:
        Tables to analyse; the defaults when omitted.
    pool_target:
        Boards per outcome pool.
    sample_size:
        Boards for the coverage estimate (0 disables it).
    simulation_spins:
        Spins to simulate from the built pools (0 disables simulation).
    base_bet:
        Stake per simulated spin.
    seed:
        Seed for pool building, coverage sampling and simulation.
    tolerance:
        Allowed gap in percentage points between theoretical and pool RTP.

    Returns
    -------
    RTPAnalysisResult
        Build report, both RTP paths, their comparison and optional extras.
    """

    engine = SlotEngine(config, seed=seed, default_cap=pool_target)
    compute_start = perf_counter()
    build = engine.build_pools()
    theoretical = engine.theoretical_rtp()
    actual = engine.actual_rtp()
    comparison = compare_rtp(theoretical, actual.breakdown, tolerance)

    distribution: Optional[ScoreDistribution] = None
    coverage: list[OutcomeCoverage] = []
    if sample_size > 0:
        distribution = engine.score_distribution(sample_size)
        coverage = outcome_coverage(distribution, engine.config.outcomes)

    simulation: Optional[SimulationResult] = None
    if simulation_spins > 0 and engine.is_ready():
        simulation = engine.simulate(simulation_spins, base_bet=base_bet)
    compute_seconds = perf_counter() - compute_start
    logger.info("Analysed configuration in %.3fs", compute_seconds)

    return RTPAnalysisResult(
        engine=engine,
        build=build,
        theoretical=theoretical,
        actual=actual,
        comparison=comparison,
        distribution=distribution,
        coverage=coverage,
        simulation=simulation,
        compute_seconds=compute_seconds,
    )
