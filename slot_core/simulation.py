"""Chunked spin simulation with per-spin records and summary statistics."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, field
from time import perf_counter
from typing import Optional

import pandas as pd

from .catalog import OutcomeTable
from .data import DEFAULT_SIMULATION_CHUNK_SIZE
from .errors import ConfigurationError
from .pools import PoolSet
from .rtp import SimulationStats
from .spin import SpinExecutor

logger = logging.getLogger(__name__)

ProgressFn = Callable[[int, int], None]

RECORD_COLUMNS = [
    "index",
    "outcome_id",
    "outcome_name",
    "win",
    "bet",
    "profit",
    "cumulative_profit",
    "line_win",
    "scatter_win",
]


@dataclass(frozen=True)
class SpinRecord:
    """One simulated spin as seen by the reporting layer."""

    index: int
    outcome_id: str
    outcome_name: str
    win: float
    bet: float
    profit: float
    cumulative_profit: float
    line_win: float = 0.0
    scatter_win: float = 0.0


@dataclass(frozen=True)
class OutcomeDistribution:
    outcome_id: str
    outcome_name: str
    count: int
    percentage: float
    expected_percentage: float


@dataclass
class SimulationStatistics:
    """Summary of a simulation run; percentages are on a 0-100 scale."""

    total_spins: int = 0
    total_bet: float = 0.0
    total_win: float = 0.0
    rtp: float = 0.0
    hit_rate: float = 0.0
    hit_count: int = 0
    avg_win: float = 0.0
    avg_win_per_spin: float = 0.0
    max_win: float = 0.0
    min_win: float = 0.0
    max_profit: float = 0.0
    min_profit: float = 0.0
    outcome_distribution: list[OutcomeDistribution] = field(default_factory=list)


@dataclass
class SimulationResult:
    records: list[SpinRecord]
    statistics: SimulationStatistics
    stats: SimulationStats
    duration: float
    aborted: bool = False


def records_frame(records: Sequence[SpinRecord]) -> pd.DataFrame:
    """Return the spin records as a DataFrame with one row per spin."""

    return pd.DataFrame([asdict(record) for record in records], columns=RECORD_COLUMNS)


def calculate_statistics(
    records: Sequence[SpinRecord],
    outcomes: OutcomeTable,
) -> SimulationStatistics:
    """Summarise spin records against the outcome table's expected frequencies."""

    if not records:
        return SimulationStatistics()

    frame = records_frame(records)
    total_spins = len(frame)
    total_bet = float(frame["bet"].sum())
    total_win = float(frame["win"].sum())
    hit_count = int((frame["win"] > 0).sum())

    counts = frame["outcome_id"].value_counts()
    distribution = [
        OutcomeDistribution(
            outcome_id=entry.outcome_id,
            outcome_name=entry.name,
            count=int(counts.get(entry.outcome_id, 0)),
            percentage=float(counts.get(entry.outcome_id, 0)) / total_spins * 100,
            expected_percentage=entry.probability,
        )
        for entry in outcomes.probabilities()
    ]

    return SimulationStatistics(
        total_spins=total_spins,
        total_bet=total_bet,
        total_win=total_win,
        rtp=total_win / total_bet * 100 if total_bet > 0 else 0.0,
        hit_rate=hit_count / total_spins * 100,
        hit_count=hit_count,
        avg_win=total_win / hit_count if hit_count > 0 else 0.0,
        avg_win_per_spin=total_win / total_spins,
        max_win=float(frame["win"].max()),
        min_win=float(frame["win"].min()),
        max_profit=float(frame["cumulative_profit"].max()),
        min_profit=float(frame["cumulative_profit"].min()),
        outcome_distribution=distribution,
    )


def simulate_once(
    executor: SpinExecutor,
    index: int,
    base_bet: float,
    cumulative_profit: float,
    stats: Optional[SimulationStats] = None,
    pools: Optional[PoolSet] = None,
) -> SpinRecord:
    """Run one spin and turn it into a :class:`SpinRecord`.

    Parameters
    ----------
    executor:
        Spin executor bound to built pools.
    index:
        One-based position of the spin within the run.
    base_bet:
        Stake per spin.
    cumulative_profit:
        Profit accumulated before this spin.
    stats:
        Optional accumulator updated with the settled spin.
    pools:
        Generation to spin against; defaults to the published one.
    """

    result = executor.spin(base_bet, pools=pools)
    meta = result.meta
    if stats is not None:
        stats.add(meta)
    profit = meta.win - base_bet
    return SpinRecord(
        index=index,
        outcome_id=result.outcome.id,
        outcome_name=result.outcome.name,
        win=meta.win,
        bet=base_bet,
        profit=profit,
        cumulative_profit=cumulative_profit + profit,
        line_win=meta.line_win,
        scatter_win=meta.scatter_win,
    )


def simulate_many(
    executor: SpinExecutor,
    spins: int = 10000,
    base_bet: float = 1.0,
    chunk_size: int = DEFAULT_SIMULATION_CHUNK_SIZE,
    progress: Optional[ProgressFn] = None,
    abort: Optional[threading.Event] = None,
) -> SimulationResult:
    """Run ``spins`` spins in chunks and summarise them.

    ``progress(done, total)`` is called after every chunk and ``abort`` is
    checked before the next one; an aborted run summarises what it completed.
    Every spin uses the pool generation published when the run starts, and
    the statistics compare against that generation's outcome table.

    Raises
    ------
    ConfigurationError
        If ``spins`` is negative or ``base_bet`` is not positive.
    PoolsNotBuilt
        If the executor has no pools to draw from.
    """

    if spins < 0:
        raise ConfigurationError("Spin count must not be negative", {"spins": spins})
    if base_bet <= 0:
        raise ConfigurationError("Base bet must be positive", {"base_bet": base_bet})

    start = perf_counter()
    pools = executor.pools
    records: list[SpinRecord] = []
    stats = SimulationStats()
    cumulative_profit = 0.0
    chunk = max(1, chunk_size)
    aborted = False
    done = 0
    while done < spins:
        if abort is not None and abort.is_set():
            aborted = True
            logger.info("Simulation aborted after %d of %d spins", done, spins)
            break
        end = min(done + chunk, spins)
        for index in range(done + 1, end + 1):
            record = simulate_once(executor, index, base_bet, cumulative_profit, stats, pools)
            cumulative_profit = record.cumulative_profit
            records.append(record)
        done = end
        logger.debug("Simulated %d/%d spins", done, spins)
        if progress is not None:
            progress(done, spins)

    return SimulationResult(
        records=records,
        statistics=calculate_statistics(records, pools.config.outcomes),
        stats=stats,
        duration=perf_counter() - start,
        aborted=aborted,
    )
