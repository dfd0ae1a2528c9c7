"""Monte Carlo estimate of the board score distribution and outcome coverage."""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .catalog import EngineConfig, OutcomeTable
from .data import (
    COVERAGE_LOW_PERCENT,
    COVERAGE_OK_PERCENT,
    DEFAULT_HISTOGRAM_BUCKETS,
    DEFAULT_SAMPLE_SIZE,
)
from .errors import ConfigurationError
from .models import CoverageStatus
from .sampler import BoardSampler
from .scoring import PayoutEvaluator


@dataclass(frozen=True)
class HistogramBucket:
    range_start: float
    range_end: float
    count: int
    percentage: float


@dataclass(frozen=True, eq=False)
class ScoreDistribution:
    """Summary of ``sample_size`` independently sampled board scores."""

    min: float
    max: float
    mean: float
    std_dev: float
    sample_size: int
    histogram: list[HistogramBucket]
    scores: np.ndarray


@dataclass(frozen=True)
class OutcomeCoverage:
    outcome_id: str
    outcome_name: str
    min_multiplier: float
    max_multiplier: float
    match_count: int
    percentage: float
    status: CoverageStatus


def build_histogram(
    scores: Sequence[float] | np.ndarray,
    bucket_count: int = DEFAULT_HISTOGRAM_BUCKETS,
) -> list[HistogramBucket]:
    """Split ``[min, max]`` into equal buckets; the last bucket includes ``max``.

    A degenerate range (all scores equal) collapses to a single bucket.
    """

    values = np.asarray(scores, dtype=float)
    if values.size == 0:
        return []
    if bucket_count < 1:
        raise ConfigurationError("Histogram needs at least one bucket",
                                 {"bucket_count": bucket_count})
    low = float(values.min())
    high = float(values.max())
    if low == high:
        return [HistogramBucket(low, high, int(values.size), 100.0)]

    counts, edges = np.histogram(values, bins=bucket_count, range=(low, high))
    return [
        HistogramBucket(
            range_start=float(edges[i]),
            range_end=float(edges[i + 1]),
            count=int(counts[i]),
            percentage=float(counts[i]) / values.size * 100,
        )
        for i in range(bucket_count)
    ]


def sample_scores(
    config: EngineConfig,
    sample_size: int,
    rng: random.Random,
) -> np.ndarray:
    """Evaluate ``sample_size`` uniformly sampled boards and return their total scores."""

    sampler = BoardSampler(config.symbols, config.board)
    evaluator = PayoutEvaluator(config.paylines, config.symbols)
    return np.fromiter(
        (evaluator.score(sampler.sample(rng)) for _ in range(sample_size)),
        dtype=float,
        count=sample_size,
    )


def estimate_score_distribution(
    config: EngineConfig,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    rng: Optional[random.Random] = None,
    bucket_count: int = DEFAULT_HISTOGRAM_BUCKETS,
) -> ScoreDistribution:
    """Estimate the score distribution of the configuration's random boards.

    Boards are sampled independently of the outcome weights.

    Parameters
    ----------
    config:
        Tables and board shape to sample from.
    sample_size:
        Number of boards to evaluate (must be positive).
    rng:
        Random source; a freshly seeded one when omitted.
    bucket_count:
        Histogram resolution.
    """

    if sample_size < 1:
        raise ConfigurationError("Sample size must be positive", {"sample_size": sample_size})
    scores = sample_scores(config, sample_size, rng or random.Random())
    return ScoreDistribution(
        min=float(scores.min()),
        max=float(scores.max()),
        mean=float(scores.mean()),
        std_dev=float(scores.std()),
        sample_size=sample_size,
        histogram=build_histogram(scores, bucket_count),
        scores=scores,
    )


def classify_coverage(percentage: float) -> CoverageStatus:
    if percentage >= COVERAGE_OK_PERCENT:
        return CoverageStatus.OK
    if percentage >= COVERAGE_LOW_PERCENT:
        return CoverageStatus.LOW
    return CoverageStatus.NONE


def outcome_coverage(
    distribution: ScoreDistribution,
    outcomes: OutcomeTable,
) -> list[OutcomeCoverage]:
    """Share of sampled boards falling inside each outcome range.

    ``none`` flags buckets the pool builder is unlikely to fill.
    """

    scores = distribution.scores
    coverage: list[OutcomeCoverage] = []
    for outcome in outcomes:
        bucket = outcome.multiplier_range
        match_count = int(np.count_nonzero((scores >= bucket.min) & (scores <= bucket.max)))
        percentage = match_count / distribution.sample_size * 100
        coverage.append(
            OutcomeCoverage(
                outcome_id=outcome.id,
                outcome_name=outcome.name,
                min_multiplier=bucket.min,
                max_multiplier=bucket.max,
                match_count=match_count,
                percentage=percentage,
                status=classify_coverage(percentage),
            )
        )
    return coverage
