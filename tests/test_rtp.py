import logging
import random
from dataclasses import replace

import pytest

from slot_core import (
    MultiplierRange,
    Outcome,
    PayoutTiers,
    PoolBuilder,
    RTPBreakdown,
    SettlementMeta,
    SimulationStats,
    actual_pool_rtp,
    actual_rtp_from_stats,
    additional_stats,
    compare_rtp,
    default_config,
    format_rtp_breakdown,
    theoretical_breakdown,
)
from slot_core.rtp import (
    binomial_coefficient,
    binomial_tail,
    cell_probability,
    scatter_trigger_probability,
    theoretical_line_rtp,
)


def test_binomial_helpers():
    assert binomial_coefficient(5, 2) == 10
    assert binomial_coefficient(15, 3) == 455
    assert binomial_coefficient(3, 4) == 0
    assert binomial_tail(3, 3, 0.5) == pytest.approx(0.125)
    assert binomial_tail(10, 0, 0.3) == 1.0


def test_cell_probability_is_uniform_by_default():
    symbols = default_config().symbols

    assert cell_probability(symbols, "SCATTER") == pytest.approx(1 / 9)
    assert cell_probability(symbols, "SCATTER", weighted=True) == pytest.approx(3 / 203)
    assert cell_probability(symbols, "missing") == 0.0


def test_theoretical_rtp_of_consistency_scenario(scenario_config):
    breakdown = theoretical_breakdown(scenario_config)

    assert theoretical_line_rtp(scenario_config.outcomes) == pytest.approx(50.0)
    assert breakdown.line_rtp == pytest.approx(50.0)
    assert breakdown.total_rtp == pytest.approx(50.0)
    assert breakdown.avg_per_unit == pytest.approx(0.5)
    assert breakdown.expected_count == pytest.approx(15 / 9)
    assert breakdown.trigger_probability == pytest.approx(
        scatter_trigger_probability(scenario_config.symbols, scenario_config.board)
    )
    assert breakdown.scatter_rtp > 0


def test_pool_rtp_matches_theoretical_for_consistency_scenario(scenario_config):
    builder = PoolBuilder(scenario_config, rng=random.Random(42), default_cap=100)
    build = builder.build()

    report = actual_pool_rtp(build.pools)
    comparison = compare_rtp(theoretical_breakdown(scenario_config), report.breakdown)

    assert build.success
    assert report.breakdown.total_rtp == pytest.approx(50.0)
    assert report.breakdown.line_rtp + report.breakdown.scatter_rtp == pytest.approx(50.0)
    assert comparison.within_tolerance
    assert abs(comparison.discrepancy) <= 0.1
    win = next(d for d in report.outcome_details if d.outcome_id == "WIN")
    assert win.board_count == 100
    assert win.avg_score == pytest.approx(5.0)
    assert win.contribution == pytest.approx(50.0)


def test_empty_pool_contributes_its_range_midpoint(small_config):
    config = small_config.with_outcomes(
        [
            Outcome("lose", "Lose", MultiplierRange(0, 0), 1),
            Outcome("never", "Never", MultiplierRange(50000, 60000), 1),
        ]
    )
    pools = PoolBuilder(config, rng=random.Random(8), default_cap=2).build().pools

    report = actual_pool_rtp(pools)

    never = report.outcome_details[1]
    assert never.board_count == 0
    assert never.avg_score == 55000
    assert report.breakdown.total_rtp == pytest.approx(0.5 * 55000 * 100)


def test_pool_rtp_can_rescore_with_live_tables(small_config, small_symbols):
    pools = PoolBuilder(small_config, rng=random.Random(4), default_cap=5).build().pools
    seven = replace(small_symbols.get("X"), payouts=PayoutTiers(50, 100, 200))
    richer = small_config.with_symbols(small_symbols.with_symbol(seven))

    stored = actual_pool_rtp(pools)
    live = actual_pool_rtp(pools, richer)

    assert live.breakdown.total_rtp >= stored.breakdown.total_rtp


def test_stats_accumulate_settled_spins():
    stats = SimulationStats()
    for win, scatter, triggered in [(0.0, 0.0, False), (10.0, 4.0, True), (2.0, 0.0, False)]:
        stats.add(
            SettlementMeta(
                outcome_id="o",
                win=win,
                line_win=win - scatter,
                scatter_win=scatter,
                base_bet=2.0,
                multiplier=1.0,
                winning_lines=(),
                best_line=None,
                scatter_count=3 if triggered else 1,
                feature_triggered=triggered,
            )
        )

    rtp = actual_rtp_from_stats(stats)
    extra = additional_stats(stats)

    assert stats.total_bet == 6.0
    assert stats.hit_count == 2
    assert stats.max_win == 10.0
    assert rtp.total_rtp == pytest.approx(200.0)
    assert rtp.scatter_rtp == pytest.approx(4 / 6 * 100)
    assert rtp.trigger_probability == pytest.approx(1 / 3)
    assert rtp.expected_count == pytest.approx(5 / 3)
    assert extra.hit_rate == pytest.approx(200 / 3)
    assert extra.avg_win == pytest.approx(6.0)
    assert extra.volatility == "low"


def test_empty_stats_report_zero():
    assert actual_rtp_from_stats(SimulationStats()).total_rtp == 0.0
    assert additional_stats(SimulationStats()).volatility == "high"


def test_compare_rtp_warns_beyond_tolerance(caplog):
    theoretical = RTPBreakdown(50.0, 0.0, 50.0)
    actual = RTPBreakdown(49.0, 0.5, 49.5)

    with caplog.at_level(logging.WARNING, logger="slot_core.rtp"):
        comparison = compare_rtp(theoretical, actual, tolerance=0.1)

    assert comparison.discrepancy == pytest.approx(0.5)
    assert not comparison.within_tolerance
    assert "RTP discrepancy" in caplog.text


def test_format_rtp_breakdown():
    text = format_rtp_breakdown(RTPBreakdown(45.5, 4.5, 50.0))

    assert text.splitlines() == ["Line RTP: 45.50%", "Scatter RTP: 4.50%", "Total RTP: 50.00%"]


def test_theoretical_format_marks_scatter_as_reference():
    text = format_rtp_breakdown(RTPBreakdown(50.0, 4.5, 50.0), scatter_in_total=False)

    assert text.splitlines() == [
        "Line RTP: 50.00%",
        "Scatter RTP (unconditioned, not in total): 4.50%",
        "Total RTP: 50.00%",
    ]
