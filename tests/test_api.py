import json
import sys
from importlib import import_module
from pathlib import Path

import pytest

from slot_core import PoolsNotBuilt, SlotEngine, analyze_configuration, config_to_mapping

SCRIPTS_DIR = Path(__file__).resolve().parents[1] / "scripts"
if str(SCRIPTS_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPTS_DIR))


def test_analysis_of_consistency_scenario(scenario_config):
    result = analyze_configuration(
        scenario_config,
        pool_target=30,
        sample_size=200,
        simulation_spins=40,
        seed=3,
    )

    assert result.build.success
    assert result.theoretical.total_rtp == pytest.approx(50.0)
    assert result.actual.breakdown.total_rtp == pytest.approx(50.0)
    assert result.comparison.within_tolerance
    assert result.distribution.sample_size == 200
    assert [c.outcome_id for c in result.coverage] == ["LOSS", "WIN"]
    assert len(result.simulation.records) == 40
    assert {r.win for r in result.simulation.records} <= {0.0, 5.0}
    assert result.compute_seconds >= 0


def test_analysis_can_skip_sampling_and_simulation(small_config):
    result = analyze_configuration(small_config, pool_target=3, sample_size=0, seed=1)

    assert result.distribution is None
    assert result.coverage == []
    assert result.simulation is None


def test_engine_is_reproducible_with_a_seed(small_config):
    def run(seed):
        engine = SlotEngine(small_config, seed=seed, default_cap=5)
        engine.build_pools()
        return [(spin.outcome_id, spin.board) for spin in (engine.spin() for _ in range(10))]

    assert run(8) == run(8)


def test_engine_requires_rebuild_after_config_change(small_config, scenario_config):
    engine = SlotEngine(small_config, seed=4, default_cap=3)
    engine.build_pools()
    assert engine.is_ready()

    engine.set_config(scenario_config)

    assert engine.config is scenario_config
    assert not engine.is_ready()
    assert [s.generated for s in engine.pool_status()] == [0, 0]
    with pytest.raises(PoolsNotBuilt):
        engine.spin()


def test_engine_reports_coverage_and_simulation(small_config):
    engine = SlotEngine(small_config, seed=6, default_cap=5)
    engine.build_pools()

    coverage = engine.coverage(sample_size=100)
    simulation = engine.simulate(25)

    assert [c.outcome_id for c in coverage] == ["lose", "win"]
    assert sum(c.match_count for c in coverage) == 100
    assert simulation.statistics.total_spins == 25


def test_consistency_script_passes_for_the_scenario(capsys):
    script = import_module("check_rtp_consistency")

    assert script.main(["--pool-size", "30", "--seed", "5"]) == 0
    assert "NO DISCREPANCY" in capsys.readouterr().out


def test_consistency_script_reads_a_config_file(tmp_path, scenario_config):
    script = import_module("check_rtp_consistency")
    path = tmp_path / "scenario.json"
    path.write_text(json.dumps(config_to_mapping(scenario_config)), encoding="utf-8")

    assert script.main(["--config", str(path), "--pool-size", "20", "--seed", "2"]) == 0


def test_consistency_script_reports_a_malformed_config(tmp_path, capsys):
    script = import_module("check_rtp_consistency")
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"symbols": [{"id": "X", "payouts": [1, 2, 3]}]}), encoding="utf-8")

    assert script.main(["--config", str(path)]) == 2
    assert "NO DISCREPANCY" not in capsys.readouterr().out
