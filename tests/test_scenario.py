import dataclasses

import numpy as np
import pytest

import main_simulation
from fogsim import scenario as scenario_mod
from fogsim.config import GlobalParams
from fogsim.errors import ConstructionError, EngineError
from fogsim.engine import SimulationEngine
from fogsim.placement import CloudOnly, FogEdgeAssisted
from fogsim.report import ReportSink
from fogsim.scenario import (WorkloadScenario, build_context, default_scenarios,
                             run_batch, run_scenario)


class FailingEngine(SimulationEngine):
    def run_until(self, deadline):
        raise EngineError("engine exploded")


class TestWorkloadScenario:
    def test_immutable(self):
        s = WorkloadScenario(60, CloudOnly())
        with pytest.raises(dataclasses.FrozenInstanceError):
            s.workload = 70

    @pytest.mark.parametrize("workload", [0, 101, -5])
    def test_bounded(self, workload):
        with pytest.raises(ValueError):
            WorkloadScenario(workload, CloudOnly())

    def test_default_batch(self):
        scenarios = default_scenarios()
        assert len(scenarios) == 10
        assert [s.mode.name for s in scenarios[:5]] == ["CLOUD_ONLY"] * 5
        assert [s.workload for s in scenarios[5:]] == [20, 40, 60, 80, 100]


class TestScenarioContext:
    def test_fresh_per_scenario(self):
        a = build_context(WorkloadScenario(60, FogEdgeAssisted()), np.random.default_rng(1))
        b = build_context(WorkloadScenario(60, FogEdgeAssisted()), np.random.default_rng(1))
        assert a.topology is not b.topology
        assert a.sensors[0] is not b.sensors[0]
        assert a.offloaded is False

    def test_offloaded_at_full_load(self):
        ctx = build_context(WorkloadScenario(100, FogEdgeAssisted()), np.random.default_rng(1))
        assert ctx.offloaded is True
        assert ctx.mapping.devices_for("analyticsModule") == ["cloud"]


class TestRunScenario:
    def test_prints_scenario_block(self, tmp_path, short_run, capsys):
        run_scenario(WorkloadScenario(100, FogEdgeAssisted()), ReportSink(str(tmp_path / "r.csv")),
                     gp=short_run)
        out = capsys.readouterr().out
        assert "Analytics offloaded to cloud due to heavy workload." in out
        assert "Starting simulation..." in out
        assert "Simulation finished successfully." in out
        assert "Sensor sensor-0 to gateway edge-0 latency: 5.0 ms" in out
        assert "Workload 100% (FOG_EDGE_ASSISTED)" in out
        assert "--- Sensor to Edge Latencies ---" in out
        assert "Sensor sensor-2 to edge edge-2 latency: 40.0 ms" in out

    def test_construction_error_skips_row(self, tmp_path, short_run, monkeypatch):
        def broken(*args, **kwargs):
            raise ConstructionError("bad device")
        monkeypatch.setattr(scenario_mod, "build_topology", broken)
        path = tmp_path / "r.csv"
        report = run_scenario(WorkloadScenario(60, CloudOnly()), ReportSink(str(path)), gp=short_run)
        assert report is None
        assert not path.exists(), "No row for a malformed scenario"

    def test_engine_failure_still_writes_row(self, tmp_path, short_run):
        path = tmp_path / "r.csv"
        report = run_scenario(WorkloadScenario(60, CloudOnly()), ReportSink(str(path)),
                              gp=short_run, engine=FailingEngine())
        assert report is not None and report.completed is False
        assert report.tuples == 0
        assert len(path.read_text().splitlines()) == 2

    def test_report_error_is_not_fatal(self, tmp_path, short_run):
        report = run_scenario(WorkloadScenario(60, CloudOnly()), ReportSink(str(tmp_path)), gp=short_run)
        assert report is not None


class TestRunBatch:
    def test_ten_rows_one_header(self, tmp_path, short_run):
        path = tmp_path / "simulation_results.csv"
        reports = run_batch(default_scenarios(short_run), ReportSink(str(path)), short_run)
        assert len(reports) == 10
        lines = path.read_text().splitlines()
        assert len(lines) == 11
        assert sum(line.startswith("Workload,") for line in lines) == 1
        assert [r.offloaded for r in reports] == [False] * 9 + [True]

    def test_engine_failures_do_not_stop_batch(self, tmp_path, short_run):
        path = tmp_path / "r.csv"
        reports = run_batch(default_scenarios(short_run), ReportSink(str(path)), short_run,
                            engine_factory=lambda seed: FailingEngine(seed))
        assert len(reports) == 10
        assert not any(r.completed for r in reports)

    def test_unexpected_error_halts_batch(self, tmp_path, short_run, monkeypatch):
        calls = []

        def exploding(*args, **kwargs):
            calls.append(1)
            raise RuntimeError("unexpected")
        monkeypatch.setattr(scenario_mod, "aggregate", exploding)
        with pytest.raises(RuntimeError):
            run_batch(default_scenarios(short_run), ReportSink(str(tmp_path / "r.csv")), short_run)
        assert len(calls) == 1, "No scenario runs after an unclassified error"


class TestMain:
    def test_main_runs_fixed_batch(self, tmp_path):
        out = tmp_path / "results.csv"
        code = main_simulation.main(["--sim-time", "5", "--output", str(out),
                                     "--plots-dir", str(tmp_path / "plots")])
        assert code == 0
        assert len(out.read_text().splitlines()) == 11
        assert (tmp_path / "plots" / "plot_latency.png").exists()

    def test_main_reports_fatal_error(self, tmp_path, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("fatal")
        monkeypatch.setattr(main_simulation, "run_batch", boom)
        assert main_simulation.main(["--no-plots", "--output", str(tmp_path / "r.csv")]) == 1

    def test_gp_defaults(self):
        assert GlobalParams().workloads == (20, 40, 60, 80, 100)
        assert GlobalParams().report_path == "simulation_results.csv"
