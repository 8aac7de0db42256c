# fogsim/scenario.py
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import numpy as np

from fogsim.application import Application, build_application
from fogsim.config import AppParams, GlobalParams, WorkloadProfile
from fogsim.engine import Completed, Failed, SimulationEngine, run_simulation
from fogsim.errors import ConstructionError, ReportError
from fogsim.metrics import Report, aggregate
from fogsim.placement import MODES, Mode, PlacementMapping, decide_placement
from fogsim.report import ReportSink
from fogsim.topology import Topology, build_topology
from fogsim.utils import check_workload
from fogsim.workload import Sensor, generate_sensors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkloadScenario:
    workload: int
    mode: Mode

    def __post_init__(self):
        check_workload(self.workload)


@dataclass
class ScenarioContext:
    """Everything one scenario needs; built fresh per run, never shared."""
    scenario: WorkloadScenario
    topology: Topology
    sensors: List[Sensor]
    app: Application
    mapping: PlacementMapping
    offloaded: bool


def build_context(scenario: WorkloadScenario, rng: np.random.Generator,
                  gp: Optional[GlobalParams] = None,
                  wp: Optional[WorkloadProfile] = None,
                  ap: Optional[AppParams] = None) -> ScenarioContext:
    gp, wp, ap = gp or GlobalParams(), wp or WorkloadProfile(), ap or AppParams()
    topology = build_topology(gp.num_edges, gp)
    sensors = generate_sensors(topology, scenario.workload, rng, wp, ap)
    app = build_application(len(topology.edges), rng, ap)
    mapping, offloaded = decide_placement(scenario.mode, scenario.workload, topology, ap)
    mapping.validate(app.modules, topology)
    return ScenarioContext(scenario, topology, sensors, app, mapping, offloaded)


# ---------------------------
# Console output
# ---------------------------
def print_sensor_lines(ctx: ScenarioContext):
    for s in ctx.sensors:
        print(f"Sensor {s.name} to gateway {s.gateway} latency: {s.latency} ms")


def print_summary(report: Report):
    print(f"\nWorkload {report.workload}% ({report.mode})")
    print(f"Throughput: {report.throughput:.2f} tuples/sec | Bandwidth: {report.bandwidth_kbps:.2f} Kbps"
          f" | Energy: {report.energy_j:.2f} J")
    print(f"Estimated simulation time: {report.sim_time_s:.2f} sec | Tuples processed: {report.tuples}")
    print("\n--- Sensor to Edge Latencies ---")
    for col, latency in report.sensor_latencies.items():
        sensor, gateway = col.split("_to_", 1)
        print(f"Sensor {sensor} to edge {gateway} latency: {latency} ms")


# ---------------------------
# Pipeline
# ---------------------------
def run_scenario(scenario: WorkloadScenario, sink: Optional[ReportSink], seed: int = 0,
                 gp: Optional[GlobalParams] = None,
                 wp: Optional[WorkloadProfile] = None,
                 ap: Optional[AppParams] = None,
                 engine: Optional[SimulationEngine] = None) -> Optional[Report]:
    """
    Build, run, aggregate and persist one scenario.
    Returns None when the scenario could not be constructed (no row written).
    """
    gp = gp or GlobalParams()
    rng = np.random.default_rng(seed)
    try:
        ctx = build_context(scenario, rng, gp, wp, ap)
        if ctx.offloaded:
            print("Analytics offloaded to cloud due to heavy workload.")
        print("Starting simulation...")
        result = run_simulation(ctx.topology, ctx.sensors, ctx.app, ctx.mapping, gp.sim_time,
                                engine=engine or SimulationEngine(seed))
    except ConstructionError as exc:
        logger.error("scenario %d%% %s skipped, model is malformed: %s",
                     scenario.workload, scenario.mode.name, exc)
        return None

    if isinstance(result, Completed):
        print("Simulation finished successfully.")
    elif isinstance(result, Failed):
        logger.error("Simulation failed: %s", result.reason)

    print_sensor_lines(ctx)
    report = aggregate(scenario, result, ctx.topology, ctx.sensors, ctx.offloaded, gp, wp)
    print_summary(report)

    if sink is not None:
        try:
            sink.append(report)
        except ReportError as exc:
            logger.error("Failed to write CSV: %s", exc)
    return report


def default_scenarios(gp: Optional[GlobalParams] = None,
                      modes: Sequence[Mode] = MODES) -> List[WorkloadScenario]:
    gp = gp or GlobalParams()
    return [WorkloadScenario(w, m) for m in modes for w in gp.workloads]


def run_batch(scenarios: Sequence[WorkloadScenario], sink: Optional[ReportSink],
              gp: Optional[GlobalParams] = None,
              engine_factory: Optional[Callable[[int], SimulationEngine]] = None) -> List[Report]:
    """Run scenarios strictly one after another; unexpected errors stop the batch."""
    gp = gp or GlobalParams()
    reports = []
    current_mode = None
    for i, scenario in enumerate(scenarios):
        if scenario.mode != current_mode:
            current_mode = scenario.mode
            print(f"\n=== {current_mode.name} ===")
        seed = gp.seed + i
        engine = engine_factory(seed) if engine_factory else None
        report = run_scenario(scenario, sink, seed, gp, engine=engine)
        if report is not None:
            reports.append(report)
    return reports
