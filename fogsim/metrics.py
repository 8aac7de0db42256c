# fogsim/metrics.py
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from fogsim.config import GlobalParams, WorkloadProfile
from fogsim.engine import Completed, RunResult
from fogsim.placement import CloudOnly, FogEdgeAssisted, Mode
from fogsim.topology import Topology
from fogsim.workload import Sensor, sensor_period_seconds

FIXED_COLUMNS = ["Workload", "Mode", "Latency_ms", "Throughput_tuples_per_sec",
                 "Bandwidth_Kbps", "Energy_J", "SimTime_s", "TuplesProcessed"]


@dataclass
class Report:
    workload: int
    mode: str
    latency_ms: float
    throughput: float
    bandwidth_kbps: float
    energy_j: float
    sim_time_s: float
    tuples: int
    sensor_latencies: Dict[str, float] = field(default_factory=OrderedDict)
    offloaded: bool = False
    completed: bool = True

    def row(self) -> Dict[str, object]:
        row = OrderedDict(zip(FIXED_COLUMNS, [
            self.workload, self.mode, self.latency_ms, self.throughput,
            self.bandwidth_kbps, self.energy_j, self.sim_time_s, self.tuples]))
        for col, v in self.sensor_latencies.items():
            row[col] = str(float(v))
        return row


def bandwidth_factor(mode: Mode, offloaded: bool) -> float:
    """Share of the uplink a mode is assumed to use; cloud-bound traffic costs far more."""
    if isinstance(mode, CloudOnly):
        return 0.7
    if isinstance(mode, FogEdgeAssisted):
        return 0.6 if offloaded else 0.15
    raise TypeError(f"unsupported placement mode {mode!r}")


def estimate_duration(workload_percent, total_tuples: int, edge_count: int,
                      wp: Optional[WorkloadProfile] = None) -> float:
    """
    Estimated wall-clock length of the run, NOT a measurement:
    jitter-free sensor period * tuples / number of edges.
    """
    if edge_count <= 0:
        return 0.0
    return sensor_period_seconds(workload_percent, wp) * total_tuples / edge_count


def gateway_latencies(topology: Topology, sensors: List[Sensor]) -> Dict[str, float]:
    """
    'sensor_to_gateway' -> latency. The figure is the gateway's uplink
    latency toward the cloud, not the sensor's own hop latency.
    """
    out = OrderedDict()
    for s in sensors:
        gw = topology.devices.get(s.gateway)
        if gw is not None:
            out[f"{s.name}_to_{gw.name}"] = gw.uplink_latency
    return out


def aggregate(scenario, result: RunResult, topology: Topology, sensors: List[Sensor],
              offloaded: bool = False, gp: Optional[GlobalParams] = None,
              wp: Optional[WorkloadProfile] = None) -> Report:
    gp = gp or GlobalParams()
    workload, mode = scenario.workload, scenario.mode

    if isinstance(result, Completed):
        out = result.output
        latencies = list(out.loop_latency.values())
        avg_latency = float(np.mean(latencies)) if latencies else 0.0
        total_tuples = int(sum(out.loop_tuples.values()))
        energy = float(sum(out.device_energy.get(name, 0.0) for name in topology.devices))
    else:
        avg_latency, total_tuples, energy = 0.0, 0, 0.0

    sim_time = estimate_duration(workload, total_tuples, len(topology.edges), wp)
    throughput = total_tuples / sim_time if sim_time > 0 else 0.0
    load = workload / 100.0
    bandwidth = load * gp.link_bw_kbps * bandwidth_factor(mode, offloaded)

    return Report(workload=workload, mode=mode.name, latency_ms=avg_latency,
                  throughput=throughput, bandwidth_kbps=bandwidth, energy_j=energy,
                  sim_time_s=sim_time, tuples=total_tuples,
                  sensor_latencies=gateway_latencies(topology, sensors),
                  offloaded=offloaded, completed=isinstance(result, Completed))
