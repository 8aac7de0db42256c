# fogsim/workload.py
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from fogsim.config import AppParams, WorkloadProfile
from fogsim.topology import Topology
from fogsim.utils import check_workload


@dataclass
class Sensor:
    name: str
    tuple_type: str
    gateway: str
    period_ms: int
    latency: float

    @property
    def emission_interval(self) -> float:
        """Time between emissions in engine time units."""
        return self.period_ms / 1000.0


def base_period_ms(workload_percent: float, wp: Optional[WorkloadProfile] = None) -> float:
    """Jitter-free emission period; halves every time the workload doubles."""
    wp = wp or WorkloadProfile()
    check_workload(workload_percent)
    factor = workload_percent / wp.reference_workload
    return wp.base_period_ms / factor


def sensor_period_seconds(workload_percent: float, wp: Optional[WorkloadProfile] = None) -> float:
    wp = wp or WorkloadProfile()
    return max(wp.min_period_ms, base_period_ms(workload_percent, wp)) / 1000.0


def draw_period_ms(workload_percent, rng: np.random.Generator, wp: Optional[WorkloadProfile] = None) -> int:
    wp = wp or WorkloadProfile()
    jitter = int(rng.integers(0, wp.jitter_ms)) if wp.jitter_ms > 0 else 0
    return max(wp.min_period_ms, int(base_period_ms(workload_percent, wp)) + jitter)


def generate_sensors(topology: Topology, workload_percent, rng: np.random.Generator,
                     wp: Optional[WorkloadProfile] = None,
                     ap: Optional[AppParams] = None) -> List[Sensor]:
    """
    One camera sensor per edge device, bound to that edge as gateway.
    The jittered period is drawn once and shared by every sensor of the run.
    """
    wp, ap = wp or WorkloadProfile(), ap or AppParams()
    period = draw_period_ms(workload_percent, rng, wp)
    sensors = []
    for i, edge in enumerate(topology.edges):
        sensors.append(Sensor(name=f"sensor-{i}",
                              tuple_type=f"{ap.sensor_tuple_prefix}{i}",
                              gateway=edge.name,
                              period_ms=period,
                              latency=wp.sensor_latency_ms))
    return sensors
