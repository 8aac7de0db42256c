# fogsim/config.py
from dataclasses import dataclass
from typing import Tuple


@dataclass
class DeviceParams:
    mips: int = 16000
    ram: int = 16000
    up_bw: float = 12500.0
    down_bw: float = 12500.0
    level: int = 1
    num_pes: int = 4
    rate_per_mips: float = 0.0
    busy_power: float = 87.5
    idle_power: float = 82.4


CLOUD_PARAMS = DeviceParams(mips=56000, ram=64000, up_bw=125000.0, down_bw=125000.0,
                            level=0, busy_power=107.33, idle_power=83.44)
EDGE_PARAMS = DeviceParams()


@dataclass
class GlobalParams:
    sim_time: float = 2000.0
    num_edges: int = 3
    edge_cpu_threshold: float = 0.8
    link_bw_kbps: float = 10000.0
    uplink_latency_base: float = 30.0
    uplink_latency_step: float = 5.0
    workloads: Tuple[int, ...] = (20, 40, 60, 80, 100)
    report_path: str = "simulation_results.csv"
    seed: int = 42


@dataclass
class WorkloadProfile:
    base_period_ms: float = 1000.0
    reference_workload: float = 20.0
    jitter_ms: int = 100
    min_period_ms: int = 1
    sensor_latency_ms: float = 5.0


@dataclass
class AppParams:
    app_id: str = "TrafficApp"
    client_module: str = "clientModule"
    analytics_module: str = "analyticsModule"
    client_ram: int = 100
    analytics_ram_base: int = 500
    analytics_ram_var: int = 200
    # (cpu length, network length) per edge kind
    sensor_edge: Tuple[float, float] = (1000.0, 2000.0)
    analytics_edge: Tuple[float, float] = (2000.0, 4000.0)
    control_edge: Tuple[float, float] = (1000.0, 500.0)
    selectivity: float = 1.0
    sensor_tuple_prefix: str = "CAMERA_FEED_"
