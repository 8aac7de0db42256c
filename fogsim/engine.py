# fogsim/engine.py
"""
Discrete-event engine the placement pipeline runs its scenarios on.
----------------------------------------------------------------
- simpy clock and event queue
- one simpy.Resource per device CPU (a slot per processing element)
- one simpy.Resource per directed link, holding it for nw_length / bandwidth
- linear power model integrated over busy PE time
The pipeline only uses the boundary below: init_engine, register_*,
run_until and the post-run queries.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

import numpy as np
import simpy

from fogsim.application import DOWN, Application
from fogsim.errors import ConstructionError, EngineError
from fogsim.placement import PlacementMapping
from fogsim.topology import Topology
from fogsim.utils import clamp
from fogsim.workload import Sensor

logger = logging.getLogger(__name__)


@dataclass
class FogTuple:
    tuple_type: str
    destination: str
    cpu_length: float
    nw_length: float
    direction: str
    loop_id: Optional[int]
    emitted_at: float
    origin: str
    path: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RunOutput:
    """Snapshot of one finished run; replaces any shared accumulator."""
    loop_latency: Dict[int, float]
    loop_tuples: Dict[int, int]
    device_energy: Dict[str, float]
    clock: float


@dataclass(frozen=True)
class Completed:
    output: RunOutput


@dataclass(frozen=True)
class Failed:
    reason: str


RunResult = Union[Completed, Failed]


class SimulationEngine:
    def __init__(self, seed=None):
        self.rng = np.random.default_rng(seed)
        self.env = None
        self.topology: Optional[Topology] = None
        self.app: Optional[Application] = None
        self.mapping: Optional[PlacementMapping] = None
        self.output: Optional[RunOutput] = None

    # ---------------------------
    # Registration
    # ---------------------------
    def init_engine(self, entity_count: int = 1):
        if entity_count < 1:
            raise ConstructionError("engine needs at least one user entity")
        self.entity_count = entity_count
        self.env = simpy.Environment()
        self.topology = self.app = self.mapping = self.output = None
        self.sensors: List[Sensor] = []
        self._loop_avg: Dict[int, float] = {}
        self._loop_num: Dict[int, int] = {}

    def _require_env(self):
        if self.env is None:
            raise EngineError("init_engine() must be called before registering entities")

    def register_topology(self, topology: Topology):
        self._require_env()
        topology.validate()
        self.topology = topology
        self.cpu = {n: simpy.Resource(self.env, capacity=d.num_pes) for n, d in topology.devices.items()}
        self.uplink = {n: simpy.Resource(self.env, capacity=1) for n in topology.devices}
        self.downlink = {n: simpy.Resource(self.env, capacity=1) for n in topology.devices}
        self.busy_time = {n: 0.0 for n in topology.devices}
        logger.debug("registered %d devices", len(topology.devices))

    def register_application(self, app: Application):
        self._require_env()
        self.app = app.validate()
        self._loop_avg = {i: 0.0 for i in range(len(app.loops))}
        self._loop_num = {i: 0 for i in range(len(app.loops))}

    def register_sensors(self, sensors: List[Sensor]):
        self._require_env()
        if self.topology is None:
            raise EngineError("register_topology() must come before register_sensors()")
        for s in sensors:
            gw = self.topology.devices.get(s.gateway)
            if gw is None or gw.is_root:
                raise ConstructionError(f"sensor {s.name!r} needs an edge gateway, got {s.gateway!r}")
            if s.period_ms <= 0:
                raise ConstructionError(f"sensor {s.name!r} has non-positive period")
        self.sensors = list(sensors)

    def register_placement(self, mapping: PlacementMapping):
        self._require_env()
        if self.topology is None or self.app is None:
            raise EngineError("topology and application must be registered before placement")
        mapping.validate(self.app.modules, self.topology)
        used = {n: 0 for n in self.topology.devices}
        for module, hosts in mapping.placements.items():
            if module not in self.app.modules:
                raise ConstructionError(f"placement names undeclared module {module!r}")
            for d in hosts:
                used[d] += self.app.modules[module].ram
                if used[d] > self.topology.devices[d].ram:
                    raise ConstructionError(f"device {d!r} is out of RAM hosting {module!r}")
        self.mapping = mapping

    # ---------------------------
    # Run
    # ---------------------------
    def run_until(self, deadline: float) -> RunOutput:
        """Blocks until the clock reaches `deadline`; raises EngineError on any failure."""
        if any(x is None for x in (self.env, self.topology, self.app, self.mapping)):
            raise EngineError("engine is not fully configured")
        if deadline <= 0:
            raise EngineError(f"deadline must be positive, got {deadline}")
        for s in self.sensors:
            self.env.process(self.sensor_process(s))
        try:
            self.env.run(until=deadline)
        except EngineError:
            raise
        except Exception as exc:
            raise EngineError(f"simulation aborted at t={self.env.now:.2f}: {exc}") from exc

        clock = float(self.env.now)
        energy = {}
        for name, d in self.topology.devices.items():
            util = clamp(self.busy_time[name] / (d.num_pes * clock), 0.0, 1.0) if clock > 0 else 0.0
            energy[name] = clock * (d.idle_power + (d.busy_power - d.idle_power) * util)
            d.energy = energy[name]
        seen = [i for i, n in self._loop_num.items() if n > 0]
        self.output = RunOutput(loop_latency={i: self._loop_avg[i] for i in seen},
                                loop_tuples={i: self._loop_num[i] for i in seen},
                                device_energy=energy, clock=clock)
        return self.output

    def loop_average_latency(self, loop_id: int) -> float:
        return self._finished().loop_latency.get(loop_id, 0.0)

    def loop_tuple_count(self, loop_id: int) -> int:
        return self._finished().loop_tuples.get(loop_id, 0)

    def device_energy(self, name: str) -> float:
        return self._finished().device_energy[name]

    def _finished(self) -> RunOutput:
        if self.output is None:
            raise EngineError("no completed run to query")
        return self.output

    # ---------------------------
    # Processes
    # ---------------------------
    def sensor_process(self, sensor: Sensor):
        edge = self.app.edge_from_sensor(sensor.tuple_type)
        loop_id = next((i for i, lp in enumerate(self.app.loops) if lp.start == sensor.tuple_type), None)
        while True:
            tup = FogTuple(edge.tuple_type, edge.destination, edge.cpu_length, edge.nw_length,
                           edge.direction, loop_id, self.env.now, sensor.gateway)
            self.env.process(self.emit(sensor, tup))
            yield self.env.timeout(sensor.emission_interval)

    def emit(self, sensor: Sensor, tup: FogTuple):
        yield self.env.timeout(sensor.latency)
        yield from self.deliver(tup, sensor.gateway)

    def deliver(self, tup: FogTuple, at: str):
        target = self.pick_host(tup, at)
        for src, dst in self.hops(at, target):
            yield from self.transmit(tup, src, dst)
        yield from self.execute(tup, target)

    def pick_host(self, tup: FogTuple, at: str) -> str:
        hosts = self.mapping.devices_for(tup.destination)
        if not hosts:
            raise EngineError(f"module {tup.destination!r} has no host")
        if tup.direction == DOWN and tup.origin in hosts:
            return tup.origin
        return min(hosts, key=lambda h: len(self.hops(at, h)))

    def hops(self, src: str, dst: str):
        up = self.topology.path_to_root(src)
        down = self.topology.path_to_root(dst)
        lca = next(d for d in up if d in down)
        route = up[:up.index(lca) + 1]
        route += list(reversed(down[:down.index(lca)]))
        return list(zip(route, route[1:]))

    def transmit(self, tup: FogTuple, src: str, dst: str):
        devices = self.topology.devices
        if devices[src].parent == dst:
            link, bw, latency = self.uplink[src], devices[src].up_bw, devices[src].uplink_latency
        else:
            link, bw, latency = self.downlink[dst], devices[src].down_bw, devices[dst].uplink_latency
        with link.request() as req:
            yield req
            yield self.env.timeout(tup.nw_length / bw)
        yield self.env.timeout(latency)

    def execute(self, tup: FogTuple, device: str):
        d = self.topology.devices[device]
        with self.cpu[device].request() as req:
            yield req
            service = tup.cpu_length / d.mips_per_pe
            yield self.env.timeout(service)
            self.busy_time[device] += service

        tup.path.append(tup.destination)
        self.record_loop(tup)

        for m in self.app.outputs_for(tup.destination, tup.tuple_type):
            if self.rng.random() >= m.selectivity:
                continue
            edge = self.app.edge_for_tuple(tup.destination, m.output_type)
            out = FogTuple(edge.tuple_type, edge.destination, edge.cpu_length, edge.nw_length,
                           edge.direction, tup.loop_id, tup.emitted_at,
                           device if edge.direction != DOWN else tup.origin, list(tup.path))
            self.env.process(self.deliver(out, device))

    def record_loop(self, tup: FogTuple):
        if tup.loop_id is None:
            return
        if tup.path != self.app.loops[tup.loop_id].participants[1:]:
            return
        n = self._loop_num[tup.loop_id]
        latency = self.env.now - tup.emitted_at
        self._loop_avg[tup.loop_id] = (self._loop_avg[tup.loop_id] * n + latency) / (n + 1)
        self._loop_num[tup.loop_id] = n + 1


def run_simulation(topology: Topology, sensors: List[Sensor], app: Application,
                   mapping: PlacementMapping, deadline: float,
                   engine: Optional[SimulationEngine] = None, seed=None) -> RunResult:
    """
    Register everything, run to the deadline and hand back a RunResult.
    ConstructionError propagates; engine failures become Failed(reason).
    """
    engine = engine or SimulationEngine(seed)
    engine.init_engine(1)
    engine.register_topology(topology)
    engine.register_application(app)
    engine.register_sensors(sensors)
    engine.register_placement(mapping)
    try:
        output = engine.run_until(deadline)
    except EngineError as exc:
        logger.debug("run aborted", exc_info=True)
        return Failed(str(exc))
    return Completed(output)
