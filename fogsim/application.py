# fogsim/application.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from fogsim.config import AppParams
from fogsim.errors import ConstructionError

UP, DOWN = "UP", "DOWN"
SENSOR, MODULE = "SENSOR", "MODULE"


@dataclass
class AppModule:
    name: str
    ram: int


@dataclass
class AppEdge:
    """Directed dependency; 'source' is a module name or a sensor tuple type."""
    source: str
    destination: str
    cpu_length: float
    nw_length: float
    tuple_type: str
    direction: str = UP
    kind: str = MODULE


@dataclass
class TupleMapping:
    module: str
    input_type: str
    output_type: str
    selectivity: float = 1.0


@dataclass
class AppLoop:
    participants: List[str]

    @property
    def start(self) -> str:
        return self.participants[0]


@dataclass
class Application:
    app_id: str
    modules: Dict[str, AppModule] = field(default_factory=dict)
    edges: List[AppEdge] = field(default_factory=list)
    mappings: List[TupleMapping] = field(default_factory=list)
    loops: List[AppLoop] = field(default_factory=list)

    def add_module(self, name: str, ram: int) -> AppModule:
        if name in self.modules:
            raise ConstructionError(f"module {name!r} declared twice in {self.app_id}")
        if ram <= 0:
            raise ConstructionError(f"module {name!r} needs a positive ram footprint")
        self.modules[name] = AppModule(name, ram)
        return self.modules[name]

    def add_edge(self, source, destination, cpu_length, nw_length, tuple_type,
                 direction=UP, kind=MODULE) -> AppEdge:
        e = AppEdge(source, destination, cpu_length, nw_length, tuple_type, direction, kind)
        self.edges.append(e)
        return e

    def add_tuple_mapping(self, module, input_type, output_type, selectivity=1.0):
        self.mappings.append(TupleMapping(module, input_type, output_type, selectivity))

    def edge_from_sensor(self, sensor_tuple_type: str) -> AppEdge:
        for e in self.edges:
            if e.kind == SENSOR and e.source == sensor_tuple_type:
                return e
        raise ConstructionError(f"no sensor edge for {sensor_tuple_type!r}")

    def edge_for_tuple(self, source_module: str, tuple_type: str) -> AppEdge:
        for e in self.edges:
            if e.kind == MODULE and e.source == source_module and e.tuple_type == tuple_type:
                return e
        raise ConstructionError(f"{source_module!r} has no outgoing edge for {tuple_type!r}")

    def outputs_for(self, module: str, input_type: str) -> List[TupleMapping]:
        return [m for m in self.mappings if m.module == module and m.input_type == input_type]

    def validate(self):
        for e in self.edges:
            if e.destination not in self.modules:
                raise ConstructionError(f"edge {e.tuple_type!r} targets unknown module {e.destination!r}")
            if e.kind == SENSOR:
                continue
            if e.source not in self.modules:
                raise ConstructionError(f"edge {e.tuple_type!r} leaves unknown module {e.source!r}")
            producing = [m for m in self.mappings
                         if m.module == e.source and m.output_type == e.tuple_type]
            if len(producing) != 1:
                raise ConstructionError(
                    f"edge {e.tuple_type!r} needs exactly one mapping on {e.source!r}, "
                    f"found {len(producing)}")
        for m in self.mappings:
            if not 0.0 <= m.selectivity <= 1.0:
                raise ConstructionError(f"selectivity of {m.module}:{m.input_type} outside [0, 1]")
        for loop in self.loops:
            for name in loop.participants[1:]:
                if name not in self.modules:
                    raise ConstructionError(f"loop references unknown module {name!r}")
        return self


def build_application(edge_count: int, rng: np.random.Generator,
                      ap: Optional[AppParams] = None) -> Application:
    """
    Two-module traffic analytics graph. Per edge index i:
      CAMERA_FEED_i -> client -(ANALYTICS_DATA_i)-> analytics -(CONTROL_SIGNAL_i)-> client
    with 1:1 selectivity and one latency loop over that path.
    """
    ap = ap or AppParams()
    client, analytics = ap.client_module, ap.analytics_module
    app = Application(ap.app_id)

    app.add_module(client, ap.client_ram)
    app.add_module(analytics, ap.analytics_ram_base + int(rng.integers(0, ap.analytics_ram_var)))

    for i in range(edge_count):
        feed = f"{ap.sensor_tuple_prefix}{i}"
        app.add_edge(feed, client, *ap.sensor_edge, f"SENSOR_DATA_{i}", UP, SENSOR)
        app.add_edge(client, analytics, *ap.analytics_edge, f"ANALYTICS_DATA_{i}", UP, MODULE)
        app.add_edge(analytics, client, *ap.control_edge, f"CONTROL_SIGNAL_{i}", DOWN, MODULE)

        app.add_tuple_mapping(client, f"SENSOR_DATA_{i}", f"ANALYTICS_DATA_{i}", ap.selectivity)
        app.add_tuple_mapping(analytics, f"ANALYTICS_DATA_{i}", f"CONTROL_SIGNAL_{i}", ap.selectivity)

    app.loops = [AppLoop([f"{ap.sensor_tuple_prefix}{i}", client, analytics, client])
                 for i in range(edge_count)]
    return app.validate()
