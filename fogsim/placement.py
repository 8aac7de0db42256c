# fogsim/placement.py
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union

from fogsim.config import AppParams, GlobalParams
from fogsim.errors import ConstructionError
from fogsim.topology import Topology
from fogsim.utils import check_workload


# ============================================================
# Placement modes
# ============================================================
@dataclass(frozen=True)
class CloudOnly:
    """Analytics always runs on the cloud root."""
    name: str = field(default="CLOUD_ONLY", init=False)


@dataclass(frozen=True)
class FogEdgeAssisted:
    """
    Analytics replicated on every edge, escalated to the cloud
    when load = workload / 100 exceeds the threshold.
    """
    threshold: float = GlobalParams.edge_cpu_threshold
    name: str = field(default="FOG_EDGE_ASSISTED", init=False)


Mode = Union[CloudOnly, FogEdgeAssisted]
MODES: Tuple[Mode, ...] = (CloudOnly(), FogEdgeAssisted())


def mode_from_name(name: str) -> Mode:
    for m in MODES:
        if m.name == name.upper():
            return m
    raise ValueError(f"unknown placement mode {name!r}")


@dataclass
class PlacementMapping:
    placements: Dict[str, List[str]] = field(default_factory=dict)

    def add_module_to_device(self, module: str, device: str):
        hosts = self.placements.setdefault(module, [])
        if device not in hosts:
            hosts.append(device)

    def devices_for(self, module: str) -> List[str]:
        return list(self.placements.get(module, []))

    def validate(self, modules, topology: Topology):
        for name in modules:
            if not self.placements.get(name):
                raise ConstructionError(f"module {name!r} is not placed on any device")
        for module, hosts in self.placements.items():
            for d in hosts:
                if d not in topology.devices:
                    raise ConstructionError(f"module {module!r} mapped to unknown device {d!r}")
        return self


# ============================================================
# Decision
# ============================================================
def decide_placement(mode: Mode, workload_percent, topology: Topology,
                     ap: AppParams = AppParams()) -> Tuple[PlacementMapping, bool]:
    """
    Client module always sits on every edge. Returns (mapping, offloaded);
    'offloaded' is only ever True for a fog run escalated to the cloud.
    """
    check_workload(workload_percent)
    mapping = PlacementMapping()
    edges = topology.edges
    cloud = topology.cloud

    for edge in edges:
        mapping.add_module_to_device(ap.client_module, edge.name)

    if isinstance(mode, CloudOnly):
        mapping.add_module_to_device(ap.analytics_module, cloud.name)
        return mapping, False

    if isinstance(mode, FogEdgeAssisted):
        load = workload_percent / 100.0
        if load > mode.threshold:
            mapping.add_module_to_device(ap.analytics_module, cloud.name)
            return mapping, True
        for edge in edges:
            mapping.add_module_to_device(ap.analytics_module, edge.name)
        return mapping, False

    raise TypeError(f"unsupported placement mode {mode!r}")
