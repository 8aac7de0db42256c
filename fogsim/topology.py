# fogsim/topology.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from fogsim.config import CLOUD_PARAMS, EDGE_PARAMS, DeviceParams, GlobalParams
from fogsim.errors import ConstructionError


@dataclass
class Device:
    """
    A fog device. Level 0 is the cloud root, level 1 an edge node.
    'energy' stays 0 until an engine run fills it in.
    """
    name: str
    level: int
    mips: int
    ram: int
    up_bw: float
    down_bw: float
    busy_power: float
    idle_power: float
    num_pes: int = 4
    rate_per_mips: float = 0.0
    parent: Optional[str] = None
    uplink_latency: float = 0.0
    energy: float = 0.0

    @classmethod
    def from_params(cls, name: str, p: DeviceParams, **kw) -> "Device":
        return cls(name=name, level=p.level, mips=p.mips, ram=p.ram,
                   up_bw=p.up_bw, down_bw=p.down_bw,
                   busy_power=p.busy_power, idle_power=p.idle_power,
                   num_pes=p.num_pes, rate_per_mips=p.rate_per_mips, **kw)

    @property
    def mips_per_pe(self) -> float:
        return self.mips / self.num_pes

    @property
    def is_root(self) -> bool:
        return self.parent is None


@dataclass
class Topology:
    devices: Dict[str, Device] = field(default_factory=dict)

    def add_device(self, device: Device, parent: Optional[str] = None) -> Device:
        if device.name in self.devices:
            raise ConstructionError(f"duplicate device name {device.name!r}")
        if parent is not None:
            if parent not in self.devices:
                raise ConstructionError(f"unknown parent {parent!r} for {device.name!r}")
            device.parent = parent
        self.devices[device.name] = device
        return device

    @property
    def cloud(self) -> Device:
        roots = [d for d in self.devices.values() if d.is_root]
        if len(roots) != 1:
            raise ConstructionError(f"topology needs exactly one root, found {len(roots)}")
        return roots[0]

    @property
    def edges(self) -> List[Device]:
        return [d for d in self.devices.values()
                if not d.is_root and not self.children(d.name)]

    def children(self, name: str) -> List[Device]:
        return [d for d in self.devices.values() if d.parent == name]

    def path_to_root(self, name: str) -> List[str]:
        path = [name]
        while self.devices[path[-1]].parent is not None:
            path.append(self.devices[path[-1]].parent)
        return path

    def validate(self):
        self.cloud  # raises on zero / several roots
        for d in self.devices.values():
            if d.mips <= 0 or d.ram <= 0 or d.num_pes <= 0:
                raise ConstructionError(f"device {d.name!r} has non-positive capacity")
            if d.up_bw <= 0 or d.down_bw <= 0:
                raise ConstructionError(f"device {d.name!r} has non-positive bandwidth")
            if d.parent is not None and d.parent not in self.devices:
                raise ConstructionError(f"device {d.name!r} points at missing parent {d.parent!r}")
            if d.parent is not None and self.devices[d.parent].level >= d.level:
                raise ConstructionError(f"device {d.name!r} is not below its parent")
        return self


def build_topology(edge_count: int = 3, gp: Optional[GlobalParams] = None,
                   cloud_params: DeviceParams = CLOUD_PARAMS,
                   edge_params: DeviceParams = EDGE_PARAMS) -> Topology:
    """One cloud root with `edge_count` edge children; edge i gets uplink latency base + i*step."""
    gp = gp or GlobalParams()
    topo = Topology()
    cloud = topo.add_device(Device.from_params("cloud", cloud_params))
    for i in range(edge_count):
        latency = gp.uplink_latency_base + i * gp.uplink_latency_step
        topo.add_device(Device.from_params(f"edge-{i}", edge_params, uplink_latency=latency),
                        parent=cloud.name)
    return topo.validate()
