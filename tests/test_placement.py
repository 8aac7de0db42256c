import pytest

from fogsim.errors import ConstructionError
from fogsim.placement import (CloudOnly, FogEdgeAssisted, PlacementMapping,
                              decide_placement, mode_from_name)

WORKLOADS = [20, 40, 60, 80, 100]
EDGES = ["edge-0", "edge-1", "edge-2"]


class TestCloudOnly:
    @pytest.mark.parametrize("workload", WORKLOADS)
    def test_analytics_on_cloud_only(self, topology, workload):
        mapping, offloaded = decide_placement(CloudOnly(), workload, topology)
        assert mapping.devices_for("analyticsModule") == ["cloud"]
        assert offloaded is False, "Static cloud placement is not an offload"

    def test_client_on_every_edge(self, topology):
        mapping, _ = decide_placement(CloudOnly(), 50, topology)
        assert mapping.devices_for("clientModule") == EDGES


class TestFogEdgeAssisted:
    @pytest.mark.parametrize("workload, hosts, offloaded", [
        (20, EDGES, False),
        (60, EDGES, False),
        (80, EDGES, False),
        (81, ["cloud"], True),
        (100, ["cloud"], True),
    ])
    def test_threshold(self, topology, workload, hosts, offloaded):
        mapping, was_offloaded = decide_placement(FogEdgeAssisted(), workload, topology)
        assert mapping.devices_for("analyticsModule") == hosts
        assert was_offloaded is offloaded
        assert mapping.devices_for("clientModule") == EDGES

    def test_custom_threshold(self, topology):
        _, offloaded = decide_placement(FogEdgeAssisted(threshold=0.5), 60, topology)
        assert offloaded is True

    def test_default_threshold(self):
        assert FogEdgeAssisted().threshold == 0.8


class TestModes:
    def test_names(self):
        assert CloudOnly().name == "CLOUD_ONLY"
        assert FogEdgeAssisted().name == "FOG_EDGE_ASSISTED"
        assert mode_from_name("fog_edge_assisted") == FogEdgeAssisted()
        with pytest.raises(ValueError):
            mode_from_name("hybrid")

    def test_unknown_mode_type(self, topology):
        with pytest.raises(TypeError):
            decide_placement("CLOUD_ONLY", 50, topology)


class TestPlacementMapping:
    def test_every_module_must_be_placed(self, topology):
        mapping = PlacementMapping()
        mapping.add_module_to_device("clientModule", "edge-0")
        with pytest.raises(ConstructionError):
            mapping.validate(["clientModule", "analyticsModule"], topology)

    def test_unknown_device_rejected(self, topology):
        mapping = PlacementMapping()
        mapping.add_module_to_device("clientModule", "edge-9")
        with pytest.raises(ConstructionError):
            mapping.validate(["clientModule"], topology)

    def test_no_duplicate_hosts(self):
        mapping = PlacementMapping()
        mapping.add_module_to_device("m", "cloud")
        mapping.add_module_to_device("m", "cloud")
        assert mapping.devices_for("m") == ["cloud"]
