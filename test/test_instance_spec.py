"""Tests for PortSet and InstanceSpec."""

import pytest

from clustermap.cluster import InstanceSpec, NodeInfo, PortAllocator, PortSet
from clustermap.core.exceptions import ConfigurationError
from topology_test_utils import FakePortProbe


class TestPortSet:
    def test_from_base_is_consecutive_in_declaration_order(self):
        ports = PortSet.from_base(10000)
        assert ports.as_tuple() == tuple(range(10000, 10008))
        assert [name for name, _ in ports.items()] == [
            "http",
            "http_ssl",
            "iiop",
            "iiop_ssl",
            "iiop_ssl_mutualauth",
            "jmx_system_connector",
            "jms_provider",
            "asadmin",
        ]

    @pytest.mark.parametrize("base", [1, 4848, 30000, 65528])
    def test_from_base_any_base(self, base):
        assert PortSet.from_base(base).as_tuple() == tuple(range(base, base + 8))

    def test_block_past_port_range_rejected(self):
        with pytest.raises(ConfigurationError, match="out of range"):
            PortSet.from_base(65530)

    def test_non_positive_port_rejected(self):
        with pytest.raises(ConfigurationError):
            PortSet.from_base(0)

    def test_non_int_port_rejected(self):
        with pytest.raises(ConfigurationError, match="must be an int"):
            PortSet(*(["8080"] + list(range(8081, 8088))))

    def test_as_properties_uses_persisted_names(self):
        props = PortSet.from_base(10000).as_properties()
        assert props == {
            "HTTP_LISTENER_PORT": 10000,
            "HTTP_SSL_LISTENER_PORT": 10001,
            "IIOP_LISTENER_PORT": 10002,
            "IIOP_SSL_LISTENER_PORT": 10003,
            "IIOP_SSL_MUTUALAUTH_PORT": 10004,
            "JMX_SYSTEM_CONNECTOR_PORT": 10005,
            "JMS_PROVIDER_PORT": 10006,
            "ASADMIN_LISTENER_PORT": 10007,
        }
        assert PortSet.from_properties(props) == PortSet.from_base(10000)

    def test_with_port_replaces_one_field(self):
        ports = PortSet.from_base(10000).with_port("iiop", 20000)
        assert ports.iiop == 20000
        assert ports.http == 10000
        assert ports.asadmin == 10007


class TestInstanceSpec:
    def test_generate(self):
        instance = InstanceSpec.generate("in1", 10000)
        assert instance.name == "in1"
        assert instance.base_port == 10000
        assert instance.ports.as_tuple() == (
            10000,
            10001,
            10002,
            10003,
            10004,
            10005,
            10006,
            10007,
        )
        assert instance.node_name is None

    def test_restore_keeps_values_verbatim(self):
        ports = PortSet(8080, 8181, 3700, 3820, 3920, 8686, 7676, 4849)
        instance = InstanceSpec.restore("in1", "host-a", "/opt/gf", ports)
        assert instance.ports is ports
        assert instance.node_name == "host-a"
        assert instance.home_dir == "/opt/gf"

    def test_update_per_port_availability_skips_busy_ports(self):
        node = NodeInfo(name="host-a")
        probe = FakePortProbe(busy={"host-a": {10000, 10003, 10008}})
        allocator = PortAllocator(probe)

        instance = InstanceSpec.generate("in1", 10000)
        instance.assign_node("host-a", "/opt/gf")
        instance.update_per_port_availability(allocator, node)

        # 10000 is busy -> 10001; 10001 is now claimed -> 10002 ... each later
        # port walks past the ones claimed before it.
        assert instance.ports.as_tuple() == (
            10001,
            10002,
            10004,
            10005,
            10006,
            10007,
            10009,
            10010,
        )

    def test_update_probes_in_declaration_order(self):
        node = NodeInfo(name="host-a")
        probe = FakePortProbe()
        instance = InstanceSpec.generate("in1", 10000)
        instance.assign_node("host-a", "/opt/gf")
        instance.update_per_port_availability(PortAllocator(probe), node)
        assert probe.calls == [("host-a", p) for p in range(10000, 10008)]

    def test_update_is_repeatable_for_the_same_instance(self):
        node = NodeInfo(name="host-a")
        allocator = PortAllocator(FakePortProbe())
        instance = InstanceSpec.generate("in1", 10000)
        instance.assign_node("host-a", "/opt/gf")

        instance.update_per_port_availability(allocator, node)
        first = instance.ports
        instance.update_per_port_availability(allocator, node)
        assert instance.ports == first

    def test_update_on_wrong_node_rejected(self):
        instance = InstanceSpec.generate("in1", 10000)
        instance.assign_node("host-a", "/opt/gf")
        with pytest.raises(ValueError, match="assigned to host-a"):
            instance.update_per_port_availability(
                PortAllocator(FakePortProbe()), NodeInfo(name="host-b")
            )

    def test_finalized_instance_is_read_only(self):
        instance = InstanceSpec.generate("in1", 10000)
        instance.assign_node("host-a", "/opt/gf")
        instance.finalize()
        with pytest.raises(RuntimeError, match="finalized"):
            instance.assign_node("host-b", "/opt/gf")
        with pytest.raises(RuntimeError, match="finalized"):
            instance.update_per_port_availability(
                PortAllocator(FakePortProbe()), NodeInfo(name="host-a")
            )

    def test_describe(self):
        instance = InstanceSpec.generate("in1", 10000)
        assert instance.describe() == "in1 on <unassigned>"
        instance.assign_node("host-a", "/opt/gf")
        assert instance.describe() == "in1 on host-a"
        assert instance.describe(verbose=True) == (
            "in1 on host-a: HTTP_LISTENER_PORT=10000:HTTP_SSL_LISTENER_PORT=10001:"
            "IIOP_LISTENER_PORT=10002:IIOP_SSL_LISTENER_PORT=10003:"
            "IIOP_SSL_MUTUALAUTH_PORT=10004:JMX_SYSTEM_CONNECTOR_PORT=10005:"
            "JMS_PROVIDER_PORT=10006:ASADMIN_LISTENER_PORT=10007"
        )
