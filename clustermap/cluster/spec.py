"""
Instance types for clustermap.

Provides PortSet and InstanceSpec, the dataclasses that describe one server
instance: its name, the node it runs on, and its 8 ports.
"""

from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Dict, Iterator, Optional, Tuple

from clustermap.cluster.info import NodeInfo
from clustermap.core.exceptions import ConfigurationError
from clustermap.core.types import MAX_PORT, MIN_PORT, InstanceName, NodeName, Port

if TYPE_CHECKING:
    from clustermap.cluster.ports import PortAllocator

PORTS_PER_INSTANCE = 8

# Port field -> persisted property name, in declaration order.
PORT_PROPERTY_NAMES: Dict[str, str] = {
    "http": "HTTP_LISTENER_PORT",
    "http_ssl": "HTTP_SSL_LISTENER_PORT",
    "iiop": "IIOP_LISTENER_PORT",
    "iiop_ssl": "IIOP_SSL_LISTENER_PORT",
    "iiop_ssl_mutualauth": "IIOP_SSL_MUTUALAUTH_PORT",
    "jmx_system_connector": "JMX_SYSTEM_CONNECTOR_PORT",
    "jms_provider": "JMS_PROVIDER_PORT",
    "asadmin": "ASADMIN_LISTENER_PORT",
}


@dataclass(frozen=True)
class PortSet:
    """The 8 ports of one instance, in fixed declaration order."""

    http: Port
    http_ssl: Port
    iiop: Port
    iiop_ssl: Port
    iiop_ssl_mutualauth: Port
    jmx_system_connector: Port
    jms_provider: Port
    asadmin: Port

    def __post_init__(self) -> None:
        for name, port in self.items():
            if isinstance(port, bool) or not isinstance(port, int):
                raise ConfigurationError(f"Port {name} must be an int, got {port!r}")
            if not MIN_PORT <= port <= MAX_PORT:
                raise ConfigurationError(f"Port {name}={port} is out of range")

    @classmethod
    def from_base(cls, base_port: Port) -> "PortSet":
        """Consecutive ports ``base_port .. base_port + 7``."""
        return cls(*range(base_port, base_port + PORTS_PER_INSTANCE))

    @classmethod
    def from_properties(cls, values: Dict[str, Port]) -> "PortSet":
        """Build from persisted property names (``HTTP_LISTENER_PORT`` ...)."""
        return cls(
            **{field: values[prop] for field, prop in PORT_PROPERTY_NAMES.items()}
        )

    def items(self) -> Iterator[Tuple[str, Port]]:
        for f in fields(self):
            yield f.name, getattr(self, f.name)

    def as_tuple(self) -> Tuple[Port, ...]:
        return tuple(port for _, port in self.items())

    def as_properties(self) -> Dict[str, Port]:
        return {PORT_PROPERTY_NAMES[name]: port for name, port in self.items()}

    def with_port(self, name: str, port: Port) -> "PortSet":
        return replace(self, **{name: port})


@dataclass
class InstanceSpec:
    """One logical server instance of the cluster.

    Attributes:
        name: Instance name, unique within a topology.
        base_port: First port of the block the ports were generated from.
        ports: The 8 assigned ports.
        node_name: Name of the node the instance runs on, once assigned.
        home_dir: Installation home directory on that node.
    """

    name: InstanceName
    base_port: Port
    ports: PortSet
    node_name: Optional[NodeName] = None
    home_dir: Optional[str] = None
    finalized: bool = False

    @classmethod
    def generate(cls, name: InstanceName, base_port: Port) -> "InstanceSpec":
        """Preferred ports, consecutive from ``base_port``."""
        return cls(name=name, base_port=base_port, ports=PortSet.from_base(base_port))

    @classmethod
    def restore(
        cls,
        name: InstanceName,
        node_name: NodeName,
        home_dir: str,
        ports: PortSet,
    ) -> "InstanceSpec":
        """Rebuild a persisted instance verbatim, nothing is recomputed."""
        return cls(
            name=name,
            base_port=ports.http,
            ports=ports,
            node_name=node_name,
            home_dir=home_dir,
        )

    def _check_mutable(self) -> None:
        if self.finalized:
            raise RuntimeError(f"Instance {self.name} is finalized")

    def assign_node(self, node_name: NodeName, home_dir: str) -> None:
        self._check_mutable()
        self.node_name = node_name
        self.home_dir = home_dir

    def update_per_port_availability(
        self, allocator: "PortAllocator", node: NodeInfo
    ) -> None:
        """Replace each port with the nearest free port on ``node``.

        Probes run one at a time in declaration order.
        """
        self._check_mutable()
        if node.name != self.node_name:
            raise ValueError(
                f"Instance {self.name} is assigned to {self.node_name}, "
                f"not {node.name}"
            )

        ports = self.ports
        for field_name, port in self.ports.items():
            label = f"{self.name} {node.name}:{field_name}"
            resolved = allocator.next_available(node, port, label, owner=label)
            ports = ports.with_port(field_name, resolved)
        self.ports = ports

    def finalize(self) -> None:
        self.finalized = True

    def port_list(self) -> str:
        return ":".join(
            f"{prop}={port}" for prop, port in self.ports.as_properties().items()
        )

    def describe(self, verbose: bool = False) -> str:
        summary = f"{self.name} on {self.node_name or '<unassigned>'}"
        if verbose:
            return f"{summary}: {self.port_list()}"
        return summary
