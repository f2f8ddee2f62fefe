"""
Cluster topology planning.

ClusterTopology owns one planning run: it builds the instance map, binds
instances to nodes round-robin starting at the DAS node, resolves ports
against live probes, and persists the result. A persisted plan can be loaded
back without selecting nodes or probing ports again.
"""

import enum
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Sequence

from clustermap.cluster.codec import DAS_ADMIN_PORT, PersistenceCodec
from clustermap.cluster.info import NodeInfo
from clustermap.cluster.overrides import ClusterMapBuilder
from clustermap.cluster.ports import PortAllocator
from clustermap.cluster.protocol import (
    Installer,
    NodeLivenessOracle,
    PlanStore,
    PortProbeOracle,
)
from clustermap.cluster.selector import NodeSelector
from clustermap.cluster.spec import InstanceSpec
from clustermap.core.config import ClusterConfig
from clustermap.core.exceptions import (
    ConfigurationError,
    NodeShortageError,
    PersistenceError,
)
from clustermap.core.types import InstanceName, NodeName, Port
from clustermap.logger import init_logger

logger = init_logger(__name__)

DAS_HTTP_PORT = 8080
DEFAULT_PROPS_FILE = "cluster.props"
DEFAULT_ANT_PROPS_FILE = "ant/cluster.properties"

NodeResolver = Callable[[NodeName], Optional[NodeInfo]]


class TopologyState(enum.IntEnum):
    EMPTY = 0
    GENERATED = 1
    OVERRIDDEN = 2
    NODES_SELECTED = 3
    ASSIGNED = 4
    PORTS_RESOLVED = 5
    PERSISTED = 6


class ClusterTopology:
    """The plan binding a cluster's instances to nodes and ports.

    The DAS node is always ``nodes[0]`` and hosts instance 1. Planning moves
    through :class:`TopologyState` in order; each step refuses to run out of
    order.

    Usage::

        topology = ClusterTopology.from_config(config, das_node)
        topology.init_cluster_map(config.instance_name_prefix,
                                  config.cluster_size,
                                  config.custom_instance_text)
        topology.create_cluster_properties(
            selector, liveness, installer, allocator, store
        )
    """

    def __init__(
        self,
        cluster_name: str,
        num_nodes: int,
        base_port: Port,
        node_selection_label: str,
        das_node: NodeInfo,
    ) -> None:
        if num_nodes < 1:
            raise ConfigurationError(f"Invalid number of nodes: {num_nodes}")

        self.cluster_name = cluster_name
        self.num_nodes = num_nodes
        self.base_port = base_port
        self.node_selection_label = node_selection_label
        self.das_node = das_node
        self.das_home_dir: Optional[str] = None
        self.nodes: List[NodeInfo] = [das_node]
        self.instances: Dict[InstanceName, InstanceSpec] = {}
        self.state = TopologyState.EMPTY

    @classmethod
    def from_config(
        cls, config: ClusterConfig, das_node: NodeInfo
    ) -> "ClusterTopology":
        return cls(
            cluster_name=config.cluster_name,
            num_nodes=config.num_nodes,
            base_port=config.base_port,
            node_selection_label=config.node_selection_label,
            das_node=das_node,
        )

    def _require_state(self, *allowed: TopologyState) -> None:
        if self.state not in allowed:
            raise RuntimeError(
                f"Cluster {self.cluster_name} is {self.state.name}, expected "
                f"{' or '.join(s.name for s in allowed)}"
            )

    # ------------------------------------------------------------------
    # Node lookups
    # ------------------------------------------------------------------

    @property
    def das_admin_port(self) -> Port:
        return DAS_ADMIN_PORT

    @property
    def das_cluster_node(self) -> NodeInfo:
        return self.nodes[0]

    def cluster_node(self, host_num: int) -> NodeInfo:
        """Return the node at 1-based position ``host_num``."""
        if not 1 <= host_num <= min(self.num_nodes, len(self.nodes)):
            raise IndexError(f"Invalid Host Number: {host_num}")
        return self.nodes[host_num - 1]

    def node_for_instance(self, name: InstanceName) -> NodeInfo:
        instance = self.instances[name]
        for node in self.nodes:
            if node.name == instance.node_name:
                return node
        raise ValueError(f"Instance {name} is not assigned to a cluster node")

    def list_instances(self, verbose: bool = False) -> List[str]:
        return [instance.describe(verbose) for instance in self.instances.values()]

    def verify_das_port_availability(self, probe: PortProbeOracle) -> bool:
        """Check that the DAS admin and HTTP ports are free on the DAS node."""
        for label, port in (
            ("DAS_ADMIN_PORT", DAS_ADMIN_PORT),
            ("DAS_HTTP_PORT", DAS_HTTP_PORT),
        ):
            if not probe.is_port_free(self.das_node, port):
                logger.info("%s %d is not available!", label, port)
                return False
        return True

    # ------------------------------------------------------------------
    # Instance map
    # ------------------------------------------------------------------

    def create_auto_assigned_cluster_map(self, prefix: str, count: int) -> None:
        """Generate ``prefix1..prefixN`` with base ports 0x100 apart."""
        self._require_state(TopologyState.EMPTY)
        builder = ClusterMapBuilder().generate(prefix, count, self.base_port)
        self.instances = builder.build()
        self.state = TopologyState.GENERATED

    def update_cluster_map_per_user_prefs(
        self, text: str, verbose: bool = False
    ) -> None:
        """Merge ``name=port`` overrides into the generated map.

        Raises:
            ConfigurationError: Any entry was invalid. The map is unchanged.
        """
        self._require_state(TopologyState.GENERATED, TopologyState.OVERRIDDEN)
        builder = ClusterMapBuilder.from_instances(self.instances.values())
        errors = builder.apply_overrides(text, verbose=verbose)
        if errors:
            raise ConfigurationError(
                f"Couldn't load custom instance properties: {', '.join(errors)}"
            )
        self._require_instances(builder)
        self.instances = builder.build()
        self.state = TopologyState.OVERRIDDEN
        self._clamp_num_nodes()

    def init_cluster_map(
        self, prefix: str, count: int, custom_instance_text: str = ""
    ) -> None:
        """Build the instance map and clamp ``num_nodes`` to the instance count.

        Nothing is installed on the topology when the overrides are invalid
        or the resulting map has no instances.
        """
        self._require_state(TopologyState.EMPTY)
        builder = ClusterMapBuilder().generate(prefix, count, self.base_port)
        errors = builder.apply_overrides(custom_instance_text, verbose=False)
        if errors:
            logger.error(
                "Couldn't load custom instance properties, planning aborted (%s)",
                ", ".join(errors),
            )
            raise ConfigurationError(
                f"Couldn't load custom instance properties: {', '.join(errors)}"
            )

        self._require_instances(builder)
        self.instances = builder.build()
        self.state = TopologyState.OVERRIDDEN
        self._clamp_num_nodes()

    def _require_instances(self, builder: ClusterMapBuilder) -> None:
        if len(builder) == 0:
            logger.error("Cluster %s has no instances", self.cluster_name)
            raise ConfigurationError(
                f"Invalid Cluster Size: cluster {self.cluster_name} has no instances"
            )

    def _clamp_num_nodes(self) -> None:
        # One instance per node at most, extra nodes would stay idle.
        if self.num_nodes > len(self.instances):
            self.num_nodes = len(self.instances)

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def assign_cluster_nodes_to_instances(
        self,
        selector: NodeSelector,
        liveness: NodeLivenessOracle,
        installer: Installer,
        pool: Optional[Sequence[NodeInfo]] = None,
    ) -> None:
        """Select worker nodes and bind instances to them round-robin.

        Instance ``i`` (1-based, map order) lands on
        ``nodes[(i-1) % num_nodes]``, so instance 1 always runs on the DAS node.

        Raises:
            NodeShortageError: Fewer than ``num_nodes - 1`` eligible nodes
                besides the DAS node. No instance or node list is touched.
        """
        self._require_state(TopologyState.OVERRIDDEN)
        if pool is None:
            pool = liveness.nodes()

        candidates = selector.select_nodes(
            self.num_nodes - 1, self.node_selection_label, pool, liveness
        )
        # The DAS node already holds position 0.
        selected = [n for n in candidates if n.name != self.das_node.name]
        selected = selected[: self.num_nodes - 1]

        if len(selected) + 1 < self.num_nodes:
            logger.error(
                "Not enough nodes available for instance deployment. "
                "(Required: %d, Available: %d, Label: %s)",
                self.num_nodes,
                len(selected) + 1,
                self.node_selection_label,
            )
            raise NodeShortageError(
                self.num_nodes, len(selected) + 1, self.node_selection_label
            )

        nodes = [self.das_node] + selected
        home_dirs = {node.name: installer.installed_home_dir(node) for node in nodes}
        self.nodes = nodes
        self.das_home_dir = home_dirs[self.das_node.name]
        self.state = TopologyState.NODES_SELECTED

        for i, instance in enumerate(self.instances.values()):
            node = self.nodes[i % self.num_nodes]
            instance.assign_node(node.name, home_dirs[node.name])

        self.state = TopologyState.ASSIGNED

    def update_cluster_map_per_port_availability(
        self, allocator: PortAllocator
    ) -> None:
        """Move every instance's ports to ones that are free on its node."""
        self._require_state(TopologyState.ASSIGNED)
        for name, instance in self.instances.items():
            instance.update_per_port_availability(
                allocator, self.node_for_instance(name)
            )
        self.state = TopologyState.PORTS_RESOLVED

    def update_cluster_map(
        self,
        selector: NodeSelector,
        liveness: NodeLivenessOracle,
        installer: Installer,
        allocator: PortAllocator,
    ) -> None:
        """Assign nodes to instances, then resolve ports on those nodes."""
        self.assign_cluster_nodes_to_instances(selector, liveness, installer)
        self.update_cluster_map_per_port_availability(allocator)

    def validate(self) -> None:
        """Check the finished plan before it is written anywhere."""
        problems: List[str] = []
        if not self.nodes:
            problems.append("topology has no nodes")
        elif self.nodes[0].name != self.das_node.name:
            problems.append("DAS node is not the first cluster node")
        if len(self.nodes) > self.num_nodes:
            problems.append(
                f"{len(self.nodes)} nodes in use but numNodes is {self.num_nodes}"
            )
        if not self.instances:
            problems.append("topology has no instances")
        else:
            first = next(iter(self.instances.values()))
            if first.node_name != self.das_node.name:
                problems.append(
                    f"{first.name} is on {first.node_name}, not on the DAS node "
                    f"{self.das_node.name}"
                )

        node_names = {node.name for node in self.nodes}
        ports_by_node: Dict[NodeName, Dict[Port, str]] = defaultdict(dict)
        for instance in self.instances.values():
            if instance.node_name not in node_names:
                problems.append(
                    f"{instance.name} is on unknown node {instance.node_name}"
                )
                continue
            used = ports_by_node[instance.node_name]
            for port in instance.ports.as_tuple():
                owner = used.get(port)
                if owner is not None and owner != instance.name:
                    problems.append(
                        f"port {port} on {instance.node_name} is used by both "
                        f"{owner} and {instance.name}"
                    )
                used[port] = instance.name

        if problems:
            raise ConfigurationError(f"Invalid cluster plan: {'; '.join(problems)}")

    def create_cluster_props_files(
        self,
        store: PlanStore,
        props_file_name: str = DEFAULT_PROPS_FILE,
        ant_props_file_name: Optional[str] = DEFAULT_ANT_PROPS_FILE,
    ) -> str:
        """Validate, freeze and persist the plan. Returns the written text."""
        self._require_state(TopologyState.PORTS_RESOLVED)
        self.validate()
        for instance in self.instances.values():
            instance.finalize()

        text = PersistenceCodec.encode(self)
        store.write_text(props_file_name, text)
        logger.info("Created %s", props_file_name)
        logger.info("=================================================")
        logger.info("\n%s", text)
        logger.info("=================================================")

        if ant_props_file_name:
            store.write_text(
                ant_props_file_name, PersistenceCodec.encode_ant_properties(self)
            )

        self.state = TopologyState.PERSISTED
        return text

    def create_cluster_properties(
        self,
        selector: NodeSelector,
        liveness: NodeLivenessOracle,
        installer: Installer,
        allocator: PortAllocator,
        store: PlanStore,
        props_file_name: str = DEFAULT_PROPS_FILE,
        ant_props_file_name: Optional[str] = DEFAULT_ANT_PROPS_FILE,
    ) -> str:
        self.update_cluster_map(selector, liveness, installer, allocator)
        return self.create_cluster_props_files(
            store, props_file_name, ant_props_file_name
        )

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    @classmethod
    def from_properties_text(
        cls, text: str, node_resolver: Optional[NodeResolver] = None
    ) -> "ClusterTopology":
        """Rebuild a plan from persisted text without probing anything.

        The referenced nodes are assumed to still be online; whatever later
        creates the cluster finds out if one is gone.
        """
        record = PersistenceCodec.decode(text)

        def resolve(name: NodeName) -> NodeInfo:
            node = node_resolver(name) if node_resolver is not None else None
            return node if node is not None else NodeInfo(name=name)

        das_node = resolve(record.das_node)
        topology = cls(
            cluster_name=record.cluster_name,
            num_nodes=record.num_nodes,
            base_port=record.instances[0].base_port,
            node_selection_label="",
            das_node=das_node,
        )

        seen = {das_node.name}
        for instance in record.instances:
            if instance.node_name not in seen:
                seen.add(instance.node_name)
                topology.nodes.append(resolve(instance.node_name))
            if topology.das_home_dir is None and instance.node_name == das_node.name:
                topology.das_home_dir = instance.home_dir
            instance.finalize()
            topology.instances[instance.name] = instance

        try:
            topology.validate()
        except ConfigurationError as e:
            logger.error("%s", e)
            raise PersistenceError([str(e)]) from e

        topology.state = TopologyState.PERSISTED
        return topology

    @classmethod
    def load_cluster_properties_file(
        cls,
        store: PlanStore,
        file_name: str = DEFAULT_PROPS_FILE,
        node_resolver: Optional[NodeResolver] = None,
    ) -> "ClusterTopology":
        logger.info("Reading properties file: %s", file_name)
        return cls.from_properties_text(store.read_text(file_name), node_resolver)
