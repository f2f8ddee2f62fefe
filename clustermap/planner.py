"""
End-to-end planning entry points.

``plan_cluster`` runs one full planning pass and persists the result;
``load_cluster`` rebuilds a previously persisted plan.
"""

from typing import Optional

from clustermap.cluster.info import NodeInfo
from clustermap.cluster.ports import PortAllocator
from clustermap.cluster.protocol import (
    Installer,
    NodeLivenessOracle,
    PlanStore,
    PortProbeOracle,
)
from clustermap.cluster.selector import NodeSelector
from clustermap.cluster.topology import DEFAULT_PROPS_FILE, ClusterTopology
from clustermap.core.config import ClusterConfig
from clustermap.logger import init_logger

logger = init_logger(__name__)


def plan_cluster(
    config: ClusterConfig,
    das_node: NodeInfo,
    liveness: NodeLivenessOracle,
    probe: PortProbeOracle,
    installer: Installer,
    store: PlanStore,
    selector: Optional[NodeSelector] = None,
) -> ClusterTopology:
    """Plan a cluster from ``config`` and write the plan to ``store``.

    Args:
        config: The planning request.
        das_node: Node that runs the DAS and instance 1.
        liveness: View of the worker pool.
        probe: Port probe for the selected nodes.
        installer: Supplies each node's installation home directory.
        store: Where the plan files are written.
        selector: Node selector, a randomly seeded one by default.

    Returns:
        The persisted ClusterTopology.
    """
    instance_names = " ".join(
        f"{config.instance_name_prefix}{i}" for i in range(1, config.cluster_size + 1)
    )
    logger.info(
        "Cluster '%s' will be created with %d instances: %s",
        config.cluster_name,
        config.cluster_size,
        instance_names,
    )

    topology = ClusterTopology.from_config(config, das_node)
    topology.init_cluster_map(
        config.instance_name_prefix,
        config.cluster_size,
        config.custom_instance_text,
    )
    topology.create_cluster_properties(
        selector if selector is not None else NodeSelector(),
        liveness,
        installer,
        PortAllocator(probe, config.probe),
        store,
        props_file_name=config.props_file_name,
        ant_props_file_name=config.ant_props_file_name,
    )

    for line in topology.list_instances():
        logger.info(line)
    return topology


def load_cluster(
    store: PlanStore,
    file_name: str = DEFAULT_PROPS_FILE,
    liveness: Optional[NodeLivenessOracle] = None,
) -> ClusterTopology:
    """Rebuild a persisted plan, resolving node names through ``liveness``."""
    return ClusterTopology.load_cluster_properties_file(
        store,
        file_name,
        node_resolver=liveness.get_node if liveness is not None else None,
    )
