"""
Cluster topology types and planning for clustermap.
"""

from clustermap.cluster.codec import PersistenceCodec, TopologyRecord, parse_properties
from clustermap.cluster.info import NodeInfo
from clustermap.cluster.local import (
    LocalNodeOracle,
    LocalPortProbe,
    StaticInstaller,
)
from clustermap.cluster.overrides import ClusterMapBuilder
from clustermap.cluster.ports import PortAllocator
from clustermap.cluster.protocol import (
    Installer,
    NodeLivenessOracle,
    PlanStore,
    PortProbeOracle,
)
from clustermap.cluster.selector import NodeSelector
from clustermap.cluster.spec import InstanceSpec, PortSet
from clustermap.cluster.store import FilePlanStore
from clustermap.cluster.topology import ClusterTopology, TopologyState

__all__ = [
    "ClusterMapBuilder",
    "ClusterTopology",
    "FilePlanStore",
    "Installer",
    "InstanceSpec",
    "LocalNodeOracle",
    "LocalPortProbe",
    "NodeInfo",
    "NodeLivenessOracle",
    "NodeSelector",
    "PersistenceCodec",
    "PlanStore",
    "PortAllocator",
    "PortProbeOracle",
    "PortSet",
    "StaticInstaller",
    "TopologyRecord",
    "TopologyState",
    "parse_properties",
]
