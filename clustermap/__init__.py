"""
clustermap: topology planning and port allocation for multi-node
application-server clusters.
"""

from clustermap.cluster import (
    ClusterTopology,
    InstanceSpec,
    NodeInfo,
    NodeSelector,
    PersistenceCodec,
    PortAllocator,
    PortSet,
)
from clustermap.core.config import ClusterConfig, ProbeConfig
from clustermap.planner import load_cluster, plan_cluster

__all__ = [
    "ClusterConfig",
    "ClusterTopology",
    "InstanceSpec",
    "NodeInfo",
    "NodeSelector",
    "PersistenceCodec",
    "PortAllocator",
    "PortSet",
    "ProbeConfig",
    "load_cluster",
    "plan_cluster",
]
