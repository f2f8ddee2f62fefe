"""
clustermap Ray integration.

Discovers the worker pool from a pre-existing Ray cluster and probes ports on
the worker nodes themselves.
"""

from clustermap.cluster.ray.oracles import (
    RayNodeOracle,
    RayPortProbe,
    node_from_ray_entry,
)

__all__ = [
    "RayNodeOracle",
    "RayPortProbe",
    "node_from_ray_entry",
]
