from .cluster_config import ClusterConfig
from .probe_config import ProbeConfig

__all__ = [
    "ClusterConfig",
    "ProbeConfig",
]
