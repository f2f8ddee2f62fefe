"""
Ray-backed liveness and port probes.

The worker pool is the set of nodes in a running Ray cluster. Port probes run
as zero-CPU Ray tasks pinned to the target node, so the bind test happens on
the machine that will host the instance.
"""

from typing import Any, Dict, List, Optional, Sequence

import ray
from ray.util.scheduling_strategies import NodeAffinitySchedulingStrategy

from clustermap.cluster.info import NodeInfo
from clustermap.cluster.local import is_port_free
from clustermap.cluster.protocol import NodeLivenessOracle, PortProbeOracle
from clustermap.core.config import ProbeConfig
from clustermap.core.exceptions import ProbeError
from clustermap.core.types import Port
from clustermap.logger import init_logger

logger = init_logger(__name__)

# Resources every Ray node reports; anything else is a user-defined label.
_BUILTIN_RESOURCES = {"CPU", "GPU", "memory", "object_store_memory"}
_BUILTIN_PREFIXES = ("node:", "accelerator_type:")
_RAY_LABEL_PREFIX = "ray.io/"


def _labels_from_ray_entry(entry: Dict[str, Any]) -> List[str]:
    labels: List[str] = []
    for resource in entry.get("Resources", {}):
        if resource in _BUILTIN_RESOURCES or resource.startswith(_BUILTIN_PREFIXES):
            continue
        labels.append(resource)
    for key, value in entry.get("Labels", {}).items():
        if key.startswith(_RAY_LABEL_PREFIX):
            continue
        labels.append(str(value))
    return labels


def node_from_ray_entry(entry: Dict[str, Any]) -> NodeInfo:
    """Convert one ``ray.nodes()`` entry into a NodeInfo."""
    ip = entry.get("NodeManagerAddress", "")
    resources = entry.get("Resources", {})
    return NodeInfo(
        name=entry.get("NodeManagerHostname") or ip,
        labels=tuple(_labels_from_ray_entry(entry)),
        executor_slots=int(resources.get("CPU", 0)),
        online=bool(entry.get("Alive", False)),
        ip_address=ip or None,
        ray_node_id=entry.get("NodeID"),
    )


class RayNodeOracle(NodeLivenessOracle):
    """Liveness snapshot of the Ray cluster.

    Nodes are discovered once, on first use, and re-read by ``refresh``. One
    node is kept per address.
    """

    def __init__(self) -> None:
        self._nodes: Optional[List[NodeInfo]] = None

    def refresh(self) -> List[NodeInfo]:
        try:
            entries = ray.nodes()
        except Exception as e:
            raise ProbeError(f"Failed to list Ray nodes: {e}") from e

        seen_ips = set()
        nodes: List[NodeInfo] = []
        for entry in entries:
            node = node_from_ray_entry(entry)
            if not node.ip_address or node.ip_address in seen_ips:
                continue
            seen_ips.add(node.ip_address)
            nodes.append(node)

        logger.info(
            "Discovered %d Ray node(s): %s",
            len(nodes),
            ", ".join(
                f"{n.name} ({'alive' if n.online else 'dead'}, "
                f"{n.executor_slots} CPUs)"
                for n in nodes
            ),
        )
        self._nodes = nodes
        return nodes

    def nodes(self) -> List[NodeInfo]:
        if self._nodes is None:
            return self.refresh()
        return list(self._nodes)

    def is_online(self, node: NodeInfo) -> bool:
        return node.online

    def executor_slots(self, node: NodeInfo) -> int:
        return node.executor_slots

    def labels(self, node: NodeInfo) -> Sequence[str]:
        return node.labels


@ray.remote(num_cpus=0)
def _probe_port(port: int) -> bool:
    return is_port_free(port)


class RayPortProbe(PortProbeOracle):
    """Bind-tests a port on the node itself through a pinned Ray task."""

    def __init__(self, config: Optional[ProbeConfig] = None) -> None:
        self._config = config if config is not None else ProbeConfig()

    def is_port_free(self, node: NodeInfo, port: Port) -> bool:
        if node.ray_node_id is None:
            raise ProbeError(f"Node {node.name} has no Ray node id")

        scheduling = NodeAffinitySchedulingStrategy(
            node_id=node.ray_node_id,
            soft=False,
        )
        ref = _probe_port.options(scheduling_strategy=scheduling).remote(port)
        try:
            return ray.get(ref, timeout=self._config.probe_timeout_s)
        except ray.exceptions.GetTimeoutError:
            ray.cancel(ref, force=True)
            raise ProbeError(
                f"Timed out probing {node.name}:{port} after "
                f"{self._config.probe_timeout_s}s"
            ) from None
        except ray.exceptions.RayError as e:
            raise ProbeError(f"Failed to probe {node.name}:{port}: {e}") from e
