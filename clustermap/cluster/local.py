"""Single-machine collaborators: this host is the only node."""

import os
import socket
from contextlib import closing
from typing import List, Optional, Sequence

from clustermap.cluster.info import NodeInfo
from clustermap.cluster.protocol import Installer, NodeLivenessOracle, PortProbeOracle
from clustermap.core.exceptions import ProbeError
from clustermap.core.types import Port


def is_port_free(port: Port, host: str = "") -> bool:
    """Bind test on this host. ``host=""`` covers all interfaces."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


class LocalNodeOracle(NodeLivenessOracle):
    """The current machine as a one-node pool.

    Useful for planning a cluster whose instances all run on the build host,
    and as the DAS node handle for the Ray backend.
    """

    def __init__(
        self,
        labels: Sequence[str] = (),
        name: Optional[str] = None,
        executor_slots: Optional[int] = None,
    ) -> None:
        self._node = NodeInfo(
            name=name or socket.gethostname(),
            labels=tuple(labels),
            executor_slots=(
                executor_slots if executor_slots is not None else os.cpu_count() or 1
            ),
            online=True,
            ip_address="127.0.0.1",
        )

    @property
    def node(self) -> NodeInfo:
        return self._node

    def nodes(self) -> List[NodeInfo]:
        return [self._node]

    def is_online(self, node: NodeInfo) -> bool:
        return node.name == self._node.name

    def executor_slots(self, node: NodeInfo) -> int:
        return self._node.executor_slots if node.name == self._node.name else 0

    def labels(self, node: NodeInfo) -> Sequence[str]:
        return self._node.labels if node.name == self._node.name else ()


class LocalPortProbe(PortProbeOracle):
    """Probes ports on this host, refuses nodes that are not this host."""

    def __init__(self, node_name: Optional[str] = None, host: str = "") -> None:
        self._node_name = node_name or socket.gethostname()
        self._host = host

    def is_port_free(self, node: NodeInfo, port: Port) -> bool:
        if node.name != self._node_name:
            raise ProbeError(
                f"Cannot probe {node.name}:{port} from {self._node_name}"
            )
        return is_port_free(port, self._host)


class StaticInstaller(Installer):
    """Every node has the bundle installed under the same home directory."""

    def __init__(self, home_dir: str) -> None:
        self._home_dir = home_dir

    def installed_home_dir(self, node: NodeInfo) -> str:
        return self._home_dir
