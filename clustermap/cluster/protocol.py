"""Abstract collaborator interfaces the planner calls out to."""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from clustermap.cluster.info import NodeInfo
from clustermap.core.types import NodeName, Port


class NodeLivenessOracle(ABC):
    """Read-only view of the worker pool supplied by the fleet layer."""

    @abstractmethod
    def nodes(self) -> List[NodeInfo]: ...

    @abstractmethod
    def is_online(self, node: NodeInfo) -> bool: ...

    @abstractmethod
    def executor_slots(self, node: NodeInfo) -> int: ...

    @abstractmethod
    def labels(self, node: NodeInfo) -> Sequence[str]: ...

    def get_node(self, name: NodeName) -> Optional[NodeInfo]:
        """Look a node up by name, ``None`` when it is not in the pool."""
        for node in self.nodes():
            if node.name == name:
                return node
        return None


class PortProbeOracle(ABC):
    """Answers whether a port can be bound on a node.

    Implementations block on the remote round trip and raise ProbeError when
    the probe itself fails.
    """

    @abstractmethod
    def is_port_free(self, node: NodeInfo, port: Port) -> bool: ...


class Installer(ABC):
    """The part of the installer the planner needs: where the bundle lives."""

    @abstractmethod
    def installed_home_dir(self, node: NodeInfo) -> str: ...


class PlanStore(ABC):
    """Named text storage for persisted plans."""

    @abstractmethod
    def write_text(self, name: str, text: str) -> None: ...

    @abstractmethod
    def read_text(self, name: str) -> str: ...
