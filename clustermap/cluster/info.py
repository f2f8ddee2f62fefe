"""Node handle shared by all oracle backends."""

from dataclasses import dataclass
from typing import Optional, Tuple

from clustermap.core.types import NodeName


@dataclass(frozen=True)
class NodeInfo:
    """A worker node as seen by the planner.

    Identity is ``name``; the remaining fields are the liveness snapshot
    captured when the node was discovered.
    """

    name: NodeName
    labels: Tuple[str, ...] = ()
    executor_slots: int = 1
    online: bool = True
    ip_address: Optional[str] = None
    ray_node_id: Optional[str] = None
