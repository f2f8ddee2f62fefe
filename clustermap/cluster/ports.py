"""
Port allocation against live per-node probes.

The allocator is the single ownership point for port claims: every
probe-and-claim on a node runs under that node's lock and the claimed port is
remembered together with its owner, so instances sharing a node cannot be
handed the same port even though each probe is check-then-act on the remote
side.
"""

import threading
from typing import Dict, FrozenSet, Optional

from clustermap.cluster.info import NodeInfo
from clustermap.cluster.protocol import PortProbeOracle
from clustermap.core.config import ProbeConfig
from clustermap.core.exceptions import ConfigurationError, PortExhaustedError
from clustermap.core.types import MAX_PORT, MIN_PORT, NodeName, Port
from clustermap.logger import init_logger

logger = init_logger(__name__)


class PortAllocator:
    """Finds the nearest free port at or above a candidate on a node."""

    def __init__(
        self, probe: PortProbeOracle, config: Optional[ProbeConfig] = None
    ) -> None:
        self._probe = probe
        self._config = config if config is not None else ProbeConfig()
        # node name -> {port: owner}
        self._claims: Dict[NodeName, Dict[Port, Optional[str]]] = {}
        self._node_locks: Dict[NodeName, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, node_name: NodeName) -> threading.Lock:
        with self._locks_guard:
            lock = self._node_locks.get(node_name)
            if lock is None:
                lock = threading.Lock()
                self._node_locks[node_name] = lock
            return lock

    def next_available(
        self,
        node: NodeInfo,
        candidate: Port,
        label: str,
        owner: Optional[str] = None,
    ) -> Port:
        """Return ``candidate`` if it is free on ``node``, else the next free port.

        A port already claimed by the same ``owner`` is handed back without
        probing, since that owner is what keeps it busy.

        Args:
            node: Node to probe.
            candidate: Preferred port.
            label: Human-readable name of the port, used only for logging.
            owner: Identity of the claimant, usually the instance name.

        Raises:
            PortExhaustedError: No free port within ``max_attempts`` candidates
                or before the end of the port range.
            ProbeError: The probe failed.
        """
        if not MIN_PORT <= candidate <= MAX_PORT:
            raise ConfigurationError(f"{label}: invalid candidate port {candidate}")

        with self._lock_for(node.name):
            claims = self._claims.setdefault(node.name, {})
            port = candidate
            for _ in range(self._config.max_attempts):
                if port in claims:
                    if owner is not None and claims[port] == owner:
                        return port
                elif self._probe.is_port_free(node, port):
                    claims[port] = owner
                    if port != candidate:
                        logger.info(
                            "%s: port %d is not available, using %d",
                            label,
                            candidate,
                            port,
                        )
                    return port

                logger.debug("%s: port %d is in use", label, port)
                if port == MAX_PORT:
                    raise PortExhaustedError(
                        f"{label}: no free port between {candidate} and {MAX_PORT}"
                    )
                port += 1

        raise PortExhaustedError(
            f"{label}: no free port after {self._config.max_attempts} attempts "
            f"starting at {candidate}"
        )

    def claimed(self, node_name: NodeName) -> FrozenSet[Port]:
        with self._lock_for(node_name):
            return frozenset(self._claims.get(node_name, {}))

    def release(self, node_name: NodeName, owner: Optional[str] = None) -> None:
        """Forget the claims on ``node_name``, only ``owner``'s when given."""
        with self._lock_for(node_name):
            if owner is None:
                self._claims.pop(node_name, None)
                return
            claims = self._claims.get(node_name, {})
            for port in [p for p, o in claims.items() if o == owner]:
                del claims[port]
