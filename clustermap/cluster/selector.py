"""Label-based worker node selection."""

import random
from typing import List, Optional, Sequence

from clustermap.cluster.info import NodeInfo
from clustermap.cluster.protocol import NodeLivenessOracle
from clustermap.logger import init_logger

logger = init_logger(__name__)


class NodeSelector:
    """Picks the eligible worker nodes for instance deployment.

    A node is eligible when it is online, has at least one executor slot and
    carries ``label`` (case-insensitive). The eligible list is shuffled so
    that repeated runs spread instances over the pool. Pass a seeded
    ``random.Random`` to get a reproducible order.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng if rng is not None else random.Random()

    def select_nodes(
        self,
        required_count: int,
        label: str,
        pool: Sequence[NodeInfo],
        liveness: NodeLivenessOracle,
    ) -> List[NodeInfo]:
        """Return all eligible nodes from ``pool`` in random order.

        Never raises on shortage; the caller compares the result size
        against what it needs.
        """
        wanted = label.lower()
        eligible: List[NodeInfo] = []

        for node in pool:
            if not liveness.is_online(node):
                logger.debug("Skipped: %s (Node is offline)", node.name)
                continue
            if liveness.executor_slots(node) <= 0:
                logger.debug("Skipped: %s (No executors)", node.name)
                continue

            matched = next(
                (lbl for lbl in liveness.labels(node) if lbl.lower() == wanted),
                None,
            )
            if matched is None:
                logger.debug(
                    "Node %s is ignored (No Label Matched: %s)", node.name, label
                )
                continue

            logger.debug("Node %s is available (Label=%s)", node.name, matched)
            eligible.append(node)

        self._rng.shuffle(eligible)

        if len(eligible) < required_count:
            logger.warning(
                "Only %d node(s) match label %r, %d requested",
                len(eligible),
                label,
                required_count,
            )
        return eligible
