"""
Error types raised while planning or restoring a cluster topology.

Every error derives from ClusterMapError and from the builtin exception
callers would otherwise expect (ValueError for bad input, RuntimeError for
runtime conditions), so existing ``except ValueError`` handlers keep working.
"""

from typing import Iterable


class ClusterMapError(Exception):
    """Base class for all clustermap errors."""


class ConfigurationError(ClusterMapError, ValueError):
    """Invalid cluster size, override syntax, or plan contents."""


class PersistenceError(ConfigurationError):
    """A persisted plan is missing a field, has an invalid value, or is unreadable."""

    def __init__(self, problems: Iterable[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class NodeShortageError(ClusterMapError, RuntimeError):
    """Not enough live nodes match the node selection label."""

    def __init__(self, required: int, available: int, label: str) -> None:
        self.required = required
        self.available = available
        self.label = label
        super().__init__(
            f"Not enough nodes available for instance deployment. "
            f"(Required: {required}, Available: {available}, Label: {label!r})"
        )


class ProbeError(ClusterMapError, RuntimeError):
    """A liveness or port probe failed instead of returning an answer."""


class PortExhaustedError(ClusterMapError, RuntimeError):
    """The bounded port search found no free port."""
