"""Two-phase construction of the instance map: generate, then override."""

from typing import Dict, Iterable, List

from clustermap.cluster.codec import parse_properties
from clustermap.cluster.spec import InstanceSpec
from clustermap.core.types import InstanceName, Port
from clustermap.logger import init_logger

logger = init_logger(__name__)

# Distance between the base ports of consecutive generated instances.
PORT_STRIDE = 0x100


class ClusterMapBuilder:
    """Accumulates instance name -> base port before any instance is built.

    Phases are applied in order: ``generate`` seeds consecutive instances,
    ``apply_overrides`` replaces or extends them from ``name=port`` text, and
    ``build`` turns the result into InstanceSpecs. Re-applying the same
    overrides is a no-op.
    """

    def __init__(self) -> None:
        self._base_ports: Dict[InstanceName, Port] = {}

    @classmethod
    def from_instances(
        cls, instances: Iterable[InstanceSpec]
    ) -> "ClusterMapBuilder":
        """Seed a builder with the base ports of existing instances."""
        builder = cls()
        for instance in instances:
            builder._base_ports[instance.name] = instance.base_port
        return builder

    def generate(
        self, prefix: str, count: int, base_port: Port
    ) -> "ClusterMapBuilder":
        for i in range(1, count + 1):
            self._base_ports[f"{prefix}{i}"] = base_port + (i - 1) * PORT_STRIDE
        return self

    def apply_overrides(self, text: str, verbose: bool = True) -> List[str]:
        """Merge ``name=port`` pairs and return the entries that were rejected.

        A rejected entry is skipped; the caller decides whether any rejection
        aborts the run.
        """
        errors: List[str] = []
        for name, value in parse_properties(text).items():
            try:
                base_port = int(value)
                # Validates that the whole 8-port block fits the port range.
                InstanceSpec.generate(name, base_port)
            except ValueError:
                logger.error("Invalid Entry: %s %s", name, value)
                errors.append(f"{name}={value}")
                continue

            if verbose:
                action = "Updated" if name in self._base_ports else "Added"
                logger.info("%s: %s:%d", action, name, base_port)
            self._base_ports[name] = base_port
        return errors

    def build(self) -> Dict[InstanceName, InstanceSpec]:
        return {
            name: InstanceSpec.generate(name, base_port)
            for name, base_port in self._base_ports.items()
        }

    def __len__(self) -> int:
        return len(self._base_ports)
