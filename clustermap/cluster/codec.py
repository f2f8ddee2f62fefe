"""
Flat ``key=value`` persistence of a cluster topology.

The persisted text is what lets a later run rebuild the same cluster without
selecting nodes or probing ports again::

    cluster_name=c1
    cluster_numNodes=2
    cluster_numInstances=2
    das_node=node-a
    das_port=4848
    instance1.name=in1
    instance1.node=node-a
    instance1.s1as.home=/opt/glassfish
    instance1.HTTP_LISTENER_PORT=10000
    ...
"""

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from clustermap.cluster.spec import PORT_PROPERTY_NAMES, InstanceSpec, PortSet
from clustermap.core.exceptions import PersistenceError
from clustermap.core.types import MAX_PORT, NodeName

if TYPE_CHECKING:
    from clustermap.cluster.topology import ClusterTopology

DAS_ADMIN_PORT = 4848

_COMMENT_PREFIXES = ("#", "!")
_SEPARATORS = "=:"
_INSTANCE_NAME_KEY = re.compile(r"instance[1-9][0-9]*\.name")


def _ends_key(char: str) -> bool:
    return char in _SEPARATORS or char.isspace()


def parse_properties(text: str) -> Dict[str, str]:
    """Parse properties text into an ordered dict.

    One pair per line, separated by ``=``, ``:`` or whitespace. Blank lines
    and lines starting with ``#`` or ``!`` are ignored, keys and values are
    trimmed, and a repeated key keeps its first position with the last value.
    Escapes and line continuations are not supported.
    """
    props: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(_COMMENT_PREFIXES):
            continue

        end = 0
        while end < len(line) and not _ends_key(line[end]):
            end += 1
        key = line[:end]
        rest = line[end:].lstrip()
        if rest and rest[0] in _SEPARATORS:
            rest = rest[1:]
        props[key] = rest.strip()
    return props


@dataclass
class TopologyRecord:
    """Everything a persisted plan holds, already validated."""

    cluster_name: str
    num_nodes: int
    das_node: NodeName
    instances: List[InstanceSpec] = field(default_factory=list)


class _FieldReader:
    """Collects every missing or invalid field instead of stopping at the first."""

    def __init__(self, props: Dict[str, str]) -> None:
        self._props = props
        self.problems: List[str] = []

    def string(self, key: str) -> Optional[str]:
        value = self._props.get(key)
        if value is None:
            self.problems.append(f"Couldn't load property: {key}")
            return None
        return value

    def integer(
        self, key: str, min_value: int = 1, max_value: Optional[int] = None
    ) -> Optional[int]:
        value = self.string(key)
        if value is None:
            return None
        try:
            number = int(value)
        except ValueError:
            self.problems.append(f"Invalid integer value: {key}={value}")
            return None
        if number < min_value:
            self.problems.append(
                f"Invalid value: {key}={number} (must be >={min_value})"
            )
            return None
        if max_value is not None and number > max_value:
            self.problems.append(
                f"Invalid value: {key}={number} (must be <={max_value})"
            )
            return None
        return number


class PersistenceCodec:
    """Encodes a ClusterTopology to properties text and back."""

    @staticmethod
    def encode(topology: "ClusterTopology") -> str:
        lines = [
            f"cluster_name={topology.cluster_name}",
            f"cluster_numNodes={topology.num_nodes}",
            f"cluster_numInstances={len(topology.instances)}",
            f"das_node={topology.das_node.name}",
            f"das_port={DAS_ADMIN_PORT}",
        ]
        for i, instance in enumerate(topology.instances.values(), start=1):
            prefix = f"instance{i}."
            lines.append(f"{prefix}name={instance.name}")
            lines.append(f"{prefix}node={instance.node_name}")
            lines.append(f"{prefix}s1as.home={instance.home_dir}")
            for prop, port in instance.ports.as_properties().items():
                lines.append(f"{prefix}{prop}={port}")
        return "\n".join(lines) + "\n"

    @staticmethod
    def decode(text: str) -> TopologyRecord:
        """Parse and validate a persisted plan.

        Raises:
            PersistenceError: Listing every missing or invalid field. No
                partial record is returned.
        """
        props = parse_properties(text)
        reader = _FieldReader(props)

        cluster_name = reader.string("cluster_name")
        num_nodes = reader.integer("cluster_numNodes")
        num_instances = reader.integer("cluster_numInstances")
        if reader.problems:
            raise PersistenceError(reader.problems)

        # The declared count cannot exceed the instances actually written.
        present = sum(1 for key in props if _INSTANCE_NAME_KEY.fullmatch(key))
        if num_instances > present:
            raise PersistenceError(
                [
                    f"Invalid value: cluster_numInstances={num_instances} "
                    f"(only {present} instances present)"
                ]
            )

        instances: List[InstanceSpec] = []
        seen = set()
        for i in range(1, num_instances + 1):
            prefix = f"instance{i}."
            name = reader.string(prefix + "name")
            node_name = reader.string(prefix + "node")
            home_dir = reader.string(prefix + "s1as.home")
            port_values = {
                prop: reader.integer(prefix + prop, max_value=MAX_PORT)
                for prop in PORT_PROPERTY_NAMES.values()
            }
            if reader.problems:
                continue

            if name in seen:
                reader.problems.append(f"Duplicate instance name: {name}")
                continue
            seen.add(name)
            instances.append(
                InstanceSpec.restore(
                    name=name,
                    node_name=node_name,
                    home_dir=home_dir,
                    ports=PortSet.from_properties(port_values),
                )
            )

        if reader.problems:
            raise PersistenceError(reader.problems)

        das_node = props.get("das_node") or instances[0].node_name
        return TopologyRecord(
            cluster_name=cluster_name,
            num_nodes=num_nodes,
            das_node=das_node,
            instances=instances,
        )

    @staticmethod
    def encode_ant_properties(topology: "ClusterTopology") -> str:
        """Legacy one-line instance list consumed by older ant scripts."""
        entries = []
        for instance in topology.instances.values():
            p = instance.ports
            entries.append(
                ":".join(
                    str(v)
                    for v in (
                        instance.node_name,
                        p.http,
                        p.http_ssl,
                        p.iiop_ssl,
                        p.iiop,
                        p.jmx_system_connector,
                        p.iiop_ssl_mutualauth,
                        p.jms_provider,
                        p.asadmin,
                        instance.name,
                    )
                )
            )
        return (
            f"s1as.home={topology.das_home_dir}\n"
            f"cluster.name={topology.cluster_name}\n"
            f"instancelist={','.join(entries)}"
        )
