from dataclasses import dataclass, field

from clustermap.core.config.probe_config import ProbeConfig
from clustermap.core.exceptions import ConfigurationError
from clustermap.core.types import MAX_PORT, MIN_PORT
from clustermap.logger import init_logger

logger = init_logger(__name__)

_LONG_VALUE = 99


@dataclass
class ClusterConfig:
    """Request parameters for one planning run.

    Attributes:
        cluster_name: Name of the cluster to create.
        cluster_size: Number of auto-generated instances.
        instance_name_prefix: Instances are named prefix1..prefixN.
        num_nodes: Requested number of nodes, DAS node included.
        base_port: First port of instance 1; later instances step by 0x100.
        node_selection_label: Label a worker node must carry to be selected.
        custom_instance_text: ``name=port`` override lines.
        props_file_name: Workspace path of the persisted plan.
        ant_props_file_name: Workspace path of the legacy ant properties.
        probe: Port search bounds.
    """

    cluster_name: str
    cluster_size: int
    instance_name_prefix: str = "in"
    num_nodes: int = 1
    base_port: int = 10000
    node_selection_label: str = ""
    custom_instance_text: str = ""
    props_file_name: str = "cluster.props"
    ant_props_file_name: str = "ant/cluster.properties"
    probe: ProbeConfig = field(default_factory=ProbeConfig)

    def __post_init__(self) -> None:
        self.cluster_name = self.cluster_name.strip()
        self.instance_name_prefix = self.instance_name_prefix.strip()
        self.node_selection_label = self.node_selection_label.strip()

        if not self.cluster_name:
            raise ConfigurationError("Please set the Cluster Name")
        if not self.instance_name_prefix:
            raise ConfigurationError("Please set the Instance Name Prefix")
        if self.cluster_size < 1:
            raise ConfigurationError(f"Invalid Cluster Size: {self.cluster_size}")
        if self.num_nodes < 1:
            raise ConfigurationError(f"Invalid number of nodes: {self.num_nodes}")
        if not MIN_PORT <= self.base_port <= MAX_PORT:
            raise ConfigurationError(f"Invalid base port: {self.base_port}")

        if len(self.cluster_name) > _LONG_VALUE:
            logger.warning("Cluster Name is very long: %s", self.cluster_name)
        if len(self.instance_name_prefix) > _LONG_VALUE:
            logger.warning(
                "Instance Name Prefix is very long: %s", self.instance_name_prefix
            )
        if self.cluster_size > _LONG_VALUE:
            logger.warning("Cluster Size %d is unusually large", self.cluster_size)

    @classmethod
    def from_strings(
        cls,
        cluster_name: str,
        cluster_size: str,
        num_nodes: str = "1",
        base_port: str = "10000",
        **kwargs,
    ) -> "ClusterConfig":
        """Build a config from form-style string values."""
        return cls(
            cluster_name=cluster_name,
            cluster_size=_parse_int("Cluster Size", cluster_size),
            num_nodes=_parse_int("number of nodes", num_nodes),
            base_port=_parse_int("base port", base_port),
            **kwargs,
        )


def _parse_int(what: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise ConfigurationError(f"Invalid {what}: {value!r}") from None
