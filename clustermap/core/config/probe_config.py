from dataclasses import dataclass

from clustermap.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class ProbeConfig:
    """Bounds for the port search and for individual remote probes.

    Attributes:
        max_attempts: Consecutive rejected candidates after which the
            search for one port gives up.
        probe_timeout_s: Seconds to wait for a single remote probe.
    """

    max_attempts: int = 1000
    probe_timeout_s: float = 30.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError(
                f"max_attempts must be >= 1, got {self.max_attempts}"
            )
        if self.probe_timeout_s <= 0:
            raise ConfigurationError(
                f"probe_timeout_s must be positive, got {self.probe_timeout_s}"
            )
