"""Type aliases shared across clustermap."""

InstanceName = str
NodeName = str
Port = int

MIN_PORT = 1
MAX_PORT = 65535
