"""Rich rendering of a cluster topology."""

from typing import Optional

from rich.console import Console
from rich.table import Table

from clustermap.cluster.spec import PORT_PROPERTY_NAMES
from clustermap.cluster.topology import ClusterTopology


def build_instance_table(topology: ClusterTopology, verbose: bool = False) -> Table:
    table = Table(title="Instances")
    table.add_column("Instance", style="cyan")
    table.add_column("Node", style="green")
    if verbose:
        table.add_column("Home", style="magenta")
    for prop in PORT_PROPERTY_NAMES.values():
        table.add_column(prop.replace("_PORT", ""), justify="right")

    for instance in topology.instances.values():
        row = [instance.name, instance.node_name or "-"]
        if verbose:
            row.append(instance.home_dir or "-")
        row.extend(str(port) for port in instance.ports.as_tuple())
        table.add_row(*row)
    return table


def display_topology(
    topology: ClusterTopology,
    console: Optional[Console] = None,
    verbose: bool = False,
) -> None:
    """Display the cluster header and its instance table."""
    console = console or Console()

    console.rule(f"Cluster {topology.cluster_name}")
    console.print(
        f"  DAS: {topology.das_node.name}:{topology.das_admin_port}"
        f"  |  Nodes: {topology.num_nodes}"
        f"  |  Instances: {len(topology.instances)}"
    )
    if verbose:
        console.print(f"  Nodes: {', '.join(n.name for n in topology.nodes)}")
    console.print()
    console.print(build_instance_table(topology, verbose=verbose))
    console.print()
