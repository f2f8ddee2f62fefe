"""
CLI entry point for inspecting a persisted cluster plan.

Usage::

    clustermap cluster.props
    clustermap cluster.props --workspace /var/builds/ws --verbose
    python -m clustermap cluster.props
"""

import argparse
import sys
from typing import List, Optional

from clustermap.cluster.store import FilePlanStore
from clustermap.cluster.topology import DEFAULT_PROPS_FILE, ClusterTopology
from clustermap.core.exceptions import PersistenceError
from clustermap.display import display_topology
from clustermap.logger import init_logger

logger = init_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for the plan viewer."""
    parser = argparse.ArgumentParser(
        description="Display a persisted cluster topology plan."
    )
    parser.add_argument(
        "plan_file",
        nargs="?",
        default=DEFAULT_PROPS_FILE,
        help=f'Plan file, relative to the workspace (default: "{DEFAULT_PROPS_FILE}").',
    )
    parser.add_argument(
        "--workspace",
        type=str,
        default=".",
        help='Workspace directory holding the plan (default: ".").',
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Also show home directories and the node list.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Load a plan and display it. Returns the process exit code."""
    args = parse_args(argv)

    store = FilePlanStore(args.workspace)
    try:
        topology = ClusterTopology.load_cluster_properties_file(store, args.plan_file)
    except PersistenceError as e:
        for problem in e.problems:
            logger.error(problem)
        return 1

    display_topology(topology, verbose=args.verbose)
    return 0


if __name__ == "__main__":
    sys.exit(main())
