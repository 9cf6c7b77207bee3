"""
Script to validate a conversation flow file before deploying it.
Loads the file exactly as the service does at startup and prints a summary.

Usage: python scripts/validate_flow.py [path/to/flow.json]
"""
import sys
import os

# Add src directory to path to import modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from utils.log_utils import LogUtil
from database.flow_db import FlowDB
from exceptions.flow_exception import MalformedFlowException


def main() -> int:
    flow_file_path = sys.argv[1] if len(sys.argv) > 1 else "public/flow.json"

    log_util = LogUtil()
    flow_db = FlowDB(log_util=log_util)

    try:
        flow = flow_db.load(flow_file_path)
    except MalformedFlowException as e:
        print(f"INVALID: {e.message}")
        return 1

    print(f"OK: {flow_file_path}")
    print(f"  nodes: {len(flow.messages)}")
    print(f"  edges: {len(flow.elements.edges)}")
    print(f"  start node: {flow_db.first_node_id}")

    # Edges pointing at nothing are skipped at runtime, flag them here
    dangling = [edge for edge in flow.elements.edges if flow_db.find_node_by_id(edge.target) is None]
    for edge in dangling:
        print(f"  WARNING: edge {edge.source} -> {edge.target} targets a missing node")

    return 0


if __name__ == "__main__":
    sys.exit(main())
