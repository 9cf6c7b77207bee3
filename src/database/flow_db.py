import json
from typing import Optional, List, Dict, Any
from pydantic import ValidationError

# Utils
from utils.log_utils import LogUtil
from utils.environment_utils import EnvironmentUtils

# Exceptions
from exceptions.flow_exception import MalformedFlowException

# Models
from models.flow_data import FlowData, FlowNode

"""
Read-only store for the conversation flow graph
"""
class FlowDB:
    def __init__(self, log_util: LogUtil, environment_utils: Optional[EnvironmentUtils] = None):

        # Initialize logger
        self.log_util = log_util

        # Initialize environment utils
        self.environment_utils = environment_utils

        self.flow: Optional[FlowData] = None

        # Lookup tables, rebuilt on every load
        self._nodes_by_id: Dict[str, FlowNode] = {}
        self._targets_by_source: Dict[str, List[str]] = {}

    def load(self, flow_file_path: Optional[str] = None) -> FlowData:
        """
        Load and validate the flow document from disk.
        Falls back to FLOW_FILE_PATH when no path is given.
        """
        if flow_file_path is None:
            if self.environment_utils is None:
                raise MalformedFlowException(message="No flow file path configured")
            flow_file_path = self.environment_utils.get_env_variable("FLOW_FILE_PATH")

        try:
            with open(flow_file_path, "r", encoding="utf-8") as flow_file:
                data = json.load(flow_file)
        except FileNotFoundError:
            self.log_util.error(service_name="FlowDB", message=f"Flow file not found: {flow_file_path}")
            raise MalformedFlowException(message=f"Flow file not found: {flow_file_path}")
        except json.JSONDecodeError as e:
            self.log_util.error(service_name="FlowDB", message=f"Flow file {flow_file_path} is not valid JSON: {e}")
            raise MalformedFlowException(message=f"Flow file {flow_file_path} is not valid JSON: {e}")

        flow = self.load_from_dict(data)
        self.log_util.info(
            service_name="FlowDB",
            message=f"Loaded flow from {flow_file_path}: {len(flow.messages)} nodes, {len(flow.elements.edges)} edges"
        )
        return flow

    def load_from_dict(self, data: Any) -> FlowData:
        """
        Validate an in-memory flow document and make it the active graph.
        """
        self._validate_shape(data)

        try:
            flow = FlowData.model_validate(data)
        except ValidationError as e:
            self.log_util.error(service_name="FlowDB", message=f"Invalid flow: {e}")
            raise MalformedFlowException(message=f"Invalid flow: {e}")

        if not flow.messages:
            raise MalformedFlowException(message="Invalid flow: messages array must contain at least one node")

        nodes_by_id: Dict[str, FlowNode] = {}
        for node in flow.messages:
            # First declaration wins, matching a linear scan of the messages array
            nodes_by_id.setdefault(node.id, node)

        targets_by_source: Dict[str, List[str]] = {}
        for edge in flow.elements.edges:
            targets_by_source.setdefault(edge.source, []).append(edge.target)

        self.flow = flow
        self._nodes_by_id = nodes_by_id
        self._targets_by_source = targets_by_source
        return flow

    def _validate_shape(self, data: Any) -> None:
        if not isinstance(data, dict):
            raise MalformedFlowException(message="Invalid flow: document must be an object")
        if not isinstance(data.get("messages"), list):
            raise MalformedFlowException(message="Invalid flow: messages array is required")
        elements = data.get("elements")
        if not isinstance(elements, dict) or not isinstance(elements.get("edges"), list):
            raise MalformedFlowException(message="Invalid flow: edges array is required")

    def _require_flow(self) -> FlowData:
        if self.flow is None:
            raise MalformedFlowException(message="Flow has not been loaded")
        return self.flow

    @property
    def first_node(self) -> FlowNode:
        return self._require_flow().messages[0]

    @property
    def first_node_id(self) -> str:
        return self.first_node.id

    def find_node_by_id(self, node_id: str) -> Optional[FlowNode]:
        self._require_flow()
        return self._nodes_by_id.get(node_id)

    def find_next_nodes(self, source_id: str) -> List[str]:
        """
        Target node ids for a node or button id, in declaration order.
        """
        self._require_flow()
        return list(self._targets_by_source.get(source_id, []))
