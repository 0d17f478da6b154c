from enum import Enum
from typing import Dict, List, Set, Tuple

from lambdamap.compiler.types import Edge, Graph, Node, UNKNOWN_SERVICE
from lambdamap.ir.errors import InvalidNodeError


class EdgeStatus(Enum):
    ADDED = "added"
    DUPLICATE = "duplicate"
    MISSING_ENDPOINT = "missing_endpoint"    # source or target empty
    UNKNOWN_ENDPOINT = "unknown_endpoint"    # endpoint never added as a node

    @property
    def added(self) -> bool:
        return self is EdgeStatus.ADDED


class GraphBuilder:
    """
    Append-only, deduplicating node/edge container.

    Nodes are first-writer-wins: re-adding an id returns the stored node
    untouched. Edges are keyed by (source, target, type). Relation
    extractors call add_edge speculatively, so a rejected edge is reported
    through the returned EdgeStatus rather than an exception.
    """

    def __init__(self):
        self._nodes: List[Node] = []
        self._edges: List[Edge] = []
        self._node_index: Dict[str, Node] = {}
        self._edge_index: Set[Tuple[str, str, str]] = set()

    def add_node(self, candidate: Node) -> Node:
        if candidate is None or not candidate.id:
            raise InvalidNodeError("Node must include an id")

        existing = self._node_index.get(candidate.id)
        if existing is not None:
            return existing

        node = Node(
            id=candidate.id,
            label=candidate.label or candidate.id,
            service=candidate.service or UNKNOWN_SERVICE,
        )
        self._nodes.append(node)
        self._node_index[node.id] = node
        return node

    def add_edge(self, candidate: Edge) -> EdgeStatus:
        if candidate is None or not candidate.source or not candidate.target:
            return EdgeStatus.MISSING_ENDPOINT

        if candidate.source not in self._node_index or candidate.target not in self._node_index:
            return EdgeStatus.UNKNOWN_ENDPOINT

        key = candidate.key
        if key in self._edge_index:
            return EdgeStatus.DUPLICATE

        self._edges.append(Edge(candidate.source, candidate.target, candidate.type or None))
        self._edge_index.add(key)
        return EdgeStatus.ADDED

    def has_node(self, node_id: str) -> bool:
        return node_id in self._node_index

    def get_node(self, node_id: str):
        return self._node_index.get(node_id)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def snapshot(self) -> Graph:
        return Graph(nodes=tuple(self._nodes), edges=tuple(self._edges))
