"""
Layered (Sugiyama-style) layout used when no external layout solver is
available or the solver fails.

1. longest-path layering from the zero in-degree nodes
2. nodes left over by cycles get max(resolved predecessor layer) + 1;
   pure cycles fall back to trailing layers in (service, label, id) order
3. one forward and one backward barycenter sweep per layer
4. layer -> x at a fixed column gap, order -> y at a fixed row gap, pulled
   towards the parents' average y without crowding the previous node

Known limitation: a cycle with no reachable entry point is laid out in the
fallback order above instead of breaking a feedback edge.
"""

from collections import deque
from typing import Callable, Dict, List, Optional, Tuple

import structlog

from lambdamap.compiler.types import (
    Graph,
    Node,
    PositionedGraph,
    PositionedNode,
    UNKNOWN_SERVICE,
)

logger = structlog.get_logger(__name__)

COLUMN_GAP = 320
ROW_GAP = 160
BASE_X = 80
BASE_Y = 120
MIN_SEPARATION = 0.8  # fraction of ROW_GAP
BARYCENTER_EPSILON = 0.001

LayoutSolver = Callable[[Graph], PositionedGraph]


def _stable_key(node: Node) -> Tuple[str, str, str]:
    return (node.service or "", node.label or "", node.id)


class _Adjacency:
    def __init__(self, graph: Graph):
        self.nodes: Dict[str, Node] = {}
        for node in graph.nodes:
            self.nodes.setdefault(node.id, node)

        self.successors: Dict[str, List[str]] = {node_id: [] for node_id in self.nodes}
        self.predecessors: Dict[str, List[str]] = {node_id: [] for node_id in self.nodes}

        seen = set()
        for edge in graph.edges:
            if edge.source not in self.nodes or edge.target not in self.nodes:
                continue
            if edge.source == edge.target:
                continue
            pair = (edge.source, edge.target)
            if pair in seen:
                continue
            seen.add(pair)
            self.successors[edge.source].append(edge.target)
            self.predecessors[edge.target].append(edge.source)

    def key(self, node_id: str):
        return _stable_key(self.nodes[node_id])


def _resolve_leftovers(adj: _Adjacency, layers: Dict[str, int], resolved: set) -> None:
    pending = [node_id for node_id in adj.nodes if node_id not in resolved]

    while pending:
        progressed = False

        # nodes whose every predecessor already has a final layer
        for node_id in list(pending):
            preds = adj.predecessors[node_id]
            if all(p in resolved for p in preds):
                layers[node_id] = max((layers[p] + 1 for p in preds), default=0)
                resolved.add(node_id)
                pending.remove(node_id)
                progressed = True

        if progressed:
            continue

        # break into a cycle at the first node reachable from resolved ground
        for node_id in pending:
            parent_layers = [layers[p] for p in adj.predecessors[node_id] if p in resolved]
            if parent_layers:
                layers[node_id] = max(parent_layers) + 1
                resolved.add(node_id)
                pending.remove(node_id)
                progressed = True
                break

        if not progressed:
            break

    if pending:
        start = max((layers[n] for n in resolved), default=-1) + 1
        for offset, node_id in enumerate(sorted(pending, key=adj.key)):
            layers[node_id] = start + offset


def assign_layers(graph: Graph) -> Dict[str, int]:
    """Layer index per node id; every acyclic edge points to a higher layer."""
    return _assign_layers(_Adjacency(graph))


def _assign_layers(adj: _Adjacency) -> Dict[str, int]:
    indegree = {node_id: len(preds) for node_id, preds in adj.predecessors.items()}
    layers: Dict[str, int] = {}
    resolved = set()

    queue = deque(node_id for node_id, degree in indegree.items() if degree == 0)
    for node_id in queue:
        layers[node_id] = 0

    while queue:
        node_id = queue.popleft()
        resolved.add(node_id)
        for target in adj.successors[node_id]:
            layers[target] = max(layers.get(target, 0), layers[node_id] + 1)
            indegree[target] -= 1
            if indegree[target] == 0 and target not in resolved:
                queue.append(target)

    if len(resolved) < len(adj.nodes):
        _resolve_leftovers(adj, layers, resolved)

    return layers


def _barycenter(neighbours: List[str], order: Dict[str, int]) -> Optional[float]:
    values = [order[n] for n in neighbours if n in order]
    if not values:
        return None
    return sum(values) / len(values)


def _sweep_key(adj: _Adjacency, neighbours: Dict[str, List[str]], order: Dict[str, int]):
    def key(node_id: str):
        center = _barycenter(neighbours[node_id], order)
        if center is None:
            return (1, 0, adj.key(node_id))
        return (0, round(center / BARYCENTER_EPSILON), adj.key(node_id))
    return key


def order_layers(adj: _Adjacency, layers: Dict[str, int]) -> List[List[str]]:
    grouped: Dict[int, List[str]] = {}
    for node_id, layer in layers.items():
        grouped.setdefault(layer, []).append(node_id)

    ordered: List[List[str]] = []
    order: Dict[str, int] = {}

    # forward: parents' average position
    for layer in sorted(grouped):
        node_ids = sorted(grouped[layer], key=adj.key)
        node_ids.sort(key=_sweep_key(adj, adj.predecessors, order))
        for index, node_id in enumerate(node_ids):
            order[node_id] = index
        ordered.append(node_ids)

    # backward: children's average position
    for position in range(len(ordered) - 2, -1, -1):
        node_ids = sorted(ordered[position], key=_sweep_key(adj, adj.successors, order))
        for index, node_id in enumerate(node_ids):
            order[node_id] = index
        ordered[position] = node_ids

    return ordered


def heuristic_layout(graph: Graph) -> PositionedGraph:
    adj = _Adjacency(graph)
    if not adj.nodes:
        return PositionedGraph(nodes=(), edges=graph.edges)

    layers = _assign_layers(adj)
    ordered = order_layers(adj, layers)

    positioned: List[PositionedNode] = []
    y_by_id: Dict[str, float] = {}

    for column, node_ids in enumerate(ordered):
        prior_y = BASE_Y - ROW_GAP
        for index, node_id in enumerate(node_ids):
            node = adj.nodes[node_id]
            parent_ys = [y_by_id[p] for p in adj.predecessors[node_id] if p in y_by_id]
            snapped_y = BASE_Y + index * ROW_GAP
            ideal_y = sum(parent_ys) / len(parent_ys) if parent_ys else snapped_y
            minimum_y = prior_y + ROW_GAP * MIN_SEPARATION
            final_y = max(ideal_y, snapped_y, minimum_y)
            prior_y = final_y
            y_by_id[node_id] = final_y

            positioned.append(PositionedNode(
                id=node_id,
                label=node.label or node_id,
                service=node.service or UNKNOWN_SERVICE,
                layer=layers[node_id],
                x=BASE_X + column * COLUMN_GAP,
                y=final_y,
            ))

    return PositionedGraph(nodes=tuple(positioned), edges=graph.edges)


def compute_layout(graph: Graph, solver: Optional[LayoutSolver] = None) -> PositionedGraph:
    """
    Position every node of the graph. An external solver is preferred when
    given; the layered heuristic is the fallback.
    """
    if solver is not None and graph.nodes:
        try:
            return solver(graph)
        except Exception as e:
            logger.warning("layout_solver_failed", error=str(e))

    return heuristic_layout(graph)
