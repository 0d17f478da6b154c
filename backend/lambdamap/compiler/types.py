from dataclasses import dataclass, field
from typing import Optional, Tuple

UNKNOWN_SERVICE = "Unknown"


@dataclass(frozen=True)
class Node:
    id: str
    label: Optional[str] = None
    service: Optional[str] = None

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "service": self.service}


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    type: Optional[str] = None  # eventSource | dlq | usesRole | invokes | ...

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.source, self.target, self.type or "")

    def to_dict(self) -> dict:
        data = {"source": self.source, "target": self.target}
        if self.type:
            data["type"] = self.type
        return data


@dataclass(frozen=True)
class Graph:
    nodes: Tuple[Node, ...] = field(default_factory=tuple)
    edges: Tuple[Edge, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


@dataclass(frozen=True)
class PositionedNode:
    id: str
    label: str
    service: str
    layer: int
    x: float
    y: float

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "service": self.service,
            "layer": self.layer,
            "position": {"x": self.x, "y": self.y},
        }


@dataclass(frozen=True)
class PositionedGraph:
    nodes: Tuple[PositionedNode, ...] = field(default_factory=tuple)
    edges: Tuple[Edge, ...] = field(default_factory=tuple)

    def position_of(self, node_id: str) -> Optional[PositionedNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }
