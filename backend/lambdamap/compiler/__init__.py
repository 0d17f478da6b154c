from lambdamap.compiler.builder import EdgeStatus, GraphBuilder
from lambdamap.compiler.layout import compute_layout
from lambdamap.compiler.render_mermaid import render_mermaid
from lambdamap.compiler.types import Edge, Graph, Node, PositionedGraph, PositionedNode


__all__ = [
    "Edge",
    "EdgeStatus",
    "Graph",
    "GraphBuilder",
    "Node",
    "PositionedGraph",
    "PositionedNode",
    "compute_layout",
    "render_mermaid",
]
