"""
Subtree closure over the canonical edge set.

Edges are parent -> child. The closure of a node is the node itself plus
everything reachable by following edges forward; ancestors and siblings are
never included.

If a node ever has two parents, deleting either parent removes it, because
forward reachability does not look at other incoming edges.
"""

from typing import Iterable, Set

import networkx as nx

from skillmap.models import Edge, Node


def build_digraph(nodes: Iterable[Node], edges: Iterable[Edge]) -> nx.DiGraph:
    """Build a DiGraph of node ids; edges with unknown endpoints are skipped."""
    G = nx.DiGraph()
    for node in nodes:
        G.add_node(node.id)
    for edge in edges:
        if edge.source in G and edge.target in G:
            G.add_edge(edge.source, edge.target)
    return G


def closure_of(nodes: Iterable[Node], edges: Iterable[Edge], node_id: str) -> Set[str]:
    """Return {node_id} plus all of its descendants, or an empty set if unknown."""
    G = build_digraph(nodes, edges)
    if node_id not in G:
        return set()
    return {node_id} | nx.descendants(G, node_id)
