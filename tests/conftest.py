# conftest.py
import pytest

from travnet import Graph
from travnet.ops import (
    add_n_nodes_from_selection,
    clear_selection,
    select_edges_by_endpoints,
    select_nodes,
    select_nodes_by_id,
    set_edge_attr_ws,
    set_node_attr_ws,
)

RED = [2, 4, 5, 8, 9, 10, 11]
BLUE = [3, 6, 7]


def build_color_tree():
    """Three-level tree of 15 nodes: 1 -> {2, 3} -> 4..7 -> 8..15.

    Nodes 2, 4, 5, 8-11 are red; 3, 6, 7 are blue; 1 and 12-15 have no color.
    Edge 1->2 is red and edge 1->3 is blue.
    """
    G = Graph()
    G.add_node(type="A")
    return (
        G.pipe(select_nodes)
        .pipe(add_n_nodes_from_selection, 2, "B")
        .pipe(clear_selection)
        .pipe(select_nodes, "type", "B")
        .pipe(add_n_nodes_from_selection, 2, "C")
        .pipe(clear_selection)
        .pipe(select_nodes, "type", "C")
        .pipe(add_n_nodes_from_selection, 2, "D")
        .pipe(clear_selection)
        .pipe(select_nodes_by_id, RED)
        .pipe(set_node_attr_ws, "color", "red")
        .pipe(clear_selection)
        .pipe(select_nodes_by_id, BLUE)
        .pipe(set_node_attr_ws, "color", "blue")
        .pipe(select_edges_by_endpoints, 1, 2)
        .pipe(set_edge_attr_ws, "color", "red")
        .pipe(clear_selection)
        .pipe(select_edges_by_endpoints, 1, 3)
        .pipe(set_edge_attr_ws, "color", "blue")
        .pipe(clear_selection)
    )


@pytest.fixture
def color_tree():
    return build_color_tree()


@pytest.fixture
def valued_graph():
    """Eight nodes with a numeric ``value``; edges 1-2-3-6, 1-4-5-8 and 7->1."""
    G = Graph()
    for v in (5.0, 6.5, 2.0, 9.0, 7.9, 1.0, 4.0, 8.5):
        G.add_node(value=v)
    for u, v in [(1, 2), (2, 3), (3, 6), (1, 4), (4, 5), (7, 1), (5, 8)]:
        G.add_edge(u, v)
    return G


@pytest.fixture
def chain():
    """Directed path a -> b -> c -> d with a ``w`` weight on nodes and edges."""
    G = Graph()
    for i, n in enumerate("abcd"):
        G.add_node(n, w=i, kind="even" if i % 2 == 0 else "odd")
    G.add_edge("a", "b", w=1.5, rel="next")
    G.add_edge("b", "c", w=2.5, rel="next")
    G.add_edge("c", "d", w=3.5, rel="next")
    return G
