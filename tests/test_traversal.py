# test_traversal.py
import polars as pl
import pytest

from travnet import Graph
from travnet.errors import (
    AttributeNotFoundError,
    EmptySelectionError,
    NodeNotFoundError,
    NoEdgeSelectionError,
    NoNodeSelectionError,
)
from travnet.ops import (
    clear_selection,
    expand_neighborhood,
    get_selection,
    get_selection_kind,
    select_edges_by_edge_id,
    select_nodes,
    select_nodes_by_id,
    trav_both,
    trav_both_edge,
    trav_in,
    trav_in_edge,
    trav_in_node,
    trav_out,
    trav_out_edge,
    trav_out_node,
)

from .conftest import RED


class TestNodeSteps:
    def test_out(self, color_tree):
        color_tree.pipe(select_nodes_by_id, 1).pipe(trav_out)
        assert get_selection(color_tree) == [2, 3]

    def test_out_filtered(self, color_tree):
        color_tree.pipe(select_nodes_by_id, [2, 3]).pipe(trav_out, "color", "blue")
        assert get_selection(color_tree) == [6, 7]

    def test_in(self, color_tree):
        color_tree.pipe(select_nodes_by_id, [8, 9, 12]).pipe(trav_in)
        assert get_selection(color_tree) == [4, 6]

    def test_both(self, chain):
        chain.pipe(select_nodes_by_id, "b").pipe(trav_both)
        assert sorted(get_selection(chain)) == ["a", "c"]

    def test_conditions(self, chain):
        chain.pipe(select_nodes_by_id, "b").pipe(trav_both, conditions=pl.col("w") > 1)
        assert get_selection(chain) == ["c"]

    def test_chained_steps(self, color_tree):
        color_tree.pipe(select_nodes_by_id, 1).pipe(trav_out).pipe(trav_out).pipe(trav_in)
        assert get_selection(color_tree) == [2, 3]

    def test_unknown_filter_attribute(self, color_tree):
        select_nodes_by_id(color_tree, 1)
        with pytest.raises(AttributeNotFoundError):
            trav_out(color_tree, "size", 3)
        assert get_selection(color_tree) == [1]


class TestEdgeSteps:
    def test_out_edge_then_in_node(self, color_tree):
        (
            color_tree.pipe(select_nodes_by_id, 1)
            .pipe(trav_out_edge, "color", "red")
            .pipe(trav_in_node)
        )
        assert get_selection(color_tree)[0] == 2

    def test_out_edge(self, chain):
        chain.pipe(select_nodes_by_id, ["a", "b"]).pipe(trav_out_edge)
        assert get_selection_kind(chain) == "edges"
        assert get_selection(chain) == [1, 2]

    def test_in_edge(self, chain):
        chain.pipe(select_nodes_by_id, "c").pipe(trav_in_edge)
        assert get_selection(chain) == [2]

    def test_both_edge(self, chain):
        chain.pipe(select_nodes_by_id, "c").pipe(trav_both_edge, "w", ">3")
        assert get_selection(chain) == [3]

    def test_out_node_goes_to_source(self, chain):
        chain.pipe(select_edges_by_edge_id, [2, 3]).pipe(trav_out_node)
        assert get_selection(chain) == ["b", "c"]

    def test_in_node_goes_to_target(self, chain):
        chain.pipe(select_edges_by_edge_id, [2, 3]).pipe(trav_in_node, "kind", "odd")
        assert get_selection(chain) == ["d"]


class TestPreconditions:
    def test_node_step_without_selection(self, color_tree):
        select_nodes(color_tree)
        clear_selection(color_tree)
        with pytest.raises(EmptySelectionError):
            trav_out(color_tree)
        with pytest.raises(NoNodeSelectionError):
            trav_in_edge(color_tree)

    def test_edge_step_on_node_selection(self, chain):
        select_nodes_by_id(chain, "a")
        with pytest.raises(NoEdgeSelectionError):
            trav_in_node(chain)
        assert get_selection(chain) == ["a"]

    def test_empty_selection_propagates(self, color_tree):
        select_nodes(color_tree, "type", "Z")
        trav_out(color_tree)
        assert get_selection_kind(color_tree) == "nodes"
        assert get_selection(color_tree) == []
        trav_out_edge(color_tree)
        assert get_selection_kind(color_tree) == "edges"
        assert get_selection(color_tree) == []

    def test_leaf_traversal_is_empty(self, color_tree):
        select_nodes_by_id(color_tree, 15)
        trav_out(color_tree)
        assert get_selection(color_tree) == []


class TestExpandNeighborhood:
    def test_connected_component(self):
        G = Graph()
        G.add_nodes(6)
        G.add_edge(1, 2)
        G.add_edge(3, 2)
        G.add_edge(4, 5)
        assert expand_neighborhood(G, 1) == [1, 2, 3]
        assert expand_neighborhood(G, 5) == [5, 4]
        assert expand_neighborhood(G, 6) == [6]

    def test_restricted_to_eligible(self, color_tree):
        grown = expand_neighborhood(color_tree, 2, eligible=RED)
        assert sorted(grown) == [2, 4, 5, 8, 9, 10, 11]
        assert grown[0] == 2

    def test_fixpoint_is_stable(self, color_tree):
        grown = expand_neighborhood(color_tree, 3, eligible=[3, 6, 7, 12])
        again = expand_neighborhood(color_tree, grown, eligible=[3, 6, 7, 12])
        assert set(again) == set(grown) == {3, 6, 7, 12}

    def test_terminates_on_cycles(self):
        G = Graph()
        G.add_nodes(4)
        for u, v in [(1, 2), (2, 3), (3, 1), (3, 4), (4, 4)]:
            G.add_edge(u, v)
        G.add_edge(1, 2)
        assert sorted(expand_neighborhood(G, 1)) == [1, 2, 3, 4]

    def test_seed_outside_eligible_is_kept(self, chain):
        assert expand_neighborhood(chain, "a", eligible=["c"]) == ["a"]

    def test_unknown_seed(self, chain):
        with pytest.raises(NodeNotFoundError):
            expand_neighborhood(chain, "zz")
