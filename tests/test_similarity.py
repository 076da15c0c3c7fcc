# test_similarity.py
import math

import pytest

from travnet import Graph
from travnet.errors import AttributeNotFoundError, InvalidToleranceError, NodeNotFoundError
from travnet.ops import (
    NO_MATCH,
    get_selection,
    get_selection_kind,
    get_similar_nbrs,
    match_range,
    select_similar_nbrs,
)


class TestColorTree:
    def test_red_neighborhood(self, color_tree):
        assert get_similar_nbrs(color_tree, 2, "color") == ["4", "5", "8", "9", "10", "11"]

    def test_blue_neighborhood(self, color_tree):
        assert get_similar_nbrs(color_tree, 3, "color") == ["6", "7"]

    def test_from_inside_the_neighborhood(self, color_tree):
        assert get_similar_nbrs(color_tree, 9, "color") == ["2", "4", "5", "8", "10", "11"]

    def test_reference_without_value(self, color_tree):
        assert get_similar_nbrs(color_tree, 1, "color") is NO_MATCH

    def test_siblings_are_not_adjacent(self, color_tree):
        # 8 and 9 share type "D" but only meet through their type "C" parent
        assert get_similar_nbrs(color_tree, 8, "type") is NO_MATCH

    def test_reference_excluded(self, color_tree):
        color_tree.add_edge(2, 2)
        assert "2" not in get_similar_nbrs(color_tree, 2, "color")


class TestNumericTolerance:
    def test_exact_match_only(self, valued_graph):
        assert get_similar_nbrs(valued_graph, 1, "value") is NO_MATCH

    def test_absolute(self, valued_graph):
        # [2, 8]: node 5 qualifies by value but is only reachable through 4 (9.0)
        assert get_similar_nbrs(valued_graph, 1, "value", tol_abs=(3, 3)) == ["2", "3", "7"]

    def test_percentage(self, valued_graph):
        # [2.5, 7.5]
        assert get_similar_nbrs(valued_graph, 1, "value", tol_pct=(50, 50)) == ["2", "7"]

    def test_asymmetric(self, valued_graph):
        # [4, 9]
        assert get_similar_nbrs(valued_graph, 1, "value", tol_abs=(1, 4)) == ["2", "4", "5", "7", "8"]

    def test_wide_tolerance_reaches_component(self, valued_graph):
        assert get_similar_nbrs(valued_graph, 1, "value", tol_abs=(10, 10)) == [
            "2", "3", "4", "5", "6", "7", "8",
        ]

    def test_bounds_are_inclusive(self):
        G = Graph()
        G.add_node(value=10)
        G.add_node(value=12)
        G.add_node(value=8)
        G.add_edge(1, 2)
        G.add_edge(1, 3)
        assert get_similar_nbrs(G, 1, "value", tol_abs=(2, 2)) == ["2", "3"]
        assert get_similar_nbrs(G, 1, "value", tol_pct=(20, 20)) == ["2", "3"]

    def test_null_values_never_match(self, valued_graph):
        valued_graph.add_node(9)
        valued_graph.add_edge(1, 9)
        assert "9" not in get_similar_nbrs(valued_graph, 1, "value", tol_abs=(10, 10))

    def test_negative_tolerance_shifts_window(self, valued_graph):
        # [6, 7]: only node 2 (6.5) among the neighbors
        assert get_similar_nbrs(valued_graph, 1, "value", tol_abs=(-1, 2)) == ["2"]

    def test_tolerance_ignored_for_text(self, color_tree, caplog):
        assert get_similar_nbrs(color_tree, 3, "color", tol_abs=(1, 1)) == ["6", "7"]
        assert "tolerances are ignored" in caplog.text


class TestNumericText:
    @pytest.fixture
    def text_path(self):
        G = Graph()
        for v in ("5", "5.0", "6", "9"):
            G.add_node(value=v)
        for u, v in [(1, 2), (2, 3), (3, 4)]:
            G.add_edge(u, v)
        return G

    def test_compares_as_numbers(self, text_path):
        assert get_similar_nbrs(text_path, 1, "value") == ["2"]

    def test_tolerance_applies(self, text_path):
        assert get_similar_nbrs(text_path, 1, "value", tol_abs=(1, 1)) == ["2", "3"]

    def test_declared_text_compares_by_equality(self, text_path, caplog):
        text_path.declare_node_attr("value", "text")
        assert get_similar_nbrs(text_path, 1, "value") is NO_MATCH
        assert get_similar_nbrs(text_path, 1, "value", tol_abs=(1, 1)) is NO_MATCH
        assert "tolerances are ignored" in caplog.text

    def test_declared_numeric(self, text_path):
        text_path.declare_node_attr("value", "numeric")
        assert get_similar_nbrs(text_path, 1, "value", tol_pct=(20, 20)) == ["2", "3"]


class TestOrdering:
    def test_numeric_ids_sorted_numerically(self):
        G = Graph()
        for n in ["0", "10", "2", "1"]:
            G.add_node(n, color="red")
        G.add_edge("0", "10")
        G.add_edge("10", "2")
        G.add_edge("2", "1")
        assert get_similar_nbrs(G, "0", "color") == ["1", "2", "10"]

    def test_text_ids_keep_discovery_order(self):
        G = Graph()
        for n in ["r", "a", "b", "c"]:
            G.add_node(n, color="x")
        G.add_edge("r", "c")
        G.add_edge("c", "a")
        G.add_edge("b", "r")
        assert get_similar_nbrs(G, "r", "color") == ["b", "c", "a"]


class TestNoMatchSentinel:
    def test_sentinel_is_distinct_from_empty_list(self, valued_graph):
        result = get_similar_nbrs(valued_graph, 1, "value")
        assert result is NO_MATCH
        assert result != []
        assert not result

    def test_isolated_node(self):
        G = Graph()
        G.add_node(color="red")
        G.add_node(color="red")
        assert get_similar_nbrs(G, 1, "color") is NO_MATCH


class TestErrors:
    def test_unknown_node(self, color_tree):
        with pytest.raises(NodeNotFoundError):
            get_similar_nbrs(color_tree, 99, "color")

    def test_unknown_attribute(self, color_tree):
        with pytest.raises(AttributeNotFoundError):
            get_similar_nbrs(color_tree, 2, "shape")

    def test_both_tolerances(self, valued_graph):
        with pytest.raises(InvalidToleranceError):
            get_similar_nbrs(valued_graph, 1, "value", tol_abs=(1, 1), tol_pct=(10, 10))

    @pytest.mark.parametrize("tol", [(1,), (1, 2, 3), "12", (1, math.inf), ("a", 1), 5])
    def test_malformed_tolerance(self, valued_graph, tol):
        with pytest.raises(InvalidToleranceError):
            get_similar_nbrs(valued_graph, 1, "value", tol_abs=tol)


class TestMatchRange:
    def test_exact(self):
        assert match_range(5.0) == (5.0, 5.0)

    def test_absolute(self):
        assert match_range(5.0, tol_abs=(1.0, 2.0)) == (4.0, 7.0)

    def test_negative_absolute(self):
        assert match_range(5.0, tol_abs=(-1.0, 2.0)) == (6.0, 7.0)
        assert match_range(5.0, tol_abs=(1.0, -3.0)) == (2.0, 4.0)

    def test_percentage_of_negative_value(self):
        assert match_range(-10.0, tol_pct=(10, 20)) == (-12.0, -9.0)


class TestSelectSimilar:
    def test_replaces_selection(self, color_tree):
        select_similar_nbrs(color_tree, 3, "color")
        assert get_selection_kind(color_tree) == "nodes"
        assert get_selection(color_tree) == [6, 7]

    def test_no_match_leaves_empty_selection(self, color_tree):
        select_similar_nbrs(color_tree, 1, "color")
        assert get_selection_kind(color_tree) == "nodes"
        assert get_selection(color_tree) == []
