# test_history.py
import polars as pl
import pytest

import travnet
from travnet import Graph, GraphConfig
from travnet.ops import select_nodes, set_node_attr_ws


class TestHistory:
    def test_mutations_are_logged(self):
        G = Graph()
        G.add_node(type="A")
        G.add_node("x")
        G.add_edge(1, "x", rel="r")
        ops = [e["op"] for e in G.history()]
        assert ops == ["add_node", "add_node", "add_edge"]
        first = G.history()[0]
        assert first["result"] == 1
        assert first["attributes"] == {"type": "A"}
        assert first["version"] == 1
        assert first["ts_utc"].endswith("Z")

    def test_pipeline_ops_are_logged(self):
        G = Graph()
        G.add_nodes(2)
        G.pipe(select_nodes).pipe(set_node_attr_ws, "color", "red")
        last = G.history()[-1]
        assert last["op"] == "set_node_attr_ws"
        assert last["n"] == 2

    def test_failed_call_is_not_logged(self):
        G = Graph()
        G.add_node(1)
        with pytest.raises(ValueError):
            G.add_node(1)
        assert len(G.history()) == 1

    def test_marks_and_dataframe(self):
        G = Graph()
        G.mark("start")
        G.add_node()
        G.mark("end")
        df = G.history(as_df=True)
        assert isinstance(df, pl.DataFrame)
        assert df["op"].to_list() == ["mark", "add_node", "mark"]
        assert df["version"].to_list() == [1, 2, 3]

    def test_disabled_by_config(self):
        G = Graph(GraphConfig(history_enabled=False))
        G.add_nodes(3)
        assert G.history() == []
        assert G.history(as_df=True).is_empty()
        G.enable_history()
        G.add_node()
        assert len(G.history()) == 1

    def test_clear(self):
        G = Graph()
        G.add_node()
        G.clear_history()
        assert G.history() == []


class TestConfig:
    def test_defaults(self):
        cfg = GraphConfig()
        assert cfg.history_enabled
        assert (cfg.first_node_id, cfg.first_edge_id) == (1, 1)

    def test_frozen(self):
        cfg = GraphConfig()
        with pytest.raises(AttributeError):
            cfg.first_node_id = 5

    @pytest.mark.parametrize(
        "kwargs",
        [{"first_node_id": -1}, {"first_edge_id": 1.5}, {"selection_stack_limit": 0}],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            GraphConfig(**kwargs)

    def test_first_edge_id(self):
        G = Graph(GraphConfig(first_edge_id=100))
        G.add_nodes(2)
        assert G.add_edge(1, 2) == 100


class TestPackage:
    def test_lazy_exports(self):
        assert travnet.Graph is Graph
        assert callable(travnet.get_similar_nbrs)
        assert "select_nodes" in dir(travnet)
        with pytest.raises(AttributeError):
            travnet.does_not_exist
