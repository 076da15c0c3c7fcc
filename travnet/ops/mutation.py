"""Bulk operations parameterized by the current selection (the ``*_ws`` family)."""

import logging

import numpy as np
import polars as pl

from ..errors import EmptySelectionError, LengthMismatchError, NoEdgeSelectionError, NoNodeSelectionError
from .selection import require_edges, require_nodes

logger = logging.getLogger(__name__)

CACHE_MODES = (None, "numeric", "character")


def _selected_nodes(graph, op) -> list:
    keys = require_nodes(graph, op)
    if not keys:
        raise NoNodeSelectionError(op)
    return keys


def _selected_edges(graph, op) -> list:
    eids = require_edges(graph, op)
    if not eids:
        raise NoEdgeSelectionError(op)
    return eids


def _broadcast(value, n) -> list:
    """A scalar repeated ``n`` times, or a vector of exactly ``n`` values."""
    if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
        return [value] * n
    if isinstance(value, (pl.Series, np.ndarray)):
        vals = value.to_list() if isinstance(value, pl.Series) else value.tolist()
    else:
        vals = list(value)
    if len(vals) != n:
        raise LengthMismatchError(n, len(vals))
    return vals


def _check_n(n):
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n < 1:
        raise ValueError(f"n must be a positive int, got {n!r}")
    return int(n)


# Attribute writes


def set_node_attr_ws(graph, node_attr, value):
    """Set ``node_attr`` on every selected node.

    Parameters
    ----------
    graph : Graph
    node_attr : str
    value : scalar or sequence
        A scalar is broadcast; a sequence is matched to the selection by
        position and must have the selection's length (a length-one
        sequence is not recycled).

    Raises
    ------
    NoNodeSelectionError
        If no nodes are selected.
    LengthMismatchError
        If a sequence's length differs from the selection size.

    """
    keys = _selected_nodes(graph, "set_node_attr_ws")
    vals = _broadcast(value, len(keys))
    graph.node_table.set_values(node_attr, keys, vals)
    graph._log_event("set_node_attr_ws", node_attr=node_attr, value=value, n=len(keys))
    return graph


def set_edge_attr_ws(graph, edge_attr, value):
    """Set ``edge_attr`` on every selected edge (same broadcasting as :func:`set_node_attr_ws`)."""
    eids = _selected_edges(graph, "set_edge_attr_ws")
    vals = _broadcast(value, len(eids))
    graph.edge_table.set_values(edge_attr, eids, vals)
    graph._log_event("set_edge_attr_ws", edge_attr=edge_attr, value=value, n=len(eids))
    return graph


# Cached attribute values


def _cache_series(graph, table, attr, keys, mode, name):
    if mode not in CACHE_MODES:
        raise ValueError(f"mode must be one of {CACHE_MODES}, got {mode!r}")
    series = table.column(attr, keys).alias(name or attr)
    if mode == "numeric":
        before = series.null_count()
        series = series.cast(pl.Float64, strict=False)
        lost = series.null_count() - before
        if lost:
            logger.warning("%d value(s) of '%s' could not be read as numbers; cached as null", lost, attr)
    elif mode == "character":
        series = series.cast(pl.Utf8)
    graph.cache.put(name or attr, series)
    return series


def cache_edge_attr_ws(graph, edge_attr, mode=None, name=None):
    """Cache the values of ``edge_attr`` for the selected edges.

    Parameters
    ----------
    graph : Graph
    edge_attr : str
    mode : {None, "numeric", "character"}
        Coercion applied before caching. ``"numeric"`` turns unparseable
        values into nulls (with a warning).
    name : str, optional
        Cache key; defaults to ``edge_attr``.

    Returns
    -------
    Graph
        The values are retrievable with :func:`get_cache`.

    """
    eids = _selected_edges(graph, "cache_edge_attr_ws")
    _cache_series(graph, graph.edge_table, edge_attr, eids, mode, name)
    graph._log_event("cache_edge_attr_ws", edge_attr=edge_attr, mode=mode, name=name or edge_attr)
    return graph


def cache_node_attr_ws(graph, node_attr, mode=None, name=None):
    """Node counterpart of :func:`cache_edge_attr_ws`."""
    keys = _selected_nodes(graph, "cache_node_attr_ws")
    _cache_series(graph, graph.node_table, node_attr, keys, mode, name)
    graph._log_event("cache_node_attr_ws", node_attr=node_attr, mode=mode, name=name or node_attr)
    return graph


def get_cache(graph, name=None) -> pl.Series:
    """Cached values by name; the most recently cached vector if ``name`` is None."""
    return graph.cache.get(name)


# Structure


def _add_n_nodes_ws(graph, op, n, set_node_type, set_edge_rel, inward):
    n = _check_n(n)
    keys = _selected_nodes(graph, op)
    node_attrs = {} if set_node_type is None else {"type": set_node_type}
    edge_attrs = {} if set_edge_rel is None else {"rel": set_edge_rel}

    with graph._atomic():
        new_ids = graph._add_nodes_batch([(None, dict(node_attrs)) for _ in range(n * len(keys))])
        specs = []
        for i, k in enumerate(keys):
            anchor = graph._nodes[k]
            for nid in new_ids[i * n : (i + 1) * n]:
                specs.append((nid, anchor, dict(edge_attrs)) if inward else (anchor, nid, dict(edge_attrs)))
        graph._add_edges_batch(specs)

    graph._log_event(op, n=n, set_node_type=set_node_type, set_edge_rel=set_edge_rel, result=new_ids)
    logger.debug("%s: added %d nodes and %d edges", op, len(new_ids), len(specs))
    return graph


def add_n_nodes_from_selection(graph, n, set_node_type=None, set_edge_rel=None):
    """For each selected node, add ``n`` new nodes and an edge from it to each of them.

    New nodes get fresh IDs continuing the graph's sequence, in selection
    order. ``set_node_type`` stamps ``type`` on the new nodes and
    ``set_edge_rel`` stamps ``rel`` on the new edges. The selection is left
    unchanged; see ``select_last_nodes_created``.
    """
    return _add_n_nodes_ws(graph, "add_n_nodes_from_selection", n, set_node_type, set_edge_rel, False)


def add_n_nodes_to_selection(graph, n, set_node_type=None, set_edge_rel=None):
    """Like :func:`add_n_nodes_from_selection` but the edges point into the selection."""
    return _add_n_nodes_ws(graph, "add_n_nodes_to_selection", n, set_node_type, set_edge_rel, True)


def create_subgraph_ws(graph):
    """Build an independent graph from the current selection.

    A node selection yields the induced subgraph (edges with both endpoints
    selected). An edge selection yields those edges and their endpoints.
    Attributes are copied; the new graph starts with an empty selection.
    """
    sel = graph.selection
    if sel.kind == "nodes" and sel.nodes:
        return graph.subgraph(nodes=[graph._nodes[k] for k in sel.nodes])
    if sel.kind == "edges" and sel.edges:
        return graph.subgraph(edges=list(sel.edges))
    raise EmptySelectionError("create_subgraph_ws: no active selection")


def delete_nodes_ws(graph):
    """Delete the selected nodes (and their edges), then clear the selection."""
    keys = _selected_nodes(graph, "delete_nodes_ws")
    ids = [graph._nodes[k] for k in keys]
    with graph._atomic():
        graph._remove_nodes(keys)
        graph.selection.clear()
    graph._log_event("delete_nodes_ws", nodes=ids)
    return graph


def delete_edges_ws(graph):
    """Delete the selected edges, then clear the selection."""
    eids = _selected_edges(graph, "delete_edges_ws")
    with graph._atomic():
        graph._remove_edges(eids)
        graph.selection.clear()
    graph._log_event("delete_edges_ws", edges=eids)
    return graph
