"""Traversal: moving the selection along edges, and fixpoint neighborhood expansion.

Single-step traversals replace the selection with the entities one hop away
from it, optionally filtered by an attribute predicate on the destination
(``attr``/``match`` pair or a ``conditions`` expression/callable). They need
an active selection of the right kind, but an active *empty* selection simply
traverses to an empty one.

========================  ============  ============
function                  from          to
========================  ============  ============
``trav_out``              nodes         successor nodes
``trav_in``               nodes         predecessor nodes
``trav_both``             nodes         adjacent nodes
``trav_out_edge``         nodes         outbound edges
``trav_in_edge``          nodes         inbound edges
``trav_both_edge``        nodes         incident edges
``trav_out_node``         edges         ``from`` nodes
``trav_in_node``          edges         ``to`` nodes
========================  ============  ============
"""

import logging

import numpy as np

from ..utils.ordering import unique_iter
from ..utils.predicates import filter_keys
from .selection import require_edges, require_nodes

logger = logging.getLogger(__name__)


def _filtered(table, found, attr, match, conditions):
    """Keep ``found`` (traversal order) members passing the predicate."""
    found = list(unique_iter(found))
    if attr is None and conditions is None:
        return found
    allowed = set(filter_keys(table, attr, match, conditions, keys=found))
    return [k for k in found if k in allowed]


def _to_nodes(graph, op, found, attr, match, conditions):
    keys = _filtered(graph.node_table, found, attr, match, conditions)
    graph.selection.set_nodes(keys, "replace")
    graph._log_event(op, attr=attr, match=match, n_selected=len(keys))
    logger.debug("%s: %d nodes selected", op, len(keys))
    return graph


def _to_edges(graph, op, found, attr, match, conditions):
    eids = _filtered(graph.edge_table, found, attr, match, conditions)
    graph.selection.set_edges(eids, "replace")
    graph._log_event(op, attr=attr, match=match, n_selected=len(eids))
    logger.debug("%s: %d edges selected", op, len(eids))
    return graph


# Nodes -> nodes


def trav_out(graph, node_attr=None, match=None, conditions=None):
    """Move the node selection to successor nodes."""
    keys = require_nodes(graph, "trav_out")
    found = [v for k in keys for v in graph._out[k].values()]
    return _to_nodes(graph, "trav_out", found, node_attr, match, conditions)


def trav_in(graph, node_attr=None, match=None, conditions=None):
    """Move the node selection to predecessor nodes."""
    keys = require_nodes(graph, "trav_in")
    found = [u for k in keys for u in graph._in[k].values()]
    return _to_nodes(graph, "trav_in", found, node_attr, match, conditions)


def trav_both(graph, node_attr=None, match=None, conditions=None):
    """Move the node selection to adjacent nodes in either direction."""
    keys = require_nodes(graph, "trav_both")
    found = []
    for k in keys:
        found.extend(graph._out[k].values())
        found.extend(graph._in[k].values())
    return _to_nodes(graph, "trav_both", found, node_attr, match, conditions)


# Nodes -> edges


def trav_out_edge(graph, edge_attr=None, match=None, conditions=None):
    """Select the outbound edges of the selected nodes.

    Parameters
    ----------
    graph : Graph
    edge_attr : str, optional
        Edge attribute to filter on (``AttributeNotFoundError`` if absent).
    match : Any, optional
        Value (or comparison string such as ``">2"``) that ``edge_attr`` must match.
    conditions : polars.Expr | callable, optional

    Returns
    -------
    Graph
        With an edge selection replacing the node selection.

    """
    keys = require_nodes(graph, "trav_out_edge")
    found = [e for k in keys for e in graph._out[k]]
    return _to_edges(graph, "trav_out_edge", found, edge_attr, match, conditions)


def trav_in_edge(graph, edge_attr=None, match=None, conditions=None):
    """Select the inbound edges of the selected nodes."""
    keys = require_nodes(graph, "trav_in_edge")
    found = [e for k in keys for e in graph._in[k]]
    return _to_edges(graph, "trav_in_edge", found, edge_attr, match, conditions)


def trav_both_edge(graph, edge_attr=None, match=None, conditions=None):
    keys = require_nodes(graph, "trav_both_edge")
    found = []
    for k in keys:
        found.extend(graph._out[k])
        found.extend(graph._in[k])
    return _to_edges(graph, "trav_both_edge", found, edge_attr, match, conditions)


# Edges -> nodes


def trav_out_node(graph, node_attr=None, match=None, conditions=None):
    """From selected edges, move against the edge direction to their ``from`` nodes."""
    eids = require_edges(graph, "trav_out_node")
    found = [graph._edges[e][0] for e in eids]
    return _to_nodes(graph, "trav_out_node", found, node_attr, match, conditions)


def trav_in_node(graph, node_attr=None, match=None, conditions=None):
    """From selected edges, move along the edge direction to their ``to`` nodes."""
    eids = require_edges(graph, "trav_in_node")
    found = [graph._edges[e][1] for e in eids]
    return _to_nodes(graph, "trav_in_node", found, node_attr, match, conditions)


# Fixpoint expansion


def expand_keys(graph, seed_keys, eligible_keys) -> list:
    """Expand ``seed_keys`` through undirected adjacency, restricted to ``eligible_keys``.

    Each pass adds every eligible neighbor of the current set; the loop ends
    at the first pass that adds nothing. Seeds are always kept, eligible or
    not. Returns keys in discovery order: seeds first, then each pass's new
    members in table order.
    """
    seed_keys = list(unique_iter(seed_keys))
    n = len(graph._nodes)
    if not seed_keys:
        return []

    A = graph.cache.undirected
    eligible = np.zeros(n, dtype=bool)
    eligible[graph.idx.keys_to_rows([k for k in eligible_keys if k in graph._nodes])] = True
    reached = np.zeros(n, dtype=bool)
    seed_rows = graph.idx.keys_to_rows(seed_keys)
    reached[seed_rows] = True
    order = list(seed_rows)

    # each productive pass adds at least one row, so n passes always suffice
    for i in range(n + 1):
        touched = A.dot(reached.astype(np.float32)) > 0
        new = touched & eligible & ~reached
        if not new.any():
            logger.debug("Neighborhood fixpoint after %d pass(es): %d nodes", i + 1, len(order))
            break
        order.extend(np.flatnonzero(new).tolist())
        reached |= new

    return graph.idx.rows_to_keys(order)


def expand_neighborhood(graph, seeds, eligible=None) -> list:
    """Grow ``seeds`` to the maximal connected set of eligible nodes around them.

    Parameters
    ----------
    graph : Graph
    seeds : node ID or Iterable of node IDs
    eligible : Iterable of node IDs, optional
        Nodes the expansion may enter. Defaults to every node (plain
        connected component, edge direction ignored).

    Returns
    -------
    list
        Node IDs in discovery order, seeds first.

    """
    if isinstance(seeds, str) or not hasattr(seeds, "__iter__"):
        seeds = [seeds]
    seed_keys = [graph._resolve(s) for s in seeds]
    if eligible is None:
        eligible_keys = list(graph._nodes)
    else:
        eligible_keys = [graph._key(n) for n in eligible]
    return [graph._nodes[k] for k in expand_keys(graph, seed_keys, eligible_keys)]
