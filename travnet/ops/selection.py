"""Selection operations.

Every function takes a :class:`~travnet.core.graph.Graph`, updates its
selection in place and returns the same graph, so calls chain with
``Graph.pipe``. Nothing is written before all arguments have been validated.
"""

import logging

from ..errors import EdgeNotFoundError, EmptySelectionError, NoEdgeSelectionError, NoNodeSelectionError
from ..utils.ordering import unique_iter
from ..utils.predicates import filter_keys

logger = logging.getLogger(__name__)


def _as_list(ids):
    if ids is None:
        return None
    if isinstance(ids, str) or not hasattr(ids, "__iter__"):
        return [ids]
    return list(ids)


def require_nodes(graph, op=None) -> list:
    """Keys of the active node selection (possibly empty); raises if there is none."""
    if graph.selection.nodes is None:
        raise NoNodeSelectionError(op)
    return graph.selection.node_keys()


def require_edges(graph, op=None) -> list:
    """IDs of the active edge selection (possibly empty); raises if there is none."""
    if graph.selection.edges is None:
        raise NoEdgeSelectionError(op)
    return graph.selection.edge_ids()


def _log(graph, op, **fields):
    sel = graph.selection
    n = len(sel.nodes) if sel.kind == "nodes" else len(sel.edges or ())
    graph._log_event(op, selection_kind=sel.kind, n_selected=n, **fields)
    logger.debug("%s: %d %s selected", op, n, sel.kind or "entities")


# Nodes


def select_nodes(graph, node_attr=None, search=None, conditions=None, set_op="union", nodes=None):
    """Select nodes matching an attribute predicate.

    Parameters
    ----------
    graph : Graph
    node_attr : str, optional
        Attribute to test. Raises ``AttributeNotFoundError`` if absent.
    search : Any, optional
        Value, collection of values or comparison string (``">3"``) to test
        ``node_attr`` against. With ``node_attr`` but no ``search``, nodes
        where the attribute is set are selected.
    conditions : polars.Expr | callable, optional
        Additional row filter.
    set_op : {"union", "intersect", "difference"}
        How to combine with an active node selection.
    nodes : Iterable, optional
        Restrict candidates to these node IDs.

    Returns
    -------
    Graph

    Notes
    -----
    With no predicate at all, every node is selected. A predicate matching
    nothing leaves an active, empty node selection.

    """
    keys = None
    if nodes is not None:
        keys = [graph._resolve(n) for n in _as_list(nodes)]
    picked = filter_keys(graph.node_table, node_attr, search, conditions, keys=keys)
    graph.selection.set_nodes(picked, set_op)
    _log(graph, "select_nodes", node_attr=node_attr, search=search, set_op=set_op)
    return graph


def select_nodes_by_id(graph, nodes, set_op="union"):
    """Select nodes by ID. Every ID must exist (``NodeNotFoundError`` otherwise)."""
    keys = list(unique_iter(graph._resolve(n) for n in _as_list(nodes)))
    graph.selection.set_nodes(keys, set_op)
    _log(graph, "select_nodes_by_id", nodes=nodes, set_op=set_op)
    return graph


def select_last_nodes_created(graph):
    """Replace the selection with the nodes created by the last node-adding call."""
    keys = [graph._key(n) for n in graph._last_created_nodes]
    graph.selection.set_nodes(keys, "replace")
    _log(graph, "select_last_nodes_created")
    return graph


# Edges


def select_edges(
    graph,
    edge_attr=None,
    search=None,
    conditions=None,
    set_op="union",
    from_=None,
    to=None,
    edges=None,
):
    """Select edges matching an attribute predicate and/or endpoints.

    ``from_`` and ``to`` take a node ID or a collection of node IDs and
    restrict candidates to edges leaving/entering those nodes. Other
    parameters behave as in :func:`select_nodes`.
    """
    src = None if from_ is None else {graph._resolve(n) for n in _as_list(from_)}
    dst = None if to is None else {graph._resolve(n) for n in _as_list(to)}
    if edges is not None:
        cands = [graph._check_edge(e) for e in _as_list(edges)]
    else:
        cands = list(graph._edges)
    if src is not None or dst is not None:
        cands = [
            e
            for e in cands
            if (src is None or graph._edges[e][0] in src) and (dst is None or graph._edges[e][1] in dst)
        ]
    keys = cands if (src is not None or dst is not None or edges is not None) else None
    picked = filter_keys(graph.edge_table, edge_attr, search, conditions, keys=keys)
    graph.selection.set_edges(picked, set_op)
    _log(graph, "select_edges", edge_attr=edge_attr, search=search, set_op=set_op, from_=from_, to=to)
    return graph


def select_edges_by_endpoints(graph, from_, to, set_op="union"):
    """Select every (parallel) edge ``from_ -> to``.

    Raises ``EdgeNotFoundError`` if there is no such edge.
    """
    eids = graph.get_edge_ids(from_, to)
    if not eids:
        raise EdgeNotFoundError((from_, to))
    graph.selection.set_edges(eids, set_op)
    _log(graph, "select_edges_by_endpoints", from_=from_, to=to, set_op=set_op)
    return graph


def select_edges_by_edge_id(graph, edges, set_op="union"):
    eids = list(unique_iter(graph._check_edge(e) for e in _as_list(edges)))
    graph.selection.set_edges(eids, set_op)
    _log(graph, "select_edges_by_edge_id", edges=edges, set_op=set_op)
    return graph


def select_last_edges_created(graph):
    """Replace the selection with the edges created by the last edge-adding call."""
    graph.selection.set_edges(list(graph._last_created_edges), "replace")
    _log(graph, "select_last_edges_created")
    return graph


# Whole-selection operations


def clear_selection(graph):
    graph.selection.clear()
    _log(graph, "clear_selection")
    return graph


def invert_selection(graph):
    """Select every node (or edge) that is currently not selected."""
    sel = graph.selection
    if sel.kind == "nodes":
        sel.set_nodes([k for k in graph._nodes if k not in sel.nodes], "replace")
    elif sel.kind == "edges":
        sel.set_edges([e for e in graph._edges if e not in sel.edges], "replace")
    else:
        raise EmptySelectionError("invert_selection: no active selection")
    _log(graph, "invert_selection")
    return graph


def push_selection(graph):
    """Save the current selection on the graph's selection stack."""
    graph.selection.push()
    _log(graph, "push_selection", depth=graph.selection.depth)
    return graph


def pop_selection(graph):
    """Restore the most recently pushed selection."""
    graph.selection.pop()
    _log(graph, "pop_selection", depth=graph.selection.depth)
    return graph


def get_selection(graph) -> list:
    """Selected node IDs or edge IDs in first-selection order (``[]`` if none)."""
    sel = graph.selection
    if sel.kind == "nodes":
        return [graph._nodes[k] for k in sel.nodes]
    if sel.kind == "edges":
        return list(sel.edges)
    return []


def get_selection_kind(graph):
    """``"nodes"``, ``"edges"`` or ``None``."""
    return graph.selection.kind
