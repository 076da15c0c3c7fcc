"""Neighborhood similarity search.

Starting from a reference node, find the maximal connected neighborhood of
nodes (edge direction ignored) whose value for an attribute equals the
reference value, or, for numeric attributes, lies within a tolerance range
around it.
"""

import logging
import math
from enum import Enum

import polars as pl

from ..core.attributes import AttrKind
from ..errors import AttributeNotFoundError, InvalidToleranceError
from ..utils.ordering import order_ids, parse_number, render_ids
from .traversal import expand_keys

logger = logging.getLogger(__name__)


class NoMatch(Enum):
    """Sentinel returned when a search finds no similar neighbors."""

    NO_MATCH = "NO_MATCH"

    def __bool__(self):
        return False

    def __repr__(self):
        return "NO_MATCH"


NO_MATCH = NoMatch.NO_MATCH


def _tolerance(tol, name):
    if tol is None:
        return None
    if isinstance(tol, (str, bytes)) or not hasattr(tol, "__len__") or len(tol) != 2:
        raise InvalidToleranceError(f"{name} must be a (lower, upper) pair, got {tol!r}")
    lo, hi = tol
    for v in (lo, hi):
        if isinstance(v, bool) or not isinstance(v, (int, float)) and not hasattr(v, "__float__"):
            raise InvalidToleranceError(f"{name} bounds must be numbers, got {tol!r}")
        if not math.isfinite(float(v)):
            raise InvalidToleranceError(f"{name} bounds must be finite, got {tol!r}")
    return float(lo), float(hi)


def match_range(value: float, tol_abs=None, tol_pct=None) -> tuple[float, float]:
    """Closed range of values counted as similar to ``value``.

    No tolerance means exact equality. ``tol_abs=(lo, hi)`` gives
    ``[value - lo, value + hi]``; ``tol_pct=(lo, hi)`` gives
    ``[value - value*lo/100, value + value*hi/100]``. Negative tolerances shift
    the window instead of widening it (``tol_abs=(-1, 2)`` gives
    ``[value + 1, value + 2]``). Bounds are swapped if needed so that
    lower <= upper.
    """
    if tol_abs is not None and tol_pct is not None:
        raise InvalidToleranceError("give either tol_abs or tol_pct, not both")
    if tol_abs is not None:
        lo, hi = value - tol_abs[0], value + tol_abs[1]
    elif tol_pct is not None:
        lo, hi = value - value * tol_pct[0] / 100, value + value * tol_pct[1] / 100
    else:
        lo = hi = value
    return min(lo, hi), max(lo, hi)


def _eligible_keys(graph, key, node_attr, tol_abs, tol_pct):
    table = graph.node_table
    ref = table.get(key, node_attr)
    if ref is None or (isinstance(ref, float) and math.isnan(ref)):
        logger.debug("Node '%s' has no value for '%s'", key, node_attr)
        return None

    col = pl.col(node_attr)
    if table.kind(node_attr) is AttrKind.TEXT:
        if tol_abs is not None or tol_pct is not None:
            logger.warning("Attribute '%s' is not numeric; tolerances are ignored", node_attr)
        df = table.df.filter(col == ref)
    else:
        lo, hi = match_range(parse_number(ref), tol_abs, tol_pct)
        if table.df.schema[node_attr] == pl.Utf8:
            col = col.str.strip_chars()
        df = table.df.filter(col.cast(pl.Float64, strict=False).is_between(lo, hi, closed="both"))
    return df.get_column(table.key).to_list()


def _similar_keys(graph, node, node_attr, tol_abs, tol_pct):
    key = graph._resolve(node)
    if not graph.node_table.has(node_attr):
        raise AttributeNotFoundError(node_attr, "node")
    tol_abs = _tolerance(tol_abs, "tol_abs")
    tol_pct = _tolerance(tol_pct, "tol_pct")
    if tol_abs is not None and tol_pct is not None:
        raise InvalidToleranceError("give either tol_abs or tol_pct, not both")

    eligible = _eligible_keys(graph, key, node_attr, tol_abs, tol_pct)
    if not eligible:
        return []
    return [k for k in expand_keys(graph, [key], eligible) if k != key]


def get_similar_nbrs(graph, node, node_attr, tol_abs=None, tol_pct=None):
    """Nodes in the connected neighborhood of ``node`` with a similar ``node_attr`` value.

    Parameters
    ----------
    graph : Graph
    node : int | str
        Reference node.
    node_attr : str
        Attribute to compare. Numeric attributes, including text columns
        whose values all parse as numbers, compare against a range (see
        :func:`match_range`); other attributes compare by equality.
    tol_abs : (float, float), optional
        Absolute lower/upper tolerance (numeric attributes only).
    tol_pct : (float, float), optional
        Percentage lower/upper tolerance (numeric attributes only). Cannot
        be combined with ``tol_abs``.

    Returns
    -------
    list[str] | NoMatch
        Matching node IDs as text, excluding ``node`` itself: sorted
        numerically if every ID is numeric, else in discovery order.
        ``NO_MATCH`` if nothing matches.

    Raises
    ------
    NodeNotFoundError
    AttributeNotFoundError
    InvalidToleranceError
        Malformed tolerance, or both tolerances given.

    """
    keys = _similar_keys(graph, node, node_attr, tol_abs, tol_pct)
    if not keys:
        return NO_MATCH
    return render_ids(graph._nodes[k] for k in keys)


def select_similar_nbrs(graph, node, node_attr, tol_abs=None, tol_pct=None):
    """Replace the selection with the result of :func:`get_similar_nbrs`.

    With no match the node selection is active but empty.
    """
    keys = _similar_keys(graph, node, node_attr, tol_abs, tol_pct)
    ordered = order_ids(graph._nodes[k] for k in keys)
    graph.selection.set_nodes([graph._key(n) for n in ordered], "replace")
    graph._log_event("select_similar_nbrs", node=node, node_attr=node_attr, n_selected=len(keys))
    return graph
