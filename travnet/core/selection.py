"""Selection state carried by a graph.

A selection holds node keys *or* edge IDs (selecting one kind drops the
other). ``None`` means "no selection of that kind"; an empty ordered set
means "active but empty" (e.g. a predicate that matched nothing). Members
keep first-selection order.
"""

import logging

from ..errors import EmptySelectionError

logger = logging.getLogger(__name__)

SET_OPS = ("union", "intersect", "difference", "replace")


def combine(current, new, set_op="union") -> dict:
    """Combine two ordered sets (dicts with ``None`` values) under ``set_op``."""
    if set_op not in SET_OPS:
        raise ValueError(f"set_op must be one of {SET_OPS}, got {set_op!r}")
    base = current if current is not None else {}
    new = dict.fromkeys(new)
    if set_op == "replace":
        return new
    if set_op == "union":
        out = dict(base)
        out.update(new)
        return out
    if set_op == "intersect":
        return {k: None for k in base if k in new}
    return {k: None for k in base if k not in new}


class SelectionState:
    """Working set of selected nodes or edges with a push/pop history.

    Parameters
    ----------
    stack_limit : int
        Maximum number of pushed snapshots. On overflow the oldest snapshot
        is dropped.

    """

    def __init__(self, stack_limit: int = 64):
        self.nodes = None  # dict[node_key, None] | None
        self.edges = None  # dict[edge_id, None] | None
        self._stack = []
        self._stack_limit = stack_limit

    @property
    def kind(self):
        """``"nodes"``, ``"edges"`` or ``None``."""
        if self.nodes is not None:
            return "nodes"
        if self.edges is not None:
            return "edges"
        return None

    @property
    def depth(self) -> int:
        return len(self._stack)

    def node_keys(self) -> list:
        return list(self.nodes) if self.nodes is not None else []

    def edge_ids(self) -> list:
        return list(self.edges) if self.edges is not None else []

    def is_empty(self) -> bool:
        return not self.nodes and not self.edges

    # Replacement

    def set_nodes(self, keys, set_op="union"):
        cur = self.nodes if self.kind == "nodes" else None
        self.nodes = combine(cur, keys, set_op)
        self.edges = None

    def set_edges(self, edge_ids, set_op="union"):
        cur = self.edges if self.kind == "edges" else None
        self.edges = combine(cur, edge_ids, set_op)
        self.nodes = None

    def clear(self):
        self.nodes = None
        self.edges = None

    # Stack

    def push(self):
        self._stack.append(self.snapshot())
        if len(self._stack) > self._stack_limit:
            self._stack.pop(0)
            logger.warning(
                "Selection stack exceeded %d snapshots; dropped the oldest", self._stack_limit
            )

    def pop(self):
        if not self._stack:
            raise EmptySelectionError("selection stack is empty; nothing to pop")
        self.restore(self._stack.pop())

    # Snapshots (also used to roll back failed operations)

    def snapshot(self):
        return (
            dict(self.nodes) if self.nodes is not None else None,
            dict(self.edges) if self.edges is not None else None,
        )

    def restore(self, snap):
        nodes, edges = snap
        self.nodes = dict(nodes) if nodes is not None else None
        self.edges = dict(edges) if edges is not None else None

    def full_snapshot(self):
        return self.snapshot(), [(n, e) for n, e in self._stack]

    def full_restore(self, snap):
        cur, stack = snap
        self.restore(cur)
        self._stack = list(stack)

    # Keeping selections valid after deletions

    def discard_nodes(self, keys):
        keys = set(keys)

        def prune(d):
            return None if d is None else {k: None for k in d if k not in keys}

        self.nodes = prune(self.nodes)
        self._stack = [(prune(n), e) for n, e in self._stack]

    def discard_edges(self, edge_ids):
        edge_ids = set(edge_ids)

        def prune(d):
            return None if d is None else {k: None for k in d if k not in edge_ids}

        self.edges = prune(self.edges)
        self._stack = [(n, prune(e)) for n, e in self._stack]

    def copy(self) -> "SelectionState":
        out = SelectionState(self._stack_limit)
        out.full_restore(self.full_snapshot())
        return out

    def __repr__(self):
        if self.kind == "nodes":
            body = f"nodes={self.node_keys()}"
        elif self.kind == "edges":
            body = f"edges={self.edge_ids()}"
        else:
            body = "empty"
        return f"SelectionState({body}, depth={self.depth})"
