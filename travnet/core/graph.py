import inspect
import json
import logging
import time
from contextlib import contextmanager
from datetime import UTC, datetime
from functools import wraps

import numpy as np
import polars as pl
import scipy.sparse as sp

from ..config import DEFAULT_CONFIG, GraphConfig
from ..errors import DuplicateNodeError, EdgeNotFoundError, NodeNotFoundError
from ..utils.ordering import order_ids
from .attributes import AttrKind, AttributeTable
from .selection import SelectionState

logger = logging.getLogger(__name__)


class IndexManager:
    """Namespace for index operations.

    Maps node IDs to dense row positions (arena order) for matrix-backed
    algorithms. The mapping is rebuilt lazily when the graph structure changes.
    """

    def __init__(self, graph):
        self._G = graph
        self._key_to_row = {}
        self._row_to_key = []
        self._version = None

    def _refresh(self):
        if self._version != self._G._structure_version:
            self._row_to_key = list(self._G._nodes)
            self._key_to_row = {k: i for i, k in enumerate(self._row_to_key)}
            self._version = self._G._structure_version

    # ==================== Node Indexes ====================

    def key_to_row(self, key) -> int:
        self._refresh()
        if key not in self._key_to_row:
            raise NodeNotFoundError(key)
        return self._key_to_row[key]

    def row_to_key(self, row) -> str:
        self._refresh()
        if not 0 <= row < len(self._row_to_key):
            raise KeyError(f"Row {row} not found")
        return self._row_to_key[row]

    def node_to_row(self, node_id) -> int:
        """Map node ID to matrix row index."""
        return self.key_to_row(self._G._resolve(node_id))

    def row_to_node(self, row):
        """Map matrix row index to node ID."""
        return self._G._nodes[self.row_to_key(row)]

    def keys_to_rows(self, keys):
        self._refresh()
        return [self._key_to_row[k] for k in keys]

    def rows_to_keys(self, rows):
        self._refresh()
        return [self._row_to_key[r] for r in rows]

    # ==================== Utilities ====================

    def stats(self):
        """Get index statistics."""
        self._refresh()
        return {
            "n_nodes": len(self._G._nodes),
            "n_edges": len(self._G._edges),
            "n_retired": len(self._G._retired),
            "next_node_id": self._G._next_node_id,
            "next_edge_id": self._G._next_edge_id,
            "max_row": len(self._row_to_key) - 1,
        }


class CacheManager:
    """Cache manager for materialized adjacency and cached attribute values.

    The adjacency matrices are versioned against the graph structure and
    rebuilt on first access after a node/edge change. Cached attribute values
    are named vectors stashed by ``cache_*_attr_ws`` for later retrieval.
    """

    def __init__(self, graph):
        self._G = graph
        self._adjacency = None
        self._undirected = None
        self._adjacency_version = None
        self._undirected_version = None
        self._values = {}  # name -> pl.Series, most recent last

    # ==================== Adjacency ====================

    @property
    def adjacency(self):
        """Directed adjacency in CSR (Compressed Sparse Row) format.

        ``A[i, j]`` counts edges from row ``i`` to row ``j`` (parallel edges add up).
        """
        G = self._G
        if self._adjacency is None or self._adjacency_version != G._structure_version:
            n = len(G._nodes)
            if G._edges:
                pairs = list(G._edges.values())
                rows = G.idx.keys_to_rows([u for u, _ in pairs])
                cols = G.idx.keys_to_rows([v for _, v in pairs])
                data = np.ones(len(pairs), dtype=np.float32)
                self._adjacency = sp.csr_matrix((data, (rows, cols)), shape=(n, n))
            else:
                self._adjacency = sp.csr_matrix((n, n), dtype=np.float32)
            self._adjacency_version = G._structure_version
        return self._adjacency

    @property
    def undirected(self):
        """Symmetrized adjacency ``A + A.T`` (CSR)."""
        if self._undirected is None or self._undirected_version != self._G._structure_version:
            A = self.adjacency
            self._undirected = (A + A.T).tocsr()
            self._undirected_version = self._G._structure_version
        return self._undirected

    # ==================== Cached attribute values ====================

    def put(self, name, values: pl.Series):
        self._values.pop(name, None)
        self._values[name] = values

    def get(self, name=None) -> pl.Series:
        """Return a cached vector by name (the most recent one if ``name`` is None)."""
        if not self._values:
            raise KeyError("No cached attribute values")
        if name is None:
            return next(reversed(self._values.values()))
        if name not in self._values:
            raise KeyError(f"No cached values named '{name}'")
        return self._values[name]

    def names(self) -> list[str]:
        return list(self._values)



class Graph:
    """Directed multigraph with Polars-backed attribute tables and a working selection.

    Nodes live in an insertion-ordered arena keyed by the text form of their
    ID; edges are auto-numbered and may be parallel. Node and edge attributes
    are stored in :class:`AttributeTable` objects (Polars DF [DataFrame]).
    Each graph carries one :class:`SelectionState`, a cache of named attribute
    vectors and an append-only history of mutations.

    Parameters
    ----------
    config : GraphConfig, optional

    Notes
    -----
    - Node IDs are ``int`` or non-empty ``str``; ``1`` and ``"1"`` name the same node.
    - IDs of deleted nodes are retired and never handed out again until
      :meth:`reset_ids` is called.
    - Pipeline operations (``travnet.ops``) take a graph, mutate it in place
      and return it, so they chain with :meth:`pipe`.

    See Also
    --------
    add_node, add_edge, get_nodes, subgraph

    """

    _NODE_SCHEMA = {"node_id": pl.Utf8}
    _EDGE_SCHEMA = {"edge_id": pl.Int64, "from": pl.Utf8, "to": pl.Utf8}

    # Construction

    def __init__(self, config: GraphConfig | None = None):
        self.config = config or DEFAULT_CONFIG

        # Arena
        self._nodes = {}  # node key -> node ID as given
        self._edges = {}  # edge_id -> (from_key, to_key)
        self._out = {}  # node key -> {edge_id: to_key}
        self._in = {}  # node key -> {edge_id: from_key}
        self._retired = set()
        self._next_node_id = self.config.first_node_id
        self._next_edge_id = self.config.first_edge_id
        self._last_created_nodes = []
        self._last_created_edges = []
        self._structure_version = 0

        # Attribute storage
        self.node_table = AttributeTable("node", "node_id", self._NODE_SCHEMA)
        self.edge_table = AttributeTable("edge", "edge_id", self._EDGE_SCHEMA)
        self.graph_attributes = {}

        self.selection = SelectionState(self.config.selection_stack_limit)

        # History and Timeline
        self._history_enabled = self.config.history_enabled
        self._history = []  # list[dict]
        self._version = 0
        self._history_clock0 = time.perf_counter_ns()
        self._install_history_hooks()  # wrap mutating methods

    # ID handling

    @staticmethod
    def _check_id(node_id):
        if isinstance(node_id, np.integer):
            node_id = int(node_id)
        if isinstance(node_id, bool) or not isinstance(node_id, (int, str)):
            raise TypeError(f"Node IDs must be int or str, got {type(node_id).__name__}")
        if isinstance(node_id, str) and not node_id.strip():
            raise ValueError("Node IDs must be non-empty strings")
        return node_id

    @staticmethod
    def _key(node_id) -> str:
        if isinstance(node_id, np.integer):
            node_id = int(node_id)
        return str(node_id)

    def _resolve(self, node_id) -> str:
        """INTERNAL: node ID -> arena key, raising NodeNotFoundError if absent."""
        try:
            key = self._key(node_id)
        except TypeError:
            raise NodeNotFoundError(node_id) from None
        if key not in self._nodes or isinstance(node_id, bool):
            raise NodeNotFoundError(node_id)
        return key

    def _check_edge(self, edge_id) -> int:
        if isinstance(edge_id, np.integer):
            edge_id = int(edge_id)
        if isinstance(edge_id, bool) or edge_id not in self._edges:
            raise EdgeNotFoundError(edge_id)
        return edge_id

    def _touch(self):
        self._structure_version += 1

    def reset_ids(self):
        """Forget retired IDs and restart auto-numbering after the largest integer ID in use."""
        self._retired.clear()
        ints = [v for v in self._nodes.values() if isinstance(v, int)]
        self._next_node_id = max(ints, default=self.config.first_node_id - 1) + 1
        self._log_event("reset_ids")

    # Build graph

    def _add_nodes_batch(self, specs):
        """INTERNAL: add nodes from ``[(node_id | None, attrs), ...]``; returns the IDs.

        Validates and writes the attribute table first; the arena is only
        touched once nothing can fail anymore.
        """
        next_id = self._next_node_id
        taken = set()
        ids, rows = [], []
        for node_id, attrs in specs:
            if node_id is None:
                while (
                    str(next_id) in self._nodes
                    or str(next_id) in self._retired
                    or str(next_id) in taken
                ):
                    next_id += 1
                node_id = next_id
            else:
                node_id = self._check_id(node_id)
                key = self._key(node_id)
                if key in self._nodes or key in taken:
                    raise DuplicateNodeError(node_id)
                if key in self._retired:
                    raise DuplicateNodeError(node_id, retired=True)
            if isinstance(node_id, int):
                next_id = max(next_id, node_id + 1)
            key = self._key(node_id)
            taken.add(key)
            ids.append(node_id)
            rows.append({"node_id": key, **attrs})

        self.node_table.append(rows)

        for node_id in ids:
            key = self._key(node_id)
            self._nodes[key] = node_id
            self._out[key] = {}
            self._in[key] = {}
        self._next_node_id = next_id
        self._last_created_nodes = list(ids)
        self._touch()
        return ids

    def _add_edges_batch(self, specs):
        """INTERNAL: add edges from ``[(from_id, to_id, attrs), ...]``; returns edge IDs."""
        resolved = [(self._resolve(u), self._resolve(v), attrs) for u, v, attrs in specs]
        eid = self._next_edge_id
        rows, defs = [], []
        for u, v, attrs in resolved:
            rows.append({"edge_id": eid, "from": u, "to": v, **attrs})
            defs.append((eid, u, v))
            eid += 1

        self.edge_table.append(rows)

        for e, u, v in defs:
            self._edges[e] = (u, v)
            self._out[u][e] = v
            self._in[v][e] = u
        self._next_edge_id = eid
        self._last_created_edges = [e for e, _, _ in defs]
        self._touch()
        return self._last_created_edges

    def add_node(self, node_id=None, **attributes):
        """Add a node.

        Parameters
        ----------
        node_id : int | str, optional
            Explicit ID. If omitted, the next integer ID is assigned.
        **attributes
            Node attributes (``type`` by convention).

        Returns
        -------
        int | str
            The node ID.

        Raises
        ------
        DuplicateNodeError
            If the ID exists or was retired by a deletion.

        """
        (node_id,) = self._add_nodes_batch([(node_id, attributes)])
        logger.debug("Added node %s", node_id)
        return node_id

    def add_nodes(self, n: int, **attributes):
        """Add ``n`` nodes with auto IDs, all sharing ``attributes``."""
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise ValueError(f"n must be a non-negative int, got {n!r}")
        if n == 0:
            return []
        return self._add_nodes_batch([(None, attributes)] * n)

    def add_edge(self, from_, to, **attributes):
        """Add a directed edge ``from_ -> to``.

        Both endpoints must exist. Parallel edges are allowed; each gets a
        fresh integer edge ID. ``rel`` is the conventional edge attribute.

        Returns
        -------
        int
            The edge ID.

        """
        (eid,) = self._add_edges_batch([(from_, to, attributes)])
        logger.debug("Added edge %d: %s -> %s", eid, from_, to)
        return eid

    # Remove

    def _remove_edges(self, edge_ids):
        edge_ids = list(dict.fromkeys(edge_ids))
        for e in edge_ids:
            u, v = self._edges.pop(e)
            self._out[u].pop(e, None)
            self._in[v].pop(e, None)
        self.edge_table.drop(edge_ids)
        self.selection.discard_edges(edge_ids)
        self._last_created_edges = [e for e in self._last_created_edges if e in self._edges]
        self._touch()

    def _remove_nodes(self, keys):
        keys = list(dict.fromkeys(keys))
        incident = []
        for k in keys:
            incident.extend(self._out[k])
            incident.extend(self._in[k])
        self._remove_edges(incident)
        for k in keys:
            del self._nodes[k]
            del self._out[k]
            del self._in[k]
            self._retired.add(k)
        self.node_table.drop(keys)
        self.selection.discard_nodes(keys)
        dropped = set(keys)
        self._last_created_nodes = [
            n for n in self._last_created_nodes if self._key(n) not in dropped
        ]
        self._touch()

    def remove_edge(self, edge_id):
        """Remove one edge by ID."""
        self._remove_edges([self._check_edge(edge_id)])

    def remove_node(self, node_id):
        """Remove a node and every edge incident to it. Its ID is retired."""
        self._remove_nodes([self._resolve(node_id)])

    # Attributes

    def set_graph_attribute(self, key, value):
        self.graph_attributes[key] = value

    def get_graph_attribute(self, key, default=None):
        return self.graph_attributes.get(key, default)

    def set_node_attrs(self, node_id, **attrs):
        """Upsert attributes of one node."""
        self.node_table.update(self._resolve(node_id), attrs)

    def set_edge_attrs(self, edge_id, **attrs):
        """Upsert attributes of one edge. ``edge_id``, ``from`` and ``to`` are structural."""
        self.edge_table.update(self._check_edge(edge_id), attrs)

    def get_node_attr(self, node_id, key, default=None):
        """Get a single node attribute (scalar) or default if missing."""
        return self.node_table.get(self._resolve(node_id), key, default)

    def get_edge_attr(self, edge_id, key, default=None):
        """Get a single edge attribute (scalar) or default if missing."""
        return self.edge_table.get(self._check_edge(edge_id), key, default)

    def get_node_attrs(self, node_id) -> dict:
        return self.node_table.row(self._resolve(node_id))

    def get_edge_attrs(self, edge_id) -> dict:
        return self.edge_table.row(self._check_edge(edge_id))

    def declare_node_attr(self, name, kind):
        """Pin a node attribute column to ``"numeric"`` or ``"text"``."""
        self.node_table.declare(name, AttrKind(kind))

    def declare_edge_attr(self, name, kind):
        """Pin an edge attribute column to ``"numeric"`` or ``"text"``."""
        self.edge_table.declare(name, AttrKind(kind))

    def node_attr_kind(self, name) -> AttrKind:
        return self.node_table.kind(name)

    def edge_attr_kind(self, name) -> AttrKind:
        return self.edge_table.kind(name)

    # Basic queries

    def get_nodes(self):
        """All node IDs, numerically sorted if every ID is numeric, else in insertion order."""
        return order_ids(self._nodes.values())

    def get_edges(self):
        """All edges as ``(from, to)`` ID pairs, in edge-ID order."""
        return [(self._nodes[u], self._nodes[v]) for u, v in self._edges.values()]

    def edge_ids(self) -> list[int]:
        return list(self._edges)

    def node_exists(self, node_id) -> bool:
        try:
            self._resolve(node_id)
        except NodeNotFoundError:
            return False
        return True

    def edge_exists(self, from_, to) -> bool:
        """True if at least one edge ``from_ -> to`` exists."""
        if not (self.node_exists(from_) and self.node_exists(to)):
            return False
        return self._key(to) in self._out[self._key(from_)].values()

    def has_edge_id(self, edge_id) -> bool:
        try:
            self._check_edge(edge_id)
        except EdgeNotFoundError:
            return False
        return True

    def get_edge_ids(self, from_, to) -> list[int]:
        """IDs of all (parallel) edges ``from_ -> to``; may be empty."""
        u, v = self._resolve(from_), self._resolve(to)
        return [e for e, t in self._out[u].items() if t == v]

    def edge_endpoints(self, edge_id):
        u, v = self._edges[self._check_edge(edge_id)]
        return self._nodes[u], self._nodes[v]

    def out_edges(self, node_id) -> list[int]:
        return list(self._out[self._resolve(node_id)])

    def in_edges(self, node_id) -> list[int]:
        return list(self._in[self._resolve(node_id)])

    def successors(self, node_id) -> set:
        """Nodes reachable via one outbound edge."""
        return {self._nodes[v] for v in self._out[self._resolve(node_id)].values()}

    def predecessors(self, node_id) -> set:
        """Nodes with an edge into ``node_id``."""
        return {self._nodes[u] for u in self._in[self._resolve(node_id)].values()}

    def neighbors(self, node_id) -> set:
        """Successors and predecessors (undirected adjacency)."""
        return self.successors(node_id) | self.predecessors(node_id)

    def number_of_nodes(self) -> int:
        return len(self._nodes)

    def number_of_edges(self) -> int:
        return len(self._edges)

    def __len__(self):
        return len(self._nodes)

    def __contains__(self, node_id):
        return self.node_exists(node_id)

    def __repr__(self):
        return (
            f"Graph(nodes={self.number_of_nodes()}, edges={self.number_of_edges()}, "
            f"selection={self.selection!r})"
        )

    # Slicing / copying

    def subgraph(self, nodes=None, edges=None) -> "Graph":
        """Create an independent graph restricted to ``nodes`` and/or ``edges``.

        Parameters
        ----------
        nodes : Iterable, optional
            Node IDs to keep. Without ``edges``, every edge with both endpoints
            in ``nodes`` is kept.
        edges : Iterable[int], optional
            Edge IDs to keep. Without ``nodes``, their endpoints are kept.
            With ``nodes``, only listed edges with both endpoints in ``nodes``.

        Returns
        -------
        Graph
            Attributes are copied; the selection, history and value cache start empty.

        """
        if nodes is None and edges is None:
            keys = set(self._nodes)
            eids = set(self._edges)
        elif edges is None:
            keys = {self._resolve(n) for n in nodes}
            eids = {e for e, (u, v) in self._edges.items() if u in keys and v in keys}
        else:
            picked = {self._check_edge(e) for e in edges}
            if nodes is None:
                keys = set()
                for e in picked:
                    keys.update(self._edges[e])
                eids = picked
            else:
                keys = {self._resolve(n) for n in nodes}
                eids = {e for e in picked if self._edges[e][0] in keys and self._edges[e][1] in keys}

        g = Graph(self.config)
        g._nodes = {k: n for k, n in self._nodes.items() if k in keys}
        g._edges = {e: uv for e, uv in self._edges.items() if e in eids}
        g._out = {k: {} for k in g._nodes}
        g._in = {k: {} for k in g._nodes}
        for e, (u, v) in g._edges.items():
            g._out[u][e] = v
            g._in[v][e] = u
        g.node_table = self.node_table.subset(keys)
        g.edge_table = self.edge_table.subset(eids)
        g.graph_attributes = dict(self.graph_attributes)
        g._next_node_id = self._next_node_id
        g._next_edge_id = self._next_edge_id
        g._touch()
        return g

    def copy(self) -> "Graph":
        """Independent copy including selection, retired IDs, cached values and history."""
        g = self.subgraph()
        g._retired = set(self._retired)
        g._last_created_nodes = list(self._last_created_nodes)
        g._last_created_edges = list(self._last_created_edges)
        g.selection = self.selection.copy()
        for name in self.cache.names():
            g.cache.put(name, self.cache.get(name).clone())
        g._history = [dict(evt) for evt in self._history]
        g._version = self._version
        return g

    def pipe(self, fn, *args, **kwargs):
        """Apply ``fn(self, *args, **kwargs)``; lets pipeline operations chain."""
        return fn(self, *args, **kwargs)

    @contextmanager
    def _atomic(self):
        """INTERNAL: roll the graph back to its entry state if the block raises."""
        state = (
            dict(self._nodes),
            dict(self._edges),
            {k: dict(v) for k, v in self._out.items()},
            {k: dict(v) for k, v in self._in.items()},
            set(self._retired),
            self._next_node_id,
            self._next_edge_id,
            list(self._last_created_nodes),
            list(self._last_created_edges),
            self.node_table.df,
            dict(self.node_table._declared),
            self.edge_table.df,
            dict(self.edge_table._declared),
            self.selection.full_snapshot(),
            dict(self.cache._values),
            len(self._history),
            self._version,
        )
        try:
            yield self
        except BaseException:
            (
                self._nodes,
                self._edges,
                self._out,
                self._in,
                self._retired,
                self._next_node_id,
                self._next_edge_id,
                self._last_created_nodes,
                self._last_created_edges,
                self.node_table.df,
                self.node_table._declared,
                self.edge_table.df,
                self.edge_table._declared,
                sel,
                self.cache._values,
                n_events,
                self._version,
            ) = state
            self.selection.full_restore(sel)
            del self._history[n_events:]
            self._touch()
            raise

    # History and Timeline

    def _utcnow_iso(self) -> str:
        return datetime.now(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")

    def _jsonify(self, x):
        # Make args/return JSON-safe & compact.
        if x is None or isinstance(x, (bool, int, float, str)):
            return x
        if isinstance(x, (set, frozenset)):
            return sorted((self._jsonify(v) for v in x), key=str)
        if isinstance(x, (list, tuple)):
            return [self._jsonify(v) for v in x]
        if isinstance(x, dict):
            return {str(k): self._jsonify(v) for k, v in x.items()}
        if isinstance(x, np.generic):
            return x.item()
        # Polars, SciPy, callables or other heavy objects -> just a tag
        return f"<<{type(x).__name__}>>"

    def _log_event(self, op: str, **fields):
        if not self._history_enabled:
            return
        self._version += 1
        evt = {
            "version": self._version,
            "ts_utc": self._utcnow_iso(),  # ISO-8601 with Z
            "mono_ns": time.perf_counter_ns() - self._history_clock0,
            "op": op,
        }
        for k, v in fields.items():
            evt[k] = self._jsonify(v)
        self._history.append(evt)

    def _log_mutation(self, name=None):
        def deco(fn):
            op = name or fn.__name__
            sig = inspect.signature(fn)

            @wraps(fn)
            def wrapper(*args, **kwargs):
                bound = sig.bind(*args, **kwargs)
                bound.apply_defaults()
                result = fn(*args, **kwargs)
                payload = {}
                for k, v in bound.arguments.items():
                    if k != "self":
                        payload[k] = v
                payload["result"] = result
                self._log_event(op, **payload)
                return result

            return wrapper

        return deco

    def _install_history_hooks(self):
        # Mutating methods to wrap. Add here if you add new mutators.
        to_wrap = [
            "add_node",
            "add_nodes",
            "add_edge",
            "remove_node",
            "remove_edge",
            "set_node_attrs",
            "set_edge_attrs",
            "declare_node_attr",
            "declare_edge_attr",
        ]
        for name in to_wrap:
            fn = getattr(self, name)
            # Avoid double-wrapping
            if getattr(fn, "__wrapped__", None) is None:
                setattr(self, name, self._log_mutation(name)(fn))

    def history(self, as_df: bool = False):
        """Return the append-only mutation history.

        Parameters
        ----------
        as_df : bool, default False
            If True, return a Polars DF [DataFrame]; otherwise return a list of dicts.

        Returns
        -------
        list[dict] or polars.DataFrame
            Each event includes: 'version', 'ts_utc' (UTC ISO-8601), 'mono_ns'
            (monotonic nanoseconds since the graph was created), 'op', the
            call arguments and 'result' when captured.

        Notes
        -----
        Events of different operations carry different fields; the DataFrame
        has the union of their columns. Nested fields (lists, dicts) are
        stored as JSON text.

        """
        if not as_df:
            return list(self._history)
        if not self._history:
            return pl.DataFrame()
        rows = [
            {k: json.dumps(v) if isinstance(v, (list, dict)) else v for k, v in evt.items()}
            for evt in self._history
        ]
        return pl.DataFrame(rows, infer_schema_length=None, strict=False)

    def enable_history(self, flag: bool = True):
        """Enable or disable in-memory mutation logging."""
        self._history_enabled = bool(flag)

    def clear_history(self):
        self._history.clear()

    def mark(self, label: str):
        """Insert a manual marker into the mutation history."""
        self._log_event("mark", label=label)

    # Namespaces

    @property
    def idx(self):
        """Index lookups (node ID <-> dense row)."""
        if not hasattr(self, "_index_manager"):
            self._index_manager = IndexManager(self)
        return self._index_manager

    @property
    def cache(self):
        """Cache management (adjacency materialization, cached attribute values)."""
        if not hasattr(self, "_cache_manager"):
            self._cache_manager = CacheManager(self)
        return self._cache_manager


def get_node_table(graph: Graph) -> pl.DataFrame:
    """Node attribute table: ``node_id`` (text) plus one column per attribute."""
    return graph.node_table.df.clone()


def get_edge_table(graph: Graph) -> pl.DataFrame:
    """Edge attribute table: ``edge_id``, ``from``, ``to`` plus one column per attribute."""
    return graph.edge_table.df.clone()
