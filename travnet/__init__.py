"""travnet: attributed directed graphs with a stateful selection and traversal engine."""
from __future__ import annotations

from importlib import import_module
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version
from typing import Any

# Lazily exposed submodules (imported on first attribute access)
_lazy_submodules = {
    "core": "travnet.core",
    "ops": "travnet.ops",
    "utils": "travnet.utils",
    "errors": "travnet.errors",
    "config": "travnet.config",
}

# Curated top-level symbols (lazy). name -> (module, attribute)
_lazy_symbols: dict[str, tuple[str, str]] = {
    # Core
    "Graph": ("travnet.core.graph", "Graph"),
    "GraphConfig": ("travnet.config", "GraphConfig"),
    "AttrKind": ("travnet.core.attributes", "AttrKind"),
    "get_node_table": ("travnet.core.graph", "get_node_table"),
    "get_edge_table": ("travnet.core.graph", "get_edge_table"),
}
# Pipeline operations
_lazy_symbols.update({name: ("travnet.ops", name) for name in (
    "NO_MATCH",
    "add_n_nodes_from_selection",
    "add_n_nodes_to_selection",
    "cache_edge_attr_ws",
    "cache_node_attr_ws",
    "clear_selection",
    "create_subgraph_ws",
    "delete_edges_ws",
    "delete_nodes_ws",
    "expand_neighborhood",
    "get_cache",
    "get_selection",
    "get_selection_kind",
    "get_similar_nbrs",
    "invert_selection",
    "pop_selection",
    "push_selection",
    "select_edges",
    "select_edges_by_edge_id",
    "select_edges_by_endpoints",
    "select_last_edges_created",
    "select_last_nodes_created",
    "select_nodes",
    "select_nodes_by_id",
    "select_similar_nbrs",
    "set_edge_attr_ws",
    "set_node_attr_ws",
    "trav_both",
    "trav_both_edge",
    "trav_in",
    "trav_in_edge",
    "trav_in_node",
    "trav_out",
    "trav_out_edge",
    "trav_out_node",
)})

__all__ = sorted(set(list(_lazy_submodules) + list(_lazy_symbols)))


def __getattr__(name: str) -> Any:  # PEP 562: lazy attribute resolution
    if name in _lazy_submodules:
        return import_module(_lazy_submodules[name])
    if name in _lazy_symbols:
        mod, attr = _lazy_symbols[name]
        return getattr(import_module(mod), attr)
    raise AttributeError(name)


def __dir__() -> list[str]:
    return sorted(list(globals().keys()) + list(__all__))


try:
    __version__ = _pkg_version("travnet")
except PackageNotFoundError:
    __version__ = "0.0.0"
