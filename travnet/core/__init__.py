from .attributes import AttrKind, AttributeTable
from .graph import CacheManager, Graph, IndexManager, get_edge_table, get_node_table
from .selection import SelectionState

__all__ = [
    "AttrKind",
    "AttributeTable",
    "CacheManager",
    "Graph",
    "IndexManager",
    "SelectionState",
    "get_edge_table",
    "get_node_table",
]
