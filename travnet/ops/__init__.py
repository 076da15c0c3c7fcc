from .mutation import (
    add_n_nodes_from_selection,
    add_n_nodes_to_selection,
    cache_edge_attr_ws,
    cache_node_attr_ws,
    create_subgraph_ws,
    delete_edges_ws,
    delete_nodes_ws,
    get_cache,
    set_edge_attr_ws,
    set_node_attr_ws,
)
from .selection import (
    clear_selection,
    get_selection,
    get_selection_kind,
    invert_selection,
    pop_selection,
    push_selection,
    select_edges,
    select_edges_by_edge_id,
    select_edges_by_endpoints,
    select_last_edges_created,
    select_last_nodes_created,
    select_nodes,
    select_nodes_by_id,
)
from .similarity import NO_MATCH, NoMatch, get_similar_nbrs, match_range, select_similar_nbrs
from .traversal import (
    expand_neighborhood,
    trav_both,
    trav_both_edge,
    trav_in,
    trav_in_edge,
    trav_in_node,
    trav_out,
    trav_out_edge,
    trav_out_node,
)

__all__ = [
    "NO_MATCH",
    "NoMatch",
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
    "match_range",
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
]
