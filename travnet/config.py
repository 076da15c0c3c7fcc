from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GraphConfig:
    """
    Per-graph settings fixed at construction time.

    history_enabled:        record mutation and selection events in the
                            graph's in-memory history log
    first_node_id:          first auto-assigned node ID
    first_edge_id:          first auto-assigned edge ID
    selection_stack_limit:  max number of pushed selection snapshots; the
                            oldest snapshot is dropped on overflow
    """

    history_enabled: bool = True
    first_node_id: int = 1
    first_edge_id: int = 1
    selection_stack_limit: int = 64

    def __post_init__(self):
        for name in ("first_node_id", "first_edge_id"):
            v = getattr(self, name)
            if isinstance(v, bool) or not isinstance(v, int) or v < 0:
                raise ValueError(f"{name} must be a non-negative int, got {v!r}")
        lim = self.selection_stack_limit
        if isinstance(lim, bool) or not isinstance(lim, int) or lim < 1:
            raise ValueError(f"selection_stack_limit must be a positive int, got {lim!r}")


DEFAULT_CONFIG = GraphConfig()
