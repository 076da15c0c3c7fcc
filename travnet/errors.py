"""Exception hierarchy.

Every error raised by travnet derives from :class:`TravnetError` and from the
builtin a caller would naturally catch (``KeyError`` for missing entities,
``ValueError`` for contract violations), so ``except KeyError`` keeps working.
"""


class TravnetError(Exception):
    """Base class for all travnet errors."""


class NodeNotFoundError(TravnetError, KeyError):
    def __init__(self, node_id):
        self.node_id = node_id
        super().__init__(f"Node '{node_id}' not found")

    def __str__(self):
        return self.args[0]


class EdgeNotFoundError(TravnetError, KeyError):
    def __init__(self, edge):
        self.edge = edge
        super().__init__(f"Edge {edge!r} not found")

    def __str__(self):
        return self.args[0]


class AttributeNotFoundError(TravnetError, KeyError):
    def __init__(self, name, table="node"):
        self.name = name
        self.table = table
        super().__init__(f"{table.capitalize()} attribute '{name}' not found")

    def __str__(self):
        return self.args[0]


class EmptySelectionError(TravnetError, ValueError):
    """An operation required an active selection that is missing or empty."""


class NoNodeSelectionError(EmptySelectionError):
    def __init__(self, op=None):
        msg = "no active node selection"
        super().__init__(f"{op}: {msg}" if op else msg)


class NoEdgeSelectionError(EmptySelectionError):
    def __init__(self, op=None):
        msg = "no active edge selection"
        super().__init__(f"{op}: {msg}" if op else msg)


class LengthMismatchError(TravnetError, ValueError):
    def __init__(self, expected: int, got: int):
        self.expected = expected
        self.got = got
        super().__init__(f"Value vector has length {got}; selection has {expected} members")


class InvalidToleranceError(TravnetError, ValueError):
    """Malformed ``tol_abs``/``tol_pct`` argument, or both given at once."""


class AttributeTypeError(TravnetError, TypeError):
    """A value cannot be coerced to the declared kind of its column."""


class DuplicateNodeError(TravnetError, ValueError):
    def __init__(self, node_id, retired=False):
        self.node_id = node_id
        self.retired = retired
        why = "was deleted and IDs are not reused" if retired else "already exists"
        super().__init__(f"Node '{node_id}' {why}")
