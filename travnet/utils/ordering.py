"""Ordering rule shared by every operation that renders node IDs.

If every ID, read as text, parses fully as a number, the IDs are sorted
numerically ascending. Otherwise they keep first-encountered order.
"""

import math
from collections.abc import Callable, Hashable, Iterable
from itertools import filterfalse
from typing import Any, TypeVar

T = TypeVar("T")


def unique_iter(iterable: Iterable[T], key: Callable[[T], Any] | None = None) -> Iterable[T]:
    # Based on https://iteration-utilities.readthedocs.io/en/latest/generated/unique_everseen.html
    seen: set[Any] = set()
    seen_add = seen.add
    if key is None:
        for element in filterfalse(seen.__contains__, iterable):
            seen_add(element)
            yield element
    else:
        for element in iterable:
            k = key(element)
            if k not in seen:
                seen_add(k)
                yield element


def parse_number(value) -> float | None:
    """Return ``value`` read as a number, or None if its text form is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if isinstance(value, float) and math.isnan(value) else float(value)
    try:
        out = float(str(value).strip())
    except ValueError:
        return None
    return None if math.isnan(out) else out


def all_numeric(values: Iterable[Hashable]) -> bool:
    """True if every value parses as a number (vacuously True when empty)."""
    return all(parse_number(v) is not None for v in values)


def order_ids(ids: Iterable[T]) -> list[T]:
    """Deduplicate ``ids`` (by text form) and apply the ordering rule.

    The original objects are returned; only their order changes. Numeric ties
    (``"1"`` vs ``"1.0"``) keep first-encountered order.
    """
    uniq = list(unique_iter(ids, key=str))
    if uniq and all_numeric(uniq):
        return sorted(uniq, key=parse_number)
    return uniq


def render_ids(ids: Iterable[Hashable]) -> list[str]:
    """Like :func:`order_ids` but returns the IDs as text."""
    return [str(i) for i in order_ids(ids)]
