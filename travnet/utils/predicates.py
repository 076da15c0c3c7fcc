"""Attribute predicates over node/edge tables, expressed as polars expressions."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

import polars as pl

from ..errors import AttributeNotFoundError
from .ordering import parse_number

if TYPE_CHECKING:
    from ..core.attributes import AttributeTable

_CMP = re.compile(r"^\s*(<=|>=|==|!=|<|>|=)\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*$")

_OPS = {
    "<": lambda c, v: c < v,
    "<=": lambda c, v: c <= v,
    ">": lambda c, v: c > v,
    ">=": lambda c, v: c >= v,
    "=": lambda c, v: c == v,
    "==": lambda c, v: c == v,
    "!=": lambda c, v: c != v,
}


def _equals(col: pl.Expr, value: Any, dtype) -> pl.Expr:
    if value is None:
        return col.is_null()
    if dtype == pl.Null:
        return pl.lit(False)
    if dtype.is_numeric():
        num = parse_number(value)
        return col == num if num is not None else pl.lit(False)
    if dtype == pl.Boolean:
        return col == value if isinstance(value, bool) else pl.lit(False)
    return col == str(value)


def match_expr(attr: str, search: Any, dtype) -> pl.Expr:
    """Build a boolean expression testing column ``attr`` against ``search``.

    ``search`` may be:

    - ``None``: the attribute is set (non-null);
    - a list/tuple/set: equality with any member;
    - a comparison string such as ``">3"``, ``"<=2.5"`` or ``"!=0"``: numeric
      comparison (text columns are parsed, unparseable values never match);
    - any other scalar: equality, compared in the column's own type.
    """
    col = pl.col(attr)
    if search is None:
        return col.is_not_null()
    if isinstance(search, (list, tuple, set, frozenset)):
        parts = [_equals(col, s, dtype) for s in search]
        return pl.any_horizontal(parts) if parts else pl.lit(False)
    if isinstance(search, str):
        m = _CMP.match(search)
        if m:
            op, num = m.group(1), float(m.group(2))
            if dtype == pl.Null or dtype == pl.Boolean:
                return pl.lit(False)
            target = col if dtype.is_numeric() else col.cast(pl.Float64, strict=False)
            return _OPS[op](target, num)
    return _equals(col, search, dtype)


def filter_keys(
    table: AttributeTable,
    attr: str | None = None,
    search: Any = None,
    conditions=None,
    keys=None,
) -> list:
    """Return the keys of ``table`` rows passing the predicate, in table order.

    Parameters
    ----------
    table : AttributeTable
    attr, search
        Column-vs-value test (see :func:`match_expr`). Raises
        :class:`AttributeNotFoundError` if ``attr`` is not a column.
    conditions : polars.Expr | callable, optional
        Extra filter. A callable receives each row as a dict.
    keys : Iterable, optional
        Restrict the candidate rows to these keys.
    """
    df = table.df
    if attr is not None and attr not in df.columns:
        raise AttributeNotFoundError(attr, table.name)
    if keys is not None:
        keys = list(keys)
        if not keys:
            return []
        df = df.filter(pl.col(table.key).is_in(keys))
    if attr is not None:
        df = df.filter(match_expr(attr, search, df.schema[attr]))
    if conditions is not None:
        if isinstance(conditions, pl.Expr):
            df = df.filter(conditions)
        elif callable(conditions):
            mask = [bool(conditions(row)) for row in df.iter_rows(named=True)]
            df = df.filter(pl.Series(mask, dtype=pl.Boolean))
        else:
            raise TypeError(f"conditions must be a polars expression or callable, got {type(conditions)}")
    return df.get_column(table.key).to_list()
