"""Column-oriented attribute storage for nodes and edges.

Each table is a Polars DF (DataFrame) with one key column (plus structural
columns for edges) and one column per attribute. The kind of an attribute
column (numeric vs. text) follows the promoted Polars dtype decided when
values are written; string columns holding only numeric text also count as
numeric. The kind can be pinned explicitly with :meth:`AttributeTable.declare`.
"""

from enum import Enum

import numpy as np
import polars as pl

from ..errors import AttributeNotFoundError, AttributeTypeError
from ..utils.ordering import all_numeric, parse_number


class AttrKind(Enum):
    NUMERIC = "numeric"
    TEXT = "text"


_KIND_DTYPE = {AttrKind.NUMERIC: pl.Float64, AttrKind.TEXT: pl.Utf8}


def _scalar(v):
    # NumPy scalars -> Python scalars
    if isinstance(v, np.generic):
        return v.item()
    return v


def pl_dtype_for_value(v):
    """Infer the Polars dtype for a single attribute value.

    Parameters
    ----------
    v : Any

    Returns
    -------
    polars.datatypes.DataType
        One of ``pl.Null``, ``pl.Boolean``, ``pl.Int64``, ``pl.Float64`` or ``pl.Utf8``.

    Raises
    ------
    AttributeTypeError
        If ``v`` is a container (attribute values are scalars).

    """
    v = _scalar(v)
    if v is None:
        return pl.Null
    if isinstance(v, bool):
        return pl.Boolean
    if isinstance(v, int):
        return pl.Int64
    if isinstance(v, float):
        return pl.Float64
    if isinstance(v, (list, tuple, set, frozenset, dict, bytes, bytearray)):
        raise AttributeTypeError(f"attribute values must be scalars, got {type(v).__name__}")
    return pl.Utf8


def merge_dtypes(cur, new):
    """Promote two column dtypes to one that holds both.

    Null yields to anything; Int64 + Float64 -> Float64; any other mix -> Utf8.
    """
    if cur == new or new == pl.Null:
        return cur
    if cur == pl.Null:
        return new
    if cur.is_numeric() and new.is_numeric():
        return pl.Float64
    return pl.Utf8


def _convert(v, dtype):
    v = _scalar(v)
    if v is None:
        return None
    if dtype == pl.Utf8:
        if isinstance(v, bool):
            # match Polars' Boolean -> Utf8 cast
            return "true" if v else "false"
        return str(v)
    if dtype == pl.Float64:
        return float(v)
    return v


class AttributeTable:
    """One attribute table (nodes or edges).

    Parameters
    ----------
    name : str
        ``"node"`` or ``"edge"``; used in error messages.
    key : str
        Key column name.
    schema : dict
        Key and structural columns with their dtypes. These columns are
        reserved and cannot be written as attributes.

    Notes
    -----
    Row order is insertion order. The key -> row position map is rebuilt lazily
    whenever the underlying DataFrame object changes.

    """

    def __init__(self, name, key, schema, df=None, declared=None):
        self.name = name
        self.key = key
        self.schema = dict(schema)
        self.reserved = frozenset(self.schema)
        self.df = df if df is not None else pl.DataFrame(schema=self.schema)
        self._declared = dict(declared or {})
        self._pos = None
        self._pos_df = None

    # Introspection

    @property
    def height(self) -> int:
        return self.df.height

    @property
    def attributes(self) -> list[str]:
        """Attribute column names (reserved columns excluded), in creation order."""
        return [c for c in self.df.columns if c not in self.reserved]

    def has(self, attr) -> bool:
        return attr in self.df.columns and attr not in self.reserved

    def kind(self, attr) -> AttrKind:
        """Numeric vs. text kind of an attribute column.

        Declared kinds win. Otherwise numeric dtypes are ``NUMERIC``, as are
        string columns whose non-null values all parse as numbers (``"5"``,
        ``"5.0"``). Everything else (other strings, booleans, all-null
        columns) is ``TEXT``.
        """
        if not self.has(attr):
            raise AttributeNotFoundError(attr, self.name)
        if attr in self._declared:
            return self._declared[attr]
        dtype = self.df.schema[attr]
        if dtype.is_numeric():
            return AttrKind.NUMERIC
        if dtype == pl.Utf8:
            vals = self.df.get_column(attr).drop_nulls().to_list()
            if vals and all_numeric(vals):
                return AttrKind.NUMERIC
        return AttrKind.TEXT

    def _positions(self) -> dict:
        if self._pos is None or self._pos_df is not self.df:
            self._pos = {k: i for i, k in enumerate(self.df.get_column(self.key).to_list())}
            self._pos_df = self.df
        return self._pos

    def __contains__(self, key) -> bool:
        return key in self._positions()

    # Reads

    def get(self, key, attr, default=None):
        if attr not in self.df.columns:
            return default
        pos = self._positions().get(key)
        if pos is None:
            return default
        val = self.df.get_column(attr)[pos]
        return default if val is None else val

    def row(self, key) -> dict:
        """All attributes of one row, without the reserved columns."""
        pos = self._positions()[key]
        row = self.df.row(pos, named=True)
        return {k: v for k, v in row.items() if k not in self.reserved}

    def values(self, attr, keys) -> list:
        if attr not in self.df.columns:
            raise AttributeNotFoundError(attr, self.name)
        pos = self._positions()
        col = self.df.get_column(attr)
        return [col[pos[k]] for k in keys]

    def column(self, attr, keys) -> pl.Series:
        """Values of ``attr`` for ``keys`` (in that order) as a typed Series."""
        vals = self.values(attr, keys)
        return pl.Series(attr, vals, dtype=self.df.schema[attr])

    # Writes

    def _check_writable(self, attrs):
        bad = [a for a in attrs if a in self.reserved]
        if bad:
            raise ValueError(f"cannot write reserved {self.name} column(s): {bad}")

    def _target_dtype(self, df, attr, values):
        if attr in self._declared:
            return _KIND_DTYPE[self._declared[attr]]
        dtype = df.schema[attr] if attr in df.columns else pl.Null
        for v in values:
            dtype = merge_dtypes(dtype, pl_dtype_for_value(v))
        return dtype

    def _coerce_declared(self, attr, values):
        kind = self._declared.get(attr)
        if kind is None:
            for v in values:
                pl_dtype_for_value(v)  # rejects containers
            return list(values)
        if kind is AttrKind.TEXT:
            return [None if v is None else _convert(v, pl.Utf8) for v in values]
        out = []
        for v in values:
            if v is None:
                out.append(None)
                continue
            num = parse_number(_scalar(v))
            if num is None:
                raise AttributeTypeError(
                    f"{self.name} attribute '{attr}' is declared numeric; cannot store {v!r}"
                )
            out.append(num)
        return out

    def _with_values(self, df, attr, keys, values):
        values = self._coerce_declared(attr, values)
        dtype = self._target_dtype(df, attr, values)
        if attr not in df.columns:
            df = df.with_columns(pl.lit(None).cast(dtype).alias(attr))
        elif df.schema[attr] != dtype:
            df = df.with_columns(pl.col(attr).cast(dtype))

        # columns may change here, rows never do
        pos = self._positions()
        col = df.get_column(attr).to_list()
        for k, v in zip(keys, values):
            col[pos[k]] = _convert(v, dtype)
        return df.with_columns(pl.Series(attr, col, dtype=dtype))

    def set_values(self, attr, keys, values) -> None:
        """Write ``values[i]`` to row ``keys[i]`` in column ``attr`` (created if new)."""
        keys = list(keys)
        values = list(values)
        if len(keys) != len(values):
            raise ValueError("keys and values differ in length")
        self._check_writable([attr])
        missing = [k for k in keys if k not in self]
        if missing:
            raise KeyError(f"unknown {self.name} key(s): {missing}")
        self.df = self._with_values(self.df, attr, keys, values)

    def update(self, key, attrs: dict) -> None:
        """Upsert several attributes of one existing row."""
        if not attrs:
            return
        self._check_writable(attrs)
        if key not in self:
            raise KeyError(f"unknown {self.name} key: {key!r}")
        df = self.df
        for attr, v in attrs.items():
            df = self._with_values(df, attr, [key], [v])
        self.df = df

    def append(self, rows: list[dict]) -> None:
        """Append rows. Each row holds the key, any structural columns and attributes."""
        if not rows:
            return
        for r in rows:
            self._check_writable([k for k in r if k not in self.schema])

        # coerce declared columns and collect every column touched
        cols = list(self.df.columns)
        for r in rows:
            for k in r:
                if k not in cols:
                    cols.append(k)
        data = {}
        for c in cols:
            vals = [r.get(c) for r in rows]
            data[c] = vals if c in self.reserved else self._coerce_declared(c, vals)

        df = self.df
        dtypes = {}
        for c in cols:
            if c in self.reserved:
                dtypes[c] = self.schema[c]
            else:
                dtypes[c] = self._target_dtype(df, c, data[c])
            if c not in df.columns:
                df = df.with_columns(pl.lit(None).cast(dtypes[c]).alias(c))
            elif df.schema[c] != dtypes[c]:
                df = df.with_columns(pl.col(c).cast(dtypes[c]))

        new = pl.DataFrame(
            {c: pl.Series(c, [_convert(v, dtypes[c]) for v in data[c]], dtype=dtypes[c]) for c in cols}
        )
        self.df = pl.concat([df, new], how="vertical")

    def declare(self, attr, kind: AttrKind) -> None:
        """Pin the kind of ``attr``, recasting existing values.

        Text -> numeric requires every non-null value to parse as a number,
        else :class:`AttributeTypeError` is raised and nothing changes. An
        absent column is created empty.
        """
        kind = AttrKind(kind)
        self._check_writable([attr])
        target = _KIND_DTYPE[kind]
        df = self.df
        if attr not in df.columns:
            df = df.with_columns(pl.lit(None).cast(target).alias(attr))
        else:
            before = df.get_column(attr).null_count()
            cast = df.get_column(attr).cast(target, strict=False)
            if cast.null_count() != before:
                raise AttributeTypeError(
                    f"{self.name} attribute '{attr}' has values that are not {kind.value}"
                )
            df = df.with_columns(cast)
        self.df = df
        self._declared[attr] = kind

    # Row set operations

    def drop(self, keys) -> None:
        keys = list(keys)
        if keys:
            self.df = self.df.filter(~pl.col(self.key).is_in(keys))

    def subset(self, keys) -> "AttributeTable":
        """New table holding only ``keys`` (table order kept, schema kept)."""
        df = self.df.filter(pl.col(self.key).is_in(list(keys)))
        return AttributeTable(self.name, self.key, self.schema, df=df, declared=self._declared)

    def clone(self) -> "AttributeTable":
        return AttributeTable(
            self.name, self.key, self.schema, df=self.df.clone(), declared=self._declared
        )

    def __repr__(self):
        return f"AttributeTable({self.name}, rows={self.height}, attributes={self.attributes})"
