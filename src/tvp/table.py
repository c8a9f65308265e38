"""
Staged table facade.

A Table collects typed columns and coerced rows for a table-valued
parameter. The wire encoder reads it through two calls:

- get_column_metadata(): columns in order, with name, type, precision, scale
- get_iterator(): (index, row) pairs in insertion order

Thread safety: every public operation holds a per-table lock for its whole
duration, so a multi-column add_row is atomic with respect to other calls.
There is no isolation across calls. An iterator returned by get_iterator()
reads live storage and sees rows appended (or a clear issued) after it was
obtained; callers iterating while other threads write must coordinate
themselves.
"""
import itertools
import logging
import threading
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any, Self

import pandas as pd
from tvp.adapters.column_info import Column
from tvp.coercion import TypeCoercionEngine
from tvp.exceptions import TooManyValuesError
from tvp.options import TableOptions
from tvp.registry import ColumnRegistry
from tvp.rows import Row, RowStore
from tvp.types import sql_type_for_series

from libb import load_options

__all__ = ['Table', 'new_table']

logger = logging.getLogger(__name__)


class Table:
    """In-memory staging structure for a table-valued parameter.

    Column widths only grow: every accepted DECIMAL/NUMERIC value may raise
    the column's precision/scale, every BINARY/VARBINARY value its byte
    length and every character value its UTF-16 byte length.

    Widening is atomic per row. The widths computed while coercing a row are
    applied only after every column of that row converted successfully, so
    a rejected row leaves both the rows and the column metadata unchanged.
    """

    def __init__(self, options: TableOptions | None = None) -> None:
        self.options = options or TableOptions()
        self._columns = ColumnRegistry()
        self._rows = RowStore()
        self._engine = TypeCoercionEngine(extended_temporal=self.options.extended_temporal)
        self._lock = threading.RLock()

    @property
    def type_name(self) -> str | None:
        return self.options.type_name

    @property
    def column_count(self) -> int:
        with self._lock:
            return len(self._columns)

    @property
    def row_count(self) -> int:
        with self._lock:
            return len(self._rows)

    def __len__(self) -> int:
        return self.row_count

    def __repr__(self) -> str:
        return (f'Table(type_name={self.type_name!r}, columns={self.column_count}, '
                f'rows={self.row_count})')

    def clear(self) -> None:
        """Drop all columns and rows. Indexes restart at 0.
        """
        with self._lock:
            self._columns.clear()
            self._rows.clear()
            logger.debug(f'Cleared table {self.type_name or id(self)}')

    def add_column_metadata(self, name_or_column: str | Column, sql_type: Any = None) -> int:
        """Declare a column and return its index.

        Args:
            name_or_column: Column name, or a Column whose precision and
                scale are kept as the starting width
            sql_type: SqlType, type code or type name (with a name only)

        Raises
            DuplicateColumnNameError: name matches an existing column, ignoring case
        """
        with self._lock:
            return self._columns.add_column(name_or_column, sql_type)

    def add_row(self, values: Sequence[Any] | None = None) -> int:
        """Coerce and append one row, returning its index.

        Values are matched to columns by position. Missing trailing values
        are stored as None.

        Raises
            TooManyValuesError: more values than columns; nothing is coerced
            UnsupportedTypeError: a column type has no coercion rule
            InvalidValueError: a value cannot be converted for its column
            FeatureNotSupportedError: timezone-qualified column without support
        """
        values = _as_values(values)
        with self._lock:
            column_count = len(self._columns)
            if len(values) > column_count:
                raise TooManyValuesError(len(values), column_count)

            row = []
            widths = []
            for index, column in enumerate(self._columns):
                value = values[index] if index < len(values) else None
                coerced = self._engine.coerce(column, value)
                row.append(coerced.value)
                if coerced.precision is not None:
                    widths.append((index, coerced.precision, coerced.scale))

            for index, precision, scale in widths:
                self._columns.widen(index, precision, scale)
            return self._rows.append(row)

    def add_rows(self, rows: Iterable[Sequence[Any]]) -> list[int]:
        """Append several rows, returning their indexes.

        Rows are added one by one; a failing row raises after the rows
        before it were appended.
        """
        with self._lock:
            return [self.add_row(values) for values in rows]

    def get_column_metadata(self) -> list[Column]:
        """Columns in index order.
        """
        with self._lock:
            return self._columns.columns()

    def get_iterator(self) -> Iterator[tuple[int, Row]]:
        """Iterate over (index, row) pairs in insertion order.
        """
        with self._lock:
            return self._rows.iterate()

    def to_records(self) -> list[dict[str, Any]]:
        """Rows as dicts keyed by column name.

        Rows appended before later columns were declared are padded with None.
        """
        with self._lock:
            names = self._columns.names()
            return [dict(itertools.zip_longest(names, row)) for _, row in self._rows.iterate()]

    def to_frame(self, data_loader=None, **kwargs: Any) -> Any:
        """Hand the rows to a data loader (the configured one by default).
        """
        loader = data_loader or self.options.data_loader
        with self._lock:
            return loader(self.to_records(), self._columns.columns(), **kwargs)

    @classmethod
    def from_frame(cls, df: pd.DataFrame,
                   types: Mapping[str, Any] | None = None,
                   options: TableOptions | None = None) -> Self:
        """Build a table from a pandas DataFrame.

        Column types come from `types` (column name to SqlType, code or type
        name) or are inferred from each column's values.
        """
        types = types or {}
        table = cls(options)
        for name in df.columns:
            sql_type = types.get(name)
            if sql_type is None:
                sql_type = sql_type_for_series(df[name])
                logger.debug(f'Inferred {sql_type!r} for column {name!r}')
            table.add_column_metadata(str(name), sql_type)
        table.add_rows(df.itertuples(index=False, name=None))
        return table


def _as_values(values: Sequence[Any] | None) -> list[Any]:
    if values is None:
        return []
    if isinstance(values, str | bytes | bytearray):
        raise TypeError('row values must be a sequence of cell values, not a single '
                        f'{type(values).__name__}')
    return list(values)


@load_options(cls=TableOptions)
def new_table(options: TableOptions | dict[str, Any] | str,
              config: Any | None = None, **kw: Any) -> Table:
    """Create an empty table

    Args:
        options: Can be:
                - TableOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options
    """
    return Table(options)
