"""
Ordered column registry for a staged table.
"""
import logging
from collections.abc import Iterator
from typing import Any

from tvp.adapters.column_info import Column
from tvp.exceptions import DuplicateColumnNameError

logger = logging.getLogger(__name__)


class ColumnRegistry:
    """Columns in declaration order, indexed by position.

    Names are unique under case-insensitive comparison. The registry holds
    no lock of its own; the owning Table serializes access.
    """

    def __init__(self) -> None:
        self._columns: list[Column] = []

    def add_column(self, name_or_column: str | Column, sql_type: Any = None) -> int:
        """Append a column and return its index.

        Accepts either a name plus type, or a ready-made Column whose
        precision and scale are kept as the starting width. The registry
        stores a copy, so widening never touches the caller's Column.
        """
        if isinstance(name_or_column, Column):
            if sql_type is not None:
                raise TypeError('sql_type must not be given together with a Column')
            column = name_or_column.copy()
        else:
            if sql_type is None:
                raise TypeError(f'sql_type is required for column {name_or_column!r}')
            column = Column(name_or_column, sql_type)

        if self.find(column.name) is not None:
            raise DuplicateColumnNameError(column.name)

        self._columns.append(column)
        index = len(self._columns) - 1
        logger.debug(f'Added column {index}: {column!r}')
        return index

    def get(self, index: int) -> Column:
        return self._columns[index]

    def find(self, name: str) -> Column | None:
        """Look up a column by name, ignoring case.
        """
        return Column.get_column_by_name(self._columns, name)

    def names(self) -> list[str]:
        return Column.get_names(self._columns)

    def widen(self, index: int, precision: int | None = None,
              scale: int | None = None) -> bool:
        """Grow a column's precision/scale; smaller values are ignored.
        """
        return self._columns[index].widen(precision or 0, scale or 0)

    def clear(self) -> None:
        self._columns.clear()

    def columns(self) -> list[Column]:
        """Snapshot of the columns in index order.
        """
        return list(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __iter__(self) -> Iterator[Column]:
        return iter(self._columns)
