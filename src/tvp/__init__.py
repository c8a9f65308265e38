"""
Staged table-valued parameters for database clients.

A Table is built column by column and row by row before it is handed to a
wire encoder. Each cell is coerced to its column's canonical representation
and variable-width columns widen to fit the widest value seen.

    import tvp

    table = tvp.Table()
    table.add_column_metadata('id', tvp.SqlType.INTEGER)
    table.add_column_metadata('amount', 'decimal')
    table.add_row([1, '12.345'])

    for column in table.get_column_metadata():
        ...  # name, sql_type, precision, scale
    for index, row in table.get_iterator():
        ...

The module functions below are thin facades over the Table methods.
"""
__version__ = '0.1.0'

from collections.abc import Sequence
from typing import Any

from tvp.adapters.column_info import Column
from tvp.coercion import Coerced, TypeCoercionEngine, coerce
from tvp.exceptions import CoercionError, DuplicateColumnNameError
from tvp.exceptions import FeatureNotSupportedError, InvalidValueError
from tvp.exceptions import TableError, TooManyValuesError
from tvp.exceptions import UnsupportedTypeError
from tvp.options import TableOptions
from tvp.table import Table, new_table
from tvp.types import SqlType, TypeCategory


def add_column(table: Table, name: str | Column, sql_type: Any = None) -> int:
    """Declare a column on a table and return its index.
    """
    return table.add_column_metadata(name, sql_type)


def add_row(table: Table, values: Sequence[Any] | None = None) -> int:
    """Coerce and append a row to a table and return its index.
    """
    return table.add_row(values)


def add_rows(table: Table, rows: Sequence[Sequence[Any]]) -> list[int]:
    """Append several rows to a table.
    """
    return table.add_rows(rows)


__all__ = [
    'Table',
    'new_table',
    'TableOptions',
    'Column',
    'SqlType',
    'TypeCategory',
    'TypeCoercionEngine',
    'Coerced',
    'coerce',
    'add_column',
    'add_row',
    'add_rows',
    'TableError',
    'DuplicateColumnNameError',
    'TooManyValuesError',
    'UnsupportedTypeError',
    'InvalidValueError',
    'FeatureNotSupportedError',
    'CoercionError',
]
