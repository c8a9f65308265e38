"""
Table-valued parameter exception classes.
"""
from typing import Any


class TableError(Exception):
    """Base class for all tvp module errors.
    """


class DuplicateColumnNameError(TableError):
    """Column name collides (case-insensitively) with an existing column.
    """

    def __init__(self, name: str) -> None:
        super().__init__(f'Duplicate column name: {name!r}')
        self.name = name


class TooManyValuesError(TableError):
    """Row carries more values than the table has columns.
    """

    def __init__(self, value_count: int, column_count: int) -> None:
        super().__init__(
            f'Row has {value_count} values but the table has only {column_count} columns')
        self.value_count = value_count
        self.column_count = column_count


class UnsupportedTypeError(TableError):
    """Column type has no coercion rule.
    """

    def __init__(self, sql_type: Any) -> None:
        super().__init__(f'Unsupported data type for table-valued parameter: {sql_type!r}')
        self.sql_type = sql_type


class InvalidValueError(TableError, ValueError):
    """Value could not be converted to its column's canonical representation.

    The underlying parse or cast failure is chained as ``__cause__``.
    """

    def __init__(self, message: str, column: str | None = None) -> None:
        super().__init__(message)
        self.column = column


class FeatureNotSupportedError(TableError):
    """Timezone-qualified temporal column used without extended temporal support.
    """


# Per-cell failures raised while coercing a row
CoercionError = (
    UnsupportedTypeError,
    InvalidValueError,
    FeatureNotSupportedError,
    )
