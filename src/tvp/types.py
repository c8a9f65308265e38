"""
SQL type vocabulary and type category resolution.

This module provides:
- SqlType: type codes following the java.sql.Types numbering used by SQL Server drivers
- TypeCategory: the coercion rule a column's values are processed with
- TypeHandlerRegistry: resolves type codes or type names to categories
- sql_type_for_series: infers a column type from a pandas Series

The module focuses solely on type identification, not conversion.
"""
import enum
import logging
import uuid
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)


class SqlType(enum.IntEnum):
    """SQL type codes understood by the table-valued parameter encoder.
    """
    BIT = -7
    TINYINT = -6
    SMALLINT = 5
    INTEGER = 4
    BIGINT = -5
    FLOAT = 6
    REAL = 7
    DOUBLE = 8
    NUMERIC = 2
    DECIMAL = 3
    CHAR = 1
    VARCHAR = 12
    LONGVARCHAR = -1
    NCHAR = -15
    NVARCHAR = -9
    LONGNVARCHAR = -16
    DATE = 91
    TIME = 92
    TIMESTAMP = 93
    BINARY = -2
    VARBINARY = -3
    LONGVARBINARY = -4
    NULL = 0
    OTHER = 1111
    JAVA_OBJECT = 2000
    ARRAY = 2003
    BLOB = 2004
    CLOB = 2005
    BOOLEAN = 16
    NCLOB = 2011
    SQLXML = 2009
    TIME_WITH_TIMEZONE = 2013
    TIMESTAMP_WITH_TIMEZONE = 2014
    DATETIMEOFFSET = -155
    GUID = -145


class TypeCategory(enum.Enum):
    """Coercion rule applied to a column's values.
    """
    INTEGER = 'integer'
    BOOLEAN = 'boolean'
    DECIMAL = 'decimal'
    FLOAT = 'float'
    TEMPORAL = 'temporal'
    TEMPORAL_TZ = 'temporal_tz'
    BINARY = 'binary'
    CHARACTER = 'character'
    UNSUPPORTED = 'unsupported'


# Signed range checked when parsing exact integers. TINYINT parses with the
# SMALLINT range so unsigned 0..255 values are accepted.
INTEGER_BITS: dict[int, int] = {
    SqlType.BIGINT: 64,
    SqlType.INTEGER: 32,
    SqlType.SMALLINT: 16,
    SqlType.TINYINT: 16,
    }

SINGLE_PRECISION_TYPES: frozenset[int] = frozenset({SqlType.FLOAT, SqlType.REAL})

# SQL Server type names that are not SqlType member names
TYPE_NAME_ALIASES: dict[str, SqlType] = {
    'int': SqlType.INTEGER,
    'money': SqlType.DECIMAL,
    'smallmoney': SqlType.DECIMAL,
    'datetime': SqlType.TIMESTAMP,
    'datetime2': SqlType.TIMESTAMP,
    'smalldatetime': SqlType.TIMESTAMP,
    'uniqueidentifier': SqlType.CHAR,
    'nvarchar(max)': SqlType.NVARCHAR,
    'varchar(max)': SqlType.VARCHAR,
    'varbinary(max)': SqlType.VARBINARY,
    }


class TypeHandler:
    """Base class for type category handlers.
    """

    def __init__(self, category: TypeCategory) -> None:
        self.category = category

    def handles_type(self, type_code: Any, type_name: str | None = None) -> bool:
        """Check if this handler can handle the given type code/name.
        """
        return False


def create_simple_handler(name: str, category: TypeCategory,
                          type_codes: set,
                          type_names: set | None = None) -> TypeHandler:
    """Factory function for creating simple type handlers.

    Args:
        name: Handler name (used for the class name)
        category: Category this handler reports
        type_codes: Set of type codes this handler recognizes
        type_names: Optional set of type names this handler recognizes

    Returns
        A TypeHandler instance
    """
    class SimpleHandler(TypeHandler):
        def __init__(self):
            super().__init__(category=category)
            self.type_codes = type_codes
            self.type_names = type_names or set()

        def handles_type(self, type_code: Any, type_name: str | None = None) -> bool:
            if type_name and type_name.lower() in self.type_names:
                return True
            return type_code in self.type_codes

    SimpleHandler.__name__ = f'{name}Handler'
    return SimpleHandler()


def default_handlers() -> list[TypeHandler]:
    """Build the built-in handlers, one per coercion category.
    """
    return [
        create_simple_handler(
            'Integer', TypeCategory.INTEGER,
            {SqlType.BIGINT, SqlType.INTEGER, SqlType.SMALLINT, SqlType.TINYINT},
            {'bigint', 'integer', 'int', 'smallint', 'tinyint'}),
        create_simple_handler(
            'Boolean', TypeCategory.BOOLEAN,
            {SqlType.BIT, SqlType.BOOLEAN},
            {'bit', 'boolean'}),
        create_simple_handler(
            'Decimal', TypeCategory.DECIMAL,
            {SqlType.DECIMAL, SqlType.NUMERIC},
            {'decimal', 'numeric', 'money', 'smallmoney'}),
        create_simple_handler(
            'Float', TypeCategory.FLOAT,
            {SqlType.DOUBLE, SqlType.FLOAT, SqlType.REAL},
            {'double', 'float', 'real'}),
        create_simple_handler(
            'Temporal', TypeCategory.TEMPORAL,
            {SqlType.DATE, SqlType.TIME, SqlType.TIMESTAMP, SqlType.DATETIMEOFFSET},
            {'date', 'time', 'timestamp', 'datetime', 'datetime2', 'smalldatetime',
             'datetimeoffset'}),
        create_simple_handler(
            'TemporalTz', TypeCategory.TEMPORAL_TZ,
            {SqlType.TIME_WITH_TIMEZONE, SqlType.TIMESTAMP_WITH_TIMEZONE},
            {'time_with_timezone', 'timestamp_with_timezone'}),
        create_simple_handler(
            'Binary', TypeCategory.BINARY,
            {SqlType.BINARY, SqlType.VARBINARY},
            {'binary', 'varbinary'}),
        create_simple_handler(
            'Character', TypeCategory.CHARACTER,
            {SqlType.CHAR, SqlType.VARCHAR, SqlType.NCHAR, SqlType.NVARCHAR},
            {'char', 'varchar', 'nchar', 'nvarchar', 'uniqueidentifier'}),
        ]


class TypeHandlerRegistry:
    """Registry for type category handlers

    This registry maps type codes (and type names) to the category that
    governs how values of that type are coerced. It does not perform
    conversions.
    """

    _instance = None

    @classmethod
    def get_instance(cls) -> 'TypeHandlerRegistry':
        """Get singleton instance.
        """
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def __init__(self) -> None:
        self._handlers: list[TypeHandler] = default_handlers()

    def register_handler(self, handler: TypeHandler) -> None:
        """Register a new type handler ahead of the built-in ones.
        """
        self._handlers.insert(0, handler)

    def get_category(self, type_code: Any, type_name: str | None = None) -> TypeCategory:
        """Get the coercion category for a type code.

        Returns TypeCategory.UNSUPPORTED when no handler recognizes the type.
        """
        for handler in self._handlers:
            if handler.handles_type(type_code, type_name):
                return handler.category
        return TypeCategory.UNSUPPORTED


def resolve_sql_type(sql_type: Any) -> Any:
    """Normalize a type code or type name to a SqlType.

    Unknown integer codes and names are returned unchanged so that the
    failure surfaces when a row is coerced.

    >>> resolve_sql_type(3)
    <SqlType.DECIMAL: 3>
    >>> resolve_sql_type('nvarchar')
    <SqlType.NVARCHAR: -9>
    >>> resolve_sql_type('int')
    <SqlType.INTEGER: 4>
    >>> resolve_sql_type(4242)
    4242
    """
    if isinstance(sql_type, SqlType):
        return sql_type
    if isinstance(sql_type, int) and not isinstance(sql_type, bool):
        try:
            return SqlType(sql_type)
        except ValueError:
            logger.debug(f'Unknown type code {sql_type}')
            return sql_type
    if isinstance(sql_type, str):
        key = sql_type.strip().lower()
        if key.upper() in SqlType.__members__:
            return SqlType[key.upper()]
        if key in TYPE_NAME_ALIASES:
            return TYPE_NAME_ALIASES[key]
        logger.debug(f'Unknown type name {sql_type!r}')
    return sql_type


def get_category(sql_type: Any) -> TypeCategory:
    """Resolve the coercion category for a type code or name.
    """
    if isinstance(sql_type, str):
        return TypeHandlerRegistry.get_instance().get_category(None, sql_type)
    if isinstance(sql_type, bool):
        return TypeCategory.UNSUPPORTED
    return TypeHandlerRegistry.get_instance().get_category(sql_type)


_INFERRED_TYPES: dict[str, SqlType] = {
    'integer': SqlType.BIGINT,
    'floating': SqlType.DOUBLE,
    'mixed-integer-float': SqlType.DOUBLE,
    'decimal': SqlType.DECIMAL,
    'boolean': SqlType.BIT,
    'string': SqlType.NVARCHAR,
    'bytes': SqlType.VARBINARY,
    'date': SqlType.DATE,
    'time': SqlType.TIME,
    'datetime': SqlType.TIMESTAMP,
    'datetime64': SqlType.TIMESTAMP,
    }


def sql_type_for_series(series: pd.Series) -> SqlType:
    """Infer a column type from a pandas Series.

    Timezone-aware datetimes map to DATETIMEOFFSET, UUIDs to CHAR, and
    anything pandas cannot classify falls back to NVARCHAR.
    """
    if isinstance(series.dtype, pd.DatetimeTZDtype):
        return SqlType.DATETIMEOFFSET
    inferred = pd.api.types.infer_dtype(series, skipna=True)
    if inferred in _INFERRED_TYPES:
        return _INFERRED_TYPES[inferred]
    non_null = series.dropna()
    if len(non_null) and all(isinstance(v, uuid.UUID) for v in non_null):
        return SqlType.CHAR
    logger.debug(f'Falling back to NVARCHAR for column {series.name!r} ({inferred})')
    return SqlType.NVARCHAR


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
