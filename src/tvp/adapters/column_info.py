"""
Column metadata for staged tables.
"""
import logging
from typing import Any, Self

from tvp.types import SqlType, TypeCategory, get_category, resolve_sql_type

logger = logging.getLogger(__name__)


class Column:
    """Representation of a staged table column with its declared width

    Technical implementation details:
    - `sql_type` is normalized through resolve_sql_type, so type names such as
      'nvarchar' or 'int' are accepted alongside SqlType members and raw codes
    - `category` is resolved once at construction and selects the coercion rule
    - `precision` and `scale` start at whatever the caller supplies (0 by
      default) and only ever grow through `widen`

    Width semantics by category:
    - Decimal: total digit count and fractional digit count
    - Binary: maximum byte length seen
    - Character: maximum UTF-16 byte length seen
    - Other categories: left untouched
    """

    def __init__(self,
                 name: str,
                 sql_type: Any,
                 precision: int = 0,
                 scale: int = 0):
        """
        Initialize column metadata

        Args:
            name: Column name, unique (case-insensitively) within a table
            sql_type: SqlType member, type code, or type name
            precision: Initial precision or byte length
            scale: Initial scale
        """
        if precision < 0 or scale < 0:
            raise ValueError(f'precision and scale must be >= 0, got {precision}/{scale}')
        self.name = name
        self.sql_type = resolve_sql_type(sql_type)
        self.category = get_category(self.sql_type)
        self.precision = precision
        self.scale = scale

    def widen(self, precision: int = 0, scale: int = 0) -> bool:
        """Grow precision and scale to at least the given values.

        Returns True if either attribute changed.
        """
        changed = False
        if precision > self.precision:
            self.precision = precision
            changed = True
        if scale > self.scale:
            self.scale = scale
            changed = True
        if changed:
            logger.debug(f'Widened column {self.name!r} to {self.precision}/{self.scale}')
        return changed

    def matches(self, name: str) -> bool:
        """Case-insensitive name comparison.
        """
        return self.name.casefold() == name.casefold()

    @property
    def type_name(self) -> str:
        if isinstance(self.sql_type, SqlType):
            return self.sql_type.name
        return str(self.sql_type)

    @property
    def is_supported(self) -> bool:
        return self.category is not TypeCategory.UNSUPPORTED

    def __repr__(self) -> str:
        return (f'Column(name={self.name!r}, sql_type={self.type_name}, '
                f'precision={self.precision}, scale={self.scale})')

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Column):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization.
        """
        return {
            'name': self.name,
            'sql_type': self.type_name,
            'category': self.category.value,
            'precision': self.precision,
            'scale': self.scale,
            }

    def copy(self) -> Self:
        """Independent copy carrying the current width.
        """
        return type(self)(self.name, self.sql_type, self.precision, self.scale)

    @staticmethod
    def get_names(columns: list[Self]) -> list[str]:
        """Get column names from a list of Column objects.
        """
        return [col.name for col in columns]

    @staticmethod
    def get_column_by_name(columns: list[Self], name: str) -> Self | None:
        """Find a column by name (case-insensitive) in a list of Column objects.
        """
        for col in columns:
            if col.matches(name):
                return col
        return None

    @staticmethod
    def get_column_types_dict(columns: list[Self]) -> dict[str, dict[str, Any]]:
        """Get a dictionary of column types keyed by column name.
        """
        return {col.name: col.to_dict() for col in columns}
