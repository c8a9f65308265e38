"""
Coercion of staged cell values into canonical column values.

Every cell passes through TypeCoercionEngine.coerce, which:
1. Rejects column types without a coercion rule (UnsupportedTypeError)
2. Rejects timezone-qualified temporal columns unless extended temporal
   support is enabled (FeatureNotSupportedError)
3. Normalizes the raw value at the input boundary (see tvp.adapters)
4. Converts it to the canonical representation for the column's category
5. Reports the precision/scale the column must be widened to

Canonical representations:
- Exact integers: int, range-checked to the column's width
- Boolean: bool
- Decimal/Numeric: decimal.Decimal
- Floating: float (rounded to single precision for FLOAT/REAL); NaN is None
- Temporal: ISO 8601 string; the server validates it
- Binary: bytes
- Character: str

The engine never mutates the column. The caller applies the reported width.
"""
import decimal
import logging
import math
import re
from typing import Any, NamedTuple

import numpy as np

from tvp.adapters.column_info import Column
from tvp.adapters.type_conversion import TEMPORAL_KINDS, InputKind
from tvp.adapters.type_conversion import resolve_input
from tvp.exceptions import FeatureNotSupportedError, InvalidValueError
from tvp.exceptions import UnsupportedTypeError
from tvp.types import INTEGER_BITS, SINGLE_PRECISION_TYPES, TypeCategory

logger = logging.getLogger(__name__)

_INTEGER_PATTERN = re.compile(r'[+-]?[0-9]+')
_TRUE_STRINGS = {'true', '1'}
_FALSE_STRINGS = {'false', '0'}


class Coerced(NamedTuple):
    """Canonical cell value plus the width the column must grow to.

    precision/scale are None for categories that carry no width.
    """
    value: Any
    precision: int | None = None
    scale: int | None = None


def decimal_width(value: decimal.Decimal) -> tuple[int, int]:
    """Return (precision, scale) of a finite Decimal.

    >>> decimal_width(decimal.Decimal('12.345'))
    (5, 3)
    >>> decimal_width(decimal.Decimal('314E+2'))
    (5, 0)
    >>> decimal_width(decimal.Decimal('0.0314'))
    (4, 4)
    >>> decimal_width(decimal.Decimal('-7'))
    (1, 0)
    """
    digits = value.as_tuple().digits
    exponent = value.as_tuple().exponent
    if exponent >= 0:
        # '31400' is digits=314, exponent=2
        return len(digits) + exponent, 0
    if -exponent <= len(digits):
        return len(digits), -exponent
    # '0.0314' has more fractional places than significant digits
    return -exponent, -exponent


def _as_text(kind: InputKind, value: Any) -> str:
    return value if kind is InputKind.TEXT else str(value)


class TypeCoercionEngine:
    """Convert raw cell values for a column's declared type.

    Args:
        extended_temporal: Allow TIME_WITH_TIMEZONE and TIMESTAMP_WITH_TIMEZONE
            columns
    """

    def __init__(self, extended_temporal: bool = False) -> None:
        self.extended_temporal = extended_temporal
        self._rules = {
            TypeCategory.INTEGER: self._coerce_integer,
            TypeCategory.BOOLEAN: self._coerce_boolean,
            TypeCategory.DECIMAL: self._coerce_decimal,
            TypeCategory.FLOAT: self._coerce_float,
            TypeCategory.TEMPORAL: self._coerce_temporal,
            TypeCategory.TEMPORAL_TZ: self._coerce_temporal,
            TypeCategory.BINARY: self._coerce_binary,
            TypeCategory.CHARACTER: self._coerce_character,
            }

    def coerce(self, column: Column, value: Any) -> Coerced:
        """Convert `value` to the canonical value for `column`.

        Raises
            UnsupportedTypeError: the column type has no coercion rule
            FeatureNotSupportedError: timezone-qualified type without support
            InvalidValueError: the value cannot be converted
        """
        rule = self._rules.get(column.category)
        if rule is None:
            logger.debug(f'No coercion rule for {column.type_name} (column {column.name!r})')
            raise UnsupportedTypeError(column.sql_type)

        if column.category is TypeCategory.TEMPORAL_TZ and not self.extended_temporal:
            raise FeatureNotSupportedError(
                f'{column.type_name} requires extended temporal support (column {column.name!r})')

        kind, value = resolve_input(value)
        if kind is InputKind.NULL:
            return Coerced(None)

        try:
            return rule(column, kind, value)
        except (ValueError, TypeError, ArithmeticError) as e:
            raise InvalidValueError(
                f'Invalid value for column {column.name!r} ({column.type_name}): {value!r}',
                column=column.name) from e

    def _coerce_integer(self, column: Column, kind: InputKind, value: Any) -> Coerced:
        text = _as_text(kind, value)
        if not _INTEGER_PATTERN.fullmatch(text):
            raise ValueError(f'not an integer literal: {text!r}')
        number = int(text)
        bits = INTEGER_BITS.get(column.sql_type, 64)
        if not -(1 << (bits - 1)) <= number < (1 << (bits - 1)):
            raise ValueError(f'{number} out of range for a {bits}-bit integer')
        return Coerced(number)

    def _coerce_boolean(self, column: Column, kind: InputKind, value: Any) -> Coerced:
        if kind is InputKind.BOOLEAN:
            return Coerced(value)
        text = _as_text(kind, value).strip().lower()
        if text in _TRUE_STRINGS:
            return Coerced(True)
        if text in _FALSE_STRINGS:
            return Coerced(False)
        raise ValueError(f'not a boolean literal: {text!r}')

    def _coerce_decimal(self, column: Column, kind: InputKind, value: Any) -> Coerced:
        if kind is InputKind.DECIMAL:
            number = value
        else:
            number = decimal.Decimal(_as_text(kind, value))
        if not number.is_finite():
            raise ValueError(f'{number} is not a finite decimal')
        precision, scale = decimal_width(number)
        return Coerced(number, precision, scale)

    def _coerce_float(self, column: Column, kind: InputKind, value: Any) -> Coerced:
        number = value if kind is InputKind.FLOAT else float(_as_text(kind, value))
        if math.isnan(number):
            # parsed NaN text is missing, like a NaN float
            return Coerced(None)
        if column.sql_type in SINGLE_PRECISION_TYPES:
            with np.errstate(over='ignore'):
                number = float(np.float32(number))
        return Coerced(number)

    def _coerce_temporal(self, column: Column, kind: InputKind, value: Any) -> Coerced:
        if kind in TEMPORAL_KINDS:
            return Coerced(value.isoformat())
        return Coerced(_as_text(kind, value))

    def _coerce_binary(self, column: Column, kind: InputKind, value: Any) -> Coerced:
        if kind is not InputKind.BYTES:
            raise TypeError(f'expected a byte sequence, got {type(value).__name__}')
        data = bytes(value)
        return Coerced(data, len(data))

    def _coerce_character(self, column: Column, kind: InputKind, value: Any) -> Coerced:
        if kind is InputKind.UUID:
            value = str(value)
        elif kind is not InputKind.TEXT:
            raise TypeError(f'expected text, got {type(value).__name__}')
        # two bytes per UTF-16 code unit; lone surrogates count as one unit
        return Coerced(value, len(value.encode('utf-16-le', 'surrogatepass')))


def coerce(column: Column, value: Any, extended_temporal: bool = False) -> Coerced:
    """Coerce a single value without keeping an engine around.
    """
    return TypeCoercionEngine(extended_temporal=extended_temporal).coerce(column, value)


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
