"""
Input normalization for values staged into a table.

This module handles the boundary between caller-supplied cell values and the
coercion engine (Python → staged table direction only).

It provides:
1. A TypeConverter class that turns NumPy, Pandas and PyArrow scalars into
   plain Python values and maps their missing-value markers to None
2. An InputKind tag for every normalized value, so coercion rules inspect a
   closed set of kinds instead of arbitrary runtime types

Missing values: None, float NaN, pd.NA, pd.NaT, NumPy NaN/NaT and null
Arrow scalars all become None here. Strings are never nulled at this
boundary; floating columns parse NaN text and store it as None as well, so
a NaN cell is null whichever form it arrives in.

Usage:
    kind, value = resolve_input(np.int32(5))
    # (InputKind.INTEGER, 5)
"""
import datetime
import decimal
import enum
import logging
import math
import uuid
from typing import Any

import numpy as np
import pandas as pd
import pyarrow as pa

logger = logging.getLogger(__name__)

NUMPY_FLOAT_TYPES = (np.floating,)
NUMPY_INT_TYPES = (np.integer, np.unsignedinteger)


class InputKind(enum.Enum):
    """Closed set of value kinds accepted by the coercion engine.
    """
    NULL = 'null'
    BOOLEAN = 'boolean'
    INTEGER = 'integer'
    DECIMAL = 'decimal'
    FLOAT = 'float'
    TEXT = 'text'
    BYTES = 'bytes'
    UUID = 'uuid'
    DATE = 'date'
    TIME = 'time'
    DATETIME = 'datetime'
    OTHER = 'other'


TEMPORAL_KINDS = frozenset({InputKind.DATE, InputKind.TIME, InputKind.DATETIME})


def _convert_pyarrow_value(value: Any) -> Any:
    """Convert a PyArrow scalar to its Python value.

    Null scalars become None.
    """
    if not value.is_valid:
        return None
    return value.as_py()


def _convert_numpy_value(val: Any) -> float | int | bool | datetime.datetime | None:
    """Convert NumPy value to Python type.

    NaN and NaT become None.

    >>> _convert_numpy_value(np.int16(7))
    7
    >>> _convert_numpy_value(np.float64('nan')) is None
    True
    >>> _convert_numpy_value(np.datetime64('2023-05-15T14:30:45'))
    datetime.datetime(2023, 5, 15, 14, 30, 45)
    """
    if isinstance(val, np.floating) and np.isnan(val):
        return None

    if isinstance(val, np.datetime64):
        if np.isnat(val):
            return None
        return pd.Timestamp(val).to_pydatetime()

    if isinstance(val, np.timedelta64) and np.isnat(val):
        return None

    if isinstance(val, (*NUMPY_FLOAT_TYPES, *NUMPY_INT_TYPES, np.bool_)):
        return val.item()

    return val


class TypeConverter:
    """Normalize caller values before they reach the coercion engine.

    Handles NumPy, Pandas, and PyArrow scalars. Strings are passed through
    unchanged; the empty string is a legitimate text value here.
    """

    @staticmethod
    def convert_value(value: Any) -> Any:
        """Convert a single value to a plain Python value."""
        if value is None:
            return None

        if isinstance(value, float) and math.isnan(value):
            return None

        if value is pd.NaT or value is pd.NA:
            return None

        if isinstance(value, (*NUMPY_FLOAT_TYPES, *NUMPY_INT_TYPES, np.bool_,
                              np.datetime64, np.timedelta64)):
            return _convert_numpy_value(value)

        if isinstance(value, np.str_):
            return str(value)

        if isinstance(value, np.bytes_):
            return bytes(value)

        if isinstance(value, pd.Timestamp):
            return value.to_pydatetime()

        if isinstance(value, pa.Scalar):
            return _convert_pyarrow_value(value)

        return value


def classify(value: Any) -> InputKind:
    """Tag an already normalized value with its input kind.

    >>> classify(True)
    <InputKind.BOOLEAN: 'boolean'>
    >>> classify(datetime.date(2023, 5, 15))
    <InputKind.DATE: 'date'>
    >>> classify(object())
    <InputKind.OTHER: 'other'>
    """
    if value is None:
        return InputKind.NULL
    if isinstance(value, bool):
        return InputKind.BOOLEAN
    if isinstance(value, int):
        return InputKind.INTEGER
    if isinstance(value, decimal.Decimal):
        return InputKind.DECIMAL
    if isinstance(value, float):
        return InputKind.FLOAT
    if isinstance(value, str):
        return InputKind.TEXT
    if isinstance(value, bytes | bytearray | memoryview):
        return InputKind.BYTES
    if isinstance(value, uuid.UUID):
        return InputKind.UUID
    # datetime is a subclass of date
    if isinstance(value, datetime.datetime):
        return InputKind.DATETIME
    if isinstance(value, datetime.date):
        return InputKind.DATE
    if isinstance(value, datetime.time):
        return InputKind.TIME
    return InputKind.OTHER


def resolve_input(value: Any) -> tuple[InputKind, Any]:
    """Normalize a raw cell value and tag it with its input kind.
    """
    converted = TypeConverter.convert_value(value)
    if converted is not value:
        logger.debug(f'Normalized {type(value).__name__} input to {type(converted).__name__}')
    return classify(converted), converted


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
