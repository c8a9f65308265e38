"""
Table adapters package.

This package provides the following components:

- column_info: Column metadata (name, type, widened precision/scale)
- type_conversion: Normalization of caller values (NumPy, Pandas, PyArrow)
  and their classification into InputKind tags

Conversion principles:
1. Boundary: TypeConverter turns library scalars into plain Python values
2. Coercion: tvp.coercion turns plain values into canonical column values

The Column class does NOT perform conversions - it only holds metadata and
applies widening.
"""

from tvp.adapters.column_info import Column
from tvp.adapters.type_conversion import InputKind, TypeConverter, resolve_input

__all__ = ['Column', 'InputKind', 'TypeConverter', 'resolve_input']
