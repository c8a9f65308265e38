from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pandas as pd
import pyarrow as pa
from tvp.adapters.column_info import Column

from libb import ConfigOptions

__all__ = [
    'TableOptions',
    'pandas_numpy_data_loader',
    'pandas_pyarrow_data_loader',
    'iterdict_data_loader',
]


def iterdict_data_loader(data, columns, **kwargs) -> list[dict]:
    """Minimal data loader.

    Accepts additional keyword arguments for compatibility with other data
    loaders, but doesn't use them.
    """
    if not data:
        return []
    return list(data)


def _empty_dataframe(columns) -> pd.DataFrame:
    """Create empty DataFrame with column metadata."""
    df = pd.DataFrame(columns=Column.get_names(columns))
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


def pandas_numpy_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """Standard pandas DataFrame loader using NumPy.

    Always returns a DataFrame, never None, with columns preserved for empty
    tables. Column metadata (type, precision, scale) is stored in
    DataFrame.attrs['column_types'].
    """
    if not data:
        return _empty_dataframe(columns)

    df = pd.DataFrame.from_records(list(data), columns=Column.get_names(columns))
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


def pandas_pyarrow_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """PyArrow-based pandas DataFrame loader.

    Always returns a DataFrame, never None, with columns preserved for empty
    tables.
    """
    if not data:
        return _empty_dataframe(columns)

    column_names = Column.get_names(columns)
    columns_data = [[row[col] for row in data] for col in column_names]
    df = pa.table(columns_data, names=column_names).to_pandas(types_mapper=pd.ArrowDtype)
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


@dataclass
class TableOptions(ConfigOptions):
    """Options

    - extended_temporal: Allow TIME_WITH_TIMEZONE / TIMESTAMP_WITH_TIMEZONE
      columns (default: False)
    - type_name: Server-side table type name, as given to CREATE TYPE
      (default: None)
    - data_loader: Callable used by Table.to_frame (default:
      pandas_numpy_data_loader)
    """
    extended_temporal: bool = False
    type_name: str = None
    data_loader: Callable[..., Any] | None = None

    def __post_init__(self):
        if self.type_name is not None and not str(self.type_name).strip():
            raise ValueError('type_name must be a non-empty string')
        if self.data_loader is None:
            self.data_loader = pandas_numpy_data_loader
