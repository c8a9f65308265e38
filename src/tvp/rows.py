"""Append-only row storage for staged tables."""
from collections.abc import Iterator, Sequence
from typing import Any

Row = tuple[Any, ...]


class RowStore:
    """Rows of canonical values, indexed densely in insertion order.

    Rows are stored as tuples and never updated or removed individually.
    """

    def __init__(self) -> None:
        self._rows: list[Row] = []

    def append(self, row: Sequence[Any]) -> int:
        """Store a row at the next index and return that index.
        """
        self._rows.append(tuple(row))
        return len(self._rows) - 1

    def iterate(self) -> Iterator[tuple[int, Row]]:
        """Iterate over (index, row) pairs.

        Each call starts a fresh pass. The pass reads the live storage, so
        rows appended while iterating are visited too.
        """
        return enumerate(self._rows)

    def clear(self) -> None:
        self._rows.clear()

    def __getitem__(self, index: int) -> Row:
        return self._rows[index]

    def __len__(self) -> int:
        return len(self._rows)
