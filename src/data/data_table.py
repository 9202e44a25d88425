"""Rectangular, header-driven tabular buffer.

A DataTable is the unit of tabular persistence: tracker recordings,
participant details and the final trial results are all written as
DataTables. Every row has exactly one value per column, in column order,
so every CSV line has the same field count as the header.
"""

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Sequence, Tuple, Union

from constants import (
    CSV_COMMA_REPLACEMENT,
    CSV_DELIMITER,
    CSV_LINE_BREAK_REPLACEMENT,
    CSV_LINE_BREAKS,
)
from errors import SchemaViolationError

RowLike = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


def format_value(value: Any) -> str:
    """Convert a cell value to CSV-safe text.

    None becomes an empty field. Commas and line breaks are replaced
    rather than quoted.
    """
    if value is None:
        return ""
    text = str(value).replace(CSV_DELIMITER, CSV_COMMA_REPLACEMENT)
    for line_break in CSV_LINE_BREAKS:
        text = text.replace(line_break, CSV_LINE_BREAK_REPLACEMENT)
    return text


class DataTable:
    """Ordered columns plus ordered, complete rows.

    Usage:
        table = DataTable(["time", "x", "y"])
        table.add_complete_row({"time": 0.0, "x": 1, "y": 2})
        lines = table.get_csv_lines()
    """

    def __init__(self, headers: Sequence[str]) -> None:
        """Initialize an empty table.

        Args:
            headers: Column names, in output order

        Raises:
            SchemaViolationError: If a column name is repeated
        """
        headers = list(headers)
        if len(set(headers)) != len(headers):
            raise SchemaViolationError(f"Duplicate column names in table header: {headers}")
        self._headers: List[str] = headers
        self._rows: List[List[Any]] = []

    @property
    def headers(self) -> List[str]:
        """Return a copy of the column names."""
        return list(self._headers)

    @property
    def num_columns(self) -> int:
        return len(self._headers)

    @property
    def num_rows(self) -> int:
        return len(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def add_complete_row(self, row: RowLike) -> None:
        """Append a row given as a mapping or (column, value) pairs.

        Args:
            row: One value for every column, and no others

        Raises:
            SchemaViolationError: If the row's columns differ from the header
        """
        values = dict(row.items()) if isinstance(row, Mapping) else dict(row)

        missing = [h for h in self._headers if h not in values]
        extra = [k for k in values if k not in self._headers]
        if missing or extra:
            raise SchemaViolationError(
                f"Row does not match table header. Missing: {missing}, unexpected: {extra}"
            )

        self._rows.append([values[h] for h in self._headers])

    def add_row_values(self, values: Sequence[Any]) -> None:
        """Append a row given positionally, in header order.

        Raises:
            SchemaViolationError: If the number of values differs from the column count
        """
        if len(values) != len(self._headers):
            raise SchemaViolationError(
                f"Row has {len(values)} values but table has {len(self._headers)} columns"
            )
        self._rows.append(list(values))

    def get_column(self, name: str) -> List[Any]:
        """Return all values of one column.

        Raises:
            KeyError: If the column doesn't exist
        """
        try:
            index = self._headers.index(name)
        except ValueError:
            raise KeyError(name) from None
        return [row[index] for row in self._rows]

    def rows(self) -> Iterator[Dict[str, Any]]:
        """Iterate rows as column -> value dictionaries."""
        for row in self._rows:
            yield dict(zip(self._headers, row))

    def to_dict_list(self) -> List[Dict[str, Any]]:
        """Return all rows as a list of dictionaries."""
        return list(self.rows())

    def copy(self) -> "DataTable":
        """Return an independent copy, safe to hand to the write queue."""
        table = DataTable(self._headers)
        table._rows = [list(row) for row in self._rows]
        return table

    def get_csv_lines(self) -> List[str]:
        """Materialize the table as CSV lines, header first."""
        lines = [CSV_DELIMITER.join(format_value(h) for h in self._headers)]
        for row in self._rows:
            lines.append(CSV_DELIMITER.join(format_value(v) for v in row))
        return lines

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "DataTable":
        """Build a single-row table whose columns are the mapping's keys."""
        table = cls(list(mapping.keys()))
        table.add_complete_row(mapping)
        return table

    def __repr__(self) -> str:
        return f"DataTable(columns={self._headers}, rows={len(self._rows)})"
