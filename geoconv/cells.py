"""Cell-index CSV codec."""

import csv
import io
import logging
from typing import List, Mapping, Sequence

from . import hexgrid
from .config import INDEX_COLUMN, SKIP_COLUMN
from .exceptions import DataError
from .store import AttributeMap, GeometryAttributeStore, Record, render_value

logger = logging.getLogger(__name__)


class CellCodec:
    """Reads and writes comma separated cell rows for one column spec.

    The ``index`` column holds the cell id as hexadecimal; ``_`` columns are
    skipped on read and written empty.
    """

    _columns: List[str]

    def __init__(self, columns: Sequence[str]) -> None:
        if list(columns).count(INDEX_COLUMN) != 1:
            raise ValueError(f"columns must name {INDEX_COLUMN!r} exactly once")
        self._columns = list(columns)

    @property
    def columns(self) -> List[str]:
        """Returns the column spec."""
        return list(self._columns)

    def decode(self, text: str) -> GeometryAttributeStore:
        """Builds one cell polygon record per row."""

        store = GeometryAttributeStore()
        reader = csv.reader(io.StringIO(text, newline=""), dialect="excel")
        for row in reader:
            if not row:
                continue
            if len(row) < len(self._columns):
                raise DataError(
                    f"CSV line {reader.line_num} has {len(row)} fields, "
                    f"expected {len(self._columns)}"
                )
            store.extend([self._record(row, reader.line_num)])
        logger.info("decoded %d cells", len(store))
        return store.freeze()

    def _record(self, row: List[str], line: int) -> Record:
        cell = None
        attributes: AttributeMap = {}
        for column, value in zip(self._columns, row):
            if column == SKIP_COLUMN:
                continue
            if column == INDEX_COLUMN:
                try:
                    cell = hexgrid.parse_cell(value)
                except DataError as e:
                    raise DataError(f"CSV line {line}: {e}") from e
            else:
                attributes[column] = value
        return Record(geometry=hexgrid.cell_to_polygon(cell), attributes=attributes)

    def encode(self, coverage: Mapping[str, AttributeMap]) -> str:
        """Renders one row per cell in column spec order."""

        output = io.StringIO(newline="")
        writer = csv.writer(output, dialect="excel")
        for cell, attributes in coverage.items():
            writer.writerow(
                [self._field(column, cell, attributes) for column in self._columns]
            )
        return output.getvalue()

    @staticmethod
    def _field(column: str, cell: str, attributes: AttributeMap) -> str:
        if column == INDEX_COLUMN:
            return hexgrid.format_cell(cell)
        if column == SKIP_COLUMN:
            return ""
        return render_value(attributes.get(column))
