"""Reads vector files (shapefile, GeoPackage, ...) into records."""

import logging
from typing import Any, Iterator, Tuple

import geopandas
import pandas

from .exceptions import DataError
from .flatten import DocumentFlattener, Visit
from .store import AttributeMap, leaf_geometries

logger = logging.getLogger(__name__)

WGS84 = 4326


def _native(value: Any) -> Any:
    """Converts a frame cell to a plain Python value."""

    if isinstance(value, (str, bool, int, float)):
        return value
    if hasattr(value, "item"):
        return value.item()
    return str(value)


def _missing(value: Any) -> bool:
    return pandas.api.types.is_scalar(value) and pandas.isna(value)


class VectorFileFlattener(DocumentFlattener):
    """Flattens every row of a vector file; rows are the work units."""

    def root(self, document: str) -> geopandas.GeoDataFrame:
        try:
            frame = geopandas.read_file(document)
        except (OSError, RuntimeError, ValueError) as e:
            raise DataError(f"Cannot read vector file {document}: {e}") from e
        if frame.crs is not None and frame.crs.to_epsg() != WGS84:
            logger.info("reprojecting %s from %s", document, frame.crs)
            frame = frame.to_crs(WGS84)
        return frame

    def visit(self, node: Any) -> Visit:
        if isinstance(node, geopandas.GeoDataFrame):
            return [], list(self._rows(node))
        geometry, attributes = node
        return self.records(leaf_geometries(geometry), attributes), []

    @staticmethod
    def _rows(frame: geopandas.GeoDataFrame) -> Iterator[Tuple[Any, AttributeMap]]:
        columns = [c for c in frame.columns if c != frame.geometry.name]
        rows = frame[columns].to_dict("records") if columns else [{}] * len(frame)
        for geometry, row in zip(frame.geometry, rows):
            attributes = {
                column: _native(value)
                for column, value in row.items()
                if not _missing(value)
            }
            yield geometry, attributes
