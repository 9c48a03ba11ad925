"""Converts between vector documents and cell-index CSV."""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from .cells import CellCodec
from .config import ConversionParams, FormatKind
from .coverer import AdaptiveCoverer, CoverageResult
from .exceptions import DataError, FileAccessError
from .geojson import GeoJsonFlattener, write_geojson
from .kml import KmlFlattener, write_kml
from .store import GeometryAttributeStore
from .vector_file import VectorFileFlattener

logger = logging.getLogger(__name__)


def check_paths(params: ConversionParams) -> None:
    """Fails unless the input is a readable file and the output is writable."""

    source = Path(params.input_filepath)
    if not source.is_file() or not os.access(source, os.R_OK):
        raise FileAccessError(f"Cannot read input file {source}")
    target = Path(params.output_filepath)
    if target.exists():
        if not target.is_file() or not os.access(target, os.W_OK):
            raise FileAccessError(f"Cannot overwrite output file {target}")
    elif not target.resolve().parent.is_dir():
        raise FileAccessError(f"Output directory of {target} does not exist")


class GeoConverter:
    """Converts one input file to one output file.

    The input is read and flattened on construction; nothing is written
    until ``convert`` has rendered the whole output.
    """

    _params: ConversionParams
    _store: GeometryAttributeStore
    _coverage: Optional[CoverageResult]

    def __init__(self, params: ConversionParams) -> None:
        check_paths(params)
        self._params = params
        self._coverage = None
        self._store = self._read_store()

    @property
    def params(self) -> ConversionParams:
        """Returns the conversion parameters."""
        return self._params

    @property
    def store(self) -> GeometryAttributeStore:
        """Returns the records read from the input."""
        return self._store

    def _read_text(self) -> str:
        try:
            with open(
                self._params.input_filepath, "r", encoding="utf-8-sig", newline=""
            ) as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise DataError(f"Input file is not UTF-8 text: {e}") from e
        except OSError as e:
            raise FileAccessError(f"Cannot read input file: {e}") from e

    def _read_bytes(self) -> bytes:
        try:
            with open(self._params.input_filepath, "rb") as f:
                return f.read()
        except OSError as e:
            raise FileAccessError(f"Cannot read input file: {e}") from e

    def _read_store(self) -> GeometryAttributeStore:
        selector = self._params.input_format
        workers = self._params.max_workers
        logger.info(
            "reading %s as %s", self._params.input_filepath, selector.kind.value
        )
        if selector.kind == FormatKind.json:
            return GeoJsonFlattener(workers).flatten(self._read_text())
        if selector.kind == FormatKind.kml:
            return KmlFlattener(workers).flatten(self._read_bytes())
        if selector.kind == FormatKind.shp:
            return VectorFileFlattener(workers).flatten(self._params.input_filepath)
        return CellCodec(selector.columns).decode(self._read_text())

    def cover(self) -> CoverageResult:
        """Covers the records with cells; computed once."""

        if self._coverage is None:
            resolution = self._params.output_format.resolution
            logger.info(
                "covering %d records at levels %d..%d",
                len(self._store),
                resolution.min_level,
                resolution.max_level,
            )
            coverer = AdaptiveCoverer(resolution, max_workers=self._params.max_workers)
            self._coverage = coverer.cover(self._store)
        return self._coverage

    def render(self) -> Union[str, bytes]:
        """Renders the whole output document."""

        selector = self._params.output_format
        if selector.is_cells:
            return CellCodec(selector.columns).encode(self.cover())
        if selector.kind == FormatKind.kml:
            return write_kml(self._store)
        return write_geojson(self._store)

    def convert(self) -> None:
        """Writes the output file."""

        output = self.render()
        logger.info("writing %s", self._params.output_filepath)
        try:
            if isinstance(output, bytes):
                with open(self._params.output_filepath, "wb") as f:
                    f.write(output)
            else:
                with open(
                    self._params.output_filepath, "w", encoding="utf-8", newline=""
                ) as f:
                    f.write(output)
        except OSError as e:
            raise FileAccessError(f"Cannot write output file: {e}") from e
