"""Converts geometries between GeoJSON, KML and CSV of H3 cells."""

from .cells import CellCodec
from .config import ConversionParams, FormatSelector, ResolutionRange, parse_format
from .converter import GeoConverter
from .coverer import AdaptiveCoverer, CoverageResult
from .exceptions import DataError, FileAccessError, GeoConvError, UsageError
from .store import GeometryAttributeStore, Record

__all__ = [
    "AdaptiveCoverer",
    "CellCodec",
    "ConversionParams",
    "CoverageResult",
    "DataError",
    "FileAccessError",
    "FormatSelector",
    "GeoConvError",
    "GeoConverter",
    "GeometryAttributeStore",
    "Record",
    "ResolutionRange",
    "UsageError",
    "parse_format",
]

__version__ = "0.1.0"
