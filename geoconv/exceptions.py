"""Errors raised by geoconv."""


class GeoConvError(Exception):
    """Base class for every fatal conversion error."""


class UsageError(GeoConvError):
    """Malformed command line: format selectors, columns or resolution."""


class FileAccessError(GeoConvError):
    """Input or output path cannot be used."""


class DataError(GeoConvError):
    """Input content cannot be converted."""
