"""Conversion parameters and format selectors."""

import re
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .exceptions import UsageError
from .hexgrid import MAX_LEVEL, MIN_LEVEL

INDEX_COLUMN = "index"
SKIP_COLUMN = "_"

_RESOLUTION = re.compile(r"^(\d+)(?:\s*[-:]\s*(\d+))?$")


class FormatKind(str, Enum):
    """Format selector keyword."""

    json = "json"
    kml = "kml"
    shp = "shp"
    h3 = "h3"


class ResolutionRange(BaseModel):
    """Inclusive range of H3 resolution levels, sorted ascending."""

    min_level: int = Field(
        ..., description="Coarsest level.", ge=MIN_LEVEL, le=MAX_LEVEL
    )
    max_level: int = Field(
        ..., description="Finest level.", ge=MIN_LEVEL, le=MAX_LEVEL
    )

    @model_validator(mode="before")
    @classmethod
    def _sort(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        low, high = data.get("min_level"), data.get("max_level")
        if low is not None and high is not None:
            low, high = sorted((low, high))
            data = {**data, "min_level": low, "max_level": high}
        return data

    @classmethod
    def parse(cls, text: str) -> "ResolutionRange":
        """Parses ``9``, ``7-9``, ``9:7`` and the like."""

        match = _RESOLUTION.match(text.strip())
        if match is None:
            raise UsageError(
                f"Resolution {text!r} is neither a level nor a level range"
            )
        first = int(match.group(1))
        second = int(match.group(2)) if match.group(2) is not None else first
        try:
            return cls(min_level=first, max_level=second)
        except ValidationError as e:
            raise UsageError(
                f"Resolution {text!r} is out of range {MIN_LEVEL}..{MAX_LEVEL}"
            ) from e

    @property
    def levels(self) -> range:
        """The levels from coarse to fine."""
        return range(self.min_level, self.max_level + 1)

    @property
    def single(self) -> bool:
        """True when only one level is requested."""
        return self.min_level == self.max_level


class FormatSelector(BaseModel):
    """Input or output format, with the cell-index column spec."""

    kind: FormatKind
    columns: List[str] = Field(
        default_factory=list, description="ColumnSpec of h3 formats."
    )
    resolution: Optional[ResolutionRange] = None

    @field_validator("columns")
    @classmethod
    def _columns(cls, columns: List[str]) -> List[str]:
        if any(not column for column in columns):
            raise ValueError("column names must not be empty")
        return columns

    @model_validator(mode="after")
    def _cell_columns(self) -> "FormatSelector":
        if self.kind == FormatKind.h3 and self.columns.count(INDEX_COLUMN) != 1:
            raise ValueError(f"h3 columns must name {INDEX_COLUMN!r} exactly once")
        return self

    @property
    def is_cells(self) -> bool:
        """True for the cell-index CSV format."""
        return self.kind == FormatKind.h3


def _errors(e: ValidationError) -> str:
    return "; ".join(error["msg"] for error in e.errors())


def parse_format(text: str, output: bool = False) -> FormatSelector:
    """Parses ``json``, ``kml``, ``shp``, ``h3(cols)`` or ``h3(levels,cols)``.

    The resolution token is only read when ``output`` is set.
    """

    token = text.strip()
    keyword = token.lower()
    if keyword in (FormatKind.json.value, FormatKind.kml.value, FormatKind.shp.value):
        return FormatSelector(kind=FormatKind(keyword))
    if not (keyword.startswith("h3(") and keyword.endswith(")")):
        raise UsageError(f"Unknown format {text!r}")

    columns = [column.strip() for column in token[3:-1].split(",")]
    resolution = None
    if output:
        resolution = ResolutionRange.parse(columns.pop(0))
    try:
        return FormatSelector(
            kind=FormatKind.h3, columns=columns, resolution=resolution
        )
    except ValidationError as e:
        raise UsageError(f"Invalid format {text!r}: {_errors(e)}") from e


class ConversionParams(BaseModel):
    """Conversion parameters."""

    input_format: FormatSelector
    output_format: FormatSelector
    input_filepath: str = Field(
        ..., description="Path to the input file.", min_length=1
    )
    output_filepath: str = Field(
        ..., description="Path to the output file.", min_length=1
    )
    max_workers: Optional[int] = Field(
        None, description="Worker threads, default by CPU count.", ge=1
    )

    @model_validator(mode="after")
    def _formats(self) -> "ConversionParams":
        if self.input_format.kind == self.output_format.kind:
            raise ValueError("input and output formats must be different")
        if self.output_format.kind == FormatKind.shp:
            raise ValueError("shp is an input format only")
        if self.output_format.is_cells and self.output_format.resolution is None:
            raise ValueError("h3 output needs a resolution")
        return self

    @classmethod
    def from_args(
        cls,
        input_format: str,
        output_format: str,
        input_filepath: str,
        output_filepath: str,
        max_workers: Optional[int] = None,
    ) -> "ConversionParams":
        """Builds parameters from command line tokens."""

        try:
            return cls(
                input_format=parse_format(input_format),
                output_format=parse_format(output_format, output=True),
                input_filepath=input_filepath,
                output_filepath=output_filepath,
                max_workers=max_workers,
            )
        except ValidationError as e:
            raise UsageError(_errors(e)) from e
