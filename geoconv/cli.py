"""Command line interface."""

import logging
from typing import Optional

import typer

from .config import ConversionParams
from .converter import GeoConverter
from .exceptions import DataError, FileAccessError, UsageError

USAGE = """\
Usage:
   geoconv INPUT OUTPUT /path/to/input/file /path/to/output/file
Inputs:
   * json for GeoJSON
   * kml for KML
   * shp for a shapefile or any other vector file readable by geopandas
   * h3(columns) for a properly quoted and escaped CSV of H3 cells with attributes
Outputs:
   * json
   * kml
   * h3(resolution,columns)
General notes:
   * the output file is overwritten without a prompt
   * input and output formats must be different
   * all geometries are taken out of their grouping wrappers (features, folders,
     multi-geometries) and flattened to polygons, holes preserved, and points
GeoJSON notes:
   * supported geometry types are Polygon, Point, MultiPolygon, MultiPoint and
     GeometryCollection
KML notes:
   * supported geometry types are Polygon, Point, LinearRing and MultiGeometry
     inside a Placemark
   * name, address, id, description and phoneNumber are Placemark fields,
     every other attribute is extended data
H3 notes:
   * columns is a comma-separated list of unique attribute names
   * the only mandatory column is index, a hexadecimal cell id
   * use _ (a single underscore) to skip a column
   * resolution is an integer from 0 to 15, or a range such as 7-9: polygon
     interiors use the coarsest level that fits, boundaries the finest
"""

app = typer.Typer(pretty_exceptions_enable=False, add_completion=False)


@app.command(epilog=USAGE)
def convert(
    input_format: str = typer.Argument(..., help="json, kml, shp or h3(columns)."),
    output_format: str = typer.Argument(
        ..., help="json, kml or h3(resolution,columns)."
    ),
    input_path: str = typer.Argument(..., help="Input file."),
    output_path: str = typer.Argument(..., help="Output file."),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", min=1, help="Worker threads."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress."),
) -> None:
    """
    Converts geometries between GeoJSON, KML and CSV of H3 cells.
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        params = ConversionParams.from_args(
            input_format, output_format, input_path, output_path, max_workers=workers
        )
        GeoConverter(params).convert()
    except (UsageError, FileAccessError) as e:
        typer.echo(f"Error: {e}", err=True)
        typer.echo(USAGE, err=True)
        raise typer.Exit(code=1)
    except DataError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
