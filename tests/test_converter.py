"""Tests for the file-to-file converter."""

import pytest

from geoconv.config import ConversionParams, FormatKind
from geoconv.converter import GeoConverter
from geoconv.exceptions import FileAccessError


def params_for(source, target, output_format="h3(7,index,name)"):
    return ConversionParams.from_args("json", output_format, str(source), str(target))


class TestGeoConverter:
    """Reading on construction, covering once, writing at the end."""

    def test_reads_store_on_construction(self, tmp_path, square_geojson):
        target = tmp_path / "out.csv"

        converter = GeoConverter(params_for(square_geojson, target))

        assert converter.params.output_format.kind == FormatKind.h3
        assert converter.params.output_format.resolution.max_level == 7
        assert [r.attributes for r in converter.store] == [{"name": "Sq"}]
        assert converter.store.frozen
        assert not target.exists()

    def test_cover_is_computed_once(self, tmp_path, square_geojson):
        converter = GeoConverter(params_for(square_geojson, tmp_path / "out.csv"))
        assert converter.cover() is converter.cover()

    def test_convert_writes_one_row_per_cell(self, tmp_path, square_geojson):
        target = tmp_path / "out.csv"
        converter = GeoConverter(params_for(square_geojson, target))

        converter.convert()

        lines = target.read_text(encoding="utf-8").splitlines()
        assert len(lines) == len(converter.cover())
        assert all(line.endswith(",Sq") for line in lines)

    def test_missing_input(self, tmp_path):
        with pytest.raises(FileAccessError):
            GeoConverter(params_for(tmp_path / "missing.json", tmp_path / "out.csv"))
