"""Tests for marker file loading."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from mapper.markers_io import load_map_json, load_markers_csv, row_to_marker
from mapper.models import AddressMarker, CoordinateMarker, parse_marker_spec

SAMPLE_CSV = """address,lat,long,label,popup,icon_url,icon_w,icon_h,notes
"350 5th Ave, New York",,,,,,,,landmark
,40.7484,-73.9857,Empire State,Observation deck,https://example.com/pin.png,32,32,
,51.5007,-0.1246,,,,,,
"""


def test_row_to_marker_folds_icon():
    marker = row_to_marker({"lat": "1", "long": "2", "icon_url": "u", "icon_w": "10"})
    assert marker == {"lat": "1", "long": "2", "icon": {"icon_url": "u", "icon_w": "10"}}


def test_load_markers_csv(tmp_path):
    path = tmp_path / "markers.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")

    markers = load_markers_csv(path)

    assert len(markers) == 3
    assert markers[0] == {"address": "350 5th Ave, New York"}
    assert markers[2] == {"lat": "51.5007", "long": "-0.1246"}

    specs = [parse_marker_spec(m, i) for i, m in enumerate(markers)]
    assert isinstance(specs[0], AddressMarker)
    assert isinstance(specs[1], CoordinateMarker)
    assert specs[1].label == "Empire State"
    assert specs[1].icon.url == "https://example.com/pin.png"
    assert specs[1].icon.size == (32, 32)


def test_load_markers_csv_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_markers_csv(tmp_path / "nope.csv")


def test_load_map_json(tmp_path):
    path = tmp_path / "map.json"
    path.write_text('{"position": {"lat": 1, "long": 2, "zoom": 5}}', encoding="utf-8")
    assert load_map_json(path) == '{"position": {"lat": 1, "long": 2, "zoom": 5}}'
