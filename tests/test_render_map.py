"""Tests for the render_map CLI."""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))

import render_map


def run_cli(*argv):
    with patch.object(sys, "argv", ["render_map.py", *argv]):
        render_map.main()


def test_missing_markers_csv_exits_1(tmp_path, caplog):
    with pytest.raises(SystemExit) as exc_info:
        run_cli("--markers-csv", str(tmp_path / "nope.csv"), "--out", str(tmp_path / "map.html"))
    assert exc_info.value.code == 1
    assert "Could not read input" in caplog.text
    assert not (tmp_path / "map.html").exists()


def test_missing_json_exits_1(tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        run_cli("--json", str(tmp_path / "nope.json"), "--out", str(tmp_path / "map.html"))
    assert exc_info.value.code == 1


def test_invalid_view_exits_1(tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        run_cli("--lat", "500", "--out", str(tmp_path / "map.html"))
    assert exc_info.value.code == 1


def test_malformed_json_exits_1(tmp_path):
    doc = tmp_path / "map.json"
    doc.write_text("{not json", encoding="utf-8")
    with pytest.raises(SystemExit) as exc_info:
        run_cli("--json", str(doc), "--out", str(tmp_path / "map.html"))
    assert exc_info.value.code == 1


def test_renders_json_document(tmp_path):
    doc = tmp_path / "map.json"
    doc.write_text('{"position": {"lat": 1, "long": 2, "zoom": 5}, '
                   '"markers": [{"lat": 1, "long": 2, "popup": "here"}]}', encoding="utf-8")
    out = tmp_path / "out" / "map.html"

    run_cli("--json", str(doc), "--out", str(out))

    html = out.read_text(encoding="utf-8")
    assert "L.map" in html
    assert "here" in html
