import json
from pathlib import Path

import pytest

from nativedocgen.crossmap import Crossmap, CrossmapError, identity_crossmap


def test_rows_resolve_to_first_entry():
    cmap = Crossmap([[0x4EDE34FBADD967A6, 0x7715C03B, "0xD2C9A7F1D4F37F3E"]])
    assert cmap(0x7715C03B) == 0x4EDE34FBADD967A6
    assert cmap(0xD2C9A7F1D4F37F3E) == 0x4EDE34FBADD967A6
    assert cmap(0x4EDE34FBADD967A6) == 0x4EDE34FBADD967A6
    assert cmap(0x1) is None
    assert len(cmap) == 3


def test_load_yaml_mapping(tmp_path: Path):
    p = tmp_path / "crossmap.yaml"
    p.write_text('0x4EDE34FBADD967A6: [0x7715C03B]\n"868997DA": "0x1111"\n"0x2222":\n')
    cmap = Crossmap.load(p)
    assert cmap(0x7715C03B) == 0x4EDE34FBADD967A6
    assert cmap(0x1111) == 0x868997DA
    assert cmap(0x2222) == 0x2222


def test_load_json_rows(tmp_path: Path):
    p = tmp_path / "crossmap.json"
    p.write_text(json.dumps([["0xAA", "0xBB"], ["0xCC"]]))
    cmap = Crossmap.load(p)
    assert cmap(0xBB) == 0xAA
    assert cmap(0xCC) == 0xCC


@pytest.mark.parametrize("data", ["just text", [["0xAA"], "0xBB"], {"0xAA": ["zz-not-hex"]}])
def test_malformed_crossmap(data):
    with pytest.raises(CrossmapError):
        Crossmap.from_data(data)


def test_missing_crossmap_file(tmp_path: Path):
    with pytest.raises(CrossmapError):
        Crossmap.load(tmp_path / "nope.yaml")


def test_identity():
    assert identity_crossmap(0x1234) == 0x1234
