import re

import pytest

from chloe import PropertiesRecord, SerializationIOError, read_properties, write_properties
from chloe.exceptions import InvalidParameter, PropertiesError
from chloe.treatments import build_map
from chloe.values import Number, Text


def test_file_layout(tmp_path):
    record = build_map("sample.tif", ["SHDI"], output_csv="out.csv")
    path = write_properties(record, tmp_path / "map.properties")
    lines = path.read_text(encoding="utf-8").splitlines()
    assert re.match(r"^# \d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", lines[0])
    assert lines[1:] == record.lines()
    assert not (tmp_path / "map.properties.tmp").exists()


def test_round_trip(tmp_path):
    record = build_map("sample.tif", ["SHDI", "HET"])
    path = write_properties(record, tmp_path / "map.properties")
    assert read_properties(path) == {
        "treatment": "map",
        "input_raster": "{sample.tif}",
        "metrics": "{SHDI;HET}",
    }


def test_temporary_file_in_scratch_dir(tmp_path):
    scratch = tmp_path / "scratch"
    path = write_properties(build_map("a.tif", ["SHDI"]), scratch_dir=scratch)
    assert path.parent == scratch
    assert path.name.startswith("chloe-")
    assert path.suffix == ".properties"


def test_parent_directories_are_created(tmp_path):
    path = write_properties(build_map("a.tif", ["SHDI"]), tmp_path / "a" / "b" / "c.properties")
    assert path.is_file()


def test_existing_file_is_overwritten(tmp_path):
    target = tmp_path / "t.properties"
    target.write_text("ancien", encoding="utf-8")
    write_properties(build_map("a.tif", ["SHDI"]), target)
    assert "ancien" not in target.read_text(encoding="utf-8")


def test_unwritable_target(tmp_path):
    blocker = tmp_path / "fichier"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(SerializationIOError) as excinfo:
        write_properties(build_map("a.tif", ["SHDI"]), blocker / "t.properties")
    assert isinstance(excinfo.value, OSError)


def test_duplicate_key_rejected():
    record = PropertiesRecord([("treatment", Text("map"))])
    with pytest.raises(PropertiesError):
        record.add("treatment", Text("grid"))


def test_record_access():
    record = PropertiesRecord([("sizes", Number(3)), ("shape", Text("CIRCLE"))])
    assert len(record) == 2
    assert record["sizes"] == "3"
    assert record.text() == "sizes=3\nshape=CIRCLE\n"
    with pytest.raises(KeyError):
        record["metrics"]


def test_record_rejects_unrenderable_value():
    record = PropertiesRecord()
    with pytest.raises(InvalidParameter):
        record.add("combination", Text("a\nb"))
    assert len(record) == 0
