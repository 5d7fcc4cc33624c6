import json

import pytest

from lozsheet.errors import ImportFormatError
from lozsheet.services.snapshot_io import (
    build_snapshot,
    dump_snapshot,
    export_filename,
    has_export_extension,
    parse_import,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Link", "Link.json"),
        ("  Princess Zelda ", "Princess Zelda.json"),
        ("", "character.json"),
        (None, "character.json"),
        ("../../etc/passwd", "_.._etc_passwd.json"),
        ('Ga:non?', "Ga_non_.json"),
        ("...", "character.json"),
    ],
)
def test_export_filename(name, expected):
    assert export_filename(name) == expected


def test_extension_check_is_case_insensitive():
    assert has_export_extension("hero.JSON")
    assert not has_export_extension("hero.json.txt")
    assert not has_export_extension("")


def test_snapshot_dump_shape():
    text = dump_snapshot(build_snapshot({"name": "Link"}, exported_at="2024-01-01T00:00:00Z"))
    assert json.loads(text) == {
        "version": 1,
        "exportedAt": "2024-01-01T00:00:00Z",
        "sheet": {"name": "Link"},
    }


def test_parse_import_prefers_sheet_then_data():
    assert parse_import("a.json", '{"sheet": {"name": "A"}, "data": {"name": "B"}}') == {"name": "A"}
    assert parse_import("a.json", '{"sheet": null, "data": {"name": "B"}}') == {"name": "B"}
    assert parse_import("a.json", '{"name": "C"}') == {"name": "C"}


@pytest.mark.parametrize(
    "filename, text, message",
    [
        ("a.txt", "{}", "Please choose a .json file."),
        ("a.json", "", "Invalid JSON."),
        ("a.json", "null", "JSON format not recognized."),
        ("a.json", '{"data": "text"}', "JSON format not recognized."),
        ("a.json", '{"sheet": {"hp": ' + "9" * 5000 + "}}", "Invalid JSON."),
    ],
)
def test_parse_import_rejections(filename, text, message):
    with pytest.raises(ImportFormatError, match=message):
        parse_import(filename, text)
