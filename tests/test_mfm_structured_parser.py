"""Unit tests for structured `window.MFM_*` file parsing."""

from __future__ import annotations

import pytest

from mfm.exceptions import MfmParseError
from mfm.parsers.structured import (
    VersionedPoints,
    extract_object_literal,
    load_object,
    parse_base_file,
    parse_detachments_file,
    parse_units_file,
)

pytestmark = pytest.mark.unit


def test_extract_object_literal_ignores_braces_inside_strings() -> None:
    content = 'window.MFM_UNITS = {"a": "x}y", "b": {"c": "\\"}"}};\nconsole.log("done");'

    literal = extract_object_literal(content, "window.MFM_UNITS")

    assert literal == '{"a": "x}y", "b": {"c": "\\"}"}}'


def test_extract_object_literal_reports_missing_variable() -> None:
    with pytest.raises(MfmParseError, match="Could not find window.MFM_UNITS"):
        extract_object_literal("var x = {};", "window.MFM_UNITS")


def test_extract_object_literal_reports_unbalanced_braces() -> None:
    with pytest.raises(MfmParseError, match="Unbalanced"):
        extract_object_literal('window.MFM_UNITS = {"a": {"b": 1}', "window.MFM_UNITS")


def test_load_object_wraps_json_errors() -> None:
    with pytest.raises(MfmParseError, match="not valid JSON"):
        load_object("window.MFM_BASE = {factions: {}};", "window.MFM_BASE")


def test_versioned_points_prefers_requested_version() -> None:
    points = VersionedPoints({"3.1": 95, "3.2": 80})

    assert points.points_for("3.2") == 80
    assert points.points_for("9.9") == 95
    assert VersionedPoints().points_for("3.2") == 0


def test_parse_units_file(structured_dir) -> None:
    data = parse_units_file(structured_dir / "mfm-units.js")

    assert (data.version, data.date, data.kind) == ("3.2", "Aug 25", "units")
    marines = data.factions["space_marines"]
    assert marines.name == "SPACE MARINES"
    intercessors = marines.units["intercessor_squad"]
    assert intercessors.unit_type == "Standard"
    assert [(v.model_count, v.points.points_for("3.2")) for v in intercessors.variants] == [(5, 80), (10, 160)]
    relic = marines.units["relic_contemptor"]
    assert relic.name == "Relic Contemptor {Forge} Dreadnought"
    assert relic.variants[0].points.points_for("3.2") == 175


def test_parse_detachments_file(structured_dir) -> None:
    data = parse_detachments_file(structured_dir / "mfm-detachments.js")

    detachment = data.factions["space_marines"].detachments["gladius_task_force"]
    assert data.kind == "detachments"
    assert detachment.name == "Gladius Task Force"
    assert [(e.name, e.points.points_for("3.2")) for e in detachment.enhancements] == [
        ("Artificer Armour", 10),
        ("The Honour Vehement", 15),
    ]


def test_parse_base_file(structured_dir) -> None:
    info = parse_base_file(structured_dir / "mfm-base.js")

    assert info["space_marines"].supergroup == "Imperium"
    assert info["space_marines"].ally_to is None
    assert info["chaos_knights"].ally_to == "Chaos"


def test_units_file_requires_metadata_version(tmp_path) -> None:
    path = tmp_path / "mfm-units.js"
    path.write_text('window.MFM_UNITS = {"metadata": {}, "factions": {}};', encoding="utf-8")

    with pytest.raises(MfmParseError, match="metadata.version"):
        parse_units_file(path)
