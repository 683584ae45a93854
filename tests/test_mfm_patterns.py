"""Unit tests for MFM line predicates and regexes."""

from __future__ import annotations

import pytest

from mfm.parsers import patterns

pytestmark = pytest.mark.unit


def test_extract_version_returns_first_declared_version() -> None:
    assert patterns.extract_version("MUNITORUM\nFIELD MANUAL\n VERSION 3.2\n") == "3.2"
    assert patterns.extract_version("no version here") is None


@pytest.mark.parametrize(
    ("file_name", "expected"),
    [
        ("RAW_MFM_3_2_Aug25.txt", "Aug 25"),
        ("/tmp/RAW_MFM_3_3_Oct25.txt", "Oct 25"),
        ("bulletin.txt", "Unknown"),
    ],
)
def test_extract_date_from_filename(file_name: str, expected: str) -> None:
    assert patterns.extract_date_from_filename(file_name) == expected


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("CODEX: SPACE MARINES", "SPACE MARINES"),
        ("INDEX: ADEPTUS TITANICUS", "ADEPTUS TITANICUS"),
        ("CODEX SUPPLEMENT: BLOOD ANGELS", "BLOOD ANGELS"),
    ],
)
def test_faction_headers_are_recognized_and_named(line: str, expected: str) -> None:
    assert patterns.is_faction_header(line)
    assert patterns.extract_faction_name(line) == expected


def test_bare_codex_supplement_is_a_faction_header() -> None:
    assert patterns.is_faction_header(patterns.CODEX_SUPPLEMENT_HEADER)
    assert patterns.extract_faction_name(patterns.CODEX_SUPPLEMENT_HEADER) == ""


def test_unit_with_points_captures_name_models_and_points() -> None:
    match = patterns.UNIT_WITH_POINTS_RE.search("Captain 1 model ................ 80 pts")

    assert match is not None
    assert match.group("name") == "Captain"
    assert int(match.group("models")) == 1
    assert int(match.group("points")) == 80


def test_point_adjustment_is_tolerated_but_not_captured() -> None:
    match = patterns.MODEL_COUNT_POINTS_RE.search("5 models ............ (-15) 170 pts")

    assert match is not None
    assert match.group("models") == "5"
    assert match.group("points") == "170"


def test_model_count_line_is_not_an_inline_unit() -> None:
    assert patterns.UNIT_WITH_POINTS_RE.search("5 models ................ 100 pts") is None


def test_enhancement_pattern_captures_name_and_points() -> None:
    match = patterns.ENHANCEMENT_RE.search("Artificer Armour ........ 10 pts")

    assert match is not None
    assert match.group("name") == "Artificer Armour"
    assert match.group("points") == "10"


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("Gladius Task Force", True),
        ("Intercessor Squad", True),
        ("5 models ...... 100 pts", False),
        ("Artificer Armour .... 10 pts", False),
        ("CODEX: SPACE MARINES", False),
        ("FORGE WORLD POINTS VALUES", False),
        ("DETACHMENT ENHANCEMENTS", False),
        ("42", False),
        ("", False),
    ],
)
def test_detachment_header_is_a_negative_rule(line: str, expected: bool) -> None:
    assert patterns.is_detachment_header(line) is expected


def test_unit_and_enhancement_entries_are_split_on_model_token() -> None:
    assert patterns.is_unit_entry("5 models ..... 100 pts")
    assert not patterns.is_enhancement_entry("5 models ..... 100 pts")
    assert patterns.is_enhancement_entry("Artificer Armour ..... 10 pts")
    assert not patterns.is_unit_entry("Artificer Armour ..... 10 pts")


@pytest.mark.parametrize(
    "line",
    ["", "12", "5 models .... 100 pts", "DETACHMENT ENHANCEMENTS", "FORGE WORLD POINTS VALUES", "CODEX: ORKS"],
)
def test_lookback_noise(line: str) -> None:
    assert patterns.is_lookback_noise(line)


def test_imperial_agents_markers() -> None:
    assert patterns.is_imperial_agents_header("CODEX: IMPERIAL AGENTS")
    assert patterns.is_agents_of_the_imperium("AGENTS OF THE IMPERIUM")
    assert patterns.is_every_model_has("EVERY MODEL HAS THE")
    assert patterns.is_imperium_keyword("IMPERIUM KEYWORD")
