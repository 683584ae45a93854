"""Tests for MFM text regeneration and line-multiset validation."""

from __future__ import annotations

from collections import Counter

import pytest

from mfm.exceptions import MfmReportPathError, MfmVersionNotFound
from mfm.parsers.raw_text import parse_mfm_text
from mfm.persistence import parse_and_store_mfm_file
from mfm.validation import (
    ENHANCEMENT_LEADER,
    EXTRA_IN_REGENERATED,
    MISSING_IN_REGENERATED,
    UNIT_LEADER,
    ValidationResult,
    compare_mfm_texts,
    normalize_line,
    regenerate_mfm_text,
    render_validation_report,
    save_validation_report,
    validate_mfm_data,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("5 models ............................ (-15) 170 pts", "5 models . 170 pts"),
        (f"5 models {UNIT_LEADER} 170 pts", "5 models . 170 pts"),
        ("Artificer Armour ..... (+5)   10  pts", "Artificer Armour . 10 pts"),
        ("   12   ", ""),
        ("", ""),
        (None, ""),
        ("(-(+1)1) leftovers", "leftovers"),
    ],
)
def test_normalize_line(line: str | None, expected: str) -> None:
    assert normalize_line(line) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "line",
    [
        "Terminator Squad 5 models ..... (-15) 170 pts",
        "((-1)-2) Odd .. .. pts",
        " VERSION 3.2",
        "1 2 3",
    ],
)
def test_normalize_line_is_idempotent(line: str) -> None:
    once = normalize_line(line)

    assert normalize_line(once) == once


@pytest.mark.unit
def test_compare_counts_lines_as_multisets() -> None:
    result = compare_mfm_texts("A\nB\nB\n12\n", "A\nB\nC\n", "9.9")

    assert result.matches == 1
    assert [(d.line, d.original_count, d.regenerated_count, d.issue) for d in result.differences] == [
        ("B", 2, 1, MISSING_IN_REGENERATED),
        ("C", 0, 1, EXTRA_IN_REGENERATED),
    ]
    assert result.match_percentage == pytest.approx(100 / 3)
    assert not result.is_perfect_match


@pytest.mark.unit
def test_identical_texts_match_perfectly() -> None:
    result = compare_mfm_texts("Boyz 10 models .... 85 pts\n", "Boyz 10 models . 85 pts", "1.0")

    assert result.is_perfect_match
    assert result.match_percentage == 100.0
    assert "All data matches perfectly!" in render_validation_report(result)


@pytest.mark.unit
def test_empty_texts_report_full_match() -> None:
    result = compare_mfm_texts("", "\n\n", "1.0")

    assert result.as_json() == {
        "version": "1.0",
        "matches": 0,
        "differencesCount": 0,
        "matchPercentage": 100.0,
        "isPerfectMatch": True,
        "differences": [],
    }


@pytest.mark.integration
@pytest.mark.django_db
def test_regenerated_text_layout(bulletin_path) -> None:
    parse_and_store_mfm_file(bulletin_path)

    lines = regenerate_mfm_text("3.2").split("\n")

    assert lines[:7] == [
        "MUNITORUM",
        "FIELD MANUAL",
        " VERSION 3.2",
        "",
        "CODEX: SPACE MARINES",
        " Intercessor Squad",
        f"5 models {UNIT_LEADER} 100 pts",
    ]
    assert f"Artificer Armour {ENHANCEMENT_LEADER} 10 pts" in lines


@pytest.mark.integration
@pytest.mark.django_db
def test_regenerated_text_reparses_to_the_same_units(bulletin_path, bulletin_text) -> None:
    parse_and_store_mfm_file(bulletin_path)

    def unit_rows(text: str) -> Counter[tuple[str, str, int, int]]:
        return Counter(
            (unit.faction, unit.name, unit.model_count, unit.points)
            for unit in parse_mfm_text(text).units
            if not unit.faction.startswith("IMPERIAL AGENTS")
        )

    original = unit_rows(bulletin_text)
    assert sum(original.values()) == 7
    assert unit_rows(regenerate_mfm_text("3.2")) == original


@pytest.mark.integration
@pytest.mark.django_db
def test_validate_fixture_bulletin(bulletin_path) -> None:
    parse_and_store_mfm_file(bulletin_path)

    result = validate_mfm_data("3.2", bulletin_path)

    issues = {(difference.line, difference.issue) for difference in result.differences}
    assert ("Captain 1 model . 80 pts", MISSING_IN_REGENERATED) in issues
    assert ("1 models . 80 pts", EXTRA_IN_REGENERATED) in issues
    assert ("CODEX SUPPLEMENT:", MISSING_IN_REGENERATED) in issues
    different = {line for line, _ in issues}
    assert "VERSION 3.2" not in different
    assert "Artificer Armour . 10 pts" not in different
    assert result.matches > 0
    assert not result.is_perfect_match


@pytest.mark.integration
@pytest.mark.django_db
def test_regenerate_unknown_version_raises() -> None:
    with pytest.raises(MfmVersionNotFound, match="9.9"):
        regenerate_mfm_text("9.9")


@pytest.mark.integration
def test_save_report_stays_inside_reports_dir(mfm_settings) -> None:
    result = ValidationResult(version="3.2", matches=3)

    saved = save_validation_report(result, "nested/report.txt")

    assert saved.parent.name == "nested"
    assert saved.read_text(encoding="utf-8").startswith("MFM Validation Report\n")
    with pytest.raises(MfmReportPathError):
        save_validation_report(result, "../outside.txt")
    with pytest.raises(MfmReportPathError):
        save_validation_report(result, "/tmp/absolute.txt")
