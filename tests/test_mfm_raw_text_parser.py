"""Golden and state-machine tests for the raw MFM bulletin parser."""

from __future__ import annotations

from collections import Counter

import pytest

from mfm.parsers.raw_text import (
    IMPERIAL_AGENTS_ALLIES_FACTION,
    IMPERIAL_AGENTS_FACTION,
    LOOKBACK_WINDOW,
    UNIT_TYPE_FORGE_WORLD,
    UNIT_TYPE_STANDARD,
    ParseState,
    ParsedUnit,
    find_unit_name,
    parse_mfm_text,
    parse_unit_entry,
    step,
)

pytestmark = [pytest.mark.unit, pytest.mark.golden]


def _triples(units: list[ParsedUnit]) -> Counter[tuple[str, int, int]]:
    return Counter((unit.name, unit.model_count, unit.points) for unit in units)


def test_name_on_prior_line_is_recovered_by_lookback() -> None:
    """A model-count line takes its unit name from the line above it."""

    parsed = parse_mfm_text("CODEX: SPACE MARINES\nIntercessor Squad\n5 models ........ 100 pts\n")

    assert len(parsed.units) == 1
    unit = parsed.units[0]
    assert unit.faction == "SPACE MARINES"
    assert unit.name == "Intercessor Squad"
    assert unit.model_count == 5
    assert unit.points == 100
    assert unit.line_number == 3
    assert unit.unit_type == UNIT_TYPE_STANDARD


def test_inline_unit_line_captures_both_integers_exactly() -> None:
    state = ParseState(faction="ORKS")
    line = "Boyz 10 models .............. 85 pts"

    unit = parse_unit_entry(line, 0, [line], state)

    assert unit is not None
    assert (unit.name, unit.model_count, unit.points) == ("Boyz", 10, 85)


def test_lookback_skips_noise_and_stops_at_window() -> None:
    lines = ["Hellblasters", "", "14", "", "", "", "5 models .... 110 pts"]

    assert find_unit_name(6, lines) is None
    assert find_unit_name(4, lines) == "Hellblasters"


def test_lookback_stops_at_nearest_digit_free_line() -> None:
    lines = ["Old Unit", "New Unit", "5 models .... 110 pts"]

    assert find_unit_name(2, lines) == "New Unit"


def test_lookback_steps_over_inline_unit_lines() -> None:
    lines = ["Captain", "Lieutenant 1 model ..... 80 pts", "2 models ..... 150 pts"]

    assert find_unit_name(2, lines) == "Captain"
    assert find_unit_name(1, ["Lieutenant 1 model ..... 80 pts", "2 models ..... 150 pts"]) is None


def test_lookback_passes_over_lines_with_digits() -> None:
    lines = ["Hellblasters", "Plasma incinerator x2", "5 models .... 110 pts"]

    assert find_unit_name(2, lines) == "Hellblasters"


def test_lookback_window_is_five_lines() -> None:
    lines = ["Name", "1", "2", "3", "4", "5", "5 models .... 110 pts"]

    assert LOOKBACK_WINDOW == 5
    assert find_unit_name(6, lines) is None
    assert find_unit_name(5, lines) == "Name"


def test_unit_without_recoverable_name_is_dropped() -> None:
    parsed = parse_mfm_text("CODEX: ORKS\n5 models ........ 100 pts\n")

    assert parsed.units == []


def test_step_threads_state_without_mutation() -> None:
    lines = ["CODEX: ORKS", "FORGE WORLD POINTS VALUES"]
    start = ParseState()

    first = step(start, lines, 0)
    second = step(first.state, lines, 1)

    assert start == ParseState()
    assert first.state.faction == "ORKS"
    assert second.state.is_forge_world
    assert not first.state.is_forge_world


def test_faction_header_resets_section_flags() -> None:
    state = ParseState(faction="ORKS", detachment="Waaagh", is_forge_world=True, is_enhancement_section=True)

    result = step(state, ["CODEX: NECRONS"], 0)

    assert result.state == ParseState(faction="NECRONS")


def test_bare_codex_supplement_takes_name_from_next_line() -> None:
    result = step(ParseState(), ["CODEX SUPPLEMENT:", "BLOOD ANGELS", "Sanguinary Guard"], 0)

    assert result.state.faction == "BLOOD ANGELS"
    assert result.consumed == 2


def test_fixture_bulletin_units(bulletin_text: str) -> None:
    parsed = parse_mfm_text(bulletin_text)

    assert _triples(parsed.units) == Counter(
        {
            ("Intercessor Squad", 5, 100): 1,
            ("Intercessor Squad", 10, 200): 1,
            ("Captain", 1, 80): 1,
            ("Terminator Squad", 5, 170): 1,
            ("Relic Contemptor Dreadnought", 1, 160): 1,
            ("Plague Marines", 5, 90): 1,
            ("Death Company Marines", 5, 85): 1,
            ("Callidus Assassin", 1, 115): 1,
            ("Imperial Navy Breachers", 10, 110): 1,
        }
    )


def test_fixture_bulletin_forge_world_flag(bulletin_text: str) -> None:
    parsed = parse_mfm_text(bulletin_text)

    forge_world = [unit.name for unit in parsed.units if unit.is_forge_world]
    assert forge_world == ["Relic Contemptor Dreadnought"]
    assert parsed.units[4].unit_type == UNIT_TYPE_FORGE_WORLD


def test_fixture_bulletin_enhancements(bulletin_text: str) -> None:
    parsed = parse_mfm_text(bulletin_text)

    assert [(e.faction, e.detachment, e.name, e.points) for e in parsed.enhancements] == [
        ("SPACE MARINES", "Gladius Task Force", "Artificer Armour", 10),
        ("SPACE MARINES", "Gladius Task Force", "The Honour Vehement", 15),
    ]
    assert parsed.enhancements[0].line_number == 20


def test_fixture_bulletin_factions_and_imperial_agents(bulletin_text: str) -> None:
    parsed = parse_mfm_text(bulletin_text)

    assert parsed.factions == [
        "SPACE MARINES",
        "DEATH GUARD",
        "BLOOD ANGELS",
        IMPERIAL_AGENTS_FACTION,
        IMPERIAL_AGENTS_ALLIES_FACTION,
    ]
    by_name = {unit.name: unit for unit in parsed.units}
    assert "Inquisitor" not in by_name
    assert by_name["Callidus Assassin"].faction == IMPERIAL_AGENTS_FACTION
    assert by_name["Imperial Navy Breachers"].faction == IMPERIAL_AGENTS_ALLIES_FACTION


def test_fixture_bulletin_detachments(bulletin_text: str) -> None:
    parsed = parse_mfm_text(bulletin_text)

    assert len(parsed.detachments) == 8
    assert ("SPACE MARINES", "Gladius Task Force") in parsed.detachments
    assert ("BLOOD ANGELS", "Death Company Marines") in parsed.detachments


@pytest.mark.parametrize("line", ["12", "  7  "])
def test_page_number_is_not_a_detachment(line: str) -> None:
    state = ParseState(faction="ORKS", detachment="Waaagh")

    result = step(state, [line], 0)

    assert result.state == state
    assert result.record is None


def test_enhancement_marker_is_not_a_detachment() -> None:
    result = step(ParseState(faction="ORKS", detachment="Waaagh"), ["DETACHMENT ENHANCEMENTS"], 0)

    assert result.state == ParseState(faction="ORKS", detachment="Waaagh", is_enhancement_section=True)


def test_forge_world_marker_is_not_a_detachment_and_leaves_enhancements() -> None:
    state = ParseState(faction="ORKS", is_enhancement_section=True)

    result = step(state, ["FORGE WORLD POINTS VALUES"], 0)

    assert result.state == ParseState(faction="ORKS", is_forge_world=True)


def test_points_lines_are_not_detachments() -> None:
    state = ParseState(faction="ORKS")

    enhancement_like = step(state, ["Da Biggest Boss ..... 20 pts"], 0)
    models_only = step(state, ["10 models"], 0)

    assert enhancement_like.state.detachment is None
    assert enhancement_like.record is None
    assert models_only.state.detachment is None


@pytest.mark.parametrize(
    "next_line",
    ["CODEX: ORKS", "Boyz 10 models .... 85 pts", "", "Index ref: 4"],
)
def test_bare_codex_supplement_without_usable_name_line(next_line: str) -> None:
    lines = ["CODEX SUPPLEMENT:", next_line]

    result = step(ParseState(faction="ORKS", detachment="Waaagh"), lines, 0)

    assert result.consumed == 1
    assert result.state == ParseState(faction="")


def test_bare_codex_supplement_at_end_of_text() -> None:
    result = step(ParseState(), ["CODEX SUPPLEMENT:"], 0)

    assert result.consumed == 1
    assert result.state == ParseState(faction="")


def test_plain_line_becomes_the_detachment() -> None:
    result = step(ParseState(faction="ORKS", detachment="Old"), ["War Horde"], 0)

    assert result.state == ParseState(faction="ORKS", detachment="War Horde")
