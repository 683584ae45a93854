"""Line-oriented parsing of raw Munitorum Field Manual bulletin text.

The parser walks the bulletin once, threading an immutable `ParseState`
through `step()`. Each call classifies a single line, returns the next state and
at most one record:

- Unknown lines are non-fatal and skipped.
- Units whose name cannot be recovered by lookback are dropped.
- Point adjustments such as `(-15)` are tolerated but not captured.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Sequence

from mfm.parsers import patterns

logger = logging.getLogger(__name__)

LOOKBACK_WINDOW = 5

UNIT_TYPE_STANDARD = "Standard"
UNIT_TYPE_FORGE_WORLD = "Forge World"

IMPERIAL_AGENTS_FACTION = "IMPERIAL AGENTS"
IMPERIAL_AGENTS_ALLIES_FACTION = "IMPERIAL AGENTS (ALLIES)"
SUBSECTION_AGENTS_OF_THE_IMPERIUM = "AGENTS_OF_THE_IMPERIUM"
SUBSECTION_EVERY_MODEL_HAS_IMPERIUM = "EVERY_MODEL_HAS_IMPERIUM"


@dataclass(frozen=True, slots=True)
class ParseState:
    """Parse context in effect for the current line.

    Attributes:
        faction: Faction the following records belong to, if any.
        detachment: Most recent detachment header, if any.
        is_forge_world: True inside a "Forge World points values" section.
        is_enhancement_section: True inside a "Detachment enhancements" section.
        is_imperial_agents: True inside the Imperial Agents codex.
        imperial_agents_subsection: Active Imperial Agents subsection key.
    """

    faction: str | None = None
    detachment: str | None = None
    is_forge_world: bool = False
    is_enhancement_section: bool = False
    is_imperial_agents: bool = False
    imperial_agents_subsection: str | None = None


@dataclass(frozen=True, slots=True)
class ParsedUnit:
    """A single unit points line (one squad size) extracted from a bulletin."""

    faction: str | None
    detachment: str | None
    name: str
    model_count: int
    points: int
    is_forge_world: bool
    line_number: int

    @property
    def unit_type(self) -> str:
        """Return the stored unit type label."""

        return UNIT_TYPE_FORGE_WORLD if self.is_forge_world else UNIT_TYPE_STANDARD


@dataclass(frozen=True, slots=True)
class ParsedEnhancement:
    """A single detachment enhancement line extracted from a bulletin."""

    faction: str | None
    detachment: str | None
    name: str
    points: int
    line_number: int


ParsedRecord = ParsedUnit | ParsedEnhancement


@dataclass(frozen=True, slots=True)
class Step:
    """Result of classifying one line.

    Attributes:
        state: Parse state for the next line.
        record: Record emitted by this line, if any.
        consumed: Number of lines consumed (2 when a marker spans two lines).
    """

    state: ParseState
    record: ParsedRecord | None = None
    consumed: int = 1


@dataclass(slots=True)
class ParsedMfm:
    """Flat parse output for a whole bulletin."""

    units: list[ParsedUnit] = field(default_factory=list)
    enhancements: list[ParsedEnhancement] = field(default_factory=list)

    def add(self, record: ParsedRecord) -> None:
        """Append a unit or enhancement record."""

        if isinstance(record, ParsedUnit):
            self.units.append(record)
        else:
            self.enhancements.append(record)

    @property
    def factions(self) -> list[str]:
        """Return faction names in first-seen order."""

        seen: dict[str, None] = {}
        for record in [*self.units, *self.enhancements]:
            if record.faction is not None:
                seen.setdefault(record.faction, None)
        return list(seen)

    @property
    def detachments(self) -> list[tuple[str, str]]:
        """Return unique `(faction, detachment)` pairs in first-seen order."""

        seen: dict[tuple[str, str], None] = {}
        for record in [*self.units, *self.enhancements]:
            if record.faction is not None and record.detachment is not None:
                seen.setdefault((record.faction, record.detachment), None)
        return list(seen)


def parse_mfm_text(text: str) -> ParsedMfm:
    """Parse bulletin text into unit and enhancement records.

    Args:
        text: Raw bulletin text.

    Returns:
        ParsedMfm with records in source order. Records seen before any faction
        header (or inside the Imperial Agents codex before a subsection marker)
        have no owning faction and are dropped.
    """

    lines = text.split("\n")
    parsed = ParsedMfm()
    state = ParseState()
    index = 0
    while index < len(lines):
        result = step(state, lines, index)
        record = result.record
        if record is not None:
            if record.faction is None:
                logger.debug("Dropping %s on line %d: no faction in scope", record.name, record.line_number)
            else:
                parsed.add(record)
        state = result.state
        index += result.consumed
    return parsed


def step(state: ParseState, lines: Sequence[str], index: int) -> Step:
    """Classify `lines[index]` under `state`.

    Classification order: blank, faction header, Imperial Agents subsection,
    Forge World marker, enhancement-section marker, detachment header,
    enhancement entry (inside the enhancement section), unit entry.
    """

    line = lines[index].strip()
    if not line:
        return Step(state)

    if patterns.is_faction_header(line):
        return _enter_faction(line, lines, index)

    if state.is_imperial_agents:
        if patterns.is_agents_of_the_imperium(line):
            return Step(
                _enter_agents_subsection(state, SUBSECTION_AGENTS_OF_THE_IMPERIUM, IMPERIAL_AGENTS_FACTION)
            )
        if patterns.is_every_model_has(line) and index + 1 < len(lines):
            if patterns.is_imperium_keyword(lines[index + 1].strip()):
                return Step(
                    _enter_agents_subsection(
                        state, SUBSECTION_EVERY_MODEL_HAS_IMPERIUM, IMPERIAL_AGENTS_ALLIES_FACTION
                    ),
                    consumed=2,
                )

    if patterns.is_forge_world_marker(line):
        return Step(replace(state, is_forge_world=True, is_enhancement_section=False))

    if patterns.is_enhancement_section_marker(line):
        return Step(replace(state, is_enhancement_section=True))

    if patterns.is_detachment_header(line):
        return Step(replace(state, detachment=line))

    if state.is_enhancement_section and patterns.is_enhancement_entry(line):
        return Step(state, parse_enhancement_entry(line, index, state))

    if patterns.is_unit_entry(line):
        return Step(state, parse_unit_entry(line, index, lines, state))

    return Step(state)


def _enter_faction(line: str, lines: Sequence[str], index: int) -> Step:
    """Return the state that follows a faction header line.

    A bare `CODEX SUPPLEMENT:` header carries its faction name on the next
    line; that line is consumed so it is not mistaken for a detachment.
    """

    if patterns.is_imperial_agents_header(line):
        return Step(ParseState(is_imperial_agents=True))

    if line == patterns.CODEX_SUPPLEMENT_HEADER and index + 1 < len(lines):
        next_line = lines[index + 1].strip()
        if next_line and ":" not in next_line and "pts" not in next_line:
            return Step(ParseState(faction=next_line), consumed=2)

    return Step(ParseState(faction=patterns.extract_faction_name(line)))


def _enter_agents_subsection(state: ParseState, subsection: str, faction: str) -> ParseState:
    return replace(
        state,
        faction=faction,
        detachment=None,
        is_forge_world=False,
        is_enhancement_section=False,
        imperial_agents_subsection=subsection,
    )


def parse_unit_entry(
    line: str, index: int, lines: Sequence[str], state: ParseState
) -> ParsedUnit | None:
    """Parse a unit points line.

    Args:
        line: The stripped line at `index`.
        index: Zero-based line index within `lines`.
        lines: All bulletin lines (used for name lookback).
        state: Parse state in effect for the line.

    Returns:
        A ParsedUnit, or None when the line does not carry a model count and
        points value or when no unit name can be recovered.
    """

    same_line = patterns.UNIT_WITH_POINTS_RE.search(line)
    if same_line is not None:
        name = same_line.group("name").strip()
        model_count = int(same_line.group("models"))
        points = int(same_line.group("points"))
    else:
        points_only = patterns.MODEL_COUNT_POINTS_RE.search(line)
        if points_only is None:
            return None
        model_count = int(points_only.group("models"))
        points = int(points_only.group("points"))
        name = find_unit_name(index, lines)
        if name is None:
            logger.debug("No unit name found within %d lines of line %d", LOOKBACK_WINDOW, index + 1)
            return None

    return ParsedUnit(
        faction=state.faction,
        detachment=state.detachment,
        name=name,
        model_count=model_count,
        points=points,
        is_forge_world=state.is_forge_world,
        line_number=index + 1,
    )


def find_unit_name(index: int, lines: Sequence[str]) -> str | None:
    """Look back up to `LOOKBACK_WINDOW` lines for the unit owning a points line.

    Blank lines, page numbers, points lines (inline unit lines included) and
    structural headers are stepped over; the nearest remaining digit-free line
    is the name.
    """

    for prior in range(index - 1, max(0, index - LOOKBACK_WINDOW) - 1, -1):
        candidate = lines[prior].strip()

        if patterns.is_lookback_noise(candidate):
            continue

        if patterns.DIGIT_RE.search(candidate) is None:
            return candidate

    return None


def parse_enhancement_entry(line: str, index: int, state: ParseState) -> ParsedEnhancement | None:
    """Parse an enhancement points line, or return None if it does not match."""

    match = patterns.ENHANCEMENT_RE.search(line)
    if match is None:
        return None
    return ParsedEnhancement(
        faction=state.faction,
        detachment=state.detachment,
        name=match.group("name").strip(),
        points=int(match.group("points")),
        line_number=index + 1,
    )
