"""Regular expressions and line predicates for Munitorum Field Manual text.

Bulletins are semi-structured: faction headers, section markers, unit lines
with a dot leader, and enhancement lines. The predicates here are substring and
regex checks only; they carry no parse state.
"""

from __future__ import annotations

import re

VERSION_RE = re.compile(r"VERSION\s+(\d+\.\d+)")
FACTION_HEADER_RE = re.compile(r"CODEX:\s*(.+)|INDEX:\s*(.+)|CODEX SUPPLEMENT:")
FACTION_PREFIX_RE = re.compile(r"^(?:CODEX:|INDEX:|CODEX SUPPLEMENT:)\s*")
CODEX_SUPPLEMENT_HEADER = "CODEX SUPPLEMENT:"

# Point adjustments such as "(-15)" may sit between the dot leader and the value.
_ADJUSTMENT = r"(?:\([+-]\d+\)\s+)?"
UNIT_WITH_POINTS_RE = re.compile(
    rf"^\s*(?P<name>.+?)\s+(?P<models>\d+)\s+models?\s+[.\s]+\s*{_ADJUSTMENT}(?P<points>\d+)\s+pts$"
)
MODEL_COUNT_POINTS_RE = re.compile(
    rf"^\s*(?P<models>\d+)\s+models?\s+[.\s]+\s*{_ADJUSTMENT}(?P<points>\d+)\s+pts"
)
ENHANCEMENT_RE = re.compile(rf"^(?P<name>.+?)[.\s]+\s*{_ADJUSTMENT}(?P<points>\d+)\s+pts$")

FORGE_WORLD_RE = re.compile(r"FORGE WORLD POINTS VALUES")
ENHANCEMENT_SECTION_RE = re.compile(r"DETACHMENT ENHANCEMENTS")
IMPERIAL_AGENTS_RE = re.compile(r"CODEX: IMPERIAL AGENTS")
AGENTS_OF_IMPERIUM_RE = re.compile(r"AGENTS OF THE IMPERIUM")
EVERY_MODEL_HAS_RE = re.compile(r"EVERY MODEL HAS")
IMPERIUM_KEYWORD_RE = re.compile(r"IMPERIUM KEYWORD")

PAGE_NUMBER_RE = re.compile(r"^\d+$")
DIGIT_RE = re.compile(r"\d")
FILENAME_DATE_RE = re.compile(r"([A-Za-z]{3})(\d{2})")


def extract_version(text: str) -> str | None:
    """Return the first `VERSION x.y` value declared in bulletin text."""

    match = VERSION_RE.search(text)
    return match.group(1) if match else None


def extract_date_from_filename(file_name: str) -> str:
    """Derive a release label from a bulletin file name.

    Args:
        file_name: A file name such as `RAW_MFM_3_2_Aug25.txt`.

    Returns:
        A label like `"Aug 25"`, or `"Unknown"` when no month/year token exists.
    """

    match = FILENAME_DATE_RE.search(file_name)
    if match is None:
        return "Unknown"
    return f"{match.group(1)} {match.group(2)}"


def is_faction_header(line: str) -> bool:
    return FACTION_HEADER_RE.search(line) is not None


def is_imperial_agents_header(line: str) -> bool:
    return IMPERIAL_AGENTS_RE.search(line) is not None


def is_agents_of_the_imperium(line: str) -> bool:
    return AGENTS_OF_IMPERIUM_RE.search(line) is not None


def is_every_model_has(line: str) -> bool:
    return EVERY_MODEL_HAS_RE.search(line) is not None


def is_imperium_keyword(line: str) -> bool:
    return IMPERIUM_KEYWORD_RE.search(line) is not None


def is_forge_world_marker(line: str) -> bool:
    return FORGE_WORLD_RE.search(line) is not None


def is_enhancement_section_marker(line: str) -> bool:
    return ENHANCEMENT_SECTION_RE.search(line) is not None


def is_page_number(line: str) -> bool:
    return PAGE_NUMBER_RE.match(line) is not None


def extract_faction_name(line: str) -> str:
    """Strip the `CODEX:`/`INDEX:`/`CODEX SUPPLEMENT:` prefix from a header."""

    return FACTION_PREFIX_RE.sub("", line).strip()


def is_detachment_header(line: str) -> bool:
    """Return True when a line is treated as a detachment name.

    This is a negative rule: any non-empty line that is not a points line, a
    faction header, a section marker or a bare page number.
    """

    return (
        bool(line)
        and "pts" not in line
        and "models" not in line
        and not is_faction_header(line)
        and not is_forge_world_marker(line)
        and not is_enhancement_section_marker(line)
        and not is_page_number(line)
    )


def is_unit_entry(line: str) -> bool:
    """Return True for lines carrying a model count and a points value."""

    return "pts" in line and "model" in line


def is_enhancement_entry(line: str) -> bool:
    """Return True for points lines without a model count."""

    return "pts" in line and "model" not in line


def is_lookback_noise(line: str) -> bool:
    """Return True for lines the unit-name lookback must step over."""

    return (
        not line
        or is_page_number(line)
        or "pts" in line
        or "models" in line
        or "DETACHMENT" in line
        or "FORGE WORLD" in line
        or line.startswith("CODEX:")
        or line.startswith("INDEX:")
    )
