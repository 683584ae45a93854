"""Parsing for structured `window.MFM_* = {...}` data files.

The structured files are JavaScript modules that assign one JSON-compatible
object literal to a global. The literal is located by brace-balanced scanning
and then decoded as JSON.

Points are stored per variant/enhancement under keys such as
`mfm_3_2_points`, which map to the version string `"3.2"`.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from mfm.exceptions import MfmParseError

UNITS_VARIABLE = "window.MFM_UNITS"
DETACHMENTS_VARIABLE = "window.MFM_DETACHMENTS"
BASE_VARIABLE = "window.MFM_BASE"

_POINTS_KEY_RE = re.compile(r"^mfm_(?P<version>.+)_points$")


@dataclass(frozen=True, slots=True)
class VersionedPoints:
    """Points values keyed by MFM version string."""

    points_by_version: dict[str, int] = field(default_factory=dict)

    def points_for(self, version: str) -> int:
        """Return points for `version`, else any available value, else 0."""

        if version in self.points_by_version:
            return self.points_by_version[version]
        for value in self.points_by_version.values():
            return value
        return 0


@dataclass(frozen=True, slots=True)
class StructuredVariant:
    model_count: int
    points: VersionedPoints


@dataclass(frozen=True, slots=True)
class StructuredUnit:
    name: str
    unit_type: str | None
    variants: list[StructuredVariant]


@dataclass(frozen=True, slots=True)
class StructuredEnhancement:
    name: str
    points: VersionedPoints


@dataclass(frozen=True, slots=True)
class StructuredDetachment:
    name: str
    enhancements: list[StructuredEnhancement]


@dataclass(frozen=True, slots=True)
class StructuredFaction:
    """Faction payload from a units or detachments file.

    Attributes:
        key: Faction key used in the source object (ex: "space_marines").
        name: Display name of the faction.
        units: Units keyed by unit key (units files only).
        detachments: Detachments keyed by detachment key (detachments files only).
    """

    key: str
    name: str
    units: dict[str, StructuredUnit] = field(default_factory=dict)
    detachments: dict[str, StructuredDetachment] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class StructuredFile:
    """Decoded structured file.

    Attributes:
        version: MFM version declared in `metadata.version`.
        date: Release label declared in `metadata.date`.
        kind: Either "units" or "detachments".
        factions: Faction payloads keyed by faction key.
    """

    version: str
    date: str
    kind: str
    factions: dict[str, StructuredFaction]


@dataclass(frozen=True, slots=True)
class FactionInfo:
    """Faction grouping metadata from the base file."""

    name: str
    supergroup: str | None
    ally_to: str | None


def extract_object_literal(content: str, variable_name: str) -> str:
    """Return the object literal assigned to `variable_name`.

    Args:
        content: Full JavaScript source.
        variable_name: Assignment target such as `window.MFM_UNITS`.

    Returns:
        The literal text from its opening to its matching closing brace.

    Raises:
        MfmParseError: If the assignment is missing or its braces never balance.
    """

    assignment = re.search(rf"{re.escape(variable_name)}\s*=\s*", content)
    if assignment is None:
        raise MfmParseError(f"Could not find {variable_name} in file")

    start = content.find("{", assignment.end())
    if start == -1:
        raise MfmParseError(f"{variable_name} is not assigned an object literal")

    depth = 0
    quote: str | None = None
    escaped = False
    for position in range(start, len(content)):
        char = content[position]
        if quote is not None:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue

        if char in {'"', "'"}:
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return content[start : position + 1]

    raise MfmParseError(f"Unbalanced braces in {variable_name} object literal")


def load_object(content: str, variable_name: str) -> dict[str, Any]:
    """Extract and JSON-decode the object assigned to `variable_name`."""

    literal = extract_object_literal(content, variable_name)
    try:
        decoded = json.loads(literal)
    except json.JSONDecodeError as exc:
        raise MfmParseError(f"{variable_name} is not valid JSON: {exc}") from exc
    if not isinstance(decoded, dict):
        raise MfmParseError(f"{variable_name} must be a JSON object")
    return decoded


def parse_units_file(path: str | Path) -> StructuredFile:
    """Parse an `mfm-units*.js` file."""

    root = load_object(_read(path), UNITS_VARIABLE)
    version, date = _metadata(root, path)
    factions = {
        key: StructuredFaction(
            key=key,
            name=_require_str(node, "name", path),
            units={
                unit_key: _parse_unit(unit_node, path)
                for unit_key, unit_node in (node.get("units") or {}).items()
            },
        )
        for key, node in (root.get("factions") or {}).items()
    }
    return StructuredFile(version=version, date=date, kind="units", factions=factions)


def parse_detachments_file(path: str | Path) -> StructuredFile:
    """Parse an `mfm-detachments*.js` file."""

    root = load_object(_read(path), DETACHMENTS_VARIABLE)
    version, date = _metadata(root, path)
    factions = {
        key: StructuredFaction(
            key=key,
            name=_require_str(node, "name", path),
            detachments={
                detachment_key: _parse_detachment(detachment_node, path)
                for detachment_key, detachment_node in (node.get("detachments") or {}).items()
            },
        )
        for key, node in (root.get("factions") or {}).items()
    }
    return StructuredFile(version=version, date=date, kind="detachments", factions=factions)


def parse_base_file(path: str | Path) -> dict[str, FactionInfo]:
    """Parse `mfm-base.js` into faction grouping metadata keyed by faction key."""

    root = load_object(_read(path), BASE_VARIABLE)
    return {
        key: FactionInfo(
            name=_require_str(node, "name", path),
            supergroup=node.get("supergroup"),
            ally_to=node.get("allyTo"),
        )
        for key, node in (root.get("factions") or {}).items()
    }


def _read(path: str | Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def _metadata(root: Mapping[str, Any], path: str | Path) -> tuple[str, str]:
    """Return `(version, date)` from the `metadata` block."""

    metadata = root.get("metadata")
    if not isinstance(metadata, dict) or not metadata.get("version"):
        raise MfmParseError(f"{path}: metadata.version is required")
    return str(metadata["version"]), str(metadata.get("date") or "Unknown")


def _require_str(node: Mapping[str, Any], key: str, path: str | Path) -> str:
    value = node.get(key)
    if not isinstance(value, str) or not value.strip():
        raise MfmParseError(f"{path}: missing {key!r} in {sorted(node)}")
    return value


def _parse_unit(node: Mapping[str, Any], path: str | Path) -> StructuredUnit:
    variants = [
        StructuredVariant(model_count=int(variant["modelCount"]), points=_versioned_points(variant))
        for variant in node.get("variants") or []
    ]
    return StructuredUnit(name=_require_str(node, "name", path), unit_type=node.get("unitType"), variants=variants)


def _parse_detachment(node: Mapping[str, Any], path: str | Path) -> StructuredDetachment:
    enhancements = [
        StructuredEnhancement(name=_require_str(enhancement, "name", path), points=_versioned_points(enhancement))
        for enhancement in node.get("enhancements") or []
    ]
    return StructuredDetachment(name=_require_str(node, "name", path), enhancements=enhancements)


def _versioned_points(node: Mapping[str, Any]) -> VersionedPoints:
    """Collect `mfm_<a>_<b>_points` keys into a version -> points mapping."""

    points: dict[str, int] = {}
    for key, value in node.items():
        match = _POINTS_KEY_RE.match(key)
        if match is None or value is None:
            continue
        points[match.group("version").replace("_", ".")] = int(value)
    return VersionedPoints(points_by_version=points)
