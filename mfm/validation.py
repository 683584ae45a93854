"""Regenerate bulletin text from stored MFM data and diff it against a source file.

Regeneration is lossy: units are not associated with detachments in the
database, so every unit is written directly under its faction header. The
comparison therefore works on multisets of normalized lines rather than on
line order.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from django.conf import settings

from mfm.exceptions import MfmReportPathError
from mfm.models import MfmVersion
from mfm.versions import get_version

logger = logging.getLogger(__name__)

UNIT_LEADER = "." * 60
ENHANCEMENT_LEADER = "." * 37

MISSING_IN_REGENERATED = "Missing in regenerated"
EXTRA_IN_REGENERATED = "Extra in regenerated"

_POINT_ADJUSTMENT_RE = re.compile(r"\([+-]\d+\)")
_DOTS_RE = re.compile(r"\.+")
_WHITESPACE_RE = re.compile(r"\s+")
_PTS_SPACING_RE = re.compile(r"\s+pts")
_DIGITS_ONLY_RE = re.compile(r"^\d+$")


@dataclass(frozen=True, slots=True)
class ValidationDifference:
    """One normalized line whose occurrence counts differ."""

    line: str
    original_count: int
    regenerated_count: int
    issue: str

    def as_json(self) -> dict[str, object]:
        return {
            "line": self.line,
            "originalCount": self.original_count,
            "regeneratedCount": self.regenerated_count,
            "issue": self.issue,
        }


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of comparing an original bulletin against regenerated text.

    Attributes:
        version: MFM version that was regenerated.
        matches: Total occurrences of lines whose counts agree on both sides.
        differences: Lines whose counts disagree, sorted by line text.
    """

    version: str
    matches: int
    differences: list[ValidationDifference] = field(default_factory=list)

    @property
    def is_perfect_match(self) -> bool:
        return not self.differences

    @property
    def match_percentage(self) -> float:
        total = self.matches + len(self.differences)
        if total == 0:
            return 100.0
        return self.matches / total * 100

    def as_json(self) -> dict[str, object]:
        """Return the camelCase payload used by the HTTP layer."""

        return {
            "version": self.version,
            "matches": self.matches,
            "differencesCount": len(self.differences),
            "matchPercentage": self.match_percentage,
            "isPerfectMatch": self.is_perfect_match,
            "differences": [difference.as_json() for difference in self.differences],
        }


def regenerate_mfm_text(version: str) -> str:
    """Render the stored graph of `version` as bulletin-like text.

    Raises:
        MfmVersionNotFound: If the version is not stored.
    """

    logger.info("Regenerating MFM text for version: %s", version)
    mfm_version = get_version(version)
    return render_mfm_version(mfm_version)


def render_mfm_version(mfm_version: MfmVersion) -> str:
    """Render an already loaded version row (see `regenerate_mfm_text`)."""

    lines = ["MUNITORUM", "FIELD MANUAL", f" VERSION {mfm_version.version}", ""]

    factions = mfm_version.factions.order_by("id").prefetch_related("units__variants", "detachments__enhancements")
    for faction in factions:
        lines.append(f"CODEX: {faction.name}")

        for unit in sorted(faction.units.all(), key=lambda row: row.id):
            variants = sorted(unit.variants.all(), key=lambda row: row.id)
            if not variants:
                continue
            lines.append(f" {unit.name}")
            lines.extend(f"{variant.model_count} models {UNIT_LEADER} {variant.points} pts" for variant in variants)

        for detachment in sorted(faction.detachments.all(), key=lambda row: row.id):
            lines.append("")
            lines.append(detachment.name)
            enhancements = sorted(detachment.enhancements.all(), key=lambda row: row.id)
            lines.extend(f"{row.name} {ENHANCEMENT_LEADER} {row.points} pts" for row in enhancements)

        lines.append("")

    return "\n".join(lines) + "\n"


def normalize_line(line: str | None) -> str:
    """Normalize one bulletin line for comparison.

    Point adjustments such as "(-15)" are removed, runs of dots and whitespace
    collapse to a single character, and page-number-only lines become "".
    Applying the function to its own output returns the same string.
    """

    if line is None:
        return ""

    normalized = line
    while True:
        normalized, removed = _POINT_ADJUSTMENT_RE.subn("", normalized)
        if not removed:
            break

    normalized = _DOTS_RE.sub(".", normalized)
    normalized = _WHITESPACE_RE.sub(" ", normalized).strip()
    normalized = _PTS_SPACING_RE.sub(" pts", normalized)

    if _DIGITS_ONLY_RE.match(normalized):
        return ""
    return normalized


def count_normalized_lines(text: str) -> Counter[str]:
    """Return a multiset of the non-empty normalized lines of `text`."""

    counts: Counter[str] = Counter()
    for line in text.split("\n"):
        normalized = normalize_line(line)
        if normalized:
            counts[normalized] += 1
    return counts


def compare_mfm_texts(original: str, regenerated: str, version: str) -> ValidationResult:
    """Compare two texts as multisets of normalized lines."""

    original_counts = count_normalized_lines(original)
    regenerated_counts = count_normalized_lines(regenerated)

    matches = 0
    differences: list[ValidationDifference] = []
    for line in sorted(original_counts.keys() | regenerated_counts.keys()):
        original_count = original_counts[line]
        regenerated_count = regenerated_counts[line]
        if original_count == regenerated_count:
            matches += original_count
            continue
        issue = MISSING_IN_REGENERATED if original_count > regenerated_count else EXTRA_IN_REGENERATED
        differences.append(ValidationDifference(line, original_count, regenerated_count, issue))

    return ValidationResult(version=version, matches=matches, differences=differences)


def validate_mfm_data(version: str, original_path: str | Path) -> ValidationResult:
    """Regenerate `version` from the database and compare it with a source file.

    Raises:
        FileNotFoundError: If `original_path` does not exist.
        MfmVersionNotFound: If the version is not stored.
    """

    logger.info("Starting validation for MFM version: %s", version)
    original = Path(original_path).read_text(encoding="utf-8")
    result = compare_mfm_texts(original, regenerate_mfm_text(version), version)
    logger.info("Validation completed. Matches: %d, Differences: %d", result.matches, len(result.differences))
    return result


def render_validation_report(result: ValidationResult) -> str:
    """Render a plain-text report of a validation result."""

    lines = [
        "MFM Validation Report",
        "====================",
        f"Version: {result.version}",
        f"Total Matches: {result.matches}",
        f"Total Differences: {len(result.differences)}",
        f"Match Percentage: {result.match_percentage:.2f}%",
        "",
    ]
    if result.is_perfect_match:
        lines.append("All data matches perfectly!")
    else:
        lines.extend(["Differences Found:", "-----------------"])
        lines.extend(render_difference_lines(result.differences))
    return "\n".join(lines) + "\n"


def render_difference_lines(differences: list[ValidationDifference]) -> list[str]:
    lines: list[str] = []
    for difference in differences:
        lines.extend(
            [
                f"Line: {difference.line}",
                f"  Original Count: {difference.original_count}",
                f"  Regenerated Count: {difference.regenerated_count}",
                f"  Issue: {difference.issue}",
                "",
            ]
        )
    return lines


def reports_dir() -> Path:
    return Path(settings.MFM_REPORTS_DIR)


def save_validation_report(result: ValidationResult, file_name: str | Path) -> Path:
    """Write the rendered report under the reports directory.

    Args:
        result: Validation result to render.
        file_name: Report path relative to `MFM_REPORTS_DIR`.

    Returns:
        The absolute path of the written report.

    Raises:
        MfmReportPathError: If `file_name` resolves outside the reports directory.
    """

    root = reports_dir().resolve()
    report_path = (root / file_name).resolve()
    if not report_path.is_relative_to(root) or report_path == root:
        raise MfmReportPathError(f"Report path must stay inside {root}: {file_name}")

    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(render_validation_report(result), encoding="utf-8")
    logger.info("Validation report saved to: %s", report_path)
    return report_path
