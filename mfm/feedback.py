"""Plain-text feedback reports for checking parser output by hand.

Both writers are no-ops unless `MFM_GENERATE_FEEDBACK` is enabled. Reports are
written under `MFM_REPORTS_DIR`.
"""

from __future__ import annotations

import logging
from pathlib import Path

from django.conf import settings
from django.db.models import Count, Prefetch
from django.utils import timezone

from mfm.exceptions import MfmError
from mfm.models import MfmEnhancement, MfmFaction, MfmUnit, MfmUnitVariant, MfmVersion
from mfm.validation import regenerate_mfm_text, render_difference_lines, reports_dir, validate_mfm_data

logger = logging.getLogger(__name__)

SAMPLE_SIZE = 3

PARSER_CHECKLIST = (
    "Unit names with special characters",
    "Multi-line unit entries",
    "Point adjustments (e.g., (-15), (+10))",
    "Forge World vs Standard units",
    "Imperial Agents subsections",
    "Detachment enhancement parsing",
    "Faction name extraction",
    "Model count parsing",
)


def feedback_enabled() -> bool:
    return bool(settings.MFM_GENERATE_FEEDBACK)


def version_slug(version: str) -> str:
    """Return `version` with dots replaced for use in file names ("3.2" -> "3_2")."""

    return version.replace(".", "_")


def find_original_file(version: str) -> Path | None:
    """Locate the raw bulletin for `version` under `MFM_FILES_DIR`.

    Bulletins are named `RAW_MFM_<major>_<minor>_<Mon><YY>.txt`; the first
    match in name order is returned.
    """

    files_dir = Path(settings.MFM_FILES_DIR)
    if not files_dir.is_dir():
        return None
    candidates = sorted(files_dir.glob(f"RAW_MFM_{version_slug(version)}_*.txt"))
    return candidates[0] if candidates else None


def generate_quick_summary(version: str) -> Path | None:
    """Write per-faction statistics for `version`, plus a regenerated copy.

    Returns:
        Path of the summary file, or None when feedback is disabled.
    """

    if not feedback_enabled():
        return None

    now = timezone.now()
    lines = ["=== MFM Parser Quick Summary ===", f"Version: {version}", f"Time: {now.isoformat()}", ""]

    mfm_version = MfmVersion.objects.filter(version=version).first()
    if mfm_version is None:
        lines.append("Version not found in database")
    else:
        lines.extend(["Version imported successfully", f"  Created: {mfm_version.created_at.isoformat()}", ""])
        lines.extend(_faction_statistics(mfm_version))
        write_regenerated_file(mfm_version)

    summary_path = reports_dir() / f"mfm-quick-summary-{version_slug(version)}.txt"
    _write(summary_path, lines)
    logger.info("Quick summary saved to: %s", summary_path.resolve())
    return summary_path


def write_regenerated_file(mfm_version: MfmVersion) -> Path:
    """Write the regenerated bulletin text of a version for manual review."""

    logger.info("Generating regenerated MFM file for manual review")
    file_path = reports_dir() / f"mfm-regenerated-{version_slug(mfm_version.version)}.txt"
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(regenerate_mfm_text(mfm_version.version), encoding="utf-8")
    logger.info("Regenerated MFM file saved to: %s", file_path.resolve())
    return file_path


def generate_feedback_report(version: str, original_path: str | Path | None = None) -> Path | None:
    """Write a debugging report for `version`.

    The report has four sections: stored version metadata, validation against
    the original bulletin, a sample of parsed rows and a checklist of known
    parser weak spots.

    Args:
        version: MFM version string.
        original_path: Bulletin to validate against; looked up in
            `MFM_FILES_DIR` when omitted.

    Returns:
        Path of the report, or None when feedback is disabled.
    """

    if not feedback_enabled():
        return None

    logger.info("Generating feedback report for version: %s", version)
    now = timezone.now()
    mfm_version = MfmVersion.objects.filter(version=version).first()

    lines = ["=== MFM Parser Feedback Report ===", f"Generated: {now.isoformat()}", f"Version: {version}", ""]
    lines.extend(_database_section(mfm_version))
    lines.extend(_validation_section(version, original_path))
    lines.extend(_sample_section(mfm_version))
    lines.extend(_checklist_section())

    file_name = f"mfm-feedback-report-{version_slug(version)}-{now.strftime('%Y-%m-%d_%H-%M-%S')}.txt"
    report_path = reports_dir() / file_name
    _write(report_path, lines)
    logger.info("Feedback report saved to: %s", report_path.resolve())
    return report_path


def _faction_statistics(mfm_version: MfmVersion) -> list[str]:
    factions = (
        MfmFaction.objects.filter(mfm_version=mfm_version)
        .annotate(
            unit_count=Count("units", distinct=True),
            detachment_count=Count("detachments", distinct=True),
            enhancement_count=Count("detachments__enhancements", distinct=True),
        )
        .order_by("id")
    )
    lines = ["FACTION STATISTICS:", "==================", f"Total Factions: {len(factions)}", ""]
    for faction in factions:
        lines.extend(
            [
                f"Faction: {faction.name}",
                f"  Units: {faction.unit_count}",
                f"  Detachments: {faction.detachment_count}",
                f"  Enhancements: {faction.enhancement_count}",
                f"  Supergroup: {faction.supergroup}",
            ]
        )
        if faction.ally_to:
            lines.append(f"  Ally To: {faction.ally_to}")
        lines.append("")
    return lines


def _database_section(mfm_version: MfmVersion | None) -> list[str]:
    lines = ["1. DATABASE STATISTICS", "====================="]
    if mfm_version is None:
        lines.append("ERROR: Version not found in database")
    else:
        lines.extend(
            [
                f"Version: {mfm_version.version}",
                f"Date: {mfm_version.date}",
                f"Is Latest: {mfm_version.is_latest}",
                f"Is Active: {mfm_version.is_active}",
                f"Created: {mfm_version.created_at.isoformat()}",
                f"Updated: {mfm_version.updated_at.isoformat()}",
            ]
        )
    lines.append("")
    return lines


def _validation_section(version: str, original_path: str | Path | None) -> list[str]:
    lines = ["2. VALIDATION RESULTS", "====================="]
    path = Path(original_path) if original_path is not None else find_original_file(version)
    if path is None:
        lines.append(f"ERROR: Could not find original file for validation in {settings.MFM_FILES_DIR}")
        lines.append("")
        return lines

    try:
        result = validate_mfm_data(version, path)
    except (MfmError, OSError) as exc:
        lines.extend([f"ERROR: Could not run validation: {exc}", ""])
        return lines

    lines.extend(
        [
            f"Original File: {path}",
            f"Total Matches: {result.matches}",
            f"Total Differences: {len(result.differences)}",
            f"Match Percentage: {result.match_percentage:.2f}%",
            f"Perfect Match: {result.is_perfect_match}",
            "",
        ]
    )
    if result.differences:
        lines.extend(["DIFFERENCES FOUND:", "------------------"])
        lines.extend(render_difference_lines(result.differences))
    return lines


def _sample_section(mfm_version: MfmVersion | None) -> list[str]:
    lines = ["3. SAMPLE PARSED DATA", "====================="]
    if mfm_version is None:
        lines.extend(["No data stored for this version", ""])
        return lines

    for faction in MfmFaction.objects.filter(mfm_version=mfm_version).order_by("id")[:SAMPLE_SIZE]:
        lines.append(f"Faction: {faction.name} ({faction.supergroup or 'unknown'})")
        ordered_variants = Prefetch("variants", queryset=MfmUnitVariant.objects.order_by("model_count", "id"))
        units = MfmUnit.objects.filter(faction=faction).prefetch_related(ordered_variants).order_by("id")[:SAMPLE_SIZE]
        for unit in units:
            sizes = ", ".join(f"{v.model_count} models = {v.points} pts" for v in unit.variants.all())
            lines.append(f"  Unit: {unit.name} [{unit.unit_type or '-'}] {sizes}")
        enhancements = (
            MfmEnhancement.objects.filter(detachment__faction=faction)
            .select_related("detachment")
            .order_by("id")[:SAMPLE_SIZE]
        )
        for enhancement in enhancements:
            lines.append(f"  Enhancement: {enhancement.name} ({enhancement.detachment.name}) {enhancement.points} pts")
    lines.append("")
    return lines


def _checklist_section() -> list[str]:
    lines = ["4. PARSER ISSUES & RECOMMENDATIONS", "===================================", "Common issues to check:"]
    lines.extend(f"- {item}" for item in PARSER_CHECKLIST)
    lines.extend(
        [
            "",
            "To help debug:",
            "1. Check the validation differences above",
            "2. Look for patterns in missing/extra entries",
            "3. Verify faction and detachment assignments",
            "4. Check point values match exactly",
            "",
        ]
    )
    return lines


def _write(path: Path, lines: list[str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
