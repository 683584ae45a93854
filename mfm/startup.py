"""Startup ingestion of raw bulletins listed in settings.

`MFM_IMPORT_FILES` names bulletins to (re-)import and `MFM_VERIFY_FILES`
names bulletins to validate against the stored data. A name resolves to
`<MFM_FILES_DIR>/<name>.txt`. Every file is handled on its own: a failure is
logged and the next file is processed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from django.conf import settings
from django.utils import timezone

from mfm.feedback import generate_feedback_report, generate_quick_summary
from mfm.models import MfmVersion
from mfm.parsers.patterns import extract_version
from mfm.persistence import MfmParseResult, parse_and_store_mfm_text
from mfm.validation import ValidationResult, save_validation_report, validate_mfm_data

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StartupSummary:
    imported: dict[str, MfmParseResult] = field(default_factory=dict)
    verified: dict[str, ValidationResult] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def resolve_mfm_file(name: str) -> Path:
    """Return the bulletin path for a configured file name."""

    return Path(settings.MFM_FILES_DIR) / f"{name}.txt"


def run_startup_ingestion(
    import_files: list[str] | None = None, verify_files: list[str] | None = None
) -> StartupSummary:
    """Import then verify the configured bulletins.

    Args:
        import_files: File names to import; defaults to `MFM_IMPORT_FILES`.
        verify_files: File names to verify; defaults to `MFM_VERIFY_FILES`.

    Returns:
        StartupSummary keyed by file name.
    """

    if import_files is None:
        import_files = list(settings.MFM_IMPORT_FILES)
    if verify_files is None:
        verify_files = list(settings.MFM_VERIFY_FILES)

    summary = StartupSummary()
    if not import_files and not verify_files:
        return summary

    logger.info("Starting MFM file processing: import=%s verify=%s", import_files, verify_files)
    for name in _clean(import_files):
        try:
            result = import_mfm_file(name)
        except Exception:
            logger.exception("Error processing import file: %s", name)
            summary.failed.append(name)
            continue
        if result is None:
            summary.skipped.append(name)
        else:
            summary.imported[name] = result

    for name in _clean(verify_files):
        try:
            result = verify_mfm_file(name)
        except Exception:
            logger.exception("Error processing verification file: %s", name)
            summary.failed.append(name)
            continue
        if result is None:
            summary.skipped.append(name)
        else:
            summary.verified[name] = result

    logger.info(
        "MFM file processing completed: %d imported, %d verified, %d skipped, %d failed",
        len(summary.imported),
        len(summary.verified),
        len(summary.skipped),
        len(summary.failed),
    )
    return summary


def import_mfm_file(name: str) -> MfmParseResult | None:
    """Import one bulletin, replacing any stored data for its version.

    Returns:
        Parse counts, or None when the bulletin declares no version.

    Raises:
        FileNotFoundError: If the bulletin does not exist.
    """

    path = resolve_mfm_file(name)
    logger.info("Processing import file: %s", path)
    text = path.read_text(encoding="utf-8")
    version = extract_version(text)
    if version is None:
        logger.warning("Could not extract version from file: %s", name)
        return None

    result = parse_and_store_mfm_text(text, source_name=path.name, overwrite=True)
    generate_quick_summary(version)
    return result


def verify_mfm_file(name: str) -> ValidationResult | None:
    """Validate one bulletin against the stored data and save a report.

    A feedback report is generated as well when the texts differ.

    Returns:
        The validation result, or None when the version is unknown or missing.
    """

    path = resolve_mfm_file(name)
    logger.info("Processing verification file: %s", path)
    version = extract_version(path.read_text(encoding="utf-8"))
    if version is None:
        logger.warning("Could not extract version from file: %s", name)
        return None

    if not _version_stored(version):
        logger.warning("Version %s not found in database, skipping verification", version)
        return None

    result = validate_mfm_data(version, path)
    stamp = timezone.now().strftime("%Y-%m-%dT%H-%M-%S")
    save_validation_report(result, f"mfm-validation-report-{version}-{stamp}.txt")
    logger.info(
        "Verification completed for version %s: %d matches, %d differences, %.1f%% match rate",
        version,
        result.matches,
        len(result.differences),
        result.match_percentage,
    )
    if not result.is_perfect_match:
        logger.warning("Found %d differences for version %s", len(result.differences), version)
        generate_feedback_report(version, path)
    return result


def _version_stored(version: str) -> bool:
    return MfmVersion.objects.filter(version=version).exists()


def _clean(names: list[str]) -> list[str]:
    return [name.strip() for name in names if name and name.strip()]
