"""Ingest structured `mfm-*.js` data files into the MFM tables.

This is the alternate ingestion path to raw bulletin parsing. It runs after
`migrate` (see `mfm.signals`), from the `migrate_mfm` management command, or
from the admin HTTP endpoint.

Rules:
- Each file is processed in its own transaction; a failing file is logged and
  the run continues with the next file.
- A version already stored before the run is skipped, or deleted and rebuilt
  when `overwrite_existing` is set.
- A version created earlier in the same run is reused, so the units and
  detachments files of one version combine.
- After all files, the natural-order maximum processed version becomes latest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from django.conf import settings
from django.db import transaction

from mfm.models import MfmDetachment, MfmEnhancement, MfmFaction, MfmUnit, MfmUnitVariant, MfmVersion
from mfm.parsers.structured import (
    FactionInfo,
    StructuredFile,
    parse_base_file,
    parse_detachments_file,
    parse_units_file,
)
from mfm.persistence import get_or_create_faction
from mfm.versions import delete_version_graph, update_latest_flags

logger = logging.getLogger(__name__)

BASE_FILE_NAME = "mfm-base.js"
_KIND_ORDER = {"base": 0, "units": 1, "detachments": 2}


@dataclass(frozen=True, slots=True)
class MfmSourceFile:
    path: Path
    kind: str


@dataclass(slots=True)
class MigrationSummary:
    """Outcome of one migration run.

    Attributes:
        processed_files: Files whose data was written.
        skipped_files: Files skipped because their version already existed.
        failed_files: Files that raised during processing.
        versions: Version strings written during the run.
        latest_version: Version flagged latest afterwards, if any.
    """

    processed_files: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
    failed_files: list[str] = field(default_factory=list)
    versions: list[str] = field(default_factory=list)
    latest_version: str | None = None

    def as_json(self) -> dict[str, object]:
        """Return a JSON-serializable summary."""

        return {
            "processedFiles": self.processed_files,
            "skippedFiles": self.skipped_files,
            "failedFiles": self.failed_files,
            "versions": self.versions,
            "latestVersion": self.latest_version,
        }


def classify_source_file(file_name: str) -> str | None:
    """Return "units", "detachments" or "base" for an `mfm-*.js` file name."""

    if not (file_name.startswith("mfm-") and file_name.endswith(".js")):
        return None
    if "units" in file_name:
        return "units"
    if "detachments" in file_name:
        return "detachments"
    if "base" in file_name:
        return "base"
    return None


def find_source_files(directory: Path) -> list[MfmSourceFile]:
    """Recursively list MFM data files, units files before detachments files."""

    found: list[MfmSourceFile] = []
    for path in directory.rglob("*.js"):
        if not path.is_file():
            continue
        kind = classify_source_file(path.name)
        if kind is not None:
            found.append(MfmSourceFile(path=path, kind=kind))
    return sorted(found, key=lambda item: (_KIND_ORDER[item.kind], str(item.path)))


class MfmMigrationService:
    """Run structured-file migrations with explicit configuration."""

    def __init__(self, *, enabled: bool, directory: str | Path, overwrite_existing: bool) -> None:
        self.enabled = enabled
        self.directory = Path(directory)
        self.overwrite_existing = overwrite_existing

    @classmethod
    def from_settings(cls, **overrides) -> MfmMigrationService:
        """Build a service from `MFM_MIGRATION_*` settings, applying overrides."""

        options = {
            "enabled": settings.MFM_MIGRATION_ENABLED,
            "directory": settings.MFM_MIGRATION_DIRECTORY,
            "overwrite_existing": settings.MFM_MIGRATION_OVERWRITE_EXISTING,
        }
        options.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**options)

    def run_migration(self) -> MigrationSummary:
        """Process every MFM data file in the configured directory."""

        summary = MigrationSummary()
        if not self.enabled:
            logger.info("MFM migration is disabled")
            return summary

        if not self.directory.is_dir():
            logger.warning("MFM directory does not exist: %s", self.directory)
            return summary

        sources = find_source_files(self.directory)
        if not sources:
            logger.info("No MFM files found in directory: %s", self.directory)
            return summary

        logger.info("Found %d MFM files to process in %s", len(sources), self.directory)
        faction_info = self._load_faction_info()
        processed: dict[str, MfmVersion] = {}

        for source in sources:
            if source.kind == "base":
                continue
            try:
                with transaction.atomic():
                    written = self._process_file(source, processed, faction_info)
            except Exception:
                logger.exception("Error processing MFM file: %s", source.path)
                summary.failed_files.append(str(source.path))
                continue
            if written:
                summary.processed_files.append(str(source.path))
            else:
                summary.skipped_files.append(str(source.path))

        summary.versions = sorted(processed)
        latest = update_latest_flags(processed.values())
        summary.latest_version = latest.version if latest is not None else None
        logger.info("MFM migration completed: %s", summary.as_json())
        return summary

    def _load_faction_info(self) -> dict[str, FactionInfo]:
        """Read faction grouping metadata from the base file when present."""

        base_path = self.directory / BASE_FILE_NAME
        if not base_path.is_file():
            return {}
        try:
            return parse_base_file(base_path)
        except Exception:
            logger.warning("Could not parse base file for faction info: %s", base_path, exc_info=True)
            return {}

    def _process_file(
        self,
        source: MfmSourceFile,
        processed: dict[str, MfmVersion],
        faction_info: dict[str, FactionInfo],
    ) -> bool:
        """Write one file's data. Returns False when the file was skipped."""

        logger.info("Processing MFM file: %s (type: %s)", source.path, source.kind)
        if source.kind == "units":
            data = parse_units_file(source.path)
        else:
            data = parse_detachments_file(source.path)

        mfm_version = processed.get(data.version)
        if mfm_version is None:
            existing = MfmVersion.objects.filter(version=data.version).first()
            if existing is not None:
                if not self.overwrite_existing:
                    logger.info("MFM version %s already exists, skipping", data.version)
                    return False
                logger.info("Overwriting existing MFM version: %s", data.version)
                delete_version_graph(existing)
            mfm_version = MfmVersion.objects.create(version=data.version, date=data.date, is_latest=False)

        if data.kind == "units":
            self._store_units(data, mfm_version, faction_info)
        else:
            self._store_detachments(data, mfm_version, faction_info)

        processed[data.version] = mfm_version
        logger.info("Processed %s data for MFM version %s", data.kind, data.version)
        return True

    def _faction(
        self, key: str, name: str, mfm_version: MfmVersion, faction_info: dict[str, FactionInfo]
    ) -> MfmFaction:
        info = faction_info.get(key)
        if info is None:
            return get_or_create_faction(name, mfm_version)
        return get_or_create_faction(name, mfm_version, supergroup=info.supergroup or "", ally_to=info.ally_to)

    def _store_units(
        self, data: StructuredFile, mfm_version: MfmVersion, faction_info: dict[str, FactionInfo]
    ) -> None:
        for key, faction_data in data.factions.items():
            faction = self._faction(key, faction_data.name, mfm_version, faction_info)
            for unit_data in faction_data.units.values():
                unit = MfmUnit.objects.create(faction=faction, name=unit_data.name, unit_type=unit_data.unit_type)
                MfmUnitVariant.objects.bulk_create(
                    [
                        MfmUnitVariant(
                            unit=unit,
                            model_count=variant.model_count,
                            points=variant.points.points_for(data.version),
                        )
                        for variant in unit_data.variants
                    ]
                )

    def _store_detachments(
        self, data: StructuredFile, mfm_version: MfmVersion, faction_info: dict[str, FactionInfo]
    ) -> None:
        for key, faction_data in data.factions.items():
            faction = self._faction(key, faction_data.name, mfm_version, faction_info)
            for detachment_data in faction_data.detachments.values():
                detachment = MfmDetachment.objects.create(faction=faction, name=detachment_data.name)
                MfmEnhancement.objects.bulk_create(
                    [
                        MfmEnhancement(
                            detachment=detachment,
                            name=enhancement.name,
                            points=enhancement.points.points_for(data.version),
                        )
                        for enhancement in detachment_data.enhancements
                    ]
                )


def run_migration(**overrides) -> MigrationSummary:
    """Run a migration configured from settings (with optional overrides)."""

    return MfmMigrationService.from_settings(**overrides).run_migration()
