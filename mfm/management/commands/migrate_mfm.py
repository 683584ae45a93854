"""Ingest structured `mfm-*.js` files into the MFM tables."""

from __future__ import annotations

from django.core.management.base import BaseCommand

from mfm.migration import MfmMigrationService


class Command(BaseCommand):
    """Run the structured-file migration."""

    help = "Load MFM versions from mfm-units.js / mfm-detachments.js files (skips stored versions)."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument(
            "--directory",
            default=None,
            help="Directory to scan (default: MFM_MIGRATION_DIRECTORY).",
        )
        parser.add_argument(
            "--overwrite",
            action="store_true",
            help="Delete and rebuild versions that are already stored.",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        service = MfmMigrationService.from_settings(
            enabled=True,
            directory=options["directory"],
            overwrite_existing=options["overwrite"] or None,
        )
        summary = service.run_migration()
        self.stdout.write(
            f"processed={len(summary.processed_files)} skipped={len(summary.skipped_files)} "
            f"failed={len(summary.failed_files)} latest={summary.latest_version}"
        )
        for path in summary.failed_files:
            self.stderr.write(f"Failed: {path}")
        return None
